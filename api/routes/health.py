from __future__ import annotations

import time
from typing import Any, Callable, Dict

import anyio
from fastapi import APIRouter, Depends

from api.supabase_client import get_connection_check

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> Dict[str, Any]:
    return {"ok": True, "service": "mea-form-service", "ts": int(time.time() * 1000)}


@router.get("/v1/api/connectivity")
async def connectivity(check: Callable[[], None] = Depends(get_connection_check)) -> Dict[str, Any]:
    """
    Pre-condition for entering a form: the storage backend must be reachable.

    A ConnectivityError propagates to the app handler (503) so the host can
    show its blocking retry screen.
    """
    await anyio.to_thread.run_sync(check)
    return {"ok": True}
