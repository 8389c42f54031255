from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import anyio
from fastapi import APIRouter, Depends, Query

from api.models import ReportsResponse
from api.supabase_client import get_submission_store
from mea_form.export import build_export_record
from mea_form.levels import level_configs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/api", tags=["reports"])


@router.get("/reports")
async def list_reports(
    school: Optional[str] = Query(default=None),
    period: Optional[str] = Query(default=None),
    level: Optional[str] = Query(default=None),
    store: Any = Depends(get_submission_store),
) -> Dict[str, Any]:
    """Export records for the slide-deck renderer, one per stored submission."""
    rows = await anyio.to_thread.run_sync(store.fetch, school, period)
    known = level_configs()
    records = []
    for row in rows:
        row_level = row.get("level")
        if level and row_level != level:
            continue
        if row_level not in known:
            logger.warning("Skipping submission with unknown level %r", row_level)
            continue
        records.append(build_export_record(row))
    return ReportsResponse(school=school, period=period, records=records).model_dump()
