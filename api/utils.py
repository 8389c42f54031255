from __future__ import annotations

import time
import uuid
from typing import Any, Dict, Optional


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer <token>` header value."""
    t = str(authorization or "").strip()
    if not t:
        return None
    scheme, _, token = t.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def request_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def error_body(error: str, message: str, **extra: Any) -> Dict[str, Any]:
    return {"ok": False, "error": error, "message": message, **extra}
