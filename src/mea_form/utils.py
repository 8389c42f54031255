from __future__ import annotations

import math
from typing import Any, List, Optional, Union

from mea_form.constants import FAILURE_KEY_PREFIX, QUARTER_DATE_RANGES


def failure_key(subject_name: str) -> str:
    return f"{FAILURE_KEY_PREFIX}{subject_name}"


def period_ranges(period: Any) -> List[str]:
    """Range tokens implied by a period; unknown periods imply none."""
    return list(QUARTER_DATE_RANGES.get(str(period or "").strip(), []))


def range_suffix_of(key: str, ranges: List[str]) -> Optional[str]:
    for r in ranges:
        if key.endswith(f"_{r}"):
            return r
    return None


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def safe_count(value: Any) -> Union[int, float]:
    """
    Coerce a failure/movement answer to a number.

    Absent, empty, the token "N/A" (any case) and anything non-numeric become 0.
    Integral values come back as int.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        t = value.strip()
        if not t or t.upper() == "N/A":
            return 0
        try:
            num = float(t)
        except ValueError:
            return 0
    elif isinstance(value, (int, float)):
        num = float(value)
    else:
        return 0
    if math.isnan(num) or math.isinf(num):
        return 0
    return int(num) if num.is_integer() else num
