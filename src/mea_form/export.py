"""
Export-facing projection of submissions.

The slide-deck renderer consumes one record per (school, period, level): a
movement table per range and the failures-by-subject array.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Union

from mea_form.constants import EducationLevel, SCHOOL_NAME_KEY
from mea_form.levels import get_level_config
from mea_form.schemas import LevelConfig, SubmissionRecord
from mea_form.utils import period_ranges, safe_count


def movement_rows(level: Union[str, LevelConfig], period: Any, answers: Mapping[str, Any]) -> List[Dict[str, Any]]:
    config = get_level_config(level)
    columns = config.movement_columns
    if columns is None:
        return []
    rows: List[Dict[str, Any]] = []
    for r in period_ranges(period):
        rows.append(
            {
                "range": r,
                "enrollment": safe_count(answers.get(f"{columns.enrollment}_{r}")),
                "transferredIn": safe_count(answers.get(f"{columns.transferred_in}_{r}")),
                "transferredOut": safe_count(answers.get(f"{columns.transferred_out}_{r}")),
            }
        )
    return rows


def movement_totals(level: Union[str, LevelConfig], period: Any, answers: Mapping[str, Any]) -> Dict[str, Any]:
    """Latest non-zero enrollment (scanning ranges backwards) and total transfers."""
    config = get_level_config(level)
    if config.id == EducationLevel.SCHOOL_HEAD.value:
        return {
            "latestEnrollment": safe_count(answers.get("enrollment_bosy")),
            "totalTransferredIn": 0,
            "totalTransferredOut": 0,
        }
    rows = movement_rows(config, period, answers)
    latest = next((row["enrollment"] for row in reversed(rows) if row["enrollment"] > 0), 0)
    return {
        "latestEnrollment": latest,
        "totalTransferredIn": sum(row["transferredIn"] for row in rows),
        "totalTransferredOut": sum(row["transferredOut"] for row in rows),
    }


def build_export_record(row: Union[SubmissionRecord, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(row, SubmissionRecord):
        level, period, school_year, content = row.level, row.period, row.school_year, row.content
    else:
        level = row.get("level")
        period = row.get("quarter") or row.get("period")
        school_year = row.get("school_year") or row.get("schoolYear")
        content = row.get("content") if isinstance(row.get("content"), dict) else {}

    failures = content.get("failuresBySubject") if isinstance(content.get("failuresBySubject"), list) else []
    return {
        "school": content.get(SCHOOL_NAME_KEY),
        "period": period,
        "level": level,
        "schoolYear": school_year,
        "movement": movement_rows(level, period, content),
        "failuresBySubject": [
            {
                "subjectName": str(f.get("subjectName") or ""),
                "failedCount": safe_count(f.get("failedCount")),
                "subjectSource": f.get("subjectSource"),
            }
            for f in failures
            if isinstance(f, dict)
        ],
    }
