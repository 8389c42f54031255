"""
Submission assembly: final answers + subject selection -> SubmissionRecord.

Pure apart from the identity check; persisting the record is the caller's job.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from mea_form.constants import PERIOD_KEY, SCHOOL_YEAR_KEY
from mea_form.errors import AuthenticationMissingError
from mea_form.levels import get_level_config
from mea_form.schemas import (
    FailureEntry,
    LevelConfig,
    Respondent,
    SubjectSelectionState,
    SubmissionRecord,
)
from mea_form.subjects import SubjectSelectionEngine
from mea_form.utils import failure_key, safe_count


def build_failures(
    level: LevelConfig,
    answers: Mapping[str, Any],
    selection: SubjectSelectionState,
) -> List[FailureEntry]:
    """One entry per active subject, in active order, counts coerced (blank/N/A -> 0)."""
    engine = SubjectSelectionEngine(level, selection)
    return [
        FailureEntry(
            subject_name=subject.name,
            subject_source=subject.source,
            failed_count=safe_count(answers.get(failure_key(subject.name))),
        )
        for subject in engine.active_subjects()
    ]


def _top_level(answers: Mapping[str, Any], key: str) -> Optional[str]:
    value = answers.get(key)
    if value is None or value == "":
        return None
    return str(value)


def assemble(
    level: Union[str, LevelConfig],
    answers: Mapping[str, Any],
    selection: Optional[SubjectSelectionState],
    respondent: Optional[Respondent],
) -> SubmissionRecord:
    if respondent is None or not str(respondent.id or "").strip():
        raise AuthenticationMissingError()

    config = get_level_config(level)
    selection = selection or SubjectSelectionState()
    failures = build_failures(config, answers, selection)

    content: Dict[str, Any] = dict(answers)
    content["failuresBySubject"] = [f.model_dump(by_alias=True, mode="json") for f in failures]
    content["_meta"] = selection.model_dump(by_alias=True)

    return SubmissionRecord(
        respondent_id=str(respondent.id),
        level=config.id,
        school_year=_top_level(answers, SCHOOL_YEAR_KEY),
        period=_top_level(answers, PERIOD_KEY),
        content=content,
    )
