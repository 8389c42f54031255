from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mea_form.schemas import AnswerMap, DraftSnapshot, SubjectSelectionState, SubjectStrategy


class SnapshotBody(BaseModel):
    """Draft/submission payload sent by the form front-end."""

    answers: AnswerMap = Field(
        default_factory=dict,
        description="Answer map keyed by field id (derived fields use `<templateId>_<range>`)",
    )
    selection: SubjectSelectionState = Field(
        default_factory=SubjectSelectionState,
        description="customSubjects, librarySelection, splitFlag, quickModeFlag",
    )

    model_config = ConfigDict(populate_by_name=True)

    def to_snapshot(self, level: str) -> DraftSnapshot:
        return DraftSnapshot(level=level, answers=dict(self.answers), selection=self.selection)


class LevelSummary(BaseModel):
    id: str
    label: str
    subject_strategy: SubjectStrategy = Field(..., alias="subjectStrategy")
    has_movement: bool = Field(default=False, alias="hasMovement")

    model_config = ConfigDict(populate_by_name=True)


class SubmissionResponse(BaseModel):
    ok: bool = True
    record: Dict[str, Any]
    summary: Dict[str, Any] = Field(default_factory=dict)


class ReportsResponse(BaseModel):
    ok: bool = True
    school: Optional[str] = None
    period: Optional[str] = None
    records: List[Dict[str, Any]] = Field(default_factory=list)
