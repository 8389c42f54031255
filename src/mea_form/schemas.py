"""
Data models for the dynamic form engine.

Level configuration, resolved sections, subject selection state, drafts and
submission records. Wire names (camelCase) are exposed through aliases so the
same models validate front-end payloads and Supabase rows.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

AnswerValue = Union[str, int, float]
AnswerMap = Dict[str, AnswerValue]


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    HEADER = "header"
    READ_ONLY = "read_only"


class SubjectStrategy(str, Enum):
    NONE = "none"
    CURRICULUM = "curriculum"
    LIBRARY = "library"


class SubjectSource(str, Enum):
    CURRICULUM = "curriculum"
    LIBRARY = "library"
    CUSTOM = "custom"


class SchoolTier(str, Enum):
    ELEMENTARY = "elementary"
    SECONDARY = "secondary"
    ALL = "all"


class SectionKind(str, Enum):
    STATIC = "static"
    DERIVED = "derived"


class FieldDescriptor(BaseModel):
    id: str = Field(..., description="Answer key for this field (unique within a resolved schema)")
    label: str = Field(..., description="User-facing label")
    type: FieldType = FieldType.TEXT
    options: Optional[List[str]] = None
    placeholder: Optional[str] = None
    required: bool = False
    period_range: Optional[str] = Field(
        default=None,
        alias="periodRange",
        description="Range token for fields materialized from a movement template",
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def carries_answer(self) -> bool:
        return self.type != FieldType.HEADER


class FormSection(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    fields: List[FieldDescriptor] = Field(default_factory=list)
    kind: SectionKind = SectionKind.STATIC
    movement: bool = Field(default=False, description="Expand fields per period range at resolve time")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class MovementColumns(BaseModel):
    """Which movement templates feed the export table columns."""

    enrollment: str
    transferred_in: str = Field(..., alias="transferredIn")
    transferred_out: str = Field(..., alias="transferredOut")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class LevelConfig(BaseModel):
    id: str
    label: str
    sections: List[FormSection] = Field(default_factory=list)
    school_tier: SchoolTier = Field(default=SchoolTier.ALL, alias="schoolTier")
    subject_strategy: SubjectStrategy = Field(default=SubjectStrategy.NONE, alias="subjectStrategy")
    curriculum_subjects: List[str] = Field(default_factory=list, alias="curriculumSubjects")
    split_subject: Optional[str] = Field(default=None, alias="splitSubject")
    split_components: List[str] = Field(default_factory=list, alias="splitComponents")
    library_subjects: List[str] = Field(
        default_factory=list,
        alias="librarySubjects",
        description="Checklist catalog; doubles as the quick-mode core list",
    )
    movement_columns: Optional[MovementColumns] = Field(default=None, alias="movementColumns")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def has_subject_failures(self) -> bool:
        return self.subject_strategy != SubjectStrategy.NONE

    @property
    def movement_sections(self) -> List[FormSection]:
        return [s for s in self.sections if s.movement]


class SchemaToggles(BaseModel):
    """Feature switches that change the resolved schema."""

    subject_failures: Optional[bool] = Field(
        default=None,
        alias="subjectFailures",
        description="Force the failures-by-subject step on/off (None = level default)",
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class SubjectRecord(BaseModel):
    name: str
    source: SubjectSource

    model_config = ConfigDict(frozen=True)


class SubjectSelectionState(BaseModel):
    custom_subjects: List[str] = Field(default_factory=list, alias="customSubjects")
    library_selection: List[str] = Field(default_factory=list, alias="librarySelection")
    split: bool = Field(default=False, alias="splitFlag")
    quick_mode: bool = Field(default=False, alias="quickModeFlag")

    model_config = ConfigDict(populate_by_name=True)


class DraftSnapshot(BaseModel):
    """In-progress answers plus the auxiliary selection state, per (respondent, level)."""

    level: str
    answers: AnswerMap = Field(default_factory=dict)
    selection: SubjectSelectionState = Field(default_factory=SubjectSelectionState)

    model_config = ConfigDict(populate_by_name=True)


class FailureEntry(BaseModel):
    subject_name: str = Field(..., alias="subjectName")
    subject_source: SubjectSource = Field(..., alias="subjectSource")
    failed_count: Union[int, float] = Field(default=0, alias="failedCount")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Respondent(BaseModel):
    id: str
    email: Optional[str] = None


class SubmissionRecord(BaseModel):
    respondent_id: str = Field(..., alias="respondentId")
    level: str
    school_year: Optional[str] = Field(default=None, alias="schoolYear")
    period: Optional[str] = None
    content: Dict[str, Any] = Field(
        default_factory=dict,
        description="Answer map + failuresBySubject + _meta selection metadata",
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def failures_by_subject(self) -> List[FailureEntry]:
        raw = self.content.get("failuresBySubject") or []
        return [FailureEntry.model_validate(item) for item in raw if isinstance(item, dict)]

    def to_row(self) -> Dict[str, Any]:
        """Row shape of the submissions table (`quarter` is the period column)."""
        return {
            "user_id": self.respondent_id,
            "level": self.level,
            "school_year": self.school_year,
            "quarter": self.period,
            "content": self.content,
        }


class StepResult(BaseModel):
    """Outcome of a navigation or submit action; failures carry a user-facing message."""

    ok: bool = True
    step: int = 0
    submitted: bool = False
    error: Optional[str] = None
    message: Optional[str] = None
