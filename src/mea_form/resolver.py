"""
Schema resolution: (level config, period, toggles) -> ordered sections.

`resolve` is pure. The wizard calls it again whenever the period or toggles
change instead of mutating sections in place. Derived field ids are
`<templateId>_<range>` so answers for a range keep their keys across
re-resolution.
"""

from __future__ import annotations

from typing import Any, List, Optional, Union

from mea_form.constants import (
    COMMON_PROFILE_SECTION,
    ELEMENTARY_SCHOOLS,
    FAILURES_SECTION_ID,
    HIGH_SCHOOLS,
    REVIEW_SECTION_ID,
    SCHOOL_NAME_KEY,
    SCHOOLS_LIST,
)
from mea_form.levels import get_level_config
from mea_form.schemas import (
    FieldDescriptor,
    FormSection,
    LevelConfig,
    SchemaToggles,
    SchoolTier,
    SectionKind,
    SubjectStrategy,
)
from mea_form.utils import period_ranges


def school_options(level: LevelConfig) -> List[str]:
    if level.school_tier == SchoolTier.ELEMENTARY:
        return list(ELEMENTARY_SCHOOLS)
    if level.school_tier == SchoolTier.SECONDARY:
        return list(HIGH_SCHOOLS)
    return list(SCHOOLS_LIST)


def profile_section(level: LevelConfig) -> FormSection:
    fields = [
        f.model_copy(update={"options": school_options(level)}) if f.id == SCHOOL_NAME_KEY else f
        for f in COMMON_PROFILE_SECTION.fields
    ]
    return COMMON_PROFILE_SECTION.model_copy(update={"fields": fields})


def expand_movement_section(section: FormSection, ranges: List[str]) -> FormSection:
    """Cross product ranges x templates, range-major (all templates of range 1 first)."""
    fields: List[FieldDescriptor] = []
    for r in ranges:
        for template in section.fields:
            fields.append(
                template.model_copy(update={"id": f"{template.id}_{r}", "period_range": r})
            )
    return section.model_copy(update={"fields": fields, "kind": SectionKind.DERIVED})


def failures_section(level: LevelConfig) -> FormSection:
    if level.subject_strategy == SubjectStrategy.LIBRARY:
        description = "Select the subjects you teach and enter the number of failures."
    else:
        description = "Enter the number of learners who failed in each learning area."
    return FormSection(
        id=FAILURES_SECTION_ID,
        title="Learners Who Failed (By Subject)",
        description=description,
        kind=SectionKind.DERIVED,
    )


def review_section() -> FormSection:
    return FormSection(
        id=REVIEW_SECTION_ID,
        title="Review & Submit",
        description="Please review your data before finalizing the report.",
        kind=SectionKind.DERIVED,
    )


def subject_failures_enabled(level: LevelConfig, toggles: Optional[SchemaToggles] = None) -> bool:
    if toggles is not None and toggles.subject_failures is not None:
        return bool(toggles.subject_failures) and level.has_subject_failures
    return level.has_subject_failures


def resolve(
    level: Union[str, LevelConfig],
    period: Any,
    toggles: Optional[SchemaToggles] = None,
) -> List[FormSection]:
    """
    Build the ordered step list for a level and period.

    Order: profile, movement section(s) expanded per range, failures-by-subject
    (when the level reports subject failures), remaining static sections in
    declared order, review.
    """
    config = get_level_config(level)
    ranges = period_ranges(period)

    sections: List[FormSection] = [profile_section(config)]
    sections.extend(expand_movement_section(s, ranges) for s in config.movement_sections)
    if subject_failures_enabled(config, toggles):
        sections.append(failures_section(config))
    sections.extend(s for s in config.sections if not s.movement)
    sections.append(review_section())
    return sections


def section_index(sections: List[FormSection], section_id: str) -> int:
    for idx, section in enumerate(sections):
        if section.id == section_id:
            return idx
    return -1
