"""
Step-by-step controller for one respondent editing one level's report.

The controller is the only writer of the answer map. It re-resolves the
section list when the period or toggles change, gates navigation on the
profile and failures steps, writes the draft through on every committed change,
and runs assemble-and-persist at the terminal step.

Async boundaries (draft read on mount, identity lookup, submission insert) run
the synchronous ports in a worker thread via anyio.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

import anyio

from mea_form.assembler import assemble
from mea_form.config import Settings, load_settings
from mea_form.constants import FAILURES_SECTION_ID, PERIOD_KEY, REVIEW_SECTION_ID
from mea_form.drafts import apply_defaults, encode_draft, load_draft
from mea_form.errors import AuthenticationMissingError, FormEngineError, PersistenceError
from mea_form.export import movement_totals
from mea_form.levels import get_level_config
from mea_form.ports import ConfirmFn, DraftStore, IdentityProvider, SubmissionStore, draft_key
from mea_form.resolver import resolve, section_index
from mea_form.schemas import (
    AnswerValue,
    DraftSnapshot,
    FieldDescriptor,
    FormSection,
    LevelConfig,
    SchemaToggles,
    SectionKind,
    StepResult,
    SubmissionRecord,
)
from mea_form.subjects import AnswerPatch, SubjectSelectionEngine
from mea_form.utils import is_blank, period_ranges, range_suffix_of

logger = logging.getLogger(__name__)

PERIOD_CHANGE_MESSAGE = "Changing the quarter will reset Monthly Learners' Movement data. Continue?"
NO_SUBJECTS_MESSAGE = "No subjects selected. Please add at least one subject you teach."


def missing_required(section: FormSection, answers: Dict[str, Any]) -> List[FieldDescriptor]:
    return [f for f in section.fields if f.required and f.carries_answer and is_blank(answers.get(f.id))]


def missing_required_message(missing: List[FieldDescriptor]) -> str:
    return f"Please fill in: {', '.join(f.label for f in missing)}"


class WizardController:
    def __init__(
        self,
        level: Union[str, LevelConfig],
        *,
        drafts: DraftStore,
        confirm: ConfirmFn,
        respondent_id: Optional[str] = None,
        submissions: Optional[SubmissionStore] = None,
        identity: Optional[IdentityProvider] = None,
        toggles: Optional[SchemaToggles] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.level = get_level_config(level)
        self.settings = settings or load_settings()
        self.respondent_id = respondent_id
        self.toggles = toggles or SchemaToggles()
        self._drafts = drafts
        self._confirm = confirm
        self._submissions = submissions
        self._identity = identity

        self.answers: Dict[str, AnswerValue] = apply_defaults({}, self.settings)
        self.subjects = SubjectSelectionEngine(self.level)
        self.step = 0
        self.submitted = False
        self.submitting = False
        self.record: Optional[SubmissionRecord] = None
        self.error: Optional[str] = None
        self.open_ranges: Dict[str, bool] = {}

        self._sections_key: Optional[Tuple[str, SchemaToggles]] = None
        self._sections: List[FormSection] = []
        self._reset_open_ranges()

    # --- derived state ---

    @property
    def draft_key(self) -> str:
        return draft_key(self.level.id, self.respondent_id, prefix=self.settings.draft_key_prefix)

    @property
    def period(self) -> str:
        return str(self.answers.get(PERIOD_KEY) or self.settings.default_quarter)

    @property
    def sections(self) -> List[FormSection]:
        key = (self.period, self.toggles)
        if key != self._sections_key:
            self._sections = resolve(self.level, self.period, self.toggles)
            self._sections_key = key
        return self._sections

    @property
    def current_section(self) -> FormSection:
        return self.sections[self.step]

    @property
    def is_terminal(self) -> bool:
        return self.step == len(self.sections) - 1

    def snapshot(self) -> DraftSnapshot:
        return DraftSnapshot(level=self.level.id, answers=dict(self.answers), selection=self.subjects.state)

    def range_groups(self, section: Optional[FormSection] = None) -> Dict[str, List[FieldDescriptor]]:
        section = section or self.current_section
        groups: Dict[str, List[FieldDescriptor]] = {}
        for f in section.fields:
            if f.period_range:
                groups.setdefault(f.period_range, []).append(f)
        return groups

    # --- draft lifecycle ---

    async def mount(self) -> bool:
        """Restore a prior draft for this (respondent, level); returns True if one was found."""
        snapshot = await anyio.to_thread.run_sync(load_draft, self._drafts, self.draft_key, self.level.id)
        if snapshot is not None:
            self.restore(snapshot)
        else:
            self.answers = apply_defaults(self.answers, self.settings)
            self._reset_open_ranges()
        return snapshot is not None

    def restore(self, snapshot: DraftSnapshot) -> None:
        self.answers = apply_defaults(snapshot.answers, self.settings)
        self.subjects.load_state(snapshot.selection)
        self._reset_open_ranges()
        self._clamp_step()

    def _persist(self) -> bool:
        # Write-through cache: a failed write never undoes the committed edit.
        try:
            self._drafts.save(self.draft_key, encode_draft(self.snapshot()))
        except PersistenceError as e:
            logger.warning("Could not save draft %s: %s", self.draft_key, e)
            return False
        return True

    # --- edits ---

    def set_answer(self, field_id: str, value: AnswerValue) -> bool:
        if self.submitted:
            return False
        if field_id == PERIOD_KEY:
            return self.change_period(value)
        if field_id in self.answers and self.answers[field_id] == value:
            return False
        self.answers[field_id] = value
        self._persist()
        return True

    def change_period(self, new_period: Any) -> bool:
        """
        Switch the reporting period after confirmation, deleting every answer
        suffixed with a range of the previous period. Declining keeps everything.
        """
        new_value = str(new_period or "").strip()
        previous = self.period
        if self.submitted or not new_value or new_value == previous:
            return False
        if not self._confirm(PERIOD_CHANGE_MESSAGE):
            logger.info("Period change %s -> %s declined", previous, new_value)
            return False

        old_ranges = period_ranges(previous)
        stale = [k for k in self.answers if range_suffix_of(k, old_ranges)]
        for k in stale:
            del self.answers[k]
        self.answers[PERIOD_KEY] = new_value
        logger.info("Period changed %s -> %s, cleared %d range answers", previous, new_value, len(stale))

        self._reset_open_ranges()
        self._clamp_step()
        self._persist()
        return True

    def set_toggles(self, toggles: SchemaToggles) -> None:
        self.toggles = toggles
        self._clamp_step()

    def _apply(self, patch: AnswerPatch) -> bool:
        if self.submitted or not patch.changed:
            return False
        patch.apply(self.answers)
        self._persist()
        return True

    def add_custom(self, name: str) -> bool:
        if self.submitted:
            return False
        return self._apply(self.subjects.add_custom(name))

    def remove_custom(self, name: str) -> bool:
        if self.submitted:
            return False
        return self._apply(self.subjects.remove_custom(name))

    def toggle_library(self, name: str) -> bool:
        if self.submitted:
            return False
        return self._apply(self.subjects.toggle_library(name))

    def set_quick_mode(self, enabled: bool) -> bool:
        if self.submitted:
            return False
        return self._apply(self.subjects.set_quick_mode(enabled, self.answers))

    def set_split(self, enabled: bool) -> bool:
        if self.submitted:
            return False
        return self._apply(self.subjects.set_split(enabled))

    # --- presentation ---

    def _reset_open_ranges(self) -> None:
        self.open_ranges = {r: True for r in period_ranges(self.period)}

    def toggle_range(self, period_range: str) -> bool:
        if period_range not in self.open_ranges:
            return False
        self.open_ranges[period_range] = not self.open_ranges[period_range]
        return self.open_ranges[period_range]

    # --- navigation ---

    def _clamp_step(self) -> None:
        self.step = max(0, min(self.step, len(self.sections) - 1))

    def _result(self, ok: bool = True, error: Optional[str] = None, message: Optional[str] = None) -> StepResult:
        self.error = message if not ok else None
        return StepResult(ok=ok, step=self.step, submitted=self.submitted, error=error, message=message)

    @property
    def failures_step(self) -> int:
        return section_index(self.sections, FAILURES_SECTION_ID)

    def _step_message(self, index: int) -> Optional[str]:
        section = self.sections[index]
        if index == 0:
            missing = missing_required(section, self.answers)
            if missing:
                return missing_required_message(missing)
        if index == self.failures_step and self.subjects.uses_library:
            if not self.subjects.active_subjects():
                return NO_SUBJECTS_MESSAGE
        return None

    def validate_step(self) -> Optional[str]:
        return self._step_message(self.step)

    def first_blocked_step(self) -> Optional[Tuple[int, str]]:
        """First gated step that would refuse `next()`, for callers submitting a whole snapshot."""
        for idx in range(len(self.sections)):
            message = self._step_message(idx)
            if message:
                return idx, message
        return None

    async def next(self) -> StepResult:
        if self.submitted:
            return self._result(False, "submitted", "Report already submitted.")
        message = self.validate_step()
        if message:
            return self._result(False, "validation_error", message)
        if self.is_terminal:
            return await self.submit()
        self.step += 1
        return self._result()

    def previous(self) -> StepResult:
        if self.submitted:
            return self._result(False, "submitted", "Report already submitted.")
        if self.step > 0:
            self.step -= 1
        return self._result()

    def jump_to(self, index: int) -> StepResult:
        if self.submitted:
            return self._result(False, "submitted", "Report already submitted.")
        if not 0 <= int(index) < len(self.sections):
            return self._result(False, "invalid_step", f"No step at index {index}.")
        self.step = int(index)
        return self._result()

    # --- submission ---

    async def submit(self) -> StepResult:
        """
        Assemble and persist. Failures leave the draft and the terminal step in
        place so the respondent can retry; success deletes the draft and enters
        the summary state.
        """
        if self.submitted:
            return self._result(False, "submitted", "Report already submitted.")
        if self.submitting:
            return self._result(False, "in_progress", "Submission already in progress.")
        if self._submissions is None:
            raise FormEngineError("No submission store configured")

        self.submitting = True
        try:
            respondent = None
            if self._identity is not None:
                respondent = await anyio.to_thread.run_sync(self._identity.get_current_user)
            record = assemble(self.level, self.answers, self.subjects.state, respondent)
            await anyio.to_thread.run_sync(self._submissions.insert, record)
            # Set before the draft delete is awaited.
            self.record = record
            self.submitted = True
        except AuthenticationMissingError as e:
            logger.warning("Submission for %s blocked: %s", self.level.id, e)
            return self._result(False, "authentication_missing", f"Failed to submit report: {e}")
        except PersistenceError as e:
            logger.warning("Submission for %s failed: %s", self.level.id, e)
            return self._result(False, "persistence_error", f"Failed to submit report: {e}")
        finally:
            self.submitting = False

        try:
            await anyio.to_thread.run_sync(self._drafts.delete, self.draft_key)
        except PersistenceError as e:
            logger.warning("Submitted but could not delete draft %s: %s", self.draft_key, e)
        logger.info("Submitted %s report for %s", self.level.id, record.period)
        return self._result()

    # --- read-only projections ---

    def review(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for idx, section in enumerate(self.sections):
            if section.id == REVIEW_SECTION_ID:
                continue
            entry: Dict[str, Any] = {"index": idx, "id": section.id, "title": section.title}
            if section.id == FAILURES_SECTION_ID:
                entry["failures"] = self.subjects.review_failures(self.answers)
            else:
                entry["items"] = [
                    {
                        "id": f.id,
                        "label": f"{f.period_range} - {f.label}" if f.period_range else f.label,
                        "value": self.answers[f.id],
                    }
                    for f in section.fields
                    if f.carries_answer and not is_blank(self.answers.get(f.id))
                ]
            entry["derived"] = section.kind == SectionKind.DERIVED
            out.append(entry)
        return out

    def summary(self) -> Dict[str, Any]:
        if not self.submitted:
            raise FormEngineError("Summary is only available after submission")
        return {"level": self.level.id, "label": self.level.label, **movement_totals(self.level, self.period, self.answers)}
