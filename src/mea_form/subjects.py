"""
Subject selection for the failures-by-subject step.

Three sources feed the active subject list:
- curriculum: the level's fixed list (optionally with one subject split into components)
- library: names checked from the level's catalog
- custom: free-text names typed by the respondent

Library and custom picks live in one tagged list so dedup and cleanup are
enforced in one place. Operations never touch the answer map directly: they
return an AnswerPatch for the wizard to apply.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from mea_form.schemas import (
    AnswerValue,
    LevelConfig,
    SubjectRecord,
    SubjectSelectionState,
    SubjectSource,
    SubjectStrategy,
)
from mea_form.utils import failure_key, is_blank, safe_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnswerPatch:
    updates: Dict[str, AnswerValue] = field(default_factory=dict)
    removals: Tuple[str, ...] = ()
    changed: bool = False

    @classmethod
    def noop(cls) -> "AnswerPatch":
        return cls()

    def apply(self, answers: Dict[str, AnswerValue]) -> None:
        for key in self.removals:
            answers.pop(key, None)
        answers.update(self.updates)


def curriculum_subjects(level: LevelConfig, split: bool = False) -> List[str]:
    subjects = list(level.curriculum_subjects)
    if not split or not level.split_subject or level.split_subject not in subjects:
        return subjects
    idx = subjects.index(level.split_subject)
    return subjects[:idx] + list(level.split_components) + subjects[idx + 1 :]


class SubjectSelectionEngine:
    def __init__(self, level: LevelConfig, state: Optional[SubjectSelectionState] = None) -> None:
        self.level = level
        self._entries: List[SubjectRecord] = []
        self.split = False
        self.quick_mode = False
        if state is not None:
            self.load_state(state)

    # --- state ---

    def load_state(self, state: SubjectSelectionState) -> None:
        self._entries = []
        for name in state.library_selection:
            self._append(str(name or "").strip(), SubjectSource.LIBRARY)
        for name in state.custom_subjects:
            self._append(str(name or "").strip(), SubjectSource.CUSTOM)
        self.split = bool(state.split)
        self.quick_mode = bool(state.quick_mode)

    @property
    def state(self) -> SubjectSelectionState:
        return SubjectSelectionState(
            custom_subjects=self.custom_subjects,
            library_selection=self.library_selection,
            split=self.split,
            quick_mode=self.quick_mode,
        )

    @property
    def library_selection(self) -> List[str]:
        return [e.name for e in self._entries if e.source == SubjectSource.LIBRARY]

    @property
    def custom_subjects(self) -> List[str]:
        return [e.name for e in self._entries if e.source == SubjectSource.CUSTOM]

    @property
    def uses_library(self) -> bool:
        return self.level.subject_strategy == SubjectStrategy.LIBRARY

    def active_subjects(self) -> List[SubjectRecord]:
        strategy = self.level.subject_strategy
        if strategy == SubjectStrategy.CURRICULUM:
            return [
                SubjectRecord(name=name, source=SubjectSource.CURRICULUM)
                for name in curriculum_subjects(self.level, self.split)
            ]
        if strategy == SubjectStrategy.LIBRARY:
            library = [e for e in self._entries if e.source == SubjectSource.LIBRARY]
            custom = [e for e in self._entries if e.source == SubjectSource.CUSTOM]
            return library + custom
        return []

    def _find(self, name: str) -> Optional[SubjectRecord]:
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def _append(self, name: str, source: SubjectSource) -> bool:
        if not name or self._find(name) is not None:
            return False
        self._entries.append(SubjectRecord(name=name, source=source))
        return True

    def _drop(self, name: str) -> None:
        self._entries = [e for e in self._entries if e.name != name]

    # --- operations ---

    def add_custom(self, name: str) -> AnswerPatch:
        formatted = str(name or "").strip()
        if not formatted or not self.uses_library:
            return AnswerPatch.noop()
        if not self._append(formatted, SubjectSource.CUSTOM):
            return AnswerPatch.noop()
        return AnswerPatch(changed=True)

    def remove_custom(self, name: str) -> AnswerPatch:
        entry = self._find(name)
        if entry is None or entry.source != SubjectSource.CUSTOM:
            return AnswerPatch.noop()
        self._drop(name)
        logger.info("Removed custom subject %r and its failure answer", name)
        return AnswerPatch(removals=(failure_key(name),), changed=True)

    def toggle_library(self, name: str) -> AnswerPatch:
        if not self.uses_library or name not in self.level.library_subjects:
            return AnswerPatch.noop()
        if self.is_selected(name):
            self._drop(name)
            return AnswerPatch(removals=(failure_key(name),), changed=True)
        if self._find(name) is not None:
            # Same name typed as custom earlier: it becomes the library row, answer kept.
            self._drop(name)
        self._entries.append(SubjectRecord(name=name, source=SubjectSource.LIBRARY))
        return AnswerPatch(changed=True)

    def set_quick_mode(self, enabled: bool, answers: Mapping[str, Any]) -> AnswerPatch:
        """
        Enabling replaces the library selection with the full core list and seeds
        "0" for every core subject whose answer is absent or empty. Disabling only
        clears the flag; seeded answers stay.
        """
        enabled = bool(enabled)
        if not self.uses_library:
            return AnswerPatch.noop()
        if not enabled:
            changed = self.quick_mode
            self.quick_mode = False
            return AnswerPatch(changed=changed)

        core = list(self.level.library_subjects)
        core_set = set(core)
        custom = [e for e in self._entries if e.source == SubjectSource.CUSTOM and e.name not in core_set]
        self._entries = [SubjectRecord(name=n, source=SubjectSource.LIBRARY) for n in core] + custom
        self.quick_mode = True

        updates: Dict[str, AnswerValue] = {}
        for name in core:
            key = failure_key(name)
            if is_blank(answers.get(key)):
                updates[key] = "0"
        return AnswerPatch(updates=updates, changed=True)

    def set_split(self, enabled: bool) -> AnswerPatch:
        # Parent and component answers are independent keys; toggling never deletes either.
        enabled = bool(enabled)
        if self.level.subject_strategy != SubjectStrategy.CURRICULUM or not self.level.split_subject:
            return AnswerPatch.noop()
        changed = enabled != self.split
        self.split = enabled
        return AnswerPatch(changed=changed)

    # --- queries ---

    def search_library(self, term: str = "") -> List[str]:
        needle = str(term or "").strip().lower()
        return [s for s in self.level.library_subjects if needle in s.lower()]

    def is_selected(self, name: str) -> bool:
        entry = self._find(name)
        return entry is not None and entry.source == SubjectSource.LIBRARY

    def review_failures(self, answers: Mapping[str, Any]) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for subject in self.active_subjects():
            count = safe_count(answers.get(failure_key(subject.name)))
            if count > 0:
                out.append({"name": subject.name, "source": subject.source.value, "count": count})
        return out
