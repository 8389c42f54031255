"""
Collaborator ports used by the wizard, plus in-memory implementations.

Supabase-backed implementations live in `api/supabase_client.py`. The in-memory
ones back local development (no Supabase configured) and tests.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol

from mea_form.errors import PersistenceError
from mea_form.schemas import Respondent, SubmissionRecord

ConfirmFn = Callable[[str], bool]


class DraftStore(Protocol):
    def save(self, key: str, blob: str) -> None: ...

    def load(self, key: str) -> Optional[str]: ...

    def delete(self, key: str) -> None: ...


class SubmissionStore(Protocol):
    def insert(self, record: SubmissionRecord) -> None: ...


class IdentityProvider(Protocol):
    def get_current_user(self) -> Optional[Respondent]: ...


def draft_key(level_id: str, respondent_id: Optional[str] = None, *, prefix: str = "mea_draft_") -> str:
    """`<prefix><level>` for anonymous drafts, `<prefix><respondent>_<level>` otherwise."""
    rid = str(respondent_id or "").strip()
    if not rid:
        return f"{prefix}{level_id}"
    return f"{prefix}{rid}_{level_id}"


def always_confirm(message: str) -> bool:
    return True


def never_confirm(message: str) -> bool:
    return False


class InMemoryDraftStore:
    def __init__(self) -> None:
        self.blobs: Dict[str, str] = {}
        self.writes = 0

    def save(self, key: str, blob: str) -> None:
        self.blobs[key] = blob
        self.writes += 1

    def load(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    def delete(self, key: str) -> None:
        self.blobs.pop(key, None)


class InMemorySubmissionStore:
    def __init__(self, fail_with: Optional[str] = None) -> None:
        self.records: List[SubmissionRecord] = []
        self.fail_with = fail_with

    def insert(self, record: SubmissionRecord) -> None:
        if self.fail_with:
            raise PersistenceError(self.fail_with)
        self.records.append(record)

    def fetch(self, school: Optional[str] = None, period: Optional[str] = None) -> List[Dict[str, Any]]:
        rows = [r.to_row() for r in self.records]
        if period:
            rows = [r for r in rows if r.get("quarter") == period]
        if school:
            rows = [r for r in rows if (r.get("content") or {}).get("schoolName") == school]
        return rows


class StaticIdentityProvider:
    def __init__(self, respondent: Optional[Respondent] = None) -> None:
        self.respondent = respondent

    def get_current_user(self) -> Optional[Respondent]:
        return self.respondent
