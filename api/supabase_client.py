"""
Supabase client and the storage/identity adapters built on it.

Uses the official Supabase Python client. When Supabase is not configured the
FastAPI dependency getters below fall back to the in-memory stores from
`mea_form.ports`, so the service runs locally without a backend.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, Header
from supabase import Client, create_client

from mea_form.config import Settings, load_settings
from mea_form.errors import ConnectivityError, PersistenceError
from mea_form.ports import (
    DraftStore,
    IdentityProvider,
    InMemoryDraftStore,
    InMemorySubmissionStore,
    StaticIdentityProvider,
)
from mea_form.schemas import Respondent, SubmissionRecord

from api.utils import bearer_token

logger = logging.getLogger(__name__)

_client: Optional[Client] = None
_settings: Optional[Settings] = None

_memory_drafts = InMemoryDraftStore()
_memory_submissions = InMemorySubmissionStore()

# PostgREST "no rows" style codes; the backend answered, so it is reachable.
_REACHABLE_ERROR_CODES = {"PGRST116", "42P01"}


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_state() -> None:
    """Forget the cached settings, client and in-memory stores (used by tests and app reloads)."""
    global _client, _settings, _memory_drafts, _memory_submissions
    _client = None
    _settings = None
    _memory_drafts = InMemoryDraftStore()
    _memory_submissions = InMemorySubmissionStore()


def get_supabase_client(settings: Optional[Settings] = None) -> Optional[Client]:
    """Get or create Supabase client (singleton)."""
    global _client

    if _client is not None:
        return _client

    settings = settings or get_settings()
    if not settings.supabase_configured:
        return None

    try:
        _client = create_client(settings.supabase_url, settings.supabase_key)
        return _client
    except Exception as e:
        logger.error("Failed to create Supabase client: %s", e)
        return None


def _error_message(e: Exception) -> str:
    # postgrest APIError carries the backend message in `.message`.
    return str(getattr(e, "message", None) or e)


class SupabaseDraftStore:
    """Draft slot backed by a `key`/`blob` table, upserted on `key`."""

    def __init__(self, client: Client, table: str = "mea_drafts") -> None:
        self.client = client
        self.table = table

    def save(self, key: str, blob: str) -> None:
        row = {"key": key, "blob": blob, "updated_at": datetime.now(timezone.utc).isoformat()}
        try:
            self.client.table(self.table).upsert(row, on_conflict="key").execute()
        except Exception as e:
            raise PersistenceError(_error_message(e)) from e

    def load(self, key: str) -> Optional[str]:
        try:
            res = self.client.table(self.table).select("blob").eq("key", key).limit(1).execute()
        except Exception as e:
            raise PersistenceError(_error_message(e)) from e
        rows = res.data or []
        if not rows:
            return None
        blob = rows[0].get("blob")
        return blob if isinstance(blob, str) else None

    def delete(self, key: str) -> None:
        try:
            self.client.table(self.table).delete().eq("key", key).execute()
        except Exception as e:
            raise PersistenceError(_error_message(e)) from e


class SupabaseSubmissionStore:
    def __init__(self, client: Client, table: str = "mea_reports") -> None:
        self.client = client
        self.table = table

    def insert(self, record: SubmissionRecord) -> None:
        try:
            self.client.table(self.table).insert(record.to_row()).execute()
        except Exception as e:
            logger.warning("Insert into %s failed: %s", self.table, e)
            raise PersistenceError(_error_message(e)) from e

    def fetch(self, school: Optional[str] = None, period: Optional[str] = None) -> List[Dict[str, Any]]:
        return fetch_submissions(self.client, self.table, school=school, period=period)


class SupabaseIdentityProvider:
    """Resolves the respondent behind a bearer access token via Supabase Auth."""

    def __init__(self, client: Client, access_token: Optional[str]) -> None:
        self.client = client
        self.access_token = access_token

    def get_current_user(self) -> Optional[Respondent]:
        if not self.access_token:
            return None
        try:
            res = self.client.auth.get_user(self.access_token)
        except Exception as e:
            logger.warning("Supabase auth lookup failed: %s", e)
            return None
        user = getattr(res, "user", None)
        if user is None or not getattr(user, "id", None):
            return None
        return Respondent(id=str(user.id), email=getattr(user, "email", None))


def check_connection(client: Client, table: str = "mea_reports") -> None:
    """Cheap select against the submissions table; raises ConnectivityError when unreachable."""
    try:
        client.table(table).select("id").limit(1).execute()
    except Exception as e:
        code = str(getattr(e, "code", "") or "")
        if code in _REACHABLE_ERROR_CODES:
            return
        logger.error("Supabase connectivity check failed: %s", e)
        raise ConnectivityError(_error_message(e)) from e


def fetch_submissions(
    client: Client,
    table: str = "mea_reports",
    *,
    school: Optional[str] = None,
    period: Optional[str] = None,
) -> List[Dict[str, Any]]:
    try:
        query = client.table(table).select("*")
        if period:
            query = query.eq("quarter", period)
        if school:
            query = query.eq("content->>schoolName", school)
        res = query.execute()
    except Exception as e:
        raise PersistenceError(_error_message(e)) from e
    return [row for row in (res.data or []) if isinstance(row, dict)]


# --- FastAPI dependency getters ---


def get_draft_store(settings: Settings = Depends(get_settings)) -> DraftStore:
    client = get_supabase_client(settings)
    if client is None:
        return _memory_drafts
    return SupabaseDraftStore(client, settings.drafts_table)


def get_submission_store(settings: Settings = Depends(get_settings)) -> Any:
    client = get_supabase_client(settings)
    if client is None:
        return _memory_submissions
    return SupabaseSubmissionStore(client, settings.submissions_table)


def get_identity_provider(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> IdentityProvider:
    token = bearer_token(authorization)
    client = get_supabase_client(settings)
    if client is None:
        # Local mode: the bearer token is taken as the respondent id.
        return StaticIdentityProvider(Respondent(id=token) if token else None)
    return SupabaseIdentityProvider(client, token)


def get_connection_check(settings: Settings = Depends(get_settings)) -> Callable[[], None]:
    client = get_supabase_client(settings)
    if client is None:
        return lambda: None
    return lambda: check_connection(client, settings.submissions_table)
