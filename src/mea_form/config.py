from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    if v is None:
        return default
    v = v.strip()
    return v if v else default


def _env_bool(name: str, default: bool = False) -> bool:
    v = (os.getenv(name) or "").strip().lower()
    if not v:
        return default
    return v in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    submissions_table: str = "mea_reports"
    drafts_table: str = "mea_drafts"
    draft_key_prefix: str = "mea_draft_"
    default_district: str = "Bacong"
    default_quarter: str = "Q1"
    default_school_year: str = "2025-2026"
    level_config_path: Optional[str] = None
    http_log: bool = False
    http_log_headers: bool = False
    http_log_body_max_bytes: int = 4096

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def load_settings() -> Settings:
    """
    Read settings from the environment.

    Supabase keys accept the Next.js-style names too so one `.env` can be
    shared with the web front-end.
    """
    return Settings(
        supabase_url=_env_str("SUPABASE_URL") or _env_str("NEXT_PUBLIC_SUPABASE_URL"),
        supabase_key=_env_str("SUPABASE_SERVICE_ROLE_KEY") or _env_str("SUPABASE_ANON_KEY"),
        submissions_table=_env_str("MEA_SUBMISSIONS_TABLE", "mea_reports") or "mea_reports",
        drafts_table=_env_str("MEA_DRAFTS_TABLE", "mea_drafts") or "mea_drafts",
        draft_key_prefix=_env_str("MEA_DRAFT_KEY_PREFIX", "mea_draft_") or "mea_draft_",
        default_district=_env_str("MEA_DEFAULT_DISTRICT", "Bacong") or "Bacong",
        default_quarter=_env_str("MEA_DEFAULT_QUARTER", "Q1") or "Q1",
        default_school_year=_env_str("MEA_DEFAULT_SCHOOL_YEAR", "2025-2026") or "2025-2026",
        level_config_path=_env_str("MEA_LEVEL_CONFIG_PATH"),
        http_log=_env_bool("MEA_HTTP_LOG", default=False),
        http_log_headers=_env_bool("MEA_HTTP_LOG_HEADERS", default=False),
        http_log_body_max_bytes=max(0, _env_int("MEA_HTTP_LOG_BODY_MAX_BYTES", 4096)),
    )
