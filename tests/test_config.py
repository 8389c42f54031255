import json

import pytest

from mea_form.config import load_settings
from mea_form.constants import EducationLevel
from mea_form.errors import UnknownLevelError
from mea_form.levels import configure_levels, get_level_config, load_level_configs

_ENV_KEYS = [
    "SUPABASE_URL",
    "NEXT_PUBLIC_SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_ANON_KEY",
    "MEA_SUBMISSIONS_TABLE",
    "MEA_DRAFTS_TABLE",
    "MEA_DRAFT_KEY_PREFIX",
    "MEA_DEFAULT_DISTRICT",
    "MEA_DEFAULT_QUARTER",
    "MEA_DEFAULT_SCHOOL_YEAR",
    "MEA_LEVEL_CONFIG_PATH",
    "MEA_HTTP_LOG",
    "MEA_HTTP_LOG_HEADERS",
    "MEA_HTTP_LOG_BODY_MAX_BYTES",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = load_settings()
    assert s.supabase_configured is False
    assert s.submissions_table == "mea_reports"
    assert s.drafts_table == "mea_drafts"
    assert s.draft_key_prefix == "mea_draft_"
    assert (s.default_district, s.default_quarter, s.default_school_year) == ("Bacong", "Q1", "2025-2026")
    assert s.http_log is False
    assert s.http_log_body_max_bytes == 4096


def test_env_overrides_and_fallback_names(clean_env):
    clean_env.setenv("NEXT_PUBLIC_SUPABASE_URL", "https://example.supabase.co")
    clean_env.setenv("SUPABASE_ANON_KEY", "anon")
    clean_env.setenv("MEA_DEFAULT_QUARTER", " Q2 ")
    clean_env.setenv("MEA_HTTP_LOG", "yes")
    clean_env.setenv("MEA_HTTP_LOG_BODY_MAX_BYTES", "lots")
    s = load_settings()
    assert s.supabase_url == "https://example.supabase.co"
    assert s.supabase_key == "anon"
    assert s.supabase_configured is True
    assert s.default_quarter == "Q2"
    assert s.http_log is True
    assert s.http_log_body_max_bytes == 4096


def test_level_config_override_file(tmp_path):
    path = tmp_path / "levels.json"
    path.write_text(
        json.dumps(
            [
                {"id": "elementary", "label": "Grade School", "subjectStrategy": "curriculum", "curriculumSubjects": ["Math"]},
                {"id": "pilot", "label": "Pilot Program"},
            ]
        ),
        encoding="utf-8",
    )
    configs = load_level_configs(path)
    assert configs["elementary"].label == "Grade School"
    assert configs["elementary"].curriculum_subjects == ["Math"]
    assert configs["pilot"].has_subject_failures is False
    assert load_level_configs()["elementary"].label == "Elementary"


def test_configure_levels_switches_active_set(tmp_path):
    path = tmp_path / "levels.json"
    path.write_text(json.dumps([{"id": "pilot", "label": "Pilot Program"}]), encoding="utf-8")
    try:
        configure_levels(path)
        assert get_level_config("pilot").label == "Pilot Program"
    finally:
        configure_levels(None)
    with pytest.raises(UnknownLevelError):
        get_level_config("pilot")


def test_get_level_config_accepts_enum():
    assert get_level_config(EducationLevel.SHS).id == "shs"
    assert get_level_config(" jhs ").id == "jhs"
