from __future__ import annotations

import sys
from pathlib import Path

import pytest


_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC = _REPO_ROOT / "src"
if _SRC.exists():
    sys.path.insert(0, str(_SRC))
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


@pytest.fixture
def settings():
    from mea_form.config import Settings

    return Settings(supabase_url=None, supabase_key=None)


@pytest.fixture
def profile_answers():
    return {
        "schoolName": "Bacong Central School",
        "schoolId": "120001",
        "district": "Bacong",
        "sy": "2025-2026",
        "quarter": "Q1",
        "respondentName": "Ana Reyes",
        "designation": "Adviser",
    }
