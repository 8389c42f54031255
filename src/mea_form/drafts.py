from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from mea_form.config import Settings
from mea_form.constants import DISTRICT_KEY, PERIOD_KEY, SCHOOL_YEAR_KEY
from mea_form.errors import DraftCorruptError
from mea_form.schemas import AnswerMap, DraftSnapshot, SubjectSelectionState
from mea_form.utils import is_blank

logger = logging.getLogger(__name__)

# Auxiliary state rides in the same flat blob as the answers, under keys no field id uses.
_SELECTION_KEYS = {
    "_customSubjects": "customSubjects",
    "_librarySelection": "librarySelection",
    "_splitFlag": "splitFlag",
    "_quickModeFlag": "quickModeFlag",
}


def encode_draft(snapshot: DraftSnapshot) -> str:
    blob: Dict[str, Any] = dict(snapshot.answers)
    selection = snapshot.selection.model_dump(by_alias=True)
    for blob_key, field_alias in _SELECTION_KEYS.items():
        blob[blob_key] = selection[field_alias]
    return json.dumps(blob, ensure_ascii=False)


def decode_draft(blob: str, level: str) -> DraftSnapshot:
    try:
        raw = json.loads(blob)
    except (TypeError, ValueError) as e:
        raise DraftCorruptError(f"Draft is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise DraftCorruptError("Draft is not a JSON object")

    answers: AnswerMap = {}
    for key, value in raw.items():
        if str(key).startswith("_"):
            continue
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            logger.warning("Dropping non-scalar draft answer %r", key)
            continue
        answers[str(key)] = value

    try:
        selection = SubjectSelectionState.model_validate(
            {alias: raw[blob_key] for blob_key, alias in _SELECTION_KEYS.items() if raw.get(blob_key) is not None}
        )
    except ValidationError as e:
        raise DraftCorruptError(f"Draft selection state is invalid: {e}") from e
    return DraftSnapshot(level=level, answers=answers, selection=selection)


def default_answers(settings: Settings) -> Dict[str, str]:
    return {
        DISTRICT_KEY: settings.default_district,
        PERIOD_KEY: settings.default_quarter,
        SCHOOL_YEAR_KEY: settings.default_school_year,
    }


def apply_defaults(answers: Mapping[str, Any], settings: Settings) -> AnswerMap:
    out: AnswerMap = dict(answers)
    for key, value in default_answers(settings).items():
        if is_blank(out.get(key)):
            out[key] = value
    return out


def load_draft(store: Any, key: str, level: str) -> Optional[DraftSnapshot]:
    """Read and decode a draft; a corrupt blob is logged, deleted and treated as absent."""
    blob = store.load(key)
    if blob is None:
        return None
    try:
        return decode_draft(blob, level)
    except DraftCorruptError as e:
        logger.warning("Discarding corrupt draft %s: %s", key, e)
        store.delete(key)
        return None
