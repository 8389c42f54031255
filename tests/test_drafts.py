import json

import pytest

from mea_form.drafts import apply_defaults, decode_draft, encode_draft, load_draft
from mea_form.errors import DraftCorruptError
from mea_form.ports import InMemoryDraftStore, draft_key
from mea_form.schemas import DraftSnapshot, SubjectSelectionState


def test_encode_uses_flat_blob_with_reserved_keys():
    snapshot = DraftSnapshot(
        level="shs",
        answers={"schoolId": "1", "fail_subject_Robotics": "2"},
        selection=SubjectSelectionState(custom_subjects=["Robotics"], quick_mode=True),
    )
    blob = json.loads(encode_draft(snapshot))
    assert blob["schoolId"] == "1"
    assert blob["_customSubjects"] == ["Robotics"]
    assert blob["_librarySelection"] == []
    assert blob["_quickModeFlag"] is True
    assert blob["_splitFlag"] is False

    decoded = decode_draft(encode_draft(snapshot), "shs")
    assert decoded == snapshot


def test_decode_rejects_garbage():
    with pytest.raises(DraftCorruptError):
        decode_draft("{oops", "shs")
    with pytest.raises(DraftCorruptError):
        decode_draft("[1, 2]", "shs")
    with pytest.raises(DraftCorruptError):
        decode_draft(json.dumps({"_customSubjects": "Robotics"}), "shs")


def test_decode_drops_non_scalar_answers():
    snapshot = decode_draft(json.dumps({"schoolId": "1", "nested": {"a": 1}, "flag": True, "n": 3}), "elementary")
    assert snapshot.answers == {"schoolId": "1", "n": 3}


def test_apply_defaults_only_fills_blanks(settings):
    out = apply_defaults({"district": "", "quarter": "Q3"}, settings)
    assert out == {"district": "Bacong", "quarter": "Q3", "sy": "2025-2026"}


def test_load_draft_deletes_corrupt_blob():
    store = InMemoryDraftStore()
    store.save("k", "not json")
    assert load_draft(store, "k", "elementary") is None
    assert "k" not in store.blobs
    assert load_draft(store, "missing", "elementary") is None


def test_draft_key_scoping():
    assert draft_key("elementary") == "mea_draft_elementary"
    assert draft_key("elementary", "u1") == "mea_draft_u1_elementary"
    assert draft_key("shs", "u1", prefix="x_") == "x_u1_shs"
