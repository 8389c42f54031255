import pytest

from mea_form.assembler import assemble, build_failures
from mea_form.errors import AuthenticationMissingError
from mea_form.levels import get_level_config
from mea_form.schemas import Respondent, SubjectSelectionState


def test_assemble_requires_identity(profile_answers):
    with pytest.raises(AuthenticationMissingError):
        assemble("elementary", profile_answers, None, None)
    with pytest.raises(AuthenticationMissingError):
        assemble("elementary", profile_answers, None, Respondent(id="  "))


def test_curriculum_failures_follow_split_flag():
    answers = {"fail_subject_Music": "1", "fail_subject_MAPEH": "9", "fail_subject_Health": "n/a"}
    failures = build_failures(get_level_config("jhs"), answers, SubjectSelectionState(split=True))
    by_name = {f.subject_name: f.failed_count for f in failures}
    assert "MAPEH" not in by_name
    assert by_name["Music"] == 1
    assert by_name["Health"] == 0
    assert "TLE" in by_name

    unsplit = build_failures(get_level_config("jhs"), answers, SubjectSelectionState())
    assert {f.subject_name: f.failed_count for f in unsplit}["MAPEH"] == 9


def test_levels_without_failures_emit_empty_array(profile_answers):
    record = assemble("als", profile_answers, None, Respondent(id="u1"))
    assert record.content["failuresBySubject"] == []
    assert record.failures_by_subject == []


def test_content_and_row_shape(profile_answers):
    selection = SubjectSelectionState(library_selection=["Physical Science"], custom_subjects=["Robotics"])
    answers = dict(profile_answers, **{"fail_subject_Robotics": "2"})
    record = assemble("shs", answers, selection, Respondent(id="u1", email="a@b.c"))

    assert record.content["schoolName"] == "Bacong Central School"
    assert record.content["failuresBySubject"] == [
        {"subjectName": "Physical Science", "subjectSource": "library", "failedCount": 0},
        {"subjectName": "Robotics", "subjectSource": "custom", "failedCount": 2},
    ]
    assert record.content["_meta"] == {
        "customSubjects": ["Robotics"],
        "librarySelection": ["Physical Science"],
        "splitFlag": False,
        "quickModeFlag": False,
    }
    row = record.to_row()
    assert set(row) == {"user_id", "level", "school_year", "quarter", "content"}
    assert row["user_id"] == "u1"
    assert row["quarter"] == "Q1"
    assert row["school_year"] == "2025-2026"


def test_assemble_does_not_mutate_answers(profile_answers):
    answers = dict(profile_answers)
    assemble("elementary", answers, None, Respondent(id="u1"))
    assert answers == profile_answers
