from mea_form.assembler import assemble
from mea_form.export import build_export_record, movement_rows, movement_totals
from mea_form.schemas import Respondent
from mea_form.utils import period_ranges


def test_movement_rows_and_totals():
    r1, r2, r3 = period_ranges("Q1")
    answers = {
        f"enroll_total_{r1}": "120",
        f"enroll_total_{r2}": "118",
        f"enroll_total_{r3}": "",
        f"move_in_{r1}": "2",
        f"move_in_{r3}": "N/A",
        f"move_out_{r2}": "4",
    }
    rows = movement_rows("elementary", "Q1", answers)
    assert rows == [
        {"range": r1, "enrollment": 120, "transferredIn": 2, "transferredOut": 0},
        {"range": r2, "enrollment": 118, "transferredIn": 0, "transferredOut": 4},
        {"range": r3, "enrollment": 0, "transferredIn": 0, "transferredOut": 0},
    ]
    assert movement_totals("elementary", "Q1", answers) == {
        "latestEnrollment": 118,
        "totalTransferredIn": 2,
        "totalTransferredOut": 4,
    }


def test_kindergarten_and_als_use_their_own_columns():
    r1 = period_ranges("Q2")[0]
    assert movement_rows("kindergarten", "Q2", {f"k_total_{r1}": "30"})[0]["enrollment"] == 30
    assert movement_rows("als", "Q2", {f"als_in_{r1}": "5"})[0]["transferredIn"] == 5


def test_school_head_summary_uses_bosy_enrollment():
    assert movement_totals("school_head", "Q1", {"enrollment_bosy": "640"})["latestEnrollment"] == 640
    assert movement_rows("school_head", "Q1", {}) == []


def test_export_record_from_row(profile_answers):
    r1 = period_ranges("Q1")[0]
    answers = dict(profile_answers, **{f"enroll_total_{r1}": "50", "fail_subject_Science": "3"})
    record = assemble("elementary", answers, None, Respondent(id="u1"))

    exported = build_export_record(record.to_row())
    assert exported["school"] == "Bacong Central School"
    assert exported["period"] == "Q1"
    assert exported["level"] == "elementary"
    assert exported["schoolYear"] == "2025-2026"
    assert exported["movement"][0]["enrollment"] == 50
    assert {"subjectName": "Science", "failedCount": 3, "subjectSource": "curriculum"} in exported["failuresBySubject"]

    assert build_export_record(record) == exported


def test_export_record_tolerates_missing_content():
    exported = build_export_record({"level": "sped", "quarter": "Q1", "content": None})
    assert exported["school"] is None
    assert exported["movement"] == []
    assert exported["failuresBySubject"] == []
