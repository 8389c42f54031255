import pytest
from fastapi.testclient import TestClient

from api import supabase_client
from api.main import create_app
from mea_form.config import Settings
from mea_form.errors import ConnectivityError
from mea_form.ports import InMemoryDraftStore, InMemorySubmissionStore, StaticIdentityProvider
from mea_form.schemas import Respondent
from mea_form.utils import period_ranges


@pytest.fixture
def stores():
    return {"drafts": InMemoryDraftStore(), "submissions": InMemorySubmissionStore()}


@pytest.fixture
def client(stores):
    supabase_client.reset_state()
    app = create_app()
    app.dependency_overrides[supabase_client.get_settings] = lambda: Settings(supabase_url=None, supabase_key=None)
    app.dependency_overrides[supabase_client.get_draft_store] = lambda: stores["drafts"]
    app.dependency_overrides[supabase_client.get_submission_store] = lambda: stores["submissions"]
    app.dependency_overrides[supabase_client.get_identity_provider] = lambda: StaticIdentityProvider(
        Respondent(id="u1")
    )
    return TestClient(app)


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["ok"] is True


def test_levels_listing(client):
    levels = client.get("/v1/api/levels").json()
    assert [lvl["id"] for lvl in levels] == ["kindergarten", "sped", "elementary", "jhs", "shs", "als", "school_head"]
    shs = next(lvl for lvl in levels if lvl["id"] == "shs")
    assert shs["subjectStrategy"] == "library"
    assert shs["hasMovement"] is True


def test_schema_endpoint(client):
    body = client.get("/v1/api/levels/elementary/schema", params={"period": "Q2"}).json()
    assert [s["id"] for s in body["sections"]] == ["profile", "movement", "failures_by_subject", "review_submission"]
    first = body["sections"][1]["fields"][0]
    assert first["periodRange"] == period_ranges("Q2")[0]
    assert body["ranges"] == period_ranges("Q2")

    off = client.get("/v1/api/levels/elementary/schema", params={"subjectFailures": "false"}).json()
    assert "failures_by_subject" not in [s["id"] for s in off["sections"]]


def test_unknown_level_is_404(client):
    res = client.get("/v1/api/levels/college/schema")
    assert res.status_code == 404
    assert res.json() == {"ok": False, "error": "unknown_level", "message": "Unknown level: 'college'"}


def test_subjects_endpoint(client):
    shs = client.get("/v1/api/levels/shs/subjects", params={"search": "math"}).json()
    assert shs["subjects"] == ["General Mathematics"]
    jhs = client.get("/v1/api/levels/jhs/subjects", params={"split": "true"}).json()
    assert "Music" in jhs["subjects"]
    assert client.get("/v1/api/levels/sped/subjects").json()["subjects"] == []


def test_draft_roundtrip(client, stores):
    payload = {"answers": {"schoolId": "7", "quarter": "Q2"}, "selection": {"customSubjects": ["Robotics"]}}
    res = client.put("/v1/api/drafts/shs", json=payload)
    assert res.status_code == 200
    assert res.json()["key"] == "mea_draft_u1_shs"

    body = client.get("/v1/api/drafts/shs").json()
    assert body["found"] is True
    assert body["answers"]["schoolId"] == "7"
    assert body["answers"]["district"] == "Bacong"
    assert body["selection"]["customSubjects"] == ["Robotics"]

    assert client.delete("/v1/api/drafts/shs").status_code == 200
    assert client.get("/v1/api/drafts/shs").json()["found"] is False


def test_drafts_require_identity(client):
    client.app.dependency_overrides[supabase_client.get_identity_provider] = lambda: StaticIdentityProvider(None)
    res = client.get("/v1/api/drafts/shs")
    assert res.status_code == 401
    assert res.json()["error"] == "authentication_missing"


def test_local_mode_uses_bearer_token_as_respondent(client):
    del client.app.dependency_overrides[supabase_client.get_identity_provider]
    assert client.get("/v1/api/drafts/shs").status_code == 401
    res = client.put("/v1/api/drafts/shs", json={"answers": {}}, headers={"Authorization": "Bearer adviser-9"})
    assert res.json()["key"] == "mea_draft_adviser-9_shs"


def test_submission_flow(client, stores, profile_answers):
    r1 = period_ranges("Q1")[0]
    client.put("/v1/api/drafts/elementary", json={"answers": profile_answers})
    payload = {"answers": dict(profile_answers, **{f"enroll_total_{r1}": "120", "fail_subject_Science": "1"})}

    res = client.post("/v1/api/levels/elementary/submissions", json=payload)
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["record"]["respondentId"] == "u1"
    assert body["summary"]["latestEnrollment"] == 120
    assert "mea_draft_u1_elementary" not in stores["drafts"].blobs

    reports = client.get("/v1/api/reports", params={"period": "Q1"}).json()
    assert len(reports["records"]) == 1
    assert reports["records"][0]["movement"][0]["enrollment"] == 120
    assert client.get("/v1/api/reports", params={"school": "Buntod High School"}).json()["records"] == []


def test_submission_blocked_by_profile_gate(client):
    res = client.post("/v1/api/levels/elementary/submissions", json={"answers": {"schoolId": "1"}})
    assert res.status_code == 422
    body = res.json()
    assert body["error"] == "validation_error"
    assert body["message"].startswith("Please fill in: School Name")
    assert body["step"] == 0


def test_submission_blocked_without_subjects(client, profile_answers):
    res = client.post("/v1/api/levels/shs/submissions", json={"answers": profile_answers})
    assert res.status_code == 422
    assert res.json()["step"] == 2


def test_submission_persistence_failure(client, stores, profile_answers):
    stores["submissions"].fail_with = "relation \"mea_reports\" does not exist"
    client.put("/v1/api/drafts/elementary", json={"answers": profile_answers})
    res = client.post("/v1/api/levels/elementary/submissions", json={"answers": profile_answers})
    assert res.status_code == 502
    assert res.json()["error"] == "persistence_error"
    assert 'relation "mea_reports" does not exist' in res.json()["message"]
    assert "mea_draft_u1_elementary" in stores["drafts"].blobs


def test_invalid_body_is_422(client):
    res = client.post("/v1/api/levels/elementary/submissions", json={"answers": {"x": [1, 2]}})
    assert res.status_code == 422
    assert res.json()["error"] == "validation_error"


def test_connectivity(client):
    assert client.get("/v1/api/connectivity").json() == {"ok": True}

    def _down():
        raise ConnectivityError("Failed to fetch")

    client.app.dependency_overrides[supabase_client.get_connection_check] = lambda: _down
    res = client.get("/v1/api/connectivity")
    assert res.status_code == 503
    assert res.json() == {"ok": False, "error": "connectivity_error", "message": "Failed to fetch"}
