import os
import uuid
from datetime import date

os.environ["DATABASE_URL"] = "sqlite:///./test_resume_history.db"

from fastapi.testclient import TestClient  # noqa: E402

from services.api.app import main  # noqa: E402
from services.api.app.database import Base, engine  # noqa: E402

Base.metadata.create_all(bind=engine)

client = TestClient(main.app)


def _headers(owner_id: str | None = None) -> dict[str, str]:
    return {"X-User-Id": owner_id or f"user-{uuid.uuid4()}"}


def _create_resume(headers: dict[str, str], title: str = "Backend CV") -> dict:
    response = client.post("/resumes", json={"title": title}, headers=headers)
    assert response.status_code == 201
    return response.json()


def _commit(headers: dict[str, str], resume_id: str, content, message: str | None = None) -> dict:
    body = {"resumeId": resume_id, "content": content}
    if message is not None:
        body["commitMsg"] = message
    response = client.post("/resumes/versions", json=body, headers=headers)
    assert response.status_code == 201
    return response.json()


def _list_section(items: list) -> dict:
    return {"sections": [{"id": "exp", "type": "list", "content": items}]}


def test_requests_without_identity_are_rejected():
    response = client.get("/resumes")
    assert response.status_code == 401


def test_healthz():
    assert client.get("/healthz").json() == {"status": "ok"}


def test_resume_crud_roundtrip():
    headers = _headers()
    created = _create_resume(headers)
    assert created["title"] == "Backend CV"
    assert created["versionCount"] == 0

    response = client.put(
        f"/resumes/{created['id']}",
        json={"title": "Platform CV", "category": "backend"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Platform CV"

    listed = client.get("/resumes", headers=headers).json()
    assert [resume["id"] for resume in listed] == [created["id"]]

    assert client.delete(f"/resumes/{created['id']}", headers=headers).status_code == 204
    assert client.get(f"/resumes/{created['id']}", headers=headers).status_code == 404
    assert client.get("/resumes", headers=headers).json() == []


def test_resumes_are_scoped_to_owner():
    owner = _headers()
    created = _create_resume(owner)
    response = client.get(f"/resumes/{created['id']}", headers=_headers())
    assert response.status_code == 404


def test_versions_are_numbered_sequentially():
    headers = _headers()
    resume = _create_resume(headers)
    first = _commit(headers, resume["id"], _list_section([]))
    second = _commit(headers, resume["id"], '{"sections": []}', "raw json")
    assert (first["version"], second["version"]) == (1, 2)
    assert second["commitMsg"] == "raw json"

    versions = client.get(f"/resumes/{resume['id']}/versions", headers=headers).json()
    assert [version["version"] for version in versions] == [2, 1]
    assert client.get(f"/resumes/{resume['id']}", headers=headers).json()["versionCount"] == 2


def test_version_for_unknown_resume_is_404():
    response = client.post(
        "/resumes/versions",
        json={"resumeId": str(uuid.uuid4()), "content": {}},
        headers=_headers(),
    )
    assert response.status_code == 404


def test_history_reports_field_level_commits():
    headers = _headers()
    resume = _create_resume(headers)
    _commit(headers, resume["id"], _list_section([]))
    _commit(headers, resume["id"], _list_section([{"id": "e1", "title": "Engineer"}]), "Add job")

    response = client.get(f"/resumes/{resume['id']}/history?days=7", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["resumeId"] == resume["id"]
    latest, first = data["commits"]
    assert latest["version"] == 2
    assert latest["message"] == "Add job"
    assert latest["changes"] == [
        {"field": "exp[1].title", "before": "", "after": "Engineer", "type": "added"}
    ]
    assert latest["stats"] == {"added": 1, "removed": 0, "modified": 0}
    assert latest["totalChangedFields"] == 1
    assert latest["hash"] == latest["id"][:8]
    assert first["message"] == "Version 1"
    assert data["hotspots"] == [
        {"field": "exp[1].title", "count": 1, "added": 1, "removed": 0, "modified": 0}
    ]
    assert data["totalFieldsTouched"] == 1

    contributions = data["contributions"]
    assert contributions["totalCommits"] == 2
    assert len(contributions["cells"]) % 7 == 0
    dated = [cell for cell in contributions["cells"] if cell["dateKey"]]
    assert dated[-1]["dateKey"] == date.today().isoformat()
    assert dated[-1]["count"] == 2
    assert contributions["streak"] == 1


def test_history_hotspot_limit():
    headers = _headers()
    resume = _create_resume(headers)
    _commit(headers, resume["id"], {"a": "1", "b": "1", "c": "1"})
    response = client.get(f"/resumes/{resume['id']}/history?hotspots=2", headers=headers)
    assert [h["field"] for h in response.json()["hotspots"]] == ["a", "b"]


def test_contributions_endpoint_respects_window():
    headers = _headers()
    resume = _create_resume(headers)
    _commit(headers, resume["id"], {"title": "CV"})
    response = client.get(f"/resumes/{resume['id']}/contributions?days=140", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert sum(1 for cell in data["cells"] if cell["inRange"]) == 140
    assert data["activeDays"] == 1
    assert client.get(f"/resumes/{resume['id']}/contributions?days=0", headers=headers).status_code == 422


def test_diff_between_two_versions():
    headers = _headers()
    resume = _create_resume(headers)
    first = _commit(headers, resume["id"], {"sections": [{"id": "summary", "type": "text", "content": "Old"}]})
    second = _commit(headers, resume["id"], {"sections": [{"id": "summary", "type": "text", "content": "<p>New</p>"}]})

    response = client.get(
        f"/resumes/diff?versionId1={first['id']}&versionId2={second['id']}", headers=headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["version1"]["id"] == first["id"]
    assert data["changes"] == [
        {"field": "summary", "before": "Old", "after": "New", "type": "modified"}
    ]

    assert client.get("/resumes/diff?versionId1=x", headers=headers).status_code == 400
    missing = client.get(
        f"/resumes/diff?versionId1={first['id']}&versionId2=missing", headers=headers
    )
    assert missing.status_code == 404
    foreign = client.get(
        f"/resumes/diff?versionId1={first['id']}&versionId2={second['id']}", headers=_headers()
    )
    assert foreign.status_code == 404


def test_profile_activity_merges_resumes():
    headers = _headers()
    first = _create_resume(headers, "One")
    second = _create_resume(headers, "Two")
    _create_resume(headers, "Empty")
    _commit(headers, first["id"], {"a": "1"})
    _commit(headers, first["id"], {"a": "2"})
    _commit(headers, second["id"], {"b": "1"})

    response = client.get("/profile/activity", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["totalCommits"] == 3
    assert data["resumesWithVersions"] == 2
    assert data["failedResumeIds"] == []
    assert data["contributions"]["totalCommits"] == 3
    assert data["contributions"]["maxCommits"] == 3
    assert data["latestCommitAt"] is not None


def test_profile_activity_tolerates_a_failed_fetch(monkeypatch):
    headers = _headers()
    healthy = _create_resume(headers, "Healthy")
    broken = _create_resume(headers, "Broken")
    _commit(headers, healthy["id"], {"a": "1"})
    _commit(headers, broken["id"], {"b": "1"})

    real_list_versions = main.resume_store.list_versions

    def _flaky(db, owner_id, resume_id):
        if resume_id == broken["id"]:
            raise RuntimeError("replica timeout")
        return real_list_versions(db, owner_id, resume_id)

    monkeypatch.setattr(main.resume_store, "list_versions", _flaky)
    response = client.get("/profile/activity", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["totalCommits"] == 1
    assert data["failedResumeIds"] == [broken["id"]]
    assert data["contributions"]["totalCommits"] == 1


def test_profile_activity_without_versions_is_empty():
    response = client.get("/profile/activity", headers=_headers())
    data = response.json()
    assert data["totalCommits"] == 0
    assert data["latestCommitAt"] is None
    assert data["contributions"]["streak"] == 0


def test_history_survives_a_deeply_nested_version():
    headers = _headers()
    resume = _create_resume(headers)
    deep: object = "x"
    for _ in range(600):
        deep = [deep]
    _commit(headers, resume["id"], {"title": "CV"})
    _commit(headers, resume["id"], {"sections": [{"id": "summary", "type": "text", "content": deep}]})
    _commit(headers, resume["id"], {"title": "CV 2"})

    response = client.get(f"/resumes/{resume['id']}/history", headers=headers)
    assert response.status_code == 200
    assert [commit["version"] for commit in response.json()["commits"]] == [3, 2, 1]
