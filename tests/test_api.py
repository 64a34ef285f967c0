# tests/test_api.py

import os

import pytest
from fastapi.testclient import TestClient

from scorebook.api import ScorebookRestAPI, SpreadsheetEndpointAPI
from scorebook.core.entities import subjects_from_payload, subjects_to_payload
from scorebook.persistence import LocalBackend, SQLDocumentClient, SQLiteDatabase
from scorebook.services import GradebookService, SyncStore
from tests.conftest import run


@pytest.fixture
def gradebook_service(local_store, session):
    store = SyncStore(LocalBackend(local_store), session, [],
                      encode=subjects_to_payload, decode=subjects_from_payload,
                      saving_indicator_hold=0)
    run(store.load())
    return GradebookService(store)


@pytest.fixture
def client(gradebook_service, master_roster):
    return TestClient(ScorebookRestAPI(gradebook_service, master_roster).app)


@pytest.fixture
def populated(client):
    subject = client.post("/subjects", json={"name": "Mathematics", "code": "MA101"}).json()
    section = client.post(f"/subjects/{subject['id']}/classes", json={"name": "3/1"}).json()
    base = f"/subjects/{subject['id']}/classes/{section['id']}"
    students = client.post(f"{base}/import", json={"entry_ids": ["M1", "M2"]}).json()
    return base, students


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_subject_and_class(client):
    response = client.post("/subjects", json={"name": "Mathematics", "code": "MA101"})
    assert response.status_code == 201
    subject = response.json()

    response = client.post(f"/subjects/{subject['id']}/classes", json={"name": "3/1"})
    assert response.status_code == 201

    listed = client.get("/subjects").json()
    assert listed[0]["classes"][0]["name"] == "3/1"
    assert listed[0]["classes"][0]["student_count"] == 0


def test_blank_subject_name_is_rejected(client):
    assert client.post("/subjects", json={"name": ""}).status_code == 422
    assert client.post("/subjects", json={"name": "   "}).status_code == 400


def test_import_and_list_students(client, populated):
    base, students = populated

    assert [s["no"] for s in students] == ["1", "2"]
    assert students[0]["master_id"] == "M1"
    assert [c["id"] for c in client.get(f"{base}/candidates").json()] == ["M3", "M4"]
    assert len(client.get(f"{base}/students").json()) == 2


def test_import_duplicate_conflicts(client, populated):
    base, _ = populated

    response = client.post(f"{base}/import", json={"entry_ids": ["M1"]})

    assert response.status_code == 409


def test_import_unknown_entry(client, populated):
    base, _ = populated

    assert client.post(f"{base}/import", json={"entry_ids": ["M9"]}).status_code == 404


def test_score_update_derives_grade(client, populated):
    base, students = populated
    url = f"{base}/students/{students[0]['id']}/score"

    for term, field, value in [("midterm", "exam", 40), ("final", "exam", "40")]:
        response = client.put(url, json={"term": term, "field": field, "value": value})
        assert response.status_code == 200

    body = response.json()
    assert body["updated"]
    assert body["student"]["total"] == 80
    assert body["student"]["grade_point"] == 4.0
    assert body["student"]["tier"] == "excellent"


def test_unparsable_score_is_ignored(client, populated):
    base, students = populated
    url = f"{base}/students/{students[0]['id']}/score"

    body = client.put(url, json={"term": "midterm", "field": "c1", "value": "abc"}).json()

    assert body["updated"] is False
    assert body["student"]["midterm"]["c1"] == 0


def test_negative_score_is_rejected(client, populated):
    base, students = populated
    url = f"{base}/students/{students[0]['id']}/score"

    assert client.put(url, json={"term": "midterm", "field": "c1", "value": -3}).status_code == 400
    assert client.put(url, json={"term": "mid", "field": "c1", "value": 3}).status_code == 422


def test_edit_and_remove_student(client, populated):
    base, students = populated
    url = f"{base}/students/{students[1]['id']}"

    edited = client.patch(url, json={"name": "Suda J.", "student_id": "6602"}).json()
    assert edited["name"] == "Suda J."
    assert edited["student_id"] == "6602"

    assert client.delete(url).json() == {"removed": students[1]["id"]}
    assert client.delete(url).status_code == 404


def test_statistics_and_sync_status(client, populated):
    base, students = populated
    client.put(f"{base}/students/{students[0]['id']}/score",
               json={"term": "midterm", "field": "exam", "value": 60})

    stats = client.get("/statistics").json()
    assert stats == {"count": 2, "average_grade_point": 1.0, "highest_total": 60}

    sync = client.get("/sync").json()
    assert sync["backend"] == "local"
    assert sync["status"] == "loaded"
    assert sync["last_save"] == "written"


def test_changes_reach_local_storage(client, populated, local_store):
    stored = local_store.get("scorebook_data:1234")

    assert stored[0]["name"] == "Mathematics"
    assert len(stored[0]["classes"][0]["students"]) == 2


# === spreadsheet endpoint ===

@pytest.fixture
def endpoint_client(tmp_path):
    database = SQLiteDatabase(os.path.join(str(tmp_path), "sheet.db"))
    return TestClient(SpreadsheetEndpointAPI(SQLDocumentClient(database)).app)


def test_endpoint_read_of_missing_key_is_null(endpoint_client):
    response = endpoint_client.get("/", params={"action": "read", "key": "1234", "t": 1})

    assert response.status_code == 200
    assert response.json() is None


def test_endpoint_write_then_read(endpoint_client):
    response = endpoint_client.post("/", json={"key": "1234", "data": [{"id": "s1"}]})
    assert response.json()["status"] == "ok"

    response = endpoint_client.get("/", params={"action": "read", "key": "1234"})
    assert response.json() == [{"id": "s1"}]


def test_endpoint_rejects_unknown_action(endpoint_client):
    assert endpoint_client.get("/", params={"action": "drop", "key": "1234"}).status_code == 400
