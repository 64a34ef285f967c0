# tests/test_backends.py

import os

import pytest
import requests

from scorebook.core.enums import BackendType
from scorebook.core.exceptions import ConfigurationError, NetworkError, PersistenceError
from scorebook.persistence import (
    BackendFactory, DatabaseFactory, DatabaseManager, DocumentStoreBackend, LocalBackend,
    SpreadsheetEndpointBackend, SQLDocumentClient, SQLiteDatabase
)
from tests.conftest import FakeResponse, FakeSession, run


@pytest.fixture
def sqlite_database(tmp_path):
    return SQLiteDatabase(os.path.join(str(tmp_path), "documents.db"))


# === spreadsheet endpoint ===

def test_endpoint_read_sends_action_key_and_cache_buster():
    session = FakeSession(FakeResponse(payload=[{"id": "s1"}]))
    backend = SpreadsheetEndpointBackend("https://sheet.example/exec", session=session)

    result = run(backend.load("1234"))

    assert result.found
    assert result.value == [{"id": "s1"}]
    params = session.gets[0]["params"]
    assert session.gets[0]["url"] == "https://sheet.example/exec"
    assert params["action"] == "read"
    assert params["key"] == "1234"
    assert isinstance(params["t"], int)


def test_endpoint_null_means_absent():
    backend = SpreadsheetEndpointBackend("https://sheet.example/exec", session=FakeSession())

    result = run(backend.load("1234"))

    assert not result.found
    assert result.value is None


def test_endpoint_empty_list_is_a_record():
    backend = SpreadsheetEndpointBackend("https://sheet.example/exec",
                                         session=FakeSession(FakeResponse(payload=[])))

    assert run(backend.load("1234")).found


def test_endpoint_http_error_raises():
    backend = SpreadsheetEndpointBackend("https://sheet.example/exec",
                                         session=FakeSession(FakeResponse(status_code=500)))

    with pytest.raises(NetworkError):
        run(backend.load("1234"))


def test_endpoint_invalid_json_raises():
    backend = SpreadsheetEndpointBackend("https://sheet.example/exec",
                                         session=FakeSession(FakeResponse(invalid_json=True)))

    with pytest.raises(NetworkError):
        run(backend.load("1234"))


def test_endpoint_write_posts_key_and_data():
    session = FakeSession()
    backend = SpreadsheetEndpointBackend("https://sheet.example/exec", session=session, timeout=3)

    run(backend.save("1234", [{"id": "s1"}]))

    assert session.posts == [{
        "url": "https://sheet.example/exec",
        "json": {"key": "1234", "data": [{"id": "s1"}]},
        "timeout": 3,
    }]


def test_endpoint_write_transport_failure_raises():
    class BrokenSession(FakeSession):
        def post(self, url, json=None, timeout=None):
            raise requests.exceptions.ConnectionError("offline")

    backend = SpreadsheetEndpointBackend("https://sheet.example/exec", session=BrokenSession())

    with pytest.raises(NetworkError):
        run(backend.save("1234", []))


def test_endpoint_without_url_is_unconfigured():
    assert not SpreadsheetEndpointBackend(None, session=FakeSession()).is_configured
    assert not SpreadsheetEndpointBackend("", session=FakeSession()).is_configured


# === document store ===

def test_document_client_round_trip(sqlite_database):
    client = SQLDocumentClient(sqlite_database)

    assert client.read_one("gradebooks", "1234") is None

    client.write_one("gradebooks", "1234", [{"id": "s1"}])
    client.write_one("gradebooks", "1234", [{"id": "s2"}])

    assert client.read_one("gradebooks", "1234") == [{"id": "s2"}]
    assert client.read_one("other", "1234") is None
    assert client.last_updated("gradebooks", "1234") is not None


class DecodedJsonDatabase(DatabaseManager):
    """Driver stand-in that returns the data column already decoded, like JSONB."""

    json_as_text = False

    def __init__(self, rows):
        self.rows = rows

    def execute_query(self, query, params=None):
        return self.rows

    def execute_update(self, query, params=None):
        return 1

    def table_exists(self, table_name):
        return True


def test_document_client_keeps_decoded_json_string():
    client = SQLDocumentClient(DecodedJsonDatabase([{"data": "[1, 2]"}]))

    assert client.read_one("gradebooks", "1234") == "[1, 2]"


def test_document_client_round_trips_json_string_on_sqlite(sqlite_database):
    client = SQLDocumentClient(sqlite_database)

    client.write_one("gradebooks", "1234", "[1, 2]")

    assert client.read_one("gradebooks", "1234") == "[1, 2]"


def test_document_backend_reports_absent_then_found(sqlite_database):
    backend = DocumentStoreBackend(SQLDocumentClient(sqlite_database))

    assert not run(backend.load("1234")).found
    run(backend.save("1234", []))
    result = run(backend.load("1234"))

    assert result.found
    assert result.value == []
    assert backend.persists_initial_on_absent


def test_sqlite_documents_table_exists(sqlite_database):
    assert sqlite_database.table_exists("documents")
    assert not sqlite_database.table_exists("missing")


# === local ===

def test_local_backend_namespaces_keys(local_store):
    backend = LocalBackend(local_store, namespace="scorebook_data")

    assert not run(backend.load("1234")).found
    run(backend.save("1234", [{"id": "s1"}]))

    assert run(backend.load("1234")).value == [{"id": "s1"}]
    assert local_store.contains("scorebook_data:1234")
    assert backend.saving_indicator_hold == 0.6


def test_local_backend_corrupt_record(local_store):
    local_store.set_raw("scorebook_data:1234", "{broken")

    with pytest.raises(PersistenceError):
        run(LocalBackend(local_store).load("1234"))


def test_local_store_delete(local_store):
    local_store.set("pin", "1234")

    assert local_store.delete("pin")
    assert not local_store.delete("pin")
    assert local_store.get("pin", "none") == "none"


# === factories ===

def test_backend_factory(local_store):
    backend = BackendFactory.create_backend("LOCAL", store=local_store)

    assert backend.backend_type is BackendType.LOCAL
    assert isinstance(BackendFactory.create_backend(BackendType.ENDPOINT, endpoint_url=None),
                      SpreadsheetEndpointBackend)


def test_backend_factory_rejects_unknown_type():
    with pytest.raises(ConfigurationError):
        BackendFactory.create_backend("firestore")


def test_database_factory_rejects_unknown_type():
    with pytest.raises(ConfigurationError):
        DatabaseFactory.create_database("mongodb")
