# tests/test_sync_store.py

import asyncio
import os

from scorebook.core.entities import subjects_from_payload, subjects_to_payload
from scorebook.core.enums import StoreStatus, SyncResultStatus
from scorebook.core.session import SessionContext
from scorebook.persistence import (
    DocumentStoreBackend, SpreadsheetEndpointBackend, SQLDocumentClient, SQLiteDatabase
)
from scorebook.services.sync_store import LOAD_ERROR_MESSAGE, SyncStore
from tests.conftest import FakeSession, RecordingBackend, run


def test_save_is_visible_before_write_settles(session):
    backend = RecordingBackend()

    async def scenario():
        store = SyncStore(backend, session, [])
        await store.load()
        backend.gate = asyncio.Event()

        pending = store.save(["changed"])

        assert store.value == ["changed"]
        assert store.is_saving
        assert not pending.done()

        backend.gate.set()
        result = await pending
        assert result.status is SyncResultStatus.WRITTEN
        assert not store.is_saving

    run(scenario())
    assert backend.records["1234"] == ["changed"]


def test_no_durable_write_before_first_load(session):
    backend = RecordingBackend()

    async def scenario():
        store = SyncStore(backend, session, [])
        result = await store.save(["early"])
        return store, result

    store, result = run(scenario())

    assert result.status is SyncResultStatus.SKIPPED_NOT_LOADED
    assert store.value == ["early"]
    assert backend.saves == []


def test_document_store_persists_initial_value_on_absent_record(session):
    backend = RecordingBackend(persists_initial_on_absent=True)

    async def scenario():
        store = SyncStore(backend, session, ["seed"])
        return store, await store.load()

    store, result = run(scenario())

    assert result.status is SyncResultStatus.NOT_FOUND
    assert backend.saves == [("1234", ["seed"])]
    assert store.value == ["seed"]
    assert store.status is StoreStatus.LOADED


def test_endpoint_style_backend_does_not_write_on_absent_record(session):
    backend = RecordingBackend(persists_initial_on_absent=False)

    async def scenario():
        store = SyncStore(backend, session, ["seed"])
        return store, await store.load()

    store, result = run(scenario())

    assert result.status is SyncResultStatus.NOT_FOUND
    assert backend.saves == []
    assert store.value == ["seed"]


def test_load_replaces_value_with_stored_record(session):
    backend = RecordingBackend(records={"1234": ["stored"]})

    async def scenario():
        store = SyncStore(backend, session, ["seed"])
        return store, await store.load()

    store, result = run(scenario())

    assert result.status is SyncResultStatus.LOADED
    assert store.value == ["stored"]
    assert store.error is None


def test_load_failure_sets_error_and_keeps_value(session):
    backend = RecordingBackend(fail_load=True)

    async def scenario():
        store = SyncStore(backend, session, ["seed"])
        result = await store.load()
        write = await store.save(["after"])
        return store, result, write

    store, result, write = run(scenario())

    assert not result.success
    assert store.status is StoreStatus.LOAD_ERROR
    assert store.error == LOAD_ERROR_MESSAGE
    assert store.has_loaded
    assert write.status is SyncResultStatus.WRITTEN


def test_failed_save_is_not_rolled_back(session):
    backend = RecordingBackend(fail_save=True)

    async def scenario():
        store = SyncStore(backend, session, ["seed"])
        await store.load()
        result = await store.save(["kept"])
        return store, result

    store, result = run(scenario())

    assert result.status is SyncResultStatus.FAILED
    assert isinstance(result.error, Exception)
    assert store.value == ["kept"]
    assert store.last_save_result is result
    assert not store.is_saving


def test_unconfigured_backend_is_a_no_op(session):
    backend = RecordingBackend(configured=False)

    async def scenario():
        store = SyncStore(backend, session, [])
        loaded = await store.load()
        saved = await store.save(["local only"])
        return store, loaded, saved

    store, loaded, saved = run(scenario())

    assert loaded.status is SyncResultStatus.SKIPPED_UNCONFIGURED
    assert saved.status is SyncResultStatus.SKIPPED_UNCONFIGURED
    assert store.value == ["local only"]
    assert backend.loads == []
    assert backend.saves == []


def test_closed_session_disables_sync():
    backend = RecordingBackend()
    session = SessionContext("1234")
    session.close()

    async def scenario():
        store = SyncStore(backend, session, [])
        return await store.load()

    assert run(scenario()).status is SyncResultStatus.SKIPPED_UNCONFIGURED
    assert backend.loads == []


def test_saving_indicator_is_held_after_write(session):
    backend = RecordingBackend()

    async def scenario():
        store = SyncStore(backend, session, [], saving_indicator_hold=0.05)
        await store.load()
        await store.save(["x"])
        held = store.is_saving
        await asyncio.sleep(0.1)
        return held, store.is_saving

    held, after = run(scenario())

    assert held
    assert not after


def test_wait_for_pending_collects_every_write(session):
    backend = RecordingBackend()

    async def scenario():
        store = SyncStore(backend, session, [])
        await store.load()
        store.save(["first"])
        store.save(["second"])
        assert store.pending_writes == 2
        results = await store.wait_for_pending()
        return store, results

    store, results = run(scenario())

    assert [r.status for r in results] == [SyncResultStatus.WRITTEN] * 2
    assert store.pending_writes == 0
    assert [value for _, value in backend.saves] == [["first"], ["second"]]


def test_encode_and_decode_subject_tree(session, sample_subject):
    backend = RecordingBackend()

    async def scenario():
        store = SyncStore(backend, session, [], encode=subjects_to_payload, decode=subjects_from_payload)
        await store.load()
        await store.save([sample_subject])

        reloaded = SyncStore(backend, session, [], encode=subjects_to_payload, decode=subjects_from_payload)
        await reloaded.load()
        return reloaded

    reloaded = run(scenario())

    assert backend.records["1234"][0]["name"] == "Mathematics"
    assert reloaded.value[0].id == "s1"
    assert reloaded.value[0].classes[0].students[0].name == "Somchai Dee"


def test_describe_reports_flags(session):
    store = SyncStore(RecordingBackend(), session, [])

    assert store.describe() == {
        "backend": "local",
        "status": "uninitialized",
        "loading": False,
        "saving": False,
        "error": None,
        "pending_writes": 0,
    }


class CountingDocumentClient(SQLDocumentClient):
    """SQLite document client that records each write."""

    def __init__(self, database):
        super().__init__(database)
        self.writes = []

    def write_one(self, collection, key, value):
        self.writes.append((collection, key, value))
        super().write_one(collection, key, value)


def test_sqlite_document_store_writes_initial_value_once(session, tmp_path):
    client = CountingDocumentClient(SQLiteDatabase(os.path.join(str(tmp_path), "documents.db")))
    backend = DocumentStoreBackend(client)

    async def scenario():
        store = SyncStore(backend, session, ["seed"], saving_indicator_hold=0)
        loaded = await store.load()
        reloaded = await SyncStore(backend, session, ["other seed"]).load()
        return loaded, reloaded

    loaded, reloaded = run(scenario())

    assert loaded.status is SyncResultStatus.NOT_FOUND
    assert reloaded.status is SyncResultStatus.LOADED
    assert client.writes == [("gradebooks", "1234", ["seed"])]


def test_spreadsheet_endpoint_writes_nothing_until_first_save(session):
    http = FakeSession()
    backend = SpreadsheetEndpointBackend("https://sheet.example/exec", session=http)

    async def scenario():
        store = SyncStore(backend, session, ["seed"], saving_indicator_hold=0)
        loaded = await store.load()
        posts_after_load = len(http.posts)
        saved = await store.save(["changed"])
        return store, loaded, posts_after_load, saved

    store, loaded, posts_after_load, saved = run(scenario())

    assert not SpreadsheetEndpointBackend.persists_initial_on_absent
    assert loaded.status is SyncResultStatus.NOT_FOUND
    assert posts_after_load == 0
    assert saved.status is SyncResultStatus.WRITTEN
    assert [post["json"] for post in http.posts] == [{"key": "1234", "data": ["changed"]}]
    assert store.value == ["changed"]


def test_save_from_synchronous_code_writes_inline(session):
    backend = RecordingBackend()
    store = SyncStore(backend, session, [], saving_indicator_hold=0.5)
    run(store.load())

    future = store.save(["x"])

    assert future.done()
    assert future.result().status is SyncResultStatus.WRITTEN
    assert store.value == ["x"]
    assert backend.records["1234"] == ["x"]
    assert not store.is_saving


def test_skipped_save_from_synchronous_code(session):
    backend = RecordingBackend()
    store = SyncStore(backend, session, [])

    future = store.save(["x"])

    assert future.result().status is SyncResultStatus.SKIPPED_NOT_LOADED
    assert store.value == ["x"]
    assert backend.saves == []
