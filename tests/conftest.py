# tests/conftest.py

import asyncio
import os

import pytest

from scorebook.core.entities import (
    ClassSection, MasterRosterEntry, ScoreComponents, Student, Subject
)
from scorebook.core.enums import BackendType
from scorebook.core.exceptions import NetworkError
from scorebook.core.interfaces import LoadResult, StorageBackend
from scorebook.core.roster import MasterRoster
from scorebook.core.session import SessionContext
from scorebook.persistence import LocalKeyValueStore


class RecordingBackend(StorageBackend):
    """In-memory backend that records every call."""

    def __init__(self, records=None, persists_initial_on_absent=False,
                 fail_load=False, fail_save=False, configured=True):
        self.records = dict(records or {})
        self.persists_initial_on_absent = persists_initial_on_absent
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.configured = configured
        self.loads = []
        self.saves = []
        self.gate = None

    @property
    def backend_type(self):
        return BackendType.LOCAL

    @property
    def is_configured(self):
        return self.configured

    async def load(self, key):
        self.loads.append(key)
        if self.fail_load:
            raise NetworkError("load refused")
        if key in self.records:
            return LoadResult(self.records[key], True)
        return LoadResult(None, False)

    async def save(self, key, value):
        self.saves.append((key, value))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_save:
            raise NetworkError("save refused")
        self.records[key] = value


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    """Stand-in for requests.Session that records requests."""

    def __init__(self, response=None):
        self.response = response or FakeResponse(payload=None)
        self.gets = []
        self.posts = []

    def get(self, url, params=None, timeout=None):
        self.gets.append({"url": url, "params": params, "timeout": timeout})
        return self.response

    def post(self, url, json=None, timeout=None):
        self.posts.append({"url": url, "json": json, "timeout": timeout})
        return FakeResponse(status_code=302)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def master_roster():
    return MasterRoster([
        MasterRosterEntry("M1", "Somchai Dee", "3/1"),
        MasterRosterEntry("M2", "Suda Jaidee", "3/1"),
        MasterRosterEntry("M3", "Preecha Kaew", "3/2"),
        MasterRosterEntry("M4", "Malee Suk", "3/2"),
    ])


@pytest.fixture
def sample_student():
    return Student(
        name="Somchai Dee",
        no="1",
        student_id="M1",
        master_id="M1",
        midterm=ScoreComponents(10, 10, 10, 20),
        final=ScoreComponents(5, 5, 0, 20),
        entity_id="st1",
    )


@pytest.fixture
def sample_subject(sample_student):
    section = ClassSection("3/1", [sample_student], entity_id="c1")
    return Subject("Mathematics", "MA101", [section], entity_id="s1")


@pytest.fixture
def session():
    return SessionContext("1234")


@pytest.fixture
def recording_backend():
    return RecordingBackend()


@pytest.fixture
def local_store(tmp_path):
    return LocalKeyValueStore(os.path.join(str(tmp_path), "local.json"))
