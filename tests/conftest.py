from datetime import date, datetime, timedelta
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient

from medtrack.models import Medication
from medtrack.service.alerts import AlertDispatcher
from medtrack.service.session import AdherenceSession

TODAY = date(2026, 10, 19)


class FixedClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, hhmm: str, on: date = TODAY):
        hours, minutes = (int(p) for p in hhmm.split(":"))
        self.now = datetime(on.year, on.month, on.day, hours, minutes)

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def make_med(**overrides) -> Medication:
    data = {
        "name": "Metformin",
        "dose": 1,
        "schedules": ["08:00", "20:00"],
        "start_date": TODAY,
        "stock": 10,
    }
    data.update(overrides)
    return Medication(**data)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 10, 19, 12, 0))


@pytest.fixture
def session(clock):
    return AdherenceSession(clock=clock)


# In-memory stand-in for the motor database


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    async def to_list(self, length=None):
        return list(self._docs)


class FakeCollection:
    def __init__(self):
        self.docs = []

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(k) == v for k, v in query.items())

    def find(self, query=None):
        return FakeCursor([dict(d) for d in self.docs if self._matches(d, query or {})])

    async def replace_one(self, query, doc, upsert=False):
        for i, existing in enumerate(self.docs):
            if self._matches(existing, query):
                self.docs[i] = dict(doc)
                return SimpleNamespace(modified_count=1)
        if upsert:
            self.docs.append(dict(doc))
        return SimpleNamespace(modified_count=0)

    async def insert_many(self, docs):
        self.docs.extend(dict(d) for d in docs)
        return SimpleNamespace(inserted_ids=[d.get("id") for d in docs])

    async def delete_one(self, query):
        for i, existing in enumerate(self.docs):
            if self._matches(existing, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, query):
        before = len(self.docs)
        self.docs = [d for d in self.docs if not self._matches(d, query)]
        return SimpleNamespace(deleted_count=before - len(self.docs))


class FakeDB(dict):
    def __missing__(self, name):
        coll = self[name] = FakeCollection()
        return coll


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeDB()
    monkeypatch.setattr("medtrack.service.crud_sync.db", db)
    return db


@pytest.fixture
def delivered():
    """Alert payloads received by the mocked delivery service."""
    return []


@pytest.fixture
def dispatcher(delivered):
    def handler(request: httpx.Request) -> httpx.Response:
        delivered.append(request)
        return httpx.Response(202, json={"queued": True})

    return AlertDispatcher(base_url="http://alerts.test", transport=httpx.MockTransport(handler))


@pytest.fixture
def client(session, dispatcher, fake_db):
    from medtrack.main import app

    app.state.session = session
    app.state.dispatcher = dispatcher
    return TestClient(app)
