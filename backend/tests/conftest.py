"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  AJK CRM - Shared test fixtures                                              ║
║                                                                              ║
║  In-memory stand-in for the Motor database (only the calls the app uses),   ║
║  a recording email service, and an app wired with a fixed clock.            ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import copy
import itertools
import os
import sys
import uuid
from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

# server.py builds its module-level app from the environment on import
os.environ.setdefault("MONGO_URL", "mongodb://localhost:27017")
os.environ.setdefault("ADMIN_USER", "admin")
os.environ.setdefault("ADMIN_PASS", "secret-pass")
os.environ.setdefault("SENDGRID_API_KEY", "SG.test")

from config import FixedClock, Settings  # noqa: E402
from server import create_app, wire_services  # noqa: E402

TODAY = date(2025, 6, 10)
ADMIN_USER = "admin"
ADMIN_PASS = "secret-pass"


# ==================== FAKE MONGO ====================

def _match_condition(value, condition) -> bool:
    if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
        for op, operand in condition.items():
            if op == "$in":
                if value not in operand:
                    return False
            elif op == "$ne":
                if value == operand:
                    return False
            elif value is None:
                return False
            elif op == "$gt" and not value > operand:
                return False
            elif op == "$gte" and not value >= operand:
                return False
            elif op == "$lt" and not value < operand:
                return False
            elif op == "$lte" and not value <= operand:
                return False
        return True
    return value == condition


def _matches(doc: dict, query: dict) -> bool:
    return all(_match_condition(doc.get(key), cond) for key, cond in (query or {}).items())


def _project(doc: dict, projection) -> dict:
    out = copy.deepcopy(doc)
    if projection and projection.get("_id") == 0:
        out.pop("_id", None)
    return out


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._skip = 0
        self._limit = None

    def sort(self, key, direction=1):
        present = [d for d in self._docs if d.get(key) is not None]
        missing = [d for d in self._docs if d.get(key) is None]
        present.sort(key=lambda d: d[key], reverse=direction == -1)
        self._docs = present + missing
        return self

    def skip(self, n):
        self._skip = n
        return self

    def limit(self, n):
        self._limit = n
        return self

    async def to_list(self, length=None):
        docs = self._docs[self._skip:]
        for bound in (self._limit, length):
            if bound:
                docs = docs[:bound]
        return docs


class FakeCollection:
    """Subset of AsyncIOMotorCollection backed by a list of dicts"""

    _ids = itertools.count(1)

    def __init__(self, name):
        self.name = name
        self.docs = []
        self.update_calls = []
        self.fail_updates_for = set()

    async def create_index(self, *args, **kwargs):
        return None

    async def insert_one(self, doc):
        # Motor adds _id to the caller's dict
        doc["_id"] = next(self._ids)
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, query=None, projection=None):
        return FakeCursor([_project(d, projection) for d in self.docs if _matches(d, query)])

    async def find_one(self, query=None, projection=None):
        for doc in self.docs:
            if _matches(doc, query):
                return _project(doc, projection)
        return None

    async def find_one_and_update(self, query, update, projection=None, return_document=False):
        self.update_calls.append((copy.deepcopy(query), copy.deepcopy(update)))
        if query.get("id") in self.fail_updates_for:
            raise RuntimeError("write failed")
        for doc in self.docs:
            if _matches(doc, query):
                before = _project(doc, projection)
                doc.update(copy.deepcopy(update.get("$set", {})))
                return _project(doc, projection) if return_document else before
        return None

    async def delete_one(self, query):
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def count_documents(self, query):
        return sum(1 for d in self.docs if _matches(d, query))


class FakeDB:
    def __init__(self):
        self._collections = {}

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]


# ==================== FAKE EMAIL ====================

class FakeEmailService:
    """Records what would have been sent; ``result`` drives success"""

    def __init__(self, result=True):
        self.result = result
        self.reminders = []
        self.digests = []

    def send_reminder(self, customer, language="en", message=None):
        self.reminders.append((customer, language, message))
        return self.result

    def send_admin_digest(self, customers, today, language="en"):
        self.digests.append((list(customers), today))
        return self.result


# ==================== HELPERS ====================

def make_settings(**overrides) -> Settings:
    values = dict(
        mongo_url="mongodb://localhost:27017",
        admin_user=ADMIN_USER,
        admin_pass=ADMIN_PASS,
        sendgrid_api_key="SG.test",
    )
    values.update(overrides)
    return Settings(**values)


def customer_doc(**overrides) -> dict:
    """Stored customer document (camelCase keys)"""
    doc = {
        "id": str(uuid.uuid4()),
        "name": "Anna Schmidt",
        "email": "anna@example.com",
        "address": "Hauptstraße 1, Berlin",
        "notes": None,
        "visitTime": "09:00",
        "price": 80.0,
        "priceType": "Fixed",
        "recurring": "Weekly",
        "workStatus": "Pending",
        "paymentStatus": "Pending",
        "nextVisit": TODAY.isoformat(),
        "lastPayment": None,
        "createdAt": "2025-01-01T00:00:00+00:00",
        "updatedAt": "2025-01-01T00:00:00+00:00",
    }
    doc.update(overrides)
    return doc


# ==================== FIXTURES ====================

@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def db():
    return FakeDB()


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def app(settings, db, email_service):
    application = create_app(settings)
    wire_services(application, settings, db, email_service=email_service, clock=FixedClock(TODAY))
    return application


@pytest.fixture
def anon_client(app):
    # No context manager: startup (real Mongo, scheduler) is not run
    return TestClient(app)


@pytest.fixture
def client(app):
    c = TestClient(app)
    r = c.post("/api/auth/login", json={"username": ADMIN_USER, "password": ADMIN_PASS})
    assert r.status_code == 200
    return c
