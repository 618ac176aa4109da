"""
Shared fixtures.

Storage-backed tests take the `db` fixture, which runs each test twice:

- "memory": FakeDatabase, an in-memory stand-in for the subset of the Motor
  API the application uses (find/sort/limit, find_one, insert/update/delete,
  a $match + $group aggregation and sessions). A transaction snapshots every
  collection on entry and restores it when the body raises. While a
  transaction is open, any operation that does not carry its session fails.
- "mongo": a real database on MONGODB_URI, which must be a replica set for
  transactions. Skipped when MONGODB_URI is unset.

Tests that poke at FakeDatabase internals take `memory_db` instead.
"""
import copy
import os
from datetime import timedelta

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import AsyncClient, ASGITransport
from motor.motor_asyncio import AsyncIOMotorClient

from supply_ledger.core.auth import get_current_session
from supply_ledger.db.mongo import create_indexes, get_db
from supply_ledger.main import app
from supply_ledger.models.customer import CustomerCreate
from supply_ledger.models.entry import EntryCreate
from supply_ledger.repositories.customer_repo import CustomerRepository
from supply_ledger.services.ledger_service import LedgerService

TEST_MONGODB_URI = os.getenv("MONGODB_URI")
TEST_MONGODB_DB = "supply_ledger_test"

_MISSING = object()


# ===== In-memory Motor double =====

class InsertOneResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class UpdateResult:
    def __init__(self, matched_count, modified_count):
        self.matched_count = matched_count
        self.modified_count = modified_count


class DeleteResult:
    def __init__(self, deleted_count):
        self.deleted_count = deleted_count


def _compare(value, op, operand) -> bool:
    if value is _MISSING or value is None:
        return False
    try:
        if op == "$gte":
            return value >= operand
        if op == "$gt":
            return value > operand
        if op == "$lte":
            return value <= operand
        return value < operand
    except TypeError:
        return False


def matches(doc: dict, query: dict) -> bool:
    for key, cond in query.items():
        value = doc.get(key, _MISSING)
        if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
            for op, operand in cond.items():
                if op == "$in":
                    if value is _MISSING or value not in operand:
                        return False
                elif op in ("$gte", "$gt", "$lte", "$lt"):
                    if not _compare(value, op, operand):
                        return False
                else:
                    raise NotImplementedError(op)
        elif value is _MISSING:
            if cond is not None:
                return False
        elif value != cond:
            return False
    return True


def apply_update(doc: dict, update: dict) -> None:
    for op, fields in update.items():
        if op != "$set":
            raise NotImplementedError(op)
        for key, value in fields.items():
            doc[key] = copy.deepcopy(value)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._sort = []
        self._limit = None

    def sort(self, key, direction=1):
        self._sort = key if isinstance(key, list) else [(key, direction)]
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        docs = list(self._docs)
        for key, direction in reversed(self._sort):
            docs.sort(
                key=lambda d: (key in d and d[key] is not None, d.get(key)),
                reverse=direction < 0
            )
        if self._limit:
            docs = docs[:self._limit]
        if length is not None:
            docs = docs[:length]
        return [copy.deepcopy(doc) for doc in docs]


class FakeCollection:
    def __init__(self, name, db):
        self.name = name
        self.docs = []
        self._db = db

    def _check_session(self, session):
        active = self._db.active_session
        if active is not None and session is not active:
            raise AssertionError(f"{self.name}: operation inside a transaction without its session")

    def find(self, filter=None, session=None):
        self._check_session(session)
        return FakeCursor([doc for doc in self.docs if matches(doc, filter or {})])

    async def find_one(self, filter=None, session=None):
        self._check_session(session)
        for doc in self.docs:
            if matches(doc, filter or {}):
                return copy.deepcopy(doc)
        return None

    async def count_documents(self, filter, session=None):
        self._check_session(session)
        return len([doc for doc in self.docs if matches(doc, filter)])

    async def insert_one(self, doc, session=None):
        self._check_session(session)
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", ObjectId())
        self.docs.append(stored)
        return InsertOneResult(stored["_id"])

    async def update_one(self, filter, update, session=None):
        self._check_session(session)
        for doc in self.docs:
            if matches(doc, filter):
                before = copy.deepcopy(doc)
                apply_update(doc, update)
                return UpdateResult(1, int(before != doc))
        return UpdateResult(0, 0)

    async def update_many(self, filter, update, session=None):
        self._check_session(session)
        matched = modified = 0
        for doc in self.docs:
            if matches(doc, filter):
                before = copy.deepcopy(doc)
                apply_update(doc, update)
                matched += 1
                modified += int(before != doc)
        return UpdateResult(matched, modified)

    async def find_one_and_update(self, filter, update, return_document=False, session=None):
        self._check_session(session)
        for doc in self.docs:
            if matches(doc, filter):
                before = copy.deepcopy(doc)
                apply_update(doc, update)
                return copy.deepcopy(doc) if return_document else before
        return None

    async def delete_one(self, filter, session=None):
        self._check_session(session)
        for index, doc in enumerate(self.docs):
            if matches(doc, filter):
                del self.docs[index]
                return DeleteResult(1)
        return DeleteResult(0)

    async def delete_many(self, filter, session=None):
        self._check_session(session)
        keep = [doc for doc in self.docs if not matches(doc, filter)]
        deleted = len(self.docs) - len(keep)
        self.docs[:] = keep
        return DeleteResult(deleted)

    def aggregate(self, pipeline, session=None):
        self._check_session(session)
        docs = list(self.docs)
        for stage in pipeline:
            if "$match" in stage:
                docs = [doc for doc in docs if matches(doc, stage["$match"])]
            elif "$group" in stage:
                group = stage["$group"]
                if group["_id"] is not None:
                    raise NotImplementedError("grouping by key")
                if not docs:
                    continue
                row = {"_id": None}
                for out_key, expr in group.items():
                    if out_key == "_id":
                        continue
                    field = expr["$sum"].lstrip("$")
                    row[out_key] = sum(doc[field] for doc in docs if _is_number(doc.get(field)))
                docs = [row]
            else:
                raise NotImplementedError(stage)
        return FakeCursor(docs)

    async def create_index(self, keys, **kwargs):
        return "index"


class FakeTransaction:
    def __init__(self, session):
        self._session = session
        self._db = session.db
        self._snapshot = None

    async def __aenter__(self):
        self._snapshot = {
            name: copy.deepcopy(collection.docs)
            for name, collection in self._db.collections.items()
        }
        self._db.active_session = self._session
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self._db.active_session = None
        if exc_type is not None:
            for name, collection in self._db.collections.items():
                collection.docs[:] = self._snapshot.get(name, [])
            self._db.aborted += 1
        else:
            self._db.committed += 1
        return False


class FakeSession:
    def __init__(self, db):
        self.db = db

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    def start_transaction(self):
        return FakeTransaction(self)


class FakeClient:
    def __init__(self, db):
        self._db = db

    async def start_session(self):
        return FakeSession(self._db)


class FakeDatabase:
    def __init__(self):
        self.collections = {}
        self.committed = 0
        self.aborted = 0
        self.active_session = None
        self.client = FakeClient(self)

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name, self)
        return self.collections[name]

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]


# ===== Fixtures =====

@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest_asyncio.fixture(params=["memory", "mongo"])
async def db(request, fake_db):
    """Storage backend for the test: the in-memory double or a real MongoDB."""
    if request.param == "memory":
        yield fake_db
    else:
        if not TEST_MONGODB_URI:
            pytest.skip("MONGODB_URI not set")
        client = AsyncIOMotorClient(TEST_MONGODB_URI, tz_aware=True)
        await client.drop_database(TEST_MONGODB_DB)
        database = client[TEST_MONGODB_DB]
        await create_indexes(database)

        yield database

        await client.drop_database(TEST_MONGODB_DB)
        client.close()


@pytest.fixture
def memory_db(db) -> FakeDatabase:
    """The in-memory backend only; skipped on MongoDB."""
    if not isinstance(db, FakeDatabase):
        pytest.skip("inspects the in-memory double")
    return db


@pytest.fixture
def ledger(db) -> LedgerService:
    return LedgerService(db)


@pytest_asyncio.fixture
async def customer(db):
    """A customer with zero balances."""
    repo = CustomerRepository(db)
    return await repo.create_customer(
        CustomerCreate(name="Ramesh Patil", mobile="9876543210", village="Shirpur")
    )


@pytest_asyncio.fixture
async def other_customer(db):
    repo = CustomerRepository(db)
    return await repo.create_customer(
        CustomerCreate(name="Sunita Jadhav", mobile="9123456780", village="Dhule")
    )


@pytest.fixture
def override_db(db):
    """Point the API at the test database and skip the password gate."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_session] = lambda: "operator"
    yield db
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(override_db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


@pytest.fixture
def add_entry(ledger):
    """Factory: record a session of `hours` starting at `start` through the ledger."""
    async def _add(customer, start, hours, crop_type="Rice"):
        return await ledger.add_entry(EntryCreate(
            customer_id=str(customer.id),
            start_at=start,
            end_at=start + timedelta(hours=hours),
            crop_type=crop_type
        ))
    return _add
