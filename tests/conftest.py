"""Shared test fixtures for the catalog and order services."""

import copy
import itertools
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import AutoReconnect, OperationFailure

from database import RemoteStore, Storage
from main import create_app
from schemas import ORDER, PRODUCT
from service import EntityService, OrderService


class FakeCollection:
    """Just enough of pymongo's Collection for RemoteStore.

    Set ``broken`` to make every call raise like a dropped connection.
    """

    def __init__(self):
        self.docs = []
        self.indexes = []
        self.broken = False
        self.indexes_denied = False
        self._ids = itertools.count(1)

    def _check(self):
        if self.broken:
            raise AutoReconnect("connection lost")

    @staticmethod
    def _matches(doc, filter):
        return all(doc.get(k) == v for k, v in (filter or {}).items())

    @staticmethod
    def _project(doc, projection):
        doc = copy.deepcopy(doc)
        if projection and projection.get("_id") == 0:
            doc.pop("_id", None)
        return doc

    def create_index(self, key, unique=False):
        self._check()
        if self.indexes_denied:
            raise OperationFailure("not authorized to execute command createIndexes", code=13)
        self.indexes.append((key, unique))
        return f"{key}_1"

    def count_documents(self, filter):
        self._check()
        return sum(1 for d in self.docs if self._matches(d, filter))

    def find(self, filter=None, projection=None):
        self._check()
        return [self._project(d, projection) for d in self.docs if self._matches(d, filter)]

    def find_one(self, filter=None, projection=None):
        self._check()
        for d in self.docs:
            if self._matches(d, filter):
                return self._project(d, projection)
        return None

    def insert_one(self, doc):
        self._check()
        doc["_id"] = next(self._ids)
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def insert_many(self, docs):
        self._check()
        for doc in docs:
            self.insert_one(doc)

    def find_one_and_update(self, filter, update, projection=None, return_document=None):
        self._check()
        for d in self.docs:
            if self._matches(d, filter):
                d.update(copy.deepcopy(update["$set"]))
                return self._project(d, projection)
        return None

    def delete_one(self, filter):
        self._check()
        for i, d in enumerate(self.docs):
            if self._matches(d, filter):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeClient:
    def __init__(self, collection: FakeCollection):
        self.collection = collection
        self.closed = False
        self.admin = SimpleNamespace(command=self._command)

    def _command(self, name):
        self.collection._check()
        return {"ok": 1.0}

    def close(self):
        self.closed = True


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def remote(collection):
    return RemoteStore(collection, FakeClient(collection))


@pytest.fixture
def product_service():
    """Product service with an empty, disconnected storage."""
    return EntityService(PRODUCT, Storage())


@pytest.fixture
def order_service():
    return OrderService(ORDER, Storage())


@pytest.fixture
def product_client(product_service):
    app = create_app("product", service=product_service, supervise=False)
    return TestClient(app)


@pytest.fixture
def order_client(order_service):
    app = create_app("order", service=order_service, supervise=False)
    return TestClient(app)
