"""
Storage for the catalog and order services.

Two interchangeable stores share one interface:

- ``RemoteStore`` wraps a MongoDB collection through pymongo.
- ``FallbackStore`` keeps records in process memory while MongoDB is
  unreachable. It is never persisted.

``Storage`` decides which one is authoritative. Exactly one store receives
reads and writes at any time; switching happens only through ``attach`` and
``detach`` so the reconnection thread and request threads never race.
"""

import copy
import threading
from typing import Any, Dict, Iterable, List, Optional, Union

from pymongo import MongoClient, ReturnDocument
from pymongo.collection import Collection

from config import ServiceSettings

Record = Dict[str, Any]

# Never expose Mongo's own primary key
PROJECTION = {"_id": 0}


def strip_mongo_id(doc):
    if not doc:
        return doc
    if isinstance(doc, list):
        return [strip_mongo_id(d) for d in doc]
    d = dict(doc)
    d.pop("_id", None)
    return d


class RemoteStore:
    """Records kept in a MongoDB collection, keyed by their ``id`` field."""

    def __init__(self, collection: Collection, client: Optional[MongoClient] = None):
        self.collection = collection
        self.client = client

    def ping(self) -> None:
        self.client.admin.command("ping")

    def ensure_indexes(self) -> None:
        self.collection.create_index("id", unique=True)

    def count(self) -> int:
        return self.collection.count_documents({})

    def find(self, query: Optional[Record] = None) -> List[Record]:
        return [strip_mongo_id(d) for d in self.collection.find(query or {}, PROJECTION)]

    def find_one(self, entity_id: str) -> Optional[Record]:
        return strip_mongo_id(self.collection.find_one({"id": entity_id}, PROJECTION))

    def insert(self, record: Record) -> Record:
        # insert_one adds _id to the document it is given
        self.collection.insert_one(dict(record))
        return record

    def insert_many(self, records: Iterable[Record]) -> None:
        self.collection.insert_many([dict(r) for r in records])

    def update(self, entity_id: str, changes: Record) -> Optional[Record]:
        doc = self.collection.find_one_and_update(
            {"id": entity_id},
            {"$set": changes},
            projection=PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return strip_mongo_id(doc)

    def delete(self, entity_id: str) -> bool:
        return self.collection.delete_one({"id": entity_id}).deleted_count == 1

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


class FallbackStore:
    """An ordered in-memory list of records, scanned linearly by ``id``."""

    def __init__(self):
        self._records: List[Record] = []
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._records)

    def seed(self, records: Iterable[Record]) -> bool:
        """Load ``records`` unless the store already holds data."""
        with self._lock:
            if self._records:
                return False
            self._records = [copy.deepcopy(r) for r in records]
            return True

    def find(self, query: Optional[Record] = None) -> List[Record]:
        query = query or {}
        with self._lock:
            return [
                copy.deepcopy(r)
                for r in self._records
                if all(r.get(k) == v for k, v in query.items())
            ]

    def find_one(self, entity_id: str) -> Optional[Record]:
        with self._lock:
            for r in self._records:
                if r.get("id") == entity_id:
                    return copy.deepcopy(r)
        return None

    def insert(self, record: Record) -> Record:
        with self._lock:
            self._records.append(copy.deepcopy(record))
        return record

    def insert_many(self, records: Iterable[Record]) -> None:
        with self._lock:
            self._records.extend(copy.deepcopy(r) for r in records)

    def update(self, entity_id: str, changes: Record) -> Optional[Record]:
        with self._lock:
            for r in self._records:
                if r.get("id") == entity_id:
                    r.update(copy.deepcopy(changes))
                    return copy.deepcopy(r)
        return None

    def delete(self, entity_id: str) -> bool:
        with self._lock:
            for i, r in enumerate(self._records):
                if r.get("id") == entity_id:
                    del self._records[i]
                    return True
        return False


Store = Union[RemoteStore, FallbackStore]


class Storage:
    """Selects the authoritative store for one collection."""

    def __init__(self, fallback: Optional[FallbackStore] = None):
        self.fallback = fallback if fallback is not None else FallbackStore()
        self._remote: Optional[RemoteStore] = None
        self._lock = threading.RLock()

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._remote is not None

    @property
    def remote(self) -> Optional[RemoteStore]:
        with self._lock:
            return self._remote

    def active(self) -> Store:
        with self._lock:
            return self._remote if self._remote is not None else self.fallback

    def attach(self, remote: RemoteStore) -> None:
        with self._lock:
            self._remote = remote

    def detach(self) -> Optional[RemoteStore]:
        with self._lock:
            remote, self._remote = self._remote, None
            return remote


def connect_remote(settings: ServiceSettings, collection: str) -> RemoteStore:
    """Open a MongoDB client and verify it answers before handing it out."""
    client = MongoClient(
        settings.mongodb_uri,
        serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
        connectTimeoutMS=settings.connect_timeout_ms,
        maxPoolSize=settings.max_pool_size,
    )
    try:
        client.admin.command("ping")
    except Exception:
        client.close()
        raise
    return RemoteStore(client[settings.database_name][collection], client)
