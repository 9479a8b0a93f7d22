"""
Generic entity service.

One ``EntityService`` per resource orchestrates requests against whichever
store ``Storage`` reports as active. Reads degrade to the fallback store when
the backend raises; writes surface backend failures as
``BackendUnavailableError``.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel
from pymongo.errors import PyMongoError

from database import Record, RemoteStore, Storage
from errors import BackendUnavailableError, NotFoundError, ValidationError
from logger import log_error, log_info, log_warning


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class EntityKind:
    """What varies between the product and order services."""

    label: str
    collection: str
    create_model: Type[BaseModel]
    update_model: Type[BaseModel]
    samples: Callable[[], List[Record]]
    # Insert the samples into an empty backend collection on first connect
    seed_remote: bool = False
    # Fields forced on every new record regardless of the request body
    initial_fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def noun(self) -> str:
        return self.label.lower()


class EntityService:
    def __init__(self, kind: EntityKind, storage: Optional[Storage] = None):
        self.kind = kind
        self.storage = storage if storage is not None else Storage()

    def _not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.kind.label} not found")

    def _write_failed(self, action: str, exc: Exception, request_id: str):
        log_error(f"Error {action} {self.kind.noun}: {exc}", request_id=request_id)
        return BackendUnavailableError(f"Error {action} {self.kind.noun}")

    # ---- store lifecycle, driven by the reconnection supervisor ----

    def seed_fallback(self) -> bool:
        seeded = self.storage.fallback.seed(self.kind.samples())
        if seeded:
            log_info(f"Seeded fallback {self.kind.collection} with sample data")
        return seeded

    def on_connect(self, remote: RemoteStore) -> None:
        if self.kind.seed_remote:
            try:
                if remote.count() == 0:
                    remote.insert_many(self.kind.samples())
                    log_info(f"Sample {self.kind.collection} initialized")
            except PyMongoError as e:
                log_error(f"Error initializing {self.kind.collection}: {e}")
        try:
            remote.ensure_indexes()
        except PyMongoError as e:
            log_error(f"Error creating indexes on {self.kind.collection}: {e}")

    # ---- reads ----

    def list(self, query: Optional[Record] = None, request_id: str = "N/A") -> List[Record]:
        store = self.storage.active()
        try:
            return store.find(query)
        except PyMongoError as e:
            log_warning(
                f"Error fetching {self.kind.collection}: {e}; serving fallback data",
                request_id=request_id,
            )
            return self.storage.fallback.find(query)

    def get(self, entity_id: str, request_id: str = "N/A") -> Record:
        store = self.storage.active()
        try:
            record = store.find_one(entity_id)
        except PyMongoError as e:
            log_warning(
                f"Error fetching {self.kind.noun} {entity_id}: {e}; checking fallback data",
                request_id=request_id,
            )
            record = self.storage.fallback.find_one(entity_id)
        if record is None:
            raise self._not_found()
        return record

    # ---- writes ----

    def create(self, payload: BaseModel, request_id: str = "N/A") -> Record:
        stamp = now_iso()
        record = {
            "id": str(uuid.uuid4()),
            **payload.model_dump(by_alias=True, exclude_none=True),
            **self.kind.initial_fields,
            "createdAt": stamp,
            "updatedAt": stamp,
        }
        store = self.storage.active()
        try:
            store.insert(record)
        except PyMongoError as e:
            raise self._write_failed("creating", e, request_id)
        log_info(f"Created {self.kind.noun} {record['id']}", request_id=request_id)
        return record

    def update(self, entity_id: str, changes: BaseModel, request_id: str = "N/A") -> Record:
        fields = changes.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
        return self._apply(entity_id, fields, "updating", request_id)

    def _apply(self, entity_id: str, fields: Record, action: str, request_id: str) -> Record:
        store = self.storage.active()
        try:
            if store.find_one(entity_id) is None:
                raise self._not_found()
            updated = store.update(entity_id, {**fields, "updatedAt": now_iso()})
        except PyMongoError as e:
            raise self._write_failed(action, e, request_id)
        # removed between the lookup and the write
        if updated is None:
            raise self._not_found()
        return updated

    def delete(self, entity_id: str, request_id: str = "N/A") -> None:
        store = self.storage.active()
        try:
            if store.find_one(entity_id) is None:
                raise self._not_found()
            deleted = store.delete(entity_id)
        except PyMongoError as e:
            raise self._write_failed("deleting", e, request_id)
        if not deleted:
            raise self._not_found()
        log_info(f"Deleted {self.kind.noun} {entity_id}", request_id=request_id)


class OrderService(EntityService):
    """Adds the order-only operations."""

    def list_by_customer(self, customer_id: str, request_id: str = "N/A") -> List[Record]:
        return self.list({"customerId": customer_id}, request_id=request_id)

    def patch_status(self, entity_id: str, status: Optional[str], request_id: str = "N/A") -> Record:
        # Any status may replace any other; only membership is checked upstream
        self.get(entity_id, request_id=request_id)
        if not status:
            raise ValidationError("Status is required")
        return self._apply(entity_id, {"status": status}, "updating status of", request_id)
