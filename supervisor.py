"""
Background reconnection to MongoDB.

The supervisor starts DISCONNECTED and tries to connect right away. Each
failed attempt seeds the fallback store (only the first one has an effect)
and schedules another try ``retry_interval`` seconds later. Once connected it
stays connected unless ``probe_interval`` is set, in which case the backend is
pinged periodically and a failed ping drops the service back to the fallback
store.
"""

import threading
from typing import Callable, Optional

from pymongo.errors import PyMongoError

from database import RemoteStore
from logger import log_error, log_info, log_warning
from service import EntityService

DISCONNECTED = "DISCONNECTED"
CONNECTED = "CONNECTED"


class ReconnectionSupervisor:
    def __init__(
        self,
        service: EntityService,
        connect: Callable[[], RemoteStore],
        retry_interval: float = 5.0,
        probe_interval: float = 0.0,
    ):
        self.service = service
        self.storage = service.storage
        self._connect = connect
        self.retry_interval = retry_interval
        self.probe_interval = probe_interval
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> str:
        return CONNECTED if self.storage.connected else DISCONNECTED

    def attempt(self) -> bool:
        """Try to connect once. Returns True when the backend is attached."""
        label = self.service.kind.label
        try:
            remote = self._connect()
        except PyMongoError as e:
            log_error(f"MongoDB connection error: {e}")
            log_info(
                f"Using fallback in-memory storage. Retrying connection in {self.retry_interval:g} seconds..."
            )
            self.service.seed_fallback()
            return False
        self.storage.attach(remote)
        log_info(f"{label} Service connected to MongoDB")
        self.service.on_connect(remote)
        return True

    def probe(self) -> bool:
        """Ping the attached backend; detach it if it does not answer."""
        remote = self.storage.remote
        if remote is None:
            return False
        try:
            remote.ping()
        except PyMongoError as e:
            log_warning(f"MongoDB liveness probe failed: {e}; switching to fallback storage")
            self.storage.detach()
            remote.close()
            self.service.seed_fallback()
            return False
        return True

    def run(self) -> None:
        while not self._stopped.is_set():
            if not self.storage.connected:
                if not self.attempt():
                    self._stopped.wait(self.retry_interval)
                continue
            if self.probe_interval <= 0:
                return
            self._stopped.wait(self.probe_interval)
            if not self._stopped.is_set():
                self.probe()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stopped.clear()
        self._thread = threading.Thread(
            target=self.run,
            name=f"{self.service.kind.noun}-reconnect",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        remote = self.storage.detach()
        if remote is not None:
            remote.close()
