import logging
import threading
from .node_list_consumer import NodeListConsumer


class SnapshotNodeListConsumer(NodeListConsumer):
    """Keeps the most recently delivered endpoint list for readers on other threads."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.Lock()
        self._endpoints: list[str] = []
        self._sync_count: int = 0

    @property
    def sync_count(self) -> int:
        with self._lock:
            return self._sync_count

    def sync_endpoints(self, endpoints: list[str]) -> None:
        with self._lock:
            self._endpoints = endpoints
            self._sync_count += 1
        self._logger.info("MQ endpoints synced: %s", endpoints)

    def get_endpoints(self) -> list[str]:
        with self._lock:
            return list(self._endpoints)
