"""Shared fakes for the MQ nodes sync tests."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

import pytest

from mq_nodes_sync.consumers import NodeListConsumer
from mq_nodes_sync.models import StoreEvent, StoreEventKind, StoreResultCode
from mq_nodes_sync.session import CoordinationSession


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@dataclass
class RecordedFetch:
    path: str
    watch_handler: Callable[[StoreEvent], None]
    result_handler: Callable[[StoreResultCode, Sequence[str]], None]


class FakeCoordinationSession(CoordinationSession):
    """In-memory session; tests drive results and watch events by hand.

    ``responses`` are consumed one per fetch and answered immediately,
    which is how a fast store behaves from the caller's point of view.
    """

    def __init__(self, connected: bool = False, connect_on_start: bool = True) -> None:
        self._lock = threading.Lock()
        self._connected = connected
        self._connect_on_start = connect_on_start
        self._listeners = []
        self.fetches: list[RecordedFetch] = []
        self.responses: list[tuple[StoreResultCode, list[str]]] = []
        self.start_calls = 0
        self.stop_calls = 0

    def start(self) -> None:
        self.start_calls += 1
        if self._connect_on_start:
            self.set_connected(True)

    def stop(self) -> None:
        self.stop_calls += 1
        self._connected = False

    def connected(self) -> bool:
        return self._connected

    def set_connected(self, connected: bool) -> None:
        self._connected = connected
        for listener in list(self._listeners):
            listener(connected)

    def add_connection_listener(self, listener) -> None:
        self._listeners.append(listener)

    def fetch_children_with_watch(self, path, watch_handler, result_handler) -> None:
        with self._lock:
            self.fetches.append(RecordedFetch(path, watch_handler, result_handler))
            response = self.responses.pop(0) if self.responses else None
        if response is not None:
            result_handler(response[0], response[1])

    @property
    def fetch_count(self) -> int:
        with self._lock:
            return len(self.fetches)

    def complete(self, index: int, code: StoreResultCode, children: Iterable[str] = ()) -> None:
        self.fetches[index].result_handler(code, list(children))

    def fire(self, index: int, kind: StoreEventKind = StoreEventKind.CHILDREN_CHANGED) -> None:
        fetch = self.fetches[index]
        fetch.watch_handler(StoreEvent(kind=kind, path=fetch.path))


class RecordingConsumer(NodeListConsumer):

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.deliveries: list[list[str]] = []

    def sync_endpoints(self, endpoints: list[str]) -> None:
        with self._lock:
            self.deliveries.append(endpoints)

    @property
    def delivery_count(self) -> int:
        with self._lock:
            return len(self.deliveries)


@pytest.fixture
def session():
    return FakeCoordinationSession()


@pytest.fixture
def consumer():
    return RecordingConsumer()


@pytest.fixture(name="wait_until")
def wait_until_fixture():
    return wait_until


@pytest.fixture
def make_session():
    return FakeCoordinationSession
