"""Kazoo-backed coordination session.

Wraps a :class:`kazoo.client.KazooClient`.  Watched fetches use
``get_children_async(path, watch=...)`` so the read and the watch are a
single ZooKeeper request.  Kazoo delivers completions and watch events
on its own callback threads; both are translated here into
:class:`StoreResultCode` / :class:`StoreEvent` values before they reach
the handlers.
"""

from __future__ import annotations

import logging
import threading
from typing import Sequence

from kazoo.client import KazooClient
from kazoo.exceptions import ConnectionLoss, SessionExpiredError
from kazoo.interfaces import IAsyncResult
from kazoo.protocol.states import EventType, KazooState, WatchedEvent

from ..models import StoreEvent, StoreEventKind, StoreResultCode
from .coordination_session import (
    ConnectionListener,
    CoordinationSession,
    ResultHandler,
    WatchHandler,
)

logger = logging.getLogger(__name__)

_EVENT_KINDS: dict[str, StoreEventKind] = {
    EventType.CHILD: StoreEventKind.CHILDREN_CHANGED,
    EventType.CREATED: StoreEventKind.NODE_CREATED,
    EventType.DELETED: StoreEventKind.NODE_DELETED,
    EventType.CHANGED: StoreEventKind.DATA_CHANGED,
    EventType.NONE: StoreEventKind.SESSION,
}


def result_code_for(exc: BaseException) -> StoreResultCode:
    """Map an exception raised by a kazoo request to a store result code."""
    if isinstance(exc, ConnectionLoss):
        return StoreResultCode.CONNECTION_LOSS
    if isinstance(exc, SessionExpiredError):
        return StoreResultCode.SESSION_EXPIRED
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return StoreResultCode.from_code(code)
    return StoreResultCode.SYSTEM_ERROR


def store_event_for(event: WatchedEvent) -> StoreEvent:
    """Translate a kazoo watch event."""
    return StoreEvent(
        kind=_EVENT_KINDS.get(event.type, StoreEventKind.SESSION),
        path=event.path,
    )


class KazooCoordinationSession(CoordinationSession):
    """ZooKeeper session managed by kazoo.

    Parameters:
        hosts: Comma-separated ``host:port`` list of the ensemble.
        session_timeout: ZooKeeper session timeout (seconds).
        auth_data: Optional ``(scheme, credential)`` pairs, e.g.
            ``[("digest", "user:secret")]``.
        read_only: Allow connecting to read-only servers.
        client: Pre-built client; mainly for tests.
    """

    def __init__(
        self,
        hosts: str = "localhost:2181",
        session_timeout: float = 10.0,
        auth_data: list[tuple[str, str]] | None = None,
        read_only: bool = False,
        client: KazooClient | None = None,
    ) -> None:
        self._hosts = hosts
        self._client = client if client is not None else KazooClient(
            hosts=hosts,
            timeout=session_timeout,
            auth_data=auth_data or None,
            read_only=read_only,
        )
        self._listeners: list[ConnectionListener] = []
        self._listeners_lock = threading.Lock()
        self._client.add_listener(self._on_state_change)

    @property
    def client(self) -> KazooClient:
        return self._client

    # ── Lifecycle ─────────────────────────────────────────────────

    def start(self) -> None:
        """Start connecting in the background."""
        logger.info("Starting ZooKeeper session to %s", self._hosts)
        self._client.start_async()

    def stop(self) -> None:
        """Stop and close the underlying client."""
        self._client.stop()
        self._client.close()
        logger.info("ZooKeeper session to %s closed", self._hosts)

    def connected(self) -> bool:
        return bool(self._client.connected)

    # ── Listeners ─────────────────────────────────────────────────

    def add_connection_listener(self, listener: ConnectionListener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def _on_state_change(self, state: str) -> None:
        if state == KazooState.CONNECTED:
            logger.info("ZooKeeper session connected")
        elif state == KazooState.SUSPENDED:
            logger.warning("ZooKeeper session suspended")
        else:
            logger.warning("ZooKeeper session lost")

        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state == KazooState.CONNECTED)
            except Exception:
                logger.exception("Connection listener failed")

    # ── Watched fetch ─────────────────────────────────────────────

    def fetch_children_with_watch(
        self,
        path: str,
        watch_handler: WatchHandler,
        result_handler: ResultHandler,
    ) -> None:
        def on_watch(event: WatchedEvent) -> None:
            watch_handler(store_event_for(event))

        def on_result(async_result: IAsyncResult) -> None:
            try:
                children: Sequence[str] = async_result.get()
            except Exception as e:
                code = result_code_for(e)
                logger.debug("get_children(%s) failed: %r -> %s", path, e, code.name)
                result_handler(code, [])
                return
            result_handler(StoreResultCode.OK, list(children))

        self._client.get_children_async(path, watch=on_watch).rawlink(on_result)
