"""Abstract base class for the coordination store session.

The sync component never opens connections itself. The owning process
passes in a session implementation, which owns connect, reconnect and
authentication, and exposes the single watched-fetch primitive the
watch cycle needs.
"""

from __future__ import annotations

import abc
from typing import Callable, Sequence

from ..models import StoreEvent, StoreResultCode

WatchHandler = Callable[[StoreEvent], None]
ResultHandler = Callable[[StoreResultCode, Sequence[str]], None]
ConnectionListener = Callable[[bool], None]


class CoordinationSession(abc.ABC):
    """Interface to a ZooKeeper-style hierarchical coordination store."""

    @abc.abstractmethod
    def start(self) -> None:
        """Begin establishing the session.

        Must not block until connected; callers wait through
        :meth:`connected` and the connection listeners.
        """
        ...

    @abc.abstractmethod
    def stop(self) -> None:
        """Close the session and release its resources."""
        ...

    @abc.abstractmethod
    def connected(self) -> bool:
        """Return True while the session is connected to the store."""
        ...

    @abc.abstractmethod
    def add_connection_listener(self, listener: ConnectionListener) -> None:
        """Register a callback invoked with the new connectivity on every change.

        Listeners run on the session's own thread and must return
        promptly.
        """
        ...

    @abc.abstractmethod
    def fetch_children_with_watch(
        self,
        path: str,
        watch_handler: WatchHandler,
        result_handler: ResultHandler,
    ) -> None:
        """Asynchronously fetch the children of ``path`` and arm a watch on it.

        The read and the watch registration are one store operation, so
        the watch is armed against the same tree version that produced
        the returned children.

        Args:
            path: The znode whose children are fetched.
            watch_handler: Called at most once, later, with the event
                that satisfied the watch created by this call.
            result_handler: Called exactly once with the result code
                and the children (empty unless the code is OK).
        """
        ...
