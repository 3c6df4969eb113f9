"""Watch cycle that keeps the endpoint list current with one-shot watches.

Every fetch reads the children of the group path and arms a fresh watch
in the same store request.  When that watch fires with a
children-changed event the fetch is issued again, which both returns the
new snapshot and re-arms the next watch.

Session callbacks never run cycle logic directly.  They push typed
events onto one ordered queue that a single ``watch-cycle`` thread
drains, so result handling and watch handling never overlap even when
the session delivers them from different threads.

Registration rules:
- A registration is only ever created inside :meth:`WatchCycle.trigger_fetch`.
- At most one registration is pending; results and watch events that
  belong to an older registration are dropped.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Sequence

from prometheus_client import Counter, Gauge

from ..consumers.node_list_consumer import NodeListConsumer
from ..exceptions import CoordinationStoreError
from ..formatting.node_set_formatter import NodeSetFormatter
from ..models import (
    CycleOutcome,
    StoreEvent,
    StoreEventKind,
    StoreResultCode,
    WatchRegistration,
)
from ..session.coordination_session import CoordinationSession

logger = logging.getLogger(__name__)

FETCH_COUNTER = Counter("mq_sync_fetch_total", "Total number of watched children fetches issued", ["group"])
OUTCOME_COUNTER = Counter("mq_sync_outcome_total", "Total number of fetch outcomes", ["group", "outcome"])
ENDPOINTS_GAUGE = Gauge("mq_sync_endpoints", "Number of MQ endpoints in the last delivered snapshot", ["group"])

# How long stop() waits for the handling thread (seconds)
_STOP_JOIN_TIMEOUT = 5.0


# ── Channel events ────────────────────────────────────────────────


@dataclass(frozen=True)
class FetchCompleted:
    registration_id: int
    code: StoreResultCode
    children: tuple[str, ...]


@dataclass(frozen=True)
class WatchTriggered:
    registration_id: int
    event: StoreEvent


_CycleEvent = FetchCompleted | WatchTriggered


class WatchCycle:
    """Drives the fetch → watch → notify → re-fetch loop for one group.

    Parameters:
        session: Coordination session used for watched fetches.
        group_path: The znode whose children are the MQ nodes.
        formatter: Converts child names into endpoints.
        consumer: Receives every successfully fetched endpoint list.
        on_outcome: Optional callback invoked on the handling thread
            with every :class:`CycleOutcome`.
    """

    def __init__(
        self,
        session: CoordinationSession,
        group_path: str,
        formatter: NodeSetFormatter,
        consumer: NodeListConsumer,
        on_outcome: Callable[[CycleOutcome], None] | None = None,
    ) -> None:
        self._session = session
        self._group_path = group_path
        self._formatter = formatter
        self._consumer = consumer
        self._on_outcome = on_outcome

        self._events: queue.Queue[_CycleEvent | None] = queue.Queue()
        self._registration_ids = itertools.count(1)
        self._registration_lock = threading.Lock()
        self._pending: WatchRegistration | None = None

        self._running = False
        self._thread: threading.Thread | None = None

    # ── Properties ────────────────────────────────────────────────

    @property
    def group_path(self) -> str:
        return self._group_path

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending_registration(self) -> WatchRegistration | None:
        """The registration whose watch is currently expected to fire."""
        with self._registration_lock:
            return self._pending

    # ── Lifecycle ─────────────────────────────────────────────────

    def start(self) -> None:
        """Start the handling thread.

        Raises:
            RuntimeError: If the thread of a previous run is still alive.
        """
        if self._running:
            return
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError(f"Watch cycle on {self._group_path} is still handling events of its previous run")
        # Events queued by a previous run never reach the new thread
        self._events = queue.Queue()
        self._running = True
        self._thread = threading.Thread(
            target=self._loop, args=(self._events,), name="watch-cycle", daemon=True
        )
        self._thread.start()
        logger.info("Watch cycle started on %s", self._group_path)

    def stop(self) -> None:
        """Stop issuing fetches; later results are discarded."""
        if not self._running:
            return
        self._running = False
        self._events.put(None)
        thread = self._thread
        # stop() may be called by the consumer from the handling thread itself
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=_STOP_JOIN_TIMEOUT)
            if thread.is_alive():
                logger.warning(
                    "Watch cycle thread on %s did not exit within %.1fs",
                    self._group_path,
                    _STOP_JOIN_TIMEOUT,
                )
            else:
                self._thread = None
        with self._registration_lock:
            self._pending = None
        logger.info("Watch cycle stopped on %s", self._group_path)

    # ── Fetch ─────────────────────────────────────────────────────

    def trigger_fetch(self) -> None:
        """Fetch the children of the group path with a fresh watch.

        The new registration replaces any pending one, so an older watch
        that fires later is ignored.
        """
        if not self._running:
            logger.debug("Watch cycle on %s is stopped, not fetching", self._group_path)
            return

        with self._registration_lock:
            registration = WatchRegistration(
                registration_id=next(self._registration_ids),
                path=self._group_path,
            )
            self._pending = registration

            registration_id = registration.registration_id
            events = self._events

            def on_watch(event: StoreEvent) -> None:
                events.put(WatchTriggered(registration_id, event))

            def on_result(code: StoreResultCode, children: Sequence[str]) -> None:
                events.put(FetchCompleted(registration_id, code, tuple(children)))

            FETCH_COUNTER.labels(group=self._group_path).inc()
            self._session.fetch_children_with_watch(self._group_path, on_watch, on_result)

    # ── Handling loop ─────────────────────────────────────────────

    def _loop(self, events: queue.Queue[_CycleEvent | None]) -> None:
        while True:
            event = events.get()
            if event is None or not self._running:
                return
            try:
                if isinstance(event, FetchCompleted):
                    self._on_fetch_result(event)
                else:
                    self._on_watch_triggered(event)
            except Exception:
                logger.exception("Watch cycle error on %s", self._group_path)

    def _is_pending(self, registration_id: int) -> bool:
        with self._registration_lock:
            return self._pending is not None and self._pending.registration_id == registration_id

    def _on_fetch_result(self, result: FetchCompleted) -> None:
        if not self._is_pending(result.registration_id):
            logger.debug(
                "Discarding stale fetch result #%d on %s",
                result.registration_id,
                self._group_path,
            )
            return

        if result.code is StoreResultCode.OK:
            endpoints = self._formatter.format(result.children)
            logger.info(
                "Successfully got a list of MQ nodes on %s: %d MQ nodes",
                self._group_path,
                len(endpoints),
            )
            outcome = CycleOutcome.from_result(result.code, endpoints)
            self._deliver(endpoints)
        elif result.code.is_retryable:
            logger.error("Connection loss while getting children of %s, retrying", self._group_path)
            outcome = CycleOutcome.from_result(result.code)
            self.trigger_fetch()
        else:
            # No watch is armed after a failed read
            with self._registration_lock:
                if self._pending is not None and self._pending.registration_id == result.registration_id:
                    self._pending = None
            logger.error(
                "Getting MQ nodes failed: %s",
                CoordinationStoreError(self._group_path, int(result.code), result.code.name),
            )
            outcome = CycleOutcome.from_result(result.code)

        OUTCOME_COUNTER.labels(group=self._group_path, outcome=outcome.kind.value).inc()
        if self._on_outcome is not None:
            try:
                self._on_outcome(outcome)
            except Exception:
                logger.exception("on_outcome callback failed")

    def _deliver(self, endpoints: tuple[str, ...]) -> None:
        ENDPOINTS_GAUGE.labels(group=self._group_path).set(len(endpoints))
        try:
            self._consumer.sync_endpoints(list(endpoints))
        except Exception:
            logger.exception("Node list consumer failed to sync %d endpoints", len(endpoints))

    def _on_watch_triggered(self, triggered: WatchTriggered) -> None:
        if triggered.event.kind is not StoreEventKind.CHILDREN_CHANGED:
            logger.debug(
                "Ignoring %s event on %s",
                triggered.event.kind.value,
                triggered.event.path or self._group_path,
            )
            return

        if not self._is_pending(triggered.registration_id):
            logger.debug(
                "Ignoring watch #%d on %s, it is no longer pending",
                triggered.registration_id,
                self._group_path,
            )
            return

        logger.info("MQ nodes changed on %s, refreshing", self._group_path)
        self.trigger_fetch()
