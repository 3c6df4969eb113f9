"""MQ nodes sync, the main entry point of the library.

Owns the group path, the startup gate and the watch cycle for one MQ
node group.

Usage::

    from mq_nodes_sync import KazooCoordinationSession, MqNodesSync

    sync = MqNodesSync(
        session=KazooCoordinationSession(hosts="zk1:2181,zk2:2181"),
        consumer=my_client_manager,      # a NodeListConsumer
        group_name="orders",
        base_dir="/mqs",
        scheme="tcp://",
        startup_timeout=60.0,
    )
    sync.start()    # returns once the first snapshot is known
    ...
    sync.stop()
"""

from __future__ import annotations

import logging
import threading
import time

from ..consumers.node_list_consumer import NodeListConsumer
from ..exceptions import StartupTimeoutError, SyncStoppedError
from ..formatting.node_set_formatter import DEFAULT_SCHEME, NodeSetFormatter
from ..models import CycleOutcome, build_group_path
from ..session.coordination_session import CoordinationSession
from .startup_gate import StartupGate
from .watch_cycle import WatchCycle

logger = logging.getLogger(__name__)

DEFAULT_BASE_DIR = "/mqs"


class MqNodesSync:
    """Keeps a :class:`NodeListConsumer` in sync with one MQ node group.

    Parameters:
        session: Coordination session, supplied by the owning process.
        consumer: Receives every refreshed endpoint list.
        group_name: MQ node group; watched at ``base_dir/group_name``.
        base_dir: Parent path of all MQ node groups.
        scheme: Transport prefix added to every child name.
        startup_timeout: Upper bound in seconds for :meth:`start`.
            ``None`` waits forever.
        unblock_on_connection_loss: Whether a connection loss on the
            first fetch lets :meth:`start` return before any endpoints
            were delivered.
    """

    def __init__(
        self,
        session: CoordinationSession,
        consumer: NodeListConsumer,
        group_name: str,
        base_dir: str = DEFAULT_BASE_DIR,
        scheme: str = DEFAULT_SCHEME,
        startup_timeout: float | None = None,
        unblock_on_connection_loss: bool = True,
    ) -> None:
        self._session = session
        self._group_path = build_group_path(base_dir, group_name)
        self._startup_timeout = startup_timeout

        self._gate = StartupGate(
            session=session,
            unblock_on_retryable_failure=unblock_on_connection_loss,
        )
        self._cycle = WatchCycle(
            session=session,
            group_path=self._group_path,
            formatter=NodeSetFormatter(scheme),
            consumer=consumer,
            on_outcome=self._gate.record_outcome,
        )

        self._lifecycle_lock = threading.Lock()
        self._running = False
        self._stopped = False

    # ── Properties ────────────────────────────────────────────────

    @property
    def group_path(self) -> str:
        return self._group_path

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def first_outcome(self) -> CycleOutcome | None:
        """The outcome that opened the startup gate, if any."""
        return self._gate.first_outcome

    # ── Lifecycle ─────────────────────────────────────────────────

    def start_session(self) -> None:
        """Start the coordination session without waiting for it."""
        self._session.start()

    def start(self) -> CycleOutcome:
        """Start the session and block until the first snapshot is known.

        Waits for the session to connect, issues the first watched
        fetch, then waits for its outcome.  Later snapshots are
        delivered to the consumer asynchronously.  A failed start leaves
        the instance stopped so it can be started again; an instance
        that was stopped after a successful start cannot.

        Returns:
            The first :class:`CycleOutcome`.  Store failures are not
            raised; inspect the outcome instead.

        Raises:
            StartupTimeoutError: If ``startup_timeout`` elapses first.
            SyncStoppedError: If :meth:`stop` was already called.
        """
        with self._lifecycle_lock:
            if self._stopped:
                raise SyncStoppedError(self._group_path)
            if not self._running:
                self._running = True
                self._gate.reset()
                deadline = (
                    None
                    if self._startup_timeout is None
                    else time.monotonic() + self._startup_timeout
                )

                try:
                    self.start_session()

                    # The store API may only be used once the session is up
                    self._gate.wait_for_connection(self._remaining(deadline))

                    self._cycle.start()
                    self._cycle.trigger_fetch()

                    outcome = self._gate.wait_for_first_outcome(self._remaining(deadline))
                except StartupTimeoutError:
                    logger.error("MQ nodes sync on %s did not start in time", self._group_path)
                    self._abort_start()
                    raise
                except BaseException:
                    logger.exception("MQ nodes sync on %s failed to start", self._group_path)
                    self._abort_start()
                    raise
                logger.info(
                    "MQ nodes sync started on %s (first outcome: %s)",
                    self._group_path,
                    outcome.kind.value,
                )
                return outcome

        return self._gate.wait_for_first_outcome(self._startup_timeout)

    def stop(self) -> None:
        """Stop refreshing and close the session."""
        with self._lifecycle_lock:
            if not self._running:
                return
            self._running = False
            self._stopped = True
            self._cycle.stop()
            self._session.stop()
        logger.info("MQ nodes sync stopped on %s", self._group_path)

    def _abort_start(self) -> None:
        self._running = False
        self._cycle.stop()
        try:
            self._session.stop()
        except Exception:
            logger.exception("Failed to stop the coordination session of %s", self._group_path)

    @staticmethod
    def _remaining(deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return max(0.0, deadline - time.monotonic())
