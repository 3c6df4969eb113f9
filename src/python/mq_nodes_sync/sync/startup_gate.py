"""Startup gate that lets the owning thread block until the sync is usable.

Two conditions are tracked on one :class:`threading.Condition`:

1. The coordination session is connected.  Session connection
   listeners wake waiters; the session is also re-checked at a bounded
   interval so a missed notification cannot hang the caller.
2. The first :class:`CycleOutcome` is known.  The flag is write-once and
   is set from the watch cycle's handling thread.
"""

from __future__ import annotations

import logging
import threading
import time

from ..exceptions import StartupTimeoutError
from ..models import CycleOutcome
from ..session.coordination_session import CoordinationSession

logger = logging.getLogger(__name__)

# Upper bound between two connectivity re-checks (seconds)
_CONNECTION_RECHECK_INTERVAL = 1.0


class StartupGate:
    """Blocking gate for connectivity and the first fetch outcome.

    Parameters:
        session: The coordination session whose connectivity is awaited.
        unblock_on_retryable_failure: If True (default), a retryable
            failure such as a connection loss opens the gate even though
            no endpoints were delivered.  If False, only a success or a
            fatal failure opens it.
    """

    def __init__(
        self,
        session: CoordinationSession,
        unblock_on_retryable_failure: bool = True,
    ) -> None:
        self._session = session
        self._unblock_on_retryable = unblock_on_retryable_failure
        self._condition = threading.Condition()
        self._first_outcome: CycleOutcome | None = None
        session.add_connection_listener(self._on_connection_changed)

    # ── Properties ────────────────────────────────────────────────

    @property
    def is_open(self) -> bool:
        """True once the first outcome has been recorded."""
        with self._condition:
            return self._first_outcome is not None

    @property
    def first_outcome(self) -> CycleOutcome | None:
        with self._condition:
            return self._first_outcome

    # ── Connectivity ──────────────────────────────────────────────

    def _on_connection_changed(self, connected: bool) -> None:
        with self._condition:
            self._condition.notify_all()

    def wait_for_connection(self, timeout: float | None = None) -> None:
        """Block until the session reports connected.

        Raises:
            StartupTimeoutError: If ``timeout`` elapses first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._condition:
            while not self._session.connected():
                wait_for = _CONNECTION_RECHECK_INTERVAL
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise StartupTimeoutError("connection", timeout)
                    wait_for = min(wait_for, remaining)
                self._condition.wait(wait_for)

    # ── First outcome ─────────────────────────────────────────────

    def record_outcome(self, outcome: CycleOutcome) -> bool:
        """Record a cycle outcome; only the first qualifying one is kept.

        Returns:
            True if this outcome opened the gate.
        """
        if outcome.is_retryable and not self._unblock_on_retryable:
            logger.debug("Retryable outcome %s does not open the startup gate", outcome.code.name)
            return False

        with self._condition:
            if self._first_outcome is not None:
                return False
            self._first_outcome = outcome
            self._condition.notify_all()

        logger.info("First MQ nodes fetch finished: %s (%s)", outcome.kind.value, outcome.code.name)
        return True

    def reset(self) -> None:
        """Close the gate again before a new startup attempt."""
        with self._condition:
            self._first_outcome = None

    def wait_for_first_outcome(self, timeout: float | None = None) -> CycleOutcome:
        """Block until the first outcome is recorded and return it.

        Raises:
            StartupTimeoutError: If ``timeout`` elapses first.
        """
        with self._condition:
            if not self._condition.wait_for(lambda: self._first_outcome is not None, timeout=timeout):
                raise StartupTimeoutError("first_outcome", timeout)
            assert self._first_outcome is not None
            return self._first_outcome
