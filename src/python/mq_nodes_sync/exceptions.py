"""Exception hierarchy for the MQ nodes synchronizer."""

from __future__ import annotations


class MqNodesSyncError(Exception):
    """Base exception for all MQ nodes sync errors."""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message)


# ── Configuration Errors ──────────────────────────────────────────

class InvalidGroupPathError(MqNodesSyncError):
    """Raised when the base directory and group name do not form a valid path."""

    def __init__(self, base_dir: str, group_name: str, reason: str = "") -> None:
        self.base_dir = base_dir
        self.group_name = group_name
        msg = f"Invalid group path for base_dir='{base_dir}', group_name='{group_name}'."
        if reason:
            msg += f" Reason: {reason}"
        super().__init__(msg)


# ── Startup Errors ────────────────────────────────────────────────

class StartupTimeoutError(MqNodesSyncError):
    """Raised when startup does not complete within the configured timeout.

    ``stage`` is ``"connection"`` while waiting for the coordination
    session, or ``"first_outcome"`` while waiting for the first fetch.
    """

    def __init__(self, stage: str, timeout: float | None) -> None:
        self.stage = stage
        self.timeout = timeout
        super().__init__(f"Startup timed out after {timeout or 0.0:.1f}s waiting for {stage}.")


class SyncNotStartedError(MqNodesSyncError):
    """Raised when the endpoint list is requested before the sync was started."""

    def __init__(self, message: str = "MQ nodes sync has not been started.") -> None:
        super().__init__(message)


class SyncStoppedError(MqNodesSyncError):
    """Raised when ``start()`` is called on a sync that was already stopped."""

    def __init__(self, group_path: str) -> None:
        self.group_path = group_path
        super().__init__(f"MQ nodes sync on '{group_path}' was stopped and cannot be restarted.")


# ── Coordination Store Errors ─────────────────────────────────────

class CoordinationStoreError(MqNodesSyncError):
    """Describes a failed fetch reported by the coordination store."""

    def __init__(self, path: str, code: int, reason: str = "") -> None:
        self.path = path
        self.code = code
        msg = f"Coordination store request on '{path}' failed with code {code}."
        if reason:
            msg += f" Reason: {reason}"
        super().__init__(msg)
