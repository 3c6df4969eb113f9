"""Data models for the MQ nodes synchronizer.

All models use Pydantic for validation and are frozen once built.
"""

from __future__ import annotations

import enum
import time

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidGroupPathError


# ── Enums ─────────────────────────────────────────────────────────


class StoreResultCode(enum.IntEnum):
    """Result codes reported by the coordination store (ZooKeeper numbering)."""

    OK = 0
    SYSTEM_ERROR = -1
    RUNTIME_INCONSISTENCY = -2
    DATA_INCONSISTENCY = -3
    CONNECTION_LOSS = -4
    MARSHALLING_ERROR = -5
    UNIMPLEMENTED = -6
    OPERATION_TIMEOUT = -7
    BAD_ARGUMENTS = -8
    API_ERROR = -100
    NO_NODE = -101
    NO_AUTH = -102
    BAD_VERSION = -103
    NO_CHILDREN_FOR_EPHEMERALS = -108
    NODE_EXISTS = -110
    NOT_EMPTY = -111
    SESSION_EXPIRED = -112
    INVALID_CALLBACK = -113
    INVALID_ACL = -114
    AUTH_FAILED = -115
    SESSION_MOVED = -118
    NOT_READ_ONLY = -119

    @classmethod
    def from_code(cls, code: int) -> StoreResultCode:
        """Map a raw numeric code, falling back to SYSTEM_ERROR when unknown."""
        try:
            return cls(code)
        except ValueError:
            return cls.SYSTEM_ERROR

    @property
    def is_retryable(self) -> bool:
        """Only a lost connection is retried; the session reconnects on its own."""
        return self is StoreResultCode.CONNECTION_LOSS


class StoreEventKind(str, enum.Enum):
    """Kinds of notifications a watch can deliver."""

    CHILDREN_CHANGED = "children_changed"
    NODE_CREATED = "node_created"
    NODE_DELETED = "node_deleted"
    DATA_CHANGED = "data_changed"
    SESSION = "session"


class CycleOutcomeKind(str, enum.Enum):
    """Result category of one watched fetch."""

    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    FATAL_FAILURE = "fatal_failure"


# ── Watch Models ──────────────────────────────────────────────────


class StoreEvent(BaseModel):
    """A single watch notification delivered by the coordination session."""

    model_config = ConfigDict(frozen=True)

    kind: StoreEventKind
    path: str | None = None


class WatchRegistration(BaseModel):
    """One pending watch on the group path.

    A registration is created by every fetch and never reused after
    it fires.
    """

    model_config = ConfigDict(frozen=True)

    registration_id: int
    path: str
    created_at: float = Field(default_factory=time.time)


class CycleOutcome(BaseModel):
    """Tagged result of one fetch attempt."""

    model_config = ConfigDict(frozen=True)

    kind: CycleOutcomeKind
    code: StoreResultCode
    endpoints: tuple[str, ...] = ()

    @classmethod
    def from_result(
        cls, code: StoreResultCode, endpoints: tuple[str, ...] = ()
    ) -> CycleOutcome:
        """Classify a store result code into an outcome."""
        if code is StoreResultCode.OK:
            return cls(kind=CycleOutcomeKind.SUCCESS, code=code, endpoints=endpoints)
        if code.is_retryable:
            return cls(kind=CycleOutcomeKind.RETRYABLE_FAILURE, code=code)
        return cls(kind=CycleOutcomeKind.FATAL_FAILURE, code=code)

    @property
    def is_success(self) -> bool:
        return self.kind is CycleOutcomeKind.SUCCESS

    @property
    def is_retryable(self) -> bool:
        return self.kind is CycleOutcomeKind.RETRYABLE_FAILURE


# ── Group Path ────────────────────────────────────────────────────


def build_group_path(base_dir: str, group_name: str) -> str:
    """Join the base directory and group name into the watched path.

    Raises:
        InvalidGroupPathError: If the base directory is not absolute or
            the group name is empty or contains a ``/``.
    """
    if not base_dir.startswith("/"):
        raise InvalidGroupPathError(base_dir, group_name, "base_dir must start with '/'")
    if not group_name:
        raise InvalidGroupPathError(base_dir, group_name, "group_name must not be empty")
    if "/" in group_name:
        raise InvalidGroupPathError(base_dir, group_name, "group_name must not contain '/'")
    return f"{base_dir.rstrip('/')}/{group_name}"
