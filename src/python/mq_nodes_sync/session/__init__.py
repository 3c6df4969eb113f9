from .coordination_session import CoordinationSession
from .kazoo_coordination_session import KazooCoordinationSession

__all__ = [
    "CoordinationSession",
    "KazooCoordinationSession",
]
