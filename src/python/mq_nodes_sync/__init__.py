"""MQ Nodes Sync: live MQ broker endpoint list from ZooKeeper.

Watches the children of ``<base_dir>/<group_name>`` in ZooKeeper and
hands every refreshed, scheme-prefixed endpoint list to a
:class:`NodeListConsumer`.  Each fetch re-arms a one-shot watch in the
same request, so no membership change is missed between reads.

Quick Start::

    from mq_nodes_sync import (
        KazooCoordinationSession,
        MqNodesSync,
        NodeListConsumer,
    )

    class ClientManager(NodeListConsumer):
        def sync_endpoints(self, endpoints: list[str]) -> None:
            # Open/close broker connections, e.g. "tcp://10.0.0.1:9000"
            ...

    sync = MqNodesSync(
        session=KazooCoordinationSession(hosts="localhost:2181"),
        consumer=ClientManager(),
        group_name="orders",
    )
    outcome = sync.start()    # blocks until the first snapshot is known
    ...
    sync.stop()
"""

from .consumers.node_list_consumer import NodeListConsumer
from .consumers.snapshot_node_list_consumer import SnapshotNodeListConsumer
from .exceptions import (
    CoordinationStoreError,
    InvalidGroupPathError,
    MqNodesSyncError,
    StartupTimeoutError,
    SyncNotStartedError,
    SyncStoppedError,
)
from .formatting.node_set_formatter import NodeSetFormatter
from .models import (
    CycleOutcome,
    CycleOutcomeKind,
    StoreEvent,
    StoreEventKind,
    StoreResultCode,
    WatchRegistration,
    build_group_path,
)
from .session.coordination_session import CoordinationSession
from .session.kazoo_coordination_session import KazooCoordinationSession
from .sync.mq_nodes_sync import MqNodesSync
from .sync.startup_gate import StartupGate
from .sync.watch_cycle import WatchCycle

__all__ = [
    # Main entry point
    "MqNodesSync",
    # Collaborators
    "CoordinationSession",
    "KazooCoordinationSession",
    "NodeListConsumer",
    "SnapshotNodeListConsumer",
    # Components
    "NodeSetFormatter",
    "StartupGate",
    "WatchCycle",
    # Models
    "CycleOutcome",
    "CycleOutcomeKind",
    "StoreEvent",
    "StoreEventKind",
    "StoreResultCode",
    "WatchRegistration",
    "build_group_path",
    # Exceptions
    "CoordinationStoreError",
    "InvalidGroupPathError",
    "MqNodesSyncError",
    "StartupTimeoutError",
    "SyncNotStartedError",
    "SyncStoppedError",
]
