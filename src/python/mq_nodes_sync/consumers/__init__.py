from .node_list_consumer import NodeListConsumer
from .snapshot_node_list_consumer import SnapshotNodeListConsumer

__all__ = [
    "NodeListConsumer",
    "SnapshotNodeListConsumer",
]
