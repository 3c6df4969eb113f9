from .mq_nodes_service import MqNodesService

__all__ = [
    "MqNodesService",
]
