from .mq_nodes_sync import DEFAULT_BASE_DIR, MqNodesSync
from .startup_gate import StartupGate
from .watch_cycle import WatchCycle

__all__ = [
    "DEFAULT_BASE_DIR",
    "MqNodesSync",
    "StartupGate",
    "WatchCycle",
]
