from .node_set_formatter import DEFAULT_SCHEME, NodeSetFormatter

__all__ = [
    "DEFAULT_SCHEME",
    "NodeSetFormatter",
]
