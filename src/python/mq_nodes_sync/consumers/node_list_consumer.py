"""Abstract base class for receivers of the refreshed MQ endpoint list.

Typically implemented by the client-connection manager that opens and
closes connections to the MQ brokers.
"""

from __future__ import annotations

import abc


class NodeListConsumer(abc.ABC):
    """Interface that receives the current MQ endpoints after every refresh."""

    @abc.abstractmethod
    def sync_endpoints(self, endpoints: list[str]) -> None:
        """Replace the consumer's view with ``endpoints``.

        Called on the watch cycle's handling thread, at most once per
        successful fetch and never re-entrantly.  The list is a complete
        snapshot (not a diff) and is owned by the consumer.

        Args:
            endpoints: Scheme-prefixed addresses, e.g.
                ``["tcp://10.0.0.1:9000"]``.
        """
        ...
