import logging
from typing import Iterable

DEFAULT_SCHEME = "tcp://"


class NodeSetFormatter:
    """
    Turns raw child names of the group path into connection-ready endpoints.

    Each name is prefixed with the transport scheme and kept in input order.
    Empty or blank names are dropped with a warning; every other name is
    passed through verbatim.
    """

    def __init__(self, scheme: str = DEFAULT_SCHEME):
        if not scheme:
            raise ValueError("Transport scheme must not be empty")
        self.__logger = logging.getLogger(self.__class__.__name__)
        self.__scheme = scheme

    @property
    def scheme(self) -> str:
        return self.__scheme

    def format(self, children: Iterable[str]) -> tuple[str, ...]:
        endpoints: list[str] = []
        for name in children:
            if not name or not name.strip():
                self.__logger.warning(f"Skipping blank MQ node name: <{name!r}>")
                continue
            endpoints.append(self.__scheme + name)
        return tuple(endpoints)
