import logging
from typing import Optional
from injector import inject, singleton
from mq_nodes_sync.configs import SyncConfig
from mq_nodes_sync.consumers import NodeListConsumer, SnapshotNodeListConsumer
from mq_nodes_sync.exceptions import SyncNotStartedError
from mq_nodes_sync.models import CycleOutcome
from mq_nodes_sync.session import CoordinationSession
from mq_nodes_sync.sync import MqNodesSync


@singleton
class MqNodesService:
    """
    Process-level owner of the MQ nodes sync for the configured group.

    Builds a `MqNodesSync` from `SyncConfig` and the coordination session
    and node list consumer bound in the injector, and exposes the latest
    endpoint list when the bound consumer keeps one.
    """

    @inject
    def __init__(self,
                 sync_config: SyncConfig,
                 session: CoordinationSession,
                 consumer: NodeListConsumer):
        self.__logger = logging.getLogger(self.__class__.__name__)
        self.__consumer = consumer
        self.__first_outcome: Optional[CycleOutcome] = None
        self.__mq_nodes_sync = MqNodesSync(
            session=session,
            consumer=consumer,
            group_name=sync_config.group_name,
            base_dir=sync_config.group_base_dir,
            scheme=sync_config.group_scheme,
            startup_timeout=sync_config.startup_timeout,
            unblock_on_connection_loss=sync_config.startup_unblock_on_connection_loss,
        )

    @property
    def group_path(self) -> str:
        return self.__mq_nodes_sync.group_path

    def start(self) -> CycleOutcome:
        """
        Start the sync and block until the first snapshot is known.

        Raises:
            StartupTimeoutError: If the configured startup timeout elapses.
        """
        self.__first_outcome = self.__mq_nodes_sync.start()
        if not self.__first_outcome.is_success:
            self.__logger.warning(
                f"MQ nodes sync on {self.group_path} started without endpoints "
                f"({self.__first_outcome.kind.value}, {self.__first_outcome.code.name})"
            )
        return self.__first_outcome

    def stop(self) -> None:
        self.__mq_nodes_sync.stop()

    def get_endpoints(self) -> list[str]:
        """
        Return the most recently synced MQ endpoints.

        Raises:
            SyncNotStartedError: If `start()` has not completed yet.
            TypeError: If the bound consumer does not keep a snapshot.
        """
        if self.__first_outcome is None:
            raise SyncNotStartedError()
        if not isinstance(self.__consumer, SnapshotNodeListConsumer):
            raise TypeError(f"{type(self.__consumer).__name__} does not keep an endpoint snapshot")
        return self.__consumer.get_endpoints()
