import logging
import signal
import threading
from typing import Optional
from injector import Injector
from prometheus_client import start_http_server
from mq_nodes_sync.configs import SyncConfig
from mq_nodes_sync.consumers import NodeListConsumer, SnapshotNodeListConsumer
from mq_nodes_sync.session import CoordinationSession, KazooCoordinationSession
from mq_nodes_sync.services import MqNodesService

def main(config_path: Optional[str] = None):
    #####################
    # Configure Logging #
    #####################

    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s %(levelname)s: [%(name)s] %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%SZ',
        handlers=[logging.StreamHandler()]
    )

    ###############################
    # Load Config & ZK Session    #
    ###############################

    config = SyncConfig(config_path)

    # Build the ZooKeeper session; it is only started by the sync itself
    session = KazooCoordinationSession(
        hosts=config.zookeeper_hosts,
        session_timeout=config.zookeeper_session_timeout,
        auth_data=config.zookeeper_auth_data,
        read_only=config.zookeeper_read_only,
    )
    consumer = SnapshotNodeListConsumer()

    ##################################
    # Initialize Dependency Injector #
    ##################################

    def configure_bindings(binder):
        binder.bind(SyncConfig, to=config)
        binder.bind(CoordinationSession, to=session)
        binder.bind(NodeListConsumer, to=consumer)

    # Initialize the dependency injector
    injector: Injector = Injector([configure_bindings])

    ################################
    # Initialize Prometheus Client #
    ################################

    if config.metrics_port > 0:
        start_http_server(config.metrics_port)

    #############################
    # Graceful Shutdown Handler #
    #############################

    shutdown_requested = threading.Event()

    def request_shutdown(signum, frame):
        shutdown_requested.set()

    signal.signal(signal.SIGINT, request_shutdown)
    signal.signal(signal.SIGTERM, request_shutdown)

    ##############
    # Start Sync #
    ##############

    mq_nodes_service: MqNodesService = injector.get(MqNodesService)
    mq_nodes_service.start()
    try:
        shutdown_requested.wait()
    finally:
        mq_nodes_service.stop()

if __name__ == "__main__":
    main()
