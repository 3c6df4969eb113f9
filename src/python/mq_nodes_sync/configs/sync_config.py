import logging
import os
import yaml
from pathlib import Path
from typing import Optional
from injector import singleton

CONFIG_PATH_ENV = "MQ_NODES_SYNC_CONFIG"


def _as_bool(value, key: str) -> bool:
    # Quoted strings such as "false" are rejected
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false, got {value!r}")
    return value


@singleton
class SyncConfig:

    def __init__(self, config_path: Optional[str] = None):
        self.__logger = logging.getLogger(self.__class__.__name__)

        # Resolve config file path: argument, environment, then the bundled default
        # From: src/python/mq_nodes_sync/configs/sync_config.py
        # To:   src/resources/configs/default.yaml
        if config_path is None:
            config_path = os.environ.get(CONFIG_PATH_ENV)
        if config_path is None:
            resolved_path = Path(__file__).resolve().parents[3] / "resources" / "configs" / "default.yaml"
        else:
            resolved_path = Path(config_path)

        if not resolved_path.exists():
            raise FileNotFoundError(f"Config file not found at: {resolved_path}")

        with open(resolved_path, "r") as f:
            raw_config = yaml.safe_load(f) or {}

        sync_config = (raw_config.get("mq") or {}).get("nodes_sync") or {}

        # ZooKeeper session settings
        zookeeper_config = sync_config.get("zookeeper") or {}
        self.zookeeper_hosts: str = zookeeper_config.get("hosts", "localhost:2181")
        self.zookeeper_session_timeout: float = float(zookeeper_config.get("session_timeout", 10.0))
        self.zookeeper_auth_scheme: Optional[str] = zookeeper_config.get("auth_scheme", None)
        self.zookeeper_auth_credentials: Optional[str] = zookeeper_config.get("auth_credentials", None)
        self.zookeeper_read_only: bool = _as_bool(zookeeper_config.get("read_only", False), "mq.nodes_sync.zookeeper.read_only")

        # Group settings
        group_config = sync_config.get("group") or {}
        self.group_base_dir: str = group_config.get("base_dir", "/mqs")
        self.group_name: str = group_config.get("name", "default")
        self.group_scheme: str = group_config.get("scheme", "tcp://")

        # Startup settings
        startup_config = sync_config.get("startup") or {}
        startup_timeout = startup_config.get("timeout", 60.0)
        self.startup_timeout: Optional[float] = None if startup_timeout is None else float(startup_timeout)
        self.startup_unblock_on_connection_loss: bool = _as_bool(
            startup_config.get("unblock_on_connection_loss", True),
            "mq.nodes_sync.startup.unblock_on_connection_loss",
        )

        # Metrics settings
        metrics_config = sync_config.get("metrics") or {}
        self.metrics_port: int = int(metrics_config.get("port", 9464))

        if not self.group_name:
            raise ValueError("mq.nodes_sync.group.name must not be empty")
        if self.startup_timeout is not None and self.startup_timeout <= 0:
            raise ValueError("mq.nodes_sync.startup.timeout must be positive or null")
        if (self.zookeeper_auth_scheme is None) != (self.zookeeper_auth_credentials is None):
            raise ValueError("mq.nodes_sync.zookeeper.auth_scheme and auth_credentials must be set together")

        self.__logger.info(f"SyncConfig loaded from {resolved_path}")

    @property
    def zookeeper_auth_data(self) -> list[tuple[str, str]]:
        if self.zookeeper_auth_scheme is None or self.zookeeper_auth_credentials is None:
            return []
        return [(self.zookeeper_auth_scheme, self.zookeeper_auth_credentials)]
