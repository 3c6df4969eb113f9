from .sync_config import CONFIG_PATH_ENV, SyncConfig

__all__ = [
    "CONFIG_PATH_ENV",
    "SyncConfig",
]
