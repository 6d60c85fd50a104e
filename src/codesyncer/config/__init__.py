"""Configuration and project setup."""

from codesyncer.config.init import (
    InitResult,
    init_project,
    is_first_watch,
    mark_watch_used,
    write_root_guide,
)
from codesyncer.config.loader import (
    get_home_config_path,
    get_local_config_path,
    load_config,
    save_config,
)
from codesyncer.config.schema import DEFAULT_CONFIG, CodeSyncerConfig

__all__ = [
    "CodeSyncerConfig",
    "DEFAULT_CONFIG",
    "InitResult",
    "get_home_config_path",
    "get_local_config_path",
    "init_project",
    "is_first_watch",
    "load_config",
    "mark_watch_used",
    "save_config",
    "write_root_guide",
]
