"""Reading and writing codesyncer config files."""

import logging
from pathlib import Path
from typing import Any

import yaml

from codesyncer.config.schema import DEFAULT_CONFIG, CodeSyncerConfig

logger = logging.getLogger(__name__)

CONFIG_DIRNAME = ".codesyncer"
CONFIG_FILENAME = "config.yaml"


def get_home_config_path() -> Path:
    """User-wide settings: ~/.codesyncer/config.yaml."""
    return Path.home() / CONFIG_DIRNAME / CONFIG_FILENAME


def get_local_config_path(root: Path | None = None) -> Path:
    """Project settings: <root>/.codesyncer/config.yaml (root defaults to cwd)."""
    return (root or Path.cwd()) / CONFIG_DIRNAME / CONFIG_FILENAME


def load_yaml_config(path: Path) -> dict[str, Any] | None:
    """Read a config mapping from YAML.

    A missing, unreadable or malformed file, or one whose top level is not
    a mapping, yields None and is otherwise ignored.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return None

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.warning("Ignoring invalid config %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def load_config(root: Path | None = None) -> CodeSyncerConfig:
    """Resolve the effective settings for a project.

    Built-in defaults are overridden by the home file, which is in turn
    overridden by the project file. Keys absent from a file inherit.
    """
    effective = DEFAULT_CONFIG
    for path in (get_home_config_path(), get_local_config_path(root)):
        data = load_yaml_config(path)
        if data:
            logger.debug("Applying config from %s", path)
            effective = effective.merge(CodeSyncerConfig.from_dict(data))
    return effective


def save_config(config: CodeSyncerConfig, path: Path) -> None:
    """Write the explicitly set fields of ``config`` to ``path`` as YAML."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
