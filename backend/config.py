"""Settings loader: YAML file validated by a pydantic model."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

CONFIG_ENV = "RIB_CONFIG"
project_dir = Path(__file__).parent.parent
DEFAULT_CONFIG_PATH = project_dir / "rib.yml"


class ConfigError(Exception):
    pass


class Settings(BaseModel):
    routing_table_file: Path = project_dir / "data" / "routing_table.txt"
    log_level: str = "INFO"
    commit_on_quit: bool = True
    api_title: str = "RIB"


def load_settings(path: Optional[str | Path] = None) -> Settings:
    """
    Load settings from `path`, else $RIB_CONFIG, else rib.yml in the project root.

    A missing file gives the defaults. A relative routing_table_file is
    taken relative to the config file's directory.
    """
    explicit = path is not None or CONFIG_ENV in os.environ
    config_path = Path(path or os.environ.get(CONFIG_ENV) or DEFAULT_CONFIG_PATH)

    if not config_path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {config_path}")
        return Settings()

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot read {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path}: expected a mapping at top level")

    try:
        settings = Settings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"{config_path}: {exc}") from exc

    if not settings.routing_table_file.is_absolute():
        settings.routing_table_file = config_path.parent / settings.routing_table_file
    logger.debug("Loaded settings from %s", config_path)
    return settings
