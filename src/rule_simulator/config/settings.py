"""Simulator configuration schema and loader.

Configuration is loaded from a YAML file (simulator.yaml by default, or the
path in the RULE_SIMULATOR_CONFIG environment variable). Relative paths in
the file are resolved against the file's directory.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from rule_simulator.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RULE_SIMULATOR_CONFIG"
DEFAULT_CONFIG_FILE = "simulator.yaml"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


class SimulatorConfig(BaseModel):
    """Simulator settings.

    Attributes:
        rules_path: Rules YAML file.
        ui_path: UI layout YAML file.
        situation_path: File where the current situation is remembered.
        stream_results: Reference engine emits one event per rule instead of one batch.
        log_level: Default log level when no CLI flag overrides it.
    """

    rules_path: Path = Field(
        default=Path("model/rules.yaml"),
        description="Rules YAML file",
    )
    ui_path: Path = Field(
        default=Path("model/ui.yaml"),
        description="UI layout YAML file",
    )
    situation_path: Path = Field(
        default=Path("output/situation.json"),
        description="Where the current situation is remembered between sessions",
    )
    stream_results: bool = Field(
        default=False,
        description="Reference engine emits one EvaluatedOne per rule instead of one EvaluatedMany",
    )
    log_level: str = Field(
        default="INFO",
        description="Default log level",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the level is a known logging level."""
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}'. Valid levels: {sorted(VALID_LOG_LEVELS)}")
        return level

    def resolve_paths(self, base_dir: Path) -> "SimulatorConfig":
        """Return a copy with relative paths anchored at base_dir."""

        def anchor(path: Path) -> Path:
            return path if path.is_absolute() else base_dir / path

        return self.model_copy(
            update={
                "rules_path": anchor(self.rules_path),
                "ui_path": anchor(self.ui_path),
                "situation_path": anchor(self.situation_path),
            }
        )


def load_config(config_path: Optional[Path] = None) -> SimulatorConfig:
    """Load simulator configuration from YAML file.

    Args:
        config_path: Optional explicit path. Defaults to $RULE_SIMULATOR_CONFIG,
            then ./simulator.yaml.

    Returns:
        SimulatorConfig; defaults when the file does not exist.

    Raises:
        ConfigError: If the file exists but is invalid.
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(os.getenv(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))
    config_path = Path(config_path)

    if not config_path.exists():
        logger.debug(f"No simulator config found at {config_path}, using defaults")
        return SimulatorConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in simulator config {config_path}: {e}")

    if data is None:
        logger.warning(f"Empty simulator config at {config_path}")
        data = {}

    try:
        config = SimulatorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid simulator config {config_path}: {e}")

    logger.debug(f"Loaded simulator config from {config_path}")
    return config.resolve_paths(config_path.resolve().parent)
