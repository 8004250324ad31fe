"""Simulator configuration management."""

from rule_simulator.config.settings import (
    SimulatorConfig,
    load_config,
)

__all__ = [
    "SimulatorConfig",
    "load_config",
]
