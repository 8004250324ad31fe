"""Centralized initialization for all rule_simulator entry points.

Loads the rule metadata and the UI layout named by the configuration,
restores the remembered situation and wires the reference engine. The CLI
and the Streamlit app both start from build_session().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from rule_simulator.bridge.json_logic_engine import JsonLogicEngine
from rule_simulator.config.settings import SimulatorConfig
from rule_simulator.rules import load_rules
from rule_simulator.runtime.persistence import (
    FileSituationPersistence,
    SituationPersistence,
    restore_situation,
)
from rule_simulator.runtime.simulator import Simulator
from rule_simulator.ui_config import load_ui_config

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Everything one simulator session needs."""

    config: SimulatorConfig
    simulator: Simulator
    engine: JsonLogicEngine
    persistence: SituationPersistence


def build_session(
    config: SimulatorConfig,
    persistence: Optional[SituationPersistence] = None,
) -> Session:
    """
    Build a session from configuration.

    Raises:
        DecodeError: If the rules or the UI layout cannot be loaded
    """
    rules = load_rules(config.rules_path)
    ui = load_ui_config(config.ui_path, rules)
    logger.info(f"Loaded {len(rules)} rules, {len(ui.categories)} categories")

    if persistence is None:
        persistence = FileSituationPersistence(config.situation_path)

    situation, error = restore_situation(persistence, rules)
    simulator = Simulator(rules, ui, situation)
    simulator.error = error

    engine = JsonLogicEngine(rules, stream_results=config.stream_results)
    return Session(config=config, simulator=simulator, engine=engine, persistence=persistence)
