"""
Pytest fixtures shared by the simulator tests.
Provides the test rule model, a simulator over it and a fake engine.
"""

import shutil
from pathlib import Path

import pytest

from rule_simulator.rules import RuleSet, parse_rules
from rule_simulator.runtime.simulator import Simulator
from rule_simulator.ui_config import UiConfig, parse_ui_config
from rule_simulator.values import Num
from tests.fixtures.model_fixtures import MODEL_DIR, RAW_RULES, RAW_UI, FakeEngine, evaluation_json


@pytest.fixture
def rules() -> RuleSet:
    return parse_rules(RAW_RULES)


@pytest.fixture
def ui() -> UiConfig:
    return parse_ui_config(RAW_UI)


@pytest.fixture
def simulator(rules, ui) -> Simulator:
    return Simulator(rules, ui)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine(respond=lambda situation: [["bilan", evaluation_json(Num(200.0))]])


@pytest.fixture
def model_dir(tmp_path) -> Path:
    """Copy of the bundled model plus a config file pointing at it."""
    shutil.copytree(MODEL_DIR, tmp_path / "model")
    (tmp_path / "simulator.yaml").write_text(
        "rules_path: model/rules.yaml\n"
        "ui_path: model/ui.yaml\n"
        "situation_path: output/situation.json\n",
        encoding="utf-8",
    )
    return tmp_path
