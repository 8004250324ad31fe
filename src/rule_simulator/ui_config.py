"""
Static UI layout: category order, question groups and sub-categories.

Expected YAML structure:

    total: bilan
    catégories:
      - transport
      - alimentation
    questions:
      transport:
        - [transport . mode, transport . voiture . km]
        - [transport . parts totales]
    sous-catégories:
      transport:
        - transport . voiture
        - transport . train
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rule_simulator.errors import DecodeError
from rule_simulator.rules import RuleName, RuleSet


class UiConfig(BaseModel):
    """Category/question index, immutable after load."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    total: RuleName = Field(..., description="Grand total rule, denominator of category percentages")
    categories: Tuple[str, ...] = Field(..., alias="catégories")
    questions: Dict[str, Tuple[Tuple[RuleName, ...], ...]] = Field(default_factory=dict)
    subcategories: Dict[str, Tuple[RuleName, ...]] = Field(
        default_factory=dict, alias="sous-catégories"
    )

    def question_groups(self, category: str) -> Tuple[Tuple[RuleName, ...], ...]:
        return self.questions.get(category, ())

    def subcategories_of(self, category: str) -> Tuple[RuleName, ...]:
        return self.subcategories.get(category, ())

    def referenced_rules(self) -> List[RuleName]:
        """Every rule name the layout points at, in declaration order."""
        names: List[RuleName] = [self.total, *self.categories]
        for groups in self.questions.values():
            for group in groups:
                names.extend(group)
        for subs in self.subcategories.values():
            names.extend(subs)
        return names

    def check_against(self, rules: RuleSet) -> None:
        """
        Ensure the layout only references known rules.

        Raises:
            DecodeError: Listing the unknown rule names
        """
        unknown = sorted({name for name in self.referenced_rules() if name not in rules})
        if unknown:
            raise DecodeError(f"UI config references unknown rules: {', '.join(unknown)}")


def parse_ui_config(raw: Any) -> UiConfig:
    if not isinstance(raw, dict):
        raise DecodeError("UI config must be a mapping")
    try:
        return UiConfig.model_validate(raw)
    except ValidationError as e:
        raise DecodeError(f"Invalid UI config: {e}") from e


def load_ui_config(file_path: str | Path, rules: RuleSet | None = None) -> UiConfig:
    """
    Load and validate a UI config YAML file.

    Args:
        file_path: Path to the UI YAML file
        rules: When given, the layout is checked to reference known rules only

    Raises:
        DecodeError: If the file cannot be loaded or is invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError:
        raise DecodeError(f"UI config file not found: {file_path}")
    except yaml.YAMLError as e:
        raise DecodeError(f"Invalid YAML in UI config file: {e}")

    ui = parse_ui_config(raw)
    if rules is not None:
        ui.check_against(rules)
    return ui
