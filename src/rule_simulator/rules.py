"""
Rule metadata and rule-name addressing.

Rules are loaded once at startup from a publicodes-style YAML file:

    transport . voiture . km:
      titre: Distance parcourue en voiture
      question: Combien de kilomètres parcourez-vous en voiture ?
      unité: km
      par défaut: 1000

    transport . mode:
      question: Quel est votre mode de transport principal ?
      une possibilité:
        possibilités:
          - voiture
          - train

The metadata is immutable for the process lifetime.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rule_simulator.errors import DecodeError

logger = logging.getLogger(__name__)

RuleName = str

SEPARATOR = " . "


def split_name(name: RuleName) -> List[str]:
    return name.split(SEPARATOR)


def parent(name: RuleName) -> Optional[RuleName]:
    """Return the enclosing namespace of a rule, None for a root rule."""
    segments = split_name(name)
    if len(segments) == 1:
        return None
    return SEPARATOR.join(segments[:-1])


def namespace_root(name: RuleName) -> RuleName:
    """Return the top-level namespace (the category) of a rule."""
    return split_name(name)[0]


def last_segment(name: RuleName) -> str:
    return split_name(name)[-1]


def join(*segments: str) -> RuleName:
    return SEPARATOR.join(segments)


class OneOf(BaseModel):
    """Fixed enumeration of string possibilities."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    possibilities: Tuple[str, ...] = Field(..., alias="possibilités", min_length=1)
    mandatory: bool = Field(True, alias="choix obligatoire")

    @field_validator("mandatory", mode="before")
    @classmethod
    def parse_french_bool(cls, v: Any) -> Any:
        """Accept publicodes' oui/non spelling."""
        if isinstance(v, str) and v.lower() in ("oui", "non"):
            return v.lower() == "oui"
        return v


class RawRule(BaseModel):
    """Static metadata of one rule."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    title: Optional[str] = Field(None, alias="titre")
    unit: Optional[str] = Field(None, alias="unité")
    description: Optional[str] = None
    question: Optional[str] = None
    default: Any = Field(None, alias="par défaut")
    formula: Any = Field(None, alias="formule")
    one_of: Optional[OneOf] = Field(None, alias="une possibilité")
    applicable_if: Any = Field(None, alias="applicable si")
    not_applicable_if: Any = Field(None, alias="non applicable si")

    @property
    def possibilities(self) -> Optional[Tuple[str, ...]]:
        """Declared one-of possibilities, either at top level or inside the formula."""
        if self.one_of is not None:
            return self.one_of.possibilities
        if isinstance(self.formula, dict) and "une possibilité" in self.formula:
            return OneOf.model_validate(self.formula["une possibilité"]).possibilities
        return None

    @property
    def has_formula(self) -> bool:
        """Rules without a computing formula are inputs (questions)."""
        if self.formula is None:
            return False
        if isinstance(self.formula, dict) and set(self.formula) == {"une possibilité"}:
            return False
        return True


class RuleSet:
    """
    Immutable set of rules keyed by RuleName.

    The (rule, possibility) -> title lookup table used by choice controls is
    resolved once here, not per render.
    """

    def __init__(self, rules: Mapping[RuleName, RawRule]):
        self._rules: Mapping[RuleName, RawRule] = MappingProxyType(dict(rules))
        self._possibility_titles: Dict[Tuple[RuleName, str], str] = {}

        for name, rule in self._rules.items():
            for possibility in rule.possibilities or ():
                option_rule = self._rules.get(join(name, possibility))
                title = option_rule.title if option_rule and option_rule.title else possibility
                self._possibility_titles[(name, possibility)] = title

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __iter__(self) -> Iterator[RuleName]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def get(self, name: RuleName) -> Optional[RawRule]:
        return self._rules.get(name)

    def __getitem__(self, name: RuleName) -> RawRule:
        return self._rules[name]

    @property
    def names(self) -> List[RuleName]:
        return list(self._rules)

    def title(self, name: RuleName) -> str:
        """Rule title, falling back to the last segment of its name."""
        rule = self._rules.get(name)
        if rule is not None and rule.title:
            return rule.title
        return last_segment(name)

    def possibility_title(self, name: RuleName, possibility: str) -> str:
        return self._possibility_titles.get((name, possibility), possibility)


def parse_rules(raw: Any) -> RuleSet:
    """
    Validate a raw mapping of rule definitions.

    Raises:
        DecodeError: If the mapping or any rule body has the wrong shape
    """
    if not isinstance(raw, dict):
        raise DecodeError("Rules must be a mapping of rule names to definitions")

    rules: Dict[RuleName, RawRule] = {}
    for name, body in raw.items():
        if not isinstance(name, str) or not name.strip():
            raise DecodeError(f"Invalid rule name: {name!r}")
        # Namespace-only rules may have no body at all
        if body is None:
            body = {}
        elif not isinstance(body, dict):
            # Shorthand "name: <expression>" means a formula
            body = {"formule": body}
        try:
            rule = RawRule.model_validate(body)
            _ = rule.possibilities  # a one-of nested in the formula is validated lazily
        except ValidationError as e:
            raise DecodeError(f"Invalid rule '{name}': {e}") from e
        rules[name] = rule

    logger.debug("Parsed %d rules", len(rules))
    return RuleSet(rules)


def load_rules(file_path: str | Path) -> RuleSet:
    """
    Load and validate a rules YAML file.

    Raises:
        DecodeError: If the file cannot be read or does not describe rules
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError:
        raise DecodeError(f"Rules file not found: {file_path}")
    except yaml.YAMLError as e:
        raise DecodeError(f"Invalid YAML in rules file: {e}")

    return parse_rules(raw)
