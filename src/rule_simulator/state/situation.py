"""Situation store: the user's explicit answers, keyed by rule name.

Absence of a key means "no explicit answer, use the engine's default".
The store is only mutated by a single upsert or a full replacement; an
import never merges with the previous situation.
"""

from __future__ import annotations

import json
import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from rule_simulator.errors import DecodeError, InvalidSituationError
from rule_simulator.rules import RuleName, RuleSet
from rule_simulator.values import NodeValue, decode_value, encode_value

logger = logging.getLogger(__name__)

Situation = Dict[RuleName, NodeValue]


class SituationStore:
    """Mapping RuleName -> NodeValue of explicit answers."""

    def __init__(self, initial: Optional[Mapping[RuleName, NodeValue]] = None):
        self._values: Situation = dict(initial or {})

    def set_answer(self, name: RuleName, value: NodeValue) -> None:
        """Upsert one answer. The value's shape is the caller's responsibility."""
        self._values[name] = value

    def replace_all(self, new_situation: Mapping[RuleName, NodeValue]) -> None:
        """Discard every answer and take new_situation as is."""
        self._values = dict(new_situation)

    def snapshot(self) -> Mapping[RuleName, NodeValue]:
        """Read-only copy of the current answers."""
        return MappingProxyType(dict(self._values))

    def get(self, name: RuleName) -> Optional[NodeValue]:
        return self._values.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)


def encode_situation(situation: Mapping[RuleName, NodeValue]) -> Dict[str, Any]:
    """Situation -> JSON-ready mapping of tagged values."""
    return {name: encode_value(value) for name, value in situation.items()}


def decode_situation(raw: Any, rules: Optional[RuleSet] = None) -> Situation:
    """
    JSON mapping -> Situation.

    Args:
        raw: Parsed JSON object {"<rule>": NodeValueJSON, ...}
        rules: When given, every key must be a known rule

    Raises:
        DecodeError: If raw is not a mapping of known rules to tagged values
    """
    if not isinstance(raw, dict):
        raise DecodeError(f"Situation must be a JSON object, got {type(raw).__name__}")

    situation: Situation = {}
    for name, value in raw.items():
        if rules is not None and name not in rules:
            raise DecodeError(f"Unknown rule in situation: '{name}'")
        situation[name] = decode_value(value)
    return situation


def serialize_situation(situation: Mapping[RuleName, NodeValue]) -> str:
    """Export format: the situation mapping itself, no wrapper."""
    return json.dumps(encode_situation(situation), indent=2, ensure_ascii=False)


def parse_situation_file(text: str | bytes, rules: Optional[RuleSet] = None) -> Situation:
    """
    Parse an imported situation file.

    Raises:
        InvalidSituationError: If the content is not valid JSON or not a situation
    """
    try:
        if isinstance(text, bytes):
            text = text.decode("utf-8-sig")
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidSituationError(f"Invalid situation file: malformed JSON ({e})") from e

    try:
        return decode_situation(raw, rules)
    except DecodeError as e:
        raise InvalidSituationError(f"Invalid situation file: {e}") from e
