"""Evaluation cache: the latest engine result per rule.

Entries are replaced whole, never merged field by field. Whatever channel a
result arrives on (single or batch), the last one applied for a key wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationError

from rule_simulator.errors import DecodeError
from rule_simulator.rules import RuleName, RuleSet
from rule_simulator.values import NodeValue, decode_value, encode_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Evaluation:
    """Engine result for one rule at one point in time."""

    node_value: NodeValue
    missing_variables: Tuple[RuleName, ...] = field(default_factory=tuple)
    is_nullable: bool = False

    @property
    def is_partial(self) -> bool:
        """True when the engine could not resolve some upstream rules."""
        return bool(self.missing_variables)

    def to_json(self) -> Dict[str, Any]:
        return {
            "nodeValue": encode_value(self.node_value),
            "missingVariables": list(self.missing_variables),
            "isNullable": self.is_nullable,
        }


class _EvaluationJSON(BaseModel):
    model_config = ConfigDict(extra="forbid")

    node_value: Any = Field(..., alias="nodeValue")
    missing_variables: List[StrictStr] = Field(..., alias="missingVariables")
    is_nullable: StrictBool = Field(..., alias="isNullable")


def decode_evaluation(raw: Any) -> Evaluation:
    """
    Decode an EvaluationJSON payload.

    Raises:
        DecodeError: If the payload does not have the evaluation shape
    """
    try:
        parsed = _EvaluationJSON.model_validate(raw)
    except ValidationError as e:
        raise DecodeError(f"Invalid evaluation payload: {e.error_count()} validation error(s)") from e

    return Evaluation(
        node_value=decode_value(parsed.node_value),
        missing_variables=tuple(parsed.missing_variables),
        is_nullable=parsed.is_nullable,
    )


class EvaluationCache:
    """
    Latest Evaluation per rule.

    A rule with no entry has not been answered by the engine yet; callers
    must treat it as absent, never as a default value.
    """

    def __init__(self, rules: Optional[RuleSet] = None):
        self._rules = rules
        self._entries: Dict[RuleName, Evaluation] = {}

    def apply_one(self, name: RuleName, evaluation: Evaluation) -> None:
        self._entries[name] = evaluation

    def apply_many(self, entries: Iterable[Tuple[RuleName, Evaluation]]) -> None:
        """Apply in order; a key repeated within the batch keeps its last entry."""
        for name, evaluation in entries:
            self.apply_one(name, evaluation)

    def merge_one(self, name: Any, raw: Any) -> None:
        """
        Decode and apply one raw engine payload.

        Raises:
            DecodeError: The entry is left untouched
        """
        self.apply_one(self._check_name(name), decode_evaluation(raw))

    def merge_many(self, entries: Any) -> List[DecodeError]:
        """
        Decode and apply a raw batch, entry by entry.

        A bad entry is skipped without affecting the others. Returns the
        decode errors encountered, in batch order.

        Raises:
            DecodeError: If the batch itself is not a list of pairs
        """
        if not isinstance(entries, (list, tuple)):
            raise DecodeError(f"Evaluation batch must be a list, got {type(entries).__name__}")

        errors: List[DecodeError] = []
        for entry in entries:
            try:
                if not isinstance(entry, (list, tuple)) or len(entry) != 2:
                    raise DecodeError(f"Evaluation batch entry must be a [name, evaluation] pair: {entry!r}")
                name, raw = entry
                self.merge_one(name, raw)
            except DecodeError as e:
                logger.warning("Skipping evaluation entry: %s", e)
                errors.append(e)
        return errors

    def get(self, name: RuleName) -> Optional[Evaluation]:
        return self._entries.get(name)

    def value(self, name: RuleName) -> Optional[NodeValue]:
        evaluation = self._entries.get(name)
        return evaluation.node_value if evaluation is not None else None

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def is_loaded(self) -> bool:
        """True once the engine has answered for at least one rule."""
        return bool(self._entries)

    def _check_name(self, name: Any) -> RuleName:
        if not isinstance(name, str):
            raise DecodeError(f"Evaluation rule name must be a string, got {name!r}")
        if self._rules is not None and name not in self._rules:
            raise DecodeError(f"Evaluation for unknown rule '{name}'")
        return name
