"""Typed messages crossing the simulator's boundaries.

Three families:
- Outbound requests, written by the core to the engine channel
  (EvaluateAll, SituationChanged) or to the persistence collaborator
  (RememberSituation).
- Inbound engine events (EvaluatedOne, EvaluatedMany, SituationUpdatedAck).
  Payloads are kept raw; decoding happens when the core applies them.
- User actions (SetAnswer, ImportSituation, ResetSituation, ToggleCategory).

All messages are frozen dataclasses; there are no correlation ids.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple, Union

from rule_simulator.rules import RuleName
from rule_simulator.values import NodeValue


class MessageType(str, Enum):
    EVALUATE_ALL = "evaluate_all"
    SITUATION_CHANGED = "situation_changed"
    REMEMBER_SITUATION = "remember_situation"
    EVALUATED_ONE = "evaluated_one"
    EVALUATED_MANY = "evaluated_many"
    SITUATION_UPDATED_ACK = "situation_updated_ack"
    SET_ANSWER = "set_answer"
    IMPORT_SITUATION = "import_situation"
    RESET_SITUATION = "reset_situation"
    TOGGLE_CATEGORY = "toggle_category"


# -- Outbound --

@dataclass(frozen=True)
class EvaluateAll:
    """Ask the engine to recompute every listed rule."""

    names: Tuple[RuleName, ...]
    type: MessageType = field(default=MessageType.EVALUATE_ALL, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "names": list(self.names)}


@dataclass(frozen=True)
class SituationChanged:
    """Full situation snapshot (tagged JSON values) for the next recomputation."""

    situation: Dict[str, Any]
    type: MessageType = field(default=MessageType.SITUATION_CHANGED, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "situation": self.situation}


@dataclass(frozen=True)
class RememberSituation:
    """Ask the host to persist the situation snapshot."""

    situation: Dict[str, Any]
    type: MessageType = field(default=MessageType.REMEMBER_SITUATION, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "situation": self.situation}


# -- Inbound engine events --

@dataclass(frozen=True)
class EvaluatedOne:
    name: Any
    evaluation: Any
    type: MessageType = field(default=MessageType.EVALUATED_ONE, init=False)


@dataclass(frozen=True)
class EvaluatedMany:
    entries: Any
    type: MessageType = field(default=MessageType.EVALUATED_MANY, init=False)


@dataclass(frozen=True)
class SituationUpdatedAck:
    type: MessageType = field(default=MessageType.SITUATION_UPDATED_ACK, init=False)


# -- User actions --

@dataclass(frozen=True)
class SetAnswer:
    name: RuleName
    value: NodeValue
    type: MessageType = field(default=MessageType.SET_ANSWER, init=False)


@dataclass(frozen=True)
class ImportSituation:
    """Raw content of a user-selected situation file."""

    content: Union[str, bytes]
    type: MessageType = field(default=MessageType.IMPORT_SITUATION, init=False)


@dataclass(frozen=True)
class ResetSituation:
    type: MessageType = field(default=MessageType.RESET_SITUATION, init=False)


@dataclass(frozen=True)
class ToggleCategory:
    category: str
    type: MessageType = field(default=MessageType.TOGGLE_CATEGORY, init=False)


EngineRequest = Union[EvaluateAll, SituationChanged]
Effect = Union[EvaluateAll, SituationChanged, RememberSituation]
EngineEvent = Union[EvaluatedOne, EvaluatedMany, SituationUpdatedAck]
UserAction = Union[SetAnswer, ImportSituation, ResetSituation, ToggleCategory]
Message = Union[EngineEvent, UserAction]
