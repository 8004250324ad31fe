"""Asynchronous boundary to the rule engine."""

from rule_simulator.bridge.engine import EngineBridge, IEngine
from rule_simulator.bridge.messages import (
    Effect,
    EngineEvent,
    EngineRequest,
    EvaluateAll,
    EvaluatedMany,
    EvaluatedOne,
    ImportSituation,
    Message,
    MessageType,
    RememberSituation,
    ResetSituation,
    SetAnswer,
    SituationChanged,
    SituationUpdatedAck,
    ToggleCategory,
    UserAction,
)

__all__ = [
    "Effect",
    "EngineBridge",
    "EngineEvent",
    "EngineRequest",
    "EvaluateAll",
    "EvaluatedMany",
    "EvaluatedOne",
    "IEngine",
    "ImportSituation",
    "Message",
    "MessageType",
    "RememberSituation",
    "ResetSituation",
    "SetAnswer",
    "SituationChanged",
    "SituationUpdatedAck",
    "ToggleCategory",
    "UserAction",
]
