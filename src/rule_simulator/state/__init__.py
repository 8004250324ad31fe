"""Stores owned by the simulator control loop."""

from rule_simulator.state.categories import OpenedCategories
from rule_simulator.state.evaluations import Evaluation, EvaluationCache, decode_evaluation
from rule_simulator.state.situation import (
    Situation,
    SituationStore,
    decode_situation,
    encode_situation,
    parse_situation_file,
    serialize_situation,
)

__all__ = [
    "Evaluation",
    "EvaluationCache",
    "OpenedCategories",
    "Situation",
    "SituationStore",
    "decode_evaluation",
    "decode_situation",
    "encode_situation",
    "parse_situation_file",
    "serialize_situation",
]
