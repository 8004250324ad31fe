"""
Simulator - the single owner of all mutable state.

Every change goes through dispatch(): a user action or an engine event is
applied to the owning store and the outbound effects are returned for the
driver (SimulatorLoop) to perform. No store is mutated from anywhere else.

Flow:
    SetAnswer / ImportSituation / ResetSituation
        -> SituationStore mutation
        -> [SituationChanged(snapshot), RememberSituation(snapshot)]
    SituationUpdatedAck (engine took the new situation)
        -> [EvaluateAll(every rule)]
    EvaluatedOne / EvaluatedMany
        -> EvaluationCache merge, decode errors into the error slot
"""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Tuple

from rule_simulator.bridge.messages import (
    Effect,
    EvaluateAll,
    EvaluatedMany,
    EvaluatedOne,
    ImportSituation,
    Message,
    RememberSituation,
    ResetSituation,
    SetAnswer,
    SituationChanged,
    SituationUpdatedAck,
    ToggleCategory,
)
from rule_simulator.errors import AppError, DecodeError, InvalidSituationError, SimulatorError
from rule_simulator.rules import RuleName, RuleSet
from rule_simulator.state.categories import OpenedCategories
from rule_simulator.state.evaluations import EvaluationCache
from rule_simulator.state.situation import SituationStore, encode_situation, parse_situation_file
from rule_simulator.ui_config import UiConfig
from rule_simulator.values import NodeValue

logger = logging.getLogger(__name__)


class Simulator:
    """Application state plus its transition function."""

    def __init__(
        self,
        rules: RuleSet,
        ui: UiConfig,
        situation: Optional[Mapping[RuleName, NodeValue]] = None,
    ):
        self.rules = rules
        self.ui = ui
        self.situation = SituationStore(situation)
        self.evaluations = EvaluationCache(rules)
        self.opened = OpenedCategories()
        self.error: Optional[AppError] = None

    @property
    def rule_names(self) -> Tuple[RuleName, ...]:
        return tuple(self.rules.names)

    @property
    def is_loaded(self) -> bool:
        """True once the engine has answered at least once."""
        return self.evaluations.is_loaded

    def start(self) -> List[Effect]:
        """Effects issued once at startup: hand over the situation, evaluate everything."""
        return [
            SituationChanged(situation=encode_situation(self.situation.snapshot())),
            EvaluateAll(names=self.rule_names),
        ]

    def record_error(self, error: SimulatorError) -> None:
        """Single error slot; the last error replaces the previous one."""
        self.error = AppError.from_exception(error)
        logger.warning("%s: %s", self.error.kind.value, self.error.message)

    def dispatch(self, message: Message) -> List[Effect]:
        """Apply one message and return the outbound effects it causes."""
        logger.debug("Dispatching %s", type(message).__name__)

        match message:
            case SetAnswer(name=name, value=value):
                if name not in self.rules:
                    self.record_error(DecodeError(f"Answer for unknown rule '{name}'"))
                    return []
                self.situation.set_answer(name, value)
                return self._situation_effects()

            case ImportSituation(content=content):
                try:
                    imported = parse_situation_file(content, self.rules)
                except InvalidSituationError as e:
                    self.record_error(e)
                    return []
                self.situation.replace_all(imported)
                logger.info("Imported situation with %d answers", len(imported))
                return self._situation_effects()

            case ResetSituation():
                self.situation.replace_all({})
                return self._situation_effects()

            case ToggleCategory(category=category):
                self.opened.toggle(category)
                return []

            case EvaluatedOne(name=name, evaluation=raw):
                try:
                    self.evaluations.merge_one(name, raw)
                except DecodeError as e:
                    self.record_error(e)
                return []

            case EvaluatedMany(entries=entries):
                try:
                    errors = self.evaluations.merge_many(entries)
                except DecodeError as e:
                    self.record_error(e)
                    return []
                if errors:
                    self.record_error(errors[-1])
                return []

            case SituationUpdatedAck():
                return [EvaluateAll(names=self.rule_names)]

        raise TypeError(f"Unsupported message: {message!r}")

    def _situation_effects(self) -> List[Effect]:
        snapshot = self.situation.snapshot()
        return [
            SituationChanged(situation=encode_situation(snapshot)),
            RememberSituation(situation=encode_situation(snapshot)),
        ]
