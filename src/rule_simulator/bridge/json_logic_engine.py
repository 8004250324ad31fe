"""
Reference engine - evaluates rule formulas with the json-logic library.

Formulas are standard JSON Logic where {"var": "<rule name>"} references
another rule. Rule names contain dots and spaces, which json-logic's own
"var" would split on, so references are resolved here and substituted by
the referenced rule's value before the expression is handed to jsonLogic.

Semantics:
- An answer in the situation overrides the rule's formula.
- A question (no formula) falls back to its "par défaut" value and lists
  itself in missingVariables while unanswered.
- missingVariables propagate through references.
- A rule whose "applicable si" is false or "non applicable si" is true, or
  whose enclosing namespace is not applicable, evaluates to Empty with
  isNullable=True. Referencing it from a formula counts as 0.
- Reference cycles and json-logic failures evaluate to Empty (logged).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

try:
    from json_logic import jsonLogic
except ImportError:
    raise ImportError(
        "json-logic library not found. Install with: pip install json-logic-qubit"
    )

from rule_simulator.bridge.engine import Emit, IEngine
from rule_simulator.bridge.messages import (
    EngineRequest,
    EvaluateAll,
    EvaluatedMany,
    EvaluatedOne,
    SituationChanged,
    SituationUpdatedAck,
)
from rule_simulator.rules import RuleName, RuleSet, parent
from rule_simulator.state.evaluations import Evaluation
from rule_simulator.state.situation import Situation, decode_situation
from rule_simulator.values import EMPTY, Empty, NodeValue, from_python, to_python

logger = logging.getLogger(__name__)

_NOT_APPLICABLE = Evaluation(node_value=EMPTY, missing_variables=(), is_nullable=True)


class _EvaluationPass:
    """One consistent evaluation of the rule graph against a fixed situation."""

    def __init__(self, rules: RuleSet, situation: Mapping[RuleName, NodeValue]):
        self._rules = rules
        self._situation = situation
        self._memo: Dict[RuleName, Evaluation] = {}
        self._applicability: Dict[RuleName, Tuple[bool, Tuple[RuleName, ...]]] = {}
        self._visiting: Set[RuleName] = set()

    def evaluate(self, name: RuleName) -> Evaluation:
        if name in self._memo:
            return self._memo[name]
        if name in self._visiting:
            logger.warning("Reference cycle through '%s'", name)
            return Evaluation(node_value=EMPTY)

        self._visiting.add(name)
        try:
            evaluation = self._evaluate(name)
        finally:
            self._visiting.discard(name)
        self._memo[name] = evaluation
        return evaluation

    def _evaluate(self, name: RuleName) -> Evaluation:
        rule = self._rules.get(name)
        if rule is None:
            logger.warning("Reference to unknown rule '%s'", name)
            return Evaluation(node_value=EMPTY)

        applicable, condition_missing = self._is_applicable(name)
        if not applicable:
            return _NOT_APPLICABLE

        answer = self._situation.get(name)
        if answer is not None and not isinstance(answer, Empty):
            return Evaluation(node_value=answer)

        if not rule.has_formula:
            is_question = rule.question is not None or rule.possibilities is not None or rule.default is not None
            value = self._default(name, rule.default)
            missing = (name,) if is_question and name not in self._situation else ()
            return Evaluation(node_value=value, missing_variables=_dedupe(condition_missing + missing))

        expression, missing = self._substitute(rule.formula)
        value = self._run(name, expression)
        return Evaluation(node_value=value, missing_variables=_dedupe(condition_missing + missing))

    def _is_applicable(self, name: RuleName) -> Tuple[bool, Tuple[RuleName, ...]]:
        if name in self._applicability:
            return self._applicability[name]

        missing: Tuple[RuleName, ...] = ()
        applicable = True

        enclosing = parent(name)
        if enclosing is not None and enclosing in self._rules:
            applicable, missing = self._is_applicable(enclosing)

        rule = self._rules[name]
        if applicable and rule.applicable_if is not None:
            expression, condition_missing = self._substitute(rule.applicable_if)
            missing += condition_missing
            applicable = bool(self._run_condition(name, expression))
        if applicable and rule.not_applicable_if is not None:
            expression, condition_missing = self._substitute(rule.not_applicable_if)
            missing += condition_missing
            applicable = not self._run_condition(name, expression)

        self._applicability[name] = (applicable, missing)
        return applicable, missing

    def _substitute(self, expression: Any) -> Tuple[Any, Tuple[RuleName, ...]]:
        """Replace every rule reference by its value; collect missing variables."""
        missing: List[RuleName] = []

        def walk(node: Any) -> Any:
            if isinstance(node, list):
                return [walk(item) for item in node]
            if not isinstance(node, dict):
                return node
            if len(node) == 1 and "var" in node:
                ref = node["var"]
                if isinstance(ref, list):
                    ref = ref[0] if ref else ""
                referenced = self.evaluate(str(ref))
                missing.extend(referenced.missing_variables)
                if referenced.is_nullable:
                    return 0
                return to_python(referenced.node_value)
            return {op: walk(args) for op, args in node.items()}

        return walk(expression), tuple(missing)

    def _run(self, name: RuleName, expression: Any) -> NodeValue:
        try:
            return from_python(jsonLogic(expression, {}))
        except Exception as e:
            logger.warning("Rule '%s' could not be evaluated: %s", name, e)
            return EMPTY

    def _run_condition(self, name: RuleName, expression: Any) -> bool:
        try:
            return bool(jsonLogic(expression, {}))
        except Exception as e:
            logger.warning("Applicability of '%s' could not be evaluated: %s", name, e)
            return False

    def _default(self, name: RuleName, default: Any) -> NodeValue:
        if default is None:
            return EMPTY
        if isinstance(default, (dict, list)):
            expression, _ = self._substitute(default)
            return self._run(name, expression)
        try:
            return from_python(default)
        except TypeError:
            logger.warning("Unsupported default for '%s': %r", name, default)
            return EMPTY


class JsonLogicEngine(IEngine):
    """
    In-process engine over a RuleSet.

    Holds the last situation it was sent. On SituationChanged it stores the
    new situation and acknowledges; on EvaluateAll it evaluates every
    requested rule against the stored situation and emits the results,
    either as one EvaluatedMany batch or, with stream_results, as one
    EvaluatedOne per rule.
    """

    def __init__(self, rules: RuleSet, stream_results: bool = False):
        self._rules = rules
        self._stream_results = stream_results
        self._situation: Situation = {}

    @property
    def situation(self) -> Mapping[RuleName, NodeValue]:
        return dict(self._situation)

    def evaluate(self, names: List[RuleName]) -> List[Tuple[RuleName, Evaluation]]:
        """Evaluate rules synchronously against the current situation."""
        evaluation_pass = _EvaluationPass(self._rules, self._situation)
        return [(name, evaluation_pass.evaluate(name)) for name in names]

    async def handle(self, request: EngineRequest, emit: Emit) -> None:
        if isinstance(request, SituationChanged):
            self._situation = decode_situation(request.situation, self._rules)
            logger.debug("Engine situation updated (%d answers)", len(self._situation))
            emit(SituationUpdatedAck())
            return

        if isinstance(request, EvaluateAll):
            results = self.evaluate(list(request.names))
            if self._stream_results:
                for name, evaluation in results:
                    emit(EvaluatedOne(name=name, evaluation=evaluation.to_json()))
                    # yield so other requests can interleave
                    await asyncio.sleep(0)
            else:
                emit(EvaluatedMany(entries=[[name, evaluation.to_json()] for name, evaluation in results]))
            return

        raise TypeError(f"Unsupported engine request: {request!r}")


def _dedupe(names: Tuple[RuleName, ...]) -> Tuple[RuleName, ...]:
    return tuple(dict.fromkeys(names))
