"""Tests for the bundled json-logic reference engine."""

import pytest

from rule_simulator.bridge.json_logic_engine import JsonLogicEngine
from rule_simulator.bridge.messages import (
    EvaluateAll,
    EvaluatedMany,
    EvaluatedOne,
    SituationChanged,
    SituationUpdatedAck,
)
from rule_simulator.errors import DecodeError
from rule_simulator.rules import load_rules, parse_rules
from rule_simulator.state.evaluations import decode_evaluation
from rule_simulator.state.situation import encode_situation
from rule_simulator.values import EMPTY, Boolean, Num, Str
from tests.fixtures.model_fixtures import MODEL_DIR


def _evaluate(engine, *names):
    return dict(engine.evaluate(list(names)))


class TestEvaluation:
    """Formula semantics."""

    def test_defaults_and_missing_variables(self, rules):
        results = _evaluate(JsonLogicEngine(rules), "bilan", "transport . distance", "alimentation . lieu")

        assert results["bilan"].node_value.value == pytest.approx(73.0)
        assert results["bilan"].missing_variables == ("transport . distance",)
        assert results["transport . distance"].node_value == Num(100)
        assert results["transport . distance"].is_partial
        assert results["alimentation . lieu"].node_value == EMPTY

    def test_choice_default(self, rules):
        results = _evaluate(JsonLogicEngine(rules), "alimentation . régime")
        assert results["alimentation . régime"].node_value == Str("carné")

    def test_answer_overrides_and_clears_missing(self, rules):
        engine = JsonLogicEngine(rules)
        engine._situation = {"transport . distance": Num(1000)}
        results = _evaluate(engine, "bilan", "transport . voiture")
        assert results["transport . voiture"].node_value.value == pytest.approx(200.0)
        assert results["bilan"].missing_variables == ()

    def test_answer_overrides_formula(self, rules):
        engine = JsonLogicEngine(rules)
        engine._situation = {"alimentation": Num(10)}
        assert _evaluate(engine, "alimentation")["alimentation"].node_value == Num(10)

    def test_empty_answer_falls_back_to_default(self, rules):
        engine = JsonLogicEngine(rules)
        engine._situation = {"transport . distance": EMPTY}
        result = _evaluate(engine, "transport . distance")["transport . distance"]
        assert result.node_value == Num(100)
        # An explicit (empty) answer is not missing
        assert result.missing_variables == ()

    def test_non_applicable_rule_is_nullable_and_counts_as_zero(self):
        rules = parse_rules(
            {
                "total": {"formule": {"+": [{"var": "a"}, {"var": "b"}]}},
                "a": 5,
                "b": {"non applicable si": True, "formule": 7},
                "b . part": {"question": "?", "par défaut": 3},
            }
        )
        results = _evaluate(JsonLogicEngine(rules), "total", "b", "b . part")
        assert results["total"].node_value == Num(5)
        assert results["b"].is_nullable
        assert results["b"].node_value == EMPTY
        # Inherited from the enclosing namespace
        assert results["b . part"].is_nullable

    def test_applicable_si_on_boolean_answer(self):
        rules = parse_rules(
            {
                "chauffage": {"question": "?", "par défaut": False},
                "chauffage . émissions": {"applicable si": {"var": "chauffage"}, "formule": 150},
            }
        )
        engine = JsonLogicEngine(rules)
        assert _evaluate(engine, "chauffage . émissions")["chauffage . émissions"].is_nullable
        engine._situation = {"chauffage": Boolean(True)}
        assert _evaluate(engine, "chauffage . émissions")["chauffage . émissions"].node_value == Num(150)

    @pytest.mark.parametrize(
        "formula,expected",
        [
            ({"+": [1, 2]}, Num(3)),
            ({"*": [{"var": "a"}, 0.5]}, Num(2)),
            ({"/": [{"var": "a"}, 8]}, Num(0.5)),
            ({"if": [{"<": [{"var": "a"}, 5]}, 1, 2]}, Num(1)),
            ({"==": [{"var": "a"}, 4]}, Boolean(True)),
        ],
    )
    def test_operators_evaluate(self, formula, expected):
        rules = parse_rules({"a": 4, "b": {"formule": formula}})
        assert _evaluate(JsonLogicEngine(rules), "b")["b"].node_value == expected

    def test_cycle_evaluates_to_empty(self):
        rules = parse_rules({"a": {"formule": {"var": "b"}}, "b": {"formule": {"var": "a"}}})
        assert _evaluate(JsonLogicEngine(rules), "a")["a"].node_value == EMPTY

    def test_failing_expression_evaluates_to_empty(self):
        rules = parse_rules({"a": {"formule": {"no such op": [1, 2]}}})
        assert _evaluate(JsonLogicEngine(rules), "a")["a"].node_value == EMPTY

    def test_bundled_model_defaults(self):
        engine = JsonLogicEngine(load_rules(MODEL_DIR / "rules.yaml"))
        results = _evaluate(
            engine, "bilan", "transport", "transport . avion", "transport . parts totales", "alimentation", "logistique"
        )
        assert results["transport . avion"].is_nullable
        assert results["transport . parts totales"].node_value.value == pytest.approx(100)
        assert results["transport"].node_value.value == pytest.approx(2419.5)
        assert results["alimentation"].node_value.value == pytest.approx(190)
        assert results["logistique"].node_value.value == pytest.approx(30.2)
        assert results["bilan"].node_value.value == pytest.approx(2639.7)
        assert results["bilan"].is_partial

    def test_bundled_model_choice_changes_result(self):
        engine = JsonLogicEngine(load_rules(MODEL_DIR / "rules.yaml"))
        engine._situation = {"alimentation . type de repas": Str("végétarien")}
        result = _evaluate(engine, "alimentation . repas")["alimentation . repas"]
        assert result.node_value.value == pytest.approx(51)


class TestEngineMessages:
    """Engine side of the bridge protocol."""

    @pytest.mark.asyncio
    async def test_situation_changed_is_acknowledged(self, rules):
        engine = JsonLogicEngine(rules)
        events = []
        await engine.handle(
            SituationChanged(situation=encode_situation({"transport . distance": Num(7)})), events.append
        )
        assert events == [SituationUpdatedAck()]
        assert engine.situation == {"transport . distance": Num(7)}

    @pytest.mark.asyncio
    async def test_bad_situation_raises(self, rules):
        with pytest.raises(DecodeError):
            await JsonLogicEngine(rules).handle(SituationChanged(situation={"inconnu": {"type": "empty"}}), print)

    @pytest.mark.asyncio
    async def test_evaluate_all_emits_one_batch(self, rules):
        events = []
        await JsonLogicEngine(rules).handle(EvaluateAll(names=("bilan", "alimentation")), events.append)
        assert len(events) == 1
        assert isinstance(events[0], EvaluatedMany)
        names = [name for name, _ in events[0].entries]
        assert names == ["bilan", "alimentation"]
        assert decode_evaluation(events[0].entries[1][1]).node_value == Num(50)

    @pytest.mark.asyncio
    async def test_streaming_emits_one_event_per_rule(self, rules):
        events = []
        await JsonLogicEngine(rules, stream_results=True).handle(
            EvaluateAll(names=("bilan", "alimentation")), events.append
        )
        assert [type(e) for e in events] == [EvaluatedOne, EvaluatedOne]
        assert events[1].name == "alimentation"
