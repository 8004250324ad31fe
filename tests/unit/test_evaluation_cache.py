"""Unit tests for the evaluation cache."""

import pytest

from rule_simulator.errors import DecodeError
from rule_simulator.state.evaluations import Evaluation, EvaluationCache, decode_evaluation
from rule_simulator.values import EMPTY, Num, Str
from tests.fixtures.model_fixtures import evaluation_json


class TestDecodeEvaluation:
    """EvaluationJSON payloads."""

    def test_decode(self):
        evaluation = decode_evaluation(evaluation_json(Num(3), missing=["a"], nullable=True))
        assert evaluation == Evaluation(node_value=Num(3), missing_variables=("a",), is_nullable=True)
        assert evaluation.is_partial

    def test_to_json_round_trip(self):
        evaluation = Evaluation(node_value=Str("x"), missing_variables=("a", "b"))
        assert decode_evaluation(evaluation.to_json()) == evaluation

    @pytest.mark.parametrize(
        "raw",
        [
            {"nodeValue": {"type": "number", "value": 1}, "missingVariables": []},
            {"nodeValue": {"type": "number", "value": 1}, "missingVariables": "a", "isNullable": False},
            {"nodeValue": {"type": "weird"}, "missingVariables": [], "isNullable": False},
            {"nodeValue": {"type": "empty"}, "missingVariables": [], "isNullable": "no"},
            "evaluation",
        ],
    )
    def test_rejects_malformed(self, raw):
        with pytest.raises(DecodeError):
            decode_evaluation(raw)


class TestEvaluationCache:
    """Last write wins, whatever the channel."""

    def test_absent_until_answered(self, rules):
        cache = EvaluationCache(rules)
        assert cache.get("bilan") is None
        assert cache.value("bilan") is None
        assert not cache.is_loaded

    def test_single_then_batch_last_wins(self, rules):
        cache = EvaluationCache(rules)
        cache.merge_one("bilan", evaluation_json(Num(1)))
        cache.merge_many([["bilan", evaluation_json(Num(2))], ["bilan", evaluation_json(Num(3))]])
        assert cache.value("bilan") == Num(3)
        cache.merge_one("bilan", evaluation_json(EMPTY))
        assert cache.value("bilan") == EMPTY
        assert cache.is_loaded

    def test_entries_replaced_whole(self, rules):
        cache = EvaluationCache(rules)
        cache.merge_one("bilan", evaluation_json(Num(1), missing=["a"], nullable=True))
        cache.merge_one("bilan", evaluation_json(Num(2)))
        assert cache.get("bilan") == Evaluation(node_value=Num(2))

    def test_bad_single_entry_leaves_cache_untouched(self, rules):
        cache = EvaluationCache(rules)
        cache.merge_one("bilan", evaluation_json(Num(1)))
        with pytest.raises(DecodeError):
            cache.merge_one("bilan", {"nodeValue": 1})
        assert cache.value("bilan") == Num(1)

    def test_bad_batch_entry_skipped(self, rules):
        cache = EvaluationCache(rules)
        errors = cache.merge_many(
            [
                ["bilan", evaluation_json(Num(5))],
                ["transport", {"bad": True}],
                "not a pair",
                ["inconnu", evaluation_json(Num(1))],
                ["alimentation", evaluation_json(Num(50))],
            ]
        )
        assert len(errors) == 3
        assert cache.value("bilan") == Num(5)
        assert cache.value("alimentation") == Num(50)
        assert "transport" not in cache
        assert len(cache) == 2

    def test_oversized_number_in_batch_is_skipped(self, rules):
        cache = EvaluationCache(rules)
        huge = {"nodeValue": {"type": "number", "value": 10**400}, "missingVariables": [], "isNullable": False}
        errors = cache.merge_many([["bilan", huge], ["transport", evaluation_json(Num(3))]])
        assert len(errors) == 1
        assert "bilan" not in cache
        assert cache.value("transport") == Num(3)

    def test_batch_must_be_a_list(self, rules):
        with pytest.raises(DecodeError):
            EvaluationCache(rules).merge_many({"bilan": evaluation_json(Num(1))})

    def test_apply_many_keeps_last_duplicate(self):
        cache = EvaluationCache()
        cache.apply_many([("a", Evaluation(Num(1))), ("a", Evaluation(Num(2)))])
        assert cache.value("a") == Num(2)
