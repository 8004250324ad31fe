"""Unit tests for rule metadata and the UI layout."""

import pytest

from rule_simulator.errors import DecodeError
from rule_simulator.rules import (
    join,
    last_segment,
    load_rules,
    namespace_root,
    parent,
    parse_rules,
    split_name,
)
from rule_simulator.ui_config import load_ui_config, parse_ui_config
from tests.fixtures.model_fixtures import MODEL_DIR, RAW_UI


class TestRuleNames:
    """Dotted rule name helpers."""

    def test_split_and_join(self):
        assert split_name("transport . voiture . part") == ["transport", "voiture", "part"]
        assert join("transport", "voiture") == "transport . voiture"

    def test_parent(self):
        assert parent("transport . voiture . part") == "transport . voiture"
        assert parent("transport") is None

    def test_namespace_root_and_last_segment(self):
        assert namespace_root("transport . voiture . part") == "transport"
        assert last_segment("transport . voiture . part") == "part"


class TestParseRules:
    """YAML/JSON rule mappings -> RuleSet."""

    def test_french_keys(self, rules):
        rule = rules["transport . distance"]
        assert rule.question == "Distance ?"
        assert rule.unit == "km"
        assert rule.default == 100
        assert not rule.has_formula

    def test_possibilities_and_titles(self, rules):
        assert rules["alimentation . régime"].possibilities == ("végétarien", "carné")
        assert rules.possibility_title("alimentation . régime", "végétarien") == "Végétarien"
        # No rule for this possibility: the possibility itself is the title
        assert rules.possibility_title("alimentation . régime", "carné") == "carné"

    def test_title_falls_back_to_last_segment(self, rules):
        assert rules.title("transport") == "Transport"
        assert rules.title("transport . distance") == "distance"

    def test_possibility_nested_in_formula(self):
        rules = parse_rules(
            {"mode": {"formule": {"une possibilité": {"possibilités": ["a", "b"], "choix obligatoire": "non"}}}}
        )
        assert rules["mode"].possibilities == ("a", "b")
        assert not rules["mode"].has_formula

    def test_shorthand_formula_and_namespace(self):
        rules = parse_rules({"total": 12, "namespace": None})
        assert rules["total"].formula == 12
        assert rules["namespace"].formula is None

    def test_rejects_non_mapping(self):
        with pytest.raises(DecodeError):
            parse_rules(["a", "b"])

    def test_rejects_empty_possibilities(self):
        with pytest.raises(DecodeError):
            parse_rules({"mode": {"une possibilité": {"possibilités": []}}})

    def test_load_bundled_rules(self):
        rules = load_rules(MODEL_DIR / "rules.yaml")
        assert "transport . parts totales" in rules
        assert rules["transport . voiture . part"].unit == "%"

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(DecodeError):
            load_rules(tmp_path / "missing.yaml")

    def test_load_invalid_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("a: [unclosed", encoding="utf-8")
        with pytest.raises(DecodeError):
            load_rules(path)


class TestUiConfig:
    """Category layout."""

    def test_parse(self, ui):
        assert ui.total == "bilan"
        assert ui.categories == ("transport", "alimentation")
        assert ui.question_groups("transport")[1] == ("transport . parts totales",)
        assert ui.subcategories_of("alimentation") == ()

    def test_check_against_known_rules(self, ui, rules):
        ui.check_against(rules)

    def test_check_against_unknown_rule(self, rules):
        raw = dict(RAW_UI, total="inconnu")
        with pytest.raises(DecodeError, match="inconnu"):
            parse_ui_config(raw).check_against(rules)

    def test_rejects_missing_categories(self):
        with pytest.raises(DecodeError):
            parse_ui_config({"total": "bilan"})

    def test_load_bundled_layout(self):
        rules = load_rules(MODEL_DIR / "rules.yaml")
        ui = load_ui_config(MODEL_DIR / "ui.yaml", rules)
        assert ui.categories == ("transport", "alimentation", "logistique")
