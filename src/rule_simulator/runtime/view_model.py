"""
View model - everything a front end needs to render, derived from the stores.

Nothing here is stored: each call re-derives from the situation, the
evaluation cache and the static rule/UI metadata, so the presentation can
never drift from its sources.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from rule_simulator.aggregation import CategoryShare, aggregate_categories
from rule_simulator.resolver.controls import FormControl, resolve_control
from rule_simulator.rules import RuleName
from rule_simulator.runtime.simulator import Simulator
from rule_simulator.values import as_number, format_value


@dataclass(frozen=True)
class QuestionView:
    name: RuleName
    title: str
    question: Optional[str]
    unit: Optional[str]
    description: Optional[str]
    control: FormControl
    # (possibility, display title) pairs for choice controls
    option_titles: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class CategoryView:
    name: str
    title: str
    groups: Tuple[Tuple[QuestionView, ...], ...]


@dataclass(frozen=True)
class ResultSummary:
    """The grand total as shown above the breakdown."""

    name: RuleName
    title: str
    value: Optional[float]
    formatted: str
    unit: Optional[str]
    is_partial: bool
    missing_variables: Tuple[RuleName, ...] = ()


def question_view(simulator: Simulator, name: RuleName) -> QuestionView:
    rule = simulator.rules[name]
    control = resolve_control(
        name,
        rule,
        situation_value=simulator.situation.get(name),
        evaluation=simulator.evaluations.get(name),
    )
    option_titles = tuple(
        (possibility, simulator.rules.possibility_title(name, possibility))
        for possibility in rule.possibilities or ()
    )
    return QuestionView(
        name=name,
        title=simulator.rules.title(name),
        question=rule.question,
        unit=rule.unit,
        description=rule.description,
        control=control,
        option_titles=option_titles,
    )


def build_questions(simulator: Simulator) -> List[CategoryView]:
    """Questions of every category, in display order."""
    views: List[CategoryView] = []
    for category in simulator.ui.categories:
        groups = tuple(
            tuple(question_view(simulator, name) for name in group)
            for group in simulator.ui.question_groups(category)
        )
        views.append(CategoryView(name=category, title=simulator.rules.title(category), groups=groups))
    return views


def build_result(simulator: Simulator) -> ResultSummary:
    total_rule = simulator.ui.total
    rule = simulator.rules[total_rule]
    evaluation = simulator.evaluations.get(total_rule)
    value = evaluation.node_value if evaluation is not None else None
    return ResultSummary(
        name=total_rule,
        title=simulator.rules.title(total_rule),
        value=as_number(value),
        formatted=format_value(value, rule.unit),
        unit=rule.unit,
        is_partial=evaluation.is_partial if evaluation is not None else False,
        missing_variables=evaluation.missing_variables if evaluation is not None else (),
    )


def build_breakdown(simulator: Simulator) -> List[CategoryShare]:
    return aggregate_categories(simulator.evaluations, simulator.ui, simulator.rules)
