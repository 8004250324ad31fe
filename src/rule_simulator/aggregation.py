"""
Category aggregation - the breakdown chart data.

Percentages are always derived from the evaluation cache on demand; nothing
computed here is stored. Each category is expressed as a share of the grand
total, each sub-category as a share of its own category.

Zero or missing denominators yield 0 % rather than a non-finite value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from rule_simulator.rules import RuleName, RuleSet
from rule_simulator.state.evaluations import EvaluationCache
from rule_simulator.ui_config import UiConfig
from rule_simulator.values import as_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubCategoryShare:
    name: RuleName
    title: str
    value: float
    percent: float


@dataclass(frozen=True)
class CategoryShare:
    name: RuleName
    title: str
    value: float
    percent: float
    subcategories: Tuple[SubCategoryShare, ...] = field(default_factory=tuple)


def percent_of(value: float, total: float) -> float:
    """100 * value / total, 0.0 when total is zero."""
    if total == 0:
        return 0.0
    return 100 * value / total


def grand_total(evaluations: EvaluationCache, total_rule: RuleName) -> float:
    """Numeric value of the grand total rule, 0 when absent or not a number."""
    return as_number(evaluations.value(total_rule)) or 0.0


def aggregate_categories(
    evaluations: EvaluationCache,
    ui: UiConfig,
    rules: Optional[RuleSet] = None,
) -> List[CategoryShare]:
    """
    Compute the category breakdown, sorted by descending percent.

    Categories (and sub-categories) without a numeric evaluation are dropped,
    not zero-filled. Computation never depends on which categories are
    expanded in the UI.
    """
    total = grand_total(evaluations, ui.total)
    if total == 0:
        logger.debug("Grand total '%s' is zero or unavailable", ui.total)

    shares: List[CategoryShare] = []
    for category in ui.categories:
        category_value = as_number(evaluations.value(category))
        if category_value is None:
            continue

        subcategories: List[SubCategoryShare] = []
        for sub in ui.subcategories_of(category):
            sub_value = as_number(evaluations.value(sub))
            if sub_value is None:
                continue
            subcategories.append(
                SubCategoryShare(
                    name=sub,
                    title=_title(rules, sub),
                    value=sub_value,
                    percent=percent_of(sub_value, category_value),
                )
            )
        subcategories.sort(key=lambda s: s.percent, reverse=True)

        shares.append(
            CategoryShare(
                name=category,
                title=_title(rules, category),
                value=category_value,
                percent=percent_of(category_value, total),
                subcategories=tuple(subcategories),
            )
        )

    shares.sort(key=lambda c: c.percent, reverse=True)
    return shares


def _title(rules: Optional[RuleSet], name: RuleName) -> str:
    return rules.title(name) if rules is not None else name
