"""
Form-control resolution - which widget a question gets, and in which state.

The control is derived only from the rule's static metadata, the user's
answer (if any) and the engine's evaluation (if any). First match wins:

1. One-of possibilities      -> ChoiceControl
2. Unit "%"                  -> PercentSliderControl (0-100)
3. Answer holds a value      -> control of that value's variant, committed
4. No answer, evaluation set -> control of the evaluation's variant, as placeholder
5. Answer is Empty, evaluation set -> same as 4
6. Answer is Empty, nothing usable -> DisabledControl
7. Anything else             -> DisabledControl

is_nullable disables whatever control was chosen without changing its kind.
The total-parts rule is special-cased by name into a read-only indicator.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from rule_simulator.rules import RawRule, RuleName
from rule_simulator.state.evaluations import Evaluation
from rule_simulator.values import (
    Boolean,
    Empty,
    NodeValue,
    Num,
    Str,
    as_number,
    format_percent,
)

# Share of each transport mode; the parts must add up to exactly 100 %
TOTAL_PARTS_RULE: RuleName = "transport . parts totales"

PERCENT_UNIT = "%"


@dataclass(frozen=True)
class ChoiceControl:
    name: RuleName
    options: Tuple[str, ...]
    selected: Optional[str] = None
    enabled: bool = True


@dataclass(frozen=True)
class PercentSliderControl:
    name: RuleName
    value: Optional[float] = None
    min_value: float = 0.0
    max_value: float = 100.0
    enabled: bool = True


@dataclass(frozen=True)
class NumberControl:
    name: RuleName
    value: Optional[float] = None
    placeholder: Optional[float] = None
    enabled: bool = True


@dataclass(frozen=True)
class TextControl:
    name: RuleName
    value: Optional[str] = None
    placeholder: Optional[str] = None
    enabled: bool = True


@dataclass(frozen=True)
class BooleanControl:
    name: RuleName
    value: Optional[bool] = None
    placeholder: Optional[bool] = None
    enabled: bool = True


@dataclass(frozen=True)
class DisabledControl:
    name: RuleName
    enabled: bool = False


class IndicatorStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class TotalPartsIndicator:
    """Read-only check that the transport parts add up to 100 %."""

    name: RuleName
    status: IndicatorStatus
    text: str
    enabled: bool = True


FormControl = Union[
    ChoiceControl,
    PercentSliderControl,
    NumberControl,
    TextControl,
    BooleanControl,
    DisabledControl,
    TotalPartsIndicator,
]


def resolve_control(
    name: RuleName,
    rule: RawRule,
    situation_value: Optional[NodeValue] = None,
    evaluation: Optional[Evaluation] = None,
    is_nullable: Optional[bool] = None,
) -> FormControl:
    """
    Derive the form control for one question rule.

    Args:
        name: Rule name of the question
        rule: Static metadata of the rule
        situation_value: The user's explicit answer, None when unanswered
        evaluation: The engine's latest evaluation, None until it answered
        is_nullable: Overrides evaluation.is_nullable when given

    Returns:
        One of the FormControl variants
    """
    if is_nullable is None:
        is_nullable = evaluation.is_nullable if evaluation is not None else False

    control = _select_control(name, rule, situation_value, evaluation)

    if is_nullable and control.enabled:
        control = dataclasses.replace(control, enabled=False)
    return control


def _select_control(
    name: RuleName,
    rule: RawRule,
    situation_value: Optional[NodeValue],
    evaluation: Optional[Evaluation],
) -> FormControl:
    evaluation_value = evaluation.node_value if evaluation is not None else None

    if name == TOTAL_PARTS_RULE:
        indicator = total_parts_indicator(name, evaluation_value)
        if indicator is not None:
            return indicator

    possibilities = rule.possibilities
    if possibilities:
        return ChoiceControl(
            name=name,
            options=possibilities,
            selected=_selected_possibility(possibilities, situation_value, evaluation_value),
        )

    if rule.unit == PERCENT_UNIT:
        seed = as_number(situation_value)
        if seed is None:
            seed = as_number(evaluation_value)
        return PercentSliderControl(name=name, value=seed)

    match situation_value:
        case Num(number):
            return NumberControl(name=name, value=number)
        case Str(text):
            return TextControl(name=name, value=text)
        case Boolean(flag):
            return BooleanControl(name=name, value=flag)
        case Empty() | None:
            return _placeholder_control(name, evaluation_value)
    raise TypeError(f"Not a NodeValue: {situation_value!r}")


def _placeholder_control(name: RuleName, evaluation_value: Optional[NodeValue]) -> FormControl:
    """Editable control showing the engine's value as an overridable default."""
    match evaluation_value:
        case Num(number):
            return NumberControl(name=name, placeholder=number)
        case Str(text):
            return TextControl(name=name, placeholder=text)
        case Boolean(flag):
            return BooleanControl(name=name, placeholder=flag)
        case Empty() | None:
            return DisabledControl(name=name)
    raise TypeError(f"Not a NodeValue: {evaluation_value!r}")


def _selected_possibility(
    possibilities: Tuple[str, ...],
    situation_value: Optional[NodeValue],
    evaluation_value: Optional[NodeValue],
) -> Optional[str]:
    for candidate in (situation_value, evaluation_value):
        if isinstance(candidate, Str) and candidate.value in possibilities:
            return candidate.value
    return None


def total_parts_indicator(
    name: RuleName, evaluation_value: Optional[NodeValue]
) -> Optional[TotalPartsIndicator]:
    """Success when the parts sum to exactly 100, error with the formatted sum otherwise."""
    total = as_number(evaluation_value)
    if total is None:
        return None
    if total == 100:
        return TotalPartsIndicator(name=name, status=IndicatorStatus.SUCCESS, text=format_percent(total))
    return TotalPartsIndicator(name=name, status=IndicatorStatus.ERROR, text=format_percent(total))
