"""Form-control resolution from rule metadata and evaluation state."""

from rule_simulator.resolver.controls import (
    TOTAL_PARTS_RULE,
    BooleanControl,
    ChoiceControl,
    DisabledControl,
    FormControl,
    IndicatorStatus,
    NumberControl,
    PercentSliderControl,
    TextControl,
    TotalPartsIndicator,
    resolve_control,
)

__all__ = [
    "TOTAL_PARTS_RULE",
    "BooleanControl",
    "ChoiceControl",
    "DisabledControl",
    "FormControl",
    "IndicatorStatus",
    "NumberControl",
    "PercentSliderControl",
    "TextControl",
    "TotalPartsIndicator",
    "resolve_control",
]
