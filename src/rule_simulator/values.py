"""
Node values - the closed set of value shapes shared by answers and evaluations.

A value is exactly one of:
- Num(float)
- Str(str)
- Boolean(bool)
- Empty

On the wire (engine messages, situation files) every value is a tagged JSON
object so that it describes itself and round-trips:

    {"type": "number", "value": 12.5}
    {"type": "string", "value": "train"}
    {"type": "boolean", "value": true}
    {"type": "empty"}
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
)

from rule_simulator.errors import DecodeError

# Non-breaking space, used as the thousands separator
NBSP = "\u00a0"


@dataclass(frozen=True)
class Num:
    value: float


@dataclass(frozen=True)
class Str:
    value: str


@dataclass(frozen=True)
class Boolean:
    value: bool


@dataclass(frozen=True)
class Empty:
    pass


NodeValue = Union[Num, Str, Boolean, Empty]

EMPTY = Empty()


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------

class _NumberJSON(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["number"]
    value: Union[StrictInt, StrictFloat]


class _StringJSON(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["string"]
    value: StrictStr


class _BooleanJSON(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["boolean"]
    value: StrictBool


class _EmptyJSON(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["empty"]


NodeValueJSON = Annotated[
    Union[_NumberJSON, _StringJSON, _BooleanJSON, _EmptyJSON],
    Field(discriminator="type"),
]

_node_value_adapter: TypeAdapter = TypeAdapter(NodeValueJSON)


def encode_value(value: NodeValue) -> Dict[str, Any]:
    """Encode a NodeValue to its tagged JSON form."""
    match value:
        case Num(number):
            return {"type": "number", "value": number}
        case Str(text):
            return {"type": "string", "value": text}
        case Boolean(flag):
            return {"type": "boolean", "value": flag}
        case Empty():
            return {"type": "empty"}
    raise TypeError(f"Not a NodeValue: {value!r}")


def decode_value(raw: Any) -> NodeValue:
    """
    Decode a tagged JSON value.

    Raises:
        DecodeError: If raw is not one of the four tagged shapes
    """
    try:
        parsed = _node_value_adapter.validate_python(raw)
    except ValidationError as e:
        raise DecodeError(f"Invalid node value {raw!r}: {e.error_count()} validation error(s)") from e

    if isinstance(parsed, _NumberJSON):
        try:
            number = float(parsed.value)
        except OverflowError as e:
            raise DecodeError("Invalid node value: number too large") from e
        if not math.isfinite(number):
            raise DecodeError(f"Invalid node value {raw!r}: number must be finite")
        return Num(number)
    if isinstance(parsed, _StringJSON):
        return Str(parsed.value)
    if isinstance(parsed, _BooleanJSON):
        return Boolean(parsed.value)
    return EMPTY


def from_python(raw: Any) -> NodeValue:
    """Convert a plain Python value (as produced by json-logic or YAML) to a NodeValue."""
    if raw is None:
        return EMPTY
    # bool before int: bool is a subclass of int
    if isinstance(raw, bool):
        return Boolean(raw)
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            return EMPTY
        return Num(float(raw))
    if isinstance(raw, str):
        return Str(raw)
    raise TypeError(f"Cannot convert {type(raw).__name__} to a node value")


def to_python(value: NodeValue) -> Any:
    """Inverse of from_python."""
    match value:
        case Num(number):
            return number
        case Str(text):
            return text
        case Boolean(flag):
            return flag
        case Empty():
            return None
    raise TypeError(f"Not a NodeValue: {value!r}")


def as_number(value: Optional[NodeValue]) -> Optional[float]:
    """Return the float payload of a Num, None for any other variant."""
    if isinstance(value, Num):
        return value.value
    return None


def is_empty(value: Optional[NodeValue]) -> bool:
    return value is None or isinstance(value, Empty)


# ---------------------------------------------------------------------------
# Formatting (French locale)
# ---------------------------------------------------------------------------

def format_number(number: float, max_decimals: int = 2) -> str:
    """
    Format a number with French conventions.

    Comma decimal separator, non-breaking space thousands separator, at most
    max_decimals decimals with trailing zeros stripped.

    Example:
        >>> format_number(1234.5)
        '1\\xa0234,5'
    """
    if not math.isfinite(number):
        return "-"

    rounded = round(number, max_decimals)
    if rounded == 0:
        rounded = 0.0  # avoid "-0"

    text = f"{rounded:,.{max_decimals}f}"
    integer, _, decimals = text.partition(".")
    integer = integer.replace(",", NBSP)
    decimals = decimals.rstrip("0")
    return f"{integer},{decimals}" if decimals else integer


def format_percent(number: float) -> str:
    """Format a percentage with one decimal, e.g. 97.3 -> '97,3 %'."""
    return f"{format_number(number, max_decimals=1)} %"


def format_value(value: Optional[NodeValue], unit: Optional[str] = None) -> str:
    """Human readable rendering of a value, with its unit for numbers."""
    match value:
        case Num(number):
            text = format_number(number)
            return f"{text} {unit}" if unit else text
        case Str(text):
            return text
        case Boolean(flag):
            return "oui" if flag else "non"
        case Empty() | None:
            return ""
    raise TypeError(f"Not a NodeValue: {value!r}")
