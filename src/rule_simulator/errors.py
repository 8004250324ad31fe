"""Error types and the single "current error" slot value."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SimulatorError(Exception):
    """Base class for all rule_simulator errors."""
    pass


class DecodeError(SimulatorError):
    """Raised when an inbound payload does not match its expected shape.

    Covers startup files (rules, UI config, remembered situation) and
    engine evaluation messages.
    """
    pass


class InvalidSituationError(SimulatorError):
    """Raised when an imported situation file cannot be parsed."""
    pass


class ConfigError(SimulatorError):
    """Raised when the simulator configuration file is invalid."""
    pass


class ErrorKind(str, Enum):
    """Kinds of recoverable errors surfaced to the user."""

    DECODE = "decode"
    INVALID_SITUATION = "invalid_situation"


@dataclass(frozen=True)
class AppError:
    """The error currently shown to the user. Last error wins."""

    kind: ErrorKind
    message: str

    @classmethod
    def from_exception(cls, exc: SimulatorError) -> "AppError":
        if isinstance(exc, InvalidSituationError):
            return cls(ErrorKind.INVALID_SITUATION, str(exc))
        return cls(ErrorKind.DECODE, str(exc))

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}
