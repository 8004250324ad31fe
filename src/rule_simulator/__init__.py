"""
Rule Simulator - interactive what-if simulator over a declarative rule engine.

This package keeps user answers ("situation"), engine evaluations and the
derived category breakdown consistent while the engine answers
asynchronously, and derives form controls from rule metadata.
"""

__version__ = "0.1.0"

from rule_simulator.runtime.simulator import Simulator
from rule_simulator.values import Boolean, Empty, NodeValue, Num, Str

__all__ = [
    "Boolean",
    "Empty",
    "NodeValue",
    "Num",
    "Simulator",
    "Str",
]
