"""
Runtime - control loop, persistence and presentation of the simulator.

Components:
1. Simulator: owns the stores, turns messages into effects
2. SimulatorLoop / settle: async driver over the engine bridge
3. Persistence: remembers the situation between sessions
4. View model: questions, results and breakdown for front ends
"""

from rule_simulator.runtime.loop import SimulatorLoop, settle
from rule_simulator.runtime.persistence import (
    FileSituationPersistence,
    MemorySituationPersistence,
    SituationPersistence,
    restore_situation,
)
from rule_simulator.runtime.simulator import Simulator

__all__ = [
    "FileSituationPersistence",
    "MemorySituationPersistence",
    "Simulator",
    "SimulatorLoop",
    "SituationPersistence",
    "restore_situation",
    "settle",
]
