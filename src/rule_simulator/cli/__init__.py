"""CLI package: Typer-based command-line interface.

Usage:
    python -m rule_simulator.cli --help
    python -m rule_simulator.cli simulate --set "transport . distance=800"
"""

from rule_simulator.cli._app import app
from rule_simulator.cli._common import parse_answer

# Register command modules (side-effect imports)
import rule_simulator.cli.cmd_simulate  # noqa: F401
import rule_simulator.cli.cmd_situation  # noqa: F401

__all__ = ["app", "parse_answer"]
