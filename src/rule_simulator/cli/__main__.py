"""Allow running as ``python -m rule_simulator.cli``."""

from rule_simulator.cli import app

app()
