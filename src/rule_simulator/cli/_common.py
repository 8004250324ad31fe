"""Shared CLI utilities: logging, config and session loading, answer parsing."""

import logging
import math
from typing import Tuple

import typer
from rich.logging import RichHandler

from rule_simulator.cli._console import console, print_err
from rule_simulator.config.settings import SimulatorConfig, load_config
from rule_simulator.errors import ConfigError, DecodeError
from rule_simulator.rules import RuleName
from rule_simulator.startup import Session, build_session
from rule_simulator.values import EMPTY, Boolean, NodeValue, Num, Str

logger = logging.getLogger(__name__)

_TRUE_WORDS = {"true", "oui", "yes"}
_FALSE_WORDS = {"false", "non", "no"}


def setup_logging(*, verbose: bool = False, quiet: bool = False, default_level: str = "INFO") -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = getattr(logging, default_level, logging.INFO)

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Suppress noisy third-party loggers
    for name in ("asyncio", "watchdog"):
        logging.getLogger(name).setLevel(logging.WARNING)


def init_command(ctx: typer.Context) -> SimulatorConfig:
    """Load config and set up logging for a command. Exits on invalid config."""
    try:
        config = load_config(ctx.obj.get("config"))
    except ConfigError as e:
        setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
        print_err(str(e))
        raise SystemExit(1)

    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"], default_level=config.log_level)
    return config


def open_session(config: SimulatorConfig) -> Session:
    """Build a session, exiting with a message if the model cannot be loaded."""
    try:
        return build_session(config)
    except DecodeError as e:
        print_err(f"Could not load model: {e}")
        raise SystemExit(1)


def parse_answer(text: str) -> Tuple[RuleName, NodeValue]:
    """Parse a "<rule name>=<value>" assignment.

    Numbers become Num (comma or dot decimal), true/false/oui/non become
    Boolean, an empty value becomes Empty, anything else Str.

    Raises:
        typer.BadParameter: If there is no '='.
    """
    name, sep, raw = text.partition("=")
    if not sep or not name.strip():
        raise typer.BadParameter(f"Expected <rule name>=<value>, got '{text}'")

    name = name.strip()
    raw = raw.strip()

    if raw == "":
        return name, EMPTY
    if raw.lower() in _TRUE_WORDS:
        return name, Boolean(True)
    if raw.lower() in _FALSE_WORDS:
        return name, Boolean(False)
    try:
        number = float(raw.replace(",", "."))
    except ValueError:
        return name, Str(raw)
    # "inf" and "nan" parse as floats but are not answers
    return name, Num(number) if math.isfinite(number) else Str(raw)
