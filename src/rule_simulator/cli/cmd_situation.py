"""Situation commands: export, import and reset the remembered situation."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from rule_simulator.bridge.messages import ImportSituation, ResetSituation
from rule_simulator.cli._app import app
from rule_simulator.cli._common import init_command, open_session
from rule_simulator.cli._console import output_result, print_err, print_ok
from rule_simulator.errors import ErrorKind
from rule_simulator.runtime.loop import settle
from rule_simulator.state.situation import encode_situation, serialize_situation

logger = logging.getLogger(__name__)

situation_app = typer.Typer(no_args_is_help=True, help="Manage the remembered situation.")
app.add_typer(situation_app, name="situation")


@situation_app.command("export", help="Write the remembered situation as JSON.")
def export_cmd(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (default: stdout)"),
):
    config = init_command(ctx)
    session = open_session(config)
    snapshot = session.simulator.situation.snapshot()

    if output is None:
        output_result(encode_situation(snapshot), ctx=ctx, title="Situation")
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(serialize_situation(snapshot), encoding="utf-8")
    print_ok(f"Exported {len(snapshot)} answer(s) to {output}")


@situation_app.command("import", help="Replace the remembered situation with a JSON file.")
def import_cmd(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Situation JSON file"),
):
    config = init_command(ctx)
    if not path.exists():
        print_err(f"File not found: {path}")
        raise SystemExit(1)

    session = open_session(config)
    simulator = session.simulator
    # A bad remembered situation is already in the error slot; only the import's own error counts
    simulator.error = None
    asyncio.run(
        settle(
            simulator,
            session.engine,
            [ImportSituation(content=path.read_bytes())],
            persistence=session.persistence,
            start=True,
        )
    )

    if simulator.error is not None and simulator.error.kind == ErrorKind.INVALID_SITUATION:
        print_err(simulator.error.message)
        raise SystemExit(1)
    print_ok(f"Imported {len(simulator.situation)} answer(s) from {path}")


@situation_app.command("reset", help="Forget every answer.")
def reset_cmd(ctx: typer.Context):
    config = init_command(ctx)
    session = open_session(config)
    asyncio.run(
        settle(session.simulator, session.engine, [ResetSituation()], persistence=session.persistence, start=True)
    )
    print_ok("Situation reset")
