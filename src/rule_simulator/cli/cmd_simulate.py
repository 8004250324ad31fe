"""Simulate command: apply answers, evaluate every rule, show results."""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer

from rule_simulator.bridge.messages import ImportSituation, SetAnswer, UserAction
from rule_simulator.cli._app import app
from rule_simulator.cli._common import init_command, open_session, parse_answer
from rule_simulator.cli._console import output_breakdown, output_result, output_table, output_total, print_err
from rule_simulator.resolver.controls import (
    BooleanControl,
    ChoiceControl,
    DisabledControl,
    FormControl,
    NumberControl,
    PercentSliderControl,
    TextControl,
    TotalPartsIndicator,
)
from rule_simulator.runtime.loop import settle
from rule_simulator.runtime.persistence import MemorySituationPersistence
from rule_simulator.runtime.view_model import build_breakdown, build_questions, build_result
from rule_simulator.values import format_number, format_percent, format_value, from_python

logger = logging.getLogger(__name__)


def describe_control(control: FormControl) -> str:
    """One-line text rendering of a form control."""
    match control:
        case TotalPartsIndicator(status=status, text=text):
            return f"{text} ({status.value})"
        case ChoiceControl(options=options, selected=selected):
            return f"{selected or '-'} ({' / '.join(options)})"
        case PercentSliderControl(value=value):
            return format_percent(value) if value is not None else "-"
        case NumberControl(value=value, placeholder=placeholder):
            if value is not None:
                return format_number(value)
            return f"({format_number(placeholder)})" if placeholder is not None else "-"
        case TextControl(value=value, placeholder=placeholder):
            if value is not None:
                return value
            return f"({placeholder})" if placeholder is not None else "-"
        case BooleanControl(value=value, placeholder=placeholder):
            shown = value if value is not None else placeholder
            text = format_value(from_python(shown)) if shown is not None else "-"
            return text if value is not None else f"({text})"
        case DisabledControl():
            return "-"
    raise TypeError(f"Not a form control: {control!r}")


@app.command("simulate", help="Evaluate the model for the remembered situation plus the given answers.")
def simulate_cmd(
    ctx: typer.Context,
    answers: Optional[List[str]] = typer.Option(
        None, "--set", "-s", help="Answer a question: '<rule name>=<value>' (repeatable)",
    ),
    situation_file: Optional[Path] = typer.Option(
        None, "--situation", help="Import a situation JSON file before applying answers",
    ),
    show_questions: bool = typer.Option(False, "--questions", help="Also list every question and its control"),
    no_remember: bool = typer.Option(False, "--no-remember", help="Do not remember the resulting situation"),
):
    """Run one simulation burst and print the result and its breakdown."""
    config = init_command(ctx)

    try:
        parsed = [parse_answer(a) for a in answers or []]
    except typer.BadParameter as e:
        print_err(str(e))
        raise SystemExit(1)

    session = open_session(config)
    simulator = session.simulator

    actions: List[UserAction] = []
    if situation_file is not None:
        if not situation_file.exists():
            print_err(f"Situation file not found: {situation_file}")
            raise SystemExit(1)
        actions.append(ImportSituation(content=situation_file.read_text(encoding="utf-8")))
    actions.extend(SetAnswer(name=name, value=value) for name, value in parsed)

    persistence = MemorySituationPersistence() if no_remember else session.persistence
    asyncio.run(
        settle(simulator, session.engine, actions, persistence=persistence, start=True)
    )

    result = build_result(simulator)
    breakdown = build_breakdown(simulator)

    if ctx.obj.get("json"):
        output_result(
            {
                "result": {
                    "name": result.name,
                    "value": result.value,
                    "formatted": result.formatted,
                    "partial": result.is_partial,
                    "missingVariables": list(result.missing_variables),
                },
                "breakdown": [
                    {
                        "name": c.name,
                        "value": c.value,
                        "percent": c.percent,
                        "subcategories": [
                            {"name": s.name, "value": s.value, "percent": s.percent}
                            for s in c.subcategories
                        ],
                    }
                    for c in breakdown
                ],
                "error": simulator.error.to_dict() if simulator.error else None,
            },
            ctx=ctx,
        )
        return

    if simulator.error is not None:
        print_err(f"{simulator.error.kind.value}: {simulator.error.message}")

    if show_questions:
        for category in build_questions(simulator):
            rows = [
                {"question": q.question or q.title, "rule": q.name, "answer": describe_control(q.control)}
                for group in category.groups
                for q in group
            ]
            output_table(rows, title=category.title)

    output_total(result)
    output_breakdown(breakdown)
