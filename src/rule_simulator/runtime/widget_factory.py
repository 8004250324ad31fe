"""
Widget Factory - renders resolved form controls as Streamlit widgets.

Type Mappings:
- ChoiceControl -> st.selectbox() with possibility titles
- PercentSliderControl -> st.slider(0..100), st.number_input() when out of range
- NumberControl -> st.number_input() with the engine value as placeholder
- TextControl -> st.text_input()
- BooleanControl -> st.toggle()
- DisabledControl -> disabled st.text_input()
- TotalPartsIndicator -> st.success() / st.error()

Widgets never mutate the simulator. A change queues a SetAnswer in
st.session_state["pending_actions"]; the app dispatches the queue at the
top of the next run.
"""

from typing import Any, Callable, Optional

import streamlit as st

from rule_simulator.bridge.messages import SetAnswer
from rule_simulator.resolver.controls import (
    BooleanControl,
    ChoiceControl,
    DisabledControl,
    IndicatorStatus,
    NumberControl,
    PercentSliderControl,
    TextControl,
    TotalPartsIndicator,
)
from rule_simulator.rules import RuleName
from rule_simulator.runtime.view_model import QuestionView
from rule_simulator.values import EMPTY, Boolean, NodeValue, Num, Str, format_number

PENDING_KEY = "pending_actions"


def queue_action(action: Any) -> None:
    """Append an action to the queue drained by the app on the next run."""
    st.session_state.setdefault(PENDING_KEY, []).append(action)


def _on_widget_change(name: RuleName, widget_key: str, convert: Callable[[Any], NodeValue]) -> None:
    queue_action(SetAnswer(name=name, value=convert(st.session_state[widget_key])))


def _to_number(raw: Any) -> NodeValue:
    return EMPTY if raw is None else Num(float(raw))


def _to_text(raw: Any) -> NodeValue:
    return Str(raw) if raw else EMPTY


def _to_choice(raw: Any) -> NodeValue:
    return EMPTY if raw is None else Str(raw)


class WidgetFactory:
    """
    Factory for creating Streamlit widgets from resolved form controls.

    Widget keys carry a generation suffix: bumping the generation (after an
    import or a reset) discards every widget's own state so the next run
    shows the simulator's values again.
    """

    @staticmethod
    def widget_key(view: QuestionView, generation: int) -> str:
        # A control kind change (e.g. disabled -> number) must not reuse widget state
        return f"{view.name}#{type(view.control).__name__}#{generation}"

    @staticmethod
    def _label(view: QuestionView) -> str:
        label = view.question or view.title
        if view.unit and view.unit != "%":
            label = f"{label} ({view.unit})"
        return label

    @staticmethod
    def create_widget(view: QuestionView, generation: int = 0) -> None:
        """
        Render one question.

        Args:
            view: Question with its resolved control
            generation: Widget-state generation (see class docstring)
        """
        control = view.control
        key = WidgetFactory.widget_key(view, generation)
        label = WidgetFactory._label(view)
        help_text = view.description

        match control:
            case TotalPartsIndicator(status=status, text=text):
                if status == IndicatorStatus.SUCCESS:
                    st.success(f"{view.title} : {text}")
                else:
                    st.error(f"{view.title} : {text}, la somme doit faire 100 %")

            case ChoiceControl(options=options, selected=selected, enabled=enabled):
                titles = dict(view.option_titles)
                st.selectbox(
                    label,
                    options=list(options),
                    index=options.index(selected) if selected is not None else None,
                    format_func=lambda option: titles.get(option, option),
                    disabled=not enabled,
                    key=key,
                    help=help_text,
                    on_change=_on_widget_change,
                    args=(view.name, key, _to_choice),
                )

            case PercentSliderControl(
                value=value, min_value=min_value, max_value=max_value, enabled=enabled
            ) if value is None or min_value <= value <= max_value:
                st.slider(
                    label,
                    min_value=min_value,
                    max_value=max_value,
                    value=value if value is not None else min_value,
                    step=1.0,
                    format="%.0f %%",
                    disabled=not enabled,
                    key=key,
                    help=help_text,
                    on_change=_on_widget_change,
                    args=(view.name, key, _to_number),
                )

            case PercentSliderControl(value=value, enabled=enabled):
                # Imported or computed values may fall outside the slider bounds
                unbounded_key = f"{key}#unbounded"
                st.number_input(
                    f"{label} (%)",
                    value=value,
                    disabled=not enabled,
                    key=unbounded_key,
                    help=help_text,
                    on_change=_on_widget_change,
                    args=(view.name, unbounded_key, _to_number),
                )

            case NumberControl(value=value, placeholder=placeholder, enabled=enabled):
                st.number_input(
                    label,
                    value=value,
                    placeholder=format_number(placeholder) if placeholder is not None else None,
                    disabled=not enabled,
                    key=key,
                    help=help_text,
                    on_change=_on_widget_change,
                    args=(view.name, key, _to_number),
                )

            case TextControl(value=value, placeholder=placeholder, enabled=enabled):
                st.text_input(
                    label,
                    value=value or "",
                    placeholder=placeholder,
                    disabled=not enabled,
                    key=key,
                    help=help_text,
                    on_change=_on_widget_change,
                    args=(view.name, key, _to_text),
                )

            case BooleanControl(value=value, placeholder=placeholder, enabled=enabled):
                shown: Optional[bool] = value if value is not None else placeholder
                st.toggle(
                    label,
                    value=bool(shown),
                    disabled=not enabled,
                    key=key,
                    help=help_text,
                    on_change=_on_widget_change,
                    args=(view.name, key, lambda raw: Boolean(bool(raw))),
                )

            case DisabledControl():
                st.text_input(label, value="", disabled=True, key=key, help=help_text)

            case _:
                st.warning(f"Unknown control for question: {view.name}")


def render_group(views: tuple, generation: int = 0) -> None:
    """Render one question group in a 2-column grid."""
    cols = st.columns(2)
    for idx, view in enumerate(views):
        with cols[idx % 2]:
            WidgetFactory.create_widget(view, generation)
