"""
Rule Simulator - Streamlit front end.

Each run of the script is one burst of interaction:
1. Widget callbacks have queued user actions (SetAnswer, ImportSituation, ...)
2. The queue is dispatched and the engine is driven until idle (settle)
3. The page is rendered from the view model

The Simulator and its engine live in st.session_state across runs; the
engine bridge is opened inside each run's event loop.

Usage:
    streamlit run src/rule_simulator/runtime/streamlit_app.py
"""

import asyncio

import streamlit as st

from rule_simulator.bridge.messages import ImportSituation, ResetSituation, ToggleCategory
from rule_simulator.cli._common import setup_logging
from rule_simulator.config.settings import load_config
from rule_simulator.errors import ConfigError, DecodeError
from rule_simulator.runtime.loop import settle
from rule_simulator.runtime.view_model import build_breakdown, build_questions, build_result
from rule_simulator.runtime.widget_factory import PENDING_KEY, queue_action, render_group
from rule_simulator.startup import build_session
from rule_simulator.state.situation import serialize_situation
from rule_simulator.values import format_number, format_percent

UPLOAD_KEY = "situation_upload"


# Page configuration
st.set_page_config(
    page_title="Simulateur",
    layout="wide"
)


def _bump_generation() -> None:
    st.session_state.generation += 1


def _on_reset() -> None:
    queue_action(ResetSituation())
    _bump_generation()


def _on_upload() -> None:
    uploaded = st.session_state.get(UPLOAD_KEY)
    if uploaded is None:
        return
    queue_action(ImportSituation(content=uploaded.getvalue()))
    _bump_generation()


# Initialize session state
if "session" not in st.session_state:
    try:
        config = load_config()
        setup_logging(default_level=config.log_level)
        st.session_state.session = build_session(config)
    except (ConfigError, DecodeError) as e:
        st.error(f"Impossible de charger le modèle : {e}")
        st.stop()
    st.session_state.started = False
    st.session_state.generation = 0
    st.session_state[PENDING_KEY] = []

session = st.session_state.session
simulator = session.simulator

# Dispatch queued actions and drive the engine to quiescence
actions = st.session_state[PENDING_KEY]
st.session_state[PENDING_KEY] = []
with st.spinner("Calcul en cours..."):
    asyncio.run(
        settle(
            simulator,
            session.engine,
            actions,
            persistence=session.persistence,
            start=not st.session_state.started,
        )
    )
st.session_state.started = True


# Sidebar: situation management
st.sidebar.header("Situation")
st.sidebar.download_button(
    "Exporter la situation",
    data=serialize_situation(simulator.situation.snapshot()),
    file_name="situation.json",
    mime="application/json",
    use_container_width=True,
)
st.sidebar.file_uploader(
    "Importer une situation",
    type=["json"],
    key=UPLOAD_KEY,
    on_change=_on_upload,
)
st.sidebar.button("Réinitialiser", on_click=_on_reset, use_container_width=True)

if simulator.error is not None:
    st.error(f"{simulator.error.kind.value} : {simulator.error.message}")

if not simulator.is_loaded:
    st.info("Chargement du modèle...")
    st.stop()


# Result
result = build_result(simulator)
st.title(result.title)
st.metric(label="Total", value=result.formatted or "-")
if result.is_partial:
    st.caption(f"Résultat partiel : {len(result.missing_variables)} question(s) sans réponse, valeurs par défaut utilisées.")

st.markdown("---")
questions_col, breakdown_col = st.columns([3, 2])

with questions_col:
    st.header("Questions")
    for category in build_questions(simulator):
        with st.expander(category.title, expanded=True):
            for group in category.groups:
                render_group(group, st.session_state.generation)

with breakdown_col:
    st.header("Répartition")
    breakdown = build_breakdown(simulator)
    if not breakdown:
        st.info("Aucune catégorie évaluée")
    for share in breakdown:
        opened = simulator.opened.is_open(share.name)
        st.button(
            f"{'▾' if opened else '▸'} {share.title} : {format_percent(share.percent)}",
            key=f"toggle#{share.name}",
            on_click=queue_action,
            args=(ToggleCategory(category=share.name),),
            use_container_width=True,
        )
        st.progress(min(max(share.percent / 100, 0.0), 1.0))
        if opened:
            for sub in share.subcategories:
                st.markdown(f"- {sub.title} : {format_number(sub.value)} ({format_percent(sub.percent)})")
