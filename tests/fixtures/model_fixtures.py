"""A small rule model and a scriptable fake engine for simulator tests."""

from pathlib import Path
from typing import Any, Callable, List, Optional

from rule_simulator.bridge.engine import Emit, IEngine
from rule_simulator.bridge.messages import (
    EngineRequest,
    EvaluateAll,
    EvaluatedMany,
    SituationChanged,
    SituationUpdatedAck,
)
from rule_simulator.values import encode_value

MODEL_DIR = Path(__file__).resolve().parents[2] / "model"


RAW_RULES = {
    "bilan": {"titre": "Bilan", "unité": "kgCO2e", "formule": {"+": [{"var": "transport"}, {"var": "alimentation"}]}},
    "transport": {"titre": "Transport", "formule": {"+": [{"var": "transport . voiture"}, {"var": "transport . train"}]}},
    "transport . distance": {"question": "Distance ?", "unité": "km", "par défaut": 100},
    "transport . voiture": {"titre": "Voiture", "formule": {"*": [{"var": "transport . distance"}, 0.2]}},
    "transport . voiture . part": {"question": "Part en voiture ?", "unité": "%", "par défaut": 60},
    "transport . train": {"titre": "Train", "formule": {"*": [{"var": "transport . distance"}, 0.03]}},
    "transport . parts totales": {"unité": "%", "formule": {"+": [{"var": "transport . voiture . part"}, 40]}},
    "alimentation": {"titre": "Alimentation", "formule": 50},
    "alimentation . régime": {
        "question": "Régime ?",
        "une possibilité": {"possibilités": ["végétarien", "carné"]},
        "par défaut": "carné",
    },
    "alimentation . régime . végétarien": {"titre": "Végétarien"},
    "alimentation . lieu": {"question": "Lieu ?"},
}

RAW_UI = {
    "total": "bilan",
    "catégories": ["transport", "alimentation"],
    "questions": {
        "transport": [["transport . distance", "transport . voiture . part"], ["transport . parts totales"]],
        "alimentation": [["alimentation . régime", "alimentation . lieu"]],
    },
    "sous-catégories": {"transport": ["transport . voiture", "transport . train"]},
}


def evaluation_json(value: Any, missing: Optional[List[str]] = None, nullable: bool = False) -> dict:
    """Build an EvaluationJSON payload from a NodeValue."""
    return {
        "nodeValue": encode_value(value),
        "missingVariables": missing or [],
        "isNullable": nullable,
    }


class FakeEngine(IEngine):
    """
    Scriptable engine.

    Acknowledges SituationChanged and answers EvaluateAll with
    respond(situation) -> list of [name, EvaluationJSON] pairs.
    """

    def __init__(self, respond: Optional[Callable[[dict], list]] = None):
        self.requests: List[EngineRequest] = []
        self.situation: dict = {}
        self._respond = respond or (lambda situation: [])

    async def handle(self, request: EngineRequest, emit: Emit) -> None:
        self.requests.append(request)
        if isinstance(request, SituationChanged):
            self.situation = request.situation
            emit(SituationUpdatedAck())
        elif isinstance(request, EvaluateAll):
            emit(EvaluatedMany(entries=self._respond(self.situation)))


class FailingEngine(IEngine):
    """Raises on every request."""

    async def handle(self, request: EngineRequest, emit: Emit) -> None:
        raise RuntimeError("engine down")
