"""Persistence collaborator: where the host "remembers" the current situation.

The simulator only asks for the snapshot to be remembered; how it is kept is
up to the implementation. The file implementation writes the same JSON
format as the export file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Tuple, runtime_checkable

from rule_simulator.errors import AppError, DecodeError
from rule_simulator.rules import RuleSet
from rule_simulator.state.situation import Situation, decode_situation

logger = logging.getLogger(__name__)


@runtime_checkable
class SituationPersistence(Protocol):
    """Remembers situation snapshots (tagged JSON mappings)."""

    def remember(self, situation: Dict[str, Any]) -> None:
        ...

    def recall(self) -> Optional[Dict[str, Any]]:
        """Return the last remembered snapshot, None if there is none."""
        ...


class MemorySituationPersistence:
    """Keeps the last snapshot in memory."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._snapshot = dict(initial) if initial is not None else None
        self.remember_count = 0

    def remember(self, situation: Dict[str, Any]) -> None:
        self._snapshot = dict(situation)
        self.remember_count += 1

    def recall(self) -> Optional[Dict[str, Any]]:
        return dict(self._snapshot) if self._snapshot is not None else None


class FileSituationPersistence:
    """Filesystem-backed persistence with atomic writes."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def remember(self, situation: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(situation, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except IOError as exc:
            if tmp_path.exists():
                tmp_path.unlink()
            raise IOError(f"Failed to remember situation: {exc}") from exc

    def recall(self) -> Optional[Dict[str, Any]]:
        """
        Raises:
            DecodeError: If the remembered file is not valid UTF-8 JSON
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Invalid JSON in remembered situation {self.path}: {e}") from e


def restore_situation(
    persistence: SituationPersistence, rules: RuleSet
) -> Tuple[Situation, Optional[AppError]]:
    """
    Load the remembered situation at startup.

    A bad remembered situation is a decode error: the simulator starts empty
    and the error is returned for the error slot.
    """
    try:
        raw = persistence.recall()
        if raw is None:
            return {}, None
        return decode_situation(raw, rules), None
    except DecodeError as e:
        logger.warning("Ignoring remembered situation: %s", e)
        return {}, AppError.from_exception(e)
