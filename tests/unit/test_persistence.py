"""Unit tests for situation persistence."""

import json

import pytest

from rule_simulator.errors import DecodeError, ErrorKind
from rule_simulator.runtime.persistence import (
    FileSituationPersistence,
    MemorySituationPersistence,
    SituationPersistence,
    restore_situation,
)
from rule_simulator.values import Num


class TestFileSituationPersistence:
    def test_recall_without_file(self, tmp_path):
        assert FileSituationPersistence(tmp_path / "situation.json").recall() is None

    def test_remember_then_recall(self, tmp_path):
        persistence = FileSituationPersistence(tmp_path / "nested" / "situation.json")
        snapshot = {"transport . distance": {"type": "number", "value": 3}}
        persistence.remember(snapshot)
        assert persistence.recall() == snapshot
        assert not (tmp_path / "nested" / "situation.json.tmp").exists()

    def test_remember_overwrites(self, tmp_path):
        persistence = FileSituationPersistence(tmp_path / "situation.json")
        persistence.remember({"a": {"type": "empty"}})
        persistence.remember({})
        assert json.loads((tmp_path / "situation.json").read_text(encoding="utf-8")) == {}

    def test_recall_invalid_json(self, tmp_path):
        path = tmp_path / "situation.json"
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(DecodeError):
            FileSituationPersistence(path).recall()

    def test_implements_protocol(self, tmp_path):
        assert isinstance(FileSituationPersistence(tmp_path / "s.json"), SituationPersistence)
        assert isinstance(MemorySituationPersistence(), SituationPersistence)


class TestRestoreSituation:
    """Startup restore of the remembered situation."""

    def test_nothing_remembered(self, rules):
        assert restore_situation(MemorySituationPersistence(), rules) == ({}, None)

    def test_valid_snapshot(self, rules):
        persistence = MemorySituationPersistence({"transport . distance": {"type": "number", "value": 3}})
        situation, error = restore_situation(persistence, rules)
        assert situation == {"transport . distance": Num(3)}
        assert error is None

    def test_bad_snapshot_starts_empty_with_error(self, rules):
        persistence = MemorySituationPersistence({"inconnu": {"type": "empty"}})
        situation, error = restore_situation(persistence, rules)
        assert situation == {}
        assert error.kind == ErrorKind.DECODE

    def test_corrupt_file(self, rules, tmp_path):
        path = tmp_path / "situation.json"
        path.write_text("[1, 2", encoding="utf-8")
        situation, error = restore_situation(FileSituationPersistence(path), rules)
        assert situation == {}
        assert error is not None

    def test_file_with_invalid_utf8_starts_empty(self, rules, tmp_path):
        path = tmp_path / "situation.json"
        path.write_bytes(b'{"transport . distance": "\xff\xfe"}')
        situation, error = restore_situation(FileSituationPersistence(path), rules)
        assert situation == {}
        assert error.kind == ErrorKind.DECODE
