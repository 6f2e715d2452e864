"""
Tests for oshi_checker/dataset/loader.py.

What we test
------------
load_members():
  - Valid catalog loads into Member models.
  - Missing file, non-array JSON and duplicate ids raise.
  - Unknown tags are accepted (logged only).

load_questions() / normalize_question_scores() / write_questions():
  - Options keep their single effect.
  - Normalization sets every delta to 1 and leaves level options alone.
  - Written files load back to the same questions.
"""

from __future__ import annotations

import json
import logging

import pytest

from oshi_checker.dataset.loader import (
    load_members,
    load_questions,
    normalize_question_scores,
    write_questions,
)
from oshi_checker.taxonomy.language_taxonomy import KoreanLevel

_QUESTIONS = [
    {
        "question_id": "q1",
        "text": {"ja": "好きな雰囲気は？"},
        "options": [
            {"option_id": "cute", "score_key": "cute", "score_value": 3},
            {"option_id": "mix", "scores": {"cool": 2, "dance": -1}},
        ],
    },
    {
        "question_id": "q6",
        "options": [
            {"option_id": "none", "korean_level": "none"},
            {"option_id": "fluent", "korean_level": "fluent"},
        ],
    },
]


def _write(path, payload):
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


class TestLoadMembers:
    def test_loads_catalog(self, tmp_path):
        path = _write(tmp_path / "members.json", [
            {"member_id": "a_yuna", "name_ja": "ユナ", "tags": ["cute"],
             "artist_covers": {"artist_twice": 3}, "supports_japanese": True},
            {"member_id": "b_mina", "name_ja": "ミナ"},
        ])
        members = load_members(path)
        assert [m.member_id for m in members] == ["a_yuna", "b_mina"]
        assert members[0].supports_japanese is True
        assert members[1].tags == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_members(tmp_path / "absent.json")

    def test_non_array_rejected(self, tmp_path):
        path = _write(tmp_path / "members.json", {"member_id": "x"})
        with pytest.raises(ValueError, match="JSON array"):
            load_members(path)

    def test_duplicate_ids_rejected(self, tmp_path):
        path = _write(tmp_path / "members.json", [
            {"member_id": "x", "name_ja": "X"},
            {"member_id": "x", "name_ja": "X2"},
        ])
        with pytest.raises(ValueError, match="Duplicate"):
            load_members(path)

    def test_unknown_tag_logged(self, tmp_path, caplog):
        path = _write(tmp_path / "members.json", [
            {"member_id": "x", "name_ja": "X", "tags": ["cute", "sparkly"]},
        ])
        with caplog.at_level(logging.WARNING):
            members = load_members(path)
        assert members[0].tags == ["cute", "sparkly"]
        assert "sparkly" in caplog.text


class TestQuestions:
    def test_load_questions(self, tmp_path):
        questions = load_questions(_write(tmp_path / "questions.json", _QUESTIONS))
        assert [q.question_id for q in questions] == ["q1", "q6"]
        assert questions[0].get_option("mix").deltas() == {"cool": 2, "dance": -1}
        assert questions[1].is_korean_level_question

    def test_normalize_sets_deltas_to_one(self, tmp_path):
        questions = load_questions(_write(tmp_path / "questions.json", _QUESTIONS))
        normalized = normalize_question_scores(questions)
        assert normalized[0].get_option("cute").deltas() == {"cute": 1}
        assert normalized[0].get_option("mix").deltas() == {"cool": 1, "dance": 1}
        assert normalized[1].get_option("fluent").korean_level is KoreanLevel.FLUENT
        # originals untouched
        assert questions[0].get_option("cute").score_value == 3

    def test_write_and_reload(self, tmp_path):
        questions = load_questions(_write(tmp_path / "questions.json", _QUESTIONS))
        target = write_questions(tmp_path / "out" / "questions.json", questions)
        assert load_questions(target) == questions
