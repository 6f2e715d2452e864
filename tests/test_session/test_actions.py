"""
Tests for oshi_checker/session/actions.py.

What we test
------------
parse_action():
  - Each known type is parsed into its model.
  - Unknown or missing ``type`` returns None.
  - A known type with an invalid payload raises ValidationError.
  - Korean level strings are coerced to KoreanLevel.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from oshi_checker.session.actions import (
    ACTION_TYPES,
    AnswerKoreanLevel,
    AnswerMulti,
    AnswerQuestion,
    RecordBattle,
    Reset,
    SetCandidates,
    parse_action,
)
from oshi_checker.taxonomy.language_taxonomy import KoreanLevel


class TestParseAction:
    def test_answer_question(self):
        action = parse_action({"type": "ANSWER_QUESTION", "score_key": "cute", "score_value": 1})
        assert isinstance(action, AnswerQuestion)
        assert action.score_key == "cute"
        assert action.score_value == 1

    def test_answer_multi(self):
        action = parse_action({"type": "ANSWER_MULTI", "scores": {"cute": 1, "cool": -1}})
        assert isinstance(action, AnswerMulti)
        assert action.scores == {"cute": 1, "cool": -1}

    def test_korean_level_coerced(self):
        action = parse_action({"type": "ANSWER_KOREAN_LEVEL", "level": "basic"})
        assert isinstance(action, AnswerKoreanLevel)
        assert action.level is KoreanLevel.BASIC

    def test_record_battle(self):
        action = parse_action({
            "type": "RECORD_BATTLE", "member_a_id": "a", "member_b_id": "b", "winner_id": "a",
        })
        assert isinstance(action, RecordBattle)
        assert action.winner_id == "a"

    def test_set_candidates_nested_members(self):
        action = parse_action({
            "type": "SET_CANDIDATES",
            "candidates": [
                {"member": {"member_id": "a", "name_ja": "A"}, "survey_score": 2},
                {"member": {"member_id": "b", "name_ja": "B"}},
            ],
        })
        assert isinstance(action, SetCandidates)
        assert [c.candidate_id for c in action.candidates] == ["a", "b"]

    def test_reset(self):
        assert isinstance(parse_action({"type": "RESET"}), Reset)

    def test_unknown_type_returns_none(self):
        assert parse_action({"type": "TIME_TRAVEL"}) is None

    def test_missing_type_returns_none(self):
        assert parse_action({"score_key": "cute"}) is None

    def test_invalid_payload_raises(self):
        with pytest.raises(ValidationError):
            parse_action({"type": "ANSWER_KOREAN_LEVEL", "level": "native"})

    def test_every_type_listed(self):
        assert len(ACTION_TYPES) == 9
