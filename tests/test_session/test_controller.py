"""
Tests for oshi_checker/session/controller.py.

What we test
------------
DiagnosisSession:
  - Every successful transition is written through to the store.
  - A new session resumes from the stored snapshot.
  - reset() clears the store and returns the initial state; so does a raw
    {"type": "RESET"} dict.
  - Rejected transitions leave state and snapshot untouched.
  - Storage failures do not stop the session.
  - answer_options() turns chosen question options into one survey step and
    rejects unknown ids and invalid combinations without touching state.
  - select_candidates() builds the pool from the survey.
  - Phase, progress and ranked_results() follow the tournament.
  - from_config() wires a file store at the configured path.
"""

from __future__ import annotations

import random

import pytest

from oshi_checker.battle.tournament import TournamentCompleteError, TournamentPhase
from oshi_checker.config import AppConfig, SessionConfig
from oshi_checker.models.question import Question, QuestionOption
from oshi_checker.models.session import initial_state
from oshi_checker.session.controller import DiagnosisSession
from oshi_checker.session.store import JsonFileSnapshotStore, restore_state
from oshi_checker.taxonomy.language_taxonomy import KoreanLevel


class _FailingSaveStore:
    def __init__(self):
        self.loads = 0

    def load(self):
        self.loads += 1
        return None

    def save(self, payload):
        raise OSError("quota exceeded")

    def clear(self):
        raise OSError("quota exceeded")


_GENRE = Question(
    question_id="q1",
    options=[
        QuestionOption(option_id=o, score_key=f"genre_{o}", score_value=1)
        for o in ("orthodox", "dark", "denpa")
    ],
)
_ARTISTS = Question(
    question_id="q2",
    multi_select=True,
    options=[
        QuestionOption(option_id=o, score_key=f"artist_{o}", score_value=1)
        for o in ("twice", "ive", "aespa")
    ],
)
_VIBE = Question(
    question_id="q3",
    options=[QuestionOption(option_id="cute", scores={"cute": 1, "squirrel": 1})],
)
_KOREAN = Question(
    question_id="q6",
    options=[QuestionOption(option_id=lvl.value, korean_level=lvl) for lvl in KoreanLevel],
)
_KOREAN_MULTI = Question(
    question_id="q7",
    multi_select=True,
    options=[
        QuestionOption(option_id="basic", korean_level=KoreanLevel.BASIC),
        QuestionOption(option_id="extra", score_key="cute", score_value=1),
    ],
)


def _finish(session, rounds=None):
    for _ in range(rounds or session.battle_rounds):
        a, b = session.next_pair(random.Random(7))
        session.record_battle(a.candidate_id, b.candidate_id, a.candidate_id)


class TestWriteThrough:
    def test_snapshot_follows_every_transition(self, memory_store):
        session = DiagnosisSession(store=memory_store)
        session.answer_question("cute", 1)
        assert restore_state(memory_store.load()) == session.state
        session.set_prefer_japanese_support(True)
        assert memory_store.load()["prefer_japanese_support"] is True

    def test_resume_from_snapshot(self, memory_store, sample_pool):
        first = DiagnosisSession(store=memory_store)
        first.answer_korean_level(KoreanLevel.CONVERSATIONAL)
        first.set_candidates(sample_pool)
        first.record_battle("a", "b", "a")

        resumed = DiagnosisSession(store=memory_store)
        assert resumed.state == first.state
        assert resumed.state.current_battle_round == 1

    def test_restore_disabled(self, memory_store):
        DiagnosisSession(store=memory_store).answer_question("cute", 1)
        assert DiagnosisSession(store=memory_store, restore=False).state == initial_state()

    def test_reset_clears_store(self, memory_store):
        session = DiagnosisSession(store=memory_store)
        session.answer_question("cute", 1)
        assert session.reset() == initial_state()
        assert memory_store.load() is None

    def test_rejected_transition_changes_nothing(self, memory_store, sample_pool):
        session = DiagnosisSession(store=memory_store, battle_rounds=1)
        session.set_candidates(sample_pool)
        session.record_battle("a", "b", "b")
        snapshot = memory_store.load()
        with pytest.raises(TournamentCompleteError):
            session.record_battle("c", "d", "c")
        assert memory_store.load() == snapshot
        assert session.state.current_battle_round == 1

    def test_unknown_action_writes_nothing(self, memory_store):
        session = DiagnosisSession(store=memory_store)
        session.dispatch({"type": "TIME_TRAVEL"})
        assert memory_store.load() is None

    def test_reset_dict_clears_store(self, memory_store):
        session = DiagnosisSession(store=memory_store)
        session.dispatch({"type": "ANSWER_QUESTION", "score_key": "cute", "score_value": 1})
        assert memory_store.load()["survey_scores"] == {"cute": 1}
        assert session.dispatch({"type": "RESET"}) == initial_state()
        assert memory_store.load() is None

    def test_storage_failure_is_not_fatal(self):
        session = DiagnosisSession(store=_FailingSaveStore())
        session.answer_question("cute", 1)
        session.reset()
        session.answer_question("cool", 2)
        assert session.state.survey_scores == {"cool": 2}

    def test_invalid_round_count_rejected(self):
        with pytest.raises(ValueError, match="battle_rounds"):
            DiagnosisSession(battle_rounds=0)


class TestAnswerOptions:
    def test_single_key_option(self, memory_store):
        session = DiagnosisSession(store=memory_store)
        session.answer_options(_GENRE, ["dark"])
        assert session.state.survey_scores == {"genre_dark": 1}
        assert memory_store.load()["current_question_index"] == 1

    def test_multi_select_merges_into_one_step(self):
        session = DiagnosisSession()
        session.answer_options(_ARTISTS, ["twice", "aespa"])
        assert session.state.survey_scores == {"artist_twice": 1, "artist_aespa": 1}
        assert session.state.current_question_index == 1

    def test_scores_option(self):
        session = DiagnosisSession()
        session.answer_options(_VIBE, ["cute"])
        assert session.state.survey_scores == {"cute": 1, "squirrel": 1}

    def test_proficiency_option_sets_level(self):
        session = DiagnosisSession()
        session.answer_options(_KOREAN, ["conversational"])
        assert session.state.korean_level == KoreanLevel.CONVERSATIONAL
        assert session.state.current_question_index == 1
        assert session.state.survey_scores == {}

    def test_unknown_option_raises(self):
        session = DiagnosisSession()
        with pytest.raises(KeyError):
            session.answer_options(_GENRE, ["pop"])
        assert session.state == initial_state()

    @pytest.mark.parametrize(
        "question, option_ids",
        [
            (_GENRE, ["dark", "denpa"]),
            (_GENRE, []),
            (_KOREAN_MULTI, ["basic", "extra"]),
        ],
    )
    def test_invalid_combination_raises(self, question, option_ids):
        session = DiagnosisSession()
        with pytest.raises(ValueError):
            session.answer_options(question, option_ids)
        assert session.state == initial_state()


class TestSessionFlow:
    def test_select_candidates_from_survey(self, sample_members):
        session = DiagnosisSession()
        session.answer_multi({"cute": 1, "vocal": 1})
        session.select_candidates(sample_members, pool_size=2)
        assert session.state.candidate_ids == ["sora", "mina"]

    def test_phase_and_progress(self, sample_pool):
        session = DiagnosisSession(total_questions=2)
        assert session.phase == TournamentPhase.SURVEY
        session.answer_question("cute", 1)
        assert not session.is_survey_complete()
        session.answer_question("cool", 1)
        assert session.is_survey_complete()

        session.set_candidates(sample_pool)
        assert session.phase == TournamentPhase.BATTLING
        _finish(session)
        assert session.phase == TournamentPhase.COMPLETE
        assert session.is_battle_complete
        progress = session.progress
        assert (progress.survey.current, progress.survey.total) == (2, 2)
        assert (progress.battle.current, progress.battle.total) == (5, 5)

    def test_ranked_results_empty_until_complete(self, sample_pool):
        session = DiagnosisSession()
        session.set_candidates(sample_pool)
        assert session.ranked_results() == []

    def test_ranked_results_follow_final_ranking(self, sample_pool):
        session = DiagnosisSession()
        session.set_candidates(sample_pool)
        _finish(session)
        rows = session.ranked_results()
        assert [r.rank for r in rows] == [1, 2, 3, 4]
        assert [r.candidate.candidate_id for r in rows] == [
            c.candidate_id for c in session.state.final_ranking
        ]

    def test_ranked_results_after_override(self, sample_pool):
        session = DiagnosisSession()
        session.set_candidates(sample_pool)
        _finish(session)
        override = list(reversed(session.state.final_ranking))
        session.set_final_ranking(override)
        rows = session.ranked_results()
        assert rows[0].candidate.candidate_id == override[0].candidate_id
        assert rows[0].rank == 1


class TestFromConfig:
    def test_uses_configured_snapshot_path(self, tmp_path):
        path = tmp_path / "snap.json"
        config = AppConfig(session=SessionConfig(snapshot_path=str(path)))
        session = DiagnosisSession.from_config(config)
        assert isinstance(session.store, JsonFileSnapshotStore)
        session.answer_question("cute", 1)
        assert path.exists()
        assert session.battle_rounds == config.tournament.battle_rounds
