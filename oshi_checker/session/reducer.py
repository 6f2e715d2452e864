"""
The diagnosis state machine.

``reduce(state, action)`` is a pure function: it never touches storage and
never mutates ``state``. Persistence is the caller's concern (see
``session.controller.DiagnosisSession``).

Transitions
-----------
    ANSWER_QUESTION       survey_scores[key] += value; question cursor + 1
    ANSWER_MULTI          every delta merged; question cursor + 1
    ANSWER_KOREAN_LEVEL   korean_level = level; question cursor + 1
    SET_KOREAN_LEVEL      korean_level = level
    SET_PREFER_JP_SUPPORT prefer_japanese_support = value
    SET_CANDIDATES        new pool; round 0, empty history and ranking
    RECORD_BATTLE         round stamped, recorder applied, ranking at last round
    SET_FINAL_RANKING     final_ranking = ranking (permutation, completed only)
    RESET                 initial state
    anything else         no-op (the same state object is returned)

Raw action dicts (as read from an action log) are accepted and validated with
``parse_action()`` first, so ``{"type": "RESET"}`` resets; a dict with an
unknown ``type`` is the no-op case.
Rejected transitions raise and leave the caller's state untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from oshi_checker.battle.tournament import (
    BATTLE_ROUNDS,
    advance_tournament,
    is_battle_complete,
    start_tournament,
)
from oshi_checker.models.session import DiagnosisState, initial_state, is_permutation
from oshi_checker.scoring.accumulator import apply_answer
from oshi_checker.scoring.ranking import RankingWeights
from oshi_checker.session.actions import (
    AnswerKoreanLevel,
    AnswerMulti,
    AnswerQuestion,
    DiagnosisAction,
    RecordBattle,
    Reset,
    SetCandidates,
    SetFinalRanking,
    SetKoreanLevel,
    SetPreferJpSupport,
    parse_action,
)

logger = logging.getLogger(__name__)


class InvalidRankingError(ValueError):
    """Raised when SET_FINAL_RANKING would break the ranking invariants."""


def reduce(
    state: DiagnosisState,
    action: Union[DiagnosisAction, dict[str, Any]],
    *,
    battle_rounds: int = BATTLE_ROUNDS,
    weights: Optional[RankingWeights] = None,
) -> DiagnosisState:
    """Apply one action and return the next state.

    Args:
        state:         Current state (not modified).
        action:        One of the ``session.actions`` models, or a raw action
                       dict in the action-log format.
        battle_rounds: Rounds in the tournament.
        weights:       Composite ranking coefficients.

    Returns:
        The next state; ``state`` itself for unknown actions.

    Raises:
        InvalidBattleOutcomeError: RECORD_BATTLE with an invalid outcome.
        TournamentCompleteError: RECORD_BATTLE after the last round.
        TournamentNotStartedError: RECORD_BATTLE with fewer than 2 candidates.
        InvalidCandidatePoolError: SET_CANDIDATES with duplicate ids.
        InvalidRankingError: SET_FINAL_RANKING breaking the ranking invariants.
        pydantic.ValidationError: A raw dict with a known type but an invalid
            payload.
    """
    if isinstance(action, dict):
        parsed = parse_action(action)
        if parsed is None:
            logger.debug("Ignoring unknown action type %r", action.get("type"))
            return state
        action = parsed

    if isinstance(action, AnswerQuestion):
        return apply_answer(state, {action.score_key: action.score_value})

    if isinstance(action, AnswerMulti):
        return apply_answer(state, action.scores)

    if isinstance(action, AnswerKoreanLevel):
        return state.model_copy(
            update={
                "current_question_index": state.current_question_index + 1,
                "korean_level": action.level,
            }
        )

    if isinstance(action, SetKoreanLevel):
        return state.model_copy(update={"korean_level": action.level})

    if isinstance(action, SetPreferJpSupport):
        return state.model_copy(update={"prefer_japanese_support": action.value})

    if isinstance(action, SetCandidates):
        return start_tournament(state, action.candidates)

    if isinstance(action, RecordBattle):
        return advance_tournament(
            state,
            action.member_a_id,
            action.member_b_id,
            action.winner_id,
            battle_rounds=battle_rounds,
            weights=weights,
        )

    if isinstance(action, SetFinalRanking):
        return _override_final_ranking(state, action, battle_rounds)

    if isinstance(action, Reset):
        return initial_state()

    logger.debug("Ignoring unknown action %r", getattr(action, "type", action))
    return state


def _override_final_ranking(
    state: DiagnosisState,
    action: SetFinalRanking,
    battle_rounds: int,
) -> DiagnosisState:
    if not is_battle_complete(state, battle_rounds):
        raise InvalidRankingError(
            f"Final ranking can only be set after all {battle_rounds} rounds "
            f"(current round {state.current_battle_round})."
        )
    if not is_permutation(action.ranking, state.candidates):
        raise InvalidRankingError(
            "Final ranking must contain every candidate of the pool exactly once."
        )
    # The pool is authoritative for scores and win counts; only the order is taken.
    by_id = {c.candidate_id: c for c in state.candidates}
    ranking = [by_id[c.candidate_id] for c in action.ranking]
    return state.model_copy(update={"final_ranking": ranking})
