"""
Tournament round control.

The battle stage runs exactly ``battle_rounds`` rounds (``BATTLE_ROUNDS`` by
default, overridable in config). Phases::

    SURVEY ──SET_CANDIDATES──▶ BATTLING(round 0..N-1) ──Nth battle──▶ COMPLETE

  - ``start_tournament()`` (SET_CANDIDATES) installs a pool and restarts at
    round 0 with an empty history, an empty ranking and every win count at
    0. Re-selecting a pool from any phase restarts the tournament, even
    when it is the pool that just finished.
  - ``advance_tournament()`` (RECORD_BATTLE) stamps ``round = current + 1``,
    applies the outcome via the recorder, appends the record and increments
    the counter. When the counter reaches ``battle_rounds`` the final ranking
    is computed exactly once and stored.
  - Recording after completion raises ``TournamentCompleteError``; the only
    ways out of COMPLETE are a new pool or a reset.

Pair selection is the driving UI's job; ``pick_battle_pair()`` is a helper
that favours candidates who have battled least so far.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from enum import StrEnum
from typing import Optional

from oshi_checker.battle.recorder import record_battle_result
from oshi_checker.models.member import Candidate
from oshi_checker.models.session import BattleRecord, DiagnosisState
from oshi_checker.scoring.ranking import RankingWeights, calculate_final_ranking

logger = logging.getLogger(__name__)

BATTLE_ROUNDS = 5


class TournamentPhase(StrEnum):
    SURVEY = "survey"
    BATTLING = "battling"
    COMPLETE = "complete"


class TournamentCompleteError(RuntimeError):
    """Raised when a battle is recorded after the last round.

    Attributes:
        battle_rounds: Configured number of rounds.
    """

    def __init__(self, battle_rounds: int) -> None:
        self.battle_rounds = battle_rounds
        super().__init__(
            f"Tournament already completed all {battle_rounds} rounds.  "
            "Select a new candidate pool or reset the session first."
        )


class TournamentNotStartedError(RuntimeError):
    """Raised when a battle is recorded without a pool of at least two candidates.

    Attributes:
        pool_size: Number of candidates currently in the pool.
    """

    def __init__(self, pool_size: int) -> None:
        self.pool_size = pool_size
        super().__init__(
            f"A battle needs at least 2 candidates in the pool, found {pool_size}."
        )


class InvalidCandidatePoolError(ValueError):
    """Raised when a candidate pool contains duplicate ids."""

    def __init__(self, duplicate_ids: list[str]) -> None:
        self.duplicate_ids = duplicate_ids
        super().__init__(
            f"Candidate pool has duplicate ids: {', '.join(sorted(duplicate_ids))}"
        )


def is_battle_complete(state: DiagnosisState, battle_rounds: int = BATTLE_ROUNDS) -> bool:
    return state.current_battle_round >= battle_rounds


def next_round_number(state: DiagnosisState) -> int:
    return state.current_battle_round + 1


def tournament_phase(
    state: DiagnosisState,
    battle_rounds: int = BATTLE_ROUNDS,
) -> TournamentPhase:
    """Return the phase the session is in."""
    if is_battle_complete(state, battle_rounds):
        return TournamentPhase.COMPLETE
    if state.candidates:
        return TournamentPhase.BATTLING
    return TournamentPhase.SURVEY


def start_tournament(state: DiagnosisState, candidates: list[Candidate]) -> DiagnosisState:
    """Install a new candidate pool and restart the battle stage at round 0.

    Win counts carried by ``candidates`` are reset to 0; only battles
    recorded in this tournament count towards its ranking.

    Raises:
        InvalidCandidatePoolError: If two candidates share an id.
    """
    counts = Counter(c.candidate_id for c in candidates)
    duplicates = [cid for cid, n in counts.items() if n > 1]
    if duplicates:
        raise InvalidCandidatePoolError(duplicates)

    pool = [c if c.win_count == 0 else c.model_copy(update={"win_count": 0}) for c in candidates]

    logger.info("Tournament started with %d candidates", len(pool))
    return state.model_copy(
        update={
            "candidates": pool,
            "battle_records": [],
            "current_battle_round": 0,
            "final_ranking": [],
        }
    )


def advance_tournament(
    state:         DiagnosisState,
    member_a:      str,
    member_b:      str,
    winner_id:     str,
    battle_rounds: int = BATTLE_ROUNDS,
    weights:       Optional[RankingWeights] = None,
) -> DiagnosisState:
    """Record one battle and, after the last round, compute the final ranking.

    Args:
        state:         Current session state (not modified).
        member_a:      First participant id.
        member_b:      Second participant id.
        winner_id:     Chosen participant id.
        battle_rounds: Total number of rounds in the tournament.
        weights:       Composite ranking coefficients.

    Returns:
        New state with the record appended and the round counter advanced.

    Raises:
        TournamentCompleteError: If all rounds have already been recorded.
        TournamentNotStartedError: If the pool holds fewer than 2 candidates.
        InvalidBattleOutcomeError: If the outcome is invalid (from the recorder).
    """
    if is_battle_complete(state, battle_rounds):
        raise TournamentCompleteError(battle_rounds)
    if len(state.candidates) < 2:
        raise TournamentNotStartedError(len(state.candidates))

    round_number = next_round_number(state)
    outcome = record_battle_result(
        state.candidates, round_number, member_a, member_b, winner_id
    )
    records = [*state.battle_records, outcome.record]
    logger.debug(
        "Round %d recorded",
        round_number,
        extra={"round": round_number, "winner_id": winner_id},
    )

    final_ranking = state.final_ranking
    if round_number >= battle_rounds:
        final_ranking = calculate_final_ranking(
            outcome.updated_candidates,
            records,
            state.korean_level,
            state.prefer_japanese_support,
            weights,
        )

    return state.model_copy(
        update={
            "candidates": outcome.updated_candidates,
            "battle_records": records,
            "current_battle_round": round_number,
            "final_ranking": final_ranking,
        }
    )


def pick_battle_pair(
    candidates: list[Candidate],
    records:    list[BattleRecord],
    rng:        Optional[random.Random] = None,
) -> tuple[Candidate, Candidate]:
    """Choose two distinct candidates for the next battle.

    Candidates with the fewest battles so far are preferred; ties are broken
    by ``rng`` (pass a seeded ``random.Random`` for reproducible pairs).

    Raises:
        TournamentNotStartedError: If fewer than 2 candidates are available.
    """
    if len(candidates) < 2:
        raise TournamentNotStartedError(len(candidates))
    rng = rng or random.Random()

    appearances: Counter[str] = Counter()
    for record in records:
        appearances[record.member_a] += 1
        appearances[record.member_b] += 1

    ordered = sorted(
        candidates,
        key=lambda c: (appearances[c.candidate_id], rng.random()),
    )
    return ordered[0], ordered[1]
