"""
Battle result recording.

``record_battle_result()`` validates one pairwise outcome and returns a new
candidate pool in which only the winner's ``win_count`` grew by one. The
input list and its candidates are never modified; an invalid outcome raises
``InvalidBattleOutcomeError`` before anything is built.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from oshi_checker.models.member import Candidate
from oshi_checker.models.session import BattleRecord

logger = logging.getLogger(__name__)


class InvalidBattleOutcomeError(ValueError):
    """Raised when a battle outcome cannot be applied to the pool.

    Attributes:
        member_a:  First participant id.
        member_b:  Second participant id.
        winner_id: Claimed winner id.
        reason:    Human-readable cause.
    """

    def __init__(self, member_a: str, member_b: str, winner_id: str, reason: str) -> None:
        self.member_a  = member_a
        self.member_b  = member_b
        self.winner_id = winner_id
        self.reason    = reason
        super().__init__(
            f"Invalid battle outcome ({member_a} vs {member_b}, winner {winner_id}): {reason}"
        )


@dataclass(frozen=True)
class BattleOutcome:
    """Result of applying one battle.

    Attributes:
        updated_candidates: New pool with the winner's win_count incremented.
        record:             The immutable record of this battle.
    """

    updated_candidates: list[Candidate]
    record:             BattleRecord


def record_battle_result(
    candidates:   list[Candidate],
    round_number: int,
    member_a:     str,
    member_b:     str,
    winner_id:    str,
) -> BattleOutcome:
    """Apply one battle outcome to the candidate pool.

    Args:
        candidates:   Current pool (not modified).
        round_number: 1-based round being recorded.
        member_a:     First participant id.
        member_b:     Second participant id.
        winner_id:    Chosen participant id.

    Returns:
        ``BattleOutcome`` with the new pool and the battle record.

    Raises:
        InvalidBattleOutcomeError: If the winner is not a participant, both
            participants are the same, or a participant is not in the pool.
    """
    if member_a == member_b:
        raise InvalidBattleOutcomeError(
            member_a, member_b, winner_id, "participants must be distinct"
        )
    if winner_id not in (member_a, member_b):
        raise InvalidBattleOutcomeError(
            member_a, member_b, winner_id, "winner is not one of the participants"
        )

    pool_ids = {c.candidate_id for c in candidates}
    missing = [m for m in (member_a, member_b) if m not in pool_ids]
    if missing:
        raise InvalidBattleOutcomeError(
            member_a, member_b, winner_id,
            f"not in the candidate pool: {', '.join(missing)}",
        )

    updated = [
        c.model_copy(update={"win_count": c.win_count + 1})
        if c.candidate_id == winner_id else c
        for c in candidates
    ]
    record = BattleRecord(
        round=round_number,
        member_a=member_a,
        member_b=member_b,
        winner_id=winner_id,
    )

    logger.debug("Round %d: %s beat %s", round_number, winner_id, record.loser_id)
    return BattleOutcome(updated_candidates=updated, record=record)
