"""
Diagnosis session models.

``BattleRecord`` is an immutable fact: one forced-choice comparison between
two candidates and the id of the one the user picked.

``DiagnosisState`` is the whole session aggregate threaded through the
reducer. It is frozen; every transition returns a new instance.

Invariants checked at construction time:
  - ``len(battle_records) == current_battle_round``
  - ``final_ranking`` (when non-empty) is a permutation of ``candidates``

The upper bound ``current_battle_round <= battle_rounds`` depends on the
configured round count and is enforced by the state machine and by
``session.store.restore_state()``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from oshi_checker.models.member import Candidate
from oshi_checker.taxonomy.language_taxonomy import DEFAULT_KOREAN_LEVEL, KoreanLevel


class BattleRecord(BaseModel):
    """One completed battle.

    Attributes:
        round: 1-based round number within the session.
        member_a: Id of the first participant.
        member_b: Id of the second participant.
        winner_id: Id of the chosen participant (``member_a`` or ``member_b``).
    """

    model_config = ConfigDict(frozen=True)

    round: int
    member_a: str
    member_b: str
    winner_id: str

    @field_validator("round")
    @classmethod
    def validate_round(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"round must be >= 1, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_participants(self) -> "BattleRecord":
        if self.member_a == self.member_b:
            raise ValueError(
                f"A battle needs two distinct participants, got '{self.member_a}' twice."
            )
        if self.winner_id not in (self.member_a, self.member_b):
            raise ValueError(
                f"winner_id '{self.winner_id}' must be one of "
                f"'{self.member_a}' or '{self.member_b}'."
            )
        return self

    @property
    def loser_id(self) -> str:
        return self.member_b if self.winner_id == self.member_a else self.member_a


class DiagnosisState(BaseModel):
    """Complete state of one diagnosis session.

    Attributes:
        current_question_index: Survey cursor (number of answered questions).
        survey_scores: Accumulated score per survey key.
        korean_level: Self-reported Korean proficiency.
        prefer_japanese_support: User prefers members offering Japanese support.
        candidates: Candidate pool for the tournament.
        battle_records: Completed battles in round order.
        current_battle_round: Number of completed battles.
        final_ranking: Terminal ranking; empty until the tournament completes.
    """

    model_config = ConfigDict(frozen=True)

    # Stage 1: survey
    current_question_index: int = 0
    survey_scores: dict[str, float] = {}
    korean_level: KoreanLevel = DEFAULT_KOREAN_LEVEL
    prefer_japanese_support: bool = False

    # Stage 2: battles
    candidates: list[Candidate] = []
    battle_records: list[BattleRecord] = []
    current_battle_round: int = 0

    # Result
    final_ranking: list[Candidate] = []

    @field_validator("current_question_index", "current_battle_round")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Counters must be >= 0, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_consistency(self) -> "DiagnosisState":
        if len(self.battle_records) != self.current_battle_round:
            raise ValueError(
                f"battle_records has {len(self.battle_records)} entries but "
                f"current_battle_round is {self.current_battle_round}."
            )
        if self.final_ranking and not is_permutation(self.final_ranking, self.candidates):
            raise ValueError("final_ranking must be a permutation of candidates.")
        return self

    @property
    def candidate_ids(self) -> list[str]:
        return [c.candidate_id for c in self.candidates]

    def get_candidate(self, candidate_id: str) -> Candidate | None:
        for candidate in self.candidates:
            if candidate.candidate_id == candidate_id:
                return candidate
        return None


def is_permutation(ranking: list[Candidate], candidates: list[Candidate]) -> bool:
    """Return True if ``ranking`` holds exactly the ids of ``candidates``, once each."""
    ranked_ids = [c.candidate_id for c in ranking]
    pool_ids = [c.candidate_id for c in candidates]
    return len(ranked_ids) == len(set(ranked_ids)) and sorted(ranked_ids) == sorted(pool_ids)


def initial_state() -> DiagnosisState:
    """Return a fresh session state."""
    return DiagnosisState()
