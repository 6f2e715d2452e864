"""
Final composite ranking: merges survey affinity, battle wins and the two
language preferences into one strict total order of the candidate pool.

Composite formula
-----------------
    base        = survey_weight * survey_score + win_weight * win_count
    adjustment  = + jp_support_boost                (prefer_japanese_support
                                                     and member supports Japanese)
                  - korean_penalty(korean_level)    (member does NOT support
                                                     Japanese)
    composite   = base + adjustment

Default weights
---------------
    survey_weight        1.0   one normalized survey point
    win_weight           3.0   a battle win is worth three survey points
    jp_support_boost     3.0
    korean_penalty       none: 2.0, basic: 1.0, conversational/fluent: 0.0

Both weights must be strictly positive, so the composite never decreases
when a candidate's survey score or win count grows. Adjustments are bounded
by ``MAX_ADJUSTMENT``.

Ordering
--------
Candidates are emitted one at a time. At each step the eligible set is the
remaining candidates that are not dominated by another remaining candidate
(strictly higher survey score AND strictly more wins). The eligible
candidate with the largest key wins the step:

    (composite desc, win_count desc, survey_score desc, candidate_id asc)

Preference adjustments therefore reorder candidates freely except across a
dominance relation, and the output is reproducible for identical inputs.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from oshi_checker.models.member import Candidate
from oshi_checker.models.session import BattleRecord
from oshi_checker.taxonomy.language_taxonomy import KoreanLevel

logger = logging.getLogger(__name__)

MAX_ADJUSTMENT = 10.0


@dataclass(frozen=True)
class RankingWeights:
    """Coefficients of the composite ranking score.

    Raises:
        ValueError: If a weight is not strictly positive or an adjustment
            lies outside ``[0, MAX_ADJUSTMENT]``.
    """

    survey_weight:        float = 1.0
    win_weight:           float = 3.0
    jp_support_boost:     float = 3.0
    korean_penalty_none:  float = 2.0
    korean_penalty_basic: float = 1.0

    def __post_init__(self) -> None:
        for name in ("survey_weight", "win_weight"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0, got {getattr(self, name)}.")
        for name in ("jp_support_boost", "korean_penalty_none", "korean_penalty_basic"):
            value = getattr(self, name)
            if not 0.0 <= value <= MAX_ADJUSTMENT:
                raise ValueError(
                    f"{name} must be in [0, {MAX_ADJUSTMENT}], got {value}."
                )

    def korean_penalty(self, level: KoreanLevel) -> float:
        if level == KoreanLevel.NONE:
            return self.korean_penalty_none
        if level == KoreanLevel.BASIC:
            return self.korean_penalty_basic
        return 0.0


DEFAULT_WEIGHTS = RankingWeights()


@dataclass(frozen=True)
class RankedCandidate:
    """One row of the final ranking with its score breakdown.

    Attributes:
        rank:                  1-based position.
        candidate:             The ranked candidate.
        composite:             Total ranking score.
        base_score:            Survey + battle part of the composite.
        preference_adjustment: Language preference boost minus penalty.
        battles_played:        Battles in the history involving this candidate.
        battles_won:           Battles in the history won by this candidate.
        head_to_head:          Opponent id -> wins against that opponent.
    """

    rank:                  int
    candidate:             Candidate
    composite:             float
    base_score:            float
    preference_adjustment: float
    battles_played:        int
    battles_won:           int
    head_to_head:          dict[str, int] = field(default_factory=dict)


def compute_preference_adjustment(
    candidate: Candidate,
    korean_level: KoreanLevel,
    prefer_japanese_support: bool,
    weights: RankingWeights = DEFAULT_WEIGHTS,
) -> float:
    """Return the bounded language-preference adjustment for one candidate."""
    if candidate.member.supports_japanese:
        return weights.jp_support_boost if prefer_japanese_support else 0.0
    return -weights.korean_penalty(korean_level)


def compute_composite(
    candidate: Candidate,
    korean_level: KoreanLevel,
    prefer_japanese_support: bool,
    weights: RankingWeights = DEFAULT_WEIGHTS,
) -> tuple[float, float, float]:
    """Return ``(composite, base_score, adjustment)`` for one candidate."""
    base = (
        weights.survey_weight * candidate.survey_score
        + weights.win_weight * candidate.win_count
    )
    adjustment = compute_preference_adjustment(
        candidate, korean_level, prefer_japanese_support, weights
    )
    return round(base + adjustment, 4), round(base, 4), round(adjustment, 4)


def score_candidates_for_ranking(
    candidates:              list[Candidate],
    battle_records:          list[BattleRecord],
    korean_level:            KoreanLevel,
    prefer_japanese_support: bool,
    weights:                 RankingWeights | None = None,
) -> list[RankedCandidate]:
    """Rank the pool and return one ``RankedCandidate`` per input candidate.

    Args:
        candidates:              Terminal candidate pool (final win counts).
        battle_records:          Complete battle history.
        korean_level:            User's Korean proficiency.
        prefer_japanese_support: User prefers Japanese-speaking members.
        weights:                 Composite coefficients; defaults apply if None.

    Returns:
        Ranked rows, rank 1 first. Always a permutation of ``candidates``.
    """
    weights = weights or DEFAULT_WEIGHTS
    pool_ids = {c.candidate_id for c in candidates}

    played: Counter[str] = Counter()
    won: Counter[str] = Counter()
    head_to_head: dict[str, Counter[str]] = {c.candidate_id: Counter() for c in candidates}
    for record in battle_records:
        if record.member_a not in pool_ids or record.member_b not in pool_ids:
            logger.warning(
                "Round %d references a candidate outside the pool (%s vs %s); ignored",
                record.round, record.member_a, record.member_b,
            )
            continue
        played[record.member_a] += 1
        played[record.member_b] += 1
        won[record.winner_id] += 1
        head_to_head[record.winner_id][record.loser_id] += 1

    for c in candidates:
        if won[c.candidate_id] != c.win_count:
            logger.warning(
                "Candidate %s has win_count=%d but %d recorded wins",
                c.candidate_id, c.win_count, won[c.candidate_id],
            )

    scored: list[tuple[Candidate, float, float, float]] = []
    for c in candidates:
        composite, base, adjustment = compute_composite(
            c, korean_level, prefer_japanese_support, weights
        )
        scored.append((c, composite, base, adjustment))

    ordered = _dominance_order(scored)

    return [
        RankedCandidate(
            rank=rank,
            candidate=c,
            composite=composite,
            base_score=base,
            preference_adjustment=adjustment,
            battles_played=played[c.candidate_id],
            battles_won=won[c.candidate_id],
            head_to_head=dict(head_to_head[c.candidate_id]),
        )
        for rank, (c, composite, base, adjustment) in enumerate(ordered, start=1)
    ]


def calculate_final_ranking(
    candidates:              list[Candidate],
    battle_records:          list[BattleRecord],
    korean_level:            KoreanLevel,
    prefer_japanese_support: bool,
    weights:                 RankingWeights | None = None,
) -> list[Candidate]:
    """Return the candidate pool in final ranking order (best first)."""
    ranked = score_candidates_for_ranking(
        candidates, battle_records, korean_level, prefer_japanese_support, weights
    )
    if ranked:
        top = ranked[0]
        logger.info(
            "Final ranking computed for %d candidates; top=%s (composite %.2f)",
            len(ranked), top.candidate.candidate_id, top.composite,
        )
    return [r.candidate for r in ranked]


# ── Helpers ───────────────────────────────────────────────────────────────────

def _dominates(a: Candidate, b: Candidate) -> bool:
    return a.survey_score > b.survey_score and a.win_count > b.win_count


def _sort_key(entry: tuple[Candidate, float, float, float]) -> tuple:
    c, composite, _, _ = entry
    return (-composite, -c.win_count, -c.survey_score, c.candidate_id)


def _dominance_order(
    scored: list[tuple[Candidate, float, float, float]],
) -> list[tuple[Candidate, float, float, float]]:
    remaining = list(scored)
    ordered: list[tuple[Candidate, float, float, float]] = []
    while remaining:
        # Dominance is a strict partial order, so at least one entry is eligible.
        eligible = [
            e for e in remaining
            if not any(_dominates(o[0], e[0]) for o in remaining if o is not e)
        ]
        best = min(eligible, key=_sort_key)
        ordered.append(best)
        remaining.remove(best)
    return ordered
