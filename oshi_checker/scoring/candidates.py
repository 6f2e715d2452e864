"""
Candidate pool selection.

Before the battle stage the member catalog is scored against the finished
survey and the best-matching members become the tournament pool.

Member survey score
-------------------
    survey_score = sum(survey_scores[tag] for tag in member.tags)
                   + artist_weight * artist_score

where ``artist_score`` is the capped top-3 artist affinity (see
``scoring.artist``). Tags the user never scored contribute 0.

Pool order
----------
Members are sorted by survey score descending; ties broken by member_id
ascending so the pool is reproducible for identical inputs.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from oshi_checker.models.member import Candidate, Member
from oshi_checker.scoring.artist import compute_artist_score

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 8
MIN_POOL_SIZE = 2


def compute_member_survey_score(
    member: Member,
    survey_scores: Mapping[str, float],
    artist_weight: float = 1.0,
) -> float:
    """Return the survey affinity of one member.

    Args:
        member:        Dataset record.
        survey_scores: Accumulated survey scores.
        artist_weight: Multiplier for the artist sub-score.

    Returns:
        Survey score rounded to 4 decimal places.
    """
    tag_score = sum(survey_scores.get(tag, 0) for tag in member.tags)
    artist = compute_artist_score(member.artist_covers, survey_scores)
    return round(tag_score + artist_weight * artist.score, 4)


def select_candidates(
    members: list[Member],
    survey_scores: Mapping[str, float],
    pool_size: int = DEFAULT_POOL_SIZE,
    artist_weight: float = 1.0,
) -> list[Candidate]:
    """Build the tournament pool from the member catalog.

    Args:
        members:       All members in the catalog.
        survey_scores: Accumulated survey scores.
        pool_size:     Maximum number of candidates to return.
        artist_weight: Multiplier for the artist sub-score.

    Returns:
        Up to ``pool_size`` fresh candidates (``win_count == 0``), best first.

    Raises:
        ValueError: If ``pool_size`` is below 2 or member ids are duplicated.
    """
    if pool_size < MIN_POOL_SIZE:
        raise ValueError(f"pool_size must be >= {MIN_POOL_SIZE}, got {pool_size}.")

    ids = [m.member_id for m in members]
    if len(ids) != len(set(ids)):
        raise ValueError("Member catalog contains duplicate member_id values.")

    scored = [
        Candidate(
            member=m,
            survey_score=compute_member_survey_score(m, survey_scores, artist_weight),
        )
        for m in members
    ]
    scored.sort(key=lambda c: (-c.survey_score, c.candidate_id))
    pool = scored[:pool_size]

    logger.debug(
        "Selected %d/%d candidates (top score %.2f)",
        len(pool), len(members), pool[0].survey_score if pool else 0.0,
    )
    return pool
