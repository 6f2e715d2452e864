"""
Artist affinity scoring.

One survey question asks which artists' songs the user likes; each choice
adds an ``artist_<name>`` key to the survey scores. Members carry a cover
table (``artist_<name>`` -> number of covers performed). The artist score
rewards members who cover the selected artists, with two bounds:

    value(key) = min(ARTIST_VALUE_CAP, covers.get(key, 0))
    score      = sum of the ARTIST_TOP_K largest positive values

so the result always lies in ``[0, ARTIST_VALUE_CAP * ARTIST_TOP_K]``.

Ties in value keep the order in which the keys appear in the survey scores,
so ``ArtistScore.used`` is reproducible.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

ARTIST_KEY_PREFIX = "artist_"
ARTIST_VALUE_CAP = 5
ARTIST_TOP_K = 3


@dataclass(frozen=True)
class ArtistCover:
    key: str
    value: float


@dataclass(frozen=True)
class ArtistScore:
    """Artist affinity sub-score and the entries that produced it.

    Attributes:
        score: Sum of the used values, in ``[0, 15]``.
        used:  Entries summed, highest value first.
    """

    score: float
    used: list[ArtistCover] = field(default_factory=list)


def compute_artist_score(
    member_covers: Mapping[str, float] | None,
    survey_scores: Mapping[str, float],
) -> ArtistScore:
    """Compute the capped top-3 artist score for one member.

    Args:
        member_covers: The member's cover table; ``None`` is treated as empty.
        survey_scores: Accumulated survey scores of the session. Only keys
            starting with ``artist_`` are considered; their survey values
            are not used, only their presence.

    Returns:
        ``ArtistScore`` with the sum and the entries used.
    """
    covers = member_covers or {}

    selected_keys = [k for k in survey_scores if k.startswith(ARTIST_KEY_PREFIX)]

    pairs = [
        ArtistCover(key=key, value=min(ARTIST_VALUE_CAP, covers.get(key, 0)))
        for key in selected_keys
    ]
    pairs = [p for p in pairs if p.value > 0]
    # sorted() is stable: equal values keep survey key order
    pairs = sorted(pairs, key=lambda p: -p.value)

    used = pairs[:ARTIST_TOP_K]
    return ArtistScore(score=sum(p.value for p in used), used=used)
