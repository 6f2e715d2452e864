"""
Shared pytest fixtures for the oshi-checker test suite.

Provides:
  - ``make_member`` / ``make_candidate``: factories for domain objects.
  - ``sample_members``: a small member catalog with tags and cover tables.
  - ``sample_pool``: four fresh candidates with distinct survey scores.
  - ``memory_store``: an empty in-memory snapshot store.
"""

from __future__ import annotations

from typing import Callable

import pytest

from oshi_checker.models.member import Candidate, Member
from oshi_checker.session.store import MemorySnapshotStore


def _member(
    member_id: str = "m1",
    tags: list[str] | None = None,
    artist_covers: dict[str, float] | None = None,
    supports_japanese: bool = False,
    name_ja: str | None = None,
) -> Member:
    return Member(
        member_id=member_id,
        name_ja=name_ja or f"メンバー{member_id}",
        name_en=member_id.upper(),
        photo_url=f"/images/{member_id}.jpg",
        tags=tags or [],
        artist_covers=artist_covers or {},
        supports_japanese=supports_japanese,
    )


def _candidate(
    member_id: str = "m1",
    survey_score: float = 0.0,
    win_count: int = 0,
    supports_japanese: bool = False,
) -> Candidate:
    return Candidate(
        member=_member(member_id, supports_japanese=supports_japanese),
        survey_score=survey_score,
        win_count=win_count,
    )


@pytest.fixture
def make_member() -> Callable[..., Member]:
    return _member


@pytest.fixture
def make_candidate() -> Callable[..., Candidate]:
    return _candidate


@pytest.fixture
def sample_members() -> list[Member]:
    """Five members with overlapping tags and cover tables."""
    return [
        _member("yuna", tags=["cute", "dance", "comfort"],
                artist_covers={"artist_twice": 3}, supports_japanese=True),
        _member("mina", tags=["cool", "vocal"],
                artist_covers={"artist_twice": 5, "artist_ive": 2}),
        _member("sora", tags=["cute", "vocal", "talk"]),
        _member("hana", tags=["elegant", "dance"],
                artist_covers={"artist_ive": 4}, supports_japanese=True),
        _member("rin", tags=["genre_dark", "charisma"]),
    ]


@pytest.fixture
def sample_pool() -> list[Candidate]:
    """Four fresh candidates, survey scores 4/3/2/1."""
    return [
        _candidate("a", survey_score=4.0),
        _candidate("b", survey_score=3.0),
        _candidate("c", survey_score=2.0),
        _candidate("d", survey_score=1.0),
    ]


@pytest.fixture
def memory_store() -> MemorySnapshotStore:
    return MemorySnapshotStore()
