"""
Member and candidate models.

``Member`` is a read-only dataset record: identity, localized names, photo,
attribute tags and the per-artist cover table used by the artist affinity
scorer. The engine never modifies members.

``Candidate`` wraps a ``Member`` with the run-state of one diagnosis
session: the member's survey score and the number of battles won. Both
models are frozen; the battle recorder produces new ``Candidate``
instances instead of mutating existing ones.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from oshi_checker.taxonomy.attribute_taxonomy import SUPPORTED_LOCALES


class Member(BaseModel):
    """A rankable group member as described by the dataset.

    Attributes:
        member_id: Stable unique id (e.g. ``"group-a_yuna"``).
        name_ja: Japanese display name (always present).
        name_ko: Korean display name, or ``None``.
        name_en: English display name, or ``None``.
        photo_url: Local asset path or external ``http(s)`` URL.
        tags: Attribute tag keys (see ``attribute_taxonomy``).
        artist_covers: ``artist_*`` key -> affinity value (cover count).
        supports_japanese: ``True`` if the member can communicate in Japanese.
    """

    model_config = ConfigDict(frozen=True)

    member_id: str
    name_ja: str
    name_ko: Optional[str] = None
    name_en: Optional[str] = None
    photo_url: str = ""
    tags: list[str] = []
    artist_covers: dict[str, float] = {}
    supports_japanese: bool = False

    @field_validator("member_id")
    @classmethod
    def validate_member_id(cls, v: str) -> str:
        if not v or any(ch.isspace() for ch in v):
            raise ValueError(
                f"member_id '{v}' must be non-empty and contain no whitespace."
            )
        return v

    @property
    def is_external_photo(self) -> bool:
        return self.photo_url.startswith(("http://", "https://"))

    def localized_name(self, locale: str = "ja") -> str:
        """Return the display name for ``locale``, falling back to Japanese."""
        if locale not in SUPPORTED_LOCALES:
            return self.name_ja
        name = {"ja": self.name_ja, "ko": self.name_ko, "en": self.name_en}[locale]
        return name or self.name_ja


class Candidate(BaseModel):
    """A member taking part in one session's tournament.

    Attributes:
        member: The underlying dataset record.
        survey_score: Cumulative survey affinity for this member.
        win_count: Battles won so far (only the battle recorder changes it).
    """

    model_config = ConfigDict(frozen=True)

    member: Member
    survey_score: float = 0.0
    win_count: int = 0

    @field_validator("win_count")
    @classmethod
    def validate_win_count(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"win_count must be >= 0, got {v}.")
        return v

    @property
    def candidate_id(self) -> str:
        return self.member.member_id
