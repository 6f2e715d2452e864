"""
Language preference taxonomy.

``KoreanLevel`` is the user's self-reported Korean proficiency, asked as one
of the survey questions. Lower proficiency makes members who offer
Japanese-language support more attractive; the final ranking applies a
small penalty to members without Japanese support for low levels.

This module has NO imports from any other ``oshi_checker`` package.
"""

from enum import StrEnum


class KoreanLevel(StrEnum):
    """Self-reported Korean proficiency, ordered from lowest to highest."""

    NONE = "none"
    """Cannot speak or read Korean."""

    BASIC = "basic"
    """Greetings and a few fan phrases."""

    CONVERSATIONAL = "conversational"
    """Can hold a simple conversation at a fan meeting."""

    FLUENT = "fluent"
    """No language barrier."""


DEFAULT_KOREAN_LEVEL = KoreanLevel.NONE


def parse_korean_level(value: object) -> KoreanLevel:
    """Coerce ``value`` to a ``KoreanLevel``, falling back to ``none``.

    Used when restoring persisted snapshots, where a missing or unknown level
    must not abort the restore.
    """
    if isinstance(value, KoreanLevel):
        return value
    try:
        return KoreanLevel(str(value).strip().lower())
    except ValueError:
        return DEFAULT_KOREAN_LEVEL
