"""
Attribute taxonomy for member tags and survey score keys.

Every member tag and most survey score keys come from one fixed catalog.
Each attribute belongs to exactly one ``AttributeCategory``:

  - ``genre``      : the musical / concept genre of the group.
  - ``vibe``       : visual impression (including face-type keys).
  - ``performance``: stage strengths.
  - ``meet``       : impression at fan meetings.

Labels are defined in Japanese first; ``ko`` / ``en`` labels are optional
and fall back to ``ja`` when absent.

Survey keys that are NOT in this catalog (e.g. ``artist_*`` cover keys) are
still accepted by the score accumulator; this catalog is used for display
and validation of member tags only.

This module has NO imports from any other ``oshi_checker`` package.
"""

from enum import StrEnum
from typing import NamedTuple


class AttributeCategory(StrEnum):
    """Top-level grouping of attribute keys."""

    GENRE = "genre"
    VIBE = "vibe"
    PERFORMANCE = "performance"
    MEET = "meet"


class AttributeDefinition(NamedTuple):
    key: str
    category: AttributeCategory
    label_ja: str
    label_ko: str | None = None
    label_en: str | None = None


_G = AttributeCategory.GENRE
_V = AttributeCategory.VIBE
_P = AttributeCategory.PERFORMANCE
_M = AttributeCategory.MEET

ATTRIBUTE_DEFINITIONS: tuple[AttributeDefinition, ...] = (
    # ── genre ─────────────────────────────────────────────────────────────────
    AttributeDefinition("genre_orthodox", _G, "王道"),
    AttributeDefinition("genre_denpa",    _G, "電波"),
    AttributeDefinition("genre_loud",     _G, "ラウド"),
    AttributeDefinition("genre_alt",      _G, "オルタナ"),
    AttributeDefinition("genre_dark",     _G, "ダーク"),
    AttributeDefinition("genre_gothic",   _G, "ゴシック"),
    AttributeDefinition("genre_cyber",    _G, "サイバー"),
    AttributeDefinition("genre_magical",  _G, "マジカル"),
    AttributeDefinition("genre_yami",     _G, "病み"),
    # ── vibe ──────────────────────────────────────────────────────────────────
    AttributeDefinition("cute",          _V, "キュート"),
    AttributeDefinition("squirrel",      _V, "リス系"),
    AttributeDefinition("cool",          _V, "クール"),
    AttributeDefinition("pure",          _V, "ピュア"),
    AttributeDefinition("sexy",          _V, "セクシー"),
    AttributeDefinition("elegant",       _V, "エレガント"),
    AttributeDefinition("healing",       _V, "癒し"),
    AttributeDefinition("youthful",      _V, "フレッシュ"),
    AttributeDefinition("mysterious",    _V, "ミステリアス"),
    AttributeDefinition("unique",        _V, "個性派"),
    AttributeDefinition("idol_kpop",     _V, "K-POPアイドル"),
    AttributeDefinition("idol_polished", _V, "洗練アイドル"),
    # face types are displayed with the vibe group
    AttributeDefinition("face_cat",        _V, "猫顔"),
    AttributeDefinition("face_dog",        _V, "犬顔"),
    AttributeDefinition("face_rabbit",     _V, "ウサギ顔"),
    AttributeDefinition("face_raccoon_dog", _V, "タヌキ顔"),
    AttributeDefinition("face_fox",        _V, "キツネ顔"),
    AttributeDefinition("face_squirrel",   _V, "リス顔"),
    AttributeDefinition("face_chick",      _V, "ひよこ顔"),
    AttributeDefinition("face_bird",       _V, "小鳥顔"),
    # ── performance ───────────────────────────────────────────────────────────
    AttributeDefinition("dance",      _P, "ダンス"),
    AttributeDefinition("vocal",      _P, "ボーカル"),
    AttributeDefinition("expression", _P, "表現力"),
    AttributeDefinition("energy",     _P, "エナジー"),
    AttributeDefinition("stability",  _P, "安定感"),
    AttributeDefinition("growth",     _P, "成長性"),
    AttributeDefinition("presence",   _P, "存在感"),
    AttributeDefinition("facial",     _P, "表情管理"),
    AttributeDefinition("charisma",   _P, "カリスマ"),
    # ── meet ──────────────────────────────────────────────────────────────────
    AttributeDefinition("comfort",     _M, "安心感"),
    AttributeDefinition("cheer",       _M, "わくわく"),
    AttributeDefinition("charming",    _M, "愛嬌"),
    AttributeDefinition("calm",        _M, "穏やか"),
    AttributeDefinition("dry",         _M, "ドライ"),
    AttributeDefinition("kind",        _M, "優しさ"),
    AttributeDefinition("talk",        _M, "トーク力"),
    AttributeDefinition("recognition", _M, "認知度"),
    AttributeDefinition("closeness",   _M, "距離感"),
    AttributeDefinition("social",      _M, "社交性"),
    AttributeDefinition("gap",         _M, "ギャップ"),
)

ATTRIBUTE_KEYS: tuple[str, ...] = tuple(d.key for d in ATTRIBUTE_DEFINITIONS)

_BY_KEY: dict[str, AttributeDefinition] = {d.key: d for d in ATTRIBUTE_DEFINITIONS}

CATEGORY_COLORS: dict[AttributeCategory, str] = {
    AttributeCategory.GENRE:       "#8b5cf6",
    AttributeCategory.VIBE:        "#ec4899",
    AttributeCategory.PERFORMANCE: "#22c55e",
    AttributeCategory.MEET:        "#f59e0b",
}

DEFAULT_ATTRIBUTE_COLOR = "#9ca3af"

SUPPORTED_LOCALES = frozenset({"ja", "ko", "en"})


def is_valid_attribute_key(key: str) -> bool:
    """Return True if ``key`` is a catalog attribute key."""
    return key in _BY_KEY


def get_attribute_label(key: str, locale: str = "ja") -> str:
    """Return the localized label for ``key``.

    Falls back to the Japanese label when the locale has no translation,
    and to the raw key when the key is not in the catalog.
    """
    definition = _BY_KEY.get(key)
    if definition is None:
        return key
    localized = {
        "ja": definition.label_ja,
        "ko": definition.label_ko,
        "en": definition.label_en,
    }.get(locale)
    return localized or definition.label_ja


def get_attribute_category(key: str) -> AttributeCategory | None:
    definition = _BY_KEY.get(key)
    return definition.category if definition else None


def get_attribute_color(key: str) -> str:
    category = get_attribute_category(key)
    if category is None:
        return DEFAULT_ATTRIBUTE_COLOR
    return CATEGORY_COLORS.get(category, DEFAULT_ATTRIBUTE_COLOR)


def attribute_keys_by_category() -> dict[AttributeCategory, list[str]]:
    """Group catalog keys by category, preserving catalog order."""
    grouped: dict[AttributeCategory, list[str]] = {c: [] for c in AttributeCategory}
    for definition in ATTRIBUTE_DEFINITIONS:
        grouped[definition.category].append(definition.key)
    return grouped
