"""
Tests for oshi_checker/taxonomy/attribute_taxonomy.py.

What we test
------------
  - Catalog keys are unique and every key has a category.
  - Labels fall back to Japanese, then to the raw key.
  - Colors follow the category, with a neutral default for unknown keys.
  - Grouping by category preserves catalog order.
"""

from __future__ import annotations

from oshi_checker.taxonomy.attribute_taxonomy import (
    ATTRIBUTE_DEFINITIONS,
    ATTRIBUTE_KEYS,
    CATEGORY_COLORS,
    DEFAULT_ATTRIBUTE_COLOR,
    AttributeCategory,
    attribute_keys_by_category,
    get_attribute_category,
    get_attribute_color,
    get_attribute_label,
    is_valid_attribute_key,
)


class TestCatalog:
    def test_keys_unique(self):
        assert len(ATTRIBUTE_KEYS) == len(set(ATTRIBUTE_KEYS))

    def test_every_category_has_keys(self):
        grouped = attribute_keys_by_category()
        assert set(grouped) == set(AttributeCategory)
        assert all(grouped[c] for c in AttributeCategory)

    def test_grouping_preserves_order(self):
        genre = attribute_keys_by_category()[AttributeCategory.GENRE]
        expected = [d.key for d in ATTRIBUTE_DEFINITIONS if d.category == AttributeCategory.GENRE]
        assert genre == expected

    def test_artist_keys_not_in_catalog(self):
        assert is_valid_attribute_key("cute")
        assert not is_valid_attribute_key("artist_twice")


class TestLookups:
    def test_japanese_label(self):
        assert get_attribute_label("cute") == "キュート"

    def test_missing_translation_falls_back_to_japanese(self):
        assert get_attribute_label("healing", locale="en") == "癒し"

    def test_unknown_key_returns_key(self):
        assert get_attribute_label("sparkly", locale="ko") == "sparkly"

    def test_category(self):
        assert get_attribute_category("vocal") == AttributeCategory.PERFORMANCE
        assert get_attribute_category("sparkly") is None

    def test_color(self):
        assert get_attribute_color("talk") == CATEGORY_COLORS[AttributeCategory.MEET]
        assert get_attribute_color("sparkly") == DEFAULT_ATTRIBUTE_COLOR
