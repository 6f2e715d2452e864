"""
Tests for oshi_checker/models/member.py.

What we test
------------
Member:
  - member_id must be non-empty without whitespace.
  - Localized names fall back to Japanese.
  - External photo detection.
  - Frozen.

Candidate:
  - Defaults, candidate_id, non-negative win_count.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from oshi_checker.models.member import Candidate, Member


def _member(**overrides) -> Member:
    data = {"member_id": "lumina_yuna", "name_ja": "ユナ"}
    data.update(overrides)
    return Member(**data)


class TestMember:
    def test_defaults(self):
        m = _member()
        assert m.tags == []
        assert m.artist_covers == {}
        assert m.supports_japanese is False

    @pytest.mark.parametrize("bad_id", ["", "has space", "tab\tid"])
    def test_invalid_member_id(self, bad_id):
        with pytest.raises(ValidationError, match="member_id"):
            _member(member_id=bad_id)

    def test_localized_name(self):
        m = _member(name_ko="유나", name_en="Yuna")
        assert m.localized_name("ko") == "유나"
        assert m.localized_name("en") == "Yuna"
        assert m.localized_name() == "ユナ"

    def test_localized_name_fallback(self):
        m = _member()
        assert m.localized_name("en") == "ユナ"
        assert m.localized_name("fr") == "ユナ"

    def test_external_photo(self):
        assert _member(photo_url="https://cdn.example.com/y.jpg").is_external_photo
        assert not _member(photo_url="/images/y.jpg").is_external_photo

    def test_frozen(self):
        m = _member()
        with pytest.raises(ValidationError):
            m.name_ja = "別名"


class TestCandidate:
    def test_defaults_and_id(self):
        c = Candidate(member=_member())
        assert c.survey_score == 0.0
        assert c.win_count == 0
        assert c.candidate_id == "lumina_yuna"

    def test_negative_win_count_rejected(self):
        with pytest.raises(ValidationError, match="win_count"):
            Candidate(member=_member(), win_count=-1)
