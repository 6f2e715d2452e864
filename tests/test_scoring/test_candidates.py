"""
Tests for oshi_checker/scoring/candidates.py.

What we test
------------
compute_member_survey_score():
  - Sums survey scores of the member's tags.
  - Adds the artist sub-score scaled by artist_weight.

select_candidates():
  - Returns at most pool_size fresh candidates, best first.
  - Ties broken by member_id ascending.
  - pool_size < 2 and duplicate member ids are rejected.
"""

from __future__ import annotations

import pytest

from oshi_checker.scoring.candidates import (
    compute_member_survey_score,
    select_candidates,
)


class TestComputeMemberSurveyScore:
    def test_sums_tag_scores(self, make_member):
        member = make_member("x", tags=["cute", "dance", "calm"])
        survey = {"cute": 2, "dance": 1, "cool": 5}
        assert compute_member_survey_score(member, survey) == pytest.approx(3.0)

    def test_adds_artist_score(self, make_member):
        member = make_member("x", tags=["cute"], artist_covers={"artist_a": 4})
        survey = {"cute": 1, "artist_a": 1}
        assert compute_member_survey_score(member, survey) == pytest.approx(5.0)

    def test_artist_weight_scales_artist_part(self, make_member):
        member = make_member("x", tags=["cute"], artist_covers={"artist_a": 4})
        survey = {"cute": 1, "artist_a": 1}
        assert compute_member_survey_score(member, survey, artist_weight=0.5) == pytest.approx(3.0)

    def test_no_matching_tags_is_zero(self, make_member):
        member = make_member("x", tags=["gap"])
        assert compute_member_survey_score(member, {"cute": 3}) == 0.0


class TestSelectCandidates:
    def test_pool_sorted_by_survey_score(self, sample_members):
        survey = {"cute": 2, "vocal": 1, "dance": 1}
        pool = select_candidates(sample_members, survey, pool_size=3)
        assert [c.candidate_id for c in pool] == ["sora", "yuna", "hana"]
        assert all(c.win_count == 0 for c in pool)

    def test_ties_broken_by_member_id(self, sample_members):
        pool = select_candidates(sample_members, {}, pool_size=5)
        assert [c.candidate_id for c in pool] == ["hana", "mina", "rin", "sora", "yuna"]

    def test_pool_size_larger_than_catalog(self, sample_members):
        pool = select_candidates(sample_members, {}, pool_size=50)
        assert len(pool) == len(sample_members)

    def test_pool_size_below_two_rejected(self, sample_members):
        with pytest.raises(ValueError, match="pool_size"):
            select_candidates(sample_members, {}, pool_size=1)

    def test_duplicate_member_ids_rejected(self, make_member):
        with pytest.raises(ValueError, match="duplicate"):
            select_candidates([make_member("x"), make_member("x")], {}, pool_size=2)
