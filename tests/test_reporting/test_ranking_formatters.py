"""
Tests for oshi_checker/reporting/formatters.py.

What we test
------------
format_ranking_table():
  - Placeholder line when there is no ranking yet.
  - Medal badges for the top three, numeric ranks below.
  - Localized member names and the limit parameter.

format_progress():
  - Phase and both stage counters on one line.
"""

from __future__ import annotations

from oshi_checker.reporting.formatters import format_progress, format_ranking_table
from oshi_checker.scoring.ranking import score_candidates_for_ranking
from oshi_checker.session.controller import SessionProgress, StageProgress
from oshi_checker.taxonomy.language_taxonomy import KoreanLevel


def _rows(pool):
    return score_candidates_for_ranking(pool, [], KoreanLevel.FLUENT, False)


class TestFormatRankingTable:
    def test_empty(self):
        text = format_ranking_table([])
        assert "Final Ranking" in text
        assert "no ranking yet" in text

    def test_badges(self, sample_pool):
        text = format_ranking_table(_rows(sample_pool))
        assert "[1st]  a (メンバーa)" in text
        assert "[2nd]" in text
        assert "[3rd]" in text
        assert "   4." in text

    def test_locale(self, sample_pool):
        text = format_ranking_table(_rows(sample_pool), locale="en")
        assert "a (A)" in text

    def test_limit(self, sample_pool):
        text = format_ranking_table(_rows(sample_pool), limit=2)
        assert "[2nd]" in text
        assert "[3rd]" not in text


def test_format_progress():
    progress = SessionProgress(survey=StageProgress(3, 6), battle=StageProgress(0, 5))
    line = format_progress(progress, "survey")
    assert "Phase: survey" in line
    assert "survey 3/6" in line
    assert "battles 0/5" in line
