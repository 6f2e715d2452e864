"""
ASCII terminal formatters for CLI commands.

All formatters accept engine objects and return plain multi-line strings
suitable for ``typer.echo()``. No third-party dependencies.
"""

from __future__ import annotations

from oshi_checker.scoring.ranking import RankedCandidate
from oshi_checker.session.controller import SessionProgress

_RANK_BADGES = {1: "[1st]", 2: "[2nd]", 3: "[3rd]"}


def format_ranking_table(
    ranked: list[RankedCandidate],
    locale: str = "ja",
    limit: int | None = None,
) -> str:
    """Format the final ranking with its score breakdown.

    Example::

        Rank  Member                Survey  Wins  Adjust  Composite
        -----------------------------------------------------------
        [1st] lumina_yuna (ユナ)       7.0     3    +3.0       19.0

    Args:
        ranked: Rows from ``DiagnosisSession.ranked_results()``.
        locale: Locale for member display names.
        limit:  Show only the first ``limit`` rows.

    Returns:
        Multi-line string.
    """
    lines: list[str] = []
    lines.append("")
    lines.append("=== Final Ranking ===")

    if not ranked:
        lines.append("  (no ranking yet; finish all battle rounds first)")
        return "\n".join(lines)

    header = (
        f"  {'Rank':<5}  {'Member':<32}  {'Survey':>7}  {'Wins':>4}  "
        f"{'Adjust':>6}  {'Composite':>9}"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))

    rows = ranked[:limit] if limit is not None else ranked
    for row in rows:
        member = row.candidate.member
        label = f"{member.member_id} ({member.localized_name(locale)})"[:32]
        badge = _RANK_BADGES.get(row.rank, f"{row.rank:>4}.")
        lines.append(
            f"  {badge:<5}  {label:<32}  {row.candidate.survey_score:>7.1f}  "
            f"{row.candidate.win_count:>4}  {row.preference_adjustment:>+6.1f}  "
            f"{row.composite:>9.1f}"
        )
    return "\n".join(lines)


def format_progress(progress: SessionProgress, phase: str) -> str:
    """One-line survey/battle progress summary."""
    return (
        f"  Phase: {phase} | survey {progress.survey.current}/{progress.survey.total}"
        f" | battles {progress.battle.current}/{progress.battle.total}"
    )
