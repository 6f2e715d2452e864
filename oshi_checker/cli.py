"""
oshi-checker: CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute against the persisted session (file snapshot store).
  5. Report result to stdout.

Install and run::

    pip install -e .
    oshi-checker --help
    oshi-checker validate-config
    oshi-checker replay actions.json --fresh
    oshi-checker answer q2 twice aespa
    oshi-checker select-pool --members data/members.json
    oshi-checker show-session
    oshi-checker reset-session
    oshi-checker normalize-questions --file data/questions.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

app = typer.Typer(
    name="oshi-checker",
    help="Oshi diagnosis engine: survey scoring, battles and final ranking.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from oshi_checker.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from oshi_checker.utils.logging import configure_logging
    configure_logging(config.logging)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Snapshot path:   {config.session.snapshot_path}")
    typer.echo(f"  Battle rounds:   {config.tournament.battle_rounds}")
    typer.echo(f"  Pool size:       {config.tournament.pool_size}")
    typer.echo(
        f"  Ranking weights: survey={config.ranking.survey_weight} "
        f"win={config.ranking.win_weight}"
    )
    typer.echo(f"  Log level:       {config.logging.level}")
    typer.echo(f"  Debug mode:      {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("replay")
def replay(
    actions_file: str = typer.Argument(..., help="JSON array of action objects."),
    fresh: bool = typer.Option(
        False,
        "--fresh",
        help="Start from the initial state instead of the persisted session.",
    ),
    locale: str = typer.Option("ja", "--locale", help="Display locale (ja, ko, en)."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Dispatch every action in ACTIONS_FILE to the session, in order.

    \b
    Example action log:
      [
        {"type": "ANSWER_QUESTION", "score_key": "cute", "score_value": 1},
        {"type": "ANSWER_KOREAN_LEVEL", "level": "basic"},
        {"type": "SET_CANDIDATES", "candidates": [...]},
        {"type": "RECORD_BATTLE", "member_a_id": "a", "member_b_id": "b", "winner_id": "a"}
      ]

    Actions with an unknown type are skipped.  The first rejected action
    stops the replay (exit code 1); the session keeps every action applied
    before it.
    """
    from pydantic import ValidationError

    from oshi_checker.reporting.formatters import format_progress, format_ranking_table
    from oshi_checker.session.actions import parse_action
    from oshi_checker.session.controller import DiagnosisSession

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    path = Path(actions_file)
    try:
        with open(path, encoding="utf-8") as f:
            raw_actions = json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        typer.echo(f"[ERROR] Cannot read action log: {exc}", err=True)
        raise typer.Exit(code=1)

    if not isinstance(raw_actions, list):
        typer.echo("[ERROR] Action log must contain a JSON array.", err=True)
        raise typer.Exit(code=1)

    session = DiagnosisSession.from_config(config, restore=not fresh)
    if fresh:
        session.reset()

    applied = skipped = 0
    for i, raw in enumerate(raw_actions):
        try:
            action = parse_action(raw)
            if action is None:
                skipped += 1
                continue
            session.dispatch(action)
            applied += 1
        except (ValidationError, ValueError, RuntimeError) as exc:
            typer.echo(f"[ERROR] Action #{i} rejected: {exc}", err=True)
            typer.echo(f"  Applied {applied} action(s) before the failure.", err=True)
            raise typer.Exit(code=1)

    typer.echo(f"  Applied {applied} action(s), skipped {skipped} unknown.")
    typer.echo(format_progress(session.progress, session.phase.value))
    if session.is_battle_complete:
        typer.echo(format_ranking_table(session.ranked_results(), locale=locale))
    typer.echo("[OK] Replay finished.")


@app.command("answer")
def answer(
    question_id: str = typer.Argument(..., help="Question to answer (e.g. q2)."),
    option_ids: List[str] = typer.Argument(..., help="Chosen option id(s)."),
    questions_file: Optional[str] = typer.Option(
        None,
        "--questions",
        "-q",
        help="Questions JSON. Defaults to config.data.questions_file.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Answer one survey question in the persisted session.

    \b
    Examples:
      oshi-checker answer q1 dark
      oshi-checker answer q2 twice aespa     (multi-select)
      oshi-checker answer q6 basic           (Korean proficiency)
    """
    from oshi_checker.dataset.loader import load_questions
    from oshi_checker.reporting.formatters import format_progress
    from oshi_checker.session.controller import DiagnosisSession

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    source = Path(questions_file) if questions_file else Path(config.data.questions_file)
    try:
        questions = {q.question_id: q for q in load_questions(source)}
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] Questions file invalid:\n{exc}", err=True)
        raise typer.Exit(code=1)

    question = questions.get(question_id)
    if question is None:
        typer.echo(f"[ERROR] Unknown question '{question_id}'.", err=True)
        raise typer.Exit(code=1)

    session = DiagnosisSession.from_config(config)
    try:
        session.answer_options(question, option_ids)
    except KeyError as exc:
        typer.echo(f"[ERROR] {exc.args[0]}", err=True)
        raise typer.Exit(code=1)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_progress(session.progress, session.phase.value))
    typer.echo(f"[OK] Answered {question_id}: {', '.join(option_ids)}.")


@app.command("select-pool")
def select_pool(
    members_file: Optional[str] = typer.Option(
        None,
        "--members",
        "-m",
        help="Member catalog JSON. Defaults to config.data.members_file.",
    ),
    pool_size: Optional[int] = typer.Option(
        None,
        "--pool-size",
        help="Number of candidates. Defaults to config.tournament.pool_size.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Score the member catalog against the survey and start the tournament."""
    from oshi_checker.dataset.loader import load_members
    from oshi_checker.session.controller import DiagnosisSession

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    path = Path(members_file) if members_file else Path(config.data.members_file)
    try:
        members = load_members(path)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] Member catalog invalid:\n{exc}", err=True)
        raise typer.Exit(code=1)

    session = DiagnosisSession.from_config(config)
    try:
        session.select_candidates(members, pool_size=pool_size)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  Candidate pool ({len(session.state.candidates)}):")
    for c in session.state.candidates:
        typer.echo(f"    {c.candidate_id:<32} survey={c.survey_score:.1f}")
    typer.echo("[OK] Tournament started.")


@app.command("show-session")
def show_session(
    locale: str = typer.Option("ja", "--locale", help="Display locale (ja, ko, en)."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw state as JSON."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Print the persisted session: progress, preferences and ranking."""
    from oshi_checker.reporting.formatters import format_progress, format_ranking_table
    from oshi_checker.session.controller import DiagnosisSession
    from oshi_checker.session.store import serialize_state

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    session = DiagnosisSession.from_config(config)
    state = session.state

    if as_json:
        typer.echo(json.dumps(serialize_state(state), indent=2, ensure_ascii=False))
        return

    typer.echo(format_progress(session.progress, session.phase.value))
    typer.echo(f"  Korean level:            {state.korean_level.value}")
    typer.echo(f"  Prefer Japanese support: {state.prefer_japanese_support}")
    top_scores = sorted(state.survey_scores.items(), key=lambda kv: (-kv[1], kv[0]))[:5]
    if top_scores:
        typer.echo("  Top survey keys:         " + ", ".join(f"{k}={v:g}" for k, v in top_scores))
    typer.echo(format_ranking_table(session.ranked_results(), locale=locale))


@app.command("reset-session")
def reset_session(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Discard the persisted session and start over."""
    from oshi_checker.session.controller import DiagnosisSession

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    session = DiagnosisSession.from_config(config, restore=False)
    session.reset()
    typer.echo("[OK] Session reset.")


@app.command("normalize-questions")
def normalize_questions(
    questions_file: Optional[str] = typer.Option(
        None,
        "--file",
        "-f",
        help="Questions JSON. Defaults to config.data.questions_file.",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write here instead of overwriting the input file.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Set every answer score delta in the question file to 1."""
    from oshi_checker.dataset.loader import (
        load_questions,
        normalize_question_scores,
        write_questions,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    source = Path(questions_file) if questions_file else Path(config.data.questions_file)
    try:
        questions = load_questions(source)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] Questions file invalid:\n{exc}", err=True)
        raise typer.Exit(code=1)

    target = write_questions(Path(output) if output else source,
                             normalize_question_scores(questions))
    typer.echo(f"  Normalized {len(questions)} question(s) -> {target}")
    typer.echo("[OK] Scores normalized to 1.")


if __name__ == "__main__":
    app()
