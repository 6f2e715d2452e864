"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``     : committed static defaults
  2. ``config/local.toml``       : optional local overrides (gitignored)
  3. ``.env``                    : local env overrides (gitignored)
  4. Environment variables       : ``OSHI_CHECKER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The CLI and ``DiagnosisSession.from_config()`` receive an ``AppConfig``
instance, never raw dicts or env var lookups scattered through the code.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

from oshi_checker.scoring.ranking import MAX_ADJUSTMENT, RankingWeights

# ── Sub-config models ─────────────────────────────────────────────────────────


class SessionConfig(BaseModel):
    """Snapshot persistence and survey settings."""

    model_config = ConfigDict(frozen=True)

    snapshot_path: str = "data/session/diagnosis_state.json"
    storage_key: str = "oshichecker_diagnosis_state"
    total_questions: int = 6

    @field_validator("total_questions")
    @classmethod
    def validate_total_questions(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"total_questions must be >= 1, got {v}.")
        return v


class TournamentConfig(BaseModel):
    """Battle stage parameters."""

    model_config = ConfigDict(frozen=True)

    battle_rounds: int = 5
    pool_size: int = 8

    @field_validator("battle_rounds")
    @classmethod
    def validate_battle_rounds(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"battle_rounds must be >= 1, got {v}.")
        return v

    @field_validator("pool_size")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        if v < 2:
            raise ValueError(f"pool_size must be >= 2, got {v}.")
        return v


class RankingConfig(BaseModel):
    """Composite ranking coefficients (see ``scoring.ranking``)."""

    model_config = ConfigDict(frozen=True)

    survey_weight: float = 1.0
    win_weight: float = 3.0
    jp_support_boost: float = 3.0
    korean_penalty_none: float = 2.0
    korean_penalty_basic: float = 1.0
    artist_weight: float = 1.0

    @field_validator("survey_weight", "win_weight")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Ranking weights must be > 0, got {v}.")
        return v

    @field_validator("jp_support_boost", "korean_penalty_none", "korean_penalty_basic")
    @classmethod
    def validate_adjustment(cls, v: float) -> float:
        if not 0.0 <= v <= MAX_ADJUSTMENT:
            raise ValueError(f"Preference adjustments must be in [0, {MAX_ADJUSTMENT}], got {v}.")
        return v

    @field_validator("artist_weight")
    @classmethod
    def validate_artist_weight(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"artist_weight must be >= 0, got {v}.")
        return v

    def to_weights(self) -> RankingWeights:
        return RankingWeights(
            survey_weight=self.survey_weight,
            win_weight=self.win_weight,
            jp_support_boost=self.jp_support_boost,
            korean_penalty_none=self.korean_penalty_none,
            korean_penalty_basic=self.korean_penalty_basic,
        )


class DataConfig(BaseModel):
    """Filesystem paths for the dataset."""

    model_config = ConfigDict(frozen=True)

    members_file: str = "data/members.json"
    questions_file: str = "data/questions.json"


_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _check_level(level: str, logger_name: str = "") -> str:
    if level.upper() not in _LOG_LEVELS:
        where = f" for logger '{logger_name}'" if logger_name else ""
        raise ValueError(
            f"Log level{where} must be one of {sorted(_LOG_LEVELS)}, got '{level}'."
        )
    return level.upper()


class LoggingConfig(BaseModel):
    """Logging output settings.

    ``levels`` maps logger names to level overrides (``[logging.levels]``).
    """

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False
    levels: dict[str, str] = {}

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        return _check_level(v)

    @field_validator("levels")
    @classmethod
    def validate_levels(cls, v: dict[str, str]) -> dict[str, str]:
        return {name: _check_level(level, name) for name, level in v.items()}


class AppConfig(BaseModel):
    """Complete application configuration, the single source of truth."""

    model_config = ConfigDict(frozen=True)

    session: SessionConfig = SessionConfig()
    tournament: TournamentConfig = TournamentConfig()
    ranking: RankingConfig = RankingConfig()
    data: DataConfig = DataConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply OSHI_CHECKER_* env vars to the raw config dict.

    Supported overrides:
      OSHI_CHECKER_SNAPSHOT_PATH  → raw["session"]["snapshot_path"]
      OSHI_CHECKER_BATTLE_ROUNDS  → raw["tournament"]["battle_rounds"]
      OSHI_CHECKER_LOG_LEVEL      → raw["logging"]["level"]
      OSHI_CHECKER_DEBUG          → raw["debug"]
    """
    if snapshot_path := os.environ.get("OSHI_CHECKER_SNAPSHOT_PATH"):
        raw.setdefault("session", {})["snapshot_path"] = snapshot_path

    if battle_rounds := os.environ.get("OSHI_CHECKER_BATTLE_ROUNDS"):
        raw.setdefault("tournament", {})["battle_rounds"] = battle_rounds

    if log_level := os.environ.get("OSHI_CHECKER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("OSHI_CHECKER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        session=SessionConfig(**raw.get("session", {})),
        tournament=TournamentConfig(**raw.get("tournament", {})),
        ranking=RankingConfig(**raw.get("ranking", {})),
        data=DataConfig(**raw.get("data", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
