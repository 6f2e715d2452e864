"""
Logging for the oshi-checker CLI.

Library modules only ever call ``logging.getLogger(__name__)``. The CLI calls
``configure_logging(config.logging)`` once per command, which replaces the
root handlers with:

  - a stderr handler, so command output on stdout (``show-session --json``)
    stays parseable;
  - an optional append-mode file handler (``log_file``);
  - per-logger level overrides from ``[logging.levels]``.

The overrides let one noisy area be tuned without touching the rest, e.g.
keep the session at INFO while silencing snapshot restore warnings::

    [logging.levels]
    "oshi_checker.session.store" = "ERROR"
    "oshi_checker.battle" = "DEBUG"

With ``json_format = true`` each record is one JSON object; ``extra=`` keys
(``round``, ``winner_id`` ...) are carried as top-level fields::

    {"ts": "2026-10-19T12:00:00Z", "level": "DEBUG",
     "logger": "oshi_checker.battle.tournament", "msg": "Round 3 recorded",
     "round": 3, "winner_id": "sora"}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from oshi_checker.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Attributes every LogRecord carries; anything else came in via ``extra=``.
_STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class _JsonFormatter(logging.Formatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg``,
    ``exc`` when an exception is attached, and any ``extra=`` keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        for key, val in record.__dict__.items():
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_"):
                payload[key] = val
        return json.dumps(payload, default=str, ensure_ascii=False)


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return _JsonFormatter()
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def _make_handler(formatter: logging.Formatter, log_file: Optional[str] = None) -> logging.Handler:
    handler: logging.Handler
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    return handler


def _level_number(name: str) -> int:
    return logging.getLevelName(name.upper())


def configure_logging(config: "LoggingConfig") -> None:
    """Install the CLI's handlers and levels on the root logger.

    Handlers carry no level of their own: filtering happens on the loggers,
    so a ``[logging.levels]`` entry below the root level (``DEBUG`` for one
    package while the root stays at ``INFO``) still reaches the output.

    Args:
        config: ``AppConfig.logging``.
    """
    formatter = _build_formatter(config.json_format)
    handlers = [_make_handler(formatter)]
    if config.log_file:
        handlers.append(_make_handler(formatter, config.log_file))

    logging.basicConfig(level=_level_number(config.level), handlers=handlers, force=True)

    for logger_name, level in config.levels.items():
        logging.getLogger(logger_name).setLevel(_level_number(level))
