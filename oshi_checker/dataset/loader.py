"""
JSON dataset loading.

``members.json``: array of ``Member`` objects::

    [{"member_id": "lumina_yuna", "name_ja": "ユナ", "tags": ["cute", "dance"],
      "artist_covers": {"artist_twice": 3}, "supports_japanese": true}, ...]

``questions.json``: array of ``Question`` objects, each with ``options``
carrying ``score_key``/``score_value``, ``scores`` or ``korean_level``.

Unknown member tags are logged (not rejected): the attribute catalog grows
faster than the member data and the engine does not interpret tags.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from oshi_checker.models.member import Member
from oshi_checker.models.question import Question
from oshi_checker.taxonomy.attribute_taxonomy import is_valid_attribute_key

logger = logging.getLogger(__name__)


def _load_json_array(path: Path) -> list[Any]:
    """Read ``path`` and return its top-level JSON array.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not valid JSON or not an array.
    """
    if not path.exists():
        raise FileNotFoundError(f"Dataset file not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array, got {type(data).__name__}.")
    return data


def load_members(path: Path | str) -> list[Member]:
    """Load and validate the member catalog.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: On malformed JSON, duplicate ids, or invalid members
            (``pydantic.ValidationError`` is a ``ValueError``).
    """
    path = Path(path)
    members = [Member.model_validate(raw) for raw in _load_json_array(path)]

    seen: set[str] = set()
    for member in members:
        if member.member_id in seen:
            raise ValueError(f"Duplicate member_id '{member.member_id}' in {path}.")
        seen.add(member.member_id)
        unknown = [t for t in member.tags if not is_valid_attribute_key(t)]
        if unknown:
            logger.warning("Member %s has unknown tags: %s", member.member_id, unknown)

    logger.info("Loaded %d members from %s", len(members), path)
    return members


def load_questions(path: Path | str) -> list[Question]:
    """Load and validate the survey questions.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: On malformed JSON or invalid questions.
    """
    path = Path(path)
    questions = [Question.model_validate(raw) for raw in _load_json_array(path)]
    logger.info("Loaded %d questions from %s", len(questions), path)
    return questions


def normalize_question_scores(questions: list[Question]) -> list[Question]:
    """Return copies of ``questions`` with every score delta set to 1.

    Korean-level options are left unchanged.
    """
    normalized: list[Question] = []
    for question in questions:
        options = []
        for option in question.options:
            update: dict[str, Any] = {}
            if option.scores is not None:
                update["scores"] = {k: 1 for k in option.scores}
            if option.score_value is not None:
                update["score_value"] = 1
            options.append(option.model_copy(update=update))
        normalized.append(question.model_copy(update={"options": options}))
    return normalized


def write_questions(path: Path | str, questions: list[Question]) -> Path:
    """Write ``questions`` back to a pretty-printed JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [q.model_dump(mode="json", exclude_none=True) for q in questions]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    return path
