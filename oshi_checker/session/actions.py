"""
Action vocabulary of the diagnosis state machine.

Every action is a frozen pydantic model tagged by a ``type`` literal, and
``DiagnosisAction`` is the discriminated union of all of them. The reducer
handles exactly these types; anything else is ignored.

Action logs (e.g. for ``oshi-checker replay``) are JSON objects such as::

    {"type": "ANSWER_QUESTION", "score_key": "cute", "score_value": 1}
    {"type": "RECORD_BATTLE", "member_a_id": "a", "member_b_id": "b", "winner_id": "a"}

``parse_action()`` returns ``None`` for an unknown ``type`` so newer logs
stay readable by older engines.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from oshi_checker.models.member import Candidate
from oshi_checker.taxonomy.language_taxonomy import KoreanLevel

logger = logging.getLogger(__name__)


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class AnswerQuestion(_Action):
    """Single-key answer: add ``score_value`` to ``score_key`` and advance."""

    type: Literal["ANSWER_QUESTION"] = "ANSWER_QUESTION"
    score_key: str
    score_value: float


class AnswerMulti(_Action):
    """Multi-key answer: add every delta in ``scores`` and advance once."""

    type: Literal["ANSWER_MULTI"] = "ANSWER_MULTI"
    scores: dict[str, float]


class AnswerKoreanLevel(_Action):
    """Answer the proficiency question: set the level and advance."""

    type: Literal["ANSWER_KOREAN_LEVEL"] = "ANSWER_KOREAN_LEVEL"
    level: KoreanLevel


class SetKoreanLevel(_Action):
    type: Literal["SET_KOREAN_LEVEL"] = "SET_KOREAN_LEVEL"
    level: KoreanLevel


class SetPreferJpSupport(_Action):
    type: Literal["SET_PREFER_JP_SUPPORT"] = "SET_PREFER_JP_SUPPORT"
    value: bool


class SetCandidates(_Action):
    """Install a candidate pool; restarts the tournament at round 0."""

    type: Literal["SET_CANDIDATES"] = "SET_CANDIDATES"
    candidates: list[Candidate]


class RecordBattle(_Action):
    """One battle outcome; the round number is stamped by the reducer."""

    type: Literal["RECORD_BATTLE"] = "RECORD_BATTLE"
    member_a_id: str
    member_b_id: str
    winner_id: str


class SetFinalRanking(_Action):
    """Override the final ranking (restore path; bypasses the calculator)."""

    type: Literal["SET_FINAL_RANKING"] = "SET_FINAL_RANKING"
    ranking: list[Candidate]


class Reset(_Action):
    type: Literal["RESET"] = "RESET"


DiagnosisAction = Annotated[
    Union[
        AnswerQuestion,
        AnswerMulti,
        AnswerKoreanLevel,
        SetKoreanLevel,
        SetPreferJpSupport,
        SetCandidates,
        RecordBattle,
        SetFinalRanking,
        Reset,
    ],
    Field(discriminator="type"),
]

ACTION_TYPES: frozenset[str] = frozenset({
    "ANSWER_QUESTION",
    "ANSWER_MULTI",
    "ANSWER_KOREAN_LEVEL",
    "SET_KOREAN_LEVEL",
    "SET_PREFER_JP_SUPPORT",
    "SET_CANDIDATES",
    "RECORD_BATTLE",
    "SET_FINAL_RANKING",
    "RESET",
})

_ACTION_ADAPTER: TypeAdapter = TypeAdapter(DiagnosisAction)


def parse_action(raw: dict[str, Any]) -> Optional[BaseModel]:
    """Validate one raw action dict.

    Args:
        raw: JSON object with a ``type`` key.

    Returns:
        The typed action, or ``None`` when ``type`` is missing or unknown.

    Raises:
        pydantic.ValidationError: If ``type`` is known but the payload is invalid.
    """
    action_type = raw.get("type") if isinstance(raw, dict) else None
    if action_type not in ACTION_TYPES:
        logger.debug("Skipping action with unknown type %r", action_type)
        return None
    return _ACTION_ADAPTER.validate_python(raw)
