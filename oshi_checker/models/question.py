"""
Survey question models.

A ``Question`` offers one or more ``QuestionOption`` entries. An option
contributes to the session in exactly one of three ways:

  - a single ``(score_key, score_value)`` delta,
  - a ``scores`` mapping of several deltas (multi-key answers),
  - a ``korean_level`` selection (the language proficiency question).

The engine only consumes "apply these deltas" and "set this level"; labels
are never interpreted.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from oshi_checker.taxonomy.language_taxonomy import KoreanLevel


class QuestionOption(BaseModel):
    """One selectable answer.

    Attributes:
        option_id: Unique id within the question.
        label: Display labels keyed by locale.
        score_key: Key for a single-delta answer.
        score_value: Delta for ``score_key``.
        scores: Multi-key deltas.
        korean_level: Proficiency selected by this option.
    """

    model_config = ConfigDict(frozen=True)

    option_id: str
    label: dict[str, str] = {}
    score_key: Optional[str] = None
    score_value: Optional[float] = None
    scores: Optional[dict[str, float]] = None
    korean_level: Optional[KoreanLevel] = None

    @model_validator(mode="after")
    def validate_single_effect(self) -> "QuestionOption":
        effects = [
            self.score_key is not None,
            self.scores is not None,
            self.korean_level is not None,
        ]
        if sum(effects) != 1:
            raise ValueError(
                f"Option '{self.option_id}' must set exactly one of "
                "score_key, scores, or korean_level."
            )
        if self.score_key is not None and self.score_value is None:
            raise ValueError(
                f"Option '{self.option_id}' sets score_key without score_value."
            )
        return self

    def deltas(self) -> dict[str, float]:
        """Return the score deltas carried by this option (empty for level options)."""
        if self.scores is not None:
            return dict(self.scores)
        if self.score_key is not None and self.score_value is not None:
            return {self.score_key: self.score_value}
        return {}


class Question(BaseModel):
    """A survey question.

    Attributes:
        question_id: Unique id (e.g. ``"q1"``).
        text: Question text keyed by locale.
        multi_select: ``True`` when several options may be combined into one
            ``ANSWER_MULTI`` action.
        options: Selectable answers (at least one).
    """

    model_config = ConfigDict(frozen=True)

    question_id: str
    text: dict[str, str] = {}
    multi_select: bool = False
    options: list[QuestionOption]

    @model_validator(mode="after")
    def validate_options(self) -> "Question":
        if not self.options:
            raise ValueError(f"Question '{self.question_id}' has no options.")
        ids = [o.option_id for o in self.options]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Question '{self.question_id}' has duplicate option ids.")
        return self

    @property
    def is_korean_level_question(self) -> bool:
        return any(o.korean_level is not None for o in self.options)

    def get_option(self, option_id: str) -> QuestionOption:
        for option in self.options:
            if option.option_id == option_id:
                return option
        raise KeyError(f"Question '{self.question_id}' has no option '{option_id}'.")
