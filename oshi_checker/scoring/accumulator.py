"""
Survey score accumulation.

Each answered question yields one or more ``(key, delta)`` pairs. They are
merged into the running ``survey_scores`` mapping by addition; keys not
named by the answer are carried over unchanged. Deltas may be negative and
unknown keys are created on first use. The key catalog is not validated
here.
"""

from __future__ import annotations

from collections.abc import Mapping

from oshi_checker.models.session import DiagnosisState


def accumulate_scores(
    scores: Mapping[str, float],
    deltas: Mapping[str, float],
) -> dict[str, float]:
    """Merge ``deltas`` into ``scores`` and return a new mapping.

    Args:
        scores: Current survey scores (not modified).
        deltas: Per-key deltas from one answered question.

    Returns:
        New dict where ``result[k] == scores.get(k, 0) + deltas[k]`` for every
        key in ``deltas`` and ``result[k] == scores[k]`` otherwise.
    """
    result = dict(scores)
    for key, delta in deltas.items():
        result[key] = result.get(key, 0) + delta
    return result


def apply_answer(state: DiagnosisState, deltas: Mapping[str, float]) -> DiagnosisState:
    """Apply one answered question: merge deltas and advance the cursor by one."""
    return state.model_copy(
        update={
            "current_question_index": state.current_question_index + 1,
            "survey_scores": accumulate_scores(state.survey_scores, deltas),
        }
    )
