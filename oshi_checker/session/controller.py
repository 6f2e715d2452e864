"""
``DiagnosisSession``: one user's diagnosis, wired to a snapshot store.

The session owns the current ``DiagnosisState`` and applies actions through
the pure reducer. After every successful transition the whole state is
written to the injected ``SnapshotStore``; ``RESET`` clears the store
instead. Rejected transitions raise and leave both the in-memory state and
the snapshot untouched. Unknown actions change nothing and write nothing.

Usage::

    session = DiagnosisSession(store=JsonFileSnapshotStore("data/session.json"))
    session.answer_question("cute", 1)
    session.answer_options(questions[1], ["twice", "aespa"])
    session.answer_korean_level(KoreanLevel.BASIC)
    session.select_candidates(members, pool_size=6)
    a, b = session.next_pair()
    session.record_battle(a.candidate_id, b.candidate_id, winner_id=a.candidate_id)
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Optional, Union

from oshi_checker.battle.tournament import (
    BATTLE_ROUNDS,
    TournamentPhase,
    is_battle_complete,
    pick_battle_pair,
    tournament_phase,
)
from oshi_checker.models.member import Candidate, Member
from oshi_checker.models.question import Question
from oshi_checker.models.session import DiagnosisState, initial_state
from oshi_checker.scoring.accumulator import accumulate_scores
from oshi_checker.scoring.candidates import DEFAULT_POOL_SIZE, select_candidates
from oshi_checker.scoring.ranking import (
    RankedCandidate,
    RankingWeights,
    score_candidates_for_ranking,
)
from oshi_checker.session.actions import (
    AnswerKoreanLevel,
    AnswerMulti,
    AnswerQuestion,
    DiagnosisAction,
    RecordBattle,
    Reset,
    SetCandidates,
    SetFinalRanking,
    SetKoreanLevel,
    SetPreferJpSupport,
    parse_action,
)
from oshi_checker.session.reducer import reduce
from oshi_checker.session.store import (
    MemorySnapshotStore,
    SnapshotStore,
    clear_state,
    load_state,
    save_state,
)
from oshi_checker.taxonomy.language_taxonomy import KoreanLevel

if TYPE_CHECKING:
    from oshi_checker.config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_TOTAL_QUESTIONS = 6


@dataclass(frozen=True)
class StageProgress:
    current: int
    total: int


@dataclass(frozen=True)
class SessionProgress:
    survey: StageProgress
    battle: StageProgress


class DiagnosisSession:
    """Stateful wrapper around the reducer with snapshot write-through.

    Attributes:
        store:           Injected persistence boundary.
        battle_rounds:   Rounds in the tournament.
        weights:         Composite ranking coefficients.
        total_questions: Number of survey questions (for progress/completion).
        pool_size:       Default candidate pool size for ``select_candidates``.
        artist_weight:   Multiplier of the artist sub-score in pool selection.
        state:           Current ``DiagnosisState``.
    """

    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        battle_rounds: int = BATTLE_ROUNDS,
        weights: Optional[RankingWeights] = None,
        total_questions: int = DEFAULT_TOTAL_QUESTIONS,
        pool_size: int = DEFAULT_POOL_SIZE,
        artist_weight: float = 1.0,
        restore: bool = True,
    ) -> None:
        if battle_rounds < 1:
            raise ValueError(f"battle_rounds must be >= 1, got {battle_rounds}.")
        self.store = store if store is not None else MemorySnapshotStore()
        self.battle_rounds = battle_rounds
        self.weights = weights
        self.total_questions = total_questions
        self.pool_size = pool_size
        self.artist_weight = artist_weight
        self.state: DiagnosisState = (
            load_state(self.store, battle_rounds) if restore else initial_state()
        )

    @classmethod
    def from_config(
        cls,
        config: "AppConfig",
        store: Optional[SnapshotStore] = None,
        restore: bool = True,
    ) -> "DiagnosisSession":
        """Build a session from ``AppConfig`` (file store at the configured path)."""
        from oshi_checker.session.store import JsonFileSnapshotStore

        if store is None:
            store = JsonFileSnapshotStore(
                config.session.snapshot_path, storage_key=config.session.storage_key
            )
        return cls(
            store=store,
            battle_rounds=config.tournament.battle_rounds,
            weights=config.ranking.to_weights(),
            total_questions=config.session.total_questions,
            pool_size=config.tournament.pool_size,
            artist_weight=config.ranking.artist_weight,
            restore=restore,
        )

    # ── Dispatch ──────────────────────────────────────────────────────────────

    def dispatch(self, action: Union[DiagnosisAction, dict[str, Any]]) -> DiagnosisState:
        """Apply ``action``, persist the result and return the new state.

        Raw action dicts are validated with ``parse_action()`` first, so a
        logged ``{"type": "RESET"}`` clears the store like ``Reset()`` does.
        """
        if isinstance(action, dict):
            parsed = parse_action(action)
            if parsed is None:
                logger.debug("Ignoring unknown action type %r", action.get("type"))
                return self.state
            action = parsed
        new_state = reduce(
            self.state, action, battle_rounds=self.battle_rounds, weights=self.weights
        )
        if isinstance(action, Reset):
            clear_state(self.store)
        elif new_state is not self.state:
            save_state(self.store, new_state)
        self.state = new_state
        return new_state

    # ── Action helpers ────────────────────────────────────────────────────────

    def answer_question(self, score_key: str, score_value: float) -> DiagnosisState:
        return self.dispatch(AnswerQuestion(score_key=score_key, score_value=score_value))

    def answer_multi(self, scores: dict[str, float]) -> DiagnosisState:
        return self.dispatch(AnswerMulti(scores=scores))

    def answer_korean_level(self, level: KoreanLevel) -> DiagnosisState:
        return self.dispatch(AnswerKoreanLevel(level=level))

    def answer_options(self, question: Question, option_ids: list[str]) -> DiagnosisState:
        """Answer ``question`` with the chosen options as one survey step.

        A proficiency option becomes ``ANSWER_KOREAN_LEVEL`` and must be chosen
        alone. A single ``score_key`` option becomes ``ANSWER_QUESTION``; any
        other choice has its deltas merged into one ``ANSWER_MULTI``.

        Raises:
            KeyError: An option id the question does not offer.
            ValueError: No options, several options on a single-select
                question, or a proficiency option mixed with others.
        """
        options = [question.get_option(option_id) for option_id in option_ids]
        if not options:
            raise ValueError(f"No option chosen for question '{question.question_id}'.")
        if len(options) > 1 and not question.multi_select:
            raise ValueError(
                f"Question '{question.question_id}' accepts a single option, "
                f"got {len(options)}."
            )
        levels = [o.korean_level for o in options if o.korean_level is not None]
        if levels:
            if len(options) > 1:
                raise ValueError(
                    f"Question '{question.question_id}': a proficiency option "
                    "must be chosen on its own."
                )
            return self.answer_korean_level(levels[0])
        if len(options) == 1 and options[0].score_key is not None:
            option = options[0]
            return self.answer_question(option.score_key, option.score_value)
        scores: dict[str, float] = {}
        for option in options:
            scores = accumulate_scores(scores, option.deltas())
        return self.answer_multi(scores)

    def set_korean_level(self, level: KoreanLevel) -> DiagnosisState:
        return self.dispatch(SetKoreanLevel(level=level))

    def set_prefer_japanese_support(self, value: bool) -> DiagnosisState:
        return self.dispatch(SetPreferJpSupport(value=value))

    def set_candidates(self, candidates: list[Candidate]) -> DiagnosisState:
        return self.dispatch(SetCandidates(candidates=candidates))

    def select_candidates(
        self,
        members: list[Member],
        pool_size: Optional[int] = None,
    ) -> DiagnosisState:
        """Score ``members`` against the survey and install the best as the pool."""
        pool = select_candidates(
            members,
            self.state.survey_scores,
            pool_size=pool_size or self.pool_size,
            artist_weight=self.artist_weight,
        )
        return self.set_candidates(pool)

    def record_battle(self, member_a_id: str, member_b_id: str, winner_id: str) -> DiagnosisState:
        return self.dispatch(
            RecordBattle(member_a_id=member_a_id, member_b_id=member_b_id, winner_id=winner_id)
        )

    def set_final_ranking(self, ranking: list[Candidate]) -> DiagnosisState:
        return self.dispatch(SetFinalRanking(ranking=ranking))

    def reset(self) -> DiagnosisState:
        return self.dispatch(Reset())

    # ── Getters ───────────────────────────────────────────────────────────────

    def next_pair(self, rng: Optional[random.Random] = None) -> tuple[Candidate, Candidate]:
        """Suggest the two candidates for the next battle."""
        return pick_battle_pair(self.state.candidates, self.state.battle_records, rng)

    def is_survey_complete(self, total_questions: Optional[int] = None) -> bool:
        total = total_questions if total_questions is not None else self.total_questions
        return self.state.current_question_index >= total

    @property
    def is_battle_complete(self) -> bool:
        return is_battle_complete(self.state, self.battle_rounds)

    @property
    def phase(self) -> TournamentPhase:
        return tournament_phase(self.state, self.battle_rounds)

    @property
    def progress(self) -> SessionProgress:
        return SessionProgress(
            survey=StageProgress(self.state.current_question_index, self.total_questions),
            battle=StageProgress(self.state.current_battle_round, self.battle_rounds),
        )

    def ranked_results(self) -> list[RankedCandidate]:
        """Score breakdown of the final ranking, in final ranking order.

        Returns an empty list until the tournament is complete.
        """
        if not self.state.final_ranking:
            return []
        scored = score_candidates_for_ranking(
            self.state.candidates,
            self.state.battle_records,
            self.state.korean_level,
            self.state.prefer_japanese_support,
            self.weights,
        )
        by_id = {r.candidate.candidate_id: r for r in scored}
        return [
            replace(by_id[c.candidate_id], rank=rank)
            for rank, c in enumerate(self.state.final_ranking, start=1)
        ]
