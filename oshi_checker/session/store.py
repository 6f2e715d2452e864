"""
Session snapshot persistence.

One session's state is persisted as a single JSON document under one fixed
slot (``STORAGE_KEY``). The discipline is whole-state overwrite after every
transition and a full clear on reset; restoring is best effort.

Stores
------
``MemorySnapshotStore`` : process-local slot map (tests, embedding in a UI).
``JsonFileSnapshotStore``: one JSON file with an envelope::

    {
      "_meta": {"storage_key": "oshichecker_diagnosis_state",
                "written_at": "2026-10-19T12:00:00Z"},
      "data": { ...serialized DiagnosisState... }
    }

Failure policy
--------------
``load_state()`` never raises: an absent, unreadable or malformed snapshot
yields the initial state, and ``restore_state()`` falls back field by field
(e.g. an unknown Korean level becomes ``none``). The battle fields
(candidates, records, round counter, ranking) are restored as one group and
reset together when they are inconsistent with each other: duplicate pool
ids, records naming ids outside the pool, win counts that disagree with the
records, or a ranking that does not match the completed pool.

``save_state()`` / ``clear_state()`` log storage errors and return
``False``; the session keeps running in memory.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from oshi_checker.battle.tournament import BATTLE_ROUNDS
from oshi_checker.models.member import Candidate
from oshi_checker.models.session import (
    BattleRecord,
    DiagnosisState,
    initial_state,
    is_permutation,
)
from oshi_checker.taxonomy.language_taxonomy import parse_korean_level

logger = logging.getLogger(__name__)

STORAGE_KEY = "oshichecker_diagnosis_state"


class SnapshotStore(Protocol):
    """Persistence boundary injected into ``DiagnosisSession``."""

    def load(self) -> Optional[Any]: ...

    def save(self, payload: dict[str, Any]) -> None: ...

    def clear(self) -> None: ...


class MemorySnapshotStore:
    """Keeps serialized snapshots in a dict of slots.

    Payloads are stored as JSON text so that a save/load cycle behaves like
    a real storage backend (no shared mutable structure with the caller).
    """

    def __init__(self, storage_key: str = STORAGE_KEY) -> None:
        self.storage_key = storage_key
        self.slots: dict[str, str] = {}

    def load(self) -> Optional[Any]:
        text = self.slots.get(self.storage_key)
        return json.loads(text) if text is not None else None

    def save(self, payload: dict[str, Any]) -> None:
        self.slots[self.storage_key] = json.dumps(payload)

    def clear(self) -> None:
        self.slots.pop(self.storage_key, None)


class JsonFileSnapshotStore:
    """Persists the snapshot as an envelope JSON file at ``path``."""

    def __init__(self, path: Path | str, storage_key: str = STORAGE_KEY) -> None:
        self.path = Path(path)
        self.storage_key = storage_key

    def load(self) -> Optional[Any]:
        """Return the stored state payload, or ``None`` when nothing is stored.

        Raises:
            OSError: If the file exists but cannot be read.
            json.JSONDecodeError: If the file is not valid JSON.
        """
        if not self.path.exists():
            return None
        with open(self.path, encoding="utf-8") as f:
            envelope = json.load(f)
        if not isinstance(envelope, dict):
            return None
        meta = envelope.get("_meta") or {}
        if isinstance(meta, dict) and meta.get("storage_key", self.storage_key) != self.storage_key:
            logger.warning(
                "Snapshot %s belongs to slot %r, expected %r; ignored",
                self.path, meta.get("storage_key"), self.storage_key,
            )
            return None
        return envelope.get("data")

    def save(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        envelope = {
            "_meta": {
                "storage_key": self.storage_key,
                "written_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            },
            "data": payload,
        }
        # Write-then-rename keeps the previous snapshot intact if the write fails.
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(envelope, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


# ── Serialization ─────────────────────────────────────────────────────────────

def serialize_state(state: DiagnosisState) -> dict[str, Any]:
    """Return a JSON-compatible dict of the whole state."""
    return state.model_dump(mode="json")


def restore_state(raw: Any, battle_rounds: int = BATTLE_ROUNDS) -> DiagnosisState:
    """Rebuild a ``DiagnosisState`` from a snapshot payload.

    Missing or invalid fields fall back to their initial defaults
    individually; unknown extra fields are ignored.

    Args:
        raw:           Payload returned by ``SnapshotStore.load()``.
        battle_rounds: Rounds in the tournament (upper bound for the counter).

    Returns:
        A valid ``DiagnosisState``.
    """
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning("Snapshot payload is %s, not an object; using initial state",
                           type(raw).__name__)
        return initial_state()

    defaults = initial_state()

    question_index = raw.get("current_question_index")
    if not _is_count(question_index):
        question_index = defaults.current_question_index

    survey_scores = _restore_scores(raw.get("survey_scores"))

    prefer = raw.get("prefer_japanese_support")
    if not isinstance(prefer, bool):
        prefer = defaults.prefer_japanese_support

    battle_fields = _restore_battle_fields(raw, battle_rounds)

    return DiagnosisState(
        current_question_index=question_index,
        survey_scores=survey_scores,
        korean_level=parse_korean_level(raw.get("korean_level")),
        prefer_japanese_support=prefer,
        **battle_fields,
    )


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _restore_scores(value: Any) -> dict[str, float]:
    if not isinstance(value, dict):
        return {}
    scores: dict[str, float] = {}
    for key, score in value.items():
        if isinstance(key, str) and isinstance(score, (int, float)) and not isinstance(score, bool):
            scores[key] = score
        else:
            logger.warning("Dropping invalid survey score entry %r=%r", key, score)
    return scores


def _restore_battle_fields(raw: dict[str, Any], battle_rounds: int) -> dict[str, Any]:
    empty: dict[str, Any] = {
        "candidates": [],
        "battle_records": [],
        "current_battle_round": 0,
        "final_ranking": [],
    }
    try:
        candidates = [Candidate.model_validate(c) for c in raw.get("candidates") or []]
        records = [BattleRecord.model_validate(r) for r in raw.get("battle_records") or []]
        ranking = [Candidate.model_validate(c) for c in raw.get("final_ranking") or []]
    except (ValidationError, TypeError) as exc:
        logger.warning("Discarding battle state from snapshot: %s", exc)
        return empty

    current_round = raw.get("current_battle_round", 0)
    problem = _battle_group_problem(candidates, records, current_round, ranking, battle_rounds)
    if problem:
        logger.warning("Battle state in snapshot is inconsistent (%s); restarting battle stage",
                       problem)
        return empty

    return {
        "candidates": candidates,
        "battle_records": records,
        "current_battle_round": current_round,
        "final_ranking": ranking,
    }


def _battle_group_problem(
    candidates:    list[Candidate],
    records:       list[BattleRecord],
    current_round: Any,
    ranking:       list[Candidate],
    battle_rounds: int,
) -> Optional[str]:
    """Return why the restored battle fields cannot be used together, or None."""
    if not _is_count(current_round) or current_round > battle_rounds:
        return f"round counter {current_round!r} outside 0..{battle_rounds}"
    if len(records) != current_round:
        return f"{len(records)} records for round {current_round}"
    if [r.round for r in records] != list(range(1, current_round + 1)):
        return "records are not numbered 1..N"

    counts = Counter(c.candidate_id for c in candidates)
    duplicates = sorted(cid for cid, n in counts.items() if n > 1)
    if duplicates:
        return f"duplicate candidate ids {duplicates}"

    outsiders = sorted({
        m for r in records for m in (r.member_a, r.member_b) if m not in counts
    })
    if outsiders:
        return f"records reference ids outside the pool {outsiders}"

    wins = Counter(r.winner_id for r in records)
    mismatched = sorted(c.candidate_id for c in candidates if c.win_count != wins[c.candidate_id])
    if mismatched:
        return f"win counts disagree with records for {mismatched}"

    if bool(ranking) != (current_round == battle_rounds):
        return "final ranking present before completion or missing after it"
    if ranking:
        if not is_permutation(ranking, candidates):
            return "final ranking is not a permutation of the pool"
        by_id = {c.candidate_id: c for c in candidates}
        if any(by_id[c.candidate_id] != c for c in ranking):
            return "final ranking entries differ from the pool"
    return None


# ── Store wrappers ────────────────────────────────────────────────────────────

def load_state(store: SnapshotStore, battle_rounds: int = BATTLE_ROUNDS) -> DiagnosisState:
    """Restore the session from ``store``; never raises."""
    try:
        raw = store.load()
    except (OSError, ValueError) as exc:
        logger.warning("Failed to load session snapshot: %s", exc)
        return initial_state()
    return restore_state(raw, battle_rounds)


def save_state(store: SnapshotStore, state: DiagnosisState) -> bool:
    """Overwrite the snapshot with ``state``. Returns False on storage failure."""
    try:
        store.save(serialize_state(state))
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Failed to save session snapshot: %s", exc)
        return False
    return True


def clear_state(store: SnapshotStore) -> bool:
    """Remove the snapshot. Returns False on storage failure."""
    try:
        store.clear()
    except OSError as exc:
        logger.error("Failed to clear session snapshot: %s", exc)
        return False
    return True
