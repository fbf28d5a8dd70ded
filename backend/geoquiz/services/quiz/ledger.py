"""Per-team score records with at-most-once scoring per question.

Each team has its own lock. ``try_commit`` runs check-membership, add-id and
add-points as one critical section under that lock and then replaces the
team's immutable ``TeamRecord`` in a single assignment, which is what lets
``get`` and ``records`` read without locking.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Union

from .values import TeamRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Committed:
    new_total: int


@dataclass(frozen=True)
class AlreadyCommitted:
    pass


CommitResult = Union[Committed, AlreadyCommitted]


class ScoreLedger:
    """In-memory ledger, optionally written through to a durable store.

    ``store`` (if given) provides ``load_team_record(team_id)`` returning a
    ``TeamRecord`` or ``None`` and ``save_team_record(record)``. The save
    happens inside the team's critical section and before the in-memory
    record changes, so ``Committed`` is only returned once the point is
    durable.
    """

    def __init__(self, store=None):
        self.store = store
        self._records: Dict[str, TeamRecord] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, team_id: str) -> threading.Lock:
        lock = self._locks.get(team_id)
        if lock is None:
            with self._locks_guard:
                lock = self._locks.setdefault(team_id, threading.Lock())
        return lock

    def _load(self, team_id: str) -> TeamRecord:
        # Caller holds the team lock
        record = self._records.get(team_id)
        if record is not None:
            return record
        if self.store is not None:
            record = self.store.load_team_record(team_id)
        return record or TeamRecord(team_id=team_id)

    def try_commit(self, team_id: str, question_id: str, points_to_award: int) -> CommitResult:
        if points_to_award < 0:
            raise ValueError('points_to_award must be non-negative')
        with self._lock_for(team_id):
            record = self._load(team_id)
            if question_id in record.answered_question_ids:
                self._records.setdefault(team_id, record)
                return AlreadyCommitted()
            updated = record.with_answer(question_id, points_to_award)
            if self.store is not None:
                self.store.save_team_record(updated)
            self._records[team_id] = updated
        logger.info(
            "[commit] team=%s question=%s awarded=%s total=%s",
            team_id, question_id, points_to_award, updated.points,
        )
        return Committed(new_total=updated.points)

    def get(self, team_id: str) -> TeamRecord:
        return self._records.get(team_id) or TeamRecord(team_id=team_id)

    def has_answered(self, team_id: str, question_id: str) -> bool:
        record = self._records.get(team_id)
        return record is not None and question_id in record.answered_question_ids

    def records(self) -> List[TeamRecord]:
        # list() of a dict's values is atomic under the GIL, never torn
        return list(self._records.values())

    def hydrate(self, records: Iterable[TeamRecord]) -> int:
        """Preload records (e.g. from the store at startup). Existing entries win."""
        count = 0
        for record in records:
            with self._lock_for(record.team_id):
                if record.team_id not in self._records:
                    self._records[record.team_id] = record
                    count += 1
        return count
