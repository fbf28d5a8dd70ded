"""In-memory question snapshot and its refresher.

Readers capture ``QuestionCache.current()`` once per request and work off
that reference; a refresh builds a complete new snapshot off to the side and
publishes it with a single attribute assignment, so a reader sees either the
whole old question set or the whole new one.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from .errors import QuizStoreError
from .values import Question

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionSnapshot:
    version: int
    loaded_at: float
    questions: Mapping[str, Question] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, version: int, questions: Iterable[Question]) -> 'QuestionSnapshot':
        by_id = {}
        for q in questions:
            if q.id in by_id:
                raise QuizStoreError(f"duplicate question id {q.id!r} in store read")
            by_id[q.id] = q
        return cls(version=version, loaded_at=time.time(), questions=MappingProxyType(by_id))

    def get(self, question_id: str) -> Optional[Question]:
        return self.questions.get(question_id)

    def __len__(self):
        return len(self.questions)


class QuestionCache:
    def __init__(self, initial: Optional[QuestionSnapshot] = None):
        if initial is None:
            initial = QuestionSnapshot(version=0, loaded_at=time.time())
        self._snapshot = initial

    def current(self) -> QuestionSnapshot:
        return self._snapshot

    def publish(self, snapshot: QuestionSnapshot) -> None:
        self._snapshot = snapshot


class CacheRefresher:
    """Reload the cache from the durable store.

    ``store`` only needs a ``load_all_questions()`` method. Refreshes are
    serialized among themselves so versions stay monotonic; readers and
    submissions never touch the refresh lock.
    """

    def __init__(self, cache: QuestionCache, store):
        self.cache = cache
        self.store = store
        self._refresh_lock = threading.Lock()

    def refresh(self) -> int:
        with self._refresh_lock:
            started = time.monotonic()
            try:
                questions = list(self.store.load_all_questions())
            except QuizStoreError:
                raise
            except Exception as exc:
                raise QuizStoreError(f"question load failed: {exc}") from exc
            previous = self.cache.current()
            snapshot = QuestionSnapshot.build(previous.version + 1, questions)
            self.cache.publish(snapshot)
            logger.info(
                "[refresh] version %s -> %s questions=%s took=%.3fs",
                previous.version, snapshot.version, len(snapshot), time.monotonic() - started,
            )
            return len(snapshot)
