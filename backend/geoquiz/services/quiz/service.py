import logging
from dataclasses import dataclass
from typing import List, Optional

from .cache import CacheRefresher, QuestionCache
from .errors import QuizStoreError
from .geo import within
from .leaderboard import LeaderboardEntry, LeaderboardView
from .ledger import ScoreLedger
from .submission import AnswerSubmissionPipeline, SubmissionOutcome
from .values import Coordinate, SubmissionRequest, TeamRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshResult:
    count: int
    version: int
    error: Optional[QuizStoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class QuizService:
    """Composition root wiring the cache, ledger, pipeline and leaderboard.

    Lifecycle: construct, ``start()`` once (a failed initial load raises and
    the process should not serve), then ``refresh_cache()`` on demand, and
    ``shutdown()`` when the owning app goes away.
    """

    def __init__(
        self,
        question_store,
        radius_meters: float,
        default_points: int,
        team_store=None,
    ):
        self.radius_meters = radius_meters
        self.team_store = team_store
        self.cache = QuestionCache()
        self.refresher = CacheRefresher(self.cache, question_store)
        self.ledger = ScoreLedger(store=team_store)
        self.pipeline = AnswerSubmissionPipeline(self.cache, self.ledger, default_points)
        self.board = LeaderboardView(self.ledger)
        self.started = False

    def start(self) -> int:
        count = self.refresher.refresh()
        self._hydrate_teams()
        return count

    def _hydrate_teams(self) -> None:
        if self.team_store is not None and hasattr(self.team_store, 'load_all_team_records'):
            teams = self.ledger.hydrate(self.team_store.load_all_team_records())
            logger.info("[startup] hydrated %s team records", teams)
        self.started = True

    def shutdown(self) -> None:
        self.started = False
        logger.info("[shutdown] quiz service stopped at snapshot version %s", self.cache.current().version)

    def refresh_cache(self) -> RefreshResult:
        try:
            count = self.refresher.refresh()
            if not self.started:
                # Service brought up by refresh rather than start(): load stored scores once
                self._hydrate_teams()
        except QuizStoreError as exc:
            logger.error("[refresh] failed, keeping version %s: %s", self.cache.current().version, exc)
            return RefreshResult(count=0, version=self.cache.current().version, error=exc)
        return RefreshResult(count=count, version=self.cache.current().version)

    def submit_answer(self, request: SubmissionRequest) -> SubmissionOutcome:
        return self.pipeline.submit(request, self.radius_meters)

    def leaderboard(self, n: int) -> List[LeaderboardEntry]:
        return self.board.top_n(n)

    def team(self, team_id: str) -> TeamRecord:
        return self.ledger.get(team_id)

    def nearby(self, position: Coordinate, radius_meters: Optional[float] = None) -> List[dict]:
        """Questions within the radius of ``position``, closest first. Answers are never included."""
        radius = self.radius_meters if radius_meters is None else radius_meters
        found = []
        for question in self.cache.current().questions.values():
            ok, distance = within(position, question.location, radius)
            if ok:
                found.append({
                    'id': question.id,
                    'location': question.location.to_dict(),
                    'distance_meters': round(distance, 1),
                    'hint': question.current_hint,
                })
        found.sort(key=lambda d: (d['distance_meters'], d['id']))
        return found
