import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union

from .cache import QuestionCache
from .geo import within
from .ledger import AlreadyCommitted, ScoreLedger
from .values import SubmissionRequest

logger = logging.getLogger(__name__)


class RejectionReason(enum.Enum):
    QUESTION_NOT_FOUND = 'question_not_found'
    OUT_OF_RANGE = 'out_of_range'
    ALREADY_ANSWERED = 'already_answered'
    INCORRECT = 'incorrect'


@dataclass(frozen=True)
class Accepted:
    next_hint: Optional[str]
    points_awarded: int
    new_total: int

    def to_dict(self):
        return {
            'status': 'accepted',
            'next_hint': self.next_hint,
            'points_awarded': self.points_awarded,
            'total_points': self.new_total,
        }


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    distance_meters: Optional[float] = None

    def to_dict(self):
        payload = {'status': 'rejected', 'reason': self.reason.value}
        if self.distance_meters is not None:
            payload['distance_meters'] = round(self.distance_meters, 1)
        return payload


SubmissionOutcome = Union[Accepted, Rejected]


def normalize_answer(text: Optional[str]) -> str:
    return (text or '').strip().casefold()


class AnswerSubmissionPipeline:
    """Validate one answer submission and score it at most once.

    Steps short-circuit on the first rejection:

    1. question lookup in the snapshot captured at the start of the call
    2. proximity gate against the question's stored location
    3. duplicate check, before the answer is compared, so a wrong guess at
       an already-solved question reports ``ALREADY_ANSWERED``
    4. normalized answer comparison
    5. atomic commit in the ledger, which settles races between duplicates
       that all got past step 3
    """

    def __init__(self, cache: QuestionCache, ledger: ScoreLedger, default_points: int):
        self.cache = cache
        self.ledger = ledger
        self.default_points = default_points

    def submit(self, request: SubmissionRequest, radius_meters: float) -> SubmissionOutcome:
        snapshot = self.cache.current()
        question = snapshot.get(request.question_id)
        if question is None:
            return Rejected(RejectionReason.QUESTION_NOT_FOUND)

        ok, distance = within(request.position, question.location, radius_meters)
        if not ok:
            logger.debug("[submit] team=%s question=%s out of range %.1fm", request.team_id, question.id, distance)
            return Rejected(RejectionReason.OUT_OF_RANGE, distance_meters=distance)

        if self.ledger.has_answered(request.team_id, question.id):
            return Rejected(RejectionReason.ALREADY_ANSWERED)

        if normalize_answer(request.answer) != normalize_answer(question.answer):
            return Rejected(RejectionReason.INCORRECT)

        points = question.points if question.points is not None else self.default_points
        result = self.ledger.try_commit(request.team_id, question.id, points)
        if isinstance(result, AlreadyCommitted):
            return Rejected(RejectionReason.ALREADY_ANSWERED)
        return Accepted(next_hint=question.current_hint, points_awarded=points, new_total=result.new_total)
