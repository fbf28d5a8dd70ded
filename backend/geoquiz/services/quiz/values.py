"""Immutable values shared by the quiz services."""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float

    def to_dict(self):
        return {'lat': self.lat, 'lng': self.lng}


@dataclass(frozen=True)
class Question:
    id: str
    location: Coordinate
    answer: str
    hints: Tuple[str, ...] = ()
    clue_index: int = 0
    # None means "use the configured default"
    points: Optional[int] = None

    @property
    def current_hint(self) -> Optional[str]:
        if 0 <= self.clue_index < len(self.hints):
            return self.hints[self.clue_index]
        return None


@dataclass(frozen=True)
class TeamRecord:
    team_id: str
    points: int = 0
    answered_question_ids: FrozenSet[str] = field(default_factory=frozenset)

    def with_answer(self, question_id: str, points_awarded: int) -> 'TeamRecord':
        return TeamRecord(
            team_id=self.team_id,
            points=self.points + points_awarded,
            answered_question_ids=self.answered_question_ids | {question_id},
        )

    def to_dict(self):
        return {
            'team_id': self.team_id,
            'points': self.points,
            'answered_question_ids': sorted(self.answered_question_ids),
        }


@dataclass(frozen=True)
class SubmissionRequest:
    question_id: str
    answer: str
    team_id: str
    position: Coordinate
