from dataclasses import dataclass
from typing import List

from .ledger import ScoreLedger


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    team_id: str
    points: int

    def to_dict(self):
        return {'rank': self.rank, 'team_id': self.team_id, 'points': self.points}


class LeaderboardView:
    def __init__(self, ledger: ScoreLedger):
        self.ledger = ledger

    def top_n(self, n: int) -> List[LeaderboardEntry]:
        """Highest points first; equal points ordered by team id."""
        if n <= 0:
            return []
        ranked = sorted(self.ledger.records(), key=lambda r: (-r.points, r.team_id))
        return [
            LeaderboardEntry(rank=i + 1, team_id=r.team_id, points=r.points)
            for i, r in enumerate(ranked[:n])
        ]
