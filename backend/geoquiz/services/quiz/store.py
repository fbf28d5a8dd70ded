"""Durable store adapter backed by Flask-SQLAlchemy.

Every call pushes its own app context so the adapter can be used from
request threads, CLI commands and worker threads alike.
"""

import json
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from geoquiz import db
from geoquiz.models import Question as QuestionRow, Team, TeamAnswer
from .errors import QuizStoreError
from .values import Coordinate, Question, TeamRecord


def question_from_row(row: QuestionRow) -> Question:
    return Question(
        id=row.id,
        location=Coordinate(lat=row.lat, lng=row.lng),
        answer=row.answer,
        hints=tuple(row.hint_list()),
        clue_index=int(row.clue_index or 0),
        points=row.points,
    )


def _record_from_team(team: Team) -> TeamRecord:
    return TeamRecord(
        team_id=team.id,
        points=int(team.points or 0),
        answered_question_ids=frozenset(a.question_id for a in team.answers),
    )


class SqlQuizStore:
    def __init__(self, app):
        self.app = app

    def load_all_questions(self) -> List[Question]:
        with self.app.app_context():
            try:
                rows = QuestionRow.query.order_by(QuestionRow.id).all()
                return [question_from_row(r) for r in rows]
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise QuizStoreError(f"could not load questions: {exc}") from exc

    def load_team_record(self, team_id: str) -> Optional[TeamRecord]:
        with self.app.app_context():
            try:
                team = db.session.get(Team, team_id)
                return _record_from_team(team) if team else None
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise QuizStoreError(f"could not load team {team_id}: {exc}") from exc

    def load_all_team_records(self) -> List[TeamRecord]:
        with self.app.app_context():
            try:
                return [_record_from_team(t) for t in Team.query.order_by(Team.created_at, Team.id).all()]
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise QuizStoreError(f"could not load teams: {exc}") from exc

    def save_team_record(self, record: TeamRecord) -> None:
        """Write points and any new answered ids in one transaction."""
        with self.app.app_context():
            try:
                team = db.session.get(Team, record.team_id)
                if team is None:
                    team = Team(id=record.team_id, points=0)
                    db.session.add(team)
                    stored_ids = set()
                else:
                    stored_ids = {a.question_id for a in team.answers}
                team.points = record.points
                for question_id in sorted(record.answered_question_ids - stored_ids):
                    db.session.add(TeamAnswer(team_id=record.team_id, question_id=question_id))
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise QuizStoreError(f"could not save team {record.team_id}: {exc}") from exc

    def upsert_questions(self, questions) -> int:
        """Insert or replace question rows. Used by the seeding command."""
        with self.app.app_context():
            try:
                for q in questions:
                    row = db.session.get(QuestionRow, q.id) or QuestionRow(id=q.id)
                    row.lat = q.location.lat
                    row.lng = q.location.lng
                    row.answer = q.answer
                    row.hints = json.dumps(list(q.hints))
                    row.clue_index = q.clue_index
                    row.points = q.points
                    db.session.add(row)
                db.session.commit()
                return len(questions)
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise QuizStoreError(f"could not save questions: {exc}") from exc
