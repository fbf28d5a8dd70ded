from geoquiz import db
import json
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc)


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.String(64), primary_key=True)
    lat = db.Column(db.Float, nullable=False)
    lng = db.Column(db.Float, nullable=False)
    answer = db.Column(db.String(256), nullable=False)
    hints = db.Column(db.Text, nullable=True)  # JSON-encoded list of strings
    clue_index = db.Column(db.Integer, default=0, nullable=False)
    points = db.Column(db.Integer, nullable=True)  # null -> POINTS_PER_QUESTION

    def hint_list(self):
        try:
            return json.loads(self.hints) if self.hints else []
        except ValueError:
            return []


class Team(db.Model):
    __tablename__ = 'team'
    id = db.Column(db.String(64), primary_key=True)
    points = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    answers = db.relationship('TeamAnswer', back_populates='team', lazy='dynamic')


class TeamAnswer(db.Model):
    __tablename__ = 'team_answer'
    __table_args__ = (
        db.UniqueConstraint('team_id', 'question_id', name='uq_team_answer_team_question'),
    )
    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.String(64), db.ForeignKey('team.id'), nullable=False, index=True)
    # Not a FK: questions may be retired from the store while scores stand
    question_id = db.Column(db.String(64), nullable=False)
    answered_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    team = db.relationship('Team', back_populates='answers')
