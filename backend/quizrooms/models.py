from datetime import datetime
import json

from quizrooms import db
from quizrooms.services.rooms.machine import Question


class QuestionRecord(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    question = db.Column(db.Text, nullable=False)
    options = db.Column(db.Text, nullable=False)  # JSON-encoded list of option strings
    answer = db.Column(db.Integer, nullable=False)
    domain = db.Column(db.String(64), nullable=False, index=True)

    @property
    def option_list(self):
        try:
            return list(json.loads(self.options or '[]'))
        except ValueError:
            return []

    def to_question(self) -> Question:
        return Question(
            text=self.question,
            options=tuple(self.option_list),
            correct_index=self.answer,
            domain=self.domain,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'question': self.question,
            'options': self.option_list,
            'answer': self.answer,
            'domain': self.domain,
        }


class Score(db.Model):
    __tablename__ = 'score'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False, default=0)
    domain = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'score': self.score,
            'domain': self.domain,
            'createdAt': self.created_at.isoformat() + 'Z' if self.created_at else None,
        }


class UserSettings(db.Model):
    __tablename__ = 'user_settings'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    notifications = db.Column(db.Boolean, nullable=False, default=True)
    sound_effects = db.Column(db.Boolean, nullable=False, default=True)
    theme = db.Column(db.String(32), nullable=False, default='dark')
    language = db.Column(db.String(16), nullable=False, default='en')
    auto_start = db.Column(db.Boolean, nullable=False, default=False)
    default_time_limit = db.Column(db.Integer, nullable=False, default=20)
    default_questions = db.Column(db.Integer, nullable=False, default=10)
    default_domain = db.Column(db.String(64), nullable=False, default='Mixed')

    # Wire name -> column name
    FIELDS = {
        'notifications': 'notifications',
        'soundEffects': 'sound_effects',
        'theme': 'theme',
        'language': 'language',
        'autoStart': 'auto_start',
        'defaultTimeLimit': 'default_time_limit',
        'defaultQuestions': 'default_questions',
        'defaultDomain': 'default_domain',
    }

    def update_from(self, data: dict) -> None:
        for key, column in self.FIELDS.items():
            if key in data:
                setattr(self, column, data[key])

    def to_dict(self):
        payload = {'username': self.username}
        for key, column in self.FIELDS.items():
            payload[key] = getattr(self, column)
        return payload
