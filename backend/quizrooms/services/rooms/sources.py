"""SQL-backed question source and score sink for the room engine.

Both open their own app context so they can be called from Socket.IO
handlers and from timer background tasks alike.
"""

from typing import List

from sqlalchemy.exc import SQLAlchemyError

from .errors import PersistenceFailure, QuestionSourceError
from .machine import Question

MIXED_DOMAIN = 'Mixed'


class SqlQuestionSource:
    def __init__(self, app):
        self.app = app

    def fetch_questions(self, domain: str, count: int) -> List[Question]:
        from quizrooms import db
        from quizrooms.models import QuestionRecord

        with self.app.app_context():
            try:
                query = QuestionRecord.query
                if domain == MIXED_DOMAIN:
                    query = query.order_by(db.func.random())
                else:
                    query = query.filter_by(domain=domain).order_by(QuestionRecord.id)
                records = query.limit(count).all()
            except SQLAlchemyError as exc:
                db.session.rollback()
                self.app.logger.error(f"[questions-fetch-failed] domain={domain} error={exc}")
                raise QuestionSourceError() from exc
            # Records with fewer than two options cannot be played
            return [r.to_question() for r in records if len(r.option_list) >= 2]


class SqlScoreSink:
    def __init__(self, app):
        self.app = app

    def persist_score(self, username: str, score: int, domain: str) -> None:
        from quizrooms import db
        from quizrooms.models import Score

        with self.app.app_context():
            try:
                db.session.add(Score(username=username, score=score, domain=domain))
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise PersistenceFailure(f'Could not save score for {username}') from exc
