from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
import json
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

SAMPLE_QUESTIONS = [
    ('Verbal', 'Choose the synonym of "abundant".', ['Scarce', 'Plentiful', 'Narrow', 'Fragile'], 1),
    ('Verbal', 'Choose the antonym of "candid".', ['Frank', 'Open', 'Evasive', 'Blunt'], 2),
    ('Verbal', 'Pick the correctly spelled word.', ['Accomodate', 'Acommodate', 'Accommodate', 'Acomodate'], 2),
    ('Logical', 'Find the next number: 2, 6, 12, 20, 30, ?', ['40', '42', '44', '36'], 1),
    ('Logical', 'All roses are flowers. Some flowers fade quickly. Which must be true?',
     ['All roses fade quickly', 'Some roses fade quickly', 'No conclusion about roses follows', 'No roses fade'], 2),
    ('Logical', 'If CAT is coded DBU, how is DOG coded?', ['EPH', 'EOH', 'DPH', 'FQI'], 0),
    ('Quant', 'What is 15% of 240?', ['32', '36', '38', '40'], 1),
    ('Quant', 'A train covers 180 km in 3 hours. What is its speed in km/h?', ['50', '55', '60', '65'], 2),
    ('Quant', 'The average of 4, 8, 12 and 16 is?', ['8', '10', '12', '9'], 1),
]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    origins = flask_app.config.get('CORS_ORIGINS') or '*'
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    # Ensure models are registered on the metadata
    from quizrooms import models  # noqa: F401

    from quizrooms.routes import main
    flask_app.register_blueprint(main)

    from quizrooms.api.scores import scores
    from quizrooms.api.rooms import rooms
    flask_app.register_blueprint(scores, url_prefix='/api')
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # One room engine per app; handlers and routes reach it through extensions
    from quizrooms.services.rooms import RoomService
    flask_app.extensions['quizrooms'] = RoomService.from_app(flask_app, socketio)

    from quizrooms.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from quizrooms.models import QuestionRecord
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for domain, text, options, answer in SAMPLE_QUESTIONS:
                db.session.add(QuestionRecord(question=text, options=json.dumps(options), answer=answer, domain=domain))

            db.session.commit()
            print(f'Database has been reset and seeded with {len(SAMPLE_QUESTIONS)} questions!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
