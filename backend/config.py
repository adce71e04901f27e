import os


def _flag(name, default):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///quizrooms.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', 'http://localhost:4200').split(',') if o.strip()]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Question timing (seconds)
    QUESTION_TIME_LIMIT_SEC = int(os.environ.get('QUESTION_TIME_LIMIT_SEC', '20'))
    REVEAL_DURATION_SEC = float(os.environ.get('REVEAL_DURATION_SEC', '3'))
    TIMER_TICK_SEC = float(os.environ.get('TIMER_TICK_SEC', '1'))
    # Room sizing
    DEFAULT_NUM_QUESTIONS = int(os.environ.get('DEFAULT_NUM_QUESTIONS', '10'))
    MAX_QUESTIONS_PER_ROOM = int(os.environ.get('MAX_QUESTIONS_PER_ROOM', '50'))
    MAX_ROOM_PLAYERS = int(os.environ.get('MAX_ROOM_PLAYERS', '15'))
    ROOM_CODE_ATTEMPTS = int(os.environ.get('ROOM_CODE_ATTEMPTS', '50'))
    # Lobby-only joins unless enabled
    ALLOW_LATE_JOIN = _flag('ALLOW_LATE_JOIN', 'false')
    # Drop a room once its last connected member disconnects
    ABANDON_EMPTY_ROOMS = _flag('ABANDON_EMPTY_ROOMS', 'true')
    CHAT_MAX_LENGTH = int(os.environ.get('CHAT_MAX_LENGTH', '500'))
