"""Wire-level event names and inbound command payloads.

Inbound Socket.IO payloads are validated here, before they reach a room, so
the state machine only ever sees well-formed commands.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import InvalidPayload

# Inbound
CREATE_ROOM = 'createRoom'
JOIN_ROOM = 'joinRoom'
START_QUIZ = 'startQuiz'
SUBMIT_ANSWER = 'submitAnswer'
CHAT_MESSAGE = 'chatMessage'

# Outbound
ROOM_UPDATE = 'roomUpdate'
QUIZ_STARTED = 'quizStarted'
TIMER = 'timer'
ANSWER_SUBMITTED = 'answerSubmitted'
QUESTION_FINISHED = 'questionFinished'
QUIZ_FINISHED = 'quizFinished'
ERROR = 'error'


def _require_mapping(data) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise InvalidPayload('Payload must be an object')
    return data


def _require_text(data: Dict[str, Any], key: str, max_length: Optional[int] = None) -> str:
    value = data.get(key)
    if value is None or isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidPayload(f'{key} is required')
    text = str(value).strip()
    if not text:
        raise InvalidPayload(f'{key} is required')
    if max_length is not None and len(text) > max_length:
        raise InvalidPayload(f'{key} must be at most {max_length} characters')
    return text


def _optional_int(data: Dict[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise InvalidPayload(f'{key} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidPayload(f'{key} must be an integer')


@dataclass(frozen=True)
class RequestedSettings:
    """Room settings as sent by the creator; any field may be omitted."""

    domain: str = 'Mixed'
    num_questions: Optional[int] = None
    time_limit: Optional[int] = None
    max_players: Optional[int] = None

    @classmethod
    def from_payload(cls, data) -> 'RequestedSettings':
        if data is None:
            return cls()
        data = _require_mapping(data)
        domain = data.get('domain')
        num_questions = _optional_int(data, 'numQuestions')
        time_limit = _optional_int(data, 'timeLimit')
        max_players = _optional_int(data, 'maxPlayers')
        if num_questions is not None and num_questions < 1:
            raise InvalidPayload('numQuestions must be at least 1')
        if time_limit is not None and time_limit < 1:
            raise InvalidPayload('timeLimit must be at least 1 second')
        if max_players is not None and max_players < 1:
            raise InvalidPayload('maxPlayers must be at least 1')
        return cls(
            domain=_require_text(data, 'domain') if domain not in (None, '') else 'Mixed',
            num_questions=num_questions,
            time_limit=time_limit,
            max_players=max_players,
        )


@dataclass(frozen=True)
class CreateRoom:
    username: str
    settings: RequestedSettings = field(default_factory=RequestedSettings)

    @classmethod
    def from_payload(cls, data) -> 'CreateRoom':
        data = _require_mapping(data)
        return cls(
            username=_require_text(data, 'username'),
            settings=RequestedSettings.from_payload(data.get('settings')),
        )


@dataclass(frozen=True)
class JoinRoom:
    room_code: str
    username: str

    @classmethod
    def from_payload(cls, data) -> 'JoinRoom':
        data = _require_mapping(data)
        return cls(room_code=_require_text(data, 'roomCode'), username=_require_text(data, 'username'))


@dataclass(frozen=True)
class StartQuiz:
    room_code: str
    username: str

    @classmethod
    def from_payload(cls, data) -> 'StartQuiz':
        data = _require_mapping(data)
        return cls(room_code=_require_text(data, 'roomCode'), username=_require_text(data, 'username'))


@dataclass(frozen=True)
class SubmitAnswer:
    room_code: str
    username: str
    answer: int

    @classmethod
    def from_payload(cls, data) -> 'SubmitAnswer':
        data = _require_mapping(data)
        answer = _optional_int(data, 'answer')
        if answer is None:
            raise InvalidPayload('answer is required')
        return cls(
            room_code=_require_text(data, 'roomCode'),
            username=_require_text(data, 'username'),
            answer=answer,
        )


@dataclass(frozen=True)
class ChatMessage:
    room_code: str
    username: str
    message: str

    @classmethod
    def from_payload(cls, data, max_length: Optional[int] = None) -> 'ChatMessage':
        data = _require_mapping(data)
        return cls(
            room_code=_require_text(data, 'roomCode'),
            username=_require_text(data, 'username'),
            message=_require_text(data, 'message', max_length=max_length),
        )
