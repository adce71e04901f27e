"""Errors raised by the room engine.

Each error carries the wire code sent to clients and the scope it is
reported to: only the requester, the whole room, or nobody.
"""

REQUESTER = 'requester'
ROOM = 'room'
SILENT = 'silent'


class RoomError(Exception):
    code = 'RoomError'
    scope = REQUESTER
    default_message = 'Room error'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)

    def to_dict(self) -> dict:
        return {'error': self.code, 'message': self.message}


class RoomNotFound(RoomError):
    code = 'RoomNotFound'
    default_message = 'Room not found'


class UsernameTaken(RoomError):
    code = 'UsernameTaken'
    default_message = 'Username taken'


class RoomFull(RoomError):
    code = 'RoomFull'
    default_message = 'Room is full'


class QuizAlreadyStarted(RoomError):
    code = 'QuizAlreadyStarted'
    default_message = 'Quiz has already started'


class PlayerNotInRoom(RoomError):
    code = 'PlayerNotInRoom'
    default_message = 'Player is not in this room'


class InvalidPayload(RoomError):
    code = 'InvalidPayload'
    default_message = 'Invalid payload'


class RoomCodesExhausted(RoomError):
    code = 'RoomCodesExhausted'
    default_message = 'Could not allocate a room code'


class QuestionSourceError(RoomError):
    code = 'QuestionSourceError'
    default_message = 'Error creating room'


class Unauthorized(RoomError):
    code = 'Unauthorized'
    scope = SILENT
    default_message = 'Only the room owner may do that'


class NoQuestionsAvailable(RoomError):
    code = 'NoQuestionsAvailable'
    scope = ROOM
    default_message = 'No questions available'


class RoomClosed(RoomError):
    code = 'RoomClosed'
    scope = ROOM
    default_message = 'Room closed after an internal error'


class PersistenceFailure(RoomError):
    code = 'PersistenceFailure'
    default_message = 'Could not save score'
