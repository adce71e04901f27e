"""Live quiz room engine: registry, state machine, scoring and timers.

Only sources.py reaches into Flask-SQLAlchemy; the transport and storage
are passed in, which keeps the rooms testable without a server.
"""

from .errors import RoomError
from .machine import NO_ANSWER, Phase, Question, Room, RoomSettings
from .registry import RoomRegistry
from .service import RoomService

__all__ = [
    'NO_ANSWER',
    'Phase',
    'Question',
    'Room',
    'RoomError',
    'RoomRegistry',
    'RoomService',
    'RoomSettings',
]
