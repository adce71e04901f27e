import random
from threading import Lock
from typing import Dict, List, Optional, Sequence

from .errors import RoomCodesExhausted, RoomNotFound
from .machine import Question, Room, RoomSettings


class RoomRegistry:
    """Live rooms keyed by their numeric code.

    The only place that answers "does this room exist". The mapping is
    guarded by a lock; each room's own state is guarded by room.lock.
    """

    def __init__(self, code_length: int = 4, max_attempts: int = 50, rng: Optional[random.Random] = None):
        self._rooms: Dict[str, Room] = {}
        self._lock = Lock()
        self._rng = rng or random.SystemRandom()
        self.code_length = code_length
        self.max_attempts = max_attempts

    def _generate_code(self) -> str:
        low = 10 ** (self.code_length - 1)
        return str(self._rng.randint(low, 10 * low - 1))

    def create_room(self, owner: str, settings: RoomSettings, questions: Sequence[Question],
                    allow_late_join: bool = False) -> Room:
        with self._lock:
            for _ in range(self.max_attempts):
                code = self._generate_code()
                if code in self._rooms:
                    continue
                room = Room(code, owner, settings, questions, allow_late_join=allow_late_join)
                self._rooms[code] = room
                return room
        raise RoomCodesExhausted()

    def get_room(self, code) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(str(code))

    def require_room(self, code) -> Room:
        room = self.get_room(code)
        if room is None:
            raise RoomNotFound()
        return room

    def remove_room(self, code) -> Optional[Room]:
        with self._lock:
            return self._rooms.pop(str(code), None)

    def codes(self) -> List[str]:
        with self._lock:
            return list(self._rooms)

    def __contains__(self, code) -> bool:
        with self._lock:
            return str(code) in self._rooms

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
