"""RoomService: runs commands against rooms and carries out their effects.

Commands resolve their room through the registry, take the room lock, run
the state machine, then perform the returned effects while still holding
the lock so broadcasts go out in the order the room changed.

Collaborators:
- question_source.fetch_questions(domain, count) -> list[Question]
- score_sink.persist_score(username, score, domain); raises PersistenceFailure
- broadcaster.emit(room_code, event, payload)
- scheduler.every(interval, cb) / scheduler.call_later(delay, cb) -> TimerHandle
"""

import logging
from dataclasses import replace
from functools import partial
from threading import Lock
from typing import Callable, Dict, Optional

from . import messages
from .errors import NoQuestionsAvailable, PersistenceFailure, RoomClosed
from .machine import Emit, Finish, HoldReveal, Phase, Room, RoomSettings, StartTicker
from .registry import RoomRegistry


class RoomService:
    def __init__(self, registry: RoomRegistry, question_source, score_sink, broadcaster, scheduler,
                 logger=None, default_time_limit: int = 20, default_num_questions: int = 10,
                 max_questions: int = 50, max_players: int = 15, reveal_duration: float = 3,
                 tick_interval: float = 1, allow_late_join: bool = False,
                 abandon_empty_rooms: bool = True, chat_max_length: int = 500):
        self.registry = registry
        self.question_source = question_source
        self.score_sink = score_sink
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.logger = logger or logging.getLogger('quizrooms')
        self.default_time_limit = default_time_limit
        self.default_num_questions = default_num_questions
        self.max_questions = max_questions
        self.max_players = max_players
        self.reveal_duration = reveal_duration
        self.tick_interval = tick_interval
        self.allow_late_join = allow_late_join
        self.abandon_empty_rooms = abandon_empty_rooms
        self.chat_max_length = chat_max_length
        # member id (socket sid) -> {room code: username}
        self._members: Dict[str, Dict[str, str]] = {}
        self._members_lock = Lock()

    @classmethod
    def from_app(cls, app, socketio) -> 'RoomService':
        from .broadcast import SocketIOBroadcaster
        from .scheduler import BackgroundScheduler
        from .sources import SqlQuestionSource, SqlScoreSink

        cfg = app.config
        return cls(
            RoomRegistry(max_attempts=int(cfg.get('ROOM_CODE_ATTEMPTS', 50))),
            SqlQuestionSource(app),
            SqlScoreSink(app),
            SocketIOBroadcaster(socketio, namespace=cfg.get('SOCKETIO_NAMESPACE', '/')),
            BackgroundScheduler(socketio, logger=app.logger),
            logger=app.logger,
            default_time_limit=int(cfg.get('QUESTION_TIME_LIMIT_SEC', 20)),
            default_num_questions=int(cfg.get('DEFAULT_NUM_QUESTIONS', 10)),
            max_questions=int(cfg.get('MAX_QUESTIONS_PER_ROOM', 50)),
            max_players=int(cfg.get('MAX_ROOM_PLAYERS', 15)),
            reveal_duration=float(cfg.get('REVEAL_DURATION_SEC', 3)),
            tick_interval=float(cfg.get('TIMER_TICK_SEC', 1)),
            allow_late_join=bool(cfg.get('ALLOW_LATE_JOIN', False)),
            abandon_empty_rooms=bool(cfg.get('ABANDON_EMPTY_ROOMS', True)),
            chat_max_length=int(cfg.get('CHAT_MAX_LENGTH', 500)),
        )

    # ---- Commands ----

    def resolve_settings(self, requested: messages.RequestedSettings) -> RoomSettings:
        num_questions = min(requested.num_questions or self.default_num_questions, self.max_questions)
        max_players = min(requested.max_players or self.max_players, self.max_players)
        return RoomSettings(
            domain=requested.domain,
            time_limit=requested.time_limit or self.default_time_limit,
            num_questions=num_questions,
            max_players=max_players,
        )

    def create_room(self, cmd: messages.CreateRoom, member_id: Optional[str] = None,
                    enter: Optional[Callable[[str], None]] = None) -> Room:
        requested = self.resolve_settings(cmd.settings)
        self.logger.info(f"[questions-fetch] domain={requested.domain} count={requested.num_questions}")
        questions = list(self.question_source.fetch_questions(requested.domain, requested.num_questions))
        questions = questions[:requested.num_questions]
        # Progress and scoring use what the source actually returned
        settings = replace(requested, num_questions=len(questions))

        room = self.registry.create_room(cmd.username, settings, questions, allow_late_join=self.allow_late_join)
        with room.lock:
            self._enter(room, cmd.username, member_id, enter)
            self._apply(room, [Emit(messages.ROOM_UPDATE, room.snapshot())])
        self.logger.info(
            f"[room-create] room={room.code} owner={cmd.username} domain={settings.domain} "
            f"questions={settings.num_questions} requested={requested.num_questions}"
        )
        return room

    def join_room(self, cmd: messages.JoinRoom, member_id: Optional[str] = None,
                  enter: Optional[Callable[[str], None]] = None) -> Room:
        room = self.registry.require_room(cmd.room_code)
        with room.lock:
            effects = room.join(cmd.username)
            self._enter(room, cmd.username, member_id, enter)
            self._apply(room, effects)
        self.logger.info(f"[room-join] room={room.code} player={cmd.username} players={len(room.players)}")
        return room

    def start_quiz(self, cmd: messages.StartQuiz) -> None:
        room = self.registry.require_room(cmd.room_code)
        with room.lock:
            try:
                effects = room.start(cmd.username)
            except NoQuestionsAvailable as exc:
                self.logger.warning(f"[quiz-start-failed] room={room.code} reason=no-questions")
                self.broadcaster.emit(room.code, messages.ERROR, exc.to_dict())
                raise
            if effects:
                self.logger.info(f"[quiz-start] room={room.code} questions={len(room.questions)}")
            self._apply(room, effects)

    def submit_answer(self, cmd: messages.SubmitAnswer) -> None:
        room = self.registry.require_room(cmd.room_code)
        with room.lock:
            self._apply(room, room.submit_answer(cmd.username, cmd.answer))

    def relay_chat(self, cmd: messages.ChatMessage) -> None:
        room = self.registry.require_room(cmd.room_code)
        self.broadcaster.emit(room.code, messages.CHAT_MESSAGE, f"{cmd.username}: {cmd.message}")

    def leave(self, member_id: str) -> None:
        """Forget a disconnected member; drop each of its rooms once nobody is left."""
        with self._members_lock:
            entries = self._members.pop(member_id, {})
        for code, username in entries.items():
            self.logger.info(f"[room-leave] room={code} player={username}")
            if self.abandon_empty_rooms:
                self._abandon_if_empty(code)

    def _abandon_if_empty(self, code: str) -> None:
        room = self.registry.get_room(code)
        if room is None:
            return
        with room.lock:
            if self._has_members(code) or room.phase == Phase.FINISHED:
                return
            room.close()
            self.registry.remove_room(code)
        self.logger.info(f"[room-abandoned] room={code}")

    def room_state(self, code) -> dict:
        room = self.registry.require_room(code)
        with room.lock:
            return room.snapshot()

    # ---- Membership ----

    def _enter(self, room: Room, username: str, member_id, enter) -> None:
        if enter is not None:
            enter(room.code)
        if member_id is not None:
            with self._members_lock:
                self._members.setdefault(member_id, {})[room.code] = username

    def _has_members(self, code: str) -> bool:
        with self._members_lock:
            return any(code in joined for joined in self._members.values())

    def _forget_members(self, code: str) -> None:
        with self._members_lock:
            for member_id, joined in list(self._members.items()):
                joined.pop(code, None)
                if not joined:
                    del self._members[member_id]

    # ---- Effects ----

    def _apply(self, room: Room, effects) -> None:
        for effect in effects:
            if isinstance(effect, Emit):
                self.broadcaster.emit(room.code, effect.event, effect.payload)
            elif isinstance(effect, StartTicker):
                room.timer = self.scheduler.every(self.tick_interval, partial(self._on_tick, room.code))
                self.logger.debug(
                    f"[timer-set] room={room.code} question={room.current_index} duration={room.time_left}s"
                )
            elif isinstance(effect, HoldReveal):
                room.timer = self.scheduler.call_later(self.reveal_duration, partial(self._on_reveal_elapsed, room.code))
                self.logger.debug(f"[reveal-hold] room={room.code} question={room.current_index} duration={self.reveal_duration}s")
            elif isinstance(effect, Finish):
                self._persist_scores(room, effect.scores)
                self._forget_members(room.code)
                self.registry.remove_room(room.code)
                self.logger.info(f"[room-finished] room={room.code} players={len(effect.scores)}")
            else:
                raise TypeError(f'Unknown room effect: {effect!r}')

    def _persist_scores(self, room: Room, scores) -> None:
        for entry in scores:
            try:
                self.score_sink.persist_score(entry.username, entry.score, entry.domain)
            except PersistenceFailure as exc:
                self.logger.warning(f"[score-save-failed] room={room.code} player={entry.username} error={exc}")
            except Exception:
                self.logger.exception(f"[score-save-failed] room={room.code} player={entry.username}")

    def _on_tick(self, code: str, handle) -> None:
        self._fire(code, handle, 'tick')

    def _on_reveal_elapsed(self, code: str, handle) -> None:
        self._fire(code, handle, 'advance')

    def _fire(self, code: str, handle, step: str) -> None:
        room = self.registry.get_room(code)
        if room is None:
            handle.cancel()
            return
        with room.lock:
            self.logger.debug(f"[timer-fire] room={code} step={step} handle={handle!r}")
            try:
                self._apply(room, getattr(room, step)(handle))
            except Exception:
                # Tear the room down rather than leave it stuck without a timer
                self.logger.exception(f"[timer-error] room={code} phase={room.phase.value}")
                room.close()
                self.broadcaster.emit(code, messages.ERROR, RoomClosed().to_dict())
                self._forget_members(code)
                self.registry.remove_room(code)
