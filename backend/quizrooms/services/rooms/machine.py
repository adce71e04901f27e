"""Per-room quiz state machine.

Room methods mutate the room synchronously and return the side effects the
caller has to carry out, in order: broadcasts, arming the question ticker or
the reveal hold, and the final hand-off of scores. The machine never sleeps,
emits or touches storage itself.

Phases run lobby -> question -> reveal -> (question | finished). The room's
armed timer is cancelled at every transition before the next one is armed.
"""

from dataclasses import dataclass, field
from enum import Enum
from threading import RLock
from typing import List, Optional, Sequence, Tuple

from . import messages
from .errors import (
    NoQuestionsAvailable,
    PlayerNotInRoom,
    QuizAlreadyStarted,
    RoomFull,
    Unauthorized,
    UsernameTaken,
)
from .scoring import award_points

# Recorded for players who let the clock run out
NO_ANSWER = -1


class Phase(str, Enum):
    LOBBY = 'lobby'
    QUESTION = 'question'
    REVEAL = 'reveal'
    FINISHED = 'finished'


@dataclass(frozen=True)
class Question:
    text: str
    options: Tuple[str, ...]
    correct_index: int
    domain: str = ''

    def to_payload(self) -> dict:
        return {'question': self.text, 'options': list(self.options), 'domain': self.domain}


@dataclass
class Player:
    username: str
    score: int = 0
    answer: Optional[int] = None
    answer_time: Optional[int] = None

    @property
    def has_answered(self) -> bool:
        return self.answer is not None

    def reset_answer(self) -> None:
        self.answer = None
        self.answer_time = None

    def to_dict(self) -> dict:
        return {
            'username': self.username,
            'score': self.score,
            'answer': self.answer,
            'answerTime': self.answer_time,
        }


@dataclass(frozen=True)
class RoomSettings:
    domain: str
    time_limit: int
    num_questions: int
    max_players: int

    def to_dict(self) -> dict:
        return {
            'domain': self.domain,
            'timeLimit': self.time_limit,
            'numQuestions': self.num_questions,
            'maxPlayers': self.max_players,
        }


# ---- Effects ----

@dataclass(frozen=True)
class Emit:
    event: str
    payload: object


@dataclass(frozen=True)
class StartTicker:
    """Arm the once-per-second question clock."""


@dataclass(frozen=True)
class HoldReveal:
    """Arm the one-shot delay that ends the reveal."""


@dataclass(frozen=True)
class FinalScore:
    username: str
    score: int
    domain: str


@dataclass(frozen=True)
class Finish:
    scores: Tuple[FinalScore, ...] = field(default_factory=tuple)


Effects = List[object]


class Room:
    def __init__(self, code: str, owner: str, settings: RoomSettings,
                 questions: Sequence[Question], allow_late_join: bool = False):
        self.code = code
        self.owner = owner
        self.settings = settings
        self.questions: Tuple[Question, ...] = tuple(questions)
        self.players: List[Player] = [Player(owner)]
        self.phase = Phase.LOBBY
        self.current_index = 0
        self.time_left = settings.time_limit
        self.timer = None
        self.allow_late_join = allow_late_join
        # Serializes this room's event stream
        self.lock = RLock()

    def __repr__(self):
        return f'<Room {self.code} phase={self.phase.value} index={self.current_index}/{len(self.questions)}>'

    # ---- Lookups ----

    def get_player(self, username: str) -> Optional[Player]:
        return next((p for p in self.players if p.username == username), None)

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def is_started(self) -> bool:
        return self.phase != Phase.LOBBY

    def all_answered(self) -> bool:
        return bool(self.players) and all(p.has_answered for p in self.players)

    def standings(self) -> List[dict]:
        ranked = sorted(self.players, key=lambda p: -p.score)
        return [{'username': p.username, 'score': p.score} for p in ranked]

    def snapshot(self) -> dict:
        return {
            'roomCode': self.code,
            'owner': self.owner,
            'phase': self.phase.value,
            'isStarted': self.is_started,
            'currentIndex': self.current_index,
            'timeLeft': self.time_left,
            'players': [p.to_dict() for p in self.players],
            'settings': self.settings.to_dict(),
        }

    # ---- Commands ----

    def join(self, username: str) -> Effects:
        if self.phase == Phase.FINISHED:
            raise QuizAlreadyStarted('Quiz has finished')
        if self.is_started and not self.allow_late_join:
            raise QuizAlreadyStarted()
        if self.get_player(username):
            raise UsernameTaken()
        if len(self.players) >= self.settings.max_players:
            raise RoomFull()
        player = Player(username)
        if self.phase == Phase.QUESTION:
            # Never saw this question; sits it out so early reveal still works
            player.answer = NO_ANSWER
        self.players.append(player)
        return [Emit(messages.ROOM_UPDATE, self.snapshot())]

    def start(self, requester: str) -> Effects:
        if requester != self.owner:
            raise Unauthorized()
        if self.phase != Phase.LOBBY:
            return []
        if not self.questions:
            raise NoQuestionsAvailable()
        self.current_index = 0
        return self._begin_question()

    def submit_answer(self, username: str, option: int) -> Effects:
        if self.phase != Phase.QUESTION:
            return []
        player = self.get_player(username)
        if player is None:
            raise PlayerNotInRoom()
        if player.has_answered:
            return []

        question = self.questions[self.current_index]
        player.answer = option
        player.answer_time = self.time_left
        player.score += award_points(option == question.correct_index, self.time_left, self.settings.time_limit)

        effects: Effects = [Emit(messages.ANSWER_SUBMITTED, {
            'questionIndex': self.current_index,
            'currentAnswers': {p.username: p.answer for p in self.players},
            'players': [p.to_dict() for p in self.players],
            'player': username,
        })]
        if self.all_answered():
            effects.extend(self._reveal())
        return effects

    def tick(self, handle) -> Effects:
        if handle is not self.timer or self.phase != Phase.QUESTION:
            return []
        self.time_left = max(0, self.time_left - 1)
        effects: Effects = [Emit(messages.TIMER, self.time_left)]
        if self.time_left == 0:
            for p in self.players:
                if not p.has_answered:
                    p.answer = NO_ANSWER
            effects.extend(self._reveal())
        return effects

    def advance(self, handle) -> Effects:
        if handle is not self.timer or self.phase != Phase.REVEAL:
            return []
        self._cancel_timer()
        self.current_index += 1
        if self.current_index < len(self.questions):
            return self._begin_question()
        return self._finish()

    def close(self) -> None:
        self._cancel_timer()
        self.phase = Phase.FINISHED

    # ---- Transitions ----

    def _cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def _begin_question(self) -> Effects:
        self._cancel_timer()
        self.phase = Phase.QUESTION
        self.time_left = self.settings.time_limit
        for p in self.players:
            p.reset_answer()
        question = self.questions[self.current_index]
        return [
            Emit(messages.QUIZ_STARTED, {
                'currentQuestionIndex': self.current_index,
                'currentQuestion': question.text,
                'currentOptions': list(question.options),
                'numQuestions': self.settings.num_questions,
                'players': [p.to_dict() for p in self.players],
                'timeLimit': self.settings.time_limit,
            }),
            StartTicker(),
        ]

    def _reveal(self) -> Effects:
        self._cancel_timer()
        self.phase = Phase.REVEAL
        question = self.questions[self.current_index]
        return [
            Emit(messages.QUESTION_FINISHED, {
                'questionIndex': self.current_index,
                'correctAnswer': question.correct_index,
                'players': [p.to_dict() for p in self.players],
                'standings': self.standings(),
            }),
            HoldReveal(),
        ]

    def _finish(self) -> Effects:
        self._cancel_timer()
        self.phase = Phase.FINISHED
        scores = tuple(FinalScore(p.username, p.score, self.settings.domain) for p in self.players)
        return [
            Emit(messages.QUIZ_FINISHED, {
                'finalScores': [p.to_dict() for p in self.players],
                'standings': self.standings(),
            }),
            Finish(scores),
        ]
