from functools import wraps

from flask import current_app, request
from flask_socketio import emit, join_room

from quizrooms import socketio
from quizrooms.services.rooms import messages
from quizrooms.services.rooms.errors import SILENT, RoomError


def _rooms():
    return current_app.extensions['quizrooms']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _command(handler):
    """Turn a handler's result or RoomError into the acknowledgement payload.

    Validation and room errors go back to the requester only. Anything else
    is logged and acknowledged as an internal error so one bad room cannot
    take the server down.
    """

    @wraps(handler)
    def wrapper(data=None):
        try:
            return handler(data)
        except RoomError as exc:
            if exc.scope == SILENT:
                current_app.logger.info(f"[ignored] event={handler.__name__} sid={_get_sid()} reason={exc.code}")
                return None
            return {'success': False, **exc.to_dict()}
        except Exception:
            current_app.logger.exception(f"[handler-error] event={handler.__name__} sid={_get_sid()}")
            return {'success': False, 'error': 'InternalError', 'message': 'Internal server error'}

    return wrapper


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")
    emit('connected', {'sid': _get_sid()})


def handle_disconnect(reason=None):
    current_app.logger.info(f"[disconnect] sid={_get_sid()}")
    _rooms().leave(_get_sid())


@_command
def handle_create_room(data):
    cmd = messages.CreateRoom.from_payload(data)
    room = _rooms().create_room(cmd, member_id=_get_sid(), enter=join_room)
    return {'success': True, 'roomCode': room.code, 'settings': room.settings.to_dict()}


@_command
def handle_join_room(data):
    cmd = messages.JoinRoom.from_payload(data)
    room = _rooms().join_room(cmd, member_id=_get_sid(), enter=join_room)
    return {'success': True, 'roomCode': room.code, 'settings': room.settings.to_dict()}


@_command
def handle_start_quiz(data):
    _rooms().start_quiz(messages.StartQuiz.from_payload(data))
    return {'success': True}


@_command
def handle_submit_answer(data):
    _rooms().submit_answer(messages.SubmitAnswer.from_payload(data))
    return {'success': True}


@_command
def handle_chat_message(data):
    service = _rooms()
    service.relay_chat(messages.ChatMessage.from_payload(data, max_length=service.chat_max_length))
    return {'success': True}


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the given namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event(messages.CREATE_ROOM, handle_create_room, namespace=namespace)
    socketio.on_event(messages.JOIN_ROOM, handle_join_room, namespace=namespace)
    socketio.on_event(messages.START_QUIZ, handle_start_quiz, namespace=namespace)
    socketio.on_event(messages.SUBMIT_ANSWER, handle_submit_answer, namespace=namespace)
    socketio.on_event(messages.CHAT_MESSAGE, handle_chat_message, namespace=namespace)
