from flask import Blueprint, current_app, jsonify

from quizrooms.services.rooms.errors import RoomNotFound

rooms = Blueprint('rooms', __name__)


@rooms.route('/<string:room_code>', methods=['GET'])
def get_room_state(room_code):
    """
    Returns a snapshot of a live room: roster, phase, cursor and settings.
    """
    service = current_app.extensions['quizrooms']
    try:
        state = service.room_state(room_code)
    except RoomNotFound as exc:
        return jsonify(exc.to_dict()), 404
    return jsonify(state)
