class SocketIOBroadcaster:
    """Delivers room events to every Socket.IO client joined to the room."""

    def __init__(self, socketio, namespace: str = '/'):
        self._socketio = socketio
        self.namespace = namespace

    def emit(self, room_code: str, event: str, payload) -> None:
        # socketio.emit works from background tasks as well as handlers
        self._socketio.emit(event, payload, to=room_code, namespace=self.namespace)
