"""Room timers.

A TimerHandle is the room's record of its one armed timer. Cancelling it is
a flag flip, so the state machine can cancel synchronously while it holds
the room; the worker notices the flag before it fires, and the room also
checks on firing that the handle is still its current timer.
"""

REPEATING = 'repeating'
ONE_SHOT = 'one_shot'


class TimerHandle:
    def __init__(self, kind: str, interval: float):
        self.kind = kind
        self.interval = interval
        self.cancelled = False
        self.fired = 0

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not self.cancelled

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'active'
        return f'<TimerHandle {self.kind} every={self.interval}s fired={self.fired} {state}>'


class BackgroundScheduler:
    """Runs timers as Socket.IO background tasks.

    Uses socketio.sleep so the same code works under threading, eventlet
    and gevent async modes.
    """

    def __init__(self, socketio, logger=None):
        self._socketio = socketio
        self._logger = logger

    def every(self, interval: float, callback) -> TimerHandle:
        handle = TimerHandle(REPEATING, interval)
        self._socketio.start_background_task(self._repeat, handle, callback)
        return handle

    def call_later(self, delay: float, callback) -> TimerHandle:
        handle = TimerHandle(ONE_SHOT, delay)
        self._socketio.start_background_task(self._once, handle, callback)
        return handle

    def _repeat(self, handle: TimerHandle, callback) -> None:
        while not handle.cancelled:
            self._socketio.sleep(handle.interval)
            if handle.cancelled:
                return
            handle.fired += 1
            callback(handle)

    def _once(self, handle: TimerHandle, callback) -> None:
        self._socketio.sleep(handle.interval)
        if handle.cancelled:
            if self._logger:
                self._logger.debug(f"[timer-abort] {handle!r}")
            return
        handle.fired += 1
        callback(handle)
        handle.cancel()
