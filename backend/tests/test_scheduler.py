from quizrooms.services.rooms.scheduler import ONE_SHOT, REPEATING, BackgroundScheduler, TimerHandle


class InlineSocketIO:
    """Runs background tasks immediately and records sleeps."""

    def __init__(self):
        self.slept = []
        self.before_wake = None

    def start_background_task(self, target, *args):
        target(*args)

    def sleep(self, seconds):
        self.slept.append(seconds)
        if self.before_wake:
            self.before_wake()


def test_repeating_timer_fires_until_cancelled():
    sio = InlineSocketIO()
    fired = []

    def callback(handle):
        fired.append(handle.fired)
        if handle.fired == 3:
            handle.cancel()

    handle = BackgroundScheduler(sio).every(1, callback)
    assert handle.kind == REPEATING
    assert fired == [1, 2, 3]
    assert sio.slept == [1, 1, 1]
    assert not handle.active


def test_repeating_timer_cancelled_while_sleeping_does_not_fire():
    sio = InlineSocketIO()
    fired = []
    armed = []
    sio.before_wake = lambda: armed and armed[0].cancel()

    def callback(handle):
        fired.append(handle)
        armed.append(handle)

    BackgroundScheduler(sio).every(1, callback)
    assert len(fired) == 1


def test_one_shot_fires_once_and_deactivates():
    sio = InlineSocketIO()
    fired = []
    handle = BackgroundScheduler(sio).call_later(3, fired.append)
    assert handle.kind == ONE_SHOT
    assert fired == [handle]
    assert handle.fired == 1
    assert not handle.active
    assert sio.slept == [3]


def test_one_shot_cancelled_before_wake_is_skipped():
    sio = InlineSocketIO()
    fired = []
    sio.before_wake = lambda: sio.pending.cancel()
    scheduler = BackgroundScheduler(sio)

    run_now = sio.start_background_task

    def capture(target, handle, callback):
        sio.pending = handle
        run_now(target, handle, callback)

    sio.start_background_task = capture
    handle = scheduler.call_later(3, fired.append)
    assert fired == []
    assert handle.fired == 0
    assert handle.cancelled


def test_handle_repr_shows_state():
    handle = TimerHandle(REPEATING, 1)
    assert 'active' in repr(handle)
    handle.cancel()
    assert 'cancelled' in repr(handle)
