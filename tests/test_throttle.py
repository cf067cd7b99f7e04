"""Notification throttle tests."""

from matchmaking_service.infrastructure.throttle import NotificationThrottle


class FakeClock:

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_throttle(clock, **kwargs) -> NotificationThrottle:
    options = {"cooldown_seconds": 30, "retention_seconds": 3600, "max_entries": 100}
    options.update(kwargs)
    return NotificationThrottle(clock=clock, **options)


class TestCooldown:

    def test_first_send_allowed(self):
        throttle = make_throttle(FakeClock())
        assert throttle.can_send("connection_request", 2, 1) is True

    def test_blocked_within_cooldown(self):
        clock = FakeClock()
        throttle = make_throttle(clock)

        assert throttle.try_acquire("connection_request", 2, 1) is True
        clock.now = 29.9
        assert throttle.try_acquire("connection_request", 2, 1) is False

    def test_allowed_after_cooldown(self):
        clock = FakeClock()
        throttle = make_throttle(clock)

        throttle.record("connection_request", 2, 1)
        clock.now = 30.0

        assert throttle.can_send("connection_request", 2, 1) is True

    def test_keys_are_independent(self):
        throttle = make_throttle(FakeClock())
        throttle.record("connection_request", 2, 1)

        assert throttle.can_send("connection_request", 2, 3) is True
        assert throttle.can_send("connection_matched", 2, 1) is True
        assert throttle.can_send("connection_request", 2) is True

    def test_failed_acquire_does_not_extend_cooldown(self):
        clock = FakeClock()
        throttle = make_throttle(clock)

        throttle.try_acquire("connection_request", 2, 1)
        clock.now = 20.0
        throttle.try_acquire("connection_request", 2, 1)
        clock.now = 30.0

        assert throttle.can_send("connection_request", 2, 1) is True


class TestBoundedMemory:

    def test_stale_entries_swept(self):
        clock = FakeClock()
        throttle = make_throttle(clock, retention_seconds=60)

        throttle.record("connection_request", 2, 1)
        throttle.record("connection_request", 3, 1)
        clock.now = 61.0
        throttle.record("connection_request", 4, 1)

        assert len(throttle) == 1

    def test_oldest_evicted_at_capacity(self):
        clock = FakeClock()
        throttle = make_throttle(clock, max_entries=3)

        for fid in range(5):
            clock.now = float(fid)
            throttle.record("connection_request", fid, 1)

        assert len(throttle) == 3
        assert throttle.can_send("connection_request", 0, 1) is True
        assert throttle.can_send("connection_request", 4, 1) is False

    def test_re_recording_refreshes_position(self):
        clock = FakeClock()
        throttle = make_throttle(clock, max_entries=2)

        throttle.record("connection_request", 1, 9)
        clock.now = 1.0
        throttle.record("connection_request", 2, 9)
        clock.now = 2.0
        throttle.record("connection_request", 1, 9)
        clock.now = 3.0
        throttle.record("connection_request", 3, 9)

        assert throttle.can_send("connection_request", 1, 9) is False
        assert throttle.can_send("connection_request", 2, 9) is True
