import pytest

from onchain_council_tally.api.rate_limit import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def make_limiter(max_requests=3, window_seconds=1.0):
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(
        max_requests, window_seconds, clock=clock, sleep=clock.sleep
    )
    return clock, limiter


def test_requests_within_budget_do_not_wait():
    clock, limiter = make_limiter()
    for _ in range(3):
        limiter.wait_for_slot()
    assert clock.sleeps == []
    assert len(limiter) == 3


def test_request_over_budget_is_delayed():
    clock, limiter = make_limiter()
    for t in (0.0, 0.25, 0.5):
        clock.now = t
        limiter.wait_for_slot()
    clock.now = 0.6
    limiter.wait_for_slot()
    assert clock.sleeps == [pytest.approx(0.4)]
    assert clock.now == pytest.approx(1.0)
    assert len(limiter) == 3


def test_old_requests_leave_the_window():
    clock, limiter = make_limiter()
    for _ in range(3):
        limiter.wait_for_slot()
    clock.now = 1.0
    limiter.wait_for_slot()
    assert clock.sleeps == []
    assert len(limiter) == 1


def test_never_more_than_max_requests_per_window():
    clock, limiter = make_limiter(max_requests=20)
    admitted = []
    for _ in range(100):
        limiter.wait_for_slot()
        admitted.append(clock.now)
    assert len(admitted) == 100
    for t in admitted:
        in_window = [s for s in admitted if t <= s < t + 1.0]
        assert len(in_window) <= 20


def test_invalid_configuration():
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(0)
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(1, 0)
