"""Tests for the sliding-window booking rate limiter."""

from booking_widget.tools.rate_limit import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestSlidingWindow:
    def test_allows_up_to_limit(self):
        limiter = SlidingWindowRateLimiter(limit=5, window_sec=3600, clock=FakeClock())
        assert all(limiter.check("203.0.113.7")[0] for _ in range(5))
        allowed, retry_after = limiter.check("203.0.113.7")
        assert not allowed
        assert retry_after == 3600

    def test_window_slides(self):
        clock = FakeClock()
        limiter = SlidingWindowRateLimiter(limit=2, window_sec=60, clock=clock)
        limiter.check("a")
        clock.now += 30
        limiter.check("a")
        assert limiter.check("a") == (False, 30)

        clock.now += 30
        # The first attempt has left the window; the second has not.
        assert limiter.check("a") == (True, None)
        assert limiter.check("a")[0] is False

    def test_keys_are_independent(self):
        limiter = SlidingWindowRateLimiter(limit=1, window_sec=60, clock=FakeClock())
        assert limiter.check("a")[0]
        assert limiter.check("b")[0]
        assert not limiter.check("a")[0]

    def test_zero_limit_disables(self):
        limiter = SlidingWindowRateLimiter(limit=0, window_sec=60, clock=FakeClock())
        assert all(limiter.check("a") == (True, None) for _ in range(100))

    def test_reset(self):
        limiter = SlidingWindowRateLimiter(limit=1, window_sec=60, clock=FakeClock())
        limiter.check("a")
        limiter.reset()
        assert limiter.check("a")[0]
