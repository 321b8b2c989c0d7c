"""
Unit tests for the fixed-window rate limiter.

Counting is delegated to the limits package; each test gets its own
MemoryStorage so state never leaks.
"""

import time

import pytest
from limits.storage import MemoryStorage

from app.services.rate_limiter import FixedWindowRateLimiter, create_storage


@pytest.fixture
def limiter():
    return FixedWindowRateLimiter("quote", max_requests=3, window_seconds=60)


class TestFixedWindowRateLimiter:

    def test_first_requests_allowed_until_limit(self, limiter):
        decisions = [limiter.hit("1.2.3.4") for _ in range(3)]
        assert all(d.allowed for d in decisions)
        assert [d.remaining for d in decisions] == [2, 1, 0]

    def test_fourth_to_sixth_requests_blocked(self, limiter):
        decisions = [limiter.hit("1.2.3.4") for _ in range(6)]
        assert [d.allowed for d in decisions] == [True, True, True, False, False, False]

    def test_blocked_decision_has_retry_after(self, limiter):
        for _ in range(3):
            limiter.hit("1.2.3.4")
        decision = limiter.hit("1.2.3.4")
        assert decision.allowed is False
        assert decision.remaining == 0
        assert 1 <= decision.retry_after <= 60

    def test_window_resets_after_elapsing(self):
        limiter = FixedWindowRateLimiter("quote", max_requests=1, window_seconds=1)
        assert limiter.hit("1.2.3.4").allowed is True
        assert limiter.hit("1.2.3.4").allowed is False
        time.sleep(1.2)
        assert limiter.hit("1.2.3.4").allowed is True

    def test_identities_are_independent(self, limiter):
        for _ in range(3):
            limiter.hit("1.2.3.4")
        assert limiter.hit("1.2.3.4").allowed is False
        assert limiter.hit("5.6.7.8").allowed is True

    def test_reset_identity(self, limiter):
        for _ in range(4):
            limiter.hit("1.2.3.4")
        limiter.reset("1.2.3.4")
        decision = limiter.hit("1.2.3.4")
        assert decision.allowed is True
        assert decision.remaining == 2

    def test_limiters_sharing_a_storage_do_not_collide(self):
        storage = MemoryStorage()
        quote = FixedWindowRateLimiter("quote", max_requests=1, window_seconds=60, storage=storage)
        api = FixedWindowRateLimiter("api", max_requests=1, window_seconds=60, storage=storage)
        assert quote.hit("1.2.3.4").allowed is True
        assert quote.hit("1.2.3.4").allowed is False
        assert api.hit("1.2.3.4").allowed is True

    def test_storage_from_uri(self):
        limiter = FixedWindowRateLimiter(
            "quote", max_requests=1, window_seconds=60, storage=create_storage("memory://")
        )
        assert limiter.hit("1.2.3.4").allowed is True
        assert limiter.hit("1.2.3.4").allowed is False

    def test_fractional_window_rounds_up_to_whole_seconds(self):
        limiter = FixedWindowRateLimiter("quote", max_requests=1, window_seconds=0.5)
        assert limiter.window_seconds == 1

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter("x", max_requests=0, window_seconds=60)
        with pytest.raises(ValueError):
            FixedWindowRateLimiter("x", max_requests=1, window_seconds=0)


class TestDecisionHeaders:

    def test_allowed_headers(self, limiter):
        headers = limiter.hit("1.2.3.4").headers()
        assert headers["RateLimit-Limit"] == "3"
        assert headers["RateLimit-Remaining"] == "2"
        assert int(headers["RateLimit-Reset"]) in (59, 60)
        assert "Retry-After" not in headers

    def test_blocked_headers_include_retry_after(self, limiter):
        for _ in range(3):
            limiter.hit("1.2.3.4")
        headers = limiter.hit("1.2.3.4").headers()
        assert 1 <= int(headers["Retry-After"]) <= 60
        assert headers["RateLimit-Remaining"] == "0"
