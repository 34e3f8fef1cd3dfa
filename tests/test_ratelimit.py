"""Tests for the database-backed fixed-window rate limiter."""

import threading
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace

import pytest

from pitwall.core import RateLimited
from pitwall.services.ratelimit import RateLimiter, client_identity, limiter_key


def fake_request(headers=None, host="10.0.0.9"):
    return SimpleNamespace(
        headers=headers or {},
        client=SimpleNamespace(host=host) if host else None,
    )


class TestClientIdentity:
    def test_first_forwarded_hop_wins(self):
        request = fake_request({"x-forwarded-for": "203.0.113.7, 10.0.0.1"})
        assert client_identity(request) == "203.0.113.7"

    def test_peer_address_without_forwarding(self):
        assert client_identity(fake_request()) == "10.0.0.9"

    def test_unknown_when_nothing_resolvable(self):
        assert client_identity(fake_request(host=None)) == "unknown"

    def test_key_is_sanitized(self):
        assert limiter_key("manual_sync", "2001:db8::1") == "manual_sync_2001_db8__1"


class TestRateLimiter:
    def test_allows_limit_then_rejects(self, engine, clock):
        limiter = RateLimiter(engine, clock=clock)
        for _ in range(3):
            limiter.check_and_consume("send_auth_code_ip", 3, 600)
        assert limiter.count("send_auth_code_ip") == 3

        with pytest.raises(RateLimited) as excinfo:
            limiter.check_and_consume("send_auth_code_ip", 3, 600)
        assert excinfo.value.retry_after_seconds == 600
        assert "10 minutes" in excinfo.value.message
        assert limiter.count("send_auth_code_ip") == 3

    def test_retry_after_shrinks_with_time(self, engine, clock):
        limiter = RateLimiter(engine, clock=clock)
        limiter.check_and_consume("k", 1, 300)
        clock.advance(120)

        with pytest.raises(RateLimited) as excinfo:
            limiter.check_and_consume("k", 1, 300)
        assert excinfo.value.retry_after_seconds == 180

    def test_window_is_fixed_not_sliding(self, engine, clock):
        limiter = RateLimiter(engine, clock=clock)
        limiter.check_and_consume("k", 1, 300)
        clock.advance(300)

        # still inside the window at its exact end
        with pytest.raises(RateLimited):
            limiter.check_and_consume("k", 1, 300)

    def test_window_resets_after_expiry(self, engine, clock):
        limiter = RateLimiter(engine, clock=clock)
        for _ in range(5):
            limiter.check_and_consume("k", 5, 300)
        with pytest.raises(RateLimited):
            limiter.check_and_consume("k", 5, 300)

        clock.advance(301)
        limiter.check_and_consume("k", 5, 300)
        assert limiter.count("k") == 1

    def test_keys_are_independent(self, engine, clock):
        limiter = RateLimiter(engine, clock=clock)
        limiter.check_and_consume("a", 1, 60)
        limiter.check_and_consume("b", 1, 60)
        with pytest.raises(RateLimited):
            limiter.check_and_consume("a", 1, 60)

    def test_concurrent_callers_never_exceed_limit(self, file_engine, clock):
        limiter = RateLimiter(file_engine, clock=clock)
        workers = 10
        barrier = threading.Barrier(workers)

        def attempt(_):
            barrier.wait()
            try:
                limiter.check_and_consume("race", 5, 600)
                return True
            except RateLimited:
                return False

        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(attempt, range(workers)))

        assert outcomes.count(True) == 5
        assert limiter.count("race") == 5
