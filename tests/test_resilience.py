"""Tests for the per-source rate limiter and the throttled HTTP client."""
import pytest

from core.rate_limiter import RateLimiter
from core.resilience import (
    ClientError,
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    is_rate_limited_payload,
)
from tests.helpers import FakeClock, FakeResponse, FakeSession, make_client

RATE_LIMITED_BODY = {"error": {"code": "ratelimited", "info": "You've exceeded your rate limit."}}


class TestRateLimiter:
    """Minimum interval between consecutive requests to one source."""

    def test_first_request_does_not_wait(self, clock):
        limiter = RateLimiter("leaguepedia", min_interval=8.0, clock=clock, sleep=clock.sleep)
        assert limiter.acquire() == 0.0
        assert clock.sleeps == []

    def test_back_to_back_requests_are_spaced_by_the_interval(self, clock):
        limiter = RateLimiter("leaguepedia", min_interval=8.0, clock=clock, sleep=clock.sleep)
        stamps = []
        for _ in range(4):
            limiter.acquire()
            stamps.append(limiter.last_request)

        gaps = [b - a for a, b in zip(stamps, stamps[1:])]
        assert all(gap >= 8.0 for gap in gaps)
        assert clock.sleeps == [8.0, 8.0, 8.0]

    def test_elapsed_time_counts_toward_the_interval(self, clock):
        limiter = RateLimiter("leaguepedia", min_interval=8.0, clock=clock, sleep=clock.sleep)
        limiter.acquire()
        clock.advance(5.0)
        assert limiter.acquire() == pytest.approx(3.0)

    def test_no_wait_once_interval_has_passed(self, clock):
        limiter = RateLimiter("leaguepedia", min_interval=8.0, clock=clock, sleep=clock.sleep)
        limiter.acquire()
        clock.advance(9.0)
        assert limiter.acquire() == 0.0

    def test_sources_do_not_share_state(self, clock):
        slow = RateLimiter("leaguepedia", min_interval=8.0, clock=clock, sleep=clock.sleep)
        fast = RateLimiter("livestats", min_interval=0.0, clock=clock, sleep=clock.sleep)
        slow.acquire()
        assert fast.acquire() == 0.0
        assert fast.acquire() == 0.0
        assert clock.sleeps == []

    def test_cooldown_sleeps_and_restarts_the_interval(self, clock):
        limiter = RateLimiter("leaguepedia", min_interval=8.0, clock=clock, sleep=clock.sleep)
        limiter.acquire()
        limiter.cooldown(30.0)
        assert clock.sleeps == [30.0]
        assert limiter.acquire() == pytest.approx(8.0)

    def test_negative_interval_rejected(self, clock):
        with pytest.raises(ValueError):
            RateLimiter("x", min_interval=-1.0, clock=clock, sleep=clock.sleep)


class TestResponseClassification:
    """Status codes and bodies map onto the error taxonomy."""

    def fetch(self, response, clock):
        client = make_client(FakeSession([response]), clock, max_attempts=1)
        return client.fetch("http://fake/api")

    def test_ok_json(self, clock):
        assert self.fetch(FakeResponse(200, {"data": 1}), clock) == {"data": 1}

    def test_404_is_not_found(self, clock):
        with pytest.raises(NotFoundError):
            self.fetch(FakeResponse(404, {"message": "nope"}), clock)

    def test_204_is_not_found(self, clock):
        with pytest.raises(NotFoundError):
            self.fetch(FakeResponse(204), clock)

    def test_empty_body_is_not_found(self, clock):
        with pytest.raises(NotFoundError):
            self.fetch(FakeResponse(200, raw=b"  "), clock)

    def test_invalid_json_is_malformed(self, clock):
        with pytest.raises(MalformedResponseError):
            self.fetch(FakeResponse(200, raw=b"<html>oops</html>"), clock)

    def test_500_is_network_error(self, clock):
        with pytest.raises(NetworkError) as exc_info:
            self.fetch(FakeResponse(503, {"message": "down"}), clock)
        assert exc_info.value.status_code == 503

    def test_other_4xx_is_client_error(self, clock):
        with pytest.raises(ClientError):
            self.fetch(FakeResponse(403, {"message": "forbidden"}), clock)

    def test_rate_limited_payload_detection(self):
        assert is_rate_limited_payload(RATE_LIMITED_BODY)
        assert not is_rate_limited_payload({"error": {"code": "badquery"}})
        assert not is_rate_limited_payload({"cargoquery": []})
        assert not is_rate_limited_payload([])


class TestRateLimitRetries:
    """Rate-limit signals retry after the cooldown, then give up."""

    def test_429_exhausts_budget_and_raises(self, clock):
        session = FakeSession([FakeResponse(429, {"message": "slow down"})])
        client = make_client(session, clock, cooldown=30.0, rate_limit_retries=3)

        with pytest.raises(RateLimitedError) as exc_info:
            client.fetch("http://fake/api")

        assert len(session.calls) == 4
        assert exc_info.value.attempts == 4
        assert clock.sleeps == [30.0, 30.0, 30.0]

    def test_payload_rate_limit_is_retried(self, clock):
        session = FakeSession([
            FakeResponse(200, RATE_LIMITED_BODY),
            FakeResponse(200, RATE_LIMITED_BODY),
            FakeResponse(200, {"cargoquery": []}),
        ])
        client = make_client(session, clock, cooldown=30.0, rate_limit_retries=3)

        assert client.fetch("http://fake/api") == {"cargoquery": []}
        assert len(session.calls) == 3
        assert clock.sleeps == [30.0, 30.0]

    def test_payload_rate_limit_exhausts_budget(self, clock):
        session = FakeSession([FakeResponse(200, RATE_LIMITED_BODY)])
        client = make_client(session, clock, cooldown=15.0, rate_limit_retries=2)

        with pytest.raises(RateLimitedError):
            client.fetch("http://fake/api")
        assert len(session.calls) == 3

    def test_cooldown_then_interval_still_applies(self, clock):
        session = FakeSession([
            FakeResponse(429, {}),
            FakeResponse(200, {"ok": True}),
            FakeResponse(200, {"ok": True}),
        ])
        client = make_client(session, clock, min_interval=8.0, cooldown=30.0)

        client.fetch("http://fake/api")
        client.fetch("http://fake/api")

        # the retried request still waits out the interval after the cooldown
        assert clock.sleeps == [30.0, 8.0, 8.0]


class TestNetworkRetries:
    """Transport failures retry with backoff; client errors do not."""

    def test_server_errors_retry_then_raise(self, clock):
        session = FakeSession([FakeResponse(500, {})])
        client = make_client(session, clock, max_attempts=3, base_delay=1.0)

        with pytest.raises(NetworkError):
            client.fetch("http://fake/api")
        assert len(session.calls) == 3

    def test_recovers_after_transient_failure(self, clock):
        session = FakeSession([FakeResponse(502, {}), FakeResponse(200, {"ok": True})])
        client = make_client(session, clock, max_attempts=3, base_delay=1.0)

        assert client.fetch("http://fake/api") == {"ok": True}
        assert len(session.calls) == 2

    def test_client_error_not_retried(self, clock):
        session = FakeSession([FakeResponse(400, {})])
        client = make_client(session, clock, max_attempts=3)

        with pytest.raises(ClientError):
            client.fetch("http://fake/api")
        assert len(session.calls) == 1

    def test_not_found_not_retried(self, clock):
        session = FakeSession([FakeResponse(404, {})])
        client = make_client(session, clock, max_attempts=3)

        with pytest.raises(NotFoundError):
            client.fetch("http://fake/api")
        assert len(session.calls) == 1

    def test_transport_exception_becomes_network_error(self, clock):
        import requests

        def boom(url, params):
            raise requests.exceptions.ConnectionError("refused")

        client = make_client(FakeSession(boom), clock, max_attempts=2, base_delay=1.0)
        with pytest.raises(NetworkError):
            client.fetch("http://fake/api")


def test_fake_clock_sleep_advances_time():
    clock = FakeClock(start=0.0)
    clock.sleep(2.5)
    assert clock() == 2.5
