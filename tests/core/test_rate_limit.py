"""
Tests for the per-client rate limiter and its middleware.
"""
import asyncio
from fastapi.testclient import TestClient

from clinic.config import Settings
from clinic.core.rate_limit import ClientRateLimiter, TokenBucket
from clinic.main import create_app


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_bucket_allows_burst_then_refills():
    bucket = TokenBucket(rate=2, burst=4)
    assert [bucket.allow(0.0) for _ in range(5)] == [True, True, True, True, False]
    assert bucket.allow(0.5)
    assert not bucket.allow(0.5)


def test_limiter_tracks_clients_separately():
    clock = FakeClock()
    limiter = ClientRateLimiter(rate=1, burst=1, clock=clock)

    assert limiter.allow("10.0.0.1")
    assert not limiter.allow("10.0.0.1")
    assert limiter.allow("10.0.0.2")

    clock.now = 1.0
    assert limiter.allow("10.0.0.1")


def test_sweep_evicts_idle_clients():
    """
    Test that only clients quiet for longer than the idle window are dropped.
    """
    clock = FakeClock()
    limiter = ClientRateLimiter(rate=2, burst=4, idle_seconds=180, clock=clock)
    limiter.allow("old")
    clock.now = 100.0
    limiter.allow("recent")

    clock.now = 200.0
    assert limiter.sweep() == 1
    assert len(limiter) == 1

    clock.now = 400.0
    assert limiter.sweep() == 1
    assert len(limiter) == 0


def test_sweeper_start_and_stop():
    async def scenario():
        limiter = ClientRateLimiter(rate=2, burst=4, sweep_seconds=0.01)
        limiter.start()
        assert limiter.running
        await asyncio.sleep(0.03)
        await limiter.stop()
        return limiter.running

    assert asyncio.run(scenario()) is False


def test_middleware_rejects_over_limit():
    """
    Test that requests beyond the burst get a 429 in the error envelope.
    """
    app = create_app(Settings(limiter_enabled=True, limiter_rps=0.001, limiter_burst=2, create_tables=False))

    with TestClient(app) as client:
        assert app.state.limiter.running
        statuses = [client.get("/v1/healthcheck").status_code for _ in range(3)]
        last = client.get("/v1/healthcheck")

    assert statuses == [200, 200, 429]
    assert last.json() == {"error": "rate limit exceeded"}
    assert not app.state.limiter.running


def test_limiter_disabled_lets_everything_through():
    app = create_app(Settings(limiter_enabled=False, limiter_rps=0.001, limiter_burst=1, create_tables=False))

    with TestClient(app) as client:
        statuses = {client.get("/v1/healthcheck").status_code for _ in range(5)}

    assert statuses == {200}
