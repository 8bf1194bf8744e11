from fastapi import FastAPI
from fastapi.testclient import TestClient

from travellers.api.rate_limit import FixedWindowLimiter, RateLimitMiddleware


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_fixed_window_resets_after_window():
    clock = FakeClock()
    limiter = FixedWindowLimiter(limit=2, window_seconds=60, clock=clock)

    assert limiter.hit("general:1.2.3.4")
    assert limiter.hit("general:1.2.3.4")
    assert not limiter.hit("general:1.2.3.4")
    assert limiter.hit("general:5.6.7.8")

    clock.now += 60
    assert limiter.hit("general:1.2.3.4")


def _build_limited_app(general_limit: int, auth_limit: int, trusted_proxy_hops: int = 1) -> TestClient:
    app = FastAPI()
    app.add_middleware(
        RateLimitMiddleware,
        general=FixedWindowLimiter(general_limit, 900),
        auth=FixedWindowLimiter(auth_limit, 3600),
        trusted_proxy_hops=trusted_proxy_hops,
    )

    @app.post("/auth/login")
    def login():
        return {"ok": True}

    @app.get("/stories")
    def stories():
        return {"ok": True}

    return TestClient(app)


def test_auth_endpoints_have_a_stricter_limit():
    client = _build_limited_app(general_limit=100, auth_limit=2)

    assert client.post("/auth/login").status_code == 200
    assert client.post("/auth/login").status_code == 200
    blocked = client.post("/auth/login")

    assert blocked.status_code == 429
    assert blocked.json()["status"] == 429
    assert "Retry-After" in blocked.headers
    assert client.get("/stories").status_code == 200


def test_general_limit_applies_to_all_routes():
    client = _build_limited_app(general_limit=1, auth_limit=10)

    assert client.get("/stories").status_code == 200
    assert client.get("/stories").status_code == 429


def test_stale_windows_are_pruned():
    clock = FakeClock()
    limiter = FixedWindowLimiter(limit=5, window_seconds=60, clock=clock)

    for n in range(100):
        limiter.hit(f"general:10.0.0.{n}")
    assert limiter.tracked_keys() == 100

    clock.now += 60
    limiter.hit("general:10.0.1.1")
    assert limiter.tracked_keys() == 1


def test_retry_after_counts_down_to_window_end():
    clock = FakeClock()
    limiter = FixedWindowLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.retry_after("general:1.2.3.4") == 0
    limiter.hit("general:1.2.3.4")
    clock.now += 20
    assert limiter.retry_after("general:1.2.3.4") == 40


def test_spoofed_forwarded_entries_do_not_evade_the_limit():
    client = _build_limited_app(general_limit=1, auth_limit=10)

    # The proxy appends the real peer on the right; the left part is client-controlled.
    assert client.get("/stories", headers={"X-Forwarded-For": "1.1.1.1, 203.0.113.7"}).status_code == 200
    assert client.get("/stories", headers={"X-Forwarded-For": "2.2.2.2, 203.0.113.7"}).status_code == 429


def test_forwarded_for_from_trusted_proxy_identifies_client():
    client = _build_limited_app(general_limit=1, auth_limit=10)

    assert client.get("/stories", headers={"X-Forwarded-For": "203.0.113.7"}).status_code == 200
    assert client.get("/stories", headers={"X-Forwarded-For": "203.0.113.8"}).status_code == 200
    assert client.get("/stories", headers={"X-Forwarded-For": "203.0.113.7"}).status_code == 429


def test_forwarded_for_is_ignored_without_trusted_proxies():
    client = _build_limited_app(general_limit=1, auth_limit=10, trusted_proxy_hops=0)

    assert client.get("/stories", headers={"X-Forwarded-For": "203.0.113.7"}).status_code == 200
    assert client.get("/stories", headers={"X-Forwarded-For": "203.0.113.8"}).status_code == 429
