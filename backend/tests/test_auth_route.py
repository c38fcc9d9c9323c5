import time

import jwt

from portfolio.config import settings

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD


def login(client, email=ADMIN_EMAIL, password=ADMIN_PASSWORD, ip="198.51.100.1"):
    return client.post(
        "/api/auth/login",
        json={"email": email, "password": password},
        headers={"X-Forwarded-For": ip},
    )


def test_login_returns_token(client, admin_user):
    response = login(client)

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == ADMIN_EMAIL
    claims = jwt.decode(body["access_token"], settings.JWT_SECRET, algorithms=["HS256"])
    assert claims["sub"] == admin_user.id


def test_login_email_is_case_insensitive(client, admin_user):
    assert login(client, email="ADMIN@Example.com").status_code == 200


def test_wrong_password_and_unknown_user_look_the_same(client, admin_user):
    wrong = login(client, password="wrong-password")
    unknown = login(client, email="ghost@example.com", ip="198.51.100.2")

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"detail": "Invalid credentials"}


def test_invalid_payload(client):
    assert login(client, email="not-an-email").status_code == 422
    assert login(client, password="short", ip="198.51.100.2").status_code == 422


def test_retry_after_hint_after_three_failures(client, admin_user):
    responses = [login(client, password="wrong-password", ip=f"198.51.100.{i}") for i in range(3)]

    assert "retry-after" not in responses[1].headers
    assert responses[2].headers["retry-after"] == "5"


def test_lockout_after_ten_failures_and_reset_on_success(client, admin_user):
    # A different IP per request keeps the per-IP throttle out of the way
    for i in range(10):
        assert login(client, password="wrong-password", ip=f"203.0.113.{i}").status_code == 401

    locked = login(client, ip="203.0.113.50")
    assert locked.status_code == 429
    assert "Account locked for 300 seconds" in locked.json()["detail"]

    client.app.state.attempt_tracker.record_success(ADMIN_EMAIL)
    assert login(client, ip="203.0.113.51").status_code == 200


def test_successful_login_clears_failures(client, admin_user):
    for i in range(4):
        login(client, password="wrong-password", ip=f"192.0.2.{i}")

    assert login(client, ip="192.0.2.10").status_code == 200
    assert client.app.state.attempt_tracker.stage(ADMIN_EMAIL) == "clean"


def test_throttle_allows_five_requests_per_window(client, admin_user, monkeypatch):
    for _ in range(5):
        assert login(client, password="wrong-password").status_code == 401

    throttled = login(client)
    assert throttled.status_code == 429

    # Other identities keep their own window
    assert login(client, ip="198.51.100.99").status_code == 200

    real_time = time.time
    monkeypatch.setattr(time, "time", lambda: real_time() + 61)
    assert login(client).status_code == 200


def test_login_from_ip_outside_allow_list(s3_client, database, admin_user, monkeypatch):
    from fastapi.testclient import TestClient

    from portfolio.limiter import limiter
    from portfolio.main import app

    monkeypatch.setattr(settings, "ADMIN_WHITELIST_IPS", "127.0.0.1")
    limiter.reset()
    with TestClient(app) as client:
        assert login(client, ip="10.0.0.5").status_code == 403
        assert login(client, ip="127.0.0.1").status_code == 200


def test_short_password_is_rejected_before_the_tracker(client, admin_user):
    for i in range(12):
        assert login(client, password="short", ip=f"192.0.2.{100 + i}").status_code == 422

    assert client.app.state.attempt_tracker.stage(ADMIN_EMAIL) == "clean"
    assert login(client, ip="192.0.2.200").status_code == 200
