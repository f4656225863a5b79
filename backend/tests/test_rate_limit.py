import os
import sys

from fastapi.testclient import TestClient
from starlette.requests import Request

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from courtside import rate_limit
from courtside.main import app


def _request(headers=None, client=("10.0.0.9", 1234)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_client_ip_prefers_proxy_headers():
    assert rate_limit.client_ip(_request({"X-Forwarded-For": "1.1.1.1, 2.2.2.2"})) == "2.2.2.2"
    assert rate_limit.client_ip(_request({"X-Real-IP": "3.3.3.3"})) == "3.3.3.3"
    assert rate_limit.client_ip(_request()) == "10.0.0.9"
    assert rate_limit.client_ip(_request(client=None)) == "anonymous"


def test_event_rate_limit_can_be_disabled(monkeypatch):
    monkeypatch.setattr(rate_limit, "EVENT_RATE_LIMIT", "5/minute")
    monkeypatch.setenv("DISABLE_RATE_LIMITS", "false")
    assert rate_limit.event_rate_limit() == "5/minute"
    monkeypatch.setenv("DISABLE_RATE_LIMITS", "true")
    assert rate_limit.event_rate_limit() == "1000/second"


def test_scoring_events_are_rate_limited(monkeypatch):
    monkeypatch.setattr(rate_limit, "EVENT_RATE_LIMIT", "2/minute")
    monkeypatch.setenv("DISABLE_RATE_LIMITS", "false")
    rate_limit.limiter.reset()
    try:
        with TestClient(app) as client:
            created = client.post(
                "/api/v0/matches",
                json={
                    "config": {
                        "scoringSystem": "ad",
                        "matchFormat": "single",
                        "setDuration": 6,
                        "tieBreakRules": "7-point",
                        "player1Name": "Ana",
                        "player2Name": "Bea",
                    }
                },
            ).json()
            url = f"/api/v0/matches/{created['match']['id']}/events"
            headers = {"X-Admin-Token": created["adminToken"]}
            body = {"type": "POINT", "player": "player1"}

            assert client.post(url, json=body, headers=headers).status_code == 200
            assert client.post(url, json=body, headers=headers).status_code == 200
            resp = client.post(url, json=body, headers=headers)
            assert resp.status_code == 429
            assert resp.json()["code"] == "rate_limit_exceeded"
    finally:
        rate_limit.limiter.reset()
