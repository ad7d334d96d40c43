from __future__ import annotations

import pytest

fastapi = pytest.importorskip("fastapi")
from fastapi.testclient import TestClient  # noqa: E402

from careerbuddy.api.app import create_app  # noqa: E402
from cb_engine.ai import gateway as gateway_mod  # noqa: E402
from cb_engine.ai.gateway import ChatCompletionGateway  # noqa: E402
from cb_engine.ai.prompts import build_prompt  # noqa: E402
from cb_engine.ai.service import CHAT_UNAVAILABLE_MESSAGE, AnalysisService  # noqa: E402
from cb_engine.config import Settings  # noqa: E402
from cb_engine.errors import ListingRetrievalError  # noqa: E402
from cb_engine.models import AnalysisRequest, Listing  # noqa: E402
from cb_engine.ratelimit import SlidingWindowRateLimiter  # noqa: E402


class _Listings:
    def __init__(self, listings=None, error=None):
        self.listings = listings or []
        self.error = error
        self.keywords = []

    def search(self, keyword=None, limit=None):
        self.keywords.append(keyword)
        if self.error:
            raise self.error
        return self.listings


def _client(monkeypatch, responses, *, api_key="test-key", limit=20, listings=None):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append(json)
        return responses.pop(0)

    monkeypatch.setattr(gateway_mod.requests, "post", fake_post)
    gateway = ChatCompletionGateway(api_key, models=(("model-a", 2),), sleep=lambda _: None)
    service = AnalysisService(gateway)
    app = create_app(
        settings=Settings(),
        service=service,
        listings=listings or _Listings(),
        limiter=SlidingWindowRateLimiter(limit=limit),
        run_sweeper=False,
    )
    return TestClient(app), calls


def test_grok_returns_analysis(monkeypatch, fake_response, completion_payload) -> None:
    client, calls = _client(monkeypatch, [fake_response(200, completion_payload("Risk Score: 72"))])
    resp = client.post("/api/grok", json={"jobTitle": "Nurse", "jobDescription": "Patient care"})
    assert resp.status_code == 200
    assert resp.json() == {"analysis": "72", "explanation": "Risk Score: 72"}
    assert len(calls) == 1


def test_grok_chatbot_mode(monkeypatch, fake_response, completion_payload) -> None:
    client, calls = _client(monkeypatch, [fake_response(200, completion_payload("85"))])
    resp = client.post(
        "/api/grok",
        json={"jobTitle": "AI Career Coach Response", "jobDescription": "How do I start?", "mode": "chatbot"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["analysis"] != "85"
    assert body["fallback"] == "numeric_reply"
    assert calls[0]["max_tokens"] == 300


def test_grok_rejects_get(monkeypatch) -> None:
    client, _ = _client(monkeypatch, [])
    assert client.get("/api/grok").status_code == 405


def test_grok_missing_key_is_500_without_call(monkeypatch) -> None:
    client, calls = _client(monkeypatch, [], api_key=None)
    resp = client.post("/api/grok", json={"jobTitle": "Nurse", "jobDescription": "Care"})
    assert resp.status_code == 500
    body = resp.json()
    assert set(body) == {"error", "details"}
    assert "missing_api_key" in body["details"]
    assert calls == []


def test_grok_upstream_rate_limit_is_429(monkeypatch, fake_response) -> None:
    limited = {"error": {"message": "Rate limit reached"}}
    client, _ = _client(monkeypatch, [fake_response(429, limited), fake_response(429, limited)])
    resp = client.post("/api/grok", json={"jobTitle": "Nurse", "jobDescription": "Care"})
    assert resp.status_code == 429
    assert set(resp.json()) == {"error", "message"}


def test_grok_upstream_error_is_500(monkeypatch, fake_response) -> None:
    client, _ = _client(monkeypatch, [fake_response(400, {"error": {"message": "model not found"}})])
    resp = client.post("/api/grok", json={"jobTitle": "Nurse", "jobDescription": "Care"})
    assert resp.status_code == 500
    assert "model not found" in resp.json()["details"]


def test_grok_client_rate_limit(monkeypatch, fake_response, completion_payload) -> None:
    client, calls = _client(
        monkeypatch,
        [fake_response(200, completion_payload("Risk Score: 10"))],
        limit=2,
    )
    body = {"jobTitle": "Nurse", "jobDescription": "Care"}
    assert client.post("/api/grok", json=body).status_code == 200
    assert client.post("/api/grok", json=body).status_code == 200  # cache hit, still counted
    resp = client.post("/api/grok", json=body)
    assert resp.status_code == 429
    assert set(resp.json()) == {"error"}
    assert "Retry-After" in resp.headers
    assert len(calls) == 1

    other = client.post("/api/grok", json=body, headers={"X-Forwarded-For": "10.0.0.9, 10.0.0.1"})
    assert other.status_code == 200


def test_job_fetcher_passes_through(monkeypatch) -> None:
    raw = {"title": "Nurse", "company_name": "Care Co", "tags": ["health"]}
    listings = _Listings([Listing.from_payload(raw)])
    client, _ = _client(monkeypatch, [], listings=listings)
    resp = client.get("/api/jobFetcher", params={"keyword": "nurse"})
    assert resp.status_code == 200
    assert resp.json() == {"jobs": [raw]}
    assert listings.keywords == ["nurse"]


def test_job_fetcher_default_keyword(monkeypatch) -> None:
    listings = _Listings([])
    client, _ = _client(monkeypatch, [], listings=listings)
    assert client.get("/api/jobFetcher").status_code == 200
    assert listings.keywords == ["software"]


def test_job_fetcher_error_is_500(monkeypatch) -> None:
    listings = _Listings(error=ListingRetrievalError("bad_status", 503, "down"))
    client, _ = _client(monkeypatch, [], listings=listings)
    resp = client.get("/api/jobFetcher")
    assert resp.status_code == 500
    assert set(resp.json()) == {"error", "details"}


def test_careers_and_health(monkeypatch) -> None:
    client, _ = _client(monkeypatch, [])
    interests = client.get("/api/careers/interests").json()["interests"]
    assert "Medicine" in interests
    careers = client.get("/api/careers", params={"interest": "Medicine"}).json()["careers"]
    assert {c["title"] for c in careers} == {"Nurse", "Biomedical Scientist"}
    health = client.get("/healthz").json()
    assert health["status"] == "ok"
    assert health["api_key_configured"] is True


def test_unknown_mode_uses_default_template(monkeypatch, fake_response, completion_payload) -> None:
    client, calls = _client(monkeypatch, [fake_response(200, completion_payload("Risk Score: 64"))])
    resp = client.post("/api/grok", json={"jobTitle": "Nurse", "jobDescription": "Care", "mode": "horoscope"})
    assert resp.status_code == 200
    assert resp.json()["analysis"] == "64"
    default_prompt = build_prompt(AnalysisRequest("Nurse", "Care"))
    assert calls[0]["messages"] == default_prompt.messages()
    assert calls[0]["max_tokens"] == default_prompt.max_tokens


@pytest.mark.parametrize(
    "status, body, reason",
    [
        (500, {"error": {"message": "internal"}}, "upstream_error"),
        (429, {"error": {"message": "Rate limit reached"}}, "rate_limited"),
    ],
)
def test_chat_upstream_failure_returns_apology(monkeypatch, fake_response, status, body, reason) -> None:
    client, _ = _client(monkeypatch, [fake_response(status, body), fake_response(status, body)])
    resp = client.post(
        "/api/grok",
        json={"jobTitle": "AI Career Coach Response", "jobDescription": "How do I start?", "mode": "chatbot"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"analysis": CHAT_UNAVAILABLE_MESSAGE, "fallback": reason}


def test_create_app_builds_service_from_given_settings(monkeypatch) -> None:
    settings = Settings(api_key="k", cache_key_prefix_chars=5, rate_limit_per_min=7)
    app = create_app(settings=settings, listings=_Listings(), run_sweeper=False)
    service = app.state.service
    assert service.settings.cache_key_prefix_chars == 5
    assert service.gateway.api_key == "k"
    assert app.state.limiter.limit == 7
    assert app.state.sweeper.also_sweep == (app.state.limiter.sweep,)


def test_healthz_reports_tracked_callers(monkeypatch, fake_response, completion_payload) -> None:
    client, _ = _client(monkeypatch, [fake_response(200, completion_payload("Risk Score: 10"))])
    assert client.get("/healthz").json()["tracked_callers"] == 0
    client.post("/api/grok", json={"jobTitle": "Nurse", "jobDescription": "Care"})
    assert client.get("/healthz").json()["tracked_callers"] == 1
