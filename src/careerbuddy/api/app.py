"""
Career Buddy
Copyright (c) 2026 Career Buddy contributors.
All Rights Reserved.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from cb_engine.ai.cache import CacheSweeper
from cb_engine.ai.service import AnalysisService
from cb_engine.careers import careers_by_interest, unique_interests
from cb_engine.config import Settings, load_settings
from cb_engine.errors import (
    ClientRateLimited,
    ConfigurationError,
    ListingRetrievalError,
    TransportError,
    UpstreamError,
    UpstreamRateLimited,
)
from cb_engine.models import AnalysisRequest, Mode
from cb_engine.providers.remotive import DEFAULT_KEYWORD, RemotiveClient
from cb_engine.ratelimit import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


class _AnalyzeBody(BaseModel):
    model_config = ConfigDict(extra="allow")

    jobTitle: str = ""
    jobDescription: str = ""
    mode: Optional[str] = None


def _caller_id(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _error(status_code: int, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _upstream_failure(caller: str, exc: Exception) -> JSONResponse:
    if isinstance(exc, UpstreamRateLimited):
        logger.warning("[api][grok] upstream rate limited caller=%s error=%s", caller, exc)
        return _error(
            429,
            {"error": "Rate limited", "message": "The AI provider is busy. Please try again shortly."},
        )
    logger.warning("[api][grok] upstream failure caller=%s error=%s", caller, exc)
    return _error(500, {"error": "AI provider error", "details": str(exc)})


def create_app(
    *,
    settings: Optional[Settings] = None,
    service: Optional[AnalysisService] = None,
    listings: Optional[RemotiveClient] = None,
    limiter: Optional[SlidingWindowRateLimiter] = None,
    run_sweeper: bool = True,
) -> FastAPI:
    if settings is None:
        settings = load_settings()
    if service is None:
        service = AnalysisService.from_settings(settings)
    if listings is None:
        listings = RemotiveClient.from_settings(settings)
    if limiter is None:
        limiter = SlidingWindowRateLimiter(settings.rate_limit_per_min, settings.rate_limit_window_s)
    sweeper = CacheSweeper(service.cache, settings.cache_sweep_interval_s, also_sweep=(limiter.sweep,))

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if run_sweeper:
            sweeper.start()
        try:
            yield
        finally:
            sweeper.stop()

    app = FastAPI(title="Career Buddy API", lifespan=lifespan)
    app.state.service = service
    app.state.listings = listings
    app.state.limiter = limiter
    app.state.sweeper = sweeper

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {
            "status": "ok",
            "cache_entries": len(service.cache),
            "api_key_configured": service.gateway.configured,
            "tracked_callers": len(limiter),
        }

    @app.post("/api/grok")
    def analyze(body: _AnalyzeBody, request: Request):
        caller = _caller_id(request)
        try:
            limiter.check(caller)
        except ClientRateLimited as exc:
            return _error(
                429,
                {"error": "Too many requests, please try again later."},
                headers={"Retry-After": str(int(exc.retry_after_s) + 1)},
            )

        analysis_request = AnalysisRequest(body.jobTitle, body.jobDescription, body.mode)
        try:
            result = service.analyze(analysis_request)
        except (UpstreamRateLimited, UpstreamError, TransportError) as exc:
            if analysis_request.mode is Mode.CHATBOT:
                # Chat replies degrade to a try-again message instead of an error status.
                logger.warning("[api][grok] chat upstream failure caller=%s error=%s", caller, exc)
                result = service.display_value_for_error(Mode.CHATBOT, exc)
            else:
                return _upstream_failure(caller, exc)
        except ConfigurationError as exc:
            logger.error("[api][grok] configuration error: %s", exc)
            return _error(500, {"error": "Server misconfigured", "details": str(exc)})
        except Exception as exc:
            logger.exception("[api][grok] unexpected failure")
            return _error(500, {"error": "Unexpected error", "details": str(exc)})

        payload: Dict[str, Any] = {"analysis": result.primary_value}
        if result.explanation is not None:
            payload["explanation"] = result.explanation
        if result.is_fallback:
            payload["fallback"] = result.fallback_reason
        return payload

    @app.get("/api/jobFetcher")
    def job_fetcher(keyword: str = DEFAULT_KEYWORD):
        try:
            found = listings.search(keyword)
        except ListingRetrievalError as exc:
            logger.warning("[api][jobs] retrieval failed keyword=%s error=%s", keyword, exc)
            return _error(500, {"error": "Job board API error", "details": str(exc)})
        return {"jobs": [listing.to_dict() for listing in found]}

    @app.get("/api/careers/interests")
    def career_interests() -> Dict[str, Any]:
        return {"interests": unique_interests()}

    @app.get("/api/careers")
    def careers(interest: str = "Tech", limit: int = 5) -> Dict[str, Any]:
        return {
            "interest": interest,
            "careers": [career.to_dict() for career in careers_by_interest(interest, limit=limit)],
        }

    return app
