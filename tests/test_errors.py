from __future__ import annotations

import pytest

from cb_engine.ai.service import AnalysisService
from cb_engine.errors import (
    CareerBuddyError,
    ClientRateLimited,
    ConfigurationError,
    ListingRetrievalError,
    TransportError,
    UpstreamError,
    UpstreamRateLimited,
)
from cb_engine.models import Mode


def test_upstream_rate_limited_requires_attempts() -> None:
    exc = UpstreamRateLimited("rate_limited", 5, ("model-a", "model-b"))
    assert exc.reason == "rate_limited"
    assert exc.attempts == 5
    assert str(exc) == "UpstreamRateLimited(rate_limited, attempts=5, models=model-a,model-b)"
    with pytest.raises(TypeError):
        UpstreamRateLimited("rate_limited")  # type: ignore[call-arg]


@pytest.mark.parametrize(
    "exc, rendered",
    [
        (ConfigurationError("missing_api_key", setting="GROQ_API_KEY"), "ConfigurationError(missing_api_key, setting=GROQ_API_KEY)"),
        (UpstreamError("upstream_error", 401, "Invalid API Key"), "UpstreamError(upstream_error, status=401, detail=Invalid API Key)"),
        (TransportError("timeout", 2), "TransportError(timeout, attempts=2)"),
        (ListingRetrievalError("bad_status", 503), "ListingRetrievalError(bad_status, status=503)"),
        (ClientRateLimited("1.2.3.4", 20, 12.34), "ClientRateLimited(caller=1.2.3.4, limit=20, retry_after_s=12.3)"),
    ],
)
def test_errors_render_reason_and_fields(exc, rendered) -> None:
    assert isinstance(exc, CareerBuddyError)
    assert isinstance(exc, RuntimeError)
    assert str(exc) == rendered
    assert exc.reason


def test_display_value_tolerates_errors_without_reason() -> None:
    result = AnalysisService.display_value_for_error(Mode.DEFAULT, ValueError("bad"))
    assert result.primary_value == "N/A"
    assert result.fallback_reason == "ValueError"
