"""
Career Buddy
Copyright (c) 2026 Career Buddy contributors.
All Rights Reserved.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import requests

from cb_engine.config import DEFAULT_JOBS_URL, Settings
from cb_engine.errors import ListingRetrievalError
from cb_engine.models import Listing

logger = logging.getLogger(__name__)

DEFAULT_KEYWORD = "software"
USER_AGENT = "career-buddy/0.1 (+listing-fetch)"


class RemotiveClient:
    """
    Single-attempt keyword search against the Remotive remote-jobs API.

    Listings are returned in provider order and sliced to ``limit``; the API
    does not always honour its own ``limit`` parameter.
    """

    def __init__(self, url: str = DEFAULT_JOBS_URL, *, limit: int = 20, timeout_s: float = 20.0):
        self.url = url
        self.limit = limit
        self.timeout_s = timeout_s

    @classmethod
    def from_settings(cls, settings: Settings) -> "RemotiveClient":
        return cls(settings.jobs_url, limit=settings.jobs_limit, timeout_s=settings.jobs_timeout_s)

    def search(self, keyword: Optional[str] = None, limit: Optional[int] = None) -> List[Listing]:
        keyword = (keyword or "").strip() or DEFAULT_KEYWORD
        limit = self.limit if limit is None else limit
        params = {"search": keyword}
        if limit and limit > 0:
            params["limit"] = str(limit)
        try:
            resp = requests.get(
                self.url,
                params=params,
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                timeout=self.timeout_s,
            )
        except requests.Timeout as exc:
            raise ListingRetrievalError("timeout", detail=str(exc)) from exc
        except requests.RequestException as exc:
            raise ListingRetrievalError("network_error", detail=str(exc)) from exc

        if resp.status_code != 200:
            raise ListingRetrievalError("bad_status", resp.status_code, (resp.text or "")[:500])
        try:
            data = resp.json()
        except ValueError as exc:
            raise ListingRetrievalError("invalid_response", resp.status_code, "body is not JSON") from exc
        jobs = data.get("jobs") if isinstance(data, dict) else None
        if not isinstance(jobs, list):
            raise ListingRetrievalError("invalid_response", resp.status_code, "missing 'jobs' list")

        listings = [Listing.from_payload(item) for item in jobs if isinstance(item, dict)]
        if limit and limit > 0:
            listings = listings[:limit]
        logger.info("[listings] keyword=%s returned=%d", keyword, len(listings))
        return listings
