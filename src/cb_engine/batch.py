from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

from cb_engine.ai.service import AnalysisService
from cb_engine.errors import CareerBuddyError
from cb_engine.listing_rules import derive_listing_fields
from cb_engine.models import AnalysisRequest, AnalysisResult, Listing, Mode

logger = logging.getLogger(__name__)


@dataclass
class ScoredListing:
    listing: Listing
    result: AnalysisResult
    error: str = ""

    @property
    def score(self) -> str:
        return self.result.primary_value

    def to_dict(self) -> Dict[str, Any]:
        out = self.listing.to_dict()
        out.update(derive_listing_fields(self.listing))
        out["ai_score"] = self.result.primary_value
        out["ai_explanation"] = self.result.explanation
        out["ai_fallback"] = self.result.fallback_reason
        if self.error:
            out["ai_error"] = self.error
        return out


def _chunks(items: Sequence[Listing], size: int) -> List[Sequence[Listing]]:
    size = max(1, size)
    return [items[i : i + size] for i in range(0, len(items), size)]


def score_listings(
    service: AnalysisService,
    listings: Sequence[Listing],
    *,
    batch_size: int = 3,
    delay_s: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> List[ScoredListing]:
    """
    Score listings in fixed-size groups with a fixed pause between groups.

    A listing whose analysis fails still gets a displayable "N/A" result with
    the failure reason attached.
    """
    scored: List[ScoredListing] = []
    batches = _chunks(listings, batch_size)
    for index, batch in enumerate(batches):
        for listing in batch:
            request = AnalysisRequest(listing.title, listing.description or listing.title, Mode.DEFAULT)
            try:
                result = service.analyze(request)
            except CareerBuddyError as exc:
                logger.warning("[batch][error] title=%s error=%s", listing.title, exc)
                scored.append(
                    ScoredListing(listing, AnalysisService.display_value_for_error(Mode.DEFAULT, exc), str(exc))
                )
                continue
            scored.append(ScoredListing(listing, result))
        if index < len(batches) - 1 and delay_s > 0:
            logger.info("[batch][pause] done=%d/%d sleep_s=%.2f", len(scored), len(listings), delay_s)
            sleep(delay_s)
    return scored
