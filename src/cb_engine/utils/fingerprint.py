"""
Career Buddy
Copyright (c) 2026 Career Buddy contributors.
All Rights Reserved.
"""

from __future__ import annotations

import hashlib
import json

from cb_engine.models import AnalysisRequest

DEFAULT_PREFIX_CHARS = 1000


def request_fingerprint(request: AnalysisRequest, *, prefix_chars: int = DEFAULT_PREFIX_CHARS) -> str:
    """
    Stable cache key for an analysis request.

    Included fields:
    - mode
    - subject_title (whitespace-trimmed)
    - the first ``prefix_chars`` characters of subject_text

    The fields are hashed as canonical JSON, so no delimiter inside a title can
    make two different requests collide. Requests that differ only after the
    prefix share a key.
    """
    text = request.subject_text or ""
    if prefix_chars > 0:
        text = text[:prefix_chars]
    payload = {
        "mode": request.mode.value,
        "title": (request.subject_title or "").strip(),
        "text": text,
    }
    raw = json.dumps(payload, sort_keys=True, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    return f"{request.mode.value}:{hashlib.sha256(raw).hexdigest()}"
