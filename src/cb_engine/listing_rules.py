from __future__ import annotations

import re
from typing import Any, Dict, List, Tuple

from cb_engine.ai.prompts import sanitize_text
from cb_engine.models import Listing

RULES_VERSION = "2026-10-LISTING-RULES-1"
_WS_RE = re.compile(r"\s+")


def _norm_text(s: str) -> str:
    return _WS_RE.sub(" ", (s or "")).strip().lower()


def _contains(text: str, patterns: List[str]) -> bool:
    for p in patterns:
        if re.search(p, text, flags=re.IGNORECASE):
            return True
    return False


# Keep this small and high-signal; order is the deterministic output order.
_SKILL_PATTERNS: List[Tuple[str, List[str]]] = [
    ("Python", [r"\bpython\b"]),
    ("JavaScript", [r"\bjavascript\b", r"\bjs\b", r"\bnode(?:\.js)?\b"]),
    ("TypeScript", [r"\btypescript\b"]),
    ("React", [r"\breact\b"]),
    ("Java", [r"\bjava\b"]),
    ("Go", [r"\bgolang\b"]),
    ("SQL", [r"\bsql\b", r"\bpostgres(?:ql)?\b", r"\bmysql\b"]),
    ("AWS", [r"\baws\b", r"\bamazon web services\b"]),
    ("Docker", [r"\bdocker\b"]),
    ("Kubernetes", [r"\bkubernetes\b", r"\bk8s\b"]),
    ("Machine Learning", [r"\bmachine learning\b", r"\bml\b"]),
    ("Data Analysis", [r"\bdata analysis\b", r"\banalytics\b", r"\bexcel\b"]),
    ("Design", [r"\bfigma\b", r"\bui/ux\b", r"\bux\b", r"\bdesign systems?\b"]),
    ("Marketing", [r"\bseo\b", r"\bmarketing\b", r"\bcontent strategy\b"]),
    ("Sales", [r"\bsales\b", r"\bquota\b", r"\bpipeline generation\b"]),
    ("Customer Support", [r"\bcustomer support\b", r"\bcustomer success\b", r"\bhelpdesk\b"]),
    ("Communication", [r"\bcommunication\b", r"\bwritten english\b"]),
    ("Nursing", [r"\bnurs(?:e|ing)\b", r"\brn\b", r"\bpatient care\b"]),
]

_REMOTE_PATTERNS: List[str] = [r"\bremote\b", r"\bwork from home\b", r"\bwfh\b", r"\banywhere\b", r"\bworldwide\b"]

_SENIOR_PATTERNS: List[str] = [
    r"\bsenior\b",
    r"\bsr\.?\b",
    r"\blead\b",
    r"\bprincipal\b",
    r"\bstaff\b",
    r"\bhead of\b",
    r"\bdirector\b",
    r"\b(?:[5-9]|1\d)\+?\s*years\b",
]
_ENTRY_PATTERNS: List[str] = [
    r"\bjunior\b",
    r"\bjr\.?\b",
    r"\bentry[- ]level\b",
    r"\bintern(?:ship)?\b",
    r"\bgraduate\b",
    r"\b[0-1]\+?\s*years?\b",
]

MAX_SKILLS = 6


def _listing_text(listing: Listing) -> str:
    return _norm_text(" ".join([listing.title, sanitize_text(listing.description)]))


def extract_skills(listing: Listing) -> List[str]:
    text = _listing_text(listing)
    out: List[str] = []
    for name, patterns in _SKILL_PATTERNS:
        if _contains(text, patterns):
            out.append(name)
        if len(out) >= MAX_SKILLS:
            break
    return out


def is_remote(listing: Listing) -> bool:
    location = _norm_text(listing.location)
    if _contains(location, _REMOTE_PATTERNS):
        return True
    if "remote" in _norm_text(listing.job_type):
        return True
    return _contains(_norm_text(listing.title), _REMOTE_PATTERNS)


def experience_level(listing: Listing) -> str:
    """Title markers win over description markers."""
    title = _norm_text(listing.title)
    if _contains(title, _SENIOR_PATTERNS):
        return "Senior"
    if _contains(title, _ENTRY_PATTERNS):
        return "Entry"
    body = _norm_text(sanitize_text(listing.description))
    if _contains(body, _SENIOR_PATTERNS):
        return "Senior"
    if _contains(body, _ENTRY_PATTERNS):
        return "Entry"
    return "Mid"


def derive_listing_fields(listing: Listing) -> Dict[str, Any]:
    return {
        "skills": extract_skills(listing),
        "remote": is_remote(listing),
        "experience_level": experience_level(listing),
        "rules_version": RULES_VERSION,
    }
