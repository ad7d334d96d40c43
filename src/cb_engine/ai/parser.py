from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from cb_engine.models import AnalysisResult, Mode

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
NO_RECOMMENDATION = "No recommendation"

_INT_RE = re.compile(r"(?<![\d.])(\d{1,3})(?![\d.]*\d)")
_SCORE_OF_100_RE = re.compile(r"score\s*[:\-]?\s*(\d{1,3})\s*/\s*100", re.IGNORECASE)
_NUMERIC_ONLY_RE = re.compile(r"^\s*\d+(?:\.\d+)?\s*%?\s*$")
_RISK_TAIL_RE = re.compile(r"(?im)^\s*risk (?:summary|score)\s*:.*$")
_MD_LINK_RE = re.compile(r"\[([^\]\n]+)\]\((https?://[^\s)]+)\)")
_NO_COURSE_RE = re.compile(r"no (?:suitable |relevant )?course (?:was )?found", re.IGNORECASE)
_LIST_MARKER_RE = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s*")

MAX_SUGGESTIONS = 5
MIN_COMPANY_EXPLANATION_CHARS = 20


@dataclass(frozen=True)
class ParserConfig:
    # A purely numeric chat reply is treated as a mis-routed score and replaced.
    reject_numeric_chat: bool = True
    chat_clarification: str = (
        "I'm here to help with your career questions. Could you tell me more about your goals, "
        "interests, or what you're looking for?"
    )
    chat_empty_reply: str = "I'm here to help with your career questions. What would you like to know?"
    company_fallback_score: str = "70"
    company_fallback_reasons: str = (
        "Reasons:\n"
        "- Limited public information about this company's culture.\n"
        "- Review recent employee feedback before applying.\n"
        "- Ask about team practices and growth paths during interviews."
    )
    course_fallbacks: Tuple[Tuple[str, str, str], ...] = field(
        default_factory=lambda: (
            ("sql", "SQL for Data Science", "https://www.coursera.org/learn/sql-for-data-science"),
        )
    )


DEFAULT_PARSER_CONFIG = ParserConfig()


def first_score(text: str) -> Optional[int]:
    """First standalone integer in [0, 100], or None."""
    for match in _INT_RE.finditer(text or ""):
        value = int(match.group(1))
        if 0 <= value <= 100:
            return value
    return None


def _log_fallback(mode: Mode, reason: str, raw_text: str) -> None:
    logger.warning(
        "[parser][fallback] mode=%s reason=%s raw_chars=%d",
        mode.value,
        reason,
        len(raw_text or ""),
    )


def parse_default(raw_text: str, subject: str, config: ParserConfig) -> AnalysisResult:
    text = (raw_text or "").strip()
    score = first_score(text)
    if score is None:
        _log_fallback(Mode.DEFAULT, "no_score", text)
        return AnalysisResult.fallback(NOT_AVAILABLE, "no_score", explanation=raw_text or "")
    return AnalysisResult.parsed(str(score), explanation=raw_text)


def parse_chatbot(raw_text: str, subject: str, config: ParserConfig) -> AnalysisResult:
    text = _RISK_TAIL_RE.sub("", raw_text or "").strip()
    if not text:
        _log_fallback(Mode.CHATBOT, "empty_reply", raw_text)
        return AnalysisResult.fallback(config.chat_empty_reply, "empty_reply")
    if config.reject_numeric_chat and _NUMERIC_ONLY_RE.match(text):
        _log_fallback(Mode.CHATBOT, "numeric_reply", raw_text)
        return AnalysisResult.fallback(config.chat_clarification, "numeric_reply", explanation=text)
    return AnalysisResult.parsed(text)


def parse_company_score(raw_text: str, subject: str, config: ParserConfig) -> AnalysisResult:
    text = (raw_text or "").strip()
    match = _SCORE_OF_100_RE.search(text)
    score: Optional[int] = None
    explanation = text
    if match and 0 <= int(match.group(1)) <= 100:
        score = int(match.group(1))
        explanation = (text[: match.start()] + text[match.end() :]).strip()
    else:
        score = first_score(text)

    reason = None
    if score is None:
        reason = "no_score"
    elif len(explanation) < MIN_COMPANY_EXPLANATION_CHARS:
        reason = "short_explanation"
    if reason:
        _log_fallback(Mode.COMPANY_SCORE, reason, text)
        return AnalysisResult.fallback(
            config.company_fallback_score,
            reason,
            explanation=config.company_fallback_reasons,
        )
    return AnalysisResult.parsed(str(score), explanation=explanation)


def parse_course(raw_text: str, subject: str, config: ParserConfig) -> AnalysisResult:
    text = (raw_text or "").strip()
    match = _MD_LINK_RE.search(text)
    if match and not _NO_COURSE_RE.search(text):
        title, url = match.group(1).strip(), match.group(2).strip()
        return AnalysisResult.parsed(f"[{title}]({url})", explanation=url)

    haystack = (subject or "").lower()
    for keyword, title, url in config.course_fallbacks:
        if keyword in haystack:
            _log_fallback(Mode.COURSE, "keyword_course", text)
            return AnalysisResult.fallback(f"[{title}]({url})", "keyword_course", explanation=url)
    _log_fallback(Mode.COURSE, "no_course", text)
    return AnalysisResult.fallback(NO_RECOMMENDATION, "no_course")


def parse_autocomplete(raw_text: str, subject: str, config: ParserConfig) -> AnalysisResult:
    suggestions: List[str] = []
    seen = set()
    for line in (raw_text or "").splitlines():
        item = _LIST_MARKER_RE.sub("", line).strip().strip('"').strip()
        if not item or item.lower() in seen:
            continue
        seen.add(item.lower())
        suggestions.append(item)
        if len(suggestions) >= MAX_SUGGESTIONS:
            break
    if not suggestions:
        _log_fallback(Mode.AUTOCOMPLETE, "no_suggestions", raw_text)
        return AnalysisResult.fallback("", "no_suggestions")
    return AnalysisResult.parsed("\n".join(suggestions))


_PARSERS: Dict[Mode, Callable[[str, str, ParserConfig], AnalysisResult]] = {
    Mode.DEFAULT: parse_default,
    Mode.CHATBOT: parse_chatbot,
    Mode.COMPANY_SCORE: parse_company_score,
    Mode.COURSE: parse_course,
    Mode.AUTOCOMPLETE: parse_autocomplete,
}


def parse(
    mode: Mode,
    raw_text: str,
    subject: str = "",
    config: Optional[ParserConfig] = None,
) -> AnalysisResult:
    """
    Turn a raw completion into an AnalysisResult for ``mode``.

    Never raises: malformed model output yields a fallback result whose
    ``fallback_reason`` names what went wrong.
    """
    parser = _PARSERS.get(Mode.coerce(mode), parse_default)
    return parser(raw_text or "", subject or "", config or DEFAULT_PARSER_CONFIG)
