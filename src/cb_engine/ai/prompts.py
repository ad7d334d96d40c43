from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from cb_engine.models import AnalysisRequest, Mode

PROMPT_VERSION = "career_prompts_v2"

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

_SYSTEM_TEXT: Dict[Mode, str] = {
    Mode.DEFAULT: "You are an expert on the future of work and AI automation.",
    Mode.CHATBOT: (
        "You are a friendly, practical career coach. Answer the user's career question in a few short "
        "paragraphs. Give concrete next steps. Do not output scores or ratings."
    ),
    Mode.AUTOCOMPLETE: (
        "You suggest job search terms. Reply with up to 5 job titles that complete the user's partial "
        "query, one per line, with no numbering and no extra text."
    ),
    Mode.COURSE: (
        "You recommend one online course. Reply with a single markdown link in the form [Course Title](URL). "
        "If you do not know a suitable course, reply exactly: No course found."
    ),
    Mode.COMPANY_SCORE: (
        "You rate company culture for job seekers. Reply with 'Score: N/100' on the first line, then two or "
        "three short reasons."
    ),
}


@dataclass(frozen=True)
class PromptLimits:
    title_chars: int
    text_chars: int
    max_tokens: int
    temperature: float


# Title/text budgets bound token usage per mode.
DEFAULT_LIMITS: Dict[Mode, PromptLimits] = {
    Mode.DEFAULT: PromptLimits(title_chars=120, text_chars=800, max_tokens=100, temperature=0.2),
    Mode.CHATBOT: PromptLimits(title_chars=120, text_chars=800, max_tokens=300, temperature=0.7),
    Mode.AUTOCOMPLETE: PromptLimits(title_chars=40, text_chars=0, max_tokens=60, temperature=0.3),
    Mode.COURSE: PromptLimits(title_chars=60, text_chars=300, max_tokens=80, temperature=0.2),
    Mode.COMPANY_SCORE: PromptLimits(title_chars=120, text_chars=300, max_tokens=150, temperature=0.2),
}


@dataclass(frozen=True)
class Prompt:
    mode: Mode
    system: str
    user: str
    max_tokens: int
    temperature: float

    def messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def sanitize_text(value: str, max_chars: Optional[int] = None) -> str:
    """Strip markup tags, collapse whitespace, then truncate to ``max_chars``."""
    cleaned = _WS_RE.sub(" ", _TAG_RE.sub(" ", value or "")).strip()
    if max_chars is not None and max_chars >= 0 and len(cleaned) > max_chars:
        cleaned = cleaned[:max_chars].rstrip()
    return cleaned


def limits_from_env(base: Optional[Mapping[Mode, PromptLimits]] = None) -> Dict[Mode, PromptLimits]:
    """Apply CAREERBUDDY_<MODE>_TITLE_CHARS / _TEXT_CHARS overrides."""
    out: Dict[Mode, PromptLimits] = {}
    for mode, limits in (base or DEFAULT_LIMITS).items():
        title_chars = _env_int(f"CAREERBUDDY_{mode.value.upper()}_TITLE_CHARS", limits.title_chars)
        text_chars = _env_int(f"CAREERBUDDY_{mode.value.upper()}_TEXT_CHARS", limits.text_chars)
        out[mode] = PromptLimits(
            title_chars=title_chars,
            text_chars=text_chars,
            max_tokens=limits.max_tokens,
            temperature=limits.temperature,
        )
    return out


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        return default


def _user_text(mode: Mode, title: str, text: str) -> str:
    if mode is Mode.CHATBOT:
        return text or title
    if mode is Mode.AUTOCOMPLETE:
        return f"Partial job search query: {title}"
    if mode is Mode.COURSE:
        extra = f" Context: {text}" if text else ""
        return f"Recommend one online course to learn: {title}.{extra}"
    if mode is Mode.COMPANY_SCORE:
        extra = f" Notes: {text}" if text else ""
        return f"Rate the workplace culture of the company {title}.{extra}"
    return (
        f"Analyze this job: {title}. Description: {text}. How safe is it from AI disruption? "
        "Respond with a short risk summary and a score from 0 (very at risk) to 100 (very safe)."
    )


def build_prompt(
    request: AnalysisRequest,
    limits: Optional[Mapping[Mode, PromptLimits]] = None,
) -> Prompt:
    mode = Mode.coerce(request.mode)
    table = limits or DEFAULT_LIMITS
    mode_limits = table.get(mode) or DEFAULT_LIMITS[mode]
    title = sanitize_text(request.subject_title, mode_limits.title_chars)
    text = sanitize_text(request.subject_text, mode_limits.text_chars)
    return Prompt(
        mode=mode,
        system=_SYSTEM_TEXT[mode],
        user=_user_text(mode, title, text),
        max_tokens=mode_limits.max_tokens,
        temperature=mode_limits.temperature,
    )

