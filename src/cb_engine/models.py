from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Mode(str, Enum):
    DEFAULT = "default"
    CHATBOT = "chatbot"
    AUTOCOMPLETE = "autocomplete"
    COURSE = "course"
    COMPANY_SCORE = "company_score"

    @classmethod
    def coerce(cls, value: Any) -> "Mode":
        """Map any incoming mode tag to a Mode; unknown tags become DEFAULT."""
        if isinstance(value, Mode):
            return value
        raw = str(value or "").strip().lower()
        for mode in cls:
            if mode.value == raw:
                return mode
        return cls.DEFAULT


NUMERIC_MODES = frozenset({Mode.DEFAULT, Mode.COMPANY_SCORE})


@dataclass(frozen=True)
class AnalysisRequest:
    subject_title: str
    subject_text: str = ""
    mode: Mode = Mode.DEFAULT

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", Mode.coerce(self.mode))
        object.__setattr__(self, "subject_title", str(self.subject_title or ""))
        object.__setattr__(self, "subject_text", str(self.subject_text or ""))


@dataclass(frozen=True)
class AnalysisResult:
    """
    Parsed model output.

    A result with ``fallback_reason`` set carries a documented substitute value
    instead of genuine model output.
    """

    primary_value: str
    explanation: Optional[str] = None
    fallback_reason: Optional[str] = None

    @classmethod
    def parsed(cls, value: str, explanation: Optional[str] = None) -> "AnalysisResult":
        return cls(primary_value=value, explanation=explanation)

    @classmethod
    def fallback(cls, value: str, reason: str, explanation: Optional[str] = None) -> "AnalysisResult":
        return cls(primary_value=value, explanation=explanation, fallback_reason=reason)

    @property
    def is_fallback(self) -> bool:
        return self.fallback_reason is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Listing:
    """A job posting as returned by the job board, plus the untouched payload."""

    title: str
    company_name: str = ""
    location: str = ""
    description: str = ""
    url: str = ""
    job_type: str = ""
    publication_date: str = ""
    salary: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Listing":
        def _s(*keys: str) -> str:
            for key in keys:
                value = payload.get(key)
                if value is not None:
                    return str(value)
            return ""

        return cls(
            title=_s("title"),
            company_name=_s("company_name", "companyName"),
            location=_s("candidate_required_location", "location"),
            description=_s("description"),
            url=_s("url"),
            job_type=_s("job_type", "jobType"),
            publication_date=_s("publication_date", "publicationDate"),
            salary=_s("salary"),
            raw=dict(payload),
        )

    def to_dict(self) -> Dict[str, Any]:
        # Pass-through: callers see exactly what the provider sent.
        if self.raw:
            return dict(self.raw)
        d = asdict(self)
        d.pop("raw", None)
        return d
