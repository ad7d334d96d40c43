from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class Career:
    title: str
    interest: str
    ai_score: float  # share of the work exposed to automation, 0..1
    skills: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "interest": self.interest,
            "ai_score": self.ai_score,
            "safety_percent": safety_percent(self.ai_score),
            "risk_band": risk_band(self.ai_score),
            "skills": list(self.skills),
        }


CATALOG: Tuple[Career, ...] = (
    Career("Software Developer", "Tech", 0.2, ("Problem solving", "Coding", "Teamwork")),
    Career("Data Scientist", "Tech", 0.15, ("Statistics", "Machine Learning", "Python")),
    Career("Nurse", "Medicine", 0.05, ("Compassion", "Attention to Detail", "Communication")),
    Career("Graphic Designer", "Art", 0.4, ("Creativity", "Adobe Suite", "Communication")),
    Career("Mechanical Engineer", "Tech", 0.1, ("CAD", "Math", "Problem Solving")),
    Career("Teacher", "Education", 0.25, ("Communication", "Patience", "Organization")),
    Career("Business Analyst", "Business", 0.3, ("Analysis", "Communication", "Excel")),
    Career("Biomedical Scientist", "Medicine", 0.12, ("Research", "Lab Skills", "Attention to Detail")),
    Career("Pilot", "Tech", 0.35, ("Navigation", "Communication", "Quick Decision Making")),
    Career("Chef", "Art", 0.45, ("Creativity", "Time Management", "Teamwork")),
)


def unique_interests(catalog: Tuple[Career, ...] = CATALOG) -> List[str]:
    """Interests in first-seen catalog order."""
    seen: List[str] = []
    for career in catalog:
        if career.interest not in seen:
            seen.append(career.interest)
    return seen


def careers_by_interest(interest: str, limit: int = 5, catalog: Tuple[Career, ...] = CATALOG) -> List[Career]:
    wanted = (interest or "").strip().lower()
    matches = [c for c in catalog if c.interest.lower() == wanted]
    return matches[:limit] if limit > 0 else matches


def safety_percent(ai_score: float) -> int:
    return int(round((1 - ai_score) * 100))


def risk_band(ai_score: float) -> str:
    if ai_score <= 0.15:
        return "safe"
    if ai_score <= 0.3:
        return "medium"
    return "risk"
