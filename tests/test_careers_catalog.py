from cb_engine.careers import CATALOG, careers_by_interest, risk_band, safety_percent, unique_interests


def test_unique_interests_first_seen_order() -> None:
    assert unique_interests() == ["Tech", "Medicine", "Art", "Education", "Business"]


def test_careers_by_interest_limit_and_case() -> None:
    tech = careers_by_interest("tech")
    assert [c.title for c in tech] == ["Software Developer", "Data Scientist", "Mechanical Engineer", "Pilot"]
    assert len(careers_by_interest("Tech", limit=2)) == 2
    assert careers_by_interest("Space") == []


def test_safety_and_band() -> None:
    assert safety_percent(0.2) == 80
    assert risk_band(0.15) == "safe"
    assert risk_band(0.3) == "medium"
    assert risk_band(0.45) == "risk"
    assert all(0 <= c.ai_score <= 1 for c in CATALOG)
