from cb_engine.listing_rules import derive_listing_fields, experience_level, extract_skills, is_remote
from cb_engine.models import Listing


def test_skills_in_table_order() -> None:
    listing = Listing(
        title="Backend Engineer",
        description="<ul><li>SQL and Python</li><li>Docker, Kubernetes on AWS</li></ul>",
    )
    assert extract_skills(listing) == ["Python", "SQL", "AWS", "Docker", "Kubernetes"]


def test_remote_flag_sources() -> None:
    assert is_remote(Listing(title="Nurse", location="Worldwide"))
    assert is_remote(Listing(title="Nurse (Remote)", location="USA"))
    assert not is_remote(Listing(title="Nurse", location="Boston, MA"))


def test_experience_level_title_wins() -> None:
    assert experience_level(Listing(title="Junior Analyst", description="Senior stakeholders")) == "Entry"
    assert experience_level(Listing(title="Staff Engineer")) == "Senior"
    assert experience_level(Listing(title="Analyst", description="7+ years of experience")) == "Senior"
    assert experience_level(Listing(title="Analyst", description="Great team")) == "Mid"


def test_derive_listing_fields_shape() -> None:
    out = derive_listing_fields(Listing(title="Registered Nurse", description="Patient care"))
    assert out["skills"] == ["Nursing"]
    assert out["remote"] is False
    assert out["experience_level"] == "Mid"
    assert out["rules_version"]
