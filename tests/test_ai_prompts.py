from __future__ import annotations

from cb_engine.ai.prompts import DEFAULT_LIMITS, PromptLimits, build_prompt, limits_from_env, sanitize_text
from cb_engine.models import AnalysisRequest, Mode


def test_default_prompt_mentions_title_and_description() -> None:
    prompt = build_prompt(AnalysisRequest("Nurse", "Care for patients on a busy ward."))
    assert prompt.mode is Mode.DEFAULT
    assert "Nurse" in prompt.user
    assert "Care for patients" in prompt.user
    assert "0 (very at risk) to 100 (very safe)" in prompt.user
    messages = prompt.messages()
    assert [m["role"] for m in messages] == ["system", "user"]


def test_unknown_mode_falls_back_to_default_template() -> None:
    prompt = build_prompt(AnalysisRequest("Nurse", "x", "not-a-mode"))
    assert prompt.mode is Mode.DEFAULT
    assert prompt.system == build_prompt(AnalysisRequest("Nurse", "x")).system


def test_sanitize_strips_tags_and_whitespace() -> None:
    assert sanitize_text("<p>Hello</p>\n\n  <b>world</b>") == "Hello world"
    assert sanitize_text("abcdef", 3) == "abc"


def test_description_is_truncated_per_mode() -> None:
    long_text = "word " * 500
    prompt = build_prompt(AnalysisRequest("Company", long_text, Mode.COMPANY_SCORE))
    budget = DEFAULT_LIMITS[Mode.COMPANY_SCORE].text_chars
    assert len(prompt.user) < budget + 200


def test_custom_limits_override_defaults() -> None:
    limits = dict(DEFAULT_LIMITS)
    limits[Mode.AUTOCOMPLETE] = PromptLimits(title_chars=4, text_chars=0, max_tokens=40, temperature=0.1)
    prompt = build_prompt(AnalysisRequest("software engineer", "", Mode.AUTOCOMPLETE), limits)
    assert prompt.user.endswith("soft")
    assert prompt.max_tokens == 40


def test_generation_params_stay_small() -> None:
    for mode in Mode:
        prompt = build_prompt(AnalysisRequest("t", "d", mode))
        assert 40 <= prompt.max_tokens <= 300


def test_limits_from_env(monkeypatch) -> None:
    monkeypatch.setenv("CAREERBUDDY_COURSE_TITLE_CHARS", "25")
    monkeypatch.setenv("CAREERBUDDY_COURSE_TEXT_CHARS", "nope")
    limits = limits_from_env()
    assert limits[Mode.COURSE].title_chars == 25
    assert limits[Mode.COURSE].text_chars == DEFAULT_LIMITS[Mode.COURSE].text_chars
