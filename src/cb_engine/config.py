import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

from cb_engine.models import Mode

# Load .env file into environment
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_LLM_URL = "https://api.groq.com/openai/v1/chat/completions"
DEFAULT_MODELS: Tuple[Tuple[str, int], ...] = (
    ("llama-3.1-8b-instant", 3),
    ("llama-3.3-70b-versatile", 2),
)
DEFAULT_JOBS_URL = "https://remotive.com/api/remote-jobs"

HOUR_S = 60 * 60
DAY_S = 24 * HOUR_S

DEFAULT_TTL_BY_MODE: Dict[Mode, float] = {
    Mode.DEFAULT: DAY_S,
    Mode.CHATBOT: DAY_S,
    Mode.AUTOCOMPLETE: 2 * HOUR_S,
    Mode.COURSE: 7 * DAY_S,
    Mode.COMPANY_SCORE: 7 * DAY_S,
}


def _get_int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Invalid %s=%r; using default=%d", name, value, default)
        return default


def _get_float_env(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Invalid %s=%r; using default=%s", name, value, default)
        return default


def _mode_env_name(base: str, mode: Mode, suffix: str) -> str:
    return f"{base}_{mode.value.upper()}_{suffix}"


def parse_model_plan(raw: Optional[str]) -> Tuple[Tuple[str, int], ...]:
    """
    Parse ``model:attempts,model:attempts``. A missing or bad attempt count
    becomes 1; an empty value yields the default plan.
    """
    if not raw or not raw.strip():
        return DEFAULT_MODELS
    plan = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        model, _, attempts_raw = item.rpartition(":")
        if not model:
            model, attempts_raw = attempts_raw, ""
        try:
            attempts = int(attempts_raw) if attempts_raw else 1
        except ValueError:
            # "name:tag" style model ids with no attempt count
            model, attempts = item, 1
        plan.append((model.strip(), max(1, attempts)))
    return tuple(plan) or DEFAULT_MODELS


def api_key_from_env() -> Optional[str]:
    key = os.environ.get("GROQ_API_KEY") or os.environ.get("GROK_API_KEY")
    if key is None or not key.strip():
        return None
    return key.strip()


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    llm_url: str = DEFAULT_LLM_URL
    models: Tuple[Tuple[str, int], ...] = DEFAULT_MODELS
    llm_timeout_s: float = 30.0
    backoff_base_s: float = 2.0
    backoff_max_s: float = 30.0
    rate_limit_per_min: int = 20
    rate_limit_window_s: float = 60.0
    cache_key_prefix_chars: int = 1000
    cache_sweep_interval_s: float = HOUR_S
    ttl_by_mode: Dict[Mode, float] = field(default_factory=lambda: dict(DEFAULT_TTL_BY_MODE))
    jobs_url: str = DEFAULT_JOBS_URL
    jobs_limit: int = 20
    jobs_timeout_s: float = 20.0

    def ttl_for(self, mode: Mode) -> float:
        return self.ttl_by_mode.get(Mode.coerce(mode), DAY_S)


def load_settings() -> Settings:
    ttl = {
        mode: _get_float_env(_mode_env_name("CAREERBUDDY_TTL", mode, "S"), default)
        for mode, default in DEFAULT_TTL_BY_MODE.items()
    }
    return Settings(
        api_key=api_key_from_env(),
        llm_url=os.environ.get("CAREERBUDDY_LLM_URL", DEFAULT_LLM_URL).strip() or DEFAULT_LLM_URL,
        models=parse_model_plan(os.environ.get("CAREERBUDDY_MODELS")),
        llm_timeout_s=_get_float_env("CAREERBUDDY_LLM_TIMEOUT_S", 30.0),
        backoff_base_s=_get_float_env("CAREERBUDDY_BACKOFF_BASE_S", 2.0),
        backoff_max_s=_get_float_env("CAREERBUDDY_BACKOFF_MAX_S", 30.0),
        rate_limit_per_min=_get_int_env("CAREERBUDDY_RATE_LIMIT_PER_MIN", 20),
        cache_key_prefix_chars=_get_int_env("CAREERBUDDY_CACHE_KEY_PREFIX_CHARS", 1000),
        cache_sweep_interval_s=_get_float_env("CAREERBUDDY_CACHE_SWEEP_S", HOUR_S),
        ttl_by_mode=ttl,
        jobs_url=os.environ.get("CAREERBUDDY_JOBS_URL", DEFAULT_JOBS_URL).strip() or DEFAULT_JOBS_URL,
        jobs_limit=_get_int_env("CAREERBUDDY_JOBS_LIMIT", 20),
        jobs_timeout_s=_get_float_env("CAREERBUDDY_JOBS_TIMEOUT_S", 20.0),
    )
