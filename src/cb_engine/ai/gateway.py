from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence, Tuple

import requests

from cb_engine.ai.prompts import Prompt
from cb_engine.config import DEFAULT_LLM_URL, DEFAULT_MODELS, Settings
from cb_engine.errors import ConfigurationError, TransportError, UpstreamError, UpstreamRateLimited

logger = logging.getLogger(__name__)

_RATE_LIMIT_MARKERS = (
    "rate limit",
    "rate_limit",
    "ratelimit",
    "too many requests",
    "throughput",
    "tokens per minute",
    "requests per minute",
)


def _error_detail(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return (resp.text or "").strip()
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict):
            return str(err.get("message") or err.get("code") or err)
        if err:
            return str(err)
    return str(data)


def is_rate_limited(status: int, detail: str) -> bool:
    if status == 429:
        return True
    lowered = (detail or "").lower()
    return any(marker in lowered for marker in _RATE_LIMIT_MARKERS)


def _completion_text(data: object) -> str:
    if not isinstance(data, dict):
        raise UpstreamError("invalid_response", 200, "completion payload is not an object")
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) else ""


class ChatCompletionGateway:
    """
    Calls an OpenAI-compatible chat completion endpoint.

    Rate limits and timeouts are retried with exponential backoff within each
    model's attempt budget. Exhausting a model's budget on rate limits moves on
    to the next model in ``models``; any other provider error aborts at once.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        url: str = DEFAULT_LLM_URL,
        models: Sequence[Tuple[str, int]] = DEFAULT_MODELS,
        timeout_s: float = 30.0,
        backoff_base_s: float = 2.0,
        backoff_max_s: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key
        self.url = url
        self.models = tuple(models)
        self.timeout_s = timeout_s
        self.backoff_base_s = backoff_base_s
        self.backoff_max_s = backoff_max_s
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "ChatCompletionGateway":
        return cls(
            settings.api_key,
            url=settings.llm_url,
            models=settings.models,
            timeout_s=settings.llm_timeout_s,
            backoff_base_s=settings.backoff_base_s,
            backoff_max_s=settings.backoff_max_s,
            **kwargs,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _backoff(self, *, model: str, attempt: int, reason: str, status: Optional[int]) -> None:
        delay = min(self.backoff_max_s, self.backoff_base_s * (2 ** (attempt - 1)))
        logger.info(
            "[gateway][backoff] model=%s attempt=%s sleep_s=%.3f reason=%s status=%s",
            model,
            attempt,
            delay,
            reason,
            status,
        )
        self._sleep(delay)

    def _post(self, model: str, prompt: Prompt) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": model,
            "messages": prompt.messages(),
            "temperature": prompt.temperature,
            "max_tokens": prompt.max_tokens,
        }
        return requests.post(self.url, headers=headers, json=payload, timeout=self.timeout_s)

    def complete(self, prompt: Prompt) -> str:
        if not self.api_key:
            raise ConfigurationError("missing_api_key", setting="GROQ_API_KEY")
        if not self.models:
            raise ConfigurationError("no_models", setting="CAREERBUDDY_MODELS")

        total_attempts = 0
        for model, max_attempts in self.models:
            for attempt in range(1, max_attempts + 1):
                total_attempts += 1
                try:
                    resp = self._post(model, prompt)
                except requests.Timeout as exc:
                    if attempt < max_attempts:
                        self._backoff(model=model, attempt=attempt, reason="timeout", status=None)
                        continue
                    raise TransportError("timeout", total_attempts, str(exc)) from exc
                except requests.RequestException as exc:
                    raise TransportError("network_error", total_attempts, str(exc)) from exc

                if resp.status_code == 200:
                    try:
                        data = resp.json()
                    except ValueError as exc:
                        raise UpstreamError("invalid_response", 200, "completion body is not JSON") from exc
                    text = _completion_text(data)
                    logger.info(
                        "[gateway][ok] mode=%s model=%s attempt=%s chars=%d",
                        prompt.mode.value,
                        model,
                        attempt,
                        len(text),
                    )
                    return text

                detail = _error_detail(resp)
                if not is_rate_limited(resp.status_code, detail):
                    logger.warning(
                        "[gateway][error] model=%s status=%s detail=%s",
                        model,
                        resp.status_code,
                        detail[:200],
                    )
                    raise UpstreamError("upstream_error", resp.status_code, detail)
                if attempt < max_attempts:
                    self._backoff(model=model, attempt=attempt, reason="rate_limited", status=resp.status_code)
                    continue
                logger.warning("[gateway][rate_limited] model=%s exhausted attempts=%s", model, max_attempts)

        raise UpstreamRateLimited(
            "rate_limited",
            total_attempts,
            tuple(model for model, _ in self.models),
        )
