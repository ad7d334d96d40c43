from __future__ import annotations

import logging
from typing import Mapping, Optional

from cb_engine.ai.cache import InflightRequests, TTLCache
from cb_engine.ai.gateway import ChatCompletionGateway
from cb_engine.ai.parser import DEFAULT_PARSER_CONFIG, NOT_AVAILABLE, ParserConfig, parse
from cb_engine.ai.prompts import PROMPT_VERSION, PromptLimits, build_prompt, limits_from_env
from cb_engine.config import Settings, load_settings
from cb_engine.models import AnalysisRequest, AnalysisResult, Mode
from cb_engine.utils.fingerprint import request_fingerprint

logger = logging.getLogger(__name__)

CHAT_UNAVAILABLE_MESSAGE = "I'm having trouble connecting right now. Could you try asking your question again?"


class AnalysisService:
    """
    Cache check, then de-duplicated dispatch to the gateway, then parse and
    cache write. One instance owns its cache and in-flight table.
    """

    def __init__(
        self,
        gateway: ChatCompletionGateway,
        *,
        settings: Optional[Settings] = None,
        cache: Optional[TTLCache[AnalysisResult]] = None,
        inflight: Optional[InflightRequests[AnalysisResult]] = None,
        prompt_limits: Optional[Mapping[Mode, PromptLimits]] = None,
        parser_config: ParserConfig = DEFAULT_PARSER_CONFIG,
    ):
        self.gateway = gateway
        self.settings = settings or Settings()
        self.cache: TTLCache[AnalysisResult] = cache if cache is not None else TTLCache()
        self.inflight: InflightRequests[AnalysisResult] = inflight if inflight is not None else InflightRequests()
        self.prompt_limits = prompt_limits
        self.parser_config = parser_config

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "AnalysisService":
        """Gateway, cache-key prefix and TTLs from ``settings``; prompt limits from the environment."""
        kwargs.setdefault("prompt_limits", limits_from_env())
        return cls(ChatCompletionGateway.from_settings(settings), settings=settings, **kwargs)

    @classmethod
    def from_env(cls, **kwargs) -> "AnalysisService":
        return cls.from_settings(load_settings(), **kwargs)

    def cache_key(self, request: AnalysisRequest) -> str:
        return request_fingerprint(request, prefix_chars=self.settings.cache_key_prefix_chars)

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        key = self.cache_key(request)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("[analysis][cache_hit] key=%s", key)
            return cached
        return self.inflight.run(key, lambda: self._fetch(request, key))

    def _fetch(self, request: AnalysisRequest, key: str) -> AnalysisResult:
        # A previous leader may have filled the cache between our miss and our turn.
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        prompt = build_prompt(request, self.prompt_limits)
        raw = self.gateway.complete(prompt)
        result = parse(request.mode, raw, subject=request.subject_title, config=self.parser_config)
        if result.is_fallback:
            logger.info(
                "[analysis][not_cached] mode=%s reason=%s prompt_version=%s",
                request.mode.value,
                result.fallback_reason,
                PROMPT_VERSION,
            )
            return result
        self.cache.put(key, result, self.settings.ttl_for(request.mode))
        return result

    @staticmethod
    def display_value_for_error(mode: Mode, exc: BaseException) -> AnalysisResult:
        """A displayable stand-in for a failed analysis; never blank."""
        reason = getattr(exc, "reason", None) or type(exc).__name__
        if Mode.coerce(mode) is Mode.CHATBOT:
            return AnalysisResult.fallback(CHAT_UNAVAILABLE_MESSAGE, str(reason))
        return AnalysisResult.fallback(NOT_AVAILABLE, str(reason))
