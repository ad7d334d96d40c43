from .cache import CacheSweeper, InflightRequests, TTLCache
from .gateway import ChatCompletionGateway
from .parser import ParserConfig, parse
from .prompts import Prompt, PromptLimits, build_prompt
from .service import AnalysisService

__all__ = [
    "AnalysisService",
    "CacheSweeper",
    "ChatCompletionGateway",
    "InflightRequests",
    "ParserConfig",
    "Prompt",
    "PromptLimits",
    "TTLCache",
    "build_prompt",
    "parse",
]
