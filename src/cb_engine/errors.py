"""
Career Buddy
Copyright (c) 2026 Career Buddy contributors.
All Rights Reserved.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class CareerBuddyError(RuntimeError):
    """
    Base class for every failure surfaced by the engine.

    Subclasses are dataclasses that declare their own ``reason`` field.
    """


@dataclass
class ConfigurationError(CareerBuddyError):
    reason: str
    setting: Optional[str] = None

    def __str__(self) -> str:
        parts = [self.reason]
        if self.setting:
            parts.append(f"setting={self.setting}")
        return "ConfigurationError(" + ", ".join(parts) + ")"


@dataclass
class UpstreamRateLimited(CareerBuddyError):
    reason: str
    attempts: int
    models: tuple[str, ...] = ()

    def __str__(self) -> str:
        parts = [self.reason, f"attempts={self.attempts}"]
        if self.models:
            parts.append("models=" + ",".join(self.models))
        return "UpstreamRateLimited(" + ", ".join(parts) + ")"


@dataclass
class UpstreamError(CareerBuddyError):
    reason: str
    status_code: Optional[int] = None
    detail: str = ""

    def __str__(self) -> str:
        parts = [self.reason]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.detail:
            parts.append(f"detail={self.detail[:200]}")
        return "UpstreamError(" + ", ".join(parts) + ")"


@dataclass
class TransportError(CareerBuddyError):
    reason: str
    attempts: int = 1
    detail: str = ""

    def __str__(self) -> str:
        parts = [self.reason, f"attempts={self.attempts}"]
        if self.detail:
            parts.append(f"detail={self.detail[:200]}")
        return "TransportError(" + ", ".join(parts) + ")"


@dataclass
class ClientRateLimited(CareerBuddyError):
    caller_id: str
    limit: int
    retry_after_s: float = 0.0
    reason: str = "client_rate_limited"

    def __str__(self) -> str:
        return (
            f"ClientRateLimited(caller={self.caller_id}, limit={self.limit}, "
            f"retry_after_s={self.retry_after_s:.1f})"
        )


@dataclass
class ListingRetrievalError(CareerBuddyError):
    reason: str
    status_code: Optional[int] = None
    detail: str = ""

    def __str__(self) -> str:
        parts = [self.reason]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.detail:
            parts.append(f"detail={self.detail[:200]}")
        return "ListingRetrievalError(" + ", ".join(parts) + ")"


__all__ = [
    "CareerBuddyError",
    "ClientRateLimited",
    "ConfigurationError",
    "ListingRetrievalError",
    "TransportError",
    "UpstreamError",
    "UpstreamRateLimited",
]
