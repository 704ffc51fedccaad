"""
Error taxonomy for the research agent and the classifier that maps raw
upstream failures onto it.

The generation transport rarely exposes structured error codes across
providers, so classification prefers `status_code` / `code` attributes when the
exception carries them and otherwise falls back to scanning the diagnostic
text.  Balance exhaustion always wins over rate limiting because quota
messages frequently mention both.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Optional, Pattern, Sequence

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 30

_BALANCE_MARKERS: Sequence[Pattern[str]] = (
    re.compile(r"\b402\b"),
    re.compile(r"insufficient[ _]quota", re.IGNORECASE),
    re.compile(r"insufficient[ _]balance", re.IGNORECASE),
    re.compile(r"payment[ _]required", re.IGNORECASE),
    re.compile(r"billing", re.IGNORECASE),
)

_RATE_LIMIT_MARKERS: Sequence[Pattern[str]] = (
    re.compile(r"\b429\b"),
    re.compile(r"RESOURCE_EXHAUSTED"),
    re.compile(r"rate[ _-]?limit", re.IGNORECASE),
    re.compile(r"too many requests", re.IGNORECASE),
    re.compile(r"\brate\b", re.IGNORECASE),
    re.compile(r"\bquota\b", re.IGNORECASE),
)

_RETRY_IN_PATTERN = re.compile(r"retry in (\d+(?:\.\d+)?)", re.IGNORECASE)


class ConfigurationError(EnvironmentError):
    """Raised at startup when required credentials are missing."""


class UnknownModelError(ValueError):
    """Raised when a requested model is not in the available catalogue."""


class UpstreamError(RuntimeError):
    """Base class for classified failures of the generation backend."""

    retryable: bool = False


class InsufficientBalanceError(UpstreamError):
    """The provider refused the request for billing or quota exhaustion."""

    def __init__(self, message: str = "Insufficient balance on the selected provider.") -> None:
        super().__init__(message)


class RateLimitError(UpstreamError):
    """The provider throttled the request; retry after `retry_after_seconds`."""

    retryable = True

    def __init__(self, message: str, retry_after_seconds: int = DEFAULT_RETRY_AFTER_SECONDS) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


def extract_retry_after(diagnostic: str, exc: Optional[BaseException] = None) -> int:
    """Return the suggested backoff in whole seconds."""

    match = _RETRY_IN_PATTERN.search(diagnostic)
    if match:
        return int(math.ceil(float(match.group(1))))
    header = _retry_after_header(exc)
    if header is not None:
        return header
    return DEFAULT_RETRY_AFTER_SECONDS


def classify_error(exc: BaseException) -> Optional[UpstreamError]:
    """
    Map a raw backend failure to a classified error, or None when it should
    propagate unchanged.
    """

    if isinstance(exc, UpstreamError):
        return exc

    diagnostic = describe_error(exc)
    status = getattr(exc, "status_code", None)
    code = getattr(exc, "code", None)

    if status == 402 or code == "insufficient_quota" or _matches(_BALANCE_MARKERS, diagnostic):
        logger.warning("Upstream reported insufficient balance: %s", diagnostic)
        return InsufficientBalanceError(
            "Insufficient balance or quota on the selected model provider. "
            "Switch to a different model or add funds to your account."
        )

    if status == 429 or _matches(_RATE_LIMIT_MARKERS, diagnostic):
        retry_seconds = extract_retry_after(diagnostic, exc)
        logger.warning("Upstream rate limit hit; suggested backoff %ss: %s", retry_seconds, diagnostic)
        return RateLimitError(
            f"Rate limit exceeded. Please wait {retry_seconds} seconds or try a different model.",
            retry_seconds,
        )

    return None


def describe_error(exc: BaseException) -> str:
    """
    Flatten an exception and its explicit `__cause__` chain into searchable text.

    Implicit `__context__` is ignored: an unrelated error that was being handled
    when the failure happened must not change its classification.
    """

    parts = []
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        text = str(current) or type(current).__name__
        parts.append(text)
        body = getattr(current, "body", None)
        if body:
            parts.append(str(body))
        current = current.__cause__
    return " | ".join(parts)


def _matches(patterns: Sequence[Pattern[str]], text: str) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def _retry_after_header(exc: Optional[BaseException]) -> Optional[int]:
    response: Any = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        return int(math.ceil(float(raw)))
    except (TypeError, ValueError):
        return None
