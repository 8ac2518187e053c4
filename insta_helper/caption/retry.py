"""
Purpose:
- Classify upstream failures once (transient / not-found / permanent / unknown).
- Bounded retry loop with linear backoff that only retries transient failures.

Notes:
- Classification and the loop are separate so the policy can be tested with plain exceptions.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TypeVar
import logging
import re
import time

import httpx
from google.genai import errors as genai_errors

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_STATUSES = {429, 500, 502, 503, 504}
# Status-shaped text only: "503 Service Unavailable", "status: 429", "status_code=500"
_STATUS_IN_MESSAGE = (
    re.compile(r"\b([45]\d\d)\s+[A-Z][A-Za-z]+"),
    re.compile(r"\bstatus(?:[ _]code)?\s*[:=]?\s*([45]\d\d)\b", re.IGNORECASE),
)

class ErrorKind(str, Enum):
    TRANSIENT = "transient"    # rate limit / server overload: retry
    NOT_FOUND = "not_found"    # wrong model name or endpoint: never retry
    PERMANENT = "permanent"    # other client errors: never retry
    UNKNOWN = "unknown"        # no status at all: never retry

def upstream_status(exc: BaseException) -> Optional[int]:
    """
    Best-effort HTTP status behind an exception raised by the SDK or transport.
    """
    if isinstance(exc, genai_errors.APIError):
        return exc.code
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    for attr in ("code", "status_code"):
        val = getattr(exc, attr, None)
        if isinstance(val, int) and not isinstance(val, bool):
            return val
    text = str(exc)
    for pattern in _STATUS_IN_MESSAGE:
        m = pattern.search(text)
        if m:
            return int(m.group(1))
    return None

def classify_error(exc: BaseException) -> ErrorKind:
    status = upstream_status(exc)
    if status is None:
        return ErrorKind.UNKNOWN
    if status in TRANSIENT_STATUSES or 500 <= status < 600:
        return ErrorKind.TRANSIENT
    if status == 404:
        return ErrorKind.NOT_FOUND
    if 400 <= status < 500:
        return ErrorKind.PERMANENT
    return ErrorKind.UNKNOWN

@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Wait after the given (1-based) failed attempt: 2s, 4s, 6s, ..."""
        return self.base_delay * attempt

    def call(self, func: Callable[[], T], sleep: Callable[[float], None] = time.sleep, describe: str = "call") -> T:
        """
        Run func; retry transient failures until max_attempts, re-raise anything else.
        """
        attempt = 1
        while True:
            try:
                return func()
            except Exception as e:
                kind = classify_error(e)
                logger.warning(
                    "%s failed (attempt %d/%d, status=%s, kind=%s): %s",
                    describe, attempt, self.max_attempts, upstream_status(e), kind.value, e,
                )
                if kind is ErrorKind.NOT_FOUND:
                    logger.error("%s: resource not found; check the configured model name", describe)
                if kind is not ErrorKind.TRANSIENT or attempt >= self.max_attempts:
                    raise
                wait = self.delay_for(attempt)
                logger.info("%s: retrying in %.1fs", describe, wait)
                sleep(wait)
                attempt += 1
