"""
Bounded retry with exponential backoff for calls to external services
(embedder, vector index, LLM).

    result = call_with_retry(index.search, query, settings=settings,
                             description="similarity search")

The final exception is re-raised unchanged; callers translate it into
the typed failure for their stage. LookupError (e.g. no index has been
built yet) is not transient and fails on the first attempt.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from ckms_rag.config import Settings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_retrying(settings: Settings | None = None) -> Retrying:
    """Return a tenacity Retrying configured from settings."""
    settings = settings or get_settings()
    return Retrying(
        stop=stop_after_attempt(max(1, settings.max_attempts)),
        wait=wait_random_exponential(multiplier=1, max=settings.retry_max_wait_seconds),
        retry=retry_if_not_exception_type(LookupError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def call_with_retry(
    fn: Callable[..., T],
    *args,
    settings: Settings | None = None,
    description: str = "",
    **kwargs,
) -> T:
    """Invoke fn(*args, **kwargs) under the configured retry policy."""
    retrying = build_retrying(settings)
    for attempt in retrying:
        with attempt:
            n = attempt.retry_state.attempt_number
            if n > 1:
                logger.info(f"[RETRY] {description or fn.__name__}: attempt {n}")
            return fn(*args, **kwargs)
    raise AssertionError("unreachable: tenacity reraises on exhaustion")
