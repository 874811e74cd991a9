"""Bounded retry with exponential backoff for transport calls."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

from constants import Constants
from common.errors import TransientNetworkError
from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Retry a call on transient network failures only.

    Responses, including non-2xx ones, and every other exception are handed
    back on the first attempt. When attempts run out the last
    ``TransientNetworkError`` is re-raised.
    """

    def __init__(
        self,
        max_attempts: int = Constants.HTTP_RETRY_MAX,
        base_delay: float = Constants.HTTP_RETRY_BASE_DELAY_SEC,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (0-based)."""
        return self.base_delay * (2 ** attempt)

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        attempt = 0
        while True:
            try:
                return func(*args, **kwargs)
            except TransientNetworkError:
                if is_debug_enabled(logger):
                    logger.debug(
                        "Transient failure, retrying",
                        extra=extra_context(
                            event="http_retry",
                            component="retry",
                            outcome="timeout",
                            attempt=attempt + 1,
                            max_attempts=self.max_attempts,
                        ),
                    )
                if attempt + 1 >= self.max_attempts:
                    raise
                self._sleep(self.delay_for(attempt))
                attempt += 1
