from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from ..core.constants import DEFAULT_STORE_RETRY_ATTEMPTS, DEFAULT_STORE_RETRY_DELAY_S
from ..core.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retry(
    fn: Callable[..., T],
    *args,
    attempts: int = DEFAULT_STORE_RETRY_ATTEMPTS,
    delay: float = DEFAULT_STORE_RETRY_DELAY_S,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs,
) -> T:
    """Call a store operation, retrying StoreUnavailable with linear backoff.

    Only use for reads and status-guarded updates; a retried insert could
    apply twice.
    """
    attempts = max(1, int(attempts))
    for attempt in range(1, attempts + 1):
        try:
            return fn(*args, **kwargs)
        except StoreUnavailable as e:
            if attempt == attempts:
                logger.error("Store still unavailable after %d attempts: %s", attempts, e)
                raise
            logger.warning("Store unavailable (attempt %d/%d): %s", attempt, attempts, e)
            sleep(delay * attempt)
    raise AssertionError("unreachable")
