"""
Retry loop for version-checked read-modify-write operations.
"""
import logging
import random
import time
from typing import Callable, Optional, TypeVar
from photoupload.core import config
from photoupload.core.exceptions import ConcurrentModificationException

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_on_concurrent_modification(
    operation: Callable[[], T],
    description: str,
    max_attempts: Optional[int] = None,
    backoff_seconds: Optional[float] = None
) -> T:
    """
    Run operation until it commits without losing a version check.

    The operation must reload everything it writes on every call. Other
    exceptions propagate immediately.

    Raises:
        ConcurrentModificationException: If every attempt lost the race
    """
    attempts = max_attempts or config.settings.settlement_max_attempts
    backoff = config.settings.settlement_retry_backoff_seconds if backoff_seconds is None else backoff_seconds

    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except ConcurrentModificationException:
            if attempt == attempts:
                logger.warning("Giving up on %s after %d attempts", description, attempts)
                raise
            logger.debug("Concurrent update on %s, attempt %d", description, attempt)
            if backoff > 0:
                time.sleep(random.uniform(0, backoff))
