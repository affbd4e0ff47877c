"""
Persistence Retry
Bounded retry for repository calls; the core never retries more than once.
"""
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .config import get_settings
from .errors import AgentCoreError, PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_once(
    operation: Callable[[], Awaitable[T]],
    description: str,
    attempts: Optional[int] = None
) -> T:
    """
    Run a persistence operation, retrying once on failure.

    Domain errors (conversation not found, archived, ...) are raised
    immediately; anything else is retried and finally wrapped in
    PersistenceError.

    Args:
        operation: Zero-argument coroutine factory
        description: Operation name for logs and the error
        attempts: Total attempts (defaults to PERSISTENCE_ATTEMPTS)
    """
    attempts = attempts or get_settings().PERSISTENCE_ATTEMPTS
    last_error: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except AgentCoreError as e:
            if not isinstance(e, PersistenceError):
                raise
            last_error = e
        except Exception as e:
            last_error = e
        logger.warning(f"[retry] {description} failed (attempt {attempt}/{attempts}): {last_error}")

    if isinstance(last_error, PersistenceError):
        raise last_error
    raise PersistenceError(
        f"{description} failed after {attempts} attempt(s): {last_error}",
        operation=description,
        cause=last_error
    ) from last_error
