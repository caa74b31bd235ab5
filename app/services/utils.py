"""
Utility functions for services
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def convert_datetime_to_iso(data: Dict[str, Any], fields: list[str]) -> Dict[str, Any]:
    """
    Convert datetime objects to ISO strings for JSON payloads

    Args:
        data: Dictionary to convert
        fields: List of field names to convert

    Returns:
        Dictionary with datetime fields converted to ISO strings
    """
    result = data.copy()
    for field in fields:
        if isinstance(result.get(field), datetime):
            result[field] = result[field].isoformat()
    return result


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    description: str = "operation",
) -> T:
    """
    Run an async operation with bounded retries

    Waits `delay` seconds before the second attempt and multiplies the wait
    by `backoff` for each further attempt. The last exception is re-raised
    once all attempts are exhausted.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        attempts: Maximum number of attempts (>= 1)
        delay: Initial wait between attempts in seconds
        backoff: Multiplier applied to the wait after each failure
        retry_on: Exception types that trigger a retry; others propagate at once
        sleep: Awaitable sleep function (injectable for tests)
        description: Label used in log messages
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    wait = delay
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as exc:
            if attempt == attempts:
                logger.error(f"{description} failed after {attempts} attempts: {exc}")
                raise
            logger.warning(f"Attempt {attempt} - {description} failed: {exc}. Retrying in {wait:.1f}s")
            await sleep(wait)
            wait *= backoff

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{description}: retry loop exited unexpectedly")
