"""
Bounded retry with fixed backoff schedule for chain data calls.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from solproof.core.exceptions import TransientFetchError
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def call_with_retry(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    delays: Sequence[float],
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    operation: str = "rpc_call",
    **kwargs: Any,
) -> T:
    """
    Await fn(*args, **kwargs); on TransientFetchError sleep delays[i] and try again.

    Attempts = len(delays) + 1. Any other exception (RpcResponseError,
    InputValidationError, parse errors) propagates on the attempt that raised
    it. After the last attempt raises TransientFetchError chained to the last
    error, keeping its status code.
    """
    last_error: TransientFetchError | None = None
    attempts = len(delays) + 1
    for attempt in range(attempts):
        try:
            return await fn(*args, **kwargs)
        except TransientFetchError as e:
            last_error = e
            logger.warning(
                "fetch_retry",
                operation=operation,
                attempt=attempt + 1,
                max_attempts=attempts,
                error=str(e),
                status_code=e.status_code,
            )
            if attempt + 1 < attempts:
                await sleep(delays[attempt])

    logger.error("fetch_give_up", operation=operation, max_attempts=attempts, error=str(last_error))
    raise TransientFetchError(
        f"{operation} failed after {attempts} attempts: {last_error}",
        status_code=last_error.status_code if last_error is not None else None,
    ) from last_error
