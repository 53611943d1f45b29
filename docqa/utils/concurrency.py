"""Time-bounding helper for outbound network calls.

Every embedding and LLM request goes through :func:`with_timeout` so that a
hung provider surfaces as :class:`~docqa.utils.errors.ServiceTimeoutError`
instead of holding a request (and, for writes, the vector-store lock)
forever.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

import structlog

from docqa.utils.errors import ServiceTimeoutError
from docqa.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def with_timeout(
    awaitable: Awaitable[_T],
    timeout: float | None,
    operation: str,
    provider_name: str | None = None,
) -> _T:
    """Await *awaitable*, raising ``ServiceTimeoutError`` after *timeout* seconds.

    Parameters
    ----------
    awaitable:
        The coroutine or future to run.
    timeout:
        Budget in seconds.  ``None`` or a non-positive value disables the bound.
    operation:
        Short label for logs and the error message (e.g. ``"embed"``).
    provider_name:
        Provider attached to the raised error.
    """
    if timeout is None or timeout <= 0:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        _logger.warning(
            "service_call_timeout",
            operation=operation,
            provider=provider_name,
            timeout_seconds=timeout,
        )
        raise ServiceTimeoutError(
            message=f"{operation} timed out after {timeout:g}s",
            provider_name=provider_name,
        ) from exc
