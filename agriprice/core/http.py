"""Retrying JSON fetch shared by the catalog and retail price syncs."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_incrementing

from agriprice.core.config import settings
from agriprice.core.errors import NetworkFailure
from agriprice.core.logging import get_logger

log = get_logger("http")

# Linear backoff: 1s after the first failure, 2s after the second.
_DEFAULT_WAIT = wait_incrementing(start=1, increment=1)


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    log.warning(f"Retry {retry_state.attempt_number}/{settings.HTTP_RETRY_ATTEMPTS} after error: {exc}")


async def fetch_json(
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None,
    attempts: Optional[int] = None,
    wait=_DEFAULT_WAIT,
) -> Any:
    """GET ``url`` and decode JSON, retrying transport and HTTP status errors.

    Raises ``NetworkFailure`` once every attempt has failed. Pass ``client``
    to reuse a connection pool (or a mock transport in tests).
    """
    attempts = attempts or settings.HTTP_RETRY_ATTEMPTS
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait,
            retry=retry_if_exception_type(httpx.HTTPError),
            before_sleep=_log_retry,
        ):
            with attempt:
                resp = await client.get(url, params=params)
                resp.raise_for_status()
                return resp.json()
    except RetryError as exc:
        raise NetworkFailure(url, exc.last_attempt.exception()) from exc
    finally:
        if owns_client:
            await client.aclose()
