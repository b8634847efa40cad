"""
Gateway fetch with retries and linear backoff.

Authorization failures are never retried; every other exception is treated
as transient and retried up to ``max_retries`` times, waiting
``base_delay * attempt`` seconds before each retry.
"""
import asyncio
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Optional, Protocol

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

logger = structlog.get_logger(__name__)

DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY = 1.0

# Error code the gateway SDK attaches to authentication failures
AUTH_ERROR_CODE = "ERR_ID:00006"


class ContentGateway(Protocol):
    async def get(self, cid: str) -> Any: ...


def _error_message(error: BaseException) -> str:
    message = getattr(error, 'message', None)
    if isinstance(message, str) and message:
        return message
    return str(error)


def _response_status(error: BaseException) -> Optional[int]:
    response = getattr(error, 'response', None)
    if response is None:
        return None
    if isinstance(response, Mapping):
        return response.get('status')
    status = getattr(response, 'status', None)
    if status is None:
        status = getattr(response, 'status_code', None)
    return status


def is_auth_error(error: BaseException) -> bool:
    """Return True when the error means access was refused."""
    message = _error_message(error)
    if "403" in message or "Authentication Failed" in message:
        return True
    if _response_status(error) == 403:
        return True
    if type(error).__name__ == "AuthenticationError" or getattr(error, 'name', None) == "AuthenticationError":
        return True
    return getattr(error, 'code', None) == AUTH_ERROR_CODE


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, Exception) and not is_auth_error(error)


class RetryingFetch:
    """Calls a gateway for one CID, retrying transient failures."""

    def __init__(
        self,
        gateway: ContentGateway,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.gateway = gateway
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep

    def _log_retry(self, retry_state: RetryCallState):
        cid = retry_state.args[0] if retry_state.args else None
        logger.info(
            "fetch_retry",
            cid=cid,
            attempt=retry_state.attempt_number,
            max_retries=self.max_retries,
            delay=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(retry_state.outcome.exception()),
        )

    async def fetch(self, cid: str) -> Optional[Any]:
        """Return the gateway payload for cid, or None once it cannot be fetched."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_incrementing(start=self.base_delay, increment=self.base_delay),
            retry=retry_if_exception(_is_transient),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        logger.debug("fetch_start", cid=cid)
        try:
            return await retrying(self.gateway.get, cid)
        except Exception as e:
            if is_auth_error(e):
                logger.warning("fetch_access_denied", cid=cid, error=_error_message(e))
            else:
                logger.error("fetch_failed", cid=cid, attempts=self.max_retries + 1,
                             error=_error_message(e))
            return None
