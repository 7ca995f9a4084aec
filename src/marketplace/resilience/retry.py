"""Resilient API call decorator with tenacity retry and exhaustion logging.

Transient failures (transport errors, HTTP 429 and 5xx) are retried with
exponential backoff and jitter.  Anything else fails immediately.  On final
exhaustion the failure is logged and the original exception is re-raised;
turning it into something the user sees is left to the caller, which knows
which user action failed.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import httpx
import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])


def is_transient(exc: BaseException) -> bool:
    """Return True if *exc* is worth retrying.

    Transport-level failures and HTTP 429 / 5xx responses are transient;
    other HTTP statuses and non-HTTP errors are not.
    """
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def _make_final_failure_handler(api_name: str) -> Callable[[RetryCallState], Any]:
    def log_final_failure(retry_state: RetryCallState) -> Any:
        """Log final retry exhaustion, then re-raise the original error."""
        exception = retry_state.outcome.exception() if retry_state.outcome else None

        logger.error(
            "API call failed after all retries",
            api_name=api_name,
            attempts=retry_state.attempt_number,
            exception=str(exception),
        )

        assert retry_state.outcome is not None
        return retry_state.outcome.result()

    return log_final_failure


def _make_before_sleep_log(api_name: str) -> Callable[[RetryCallState], None]:
    def before_sleep_log(retry_state: RetryCallState) -> None:
        """Log a warning before each retry attempt."""
        logger.warning(
            "Retrying API call",
            api_name=api_name,
            attempt=retry_state.attempt_number,
            wait=retry_state.next_action.sleep if retry_state.next_action else 0,
        )

    return before_sleep_log


def resilient_api_call(
    api_name: str,
    *,
    attempts: int = 3,
    initial_wait: float = 1.0,
    max_wait: float = 30.0,
    jitter: float | None = None,
) -> Callable[[F], F]:
    """Create a retry decorator for an API call.

    Returns a tenacity retry decorator configured with:
    - *attempts* attempts maximum (3 by default)
    - Exponential backoff with jitter (1s initial, 30s max by default)
    - Retry only on ``is_transient`` errors
    - Warning log before each retry
    - Error log on final failure, then the original exception

    Args:
        api_name: Human-readable name for the API (used in logs).
        attempts: Maximum number of attempts, including the first.
        initial_wait: Initial backoff in seconds.
        max_wait: Upper bound on a single backoff in seconds.
        jitter: Maximum random jitter in seconds.  Defaults to
            ``initial_wait``.

    Returns:
        A decorator that wraps the function with retry logic.
    """

    def decorator(func: F) -> F:
        wrapped = retry(
            retry=retry_if_exception(is_transient),
            stop=stop_after_attempt(attempts),
            wait=wait_exponential_jitter(
                initial=initial_wait,
                max=max_wait,
                jitter=initial_wait if jitter is None else jitter,
            ),
            before_sleep=_make_before_sleep_log(api_name),
            retry_error_callback=_make_final_failure_handler(api_name),
            reraise=True,
        )(func)

        return wrapped  # type: ignore[return-value]

    return decorator
