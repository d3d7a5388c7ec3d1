"""Service for executing API calls with automatic retries.

Implements exponential backoff for handling transient errors like
rate limits (429), temporary server issues (5xx) or dropped connections.
A server-supplied Retry-After always wins over a shorter backoff.
"""

import logging
import time
from typing import Any, Callable, Coroutine, Optional, Tuple, Type

from nationscript.domain.errors import (
    NationScriptError,
    RatelimitError,
    ServerError,
    TransportError,
)
from nationscript.domain.events.api_events import (
    ApiCallFailed,
    RetryScheduled,
    dispatch_event,
)
from nationscript.domain.interfaces.clock import Clock
from nationscript.domain.models.common import BackoffPolicy
from nationscript.infrastructure.resilience.clock import SystemClock

logger = logging.getLogger(__name__)

RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (RatelimitError, ServerError, TransportError)

# --- Custom Exceptions ---
class MaxRetryError(NationScriptError):
    """Exception raised when max retries are exceeded."""
    def __init__(self, original_exception: Exception, attempts: int):
        self.original_exception = original_exception
        self.attempts = attempts
        super().__init__(f"Max retries ({attempts}) exceeded. Last error: {original_exception}")

# --- Retry Service ---

class ApiRetryService:
    """Handles API call execution with retries and backoff."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        max_retries: int = 3,
        initial_backoff_s: float = 1.0,
        backoff_factor: float = 2.0,
        retryable_exceptions: Tuple[Type[BaseException], ...] = RETRYABLE_EXCEPTIONS,
    ):
        """Initializes the ApiRetryService.

        Args:
            clock: Clock used for backoff waits.
            max_retries: Maximum number of retry attempts.
            initial_backoff_s: Initial delay in seconds for the first retry.
            backoff_factor: Multiplier for the backoff delay (e.g., 2 for exponential).
            retryable_exceptions: Errors worth another attempt; all others propagate.
        """
        self.clock = clock or SystemClock()
        self.max_retries = max_retries
        self.initial_backoff_s = initial_backoff_s
        self.backoff_factor = backoff_factor
        self.retryable_exceptions = retryable_exceptions

        logger.info(
            f"ApiRetryService initialized: max_retries={max_retries}, "
            f"initial_backoff={initial_backoff_s}s, factor={backoff_factor}"
        )

    @classmethod
    def from_policy(cls, policy: BackoffPolicy, clock: Optional[Clock] = None) -> "ApiRetryService":
        return cls(
            clock=clock,
            max_retries=policy['max_retries'],
            initial_backoff_s=policy['initial_delay'],
            backoff_factor=policy['factor'],
        )

    async def execute_with_retry(
        self,
        func: Callable[..., Coroutine[Any, Any, Any]],
        *args: Any,
        endpoint_name: Optional[str] = None,
        **kwargs: Any
    ) -> Any:
        """Executes an async function, retrying transient failures.

        Args:
            func: The async function (API call) to execute.
            *args: Positional arguments for the function.
            endpoint_name: Name used in logs and events (defaults to the function name).
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function call.

        Raises:
            MaxRetryError: If every attempt failed with a retryable error.
            Exception: Any non-retryable exception, unchanged.
        """
        last_exception: Optional[Exception] = None
        current_backoff = self.initial_backoff_s
        effective_endpoint = endpoint_name or getattr(func, '__name__', 'call')

        for attempt in range(self.max_retries + 1):
            try:
                start_time = time.perf_counter()
                result = await func(*args, **kwargs)
                latency_ms = (time.perf_counter() - start_time) * 1000
                if attempt > 0:
                    logger.info(f"{effective_endpoint} succeeded on attempt {attempt + 1} after {latency_ms:.0f}ms")
                return result

            except self.retryable_exceptions as e:
                last_exception = e
                if attempt >= self.max_retries:
                    logger.error(f"Max retries ({self.max_retries}) reached for {effective_endpoint}. Last error: {e}")
                    break

                delay = current_backoff
                retry_after = getattr(e, 'retry_after', None)
                if retry_after is not None and retry_after > delay:
                    delay = float(retry_after)
                logger.warning(
                    f"Retryable error calling {effective_endpoint} on attempt {attempt + 1}/{self.max_retries + 1}: "
                    f"{type(e).__name__}. Waiting {delay:.2f}s..."
                )
                dispatch_event(RetryScheduled(endpoint=effective_endpoint, attempt_number=attempt + 1, delay_seconds=delay))
                await self.clock.sleep(delay)
                current_backoff *= self.backoff_factor

            except Exception as e:
                logger.error(f"Non-retryable error calling {effective_endpoint} on attempt {attempt + 1}: {e}")
                dispatch_event(ApiCallFailed(
                    endpoint=effective_endpoint,
                    error_type=type(e).__name__,
                    error_message=str(e),
                    status_code=getattr(e, 'status_code', None),
                ))
                raise

        dispatch_event(ApiCallFailed(
            endpoint=effective_endpoint,
            error_type=type(last_exception).__name__,
            error_message=str(last_exception),
            status_code=getattr(last_exception, 'status_code', None),
        ))
        raise MaxRetryError(last_exception, self.max_retries)
