"""Application Service for executing API requests.

Runs every request through the same pipeline: preflight checks, admission
control, the HTTP call, rate limit recalibration, credential refresh and
status mapping. Successful bodies are streamed into the decode framework.
"""

import logging
import time
from typing import Any, Optional
from urllib.parse import quote, urlencode

from nationscript import __version__
from nationscript.core.decoding.driver import DecodeDriver
from nationscript.core.decoding.node import NodeFactory
from nationscript.core.decoding.schema import SchemaRegistry
from nationscript.domain.errors import (
    APIError,
    DumpNotModifiedError,
    EntityNotFoundError,
    ForbiddenError,
    LoginError,
    MissingArgumentError,
    MissingUserAgentError,
    RatelimitError,
    ServerError,
)
from nationscript.domain.events.api_events import (
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
    dispatch_event,
)
from nationscript.domain.interfaces.transport import HttpTransport
from nationscript.domain.models.request import ApiRequest
from nationscript.domain.models.response import TransportResponse
from nationscript.infrastructure.resilience.rate_limiter import RateLimiter
from nationscript.infrastructure.resilience.telegram_limiter import TelegramRateLimiter

logger = logging.getLogger(__name__)

LIBRARY_AGENT = f"nationscript/{__version__}"
USER_AGENT_ECHO_PREFIX = "Your UserAgent is: "

def _retry_after(response: TransportResponse) -> Optional[float]:
    value = response.header('retry-after')
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None

def evaluate_status(response: TransportResponse) -> None:
    """Maps an error status of a completed call to its exception."""
    status = response.status_code
    if status < 300:
        return
    if status == 304:
        raise DumpNotModifiedError()
    if status == 403:
        raise ForbiddenError(f"403 {response.reason}".strip())
    if status == 404:
        raise EntityNotFoundError()
    if status == 409:
        raise LoginError("Last non-pin login too recent")
    if status == 429:
        raise RatelimitError(_retry_after(response))
    if status >= 500:
        raise ServerError(f"{status} {response.reason}".strip(), status_code=status)
    raise APIError(f"{status} {response.reason}".strip(), status_code=status)

class RequestService:
    """Sends API requests while honouring the API's rate limits."""

    def __init__(
        self,
        transport: HttpTransport,
        user_agent: Optional[str],
        rate_limiter: Optional[RateLimiter] = None,
        telegram_limiter: Optional[TelegramRateLimiter] = None,
        use_rate_limit: bool = True,
        registry: Optional[SchemaRegistry] = None,
    ):
        """Initializes the RequestService.

        Args:
            transport: HTTP transport used for every call.
            user_agent: Identifies the script's operator to the API admins.
            rate_limiter: Primary admission controller.
            telegram_limiter: Secondary admission controller for telegrams.
            use_rate_limit: Disable only when another component enforces the limits.
            registry: Decode schemas for response bodies (default schemas if None).
        """
        self.transport = transport
        self.user_agent = user_agent
        self.rate_limiter = rate_limiter or RateLimiter()
        self.telegram_limiter = telegram_limiter or TelegramRateLimiter(clock=self.rate_limiter.clock)
        self.use_rate_limit = use_rate_limit
        self.registry = registry

    def _build_headers(self, request: ApiRequest) -> dict:
        headers = dict(request.headers)
        if request.credential is not None:
            headers.update(request.credential.to_headers())
        # Callers can never replace the user agent
        headers['User-Agent'] = f"{self.user_agent} (using {LIBRARY_AGENT})"
        return headers

    async def execute(self, request: ApiRequest) -> TransportResponse:
        """Sends the request and returns the open response of a successful call.

        Raises:
            MissingUserAgentError: If no user agent is configured.
            MissingArgumentError: If a mandatory argument is absent.
            APIError: Subclass matching the error status of the call.
            TransportError: If the call could not be completed.
        """
        if not self.user_agent:
            raise MissingUserAgentError()
        missing = request.missing_arguments()
        if missing:
            raise MissingArgumentError(missing)

        headers = self._build_headers(request)
        body = None
        if request.arguments:
            body = urlencode(request.arguments, safe='+', quote_via=quote).encode('utf-8')

        if self.use_rate_limit:
            if request.call_class is not None:
                await self.telegram_limiter.acquire(request.call_class)
            await self.rate_limiter.acquire()

        dispatch_event(ApiCallInitiated(endpoint=request.name, method=request.method))
        start_time = time.perf_counter()
        response = await self.transport.send(request.method, request.url, headers, body)
        latency_ms = (time.perf_counter() - start_time) * 1000

        self.rate_limiter.update(response.headers)
        if request.credential is not None:
            request.credential.update_from_headers(response.headers)

        try:
            evaluate_status(response)
        except APIError as e:
            await response.aclose()
            logger.debug(f"{request.name} failed with status {response.status_code}: {e}")
            dispatch_event(ApiCallFailed(
                endpoint=request.name,
                error_type=type(e).__name__,
                error_message=str(e),
                status_code=response.status_code,
            ))
            raise

        dispatch_event(ApiCallSucceeded(endpoint=request.name, status_code=response.status_code, latency_ms=latency_ms))
        return response

    async def fetch(self, request: ApiRequest, root_factory: Optional[NodeFactory] = None) -> Any:
        """Executes the request and decodes the streamed body.

        Args:
            request: The request to send.
            root_factory: Node factory overriding the registry for the root element.

        Returns:
            The decoded product, or None for an empty body.
        """
        response = await self.execute(request)
        try:
            driver = DecodeDriver(registry=self.registry, root_factory=root_factory)
            return await driver.decode(response.aiter_bytes())
        finally:
            await response.aclose()

    async def fetch_text(self, request: ApiRequest) -> str:
        """Executes the request and returns the body as text."""
        response = await self.execute(request)
        try:
            return (await response.aread()).decode('utf-8')
        finally:
            await response.aclose()

    # --- Plain text endpoints ---

    async def echo_user_agent(self, request: ApiRequest) -> str:
        """Returns the user agent as the API received it."""
        text = await self.fetch_text(request)
        if text.startswith(USER_AGENT_ECHO_PREFIX):
            text = text[len(USER_AGENT_ECHO_PREFIX):]
        return text.rstrip('\n')

    async def api_version(self, request: ApiRequest) -> int:
        text = (await self.fetch_text(request)).strip()
        try:
            return int(text)
        except ValueError as e:
            raise APIError(f"Unexpected version response: {text!r}") from e

    async def send_telegram(self, request: ApiRequest) -> bool:
        """Sends a telegram; True when the API reports it as queued."""
        return (await self.fetch_text(request)).strip() == 'queued'
