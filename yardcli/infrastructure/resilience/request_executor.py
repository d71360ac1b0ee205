"""Service for executing requests against one remote endpoint family.

Builds the HTTP request, enforces a per-attempt deadline, retries
transient failures (5xx, network, timeout) with exponential backoff and
normalizes every failure into an ApiError value. Client errors (4xx) and
unparseable payloads are returned immediately.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import httpx

from yardcli.domain.events.api_events import (
    ApiCallFailed, ApiCallInitiated, ApiCallSucceeded, DomainEvent, EventSink, RetryScheduled
)
from yardcli.domain.models.api import (
    ApiError, ApiErrorKind, ApiResult, ClientConfig, RequestSpec, RetryState
)

logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"
HEALTH_TIMEOUT_SECONDS = 5.0
BACKOFF_BASE_MS = 1000

Sleeper = Callable[[float], Awaitable[None]]


def backoff_delay_seconds(attempt_index: int) -> float:
    """Delay after failed attempt `attempt_index` (0-indexed): 2^k * 1000 ms."""
    return (2 ** attempt_index) * BACKOFF_BASE_MS / 1000.0


def _log_event(event: DomainEvent) -> None:
    logger.debug(f"EVENT: {event}")


class RequestExecutor:
    """Executes RequestSpecs against a single ClientConfig with timeout and retries."""

    def __init__(
        self,
        config: ClientConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Sleeper = asyncio.sleep,
        event_sink: Optional[EventSink] = None,
    ):
        """Initializes the RequestExecutor.

        Args:
            config: Immutable endpoint configuration.
            http_client: Optional shared client (connection reuse, test transports).
                When omitted the executor owns and closes its own client.
            sleep: Coroutine used to wait between attempts.
            event_sink: Receives DomainEvents; defaults to debug logging.
        """
        self.config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_ms / 1000.0),
            follow_redirects=True,
        )
        self._sleep = sleep
        self._dispatch = event_sink or _log_event

        logger.info(
            f"RequestExecutor initialized: base_url={config.base_url}, "
            f"timeout={config.timeout_ms}ms, max_retries={config.max_retries}"
        )

    # --- Request building ---

    def build_url(self, path: str) -> str:
        """Joins base_url and path with exactly one slash; empty path means base_url."""
        base = self.config.base_url.rstrip("/")
        if not path:
            return base
        return f"{base}/{path.lstrip('/')}"

    def build_headers(self, spec: Optional[RequestSpec] = None) -> Dict[str, str]:
        """Default headers, bearer credential, config headers, then per-request headers."""
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        headers.update(self.config.headers)
        if spec is not None and spec.headers:
            headers.update(spec.headers)
        return headers

    # --- Execution ---

    async def execute(self, spec: RequestSpec) -> Union[ApiResult, ApiError]:
        """Executes a request, retrying transient failures.

        Args:
            spec: The request to send.

        Returns:
            ApiResult on success, otherwise the last ApiError observed. Never raises
            for remote failures.
        """
        url = self.build_url(spec.path)
        headers = self.build_headers(spec)
        endpoint = f"{spec.method} {spec.path or '/'}"
        state = RetryState()

        for attempt in range(self.config.max_retries + 1):
            state.attempt = attempt + 1
            self._dispatch(ApiCallInitiated(service=self.config.base_url, endpoint=endpoint, attempt_number=state.attempt))
            start_time = time.perf_counter()

            outcome = await self._attempt(spec, url, headers)

            if isinstance(outcome, ApiResult):
                latency_ms = (time.perf_counter() - start_time) * 1000
                logger.debug(f"{endpoint} succeeded with {outcome.status_code} in {latency_ms:.1f}ms (attempt {state.attempt})")
                self._dispatch(ApiCallSucceeded(
                    service=self.config.base_url, endpoint=endpoint,
                    status_code=outcome.status_code, latency_ms=latency_ms,
                ))
                return outcome

            state.last_error = outcome

            if not outcome.retryable:
                logger.error(f"Non-retryable error calling {endpoint} on attempt {state.attempt}: {outcome}")
                break

            if attempt < self.config.max_retries:
                delay = backoff_delay_seconds(attempt)
                logger.warning(
                    f"Retryable error calling {endpoint} on attempt {state.attempt}/{self.config.max_retries + 1}: "
                    f"{outcome}. Waiting {delay:.2f}s..."
                )
                self._dispatch(RetryScheduled(
                    service=self.config.base_url, endpoint=endpoint, attempt_number=state.attempt,
                    delay_seconds=delay, error_kind=outcome.kind.value,
                ))
                await self._sleep(delay)
            else:
                logger.error(f"Max retries ({self.config.max_retries}) reached for {endpoint}. Last error: {outcome}")

        final_error = state.last_error
        self._dispatch(ApiCallFailed(
            service=self.config.base_url, endpoint=endpoint, error_kind=final_error.kind.value,
            error_message=final_error.message, status=final_error.status, attempts=state.attempt,
        ))
        return final_error

    async def _attempt(self, spec: RequestSpec, url: str, headers: Dict[str, str]) -> Union[ApiResult, ApiError]:
        """One network attempt under the configured deadline."""
        request_kwargs: Dict[str, Any] = {"params": spec.query_params(), "headers": headers}
        if spec.body is not None:
            request_kwargs["json"] = spec.body

        try:
            # wait_for cancels the in-flight request task when the deadline passes
            response = await asyncio.wait_for(
                self._client.request(spec.method, url, **request_kwargs),
                timeout=self.config.timeout_ms / 1000.0,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return ApiError.timeout(self.config.timeout_ms)
        except httpx.HTTPError as e:
            return ApiError(ApiErrorKind.NETWORK_FAILURE, str(e) or type(e).__name__, code="NETWORK_ERROR")

        if not response.is_success:
            return self._error_from_response(response)
        return self._parse_success(response)

    @staticmethod
    def _error_from_response(response: httpx.Response) -> ApiError:
        """Builds an ApiError from a non-success response (JSON body, else text)."""
        try:
            details: Any = response.json()
        except ValueError:
            details = response.text

        message = None
        code = None
        if isinstance(details, dict):
            message = details.get("message")
            code = details.get("code")
        message = message or response.reason_phrase or "Request failed"
        return ApiError.from_status(
            response.status_code, str(message),
            code=str(code) if code is not None else None, details=details,
        )

    @staticmethod
    def _parse_success(response: httpx.Response) -> Union[ApiResult, ApiError]:
        """JSON when the content-type says so, raw text otherwise."""
        content_type = response.headers.get("content-type", "")
        if "json" in content_type.lower():
            try:
                data: Any = response.json()
            except ValueError as e:
                return ApiError(
                    ApiErrorKind.UNPARSEABLE, f"Invalid JSON in response body: {e}",
                    status=response.status_code, code="UNPARSEABLE", details=response.text[:500],
                )
        else:
            data = response.text

        return ApiResult(
            data=data,
            status_code=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
        )

    # --- Liveness ---

    async def health_check(self) -> bool:
        """GET /health with a 5s deadline. Any failure reads as False."""
        url = self.build_url(HEALTH_PATH)
        try:
            response = await asyncio.wait_for(
                self._client.get(url, headers=self.build_headers()),
                timeout=HEALTH_TIMEOUT_SECONDS,
            )
        except Exception as e:
            logger.debug(f"Health check for {self.config.base_url} failed: {type(e).__name__}: {e}")
            return False
        return response.is_success

    # --- Lifecycle ---

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "RequestExecutor":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
