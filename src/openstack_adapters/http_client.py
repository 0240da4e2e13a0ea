"""
Async transport that drives the metadata binders and queue parsers.

Features:
- Retry with exponential backoff (tenacity)
- Circuit Breaker (pybreaker)
- Prometheus metrics
- Structured logging with correlation_id
"""

import re
import time
from collections.abc import Mapping
from typing import Any

import httpx
from prometheus_client import Counter, Histogram
from pybreaker import CircuitBreaker, CircuitBreakerError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .binders import BindMode, MetadataScope, get_metadata_binder
from .config import Settings
from .logging import LogEventType, correlation_id_ctx, get_logger
from .models import HttpRequest, MessageStream
from .parsers import MessageIdsParser, MessageStreamParser

logger = get_logger(__name__)

# === Prometheus Metrics ===

HTTP_REQUESTS_TOTAL = Counter(
    "openstack_client_requests_total",
    "Total HTTP requests made",
    ["target", "method", "endpoint", "status"],
)

HTTP_REQUEST_DURATION = Histogram(
    "openstack_client_request_duration_seconds",
    "HTTP request duration in seconds",
    ["target", "method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

HTTP_RETRIES_TOTAL = Counter(
    "openstack_client_retries_total",
    "Total HTTP request retries",
    ["target", "method", "endpoint", "error_type"],
)


# === Exceptions ===


class ServiceClientError(Exception):
    """Base exception for transport errors."""

    pass


class ServiceUnavailableError(ServiceClientError):
    """Target service is unavailable (circuit breaker open)."""

    pass


class ServiceTimeoutError(ServiceClientError):
    """Request timed out."""

    pass


class ServiceResponseError(ServiceClientError):
    """Service returned a 4xx response."""

    def __init__(self, status_code: int, detail: str, response_body: str | None = None):
        self.status_code = status_code
        self.detail = detail
        self.response_body = response_body
        super().__init__(f"HTTP {status_code}: {detail}")


# === Configuration ===


class ClientConfig:
    """Configuration for BaseServiceClient."""

    def __init__(
        self,
        timeout: float = 30.0,
        connect_timeout: float = 5.0,
        max_retries: int = 3,
        retry_min_wait: float = 1.0,
        retry_max_wait: float = 10.0,
        circuit_breaker_fail_max: int = 5,
        circuit_breaker_reset_timeout: float = 30.0,
    ):
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.max_retries = max_retries
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait
        self.circuit_breaker_fail_max = circuit_breaker_fail_max
        self.circuit_breaker_reset_timeout = circuit_breaker_reset_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfig":
        return cls(
            timeout=settings.HTTP_CLIENT_TIMEOUT,
            max_retries=settings.HTTP_CLIENT_MAX_RETRIES,
        )


DEFAULT_CONFIG = ClientConfig()


# === Base Client ===


class BaseServiceClient:
    """
    Sends HttpRequest templates to one OpenStack endpoint.

    Subclasses build requests (usually through a binder) and hand the raw
    httpx.Response to a parser:

        class MyClient(BaseServiceClient):
            async def head_account(self) -> httpx.Response:
                return await self.send(HttpRequest(method="HEAD", endpoint=""))
    """

    def __init__(
        self,
        base_url: str,
        target: str,
        config: ClientConfig | None = None,
        default_headers: Mapping[str, str] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.target = target
        self.config = config or DEFAULT_CONFIG
        self.default_headers = dict(default_headers or {})

        self._client: httpx.AsyncClient | None = None
        self._circuit_breaker = CircuitBreaker(
            fail_max=self.config.circuit_breaker_fail_max,
            reset_timeout=self.config.circuit_breaker_reset_timeout,
            name=f"openstack_{target}",
        )

        logger.info(
            "Service client initialized",
            event_type=LogEventType.STARTUP,
            target=target,
            base_url=self.base_url,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazy initialization of HTTP client."""
        if self._client is None or self._client.is_closed:
            timeout = httpx.Timeout(
                self.config.timeout,
                connect=self.config.connect_timeout,
            )
            self._client = httpx.AsyncClient(timeout=timeout)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.info(
                "Service client closed",
                event_type=LogEventType.SHUTDOWN,
                target=self.target,
            )

    async def __aenter__(self) -> "BaseServiceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_retry_decorator(self, method: str, endpoint: str):
        """Create retry decorator with metrics."""

        def before_retry(retry_state):
            error = retry_state.outcome.exception()
            error_type = type(error).__name__
            HTTP_RETRIES_TOTAL.labels(
                target=self.target,
                method=method,
                endpoint=self._normalize_endpoint(endpoint),
                error_type=error_type,
            ).inc()
            logger.warning(
                "Retrying request",
                event_type=LogEventType.RETRY,
                method=method,
                endpoint=endpoint,
                attempt=retry_state.attempt_number,
                error_type=error_type,
                error=str(error),
            )

        return retry(
            stop=stop_after_attempt(self.config.max_retries),
            wait=wait_exponential(
                multiplier=1,
                min=self.config.retry_min_wait,
                max=self.config.retry_max_wait,
            ),
            retry=retry_if_exception_type(
                (
                    httpx.TimeoutException,
                    httpx.NetworkError,
                    httpx.HTTPStatusError,
                )
            ),
            before_sleep=before_retry,
            reraise=True,
        )

    def _build_headers(self, request: HttpRequest) -> list[tuple[str, str]]:
        headers = list(self.default_headers.items())
        headers.extend(request.headers)
        correlation_id = correlation_id_ctx.get()
        if correlation_id:
            headers.append(("X-Correlation-ID", correlation_id))
        return headers

    async def send(self, request: HttpRequest) -> httpx.Response:
        """
        Send a request with retry, circuit breaker, and metrics.

        Returns:
            The raw response, left for a parser to interpret

        Raises:
            ServiceUnavailableError: Circuit breaker is open
            ServiceTimeoutError: Request timed out
            ServiceResponseError: 4xx response
            httpx.HTTPStatusError: 5xx response after all retries
        """
        if self._circuit_breaker.current_state == "open":
            logger.error(
                "Circuit breaker open, request blocked",
                event_type=LogEventType.ERROR,
                method=request.method,
                endpoint=request.endpoint,
                target=self.target,
            )
            raise ServiceUnavailableError(
                f"Service {self.target} is unavailable (circuit breaker open)"
            )

        url = f"{self.base_url}{request.endpoint}"
        kwargs: dict[str, Any] = {"headers": self._build_headers(request)}
        if request.params:
            kwargs["params"] = request.params
        if request.payload is not None:
            kwargs["json"] = request.payload

        start_time = time.perf_counter()
        status = "error"

        try:
            response = await self._execute_request(
                request.method, url, request.endpoint, **kwargs
            )
            status = str(response.status_code)
            return response

        except httpx.TimeoutException as e:
            self._record_circuit_breaker_failure(e)
            raise ServiceTimeoutError(f"Request to {url} timed out") from e

        except httpx.HTTPStatusError as e:
            status = str(e.response.status_code)
            self._record_circuit_breaker_failure(e)
            raise

        except ServiceResponseError as e:
            status = str(e.status_code)
            raise

        except httpx.HTTPError as e:
            self._record_circuit_breaker_failure(e)
            raise

        finally:
            duration = time.perf_counter() - start_time
            endpoint = self._normalize_endpoint(request.endpoint)

            HTTP_REQUESTS_TOTAL.labels(
                target=self.target,
                method=request.method,
                endpoint=endpoint,
                status=status,
            ).inc()
            HTTP_REQUEST_DURATION.labels(
                target=self.target,
                method=request.method,
                endpoint=endpoint,
            ).observe(duration)

            logger.debug(
                "HTTP request completed",
                event_type=LogEventType.REQUEST_OUT,
                method=request.method,
                endpoint=request.endpoint,
                status=status,
                duration_ms=round(duration * 1000),
            )

    def _record_circuit_breaker_failure(self, error: Exception) -> None:
        def raise_error():
            raise error

        try:
            self._circuit_breaker.call(raise_error)
        except CircuitBreakerError:
            logger.warning(
                "Circuit breaker opened",
                event_type=LogEventType.ERROR,
                target=self.target,
            )
        except Exception:
            # The failure itself is re-raised by the caller
            pass

    async def _execute_request(
        self, method: str, url: str, endpoint: str, **kwargs: Any
    ) -> httpx.Response:
        @self._get_retry_decorator(method, endpoint)
        async def _do_request():
            client = await self._get_client()
            response = await client.request(method, url, **kwargs)

            if 500 <= response.status_code < 600:
                response.raise_for_status()

            if response.status_code >= 400:
                raise ServiceResponseError(
                    status_code=response.status_code,
                    detail=self._extract_error_detail(response),
                    response_body=response.text,
                )

            return response

        return await _do_request()

    def _extract_error_detail(self, response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            for key in ("description", "detail", "title"):
                if key in data:
                    return str(data[key])
        return response.text[:500] if response.text else "Unknown error"

    @staticmethod
    def _normalize_endpoint(endpoint: str) -> str:
        """
        Normalize endpoint for metrics by collapsing names and ids.
        /queues/demo/messages/51db6f78c508f17ddc924357 → /queues/{name}/messages/{id}
        /photos/2013/cat.jpg → /{container}/{object}
        """
        endpoint = re.sub(r"^/queues/[^/]+", "/queues/{name}", endpoint)
        endpoint = re.sub(r"/messages/[^/?]+", "/messages/{id}", endpoint)
        if not endpoint.startswith("/queues"):
            endpoint = re.sub(r"^/[^/]+/.+$", "/{container}/{object}", endpoint)
            endpoint = re.sub(r"^/[^/{]+$", "/{container}", endpoint)
        return endpoint or "/"


# === Object storage ===


class ObjectStorageClient(BaseServiceClient):
    """Metadata operations against account, containers, and objects."""

    def __init__(self, base_url: str, config: ClientConfig | None = None):
        super().__init__(base_url=base_url, target="object_storage", config=config)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStorageClient":
        return cls(settings.STORAGE_URL, config=ClientConfig.from_settings(settings))

    async def _post_metadata(
        self,
        endpoint: str,
        scope: MetadataScope,
        mode: BindMode,
        metadata: Mapping[str, str],
    ) -> bool:
        """POST bound metadata headers; False when the target does not exist."""
        binder = get_metadata_binder(scope, mode)
        request = binder.bind_to_request(
            HttpRequest(method="POST", endpoint=endpoint), metadata
        )
        try:
            await self.send(request)
        except ServiceResponseError as e:
            if e.status_code == 404:
                return False
            raise
        return True

    async def update_account_metadata(self, metadata: Mapping[str, str]) -> bool:
        return await self._post_metadata(
            "", MetadataScope.ACCOUNT, BindMode.SET, metadata
        )

    async def delete_account_metadata(self, metadata: Mapping[str, str]) -> bool:
        return await self._post_metadata(
            "", MetadataScope.ACCOUNT, BindMode.REMOVE, metadata
        )

    async def update_container_metadata(
        self, container: str, metadata: Mapping[str, str]
    ) -> bool:
        return await self._post_metadata(
            f"/{container}", MetadataScope.CONTAINER, BindMode.SET, metadata
        )

    async def delete_container_metadata(
        self, container: str, metadata: Mapping[str, str]
    ) -> bool:
        return await self._post_metadata(
            f"/{container}", MetadataScope.CONTAINER, BindMode.REMOVE, metadata
        )

    async def update_object_metadata(
        self, container: str, name: str, metadata: Mapping[str, str]
    ) -> bool:
        return await self._post_metadata(
            f"/{container}/{name}", MetadataScope.OBJECT, BindMode.SET, metadata
        )

    async def delete_object_metadata(
        self, container: str, name: str, metadata: Mapping[str, str]
    ) -> bool:
        return await self._post_metadata(
            f"/{container}/{name}", MetadataScope.OBJECT, BindMode.REMOVE, metadata
        )


# === Queues ===


class QueuesClient(BaseServiceClient):
    """Message operations against the queue service."""

    def __init__(
        self,
        base_url: str,
        client_id: str,
        config: ClientConfig | None = None,
        stream_parser: MessageStreamParser | None = None,
        ids_parser: MessageIdsParser | None = None,
    ):
        super().__init__(
            base_url=base_url,
            target="queues",
            config=config,
            default_headers={"Client-ID": client_id},
        )
        self.stream_parser = stream_parser or MessageStreamParser()
        self.ids_parser = ids_parser or MessageIdsParser()

    @classmethod
    def from_settings(cls, settings: Settings) -> "QueuesClient":
        return cls(
            settings.QUEUES_URL,
            client_id=settings.CLIENT_ID,
            config=ClientConfig.from_settings(settings),
        )

    async def list_messages(
        self,
        queue_name: str,
        marker: str | None = None,
        limit: int | None = None,
        echo: bool = False,
    ) -> MessageStream:
        """List one page of messages; pass ``stream.next_marker`` for the next."""
        params: dict[str, Any] = {"echo": "true" if echo else "false"}
        if marker is not None:
            params["marker"] = marker
        if limit is not None:
            params["limit"] = limit

        response = await self.send(
            HttpRequest(
                method="GET",
                endpoint=f"/queues/{queue_name}/messages",
                params=params,
            )
        )
        return self.stream_parser.parse(response)

    async def post_messages(
        self, queue_name: str, messages: list[dict[str, Any]]
    ) -> list[str]:
        """Post messages (each ``{"ttl": ..., "body": ...}``) and return their ids."""
        response = await self.send(
            HttpRequest(
                method="POST",
                endpoint=f"/queues/{queue_name}/messages",
                payload=messages,
            )
        )
        return self.ids_parser.parse(response)
