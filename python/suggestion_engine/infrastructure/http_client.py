"""
HTTP client for the review backend.
Wraps one httpx.AsyncClient and maps transport failures and error
statuses onto the engine's exception hierarchy.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import quote

import httpx

from suggestion_engine.core.config import settings
from suggestion_engine.core.exceptions import (
    AppException,
    ConflictError,
    NotFoundError,
    QuotaExceededError,
    TransportError,
    ValidationError,
)
from suggestion_engine.core.logging import get_logger, log_request, log_response

logger = get_logger(__name__)


def path_id(value: Any) -> str:
    """Quote an identifier for use as a single path segment."""
    return quote(str(value), safe="")


def _error_message(response: httpx.Response) -> str:
    """Best-effort message from an error body ({message} or FastAPI {detail})."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        for key in ("message", "detail", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]
    return f"HTTP {response.status_code}: {response.reason_phrase}"


def raise_for_status(response: httpx.Response) -> None:
    """
    Raise the matching AppException for an error response.

    Raises:
        NotFoundError: 404
        ConflictError: 409
        ValidationError: 400, 422
        QuotaExceededError: 429
        TransportError: 5xx
        AppException: any other 4xx
    """
    status = response.status_code
    if status < 400:
        return

    message = _error_message(response)
    url = str(response.request.url) if response.request else None

    if status == 404:
        raise NotFoundError("Resource", message=message)
    if status == 409:
        raise ConflictError(message)
    if status in (400, 422):
        raise ValidationError(message, status_code=status)
    if status == 429:
        raise QuotaExceededError(message)
    if status >= 500:
        raise TransportError(message, url=url, status_code=status)
    raise AppException(message, code="HTTP_ERROR", status_code=status)


class ApiClient:
    """
    Async JSON client for the backend.

    Usage:
        async with ApiClient() as api:
            data = await api.get("/faces/suggestions", params={"page": 1})
    """

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout
        token = token if token is not None else settings.api_token

        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=headers,
            transport=transport,
        )
        logger.debug(f"ApiClient initialized for {self.base_url}")

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    # ============================================================
    # JSON requests
    # ============================================================

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body (None for 204).

        Raises:
            TransportError: On network failure, timeout or 5xx
            AppException: Mapped from the error status (see raise_for_status)
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        log_request(logger, method, path, **(params or {}))
        started = time.perf_counter()

        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout on {method} {path}: {e}")
            raise TransportError("Request timed out", url=f"{self.base_url}{path}")
        except httpx.HTTPError as e:
            logger.warning(f"Network error on {method} {path}: {e}")
            raise TransportError(f"Network request failed: {e}", url=f"{self.base_url}{path}")

        log_response(logger, response.status_code, (time.perf_counter() - started) * 1000, path=path)
        raise_for_status(response)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise TransportError(f"Invalid JSON from {path}", url=str(response.request.url))

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("POST", path, params=params, json=json if json is not None else {})

    async def delete(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("DELETE", path, params=params)

    # ============================================================
    # Streaming
    # ============================================================

    @asynccontextmanager
    async def stream(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        connect_timeout: float = 5.0,
    ) -> AsyncIterator[httpx.Response]:
        """
        Open a server-sent events stream.

        The read timeout is disabled; the caller bounds the stream's lifetime.

        Raises:
            TransportError: If the connection fails or the server does not stream
            AppException: Mapped from the error status
        """
        timeout = httpx.Timeout(self.timeout, connect=connect_timeout, read=None)
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        log_request(logger, "STREAM", path, **(params or {}))

        try:
            async with self._client.stream(
                "GET", path, params=params, headers=headers, timeout=timeout
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise_for_status(response)

                content_type = (response.headers.get("content-type") or "").lower()
                if "text/event-stream" not in content_type:
                    raise TransportError(
                        f"Expected an event stream from {path}, got '{content_type or 'no content type'}'",
                        url=str(response.request.url),
                        status_code=response.status_code,
                    )

                yield response
        except httpx.TimeoutException as e:
            raise TransportError(f"Stream timed out: {e}", url=f"{self.base_url}{path}")
        except httpx.HTTPError as e:
            raise TransportError(f"Stream failed: {e}", url=f"{self.base_url}{path}")
