"""Base client with retry logic, error handling, and rate limiting."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import httpx
import structlog
from asyncio_throttle import Throttler
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from okta_iac.clients.exceptions import (
    APIError,
    AuthenticationError,
    RateLimitError,
    ClientError,
    ServerError,
    NetworkError,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class BaseAPIClient(ABC):
    """Abstract base class for API clients with common functionality."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: int = 30,
        rate_limit_per_minute: int = 600,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the base API client.

        Args:
            base_url: Base URL for the API
            timeout_seconds: Request timeout in seconds
            rate_limit_per_minute: Maximum requests per minute
            max_retries: Maximum retry attempts for failed requests
            retry_delay_seconds: Initial delay between retries
            user_agent: Custom user agent string
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.rate_limit_per_minute = rate_limit_per_minute
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds

        # Content-Type is left to httpx so multipart uploads get their boundary
        headers = {
            "User-Agent": user_agent or self._get_default_user_agent(),
            "Accept": "application/json",
        }

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_seconds),
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

        self._throttler = Throttler(rate_limit=rate_limit_per_minute, period=60)

        self._request_count = 0

        self._logger = logger.bind(
            client_type=self.__class__.__name__,
            base_url=self.base_url,
        )

    async def __aenter__(self) -> "BaseAPIClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._client:
            await self._client.aclose()

    @abstractmethod
    def _get_auth_headers(self) -> Dict[str, str]:
        """Get authentication headers for requests.

        Returns:
            Dictionary of authentication headers
        """
        pass

    def _get_default_user_agent(self) -> str:
        """Get default user agent string."""
        from okta_iac.version import __version__
        return f"okta-iac/{__version__}"

    async def _make_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Make an HTTP request with rate limiting and error handling.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, etc.)
            path: API endpoint path (relative to base URL) or absolute URL
            params: Query parameters
            json_data: JSON request body
            headers: Additional headers
            files: Multipart files to upload

        Returns:
            HTTP response object

        Raises:
            APIError: If the request fails
        """
        async with self._throttler:
            if path.startswith("http://") or path.startswith("https://"):
                url = path
            else:
                url = f"{self.base_url}/{path.lstrip('/')}"
            request_headers = self._get_auth_headers()
            if headers:
                request_headers.update(headers)

            self._request_count += 1
            request_id = f"req_{self._request_count}"

            self._logger.debug(
                "Making API request",
                request_id=request_id,
                method=method,
                url=url,
                params=params,
                has_json_data=json_data is not None,
                has_files=files is not None,
            )

            try:
                response = await self._client.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_data,
                    files=files,
                    headers=request_headers,
                )
            except httpx.RequestError as e:
                self._logger.error(
                    "Network error during API request",
                    request_id=request_id,
                    error=str(e),
                )
                raise NetworkError(f"Network error: {e}") from e

            self._logger.debug(
                "API request completed",
                request_id=request_id,
                status_code=response.status_code,
                response_size=len(response.content),
            )

            if response.is_success:
                return response

            if response.status_code == 401:
                raise AuthenticationError(
                    "Authentication failed",
                    status_code=response.status_code,
                    response_text=response.text,
                )
            elif response.status_code == 429:
                raise RateLimitError(
                    "Rate limit exceeded",
                    status_code=response.status_code,
                    response_text=response.text,
                    retry_after=self._get_retry_after(response),
                )
            elif 400 <= response.status_code < 500:
                raise ClientError(
                    f"Client error: {response.status_code}",
                    status_code=response.status_code,
                    response_text=response.text,
                )
            elif 500 <= response.status_code < 600:
                raise ServerError(
                    f"Server error: {response.status_code}",
                    status_code=response.status_code,
                    response_text=response.text,
                )
            raise APIError(
                f"Unexpected status code: {response.status_code}",
                status_code=response.status_code,
                response_text=response.text,
            )

    def _get_retry_after(self, response: httpx.Response) -> Optional[int]:
        """Extract retry-after value from response headers."""
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                return int(retry_after)
            except ValueError:
                pass
        return None

    async def with_retry(
        self,
        operation_name: str,
        operation: Callable[[], Awaitable[T]],
        retry_on_rate_limit: bool = True,
        retry_on_server_error: bool = True,
    ) -> T:
        """Execute an operation with automatic retry logic.

        Rate limit errors honour the server's Retry-After hint before the
        next attempt.

        Args:
            operation_name: Name of the operation for logging
            operation: Coroutine function to execute
            retry_on_rate_limit: Whether to retry on rate limit errors
            retry_on_server_error: Whether to retry on 5xx and network errors

        Returns:
            Result of the operation

        Raises:
            APIError: If the operation fails after all retries
        """
        retryable: tuple = ()
        if retry_on_server_error:
            retryable = retryable + (ServerError, NetworkError)
        if retry_on_rate_limit:
            retryable = retryable + (RateLimitError,)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries + 1),
                wait=wait_exponential(
                    multiplier=self.retry_delay_seconds,
                    min=self.retry_delay_seconds,
                    max=60,
                ),
                retry=retry_if_exception_type(retryable),
                reraise=True,
            ):
                with attempt:
                    self._logger.debug(
                        "Executing operation with retry",
                        operation=operation_name,
                        attempt_number=attempt.retry_state.attempt_number,
                    )
                    try:
                        return await operation()
                    except RateLimitError as e:
                        if retry_on_rate_limit and e.retry_after:
                            self._logger.info(
                                "Rate limit hit, waiting before retry",
                                operation=operation_name,
                                retry_after=e.retry_after,
                            )
                            await asyncio.sleep(e.retry_after)
                        raise
        except APIError as e:
            self._logger.error(
                "Operation failed after all retries",
                operation=operation_name,
                error=str(e),
                error_type=type(e).__name__,
                attempts=self.max_retries + 1,
            )
            raise
        raise APIError(f"Operation {operation_name} did not run")

    async def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Make a GET request."""
        return await self.with_retry(
            f"GET {path}",
            lambda: self._make_request("GET", path, params=params, headers=headers),
        )

    async def post(
        self,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Make a POST request.

        POST is not idempotent, so only rate limit responses are retried.
        """
        return await self.with_retry(
            f"POST {path}",
            lambda: self._make_request(
                "POST", path, params=params, json_data=json_data, headers=headers, files=files
            ),
            retry_on_server_error=False,
        )

    async def put(
        self,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Make a PUT request."""
        return await self.with_retry(
            f"PUT {path}",
            lambda: self._make_request(
                "PUT", path, params=params, json_data=json_data, headers=headers
            ),
        )

    async def delete(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Make a DELETE request."""
        return await self.with_retry(
            f"DELETE {path}",
            lambda: self._make_request("DELETE", path, params=params, headers=headers),
        )

    async def get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make a GET request and return JSON response.

        Raises:
            APIError: If response is not valid JSON
        """
        response = await self.get(path, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Failed to parse JSON response: {e}") from e

    async def post_json(
        self,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Make a POST request and return JSON response."""
        response = await self.post(path, json_data=json_data, params=params, headers=headers)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Failed to parse JSON response: {e}") from e

    async def put_json(
        self,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Make a PUT request and return JSON response."""
        response = await self.put(path, json_data=json_data, params=params, headers=headers)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Failed to parse JSON response: {e}") from e

    async def paginate(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Paginate through all results for an endpoint.

        Subclasses implement this based on their pagination mechanism.
        """
        raise NotImplementedError("Subclasses must implement pagination logic")

