"""Base HTTP client shared by the upstream data providers."""

import threading
from typing import Any

import httpx


class UpstreamUnavailable(Exception):
    """Raised when a provider fails or returns a non-success response."""
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(UpstreamUnavailable):
    """Raised when API rate limit is hit."""
    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message, 429)


class BaseAPIClient:
    """
    Base class for API clients.

    Every request is attempted exactly once; failures surface as
    UpstreamUnavailable to the caller.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None
        self._client_lock = threading.Lock()

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of HTTP client."""
        # Shared by worker threads during fan-out
        with self._client_lock:
            if self._client is None:
                self._client = httpx.Client(
                    timeout=self.timeout,
                    headers=self._get_default_headers(),
                    transport=self._transport,
                )
            return self._client

    def _get_default_headers(self) -> dict[str, str]:
        """Override in subclass to add default headers."""
        return {
            "Accept": "application/json",
            "User-Agent": "WalletDashboard/0.1.0",
        }

    def _handle_response(self, response: httpx.Response) -> Any:
        """Process response and handle errors."""
        if response.status_code == 429:
            raise RateLimitError()

        if response.status_code >= 400:
            try:
                error_data = response.json()
                message = error_data.get("message", error_data.get("error", str(error_data)))
            except (ValueError, AttributeError):
                message = response.text or f"HTTP {response.status_code}"
            raise UpstreamUnavailable(str(message), response.status_code)

        try:
            return response.json()
        except ValueError:
            raise UpstreamUnavailable(
                f"Invalid JSON from {response.url.host}", response.status_code
            )

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make a single HTTP request."""
        url = f"{self.base_url}/{endpoint.lstrip('/')}" if endpoint else self.base_url

        try:
            response = self.client.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                headers=headers,
            )
        except httpx.TimeoutException:
            raise UpstreamUnavailable("Request timed out")
        except httpx.RequestError as e:
            raise UpstreamUnavailable(f"Request failed: {e}")

        return self._handle_response(response)

    def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make GET request."""
        return self._request("GET", endpoint, params=params, headers=headers)

    def post(
        self,
        endpoint: str,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make POST request."""
        return self._request("POST", endpoint, params=params, json_data=json_data, headers=headers)

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
