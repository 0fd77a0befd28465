"""Async client for the association dashboard API."""

from typing import Any

import httpx
import structlog

from talahum_dues.api.credentials import TokenProvider, token_provider_from_settings
from talahum_dues.config import get_settings
from talahum_dues.payload import extract_data

logger = structlog.get_logger(__name__)


class SubscriptionsAPIError(Exception):
    """Base exception for dashboard API errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details

    @property
    def server_message(self) -> str | None:
        """The ``error`` message from the response body, if the server sent one."""
        if isinstance(self.details, dict):
            error = self.details.get("error")
            if isinstance(error, str) and error.strip():
                return error
        return None


class AuthenticationError(SubscriptionsAPIError):
    """The stored token was missing, expired or rejected."""

    pass


class SubscriptionsAPIClient:
    """Async client for the subscription endpoints.

    The bearer token is looked up through ``token_provider`` on every
    request, so a token stored after login is picked up without rebuilding
    the client.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token_provider: TokenProvider | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self._token_provider = token_provider or token_provider_from_settings(settings)
        self._timeout = timeout if timeout is not None else settings.api_timeout

        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SubscriptionsAPIClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_headers(self) -> dict[str, str]:
        """Get request headers with auth token."""
        headers = {"Accept": "application/json"}
        token = self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    # === Generic Request Methods ===

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated API request and return the decoded body."""
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=path,
                params=params,
                json=json,
                headers=self._get_headers(),
            )
        except httpx.RequestError as e:
            logger.warning("request_failed", method=method, path=path, error=str(e))
            raise SubscriptionsAPIError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except ValueError:
                error_detail = {
                    "raw": response.text[:500] if response.text else "empty response"
                }
            error_cls = (
                AuthenticationError
                if response.status_code in (401, 403)
                else SubscriptionsAPIError
            )
            logger.warning(
                "api_error",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise error_cls(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                details=error_detail,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise SubscriptionsAPIError(
                "Response is not valid JSON",
                status_code=response.status_code,
                details={"raw": response.text[:500]},
            ) from e

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make GET request."""
        return await self._request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make POST request."""
        return await self._request("POST", path, params=params, json=json)

    # === Subscription Endpoints ===

    async def list_period_subscribers(self, month: int, year: int) -> list[Any]:
        """List subscribers with their subscription history for a period.

        Returns the raw items; ``aggregator.normalize`` turns them into rows.
        """
        result = await self.get("/subscription", params={"month": month, "year": year})
        items = extract_data(result)
        logger.debug("period_subscribers_fetched", month=month, year=year, count=len(items))
        return items

    async def list_subscriptions(self) -> list[Any]:
        """List every recorded subscription payment."""
        result = await self.get("/subscriptions")
        return extract_data(result)

    async def create_subscription(self, data: dict[str, Any]) -> dict[str, Any]:
        """Record a subscription payment."""
        result = await self.post("/subscriptions", json=data)
        return result if isinstance(result, dict) else {}
