"""HTTP access to the association dashboard API."""

from talahum_dues.api.client import (
    AuthenticationError,
    SubscriptionsAPIClient,
    SubscriptionsAPIError,
)
from talahum_dues.api.credentials import (
    FileTokenProvider,
    StaticTokenProvider,
    TokenProvider,
    token_provider_from_settings,
)

__all__ = [
    # API Client
    "SubscriptionsAPIClient",
    "SubscriptionsAPIError",
    "AuthenticationError",
    # Credentials
    "TokenProvider",
    "StaticTokenProvider",
    "FileTokenProvider",
    "token_provider_from_settings",
]
