"""Bearer token sources injected into the API client."""

from collections.abc import Callable
from pathlib import Path

import structlog

from talahum_dues.config.settings import FlatSettings

logger = structlog.get_logger(__name__)

TokenProvider = Callable[[], str | None]


class StaticTokenProvider:
    """Always returns the same token."""

    def __init__(self, token: str | None):
        self._token = token or None

    def __call__(self) -> str | None:
        return self._token


class FileTokenProvider:
    """Reads the stored session token from disk on every call.

    The dashboard login writes the token after authenticating, so the file
    may appear, change or disappear while the client is alive.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def __call__(self) -> str | None:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("token_file_unreadable", path=str(self.path), error=str(e))
            return None
        return token or None


def token_provider_from_settings(settings: FlatSettings) -> TokenProvider:
    """Build a token provider from settings; a token file wins over a static token."""
    if settings.token_file is not None:
        return FileTokenProvider(settings.token_file)
    token = settings.api_token.get_secret_value() if settings.api_token else None
    return StaticTokenProvider(token)
