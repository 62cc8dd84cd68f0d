"""API key validation for admin endpoints.

Admin endpoints are operated by the team that seeds the menu data; a request
is authorized when its X-API-Key header matches one of the configured keys.
"""

import hmac
import logging
import os

logger = logging.getLogger(__name__)

DEVELOPMENT_API_KEY = "dummy-key-for-development"


def get_admin_api_keys() -> list[str]:
    """Read the comma-separated admin API keys from ADMIN_API_KEY.

    Falls back to a development key when none is configured.
    """
    api_keys_str = os.getenv("ADMIN_API_KEY", "")
    api_keys = [key.strip() for key in api_keys_str.split(",") if key.strip()]

    if not api_keys:
        logger.warning("No ADMIN_API_KEY configured - using development key")
        api_keys = [DEVELOPMENT_API_KEY]

    return api_keys


class APIKeyValidator:
    """Validates API keys for admin endpoint authentication."""

    def __init__(self, api_keys: list[str]) -> None:
        """Initialize validator with the accepted keys.

        Args:
            api_keys: Accepted API key strings

        Raises:
            ValueError: If no non-empty key is provided
        """
        keys = [key for key in api_keys if key]
        if not keys:
            raise ValueError("At least one API key must be provided")

        self.api_keys = tuple(keys)

    def validate(self, api_key: str) -> bool:
        """Validate an API key using constant-time comparison.

        Args:
            api_key: The API key to validate

        Returns:
            bool: True if valid, False otherwise
        """
        return any(hmac.compare_digest(api_key.encode(), key.encode()) for key in self.api_keys)
