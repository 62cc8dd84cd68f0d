"""FastAPI dependencies for admin authentication."""

from typing import Annotated

from fastapi import Header, HTTPException

from menu_view_service.auth.api_key_validator import APIKeyValidator


def require_admin_key(
    x_api_key: Annotated[str | None, Header()] = None,
    validator: APIKeyValidator | None = None,
) -> str:
    """Check the X-API-Key header of an admin request.

    Args:
        x_api_key: API key from the X-API-Key header
        validator: Validator holding the accepted keys

    Returns:
        str: The validated API key

    Raises:
        HTTPException: 401 if the key is missing or not accepted
    """
    if not x_api_key:
        raise HTTPException(status_code=401, detail="Missing API key")

    if validator is None or not validator.validate(x_api_key):
        raise HTTPException(status_code=401, detail="Invalid API key")

    return x_api_key
