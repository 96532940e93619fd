"""OAuth token refresh functionality"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from errors import AuthRefreshError

logger = logging.getLogger(__name__)


def refresh_access_token(
    client: httpx.Client,
    token_url: str,
    refresh_token: Optional[str],
    client_id: str,
    client_secret: Optional[str] = None,
) -> Dict[str, Any]:
    """Exchange a refresh token for a new access token

    Args:
        client: HTTP client used for the token endpoint
        token_url: Provider token endpoint
        refresh_token: Refresh token from the current credential
        client_id: OAuth client id
        client_secret: OAuth client secret (omitted for PKCE providers)

    Returns:
        Token response payload; always contains ``access_token``

    Raises:
        AuthRefreshError: If the refresh token is absent or the provider rejects it
    """
    if not refresh_token:
        raise AuthRefreshError("No refresh token available for refresh")

    data = {
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
        "client_id": client_id,
    }
    if client_secret:
        data["client_secret"] = client_secret

    logger.info("Attempting to refresh OAuth tokens...")
    try:
        response = client.post(
            token_url,
            data=data,
            headers={"Accept": "application/json"},
        )
    except httpx.RequestError as e:
        raise AuthRefreshError(f"Token refresh request failed: {e}") from e

    if response.status_code != 200:
        logger.error(f"Token refresh failed with status {response.status_code}")
        raise AuthRefreshError("Token refresh rejected by provider", response.status_code, response.text)

    try:
        payload = response.json()
    except json.JSONDecodeError as e:
        raise AuthRefreshError("Failed to parse token refresh response", response.status_code, response.text) from e

    if not isinstance(payload, dict) or not payload.get("access_token"):
        raise AuthRefreshError("Token refresh response missing access_token", response.status_code, response.text)

    logger.info("Successfully refreshed OAuth tokens")
    return payload
