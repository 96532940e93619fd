"""OAuth authorization code exchange"""

import json
import logging
from typing import Dict

import httpx

from errors import MalformedResponseError, TokenExchangeError
from .models import AuthData

logger = logging.getLogger(__name__)


def exchange_code(
    client: httpx.Client,
    token_url: str,
    client_id: str,
    redirect_uri: str,
    code: str,
    extra_params: Dict[str, str],
) -> AuthData:
    """Exchange authorization code for tokens

    Args:
        client: HTTP client used for the token endpoint
        token_url: Provider token endpoint
        client_id: OAuth client id
        redirect_uri: Callback URL used in the authorization request
        code: Authorization code from OAuth flow
        extra_params: ``client_secret`` or ``code_verifier`` depending on the flavor

    Returns:
        AuthData built from the token response

    Raises:
        TokenExchangeError: If the provider rejects the exchange
        MalformedResponseError: If the response cannot be parsed
    """
    params = {
        "client_id": client_id,
        "grant_type": "authorization_code",
        "redirect_uri": redirect_uri,
        "code": code,
        **extra_params,
    }

    try:
        response = client.post(token_url, data=params, headers={"Accept": "application/json"})
    except httpx.RequestError as e:
        raise TokenExchangeError(f"Token exchange request failed: {e}") from e

    if response.status_code != 200:
        raise TokenExchangeError("Token exchange failed", response.status_code, response.text)

    try:
        payload = response.json()
    except json.JSONDecodeError as e:
        raise MalformedResponseError("Failed to parse token exchange response", response.text) from e

    auth_data = AuthData.from_token_response(payload, token_url)
    logger.info("OAuth tokens obtained from authorization code")
    return auth_data
