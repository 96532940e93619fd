"""OAuth authorization URL construction and code exchange"""

import base64
import logging
import webbrowser
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

import settings
from .models import AppCredentials, AuthData, AuthMode, OAuthProviderConfig
from .pkce import PKCECodeGenerator, auth_extras_for
from .token_exchange import exchange_code

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthFlowConfiguration:
    """Where to send the user and where tokens are obtained"""
    auth_url: str
    token_url: str


def encode_state(job_id: str) -> str:
    return base64.urlsafe_b64encode(job_id.encode("utf-8")).decode("ascii")


class AuthorizationFlow:
    """Builds OAuth authorization URLs and exchanges codes for one provider/data type

    The flavor (client secret or PKCE) is resolved once at construction.
    """

    def __init__(
        self,
        config: OAuthProviderConfig,
        app_credentials: AppCredentials,
        data_type: str,
        auth_mode: AuthMode = AuthMode.IMPORT,
        http_client: Optional[httpx.Client] = None,
        pkce_generator: Optional[PKCECodeGenerator] = None,
    ):
        config.validate()
        self.config = config
        self.app_credentials = app_credentials
        self.scopes = config.scopes_for(data_type, auth_mode)
        self.extras = auth_extras_for(config.auth_flavor, pkce_generator)
        self._http_client = http_client

    def generate_configuration(self, callback_base_url: str, job_id: str) -> AuthFlowConfiguration:
        """Construct the authorization URL for a new attempt

        Args:
            callback_base_url: Redirect URI registered with the provider
            job_id: Job identifier, carried back in ``state``

        Returns:
            AuthFlowConfiguration with the full authorization URL
        """
        params = {
            "response_type": "code",
            "client_id": self.app_credentials.key,
            "redirect_uri": callback_base_url,
            "scope": " ".join(sorted(self.scopes)),
            "state": encode_state(job_id),
        }
        params.update(self.extras.begin())
        params.update(self.config.additional_auth_url_parameters or {})

        separator = "&" if "?" in self.config.auth_url else "?"
        url = f"{self.config.auth_url}{separator}{urlencode(params)}"
        return AuthFlowConfiguration(auth_url=url, token_url=self.config.token_url)

    def generate_auth_data(
        self,
        callback_base_url: str,
        auth_code: str,
        job_id: str,
        initial_auth_data: Optional[AuthData] = None,
        extra: Optional[str] = None,
    ) -> AuthData:
        """Exchange the authorization code of the current attempt for tokens

        Raises:
            ValueError: If extra data or initial auth data is supplied, or no attempt is pending
        """
        if extra:
            raise ValueError("Extra data not expected for OAuth flow")
        if initial_auth_data is not None:
            raise ValueError(f"Initial auth data not expected for {self.config.service_name}")

        extra_params = self.extras.token_params(self.app_credentials)
        logger.debug(f"Exchanging authorization code for job {job_id} with {self.config.service_name}")

        client = self._http_client or httpx.Client(timeout=settings.TOKEN_REQUEST_TIMEOUT)
        try:
            return exchange_code(
                client,
                self.config.token_url,
                self.app_credentials.key,
                callback_base_url,
                auth_code,
                extra_params,
            )
        finally:
            # Verifier is single-use whether or not the exchange succeeded
            self.extras.finish()
            if self._http_client is None:
                client.close()

    def start_login_flow(self, callback_base_url: str, job_id: str) -> str:
        """Start the OAuth login flow by opening browser

        Returns:
            Authorization URL that was opened
        """
        auth_url = self.generate_configuration(callback_base_url, job_id).auth_url
        webbrowser.open(auth_url)
        return auth_url
