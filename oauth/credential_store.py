"""Credential ownership and refresh for one authenticated session"""

import logging
import threading
from concurrent.futures import Future
from typing import Optional

import httpx

import settings
from errors import AuthRefreshError
from .models import AppCredentials, AuthData, AuthFlavor, Credential, expiry_from_expires_in
from .token_refresh import refresh_access_token

logger = logging.getLogger(__name__)


class CredentialStore:
    """Owns a single OAuth2 credential and refreshes it on demand

    Refresh is single-flight: when several requests hit a 401 at once only the
    first one talks to the token endpoint, the others wait for its outcome.
    """

    def __init__(
        self,
        app_credentials: AppCredentials,
        auth_flavor: AuthFlavor = AuthFlavor.STANDARD,
        token_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        expiry_buffer: int = settings.TOKEN_EXPIRY_BUFFER,
    ):
        """Initialize the store

        Args:
            app_credentials: OAuth client id/secret
            auth_flavor: PKCE providers refresh without the client secret
            token_url: Fallback token endpoint when AuthData carries none
            http_client: Client for the token endpoint (created lazily if None)
            expiry_buffer: Seconds before expiry a credential is treated as expired
        """
        self.app_credentials = app_credentials
        self.auth_flavor = auth_flavor
        self.token_url = token_url
        self.expiry_buffer = expiry_buffer
        self._http_client = http_client
        self._credential: Optional[Credential] = None
        self._lock = threading.Lock()
        self._in_flight: Optional[Future] = None

    @property
    def credential(self) -> Optional[Credential]:
        return self._credential

    def get_or_create_credential(self, auth_data: AuthData) -> Credential:
        """Return the cached credential, creating it from auth_data on first use"""
        with self._lock:
            if self._credential is None:
                if not auth_data.access_token:
                    raise AuthRefreshError("Auth data has no access token")
                self._credential = Credential(
                    access_token=auth_data.access_token,
                    refresh_token=auth_data.refresh_token,
                )
                if auth_data.token_server_url:
                    self.token_url = auth_data.token_server_url
                logger.debug("Created credential from supplied auth data")
            return self._credential

    def get_access_token(self) -> str:
        """Current access token, refreshed first when known to be expired"""
        credential = self._require_credential()
        token = credential.access_token
        if credential.is_expired(self.expiry_buffer):
            logger.info("Access token expired, attempting automatic refresh...")
            self.refresh(credential, stale_access_token=token)
        return credential.access_token

    def refresh(self, credential: Optional[Credential] = None, stale_access_token: Optional[str] = None) -> Credential:
        """Exchange the refresh token for a new access token, mutating the credential

        Args:
            credential: Credential to refresh (default: the owned one)
            stale_access_token: Token the caller saw rejected. If the credential
                already holds a different token, someone else refreshed it and no
                new refresh is made.

        Returns:
            The refreshed credential

        Raises:
            AuthRefreshError: If the refresh token is missing or rejected
        """
        credential = credential or self._require_credential()

        with self._lock:
            if stale_access_token is not None and credential.access_token != stale_access_token:
                logger.debug("Credential already refreshed by a concurrent request")
                return credential
            flight = self._in_flight
            leader = flight is None
            if leader:
                flight = Future()
                self._in_flight = flight

        if not leader:
            # Re-raises the leader's AuthRefreshError
            flight.result()
            return credential

        try:
            self._do_refresh(credential)
        except BaseException as e:
            flight.set_exception(e)
            raise
        else:
            flight.set_result(credential)
        finally:
            with self._lock:
                self._in_flight = None

        return credential

    def _do_refresh(self, credential: Credential) -> None:
        if not self.token_url:
            raise AuthRefreshError("No token server URL available for refresh")

        client_secret = None
        if self.auth_flavor == AuthFlavor.STANDARD:
            client_secret = self.app_credentials.secret

        client = self._http_client or httpx.Client(timeout=settings.TOKEN_REQUEST_TIMEOUT)
        try:
            payload = refresh_access_token(
                client,
                self.token_url,
                credential.refresh_token,
                self.app_credentials.key,
                client_secret,
            )
        finally:
            if self._http_client is None:
                client.close()

        credential.access_token = payload["access_token"]
        # Providers that rotate refresh tokens return a new one
        if payload.get("refresh_token"):
            credential.refresh_token = payload["refresh_token"]
        credential.expiry = expiry_from_expires_in(payload.get("expires_in"))
        logger.info("Refreshed authorization token successfully")

    def _require_credential(self) -> Credential:
        if self._credential is None:
            raise AuthRefreshError("No credential available; call get_or_create_credential first")
        return self._credential
