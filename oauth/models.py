"""Data models for OAuth credentials and provider configuration"""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional

from errors import ConfigurationError, MalformedResponseError


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def expiry_from_expires_in(expires_in: Any) -> Optional[datetime.datetime]:
    """Convert a token response's ``expires_in`` into an absolute UTC expiry"""
    if expires_in is None:
        return None
    try:
        seconds = int(expires_in)
    except (TypeError, ValueError):
        return None
    return _utcnow() + datetime.timedelta(seconds=seconds)


@dataclass
class Credential:
    """Live OAuth2 token pair for one authenticated session

    Mutated in place on refresh; never shared across sessions.

    Attributes:
        access_token: Bearer token attached to outgoing requests
        refresh_token: Token exchanged for a new access token
        expiry: Absolute UTC expiry of the access token, if known
    """
    access_token: str
    refresh_token: Optional[str] = None
    expiry: Optional[datetime.datetime] = None

    def is_expired(self, buffer_seconds: int = 5, now: Optional[datetime.datetime] = None) -> bool:
        if self.expiry is None:
            return False
        now = now or _utcnow()
        return now >= self.expiry - datetime.timedelta(seconds=buffer_seconds)


@dataclass(frozen=True)
class AuthData:
    """Tokens handed over by the caller at session start

    Attributes:
        access_token: Initial access token
        refresh_token: Refresh token (may be None)
        token_server_url: Token endpoint used to refresh
    """
    access_token: str
    refresh_token: Optional[str]
    token_server_url: str

    @classmethod
    def from_token_response(cls, payload: Dict[str, Any], token_url: str) -> "AuthData":
        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise MalformedResponseError("Token response is missing access_token")
        return cls(
            access_token=access_token,
            refresh_token=payload.get("refresh_token"),
            token_server_url=token_url,
        )


@dataclass(frozen=True)
class AppCredentials:
    """OAuth client registration (client id and optional secret)"""
    key: str
    secret: Optional[str] = None


@dataclass(frozen=True)
class PKCEPair:
    """PKCE codes for one authorization round trip

    Attributes:
        code_verifier: 43 alphanumeric characters, sent at token exchange
        code_challenge: base64url(SHA-256(code_verifier)) without padding
    """
    code_verifier: str
    code_challenge: str


class AuthFlavor(str, Enum):
    """How a provider binds the authorization and token steps"""
    STANDARD = "standard"  # client_secret at token exchange
    PKCE = "pkce"  # S256 code challenge / code verifier


class AuthMode(str, Enum):
    IMPORT = "import"
    EXPORT = "export"


@dataclass(frozen=True)
class OAuthProviderConfig:
    """Static OAuth2 configuration of one provider

    Attributes:
        service_name: Display name of the provider
        auth_url: Authorization endpoint (browser redirect)
        token_url: Token endpoint
        export_scopes: Scopes per data type when exporting
        import_scopes: Scopes per data type when importing
        auth_flavor: STANDARD or PKCE, resolved once here
        additional_auth_url_parameters: Extra query parameters for the authorization URL
    """
    service_name: str
    auth_url: str
    token_url: str
    export_scopes: Mapping[str, FrozenSet[str]]
    import_scopes: Mapping[str, FrozenSet[str]]
    auth_flavor: AuthFlavor = AuthFlavor.STANDARD
    additional_auth_url_parameters: Mapping[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        if not self.service_name:
            raise ConfigurationError("Config is missing service name")
        if not self.auth_url:
            raise ConfigurationError(f"Config for {self.service_name} is missing auth url")
        if not self.token_url:
            raise ConfigurationError(f"Config for {self.service_name} is missing token url")
        # Not part of OAuth, but prevents accidental scope omission
        if self.export_scopes is None:
            raise ConfigurationError(f"Config for {self.service_name} is missing export scopes")
        if self.import_scopes is None:
            raise ConfigurationError(f"Config for {self.service_name} is missing import scopes")

    def scopes_for(self, data_type: str, mode: AuthMode) -> FrozenSet[str]:
        scopes = self.export_scopes if mode == AuthMode.EXPORT else self.import_scopes
        if data_type not in scopes:
            raise ConfigurationError(
                f"{self.service_name} has no {mode.value} scopes for data type {data_type}"
            )
        return scopes[data_type]
