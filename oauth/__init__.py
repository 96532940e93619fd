"""OAuth authentication package for provider credentials"""

from .models import (
    AppCredentials,
    AuthData,
    AuthFlavor,
    AuthMode,
    Credential,
    OAuthProviderConfig,
    PKCEPair,
)
from .pkce import PKCECodeGenerator, AuthExtras, PKCEAuthExtras, auth_extras_for
from .authorization import AuthorizationFlow, AuthFlowConfiguration
from .token_exchange import exchange_code
from .token_refresh import refresh_access_token
from .credential_store import CredentialStore
from .providers import get_provider_configs

__all__ = [
    "AppCredentials",
    "AuthData",
    "AuthFlavor",
    "AuthMode",
    "Credential",
    "OAuthProviderConfig",
    "PKCEPair",
    "PKCECodeGenerator",
    "AuthExtras",
    "PKCEAuthExtras",
    "auth_extras_for",
    "AuthorizationFlow",
    "AuthFlowConfiguration",
    "exchange_code",
    "refresh_access_token",
    "CredentialStore",
    "get_provider_configs",
]
