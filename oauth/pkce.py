"""PKCE (Proof Key for Code Exchange) generation"""

import base64
import hashlib
import secrets
import string
from typing import Dict, Optional

from .models import AppCredentials, AuthFlavor, PKCEPair
from errors import ConfigurationError

VERIFIER_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
VERIFIER_LENGTH = 43


def code_challenge_for(code_verifier: str) -> str:
    """S256 challenge: base64url(sha256(verifier)) with padding stripped"""
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")


class PKCECodeGenerator:
    """Generates PKCE code verifier and challenge pairs"""

    def generate(self) -> PKCEPair:
        """Generate a fresh verifier/challenge pair

        Returns:
            PKCEPair with a 43 character alphanumeric verifier
        """
        code_verifier = "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(VERIFIER_LENGTH))
        return PKCEPair(code_verifier=code_verifier, code_challenge=code_challenge_for(code_verifier))


class AuthExtras:
    """Flavor-specific parameters of the authorization round trip

    The base class is the standard (client secret) flavor.
    """

    def begin(self) -> Dict[str, str]:
        """Start an authorization attempt; returns extra authorization URL parameters"""
        return {}

    def token_params(self, app_credentials: AppCredentials) -> Dict[str, str]:
        """Extra form fields for the token exchange of the current attempt"""
        if not app_credentials.secret:
            raise ConfigurationError("Client secret is required for the standard OAuth flow")
        return {"client_secret": app_credentials.secret}

    def finish(self) -> None:
        """End the current attempt"""


class PKCEAuthExtras(AuthExtras):
    """PKCE flavor: a new pair per attempt, verifier kept until the exchange"""

    def __init__(self, generator: Optional[PKCECodeGenerator] = None):
        self.generator = generator or PKCECodeGenerator()
        self.pair: Optional[PKCEPair] = None

    def begin(self) -> Dict[str, str]:
        self.pair = self.generator.generate()
        return {
            "code_challenge_method": "S256",
            "code_challenge": self.pair.code_challenge,
        }

    def token_params(self, app_credentials: AppCredentials) -> Dict[str, str]:
        if self.pair is None:
            raise ValueError("No PKCE verifier found. Start login flow first.")
        return {"code_verifier": self.pair.code_verifier}

    def finish(self) -> None:
        self.pair = None


def auth_extras_for(flavor: AuthFlavor, generator: Optional[PKCECodeGenerator] = None) -> AuthExtras:
    if flavor == AuthFlavor.PKCE:
        return PKCEAuthExtras(generator)
    return AuthExtras()
