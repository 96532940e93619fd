"""OAuth configuration of the supported providers"""

from typing import Dict

import settings
from .models import AuthFlavor, OAuthProviderConfig

PHOTOS = "PHOTOS"
VIDEOS = "VIDEOS"
CALENDAR = "CALENDAR"
TASKS = "TASKS"
ORDER = "ORDER"


def pod_oauth_config() -> OAuthProviderConfig:
    scopes = {
        PHOTOS: frozenset({"openid"}),
        CALENDAR: frozenset({"openid"}),
        TASKS: frozenset({"openid"}),
    }
    return OAuthProviderConfig(
        service_name="Pod",
        auth_url=settings.POD_AUTH_URL,
        token_url=settings.POD_TOKEN_URL,
        export_scopes=scopes,
        import_scopes=scopes,
        auth_flavor=AuthFlavor.PKCE,
    )


def neil_oauth_config() -> OAuthProviderConfig:
    scopes = {
        PHOTOS: frozenset({"role_user"}),
        VIDEOS: frozenset({"role_user"}),
        ORDER: frozenset({"role_user"}),
    }
    return OAuthProviderConfig(
        service_name="Neil",
        auth_url=settings.NEIL_AUTH_URL,
        token_url=settings.NEIL_TOKEN_URL,
        export_scopes=scopes,
        import_scopes=scopes,
        auth_flavor=AuthFlavor.STANDARD,
    )


def get_provider_configs() -> Dict[str, OAuthProviderConfig]:
    return {
        "pod": pod_oauth_config(),
        "neil": neil_oauth_config(),
    }
