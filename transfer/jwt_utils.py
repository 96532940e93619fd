"""
JWT payload decoding (no signature verification)
"""
import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def decode_jwt(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decode JWT token without verification.

    Args:
        token: JWT access token

    Returns:
        Decoded JWT payload as dictionary, or None if the token is not a JWT
    """
    if not token or token.count(".") != 2:
        return None

    try:
        _, payload, _ = token.split(".")
        # JWT uses base64url without padding
        padded = payload + "=" * (-len(payload) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode()).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.debug(f"Error decoding JWT: {e}")
        return None

    return data if isinstance(data, dict) else None
