"""Error taxonomy for credential handling and import jobs

Two families:
- TransferJobError: fatal for the session/job, always propagated
- TransferItemError: scoped to a single imported item, recorded and skipped
"""

from typing import Optional

# Response bodies can be large (HTML error pages, media echoes)
BODY_EXCERPT_LIMIT = 500


def excerpt(body: Optional[str], limit: int = BODY_EXCERPT_LIMIT) -> str:
    """Return a log-safe excerpt of a response body"""
    if not body:
        return ""
    if len(body) <= limit:
        return body
    return body[:limit] + "...[truncated]"


class TransferError(Exception):
    """Base class for all errors raised by this project"""


class TransferJobError(TransferError):
    """Error that aborts the whole import job"""


class TransferItemError(TransferError):
    """Error limited to one item; the job keeps going"""


class _HttpErrorMixin:
    status_code: Optional[int]
    body: str

    def _format(self, summary: str, status_code: Optional[int], message: str, body: str) -> str:
        parts = [summary]
        if status_code is not None:
            parts.append(f"status={status_code}")
        if message:
            parts.append(f"message={message}")
        if body:
            parts.append(f"body={excerpt(body)}")
        return " ".join(parts)


class AuthRefreshError(_HttpErrorMixin, TransferJobError):
    """Refresh token missing, expired or rejected, or a retried request was still unauthorized"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(self._format(message, status_code, "", body))


class QuotaExceededError(_HttpErrorMixin, TransferJobError):
    """Destination storage is full (HTTP 413)"""

    def __init__(self, message: str, status_code: Optional[int] = 413, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(self._format(message, status_code, "", body))


class ConfigurationError(TransferJobError):
    """Missing credentials, URLs or scopes detected at startup"""


class TokenExchangeError(_HttpErrorMixin, TransferJobError):
    """Authorization code could not be exchanged for tokens"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(self._format(message, status_code, "", body))


class RemoteRequestError(_HttpErrorMixin, TransferItemError):
    """Unexpected HTTP status from a resource endpoint"""

    def __init__(self, status_code: int, message: str = "", body: str = ""):
        self.status_code = status_code
        self.message = message
        self.body = body
        super().__init__(self._format("Got error code:", status_code, message, body))


class MalformedResponseError(TransferItemError):
    """Response body could not be parsed"""

    def __init__(self, message: str, body: str = ""):
        self.body = body
        if body:
            message = f"{message} body={excerpt(body)}"
        super().__init__(message)


class MissingParentError(TransferItemError):
    """A child item references a parent that was never imported"""

    def __init__(self, parent_key: str, item_key: str):
        self.parent_key = parent_key
        self.item_key = item_key
        super().__init__(
            f"Parent '{parent_key}' of item '{item_key}' has not been imported; "
            f"the parent import failed or the parent is not part of this job"
        )
