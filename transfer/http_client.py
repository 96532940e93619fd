"""Bearer-authenticated HTTP client with a single refresh-and-retry on 401"""

import logging
from typing import Any, Callable, Collection, Dict, Optional

import httpx

import settings
from errors import AuthRefreshError, QuotaExceededError, RemoteRequestError
from oauth.credential_store import CredentialStore

logger = logging.getLogger(__name__)


def default_timeout() -> httpx.Timeout:
    return httpx.Timeout(settings.REQUEST_TIMEOUT, connect=settings.CONNECT_TIMEOUT)


def upload_timeout() -> httpx.Timeout:
    return httpx.Timeout(
        settings.REQUEST_TIMEOUT,
        connect=settings.CONNECT_TIMEOUT,
        read=settings.FILE_UPLOAD_READ_TIMEOUT,
        write=settings.FILE_UPLOAD_WRITE_TIMEOUT,
    )


def _rewinder(content: Any) -> Callable[[], None]:
    """Return a callable restoring a stream body to its current position"""
    if content is None or isinstance(content, (bytes, str)):
        return lambda: None
    if not (hasattr(content, "seek") and hasattr(content, "tell")):
        raise ValueError("Request body streams must be seekable so they can be re-sent after a token refresh")
    start = content.tell()
    return lambda: content.seek(start)


class AuthenticatedHttpClient:
    """Sends requests to one provider with the session's bearer token

    Status policy:
    - 401: refresh the credential once and retry once; a second 401 raises AuthRefreshError
    - 413: QuotaExceededError, never retried
    - statuses in ``accept_statuses`` (e.g. 409 on folder creation) are returned as-is
    - anything else outside 2xx: RemoteRequestError
    """

    def __init__(
        self,
        base_url: str,
        credential_store: CredentialStore,
        client: Optional[httpx.Client] = None,
        upload_client: Optional[httpx.Client] = None,
    ):
        """Initialize the client

        Args:
            base_url: Provider base URL; relative request paths are joined to it
            credential_store: Store owning the session credential
            client: Transport for API calls (default: new client with REQUEST_TIMEOUT)
            upload_client: Transport for streamed uploads (default: ``client`` if given,
                otherwise a new client with upload timeouts)
        """
        self.base_url = base_url.rstrip("/")
        self.credential_store = credential_store
        self._owned = []
        if upload_client is None:
            # An injected transport serves uploads too
            upload_client = client or httpx.Client(timeout=upload_timeout())
            if client is None:
                self._owned.append(upload_client)
        if client is None:
            client = httpx.Client(timeout=default_timeout())
            self._owned.append(client)
        self._client = client
        self._upload_client = upload_client

    def close(self) -> None:
        """Close the transports this instance created; injected ones stay open"""
        for client in self._owned:
            client.close()
        self._owned = []

    def __enter__(self) -> "AuthenticatedHttpClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def url_for(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    def send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        content: Any = None,
        headers: Optional[Dict[str, str]] = None,
        accept_statuses: Collection[int] = (),
        upload: bool = False,
    ) -> httpx.Response:
        """Execute a request with the current access token

        Args:
            method: HTTP method
            path: Path relative to the base URL, or an absolute URL
            params: Query parameters
            json: JSON body
            content: Raw body; bytes or a seekable binary stream
            headers: Extra headers (Authorization is always set here)
            accept_statuses: Non-2xx statuses the caller handles itself
            upload: Use the upload transport (longer read/write timeouts)

        Returns:
            The (fully read) response

        Raises:
            AuthRefreshError: If the refresh fails or the retry is still unauthorized
            QuotaExceededError: On HTTP 413
            RemoteRequestError: On any other unexpected status
        """
        client = self._upload_client if upload else self._client
        url = self.url_for(path)
        rewind = _rewinder(content)

        token = self.credential_store.get_access_token()
        response = self._execute(client, method, url, token, params, json, content, headers)

        if response.status_code == 401:
            response.close()
            logger.info(f"{method} {url} returned 401, refreshing credential")
            self.credential_store.refresh(stale_access_token=token)

            # The first attempt may have consumed part of the stream
            rewind()
            token = self.credential_store.credential.access_token
            response = self._execute(client, method, url, token, params, json, content, headers)

            if response.status_code == 401:
                response.close()
                raise AuthRefreshError(
                    f"Still unauthorized after token refresh: {method} {url}",
                    response.status_code,
                    response.text,
                )

        self._check_status(method, url, response, accept_statuses)
        return response

    def _execute(self, client, method, url, token, params, json, content, headers) -> httpx.Response:
        request_headers = dict(headers or {})
        request_headers["Authorization"] = f"Bearer {token}"
        logger.debug(f"{method} {url}")
        return client.request(
            method,
            url,
            params=params,
            json=json,
            content=content,
            headers=request_headers,
        )

    @staticmethod
    def _check_status(method: str, url: str, response: httpx.Response, accept_statuses: Collection[int]) -> None:
        code = response.status_code
        if code == 413:
            raise QuotaExceededError(f"Destination quota exceeded: {method} {url}", code, response.text)
        if 200 <= code <= 299 or code in accept_statuses:
            return
        raise RemoteRequestError(code, response.reason_phrase, response.text)
