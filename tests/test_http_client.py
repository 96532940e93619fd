import io

import httpx
import pytest

from errors import AuthRefreshError, QuotaExceededError, RemoteRequestError
from oauth.credential_store import CredentialStore
from oauth.models import AppCredentials, AuthData
from transfer.http_client import AuthenticatedHttpClient

BASE_URL = "https://api.test"
TOKEN_URL = "https://api.test/oauth/token"


class Backend:
    """Answers resource calls from a queue of statuses and records what it saw"""

    def __init__(self, statuses, refresh_status=200):
        self.statuses = list(statuses)
        self.refresh_status = refresh_status
        self.calls = []
        self.refreshes = 0

    def __call__(self, request):
        if request.url.path == "/oauth/token":
            self.refreshes += 1
            if self.refresh_status != 200:
                return httpx.Response(self.refresh_status, text="refresh denied")
            return httpx.Response(200, json={"access_token": f"access-{self.refreshes + 1}"})

        self.calls.append((request.headers["Authorization"], request.content))
        status = self.statuses.pop(0) if self.statuses else 200
        return httpx.Response(status, text=f"status {status}")


def make_client(backend):
    transport = httpx.Client(transport=httpx.MockTransport(backend))
    store = CredentialStore(AppCredentials(key="key", secret="secret"), http_client=transport)
    store.get_or_create_credential(AuthData("access-1", "refresh-1", TOKEN_URL))
    return AuthenticatedHttpClient(BASE_URL, store, client=transport), transport


def test_success_attaches_bearer_token():
    backend = Backend([200])
    client, _ = make_client(backend)

    response = client.send("GET", "/things")

    assert response.status_code == 200
    assert backend.calls[0][0] == "Bearer access-1"
    assert backend.refreshes == 0


def test_401_refreshes_once_and_retries_once():
    backend = Backend([401, 200])
    client, _ = make_client(backend)

    response = client.send("GET", "/things")

    assert response.status_code == 200
    assert backend.refreshes == 1
    assert [auth for auth, _ in backend.calls] == ["Bearer access-1", "Bearer access-2"]


def test_second_401_raises_without_third_attempt():
    backend = Backend([401, 401, 200])
    client, _ = make_client(backend)

    with pytest.raises(AuthRefreshError) as exc_info:
        client.send("GET", "/things")

    assert exc_info.value.status_code == 401
    assert len(backend.calls) == 2
    assert backend.refreshes == 1


def test_failed_refresh_is_not_retried():
    backend = Backend([401], refresh_status=400)
    client, _ = make_client(backend)

    with pytest.raises(AuthRefreshError):
        client.send("GET", "/things")

    assert len(backend.calls) == 1


def test_413_raises_quota_exceeded_without_retry():
    backend = Backend([413])
    client, _ = make_client(backend)

    with pytest.raises(QuotaExceededError) as exc_info:
        client.send("POST", "/folders", json={"name": "x"})

    assert exc_info.value.status_code == 413
    assert len(backend.calls) == 1


def test_413_on_retry_is_still_quota_exceeded():
    backend = Backend([401, 413])
    client, _ = make_client(backend)

    with pytest.raises(QuotaExceededError):
        client.send("PUT", "/files/a", content=b"data")


def test_accepted_status_is_returned():
    backend = Backend([409])
    client, _ = make_client(backend)

    response = client.send("POST", "/folders", json={"name": "x"}, accept_statuses=(409,))

    assert response.status_code == 409


def test_409_without_acceptance_is_an_error():
    backend = Backend([409])
    client, _ = make_client(backend)

    with pytest.raises(RemoteRequestError) as exc_info:
        client.send("POST", "/folders", json={"name": "x"})

    assert exc_info.value.status_code == 409


def test_other_status_raises_remote_request_error_with_body():
    backend = Backend([500])
    client, _ = make_client(backend)

    with pytest.raises(RemoteRequestError) as exc_info:
        client.send("GET", "/things")

    error = exc_info.value
    assert error.status_code == 500
    assert "status=500" in str(error)
    assert "status 500" in str(error)


def test_stream_is_rewound_before_retry():
    payload = bytes(range(256)) * 400
    backend = Backend([401, 201])
    client, _ = make_client(backend)

    client.send("PUT", "/files/photo.jpg", content=io.BytesIO(payload), upload=True)

    assert len(backend.calls) == 2
    assert backend.calls[0][1] == payload
    assert backend.calls[1][1] == payload


def test_non_seekable_stream_is_rejected():
    client, _ = make_client(Backend([200]))

    def chunks():
        yield b"data"

    with pytest.raises(ValueError):
        client.send("PUT", "/files/a", content=chunks())


def test_close_leaves_injected_transport_open():
    client, transport = make_client(Backend([]))
    client.close()
    assert not transport.is_closed


def test_url_for_joins_relative_paths():
    client, _ = make_client(Backend([]))
    assert client.url_for("things") == "https://api.test/things"
    assert client.url_for("/things") == "https://api.test/things"
    assert client.url_for("https://other.test/x") == "https://other.test/x"
