"""Shared fixtures: an in-process fake of the destination storage API"""

import json
import threading
from urllib.parse import parse_qs

import httpx
import pytest

from oauth.models import AppCredentials, AuthData
from transfer.storage_client import StorageClientFactory

BASE_URL = "https://dest.test"
TOKEN_URL = "https://dest.test/token"
FILES_API = "/api/v2/mounts/primary/files"


class FakeStorageServer:
    """Folder/file API with bearer auth, refresh endpoint and an optional quota"""

    def __init__(self, access_token="access-1", refresh_token="refresh-1"):
        self.valid_tokens = {access_token}
        self.refresh_token = refresh_token
        self.refresh_count = 0
        self.refresh_forms = []
        self.folders = {"/"}
        self.files = {}
        self.tags = {}
        self.orders = []
        self.requests = []
        self.max_uploads = None
        self._lock = threading.Lock()

    def expire_tokens(self):
        self.valid_tokens = set()

    def calls(self, method, path_suffix):
        return [r for r in self.requests if r.method == method and r.url.path.endswith(path_suffix)]

    @property
    def uploads(self):
        return [r for r in self.requests if r.method == "PUT"]

    def handle(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            return self._handle(request)

    def _handle(self, request):
        if request.url.path == "/token":
            return self._refresh(request)

        self.requests.append(request)
        token = request.headers.get("Authorization", "").replace("Bearer ", "")
        if token not in self.valid_tokens:
            return httpx.Response(401, text="invalid_token")

        path = request.url.path
        if request.method == "GET" and path == f"{FILES_API}/info":
            target = request.url.params["path"]
            if target in self.files or target in self.folders:
                return httpx.Response(200, json={"path": target})
            return httpx.Response(404, text="not found")

        if request.method == "POST" and path == f"{FILES_API}/folder":
            parent = request.url.params["path"]
            name = json.loads(request.content)["name"]
            full = f"{parent.rstrip('/')}/{name}"
            if full in self.folders:
                return httpx.Response(409, text="already exists")
            self.folders.add(full)
            return httpx.Response(201, json={"path": full})

        if request.method == "POST" and path == f"{FILES_API}/tags/add":
            self.tags[request.url.params["path"]] = json.loads(request.content)["tags"]
            return httpx.Response(200, json={})

        if request.method == "GET" and path == "/order/importOrder":
            self.orders.append(json.loads(request.url.params["jsonStr"]))
            return httpx.Response(200, json={"code": 0})

        if request.method == "PUT":
            if self.max_uploads is not None and len(self.files) >= self.max_uploads:
                return httpx.Response(413, text="storage full")
            self.files[path] = request.content
            return httpx.Response(201)

        return httpx.Response(500, text=f"unexpected {request.method} {path}")

    def _refresh(self, request):
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.refresh_forms.append(form)
        if form.get("refresh_token") != self.refresh_token:
            return httpx.Response(400, json={"error": "invalid_grant"})
        self.refresh_count += 1
        new_token = f"access-{self.refresh_count + 1}"
        self.valid_tokens = {new_token}
        return httpx.Response(200, json={"access_token": new_token, "expires_in": 3600})


@pytest.fixture
def server():
    return FakeStorageServer()


@pytest.fixture
def http(server):
    client = httpx.Client(transport=httpx.MockTransport(server.handle))
    yield client
    client.close()


@pytest.fixture
def auth_data():
    return AuthData(access_token="access-1", refresh_token="refresh-1", token_server_url=TOKEN_URL)


@pytest.fixture
def app_credentials():
    return AppCredentials(key="client-key", secret="client-secret")


@pytest.fixture
def client_factory(http, app_credentials):
    return StorageClientFactory(BASE_URL, app_credentials, token_url=TOKEN_URL, client=http)
