"""Minimal REST client for the destination's folder/file storage API"""

import json
import logging
import re
import threading
from typing import Any, BinaryIO, Optional
from urllib.parse import quote

import httpx

import settings
from oauth.credential_store import CredentialStore
from oauth.models import AppCredentials, AuthData, AuthFlavor
from .http_client import AuthenticatedHttpClient
from .jwt_utils import decode_jwt

logger = logging.getLogger(__name__)

API_PATH_PREFIX = "/api/v2"
ROOT_NAME = "r"
VIDEOS_FOLDER = "Videos"

WEBID_OWNER_PATTERN = re.compile(r"https?://[^/]*/([^/]*).*")


def ensure_front_slash(value: Optional[str]) -> str:
    if not value:
        return ""
    return "/" + value.lstrip("/\\")


def remove_trailing_slash(value: Optional[str]) -> str:
    if not value:
        return ""
    return value.rstrip("/\\")


def join_path(parent: str, name: str) -> str:
    return f"{remove_trailing_slash(parent)}/{name}"


def trim_description(description: Optional[str], limit: int = settings.MAX_DESCRIPTION_LENGTH) -> Optional[str]:
    if description is None:
        return None
    return description[:limit]


class StorageClient:
    """Folder and file operations on the destination

    Folder and tag creation treat 409 (already exists) as success so that a
    re-run job does not fail on resources created by an earlier attempt.
    """

    def __init__(self, http: AuthenticatedHttpClient):
        self.http = http
        self._ensured_folders = set()
        self._folders_lock = threading.Lock()

    def file_exists(self, path: str) -> bool:
        response = self.http.send(
            "GET",
            f"{API_PATH_PREFIX}/mounts/primary/files/info",
            params={"path": path},
            accept_statuses=(404,),
        )
        return response.status_code != 404

    def ensure_folder(self, parent_path: str, name: str) -> str:
        self.http.send(
            "POST",
            f"{API_PATH_PREFIX}/mounts/primary/files/folder",
            params={"path": parent_path},
            json={"name": name},
            accept_statuses=(409,),
        )
        return join_path(parent_path, name)

    def get_root_path(self) -> str:
        return "/" + ROOT_NAME

    def ensure_root_folder(self) -> str:
        with self._folders_lock:
            if "/" not in self._ensured_folders:
                self.ensure_folder("/", ROOT_NAME)
                self._ensured_folders.add("/")
        return self.get_root_path()

    def ensure_top_level_folder(self, name: str) -> str:
        """Folder directly under the root, created at most once per client"""
        root = self.ensure_root_folder()
        with self._folders_lock:
            if name not in self._ensured_folders:
                self.ensure_folder(root, name)
                self._ensured_folders.add(name)
        return join_path(root, name)

    def ensure_videos_folder(self) -> str:
        """Folder for videos that belong to no album"""
        return self.ensure_top_level_folder(VIDEOS_FOLDER)

    def add_description(self, path: str, description: str) -> None:
        self.http.send(
            "POST",
            f"{API_PATH_PREFIX}/mounts/primary/files/tags/add",
            params={"path": path},
            json={"tags": {"description": [description]}},
            accept_statuses=(409,),
        )

    def upload_file(
        self,
        parent_path: str,
        name: str,
        stream: BinaryIO,
        media_type: str,
        description: Optional[str] = None,
    ) -> str:
        """PUT a file under parent_path and return its full path

        The stream must be seekable; it is rewound if the upload is retried
        after a token refresh. The caller closes it.
        """
        full_path = join_path(parent_path, name)
        self.http.send(
            "PUT",
            self._content_url(full_path),
            content=stream,
            headers={"Content-Type": media_type},
            upload=True,
        )

        description = trim_description(description)
        if description:
            self.add_description(full_path, description)
        return full_path

    def json_path(self, folder: str, title: str) -> str:
        return ensure_front_slash(remove_trailing_slash(folder)) + ensure_front_slash(remove_trailing_slash(title))

    def upload_json(self, folder: str, title: str, payload: Any) -> str:
        body = payload if isinstance(payload, str) else json.dumps(payload)
        full_path = self.json_path(folder, title)
        self.http.send(
            "PUT",
            self._content_url(full_path),
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
            upload=True,
        )
        return full_path

    def close(self) -> None:
        self.http.close()

    def owner(self) -> str:
        """Content owner segment taken from the access token's webid claim"""
        credential = self.http.credential_store.credential
        claims = decode_jwt(credential.access_token) if credential else None
        webid = (claims or {}).get("webid")
        if not isinstance(webid, str):
            return ""
        match = WEBID_OWNER_PATTERN.match(webid)
        return match.group(1) if match else ""

    def _content_url(self, full_path: str) -> str:
        segments = [quote(part) for part in full_path.split("/")]
        return ensure_front_slash(self.owner()) + ensure_front_slash("/".join(segments))


class StorageClientFactory:
    """Creates a StorageClient (and its credential) per import invocation"""

    def __init__(
        self,
        base_url: str,
        app_credentials: AppCredentials,
        auth_flavor: AuthFlavor = AuthFlavor.STANDARD,
        token_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        upload_client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url
        self.app_credentials = app_credentials
        self.auth_flavor = auth_flavor
        self.token_url = token_url
        self.client = client
        self.upload_client = upload_client

    def create(self, auth_data: AuthData) -> StorageClient:
        store = CredentialStore(
            self.app_credentials,
            auth_flavor=self.auth_flavor,
            token_url=self.token_url,
            http_client=self.client,
        )
        # Ensure credential is populated before any request
        store.get_or_create_credential(auth_data)
        http = AuthenticatedHttpClient(
            self.base_url,
            store,
            client=self.client,
            upload_client=self.upload_client,
        )
        return StorageClient(http)
