"""
Transfer extensions for the supported destinations.
Each extension binds a provider's OAuth configuration, app credentials and
importers, and has an explicit lifecycle.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional

import httpx
from pydantic import BaseModel

import settings
from config.loader import ConfigLoader, get_config_loader, load_app_credentials
from errors import ConfigurationError
from oauth.models import AppCredentials, AuthData, AuthFlavor, OAuthProviderConfig
from oauth.providers import CALENDAR, ORDER, PHOTOS, TASKS, VIDEOS, get_provider_configs
from .blob_store import JobBlobStore, LocalBlobStore
from .idempotent_executor import IdempotentImportExecutor, InMemoryIdempotentImportExecutor
from .importers import (
    CalendarImporter, Importer, OrdersImporter, PhotosImporter, TasksImporter, VideosImporter,
)
from .media import MediaStreamProvider
from .models import parse_container
from .pipeline import ImportReport
from .storage_client import StorageClientFactory

logger = logging.getLogger(__name__)


class ExtensionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


@dataclass
class ExtensionContext:
    """Host services handed to an extension at initialization"""
    config: ConfigLoader = field(default_factory=get_config_loader)
    blob_store: Optional[JobBlobStore] = None
    http_client: Optional[httpx.Client] = None
    upload_client: Optional[httpx.Client] = None
    media_provider: Optional[MediaStreamProvider] = None


class TransferExtension(ABC):
    """Abstract base class for destination extensions"""

    service_id: str = ""
    env_prefix: str = ""
    supported_types: FrozenSet[str] = frozenset()

    def __init__(self):
        self.state = ExtensionState.UNINITIALIZED
        self.oauth_config: Optional[OAuthProviderConfig] = None
        self.app_credentials: Optional[AppCredentials] = None
        self._importers: Dict[str, Importer] = {}
        self.media_provider: Optional[MediaStreamProvider] = None
        self._owns_media_provider = False

    def initialize(self, context: ExtensionContext) -> ExtensionState:
        """Load credentials and build importers

        Configuration problems are logged and leave the extension FAILED
        rather than raising into the host.

        Returns:
            The resulting lifecycle state
        """
        if self.state == ExtensionState.READY:
            logger.debug(f"{self.service_id} extension already initialized")
            return self.state

        try:
            oauth_config = self.oauth_config_factory()
            oauth_config.validate()
            app_credentials = load_app_credentials(
                self.env_prefix,
                require_secret=self.requires_secret(oauth_config),
                loader=context.config,
            )
        except ConfigurationError as e:
            logger.error(f"{self.service_id} extension not initialized: {e}")
            self.state = ExtensionState.FAILED
            return self.state

        self.oauth_config = oauth_config
        self.app_credentials = app_credentials
        factory = StorageClientFactory(
            self.base_url(),
            app_credentials,
            auth_flavor=oauth_config.auth_flavor,
            token_url=oauth_config.token_url,
            client=context.http_client,
            upload_client=context.upload_client,
        )
        if context.media_provider is not None:
            self.media_provider = context.media_provider
        else:
            self.media_provider = MediaStreamProvider()
            self._owns_media_provider = True
        self._importers = self.build_importers(factory, context)
        self.state = ExtensionState.READY
        logger.info(f"{self.service_id} extension ready for {', '.join(sorted(self._importers))}")
        return self.state

    def get_importer(self, data_type: str) -> Importer:
        if self.state != ExtensionState.READY:
            raise RuntimeError(f"{self.service_id} extension is {self.state.value}, not ready")
        if data_type not in self.supported_types:
            raise ValueError(f"{self.service_id} does not support import of {data_type}")
        return self._importers[data_type]

    def close(self) -> None:
        """Release the media provider if this extension created it"""
        if self._owns_media_provider and self.media_provider is not None:
            self.media_provider.close()
        self.media_provider = None
        self._owns_media_provider = False
        self._importers = {}
        self.state = ExtensionState.UNINITIALIZED

    @staticmethod
    def requires_secret(oauth_config: OAuthProviderConfig) -> bool:
        return oauth_config.auth_flavor == AuthFlavor.STANDARD

    def oauth_config_factory(self) -> OAuthProviderConfig:
        return get_provider_configs()[self.service_id]

    @abstractmethod
    def base_url(self) -> str:
        pass

    @abstractmethod
    def build_importers(self, factory: StorageClientFactory, context: ExtensionContext) -> Dict[str, Importer]:
        pass


class PodTransferExtension(TransferExtension):
    service_id = "pod"
    env_prefix = "POD"
    supported_types = frozenset({PHOTOS, CALENDAR, TASKS})

    def base_url(self) -> str:
        return settings.POD_BASE_URL

    def build_importers(self, factory: StorageClientFactory, context: ExtensionContext) -> Dict[str, Importer]:
        blob_store = context.blob_store or LocalBlobStore()
        return {
            PHOTOS: PhotosImporter(factory, blob_store, self.media_provider),
            CALENDAR: CalendarImporter(factory),
            TASKS: TasksImporter(factory),
        }


class NeilTransferExtension(TransferExtension):
    service_id = "neil"
    env_prefix = "NEIL"
    supported_types = frozenset({PHOTOS, VIDEOS, ORDER})

    def base_url(self) -> str:
        return settings.NEIL_BASE_URL

    def build_importers(self, factory: StorageClientFactory, context: ExtensionContext) -> Dict[str, Importer]:
        blob_store = context.blob_store or LocalBlobStore()
        return {
            PHOTOS: PhotosImporter(factory, blob_store, self.media_provider),
            VIDEOS: VideosImporter(factory, self.media_provider),
            ORDER: OrdersImporter(factory),
        }


EXTENSIONS = {
    PodTransferExtension.service_id: PodTransferExtension,
    NeilTransferExtension.service_id: NeilTransferExtension,
}


def get_extension(service_id: str) -> TransferExtension:
    try:
        return EXTENSIONS[service_id]()
    except KeyError:
        raise ValueError(f"Unknown service '{service_id}'. Known: {', '.join(sorted(EXTENSIONS))}") from None


class ImportJob:
    """One import of one container into a destination

    Every job gets its own executor, so keys never leak between jobs.
    Running the same job again reuses that executor and skips what
    already succeeded.
    """

    def __init__(
        self,
        extension: TransferExtension,
        data_type: str,
        auth_data: AuthData,
        job_id: Optional[str] = None,
        executor: Optional[IdempotentImportExecutor] = None,
    ):
        self.job_id = job_id or str(uuid.uuid4())
        self.extension = extension
        self.data_type = data_type
        self.auth_data = auth_data
        self.executor = executor or InMemoryIdempotentImportExecutor(self.job_id)

    def run(self, payload) -> ImportReport:
        """Import a container given as a model or a JSON-compatible dict"""
        importer = self.extension.get_importer(self.data_type)
        resource = payload if isinstance(payload, BaseModel) else parse_container(self.data_type, payload)
        logger.info(f"[{self.job_id}] Importing {self.data_type} into {self.extension.service_id}")
        return importer.import_item(self.job_id, self.executor, self.auth_data, resource)
