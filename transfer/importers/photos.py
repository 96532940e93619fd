"""Imports albums and photos"""

import datetime
import logging
from typing import BinaryIO, List, Optional, Tuple

from errors import TransferItemError
from oauth.providers import PHOTOS
from ..blob_store import JobBlobStore
from ..idempotent_executor import IdempotentImportExecutor
from ..media import MediaStreamProvider
from ..models import PhotoAlbum, PhotoModel, PhotosContainerResource
from ..pipeline import ChildTask, ParentTask
from ..storage_client import StorageClient, StorageClientFactory, join_path, trim_description
from .base import Importer, item_key, parent_key

logger = logging.getLogger(__name__)

TITLE_DATE_FORMAT = "%Y-%m-%d %H.%M.%S "


def build_photo_title(title: str, date_created: Optional[datetime.datetime]) -> str:
    if date_created is None:
        return title
    return date_created.strftime(TITLE_DATE_FORMAT) + title


class PhotosImporter(Importer):
    resource_kind = PHOTOS

    def __init__(
        self,
        client_factory: StorageClientFactory,
        blob_store: JobBlobStore,
        media_provider: MediaStreamProvider,
    ):
        super().__init__(client_factory)
        self.blob_store = blob_store
        self.media_provider = media_provider

    def plan(
        self,
        job_id: str,
        client: StorageClient,
        executor: IdempotentImportExecutor,
        resource: PhotosContainerResource,
    ) -> Tuple[List[ParentTask], List[ChildTask]]:
        parents = [
            ParentTask(
                parent_key("album", album.id),
                album.name,
                lambda album=album: self._create_album_folder(album, client),
            )
            for album in resource.albums
        ]
        children = [
            ChildTask(
                item_key("photo", photo.album_id, photo.data_id),
                photo.title,
                parent_key("album", photo.album_id) if photo.album_id else None,
                lambda parent_path, photo=photo: self._import_single_photo(job_id, photo, parent_path, client),
            )
            for photo in resource.photos
        ]
        return parents, children

    def _create_album_folder(self, album: PhotoAlbum, client: StorageClient) -> str:
        logger.debug(f"Create folder {album.name}")
        full_path = client.ensure_folder(client.ensure_root_folder(), album.name)
        description = trim_description(album.description)
        if description:
            client.add_description(full_path, description)
        return full_path

    def _open_stream(self, job_id: str, photo: PhotoModel) -> BinaryIO:
        if photo.in_temp_store:
            if not photo.fetchable_url:
                raise TransferItemError(f"No temp store handle for {photo.title}")
            return self.blob_store.get_stream(job_id, photo.fetchable_url)
        if photo.fetchable_url:
            return self.media_provider.open(photo.fetchable_url)
        raise TransferItemError(f"Don't know how to get the stream for {photo.title}")

    def _import_single_photo(
        self,
        job_id: str,
        photo: PhotoModel,
        parent_path: Optional[str],
        client: StorageClient,
    ) -> str:
        logger.debug(f"Import single photo {photo.title}")
        parent_path = parent_path or client.ensure_root_folder()
        title = build_photo_title(photo.title, photo.uploaded_time)
        full_path = join_path(parent_path, title)

        if client.file_exists(full_path):
            logger.debug(f"Photo already exists {full_path}")
            return full_path

        stream = self._open_stream(job_id, photo)
        try:
            uploaded = client.upload_file(parent_path, title, stream, photo.media_type, photo.description)
        finally:
            stream.close()

        if photo.in_temp_store:
            try:
                self.blob_store.remove_data(job_id, photo.fetchable_url)
            except OSError as e:
                # The upload succeeded; a leftover temp blob must not fail the item
                logger.info(f"Error removing data for job {job_id}, handle {photo.fetchable_url}: {e}")
        return uploaded
