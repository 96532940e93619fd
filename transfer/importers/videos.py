"""Imports albums and videos"""

import logging
from typing import List, Optional, Tuple

from oauth.providers import VIDEOS
from ..idempotent_executor import IdempotentImportExecutor
from ..media import MediaStreamProvider
from ..models import VideoAlbum, VideoObject, VideosContainerResource
from ..pipeline import ChildTask, ParentTask
from ..storage_client import StorageClient, StorageClientFactory, join_path, trim_description
from .base import Importer, item_key, parent_key

logger = logging.getLogger(__name__)


class VideosImporter(Importer):
    resource_kind = VIDEOS

    def __init__(self, client_factory: StorageClientFactory, media_provider: MediaStreamProvider):
        super().__init__(client_factory)
        self.media_provider = media_provider

    def plan(
        self,
        job_id: str,
        client: StorageClient,
        executor: IdempotentImportExecutor,
        resource: VideosContainerResource,
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
                item_key("video", video.album_id, video.data_id),
                video.name,
                parent_key("album", video.album_id) if video.album_id else None,
                lambda parent_path, video=video: self._import_single_video(video, parent_path, client),
            )
            for video in resource.videos
        ]
        return parents, children

    def _create_album_folder(self, album: VideoAlbum, client: StorageClient) -> str:
        logger.debug(f"Create folder {album.name}")
        full_path = client.ensure_folder(client.ensure_root_folder(), album.name)
        description = trim_description(album.description)
        if description:
            client.add_description(full_path, description)
        return full_path

    def _import_single_video(self, video: VideoObject, parent_path: Optional[str], client: StorageClient) -> str:
        logger.debug(f"Import single video {video.name}")
        parent_path = parent_path or client.ensure_videos_folder()
        full_path = join_path(parent_path, video.name)

        if client.file_exists(full_path):
            logger.debug(f"Video already exists {video.name}")
            return full_path

        stream = self.media_provider.open(video.content_url)
        try:
            return client.upload_file(parent_path, video.name, stream, video.encoding_format, video.description)
        finally:
            stream.close()
