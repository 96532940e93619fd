"""Job-scoped blob store for media staged before upload"""

import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Optional

import settings

logger = logging.getLogger(__name__)


class JobBlobStore(ABC):
    """Temporary storage of large media for a running job"""

    @abstractmethod
    def get_stream(self, job_id: str, handle: str) -> BinaryIO:
        """Open the blob for reading; the caller closes the stream"""

    @abstractmethod
    def remove_data(self, job_id: str, handle: str) -> None:
        """Delete the blob once it has been uploaded"""


class LocalBlobStore(JobBlobStore):
    """Blob store on the local filesystem under ``<root>/<job_id>/<handle>``"""

    def __init__(self, root_dir: Optional[str] = None):
        self.root = Path(root_dir or settings.BLOB_STORE_DIR)

    def _path(self, job_id: str, handle: str) -> Path:
        # Handles are opaque ids, never paths
        safe_handle = handle.replace("/", "_").replace("\\", "_")
        return self.root / str(job_id) / safe_handle

    def create(self, job_id: str, handle: str, stream: BinaryIO) -> str:
        path = self._path(job_id, handle)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            shutil.copyfileobj(stream, f)
        logger.debug(f"[{job_id}] Stored blob {handle} at {path}")
        return handle

    def get_stream(self, job_id: str, handle: str) -> BinaryIO:
        path = self._path(job_id, handle)
        if not path.exists():
            raise FileNotFoundError(f"No blob {handle} for job {job_id}")
        return open(path, "rb")

    def remove_data(self, job_id: str, handle: str) -> None:
        path = self._path(job_id, handle)
        if path.exists():
            path.unlink()
