"""Download remote media into rewindable local streams"""

import logging
import tempfile
from typing import BinaryIO, Optional

import httpx

import settings
from errors import RemoteRequestError

logger = logging.getLogger(__name__)

# Media below this size stays in memory
SPOOL_MAX_BYTES = 8 * 1024 * 1024


class MediaStreamProvider:
    """Fetches source media (photo/video content URLs) for upload"""

    def __init__(self, client: Optional[httpx.Client] = None):
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(settings.FILE_UPLOAD_READ_TIMEOUT, connect=settings.CONNECT_TIMEOUT),
            follow_redirects=True,
        )

    def open(self, url: str) -> BinaryIO:
        """Download url into a spooled temp file positioned at the start

        The caller owns and must close the returned stream.

        Raises:
            RemoteRequestError: If the source answers with a non-2xx status
        """
        spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES)
        try:
            with self._client.stream("GET", url) as response:
                if response.status_code < 200 or response.status_code > 299:
                    response.read()
                    raise RemoteRequestError(response.status_code, response.reason_phrase, response.text)
                for chunk in response.iter_bytes():
                    spool.write(chunk)
        except BaseException:
            spool.close()
            raise
        spool.seek(0)
        logger.debug(f"Downloaded media from {url}")
        return spool

    def close(self) -> None:
        self._client.close()
