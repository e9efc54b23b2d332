"""In-process store for downloaded videos, served as local blob URLs."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Dict
from uuid import uuid4

from utils.logger import get_logger

logger = get_logger("videos.blobs")

BLOB_URL_PREFIX = "/api/blobs"


@dataclass(frozen=True)
class VideoBlob:
    """A binary payload held in memory and addressable by a local URL."""
    id: str
    data: bytes = field(repr=False)
    mime_type: str
    created_at: str

    @property
    def url(self) -> str:
        return f"{BLOB_URL_PREFIX}/{self.id}"

    @property
    def size(self) -> int:
        return len(self.data)


class BlobStore:
    """Thread-safe map of blob id -> VideoBlob.

    Every blob must be released by its owner; nothing expires on its own.
    """

    def __init__(self):
        self._lock = Lock()
        self._blobs: Dict[str, VideoBlob] = {}

    def create(self, data: bytes, mime_type: str = "video/mp4") -> VideoBlob:
        """Wrap bytes in a new blob and return its handle."""
        blob = VideoBlob(
            id=str(uuid4()),
            data=data,
            mime_type=mime_type,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            self._blobs[blob.id] = blob
        logger.info(f"Created blob {blob.id} ({blob.size} bytes, {mime_type})")
        return blob

    def get(self, blob_id: str) -> VideoBlob:
        with self._lock:
            blob = self._blobs.get(blob_id)
        if blob is None:
            raise KeyError("blob not found")
        return blob

    def release(self, blob_id: str) -> bool:
        """Drop a blob. Returns False if it was already gone."""
        with self._lock:
            blob = self._blobs.pop(blob_id, None)
        if blob is None:
            return False
        logger.info(f"Released blob {blob_id} ({blob.size} bytes)")
        return True

    def clear(self) -> int:
        with self._lock:
            count = len(self._blobs)
            self._blobs.clear()
        if count:
            logger.info(f"Released {count} blob(s)")
        return count

    def total_bytes(self) -> int:
        with self._lock:
            return sum(blob.size for blob in self._blobs.values())

    def __contains__(self, blob_id: object) -> bool:
        with self._lock:
            return blob_id in self._blobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)


blob_store = BlobStore()
