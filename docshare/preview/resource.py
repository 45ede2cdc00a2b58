"""Short-lived, process-local handles onto fetched bytes."""
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

from docshare.models.schemas import RenderStrategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Blob:
    data: bytes
    content_type: str
    filename: str


class BlobStore:
    """
    In-memory registry of object URLs.

    Each `create` hands out a fresh, single-use URL under `prefix`; the bytes
    stay reachable through `get` until `revoke` is called for that URL.
    """

    def __init__(self, prefix: str = "/preview/blobs"):
        self.prefix = prefix.rstrip("/")
        self._blobs: Dict[str, Blob] = {}

    def create(self, data: bytes, content_type: str, filename: str) -> str:
        blob_id = uuid.uuid4().hex
        self._blobs[blob_id] = Blob(data=data, content_type=content_type, filename=filename)
        return f"{self.prefix}/{blob_id}"

    def _blob_id(self, url: str) -> str:
        return url.rsplit("/", 1)[-1]

    def get(self, url: str) -> Optional[Blob]:
        return self._blobs.get(self._blob_id(url))

    def revoke(self, url: str) -> bool:
        """Drop the bytes behind `url`. Returns False when nothing was held."""
        return self._blobs.pop(self._blob_id(url), None) is not None

    def __len__(self) -> int:
        return len(self._blobs)

    def __contains__(self, url: str) -> bool:
        return self._blob_id(url) in self._blobs


class PreviewResource:
    """
    Fetched document bytes made displayable through `access_url`.

    The owner must call `release()` once it stops showing the resource;
    repeated calls are no-ops.
    """

    def __init__(
        self,
        store: BlobStore,
        access_url: str,
        content_type: str,
        suggested_filename: str,
        strategy: RenderStrategy,
        size: int,
    ):
        self._store = store
        self.access_url = access_url
        self.content_type = content_type
        self.suggested_filename = suggested_filename
        self.strategy = strategy
        self.size = size
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        if not self._store.revoke(self.access_url):
            logger.warning(f"Blob for {self.access_url} was already gone at release")

    def __enter__(self) -> "PreviewResource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"PreviewResource({self.suggested_filename!r}, {self.strategy.value}, {state})"
