"""Preview view: binds at most one live PreviewResource to a view instance."""
import asyncio
import logging
from enum import Enum
from typing import Optional

from docshare.errors import DocShareError
from docshare.models.schemas import DocumentRef, PreviewSnapshot, RenderStrategy
from docshare.preview.acquire import PreviewAcquirer
from docshare.preview.resource import PreviewResource

logger = logging.getLogger(__name__)


class ViewState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class PreviewView:
    """
    State machine for one preview pane.

        IDLE -> LOADING -> READY | FAILED
        READY -> IDLE      (close)
        READY -> LOADING   (open another document)

    Every `open` starts a new generation. Whatever an older generation
    produces after being superseded is released on arrival and never shown.
    The held resource is always detached from the view before it is released,
    so nothing keeps pointing at a revoked access URL.
    """

    def __init__(self, acquirer: PreviewAcquirer):
        self.acquirer = acquirer
        self.state = ViewState.IDLE
        self.document: Optional[DocumentRef] = None
        self.error: Optional[str] = None
        self._resource: Optional[PreviewResource] = None
        self._generation = 0

    @property
    def resource(self) -> Optional[PreviewResource]:
        return self._resource

    @property
    def strategy(self) -> Optional[RenderStrategy]:
        return self._resource.strategy if self._resource else None

    def _drop_resource(self) -> None:
        resource, self._resource = self._resource, None
        if resource is not None:
            resource.release()

    def begin(self) -> int:
        """
        Reserve a generation for a request that still has to look up its
        document. Any open already in flight is superseded from here on.
        """
        self._generation += 1
        return self._generation

    def abandon(self, generation: int) -> None:
        """The request holding `generation` gave up before calling `open`."""
        if generation == self._generation and self.state == ViewState.LOADING:
            self.state = ViewState.IDLE
            self.document = None

    async def open(self, doc: DocumentRef, generation: Optional[int] = None) -> ViewState:
        """
        Load `doc` into the view, replacing whatever it showed before.
        With a `generation` from `begin`, a request overtaken in the meantime
        returns without fetching anything.
        """
        if generation is None:
            generation = self.begin()
        elif generation != self._generation:
            logger.info(f"Preview request for document {doc.id} was superseded before loading")
            return self.state

        self._drop_resource()
        self.state = ViewState.LOADING
        self.document = doc
        self.error = None

        try:
            resource = await self.acquirer.acquire(doc)
        except asyncio.CancelledError:
            if generation == self._generation:
                self.state = ViewState.IDLE
                self.document = None
            raise
        except DocShareError as e:
            if generation != self._generation:
                logger.info(f"Ignoring failure of superseded preview for document {doc.id}: {e.message}")
                return self.state
            self.state = ViewState.FAILED
            self.error = e.message
            logger.error(f"Preview failed for document {doc.id}: {e.__class__.__name__}: {e.message}")
            return self.state

        if generation != self._generation:
            logger.info(f"Discarding superseded preview for document {doc.id}")
            resource.release()
            return self.state

        self._resource = resource
        self.state = ViewState.READY
        return self.state

    def close(self) -> None:
        """Back to IDLE; also invalidates any request still in flight."""
        self._generation += 1
        self._drop_resource()
        self.state = ViewState.IDLE
        self.document = None
        self.error = None

    async def __aenter__(self) -> "PreviewView":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def snapshot(self) -> PreviewSnapshot:
        resource = self._resource
        return PreviewSnapshot(
            state=self.state.value,
            document=self.document,
            strategy=resource.strategy if resource else None,
            access_url=resource.access_url if resource else None,
            suggested_filename=resource.suggested_filename if resource else None,
            error=self.error,
        )
