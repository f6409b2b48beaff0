from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import numpy as np

from studiokit.domain.entities.edit_state import EditState
from studiokit.domain.errors import LoadError, RenderError, SessionClosedError
from studiokit.domain.services.parameter_store import ParameterStore
from studiokit.domain.services.processing_service import ProcessingService
from studiokit.domain.services.render_service import RenderService
from studiokit.infrastructure.codec.raster_codec import EXPORT_JPEG_QUALITY, encode_jpeg
from studiokit.timing import log_timing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedPreview:
    image: np.ndarray  # float32 RGBA in [0, 1]
    state: EditState
    is_live: bool

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])


def prepare_source(source: Any) -> np.ndarray:
    """Validate a caller raster and return a private, read-only RGBA copy.

    Accepts float arrays in [0, 1] or uint8 arrays, shaped (H, W), (H, W, 1),
    (H, W, 3) or (H, W, 4).

    Raises:
        LoadError: empty, wrongly shaped, non-numeric or non-finite input.
    """
    if source is None:
        raise LoadError("No source raster given")
    arr = np.asarray(source)
    if arr.ndim not in (2, 3):
        raise LoadError(f"Source raster must be 2-D or 3-D, got {arr.ndim}-D")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise LoadError(f"Source raster has zero size: {arr.shape[1]}x{arr.shape[0]}")
    if arr.ndim == 3 and arr.shape[2] not in (1, 3, 4):
        raise LoadError(f"Unsupported channel count: {arr.shape[2]}")
    if arr.dtype == np.uint8:
        arr = arr.astype(np.float32) / 255.0
    elif not np.issubdtype(arr.dtype, np.floating):
        raise LoadError(f"Unsupported raster dtype: {arr.dtype}")
    if not np.all(np.isfinite(arr)):
        raise LoadError("Source raster contains non-finite values")

    rgba = ProcessingService.to_rgba(arr)
    rgba.flags.writeable = False
    return rgba


@dataclass
class EditSession:
    """
    One open editing session over a single source raster.

    Two explicit slots drive rendering:
    - the committed state, `history[cursor]` in the parameter store
    - an optional live state, a transient overlay for continuous interactions

    Workflow:
    1. `begin(source)` resets history to the default state and renders it
    2. Slider drag → `live_update({...})` previews without touching history
    3. Slider release / button click → `commit_current({...})` records a snapshot
    4. `undo()` / `redo()` move the cursor and drop any live overlay
    5. `export_current()` encodes the committed snapshot as JPEG

    Every call renders synchronously before returning. A render failure closes
    the session and is re-raised to the caller.
    """

    renderer: RenderService = field(default_factory=RenderService)
    store: ParameterStore = field(default_factory=ParameterStore)
    _source: np.ndarray | None = field(default=None, init=False, repr=False)
    _live: EditState | None = field(default=None, init=False, repr=False)
    _preview: RenderedPreview | None = field(default=None, init=False, repr=False)

    # --------- lifecycle ---------
    def begin(self, source: Any) -> RenderedPreview:
        prepared = prepare_source(source)
        self._source = prepared
        self.store.reset()
        self._live = None
        self._preview = None
        logger.info("Edit session opened (%dx%d)", prepared.shape[1], prepared.shape[0])
        return self._render(self.store.current(), is_live=False)

    def close(self) -> None:
        if self._source is None:
            return
        if self._live is not None:
            logger.debug("Discarding uncommitted live state on close")
        self._source = None
        self._live = None
        self._preview = None
        self.store.reset()
        logger.info("Edit session closed")

    # --------- edits ---------
    def live_update(self, partial: Mapping[str, Any]) -> RenderedPreview:
        self._require_open()
        state = self.store.current().merged(partial)
        self._live = state
        return self._render(state, is_live=True)

    def commit_current(self, partial: Mapping[str, Any] | None = None) -> RenderedPreview:
        self._require_open()
        # merged onto the committed snapshot, never onto a stale live state
        state = self.store.current().merged(partial)
        self.store.commit(state)
        self._live = None
        logger.info("Committed edit %d: %s", self.store.cursor, state)
        return self._render(state, is_live=False)

    def rotate(self) -> RenderedPreview:
        """Commit one more clockwise quarter turn."""
        self._require_open()
        return self.commit_current(
            {"rotation_degrees": self.store.current().rotated().rotation_degrees}
        )

    def undo(self) -> RenderedPreview:
        self._require_open()
        state = self.store.undo()
        self._live = None
        logger.debug("Undo -> cursor %d", self.store.cursor)
        return self._render(state, is_live=False)

    def redo(self) -> RenderedPreview:
        self._require_open()
        state = self.store.redo()
        self._live = None
        logger.debug("Redo -> cursor %d", self.store.cursor)
        return self._render(state, is_live=False)

    def export_current(self) -> bytes:
        self._require_open()
        state = self.store.current()
        with log_timing("export render", logger):
            image = self._render_image(state)
        data = encode_jpeg(image, quality=EXPORT_JPEG_QUALITY)
        logger.info("Exported %dx%d JPEG (%d bytes)", image.shape[1], image.shape[0], len(data))
        return data

    # --------- read-only views ---------
    @property
    def is_open(self) -> bool:
        return self._source is not None

    @property
    def source_size(self) -> tuple[int, int]:
        self._require_open()
        return int(self._source.shape[1]), int(self._source.shape[0])

    @property
    def live_state(self) -> EditState | None:
        return self._live

    @property
    def committed_state(self) -> EditState:
        return self.store.current()

    @property
    def effective_state(self) -> EditState:
        return self._live if self._live is not None else self.store.current()

    @property
    def history(self) -> tuple[EditState, ...]:
        return self.store.history

    @property
    def cursor(self) -> int:
        return self.store.cursor

    @property
    def can_undo(self) -> bool:
        return self.store.can_undo

    @property
    def can_redo(self) -> bool:
        return self.store.can_redo

    @property
    def preview(self) -> RenderedPreview | None:
        return self._preview

    # --------- helpers ---------
    def _require_open(self) -> None:
        if self._source is None:
            raise SessionClosedError("Edit session is not open")

    def _render(self, state: EditState, is_live: bool) -> RenderedPreview:
        with log_timing("preview render", logger):
            image = self._render_image(state)
        self._preview = RenderedPreview(image=image, state=state, is_live=is_live)
        return self._preview

    def _render_image(self, state: EditState) -> np.ndarray:
        try:
            return self.renderer.render(self._source, state)
        except RenderError:
            logger.exception("Render failed; closing edit session")
            self.close()
            raise
