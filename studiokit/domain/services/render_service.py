from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from studiokit.domain.entities.edit_state import EditState
from studiokit.domain.entities.filter_preset import ToneOperation, preset_operations
from studiokit.domain.errors import RenderError
from studiokit.domain.services.geometry_service import CropGeometry, resolve_geometry
from studiokit.domain.services.processing_service import ProcessingService


def build_tone_chain(state: EditState) -> tuple[ToneOperation, ...]:
    """Base brightness/contrast/saturation stage followed by the preset's operations."""
    base = (
        ToneOperation("brightness", state.brightness / 100.0),
        ToneOperation("contrast", state.contrast / 100.0),
        ToneOperation("saturate", state.saturation / 100.0),
    )
    return base + preset_operations(state.filter_preset)


def pixel_rect(geometry: CropGeometry, width: int, height: int) -> tuple[int, int, int, int]:
    """Snap an exact crop window to source pixels as (x_start, x_end, y_start, y_end).

    Fractional sizes truncate, the way a canvas truncates its width/height.
    """
    crop_w = max(1, int(geometry.crop_width))
    crop_h = max(1, int(geometry.crop_height))
    x0 = min(int(math.floor(geometry.crop_x)), width - crop_w)
    y0 = min(int(math.floor(geometry.crop_y)), height - crop_h)
    return x0, x0 + crop_w, y0, y0 + crop_h


@dataclass
class RenderService:
    """Deterministic `(source, EditState) -> RGBA raster` renderer.

    The source is expected in the working convention (float32 RGBA in [0, 1]);
    it is only read, never written.
    """

    processing: ProcessingService = field(default_factory=ProcessingService)

    def render(self, source: np.ndarray, state: EditState) -> np.ndarray:
        try:
            return self._render(source, state)
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(f"Render failed: {exc}") from exc

    def _render(self, source: np.ndarray, state: EditState) -> np.ndarray:
        if source.ndim != 3 or source.shape[2] != 4:
            raise RenderError(f"Source must be RGBA, got shape {source.shape}")
        h, w = source.shape[:2]
        geometry = resolve_geometry(w, h, state.crop_ratio, state.rotation_degrees)

        x0, x1, y0, y1 = pixel_rect(geometry, w, h)
        out = self.processing.crop(source, x0, x1, y0, y1)
        for op in build_tone_chain(state):
            out = self.processing.apply_tone(out, op)

        crop_h, crop_w = out.shape[:2]
        out_hw = (crop_w, crop_h) if geometry.is_rotated else (crop_h, crop_w)
        return self.processing.rotate(out, state.rotation_degrees % 360, out_hw=out_hw)
