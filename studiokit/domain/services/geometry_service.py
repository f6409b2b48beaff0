from __future__ import annotations

from dataclasses import dataclass

from studiokit.domain.entities.edit_state import CROP_RATIOS
from studiokit.domain.errors import EditValidationError, LoadError


@dataclass(frozen=True)
class CropGeometry:
    """Crop window in source pixels plus the rotated output bounding box.

    Values are exact (unrounded) floats; pixel snapping is left to the renderer.
    """

    crop_x: float
    crop_y: float
    crop_width: float
    crop_height: float
    output_width: float
    output_height: float
    is_rotated: bool


def resolve_geometry(
    width: float, height: float, crop_ratio: str, rotation_degrees: int
) -> CropGeometry:
    """Compute the centered crop window and the output box for a source size.

    A ratio wider than the source trims height, narrower trims width; the kept
    window is always centered. Quarter and three-quarter turns swap the output
    box dimensions.
    """
    if width <= 0 or height <= 0:
        raise LoadError(f"Source must have nonzero size, got {width}x{height}")
    try:
        parts = CROP_RATIOS[crop_ratio]
    except (KeyError, TypeError):
        raise EditValidationError(f"Unknown crop ratio: {crop_ratio!r}") from None

    crop_w, crop_h = float(width), float(height)
    crop_x = crop_y = 0.0
    if parts is not None:
        rw, rh = parts
        target = rw / rh
        if width / height > target:
            # source is wider than target: trim the sides
            crop_w = height * target
            crop_x = (width - crop_w) / 2
        else:
            crop_h = width / target
            crop_y = (height - crop_h) / 2

    is_rotated = rotation_degrees % 180 != 0
    out_w, out_h = (crop_h, crop_w) if is_rotated else (crop_w, crop_h)
    return CropGeometry(
        crop_x=crop_x,
        crop_y=crop_y,
        crop_width=crop_w,
        crop_height=crop_h,
        output_width=out_w,
        output_height=out_h,
        is_rotated=is_rotated,
    )
