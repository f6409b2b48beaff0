from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass, replace
from types import MappingProxyType
from typing import Any, Mapping

from studiokit.domain.entities.filter_preset import FILTER_PRESETS
from studiokit.domain.errors import EditValidationError

# Crop ratio name -> (width part, height part); None keeps the full source.
CROP_RATIOS: MappingProxyType[str, tuple[int, int] | None] = MappingProxyType(
    {
        "original": None,
        "1:1": (1, 1),
        "4:3": (4, 3),
        "16:9": (16, 9),
    }
)

# Inclusive ranges for the percentage sliders.
FIELD_RANGES: MappingProxyType[str, tuple[float, float]] = MappingProxyType(
    {
        "brightness": (50, 150),
        "contrast": (50, 150),
        "saturation": (0, 200),
    }
)

ROTATION_STEP = 90


@dataclass(frozen=True)
class EditState:
    """One immutable set of tonal/geometric parameters (one history entry)."""

    brightness: float = 100
    contrast: float = 100
    saturation: float = 100
    rotation_degrees: int = 0  # cumulative, never normalized
    crop_ratio: str = "original"
    filter_preset: str = "none"

    def merged(self, partial: Mapping[str, Any] | None) -> EditState:
        """Return a copy with `partial` overlaid. Numbers are clamped, enumerants validated."""
        if not partial:
            return self
        return replace(self, **normalize_partial(partial))

    def rotated(self, step: int = ROTATION_STEP) -> EditState:
        return replace(self, rotation_degrees=self.rotation_degrees + step)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


DEFAULT_STATE = EditState()

EDIT_FIELDS = frozenset(DEFAULT_STATE.to_dict())


def clamp_field(name: str, value: float) -> float:
    lo, hi = FIELD_RANGES[name]
    return min(max(value, lo), hi)


def _as_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise EditValidationError(f"{name} must be a number, got {value!r}")
    # ints of any size compare exactly against the bounds
    if isinstance(value, numbers.Integral):
        return int(value)
    number = float(value)
    if math.isnan(number):
        raise EditValidationError(f"{name} must not be NaN")
    return number


def normalize_partial(partial: Mapping[str, Any]) -> dict[str, Any]:
    """Validate and clamp a partial update without applying it.

    Raises:
        EditValidationError: unknown field, unknown crop ratio or preset,
            or a non-numeric value for a numeric field.
    """
    unknown = set(partial) - EDIT_FIELDS
    if unknown:
        raise EditValidationError(f"Unknown edit field(s): {', '.join(sorted(unknown))}")

    out: dict[str, Any] = {}
    for name, value in partial.items():
        if name in FIELD_RANGES:
            out[name] = clamp_field(name, _as_number(name, value))
        elif name == "rotation_degrees":
            number = _as_number(name, value)
            if isinstance(number, float) and math.isinf(number):
                raise EditValidationError("rotation_degrees must be finite")
            out[name] = int(number)
        elif name == "crop_ratio":
            if not isinstance(value, str) or value not in CROP_RATIOS:
                raise EditValidationError(f"Unknown crop ratio: {value!r}")
            out[name] = value
        elif name == "filter_preset":
            if not isinstance(value, str) or value not in FILTER_PRESETS:
                raise EditValidationError(f"Unknown filter preset: {value!r}")
            out[name] = value
    return out
