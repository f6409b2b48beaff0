from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from studiokit.domain.errors import EditValidationError

TONE_KINDS = frozenset(
    {"brightness", "contrast", "saturate", "grayscale", "sepia", "invert", "hue_rotate", "opacity"}
)


@dataclass(frozen=True)
class ToneOperation:
    """One secondary tonal operation.

    `amount` is a multiplier for brightness/contrast/saturate, a fraction in
    [0, 1] for grayscale/sepia/invert/opacity and degrees for hue_rotate.
    """

    kind: str
    amount: float

    def __post_init__(self) -> None:
        if self.kind not in TONE_KINDS:
            raise ValueError(f"Unsupported tone operation: {self.kind}")


# Preset name -> ordered operations layered on top of the base tonal stage.
FILTER_PRESETS: MappingProxyType[str, tuple[ToneOperation, ...]] = MappingProxyType(
    {
        "none": (),
        "grayscale": (ToneOperation("grayscale", 1.0),),
        "sepia": (ToneOperation("sepia", 1.0),),
        "invert": (ToneOperation("invert", 1.0),),
        "warm": (ToneOperation("sepia", 0.3), ToneOperation("saturate", 1.4)),
        "cool": (ToneOperation("hue_rotate", 180.0), ToneOperation("opacity", 0.9)),
        "vintage": (
            ToneOperation("sepia", 0.4),
            ToneOperation("saturate", 1.5),
            ToneOperation("contrast", 0.9),
            ToneOperation("brightness", 1.1),
        ),
        "bw-film": (
            ToneOperation("grayscale", 1.0),
            ToneOperation("contrast", 1.2),
            ToneOperation("brightness", 0.9),
        ),
        "neo-noir": (
            ToneOperation("contrast", 1.4),
            ToneOperation("brightness", 0.8),
            ToneOperation("saturate", 0.8),
        ),
        "polaroid": (
            ToneOperation("contrast", 0.8),
            ToneOperation("brightness", 1.2),
            ToneOperation("saturate", 1.2),
            ToneOperation("sepia", 0.2),
        ),
        "dramatic": (ToneOperation("contrast", 1.5), ToneOperation("brightness", 0.9)),
    }
)

FILTER_PRESET_NAMES: tuple[str, ...] = tuple(FILTER_PRESETS)


def preset_operations(name: str) -> tuple[ToneOperation, ...]:
    try:
        return FILTER_PRESETS[name]
    except KeyError:
        raise EditValidationError(f"Unknown filter preset: {name}") from None
