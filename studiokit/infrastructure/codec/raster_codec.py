from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image, UnidentifiedImageError

from studiokit.domain.errors import LoadError
from studiokit.domain.services.processing_service import ProcessingService

EXPORT_JPEG_QUALITY = 92


def decode_image_bytes(data: bytes) -> np.ndarray:
    """Decode encoded image bytes into a float32 RGBA array in [0, 1]."""
    if not data:
        raise LoadError("Image data is empty")
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise LoadError(f"Unreadable image: {exc}") from exc
    return np.asarray(rgba).astype(np.float32) / 255.0


def _to_uint8(array: np.ndarray) -> np.ndarray:
    # round rather than truncate so 0.5/255 steps survive a decode/encode cycle
    return np.rint(np.clip(array, 0.0, 1.0) * 255.0).astype("uint8")


def encode_jpeg(array: np.ndarray, quality: int = EXPORT_JPEG_QUALITY) -> bytes:
    """Encode as baseline JPEG. Transparent pixels are composited over black."""
    arr = np.asarray(array, dtype=np.float32)
    if arr.ndim == 2:
        img = Image.fromarray(_to_uint8(arr)).convert("RGB")
    else:
        rgb = ProcessingService.flatten(ProcessingService.to_rgba(arr))
        img = Image.fromarray(_to_uint8(rgb))
    buf = BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def encode_png(array: np.ndarray) -> bytes:
    """Lossless encoding that keeps the alpha channel."""
    rgba = ProcessingService.to_rgba(array)
    img = Image.fromarray(_to_uint8(rgba))
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
