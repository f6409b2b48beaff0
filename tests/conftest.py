import io
import os
import sys
from pathlib import Path

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root is on sys.path so 'studiokit' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("EDITOR_MAX_SESSIONS", "16")


@pytest.fixture(scope="session")
def client() -> TestClient:
    # lazy import after env configured
    from studiokit.main import create_app

    app = create_app()
    return TestClient(app)


@pytest.fixture()
def gradient_rgb() -> np.ndarray:
    """6 wide x 4 high RGB raster with distinct, deterministic pixels."""
    h, w = 4, 6
    ys, xs = np.indices((h, w)).astype(np.float32)
    return np.stack([xs / (w - 1), ys / (h - 1), (xs + ys) / (w + h - 2)], axis=-1).astype(
        np.float32
    )


@pytest.fixture()
def gradient_rgba(gradient_rgb) -> np.ndarray:
    alpha = np.ones(gradient_rgb.shape[:2] + (1,), dtype=np.float32)
    return np.concatenate([gradient_rgb, alpha], axis=-1)


def make_png_bytes(w=8, h=6, color=(128, 64, 32)) -> bytes:
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, :] = color
    img = Image.fromarray(arr)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    return make_png_bytes()
