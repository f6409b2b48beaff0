from __future__ import annotations

import numpy as np

from studiokit.domain.entities.filter_preset import ToneOperation


class ProcessingService:
    """Pure NumPy image processing. Inputs and outputs are float32 arrays normalized to [0, 1].

    Channel convention:
    - Working rasters are RGBA: (H, W, 4). Colour operations touch RGB only,
      opacity touches alpha only.
    - `to_rgba` promotes grayscale (H, W), RGB (H, W, 3) and single-channel
      (H, W, 1) inputs.

    Every operation clamps its result to [0, 1].
    """

    @staticmethod
    def to_rgba(matrix: np.ndarray) -> np.ndarray:
        mat = np.asarray(matrix, dtype=np.float32)
        if mat.ndim == 2:
            mat = mat[..., None]
        if mat.ndim != 3 or mat.shape[2] not in (1, 3, 4):
            raise ValueError(f"Unsupported raster shape: {mat.shape}")
        h, w, channels = mat.shape
        if channels == 4:
            out = mat.copy()
        else:
            out = np.ones((h, w, 4), dtype=np.float32)
            out[..., :3] = mat if channels == 3 else np.repeat(mat, 3, axis=2)
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    # Brightness: I_out = I_in * a
    @staticmethod
    def adjust_brightness(matrix: np.ndarray, amount: float) -> np.ndarray:
        out = matrix.astype(np.float32).copy()
        out[..., :3] = out[..., :3] * np.float32(amount)
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    # Linear contrast around mid-gray: I_out = (I_in - 0.5) * a + 0.5
    @staticmethod
    def adjust_contrast(matrix: np.ndarray, amount: float) -> np.ndarray:
        out = matrix.astype(np.float32).copy()
        a = np.float32(amount)
        out[..., :3] = (out[..., :3] - np.float32(0.5)) * a + np.float32(0.5)
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    # Saturation: 0 = luminance only, 1 = identity, > 1 oversaturates
    @staticmethod
    def adjust_saturation(matrix: np.ndarray, amount: float) -> np.ndarray:
        s = float(amount)
        m = np.array(
            [
                [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
                [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
                [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
            ]
        )
        return ProcessingService.apply_color_matrix(matrix, m)

    # Grayscale (Luminance), blended by amount in [0, 1]
    @staticmethod
    def grayscale(matrix: np.ndarray, amount: float = 1.0) -> np.ndarray:
        s = 1.0 - min(max(float(amount), 0.0), 1.0)
        m = np.array(
            [
                [0.2126 + 0.7874 * s, 0.7152 - 0.7152 * s, 0.0722 - 0.0722 * s],
                [0.2126 - 0.2126 * s, 0.7152 + 0.2848 * s, 0.0722 - 0.0722 * s],
                [0.2126 - 0.2126 * s, 0.7152 - 0.7152 * s, 0.0722 + 0.9278 * s],
            ]
        )
        return ProcessingService.apply_color_matrix(matrix, m)

    # Sepia tone, blended by amount in [0, 1]
    @staticmethod
    def sepia(matrix: np.ndarray, amount: float = 1.0) -> np.ndarray:
        s = 1.0 - min(max(float(amount), 0.0), 1.0)
        m = np.array(
            [
                [0.393 + 0.607 * s, 0.769 - 0.769 * s, 0.189 - 0.189 * s],
                [0.349 - 0.349 * s, 0.686 + 0.314 * s, 0.168 - 0.168 * s],
                [0.272 - 0.272 * s, 0.534 - 0.534 * s, 0.131 + 0.869 * s],
            ]
        )
        return ProcessingService.apply_color_matrix(matrix, m)

    # Invert: I_out = a * (1 - I_in) + (1 - a) * I_in
    @staticmethod
    def invert_color(matrix: np.ndarray, amount: float = 1.0) -> np.ndarray:
        a = np.float32(min(max(float(amount), 0.0), 1.0))
        out = matrix.astype(np.float32).copy()
        out[..., :3] = a + out[..., :3] * (np.float32(1.0) - np.float32(2.0) * a)
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    # Hue rotation by `degrees` around the luminance axis
    @staticmethod
    def hue_rotate(matrix: np.ndarray, degrees: float) -> np.ndarray:
        rad = np.deg2rad(float(degrees))
        c, s = float(np.cos(rad)), float(np.sin(rad))
        m = np.array(
            [
                [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
                [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
                [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
            ]
        )
        return ProcessingService.apply_color_matrix(matrix, m)

    # Opacity: alpha_out = alpha_in * a
    @staticmethod
    def adjust_opacity(matrix: np.ndarray, amount: float) -> np.ndarray:
        a = np.float32(min(max(float(amount), 0.0), 1.0))
        out = matrix.astype(np.float32).copy()
        out[..., 3] = out[..., 3] * a
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    @staticmethod
    def apply_color_matrix(matrix: np.ndarray, color_matrix: np.ndarray) -> np.ndarray:
        out = matrix.astype(np.float32).copy()
        m = np.asarray(color_matrix, dtype=np.float32)
        out[..., :3] = out[..., :3] @ m.T
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    @staticmethod
    def apply_tone(matrix: np.ndarray, op: ToneOperation) -> np.ndarray:
        kind = op.kind
        if kind == "brightness":
            return ProcessingService.adjust_brightness(matrix, op.amount)
        if kind == "contrast":
            return ProcessingService.adjust_contrast(matrix, op.amount)
        if kind == "saturate":
            return ProcessingService.adjust_saturation(matrix, op.amount)
        if kind == "grayscale":
            return ProcessingService.grayscale(matrix, op.amount)
        if kind == "sepia":
            return ProcessingService.sepia(matrix, op.amount)
        if kind == "invert":
            return ProcessingService.invert_color(matrix, op.amount)
        if kind == "hue_rotate":
            return ProcessingService.hue_rotate(matrix, op.amount)
        if kind == "opacity":
            return ProcessingService.adjust_opacity(matrix, op.amount)
        raise ValueError(f"Unsupported tone operation: {kind}")

    # Crop region [y_start:y_end, x_start:x_end]
    @staticmethod
    def crop(matrix: np.ndarray, x_start: int, x_end: int, y_start: int, y_end: int) -> np.ndarray:
        return matrix.astype(np.float32)[y_start:y_end, x_start:x_end]

    # Rotate clockwise by angle degrees about the frame center.
    # Quarter turns are exact; other angles use nearest-neighbor sampling with
    # transparent fill into an output of shape `out_hw` (defaults to input size).
    @staticmethod
    def rotate(
        matrix: np.ndarray, angle: float, out_hw: tuple[int, int] | None = None
    ) -> np.ndarray:
        mat = matrix.astype(np.float32)
        h, w = mat.shape[:2]
        angle = float(angle) % 360.0
        if angle % 90.0 == 0.0:
            # np.rot90 turns counter-clockwise for positive k
            out = np.ascontiguousarray(np.rot90(mat, k=-int(angle // 90)))
            if out_hw is None or out.shape[:2] == tuple(out_hw):
                return out
        th, tw = out_hw if out_hw is not None else (h, w)
        out = np.zeros((th, tw) + mat.shape[2:], dtype=np.float32)
        rad = np.deg2rad(angle)
        cos_a = np.cos(rad)
        sin_a = np.sin(rad)
        cx = (w - 1) / 2.0
        cy = (h - 1) / 2.0
        tcx = (tw - 1) / 2.0
        tcy = (th - 1) / 2.0
        # For each destination pixel, map back to source
        ys, xs = np.indices((th, tw))
        x_rel = xs - tcx
        y_rel = ys - tcy
        x_src = cos_a * x_rel + sin_a * y_rel + cx
        y_src = -sin_a * x_rel + cos_a * y_rel + cy
        x_src_round = np.rint(x_src).astype(int)
        y_src_round = np.rint(y_src).astype(int)
        valid = (x_src_round >= 0) & (x_src_round < w) & (y_src_round >= 0) & (y_src_round < h)
        out[valid] = mat[y_src_round[valid], x_src_round[valid]]
        return out

    # Composite RGBA over a solid background colour, returning RGB
    @staticmethod
    def flatten(matrix: np.ndarray, background: tuple[float, float, float] = (0.0, 0.0, 0.0)) -> np.ndarray:
        mat = matrix.astype(np.float32)
        if mat.ndim != 3 or mat.shape[2] != 4:
            return np.clip(mat, 0.0, 1.0)
        alpha = mat[..., 3:4]
        bg = np.asarray(background, dtype=np.float32)
        out = mat[..., :3] * alpha + bg * (np.float32(1.0) - alpha)
        return np.clip(out, 0.0, 1.0).astype(np.float32)
