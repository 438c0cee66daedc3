"""
Deterministic image resampling.

Source coordinates follow (x * srcW / dstW, y * srcH / dstH) with no
half-pixel offset and no aspect-ratio preservation. Out-of-range neighbours
are clamped to the image edge.
"""

from __future__ import annotations

import numpy as np

from models.frame import Frame

NEAREST = "nearest"
BILINEAR = "bilinear"
METHODS = (NEAREST, BILINEAR)


def _nearest_indices(src: int, dst: int) -> np.ndarray:
    # Integer floor division keeps the mapping exact.
    idx = (np.arange(dst, dtype=np.int64) * src) // dst
    return np.clip(idx, 0, src - 1)


def _bilinear_axis(src: int, dst: int):
    pos = np.arange(dst, dtype=np.float64) * src / dst
    i0 = np.floor(pos).astype(np.int64)
    frac = pos - i0
    i0 = np.clip(i0, 0, src - 1)
    i1 = np.clip(i0 + 1, 0, src - 1)
    return i0, i1, frac


def resize_array(pixels: np.ndarray, target_w: int, target_h: int, method: str = BILINEAR) -> np.ndarray:
    """
    Resize an (H, W, C) array to (target_h, target_w, C).

    Integer inputs are rounded half-to-even back to their dtype; float inputs
    keep their dtype.
    """
    if target_w <= 0 or target_h <= 0:
        raise ValueError(f"Target size must be positive, got {target_w}x{target_h}")
    if method not in METHODS:
        raise ValueError(f"Unknown resize method {method!r}; expected one of {METHODS}")

    src_h, src_w = pixels.shape[:2]

    if method == NEAREST:
        ys = _nearest_indices(src_h, target_h)
        xs = _nearest_indices(src_w, target_w)
        return pixels[ys[:, None], xs[None, :]]

    y0, y1, fy = _bilinear_axis(src_h, target_h)
    x0, x1, fx = _bilinear_axis(src_w, target_w)
    src = pixels.astype(np.float64)
    fx = fx[None, :, None]
    fy = fy[:, None, None]

    top = src[y0[:, None], x0[None, :]] * (1.0 - fx) + src[y0[:, None], x1[None, :]] * fx
    bottom = src[y1[:, None], x0[None, :]] * (1.0 - fx) + src[y1[:, None], x1[None, :]] * fx
    out = top * (1.0 - fy) + bottom * fy

    if np.issubdtype(pixels.dtype, np.integer):
        info = np.iinfo(pixels.dtype)
        return np.clip(np.rint(out), info.min, info.max).astype(pixels.dtype)
    return out.astype(pixels.dtype)


def resize(frame: Frame, target_w: int, target_h: int, method: str = BILINEAR) -> Frame:
    """Resize a frame to exactly target_w x target_h pixels."""
    return frame.with_pixels(resize_array(frame.pixels, target_w, target_h, method))


def crop_center_square(frame: Frame) -> Frame:
    """Crop the largest centered square from a frame."""
    size = min(frame.width, frame.height)
    x = (frame.width - size) // 2
    y = (frame.height - size) // 2
    return frame.with_pixels(frame.pixels[y:y + size, x:x + size].copy())
