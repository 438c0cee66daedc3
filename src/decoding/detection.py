"""
Anchor-based detection decoding and coordinate mapping.

The detector emits one (background, face) score pair and one normalized
(x1, y1, x2, y2) box per anchor. Decoding keeps the single best anchor above
a threshold; there is no non-max suppression since at most one face is
reported.

Two coordinate mappings, one per consumer:
- to_ui_rect: display pixels, origin at the display center, y up
- to_crop_rect: source-image pixels, origin at the bottom-left, y up
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from inference.errors import ShapeMismatchError
from models.frame import Frame
from models.results import CropRect, DetectionResult, NormalizedBox, UiRect
from models.tensor import Tensor


def _to_array(values) -> np.ndarray:
    if isinstance(values, Tensor):
        return values.numpy()
    arr = np.asarray(values)
    if not np.issubdtype(arr.dtype, np.floating):
        arr = arr.astype(np.float64)
    return arr


def _as_rows(values, width: int, what: str) -> np.ndarray:
    arr = _to_array(values)
    shape = arr.shape
    if not shape or shape[-1] != width:
        raise ShapeMismatchError(what, (1, 1, None, width), shape)
    return arr.reshape(-1, width)


def _face_scores(scores, score_index: int) -> np.ndarray:
    arr = _to_array(scores)
    shape = arr.shape
    if not shape or shape[-1] <= score_index:
        raise ShapeMismatchError("Detection scores", (1, 1, None, score_index + 1), shape)
    return arr.reshape(-1, shape[-1])[:, score_index]


def decode_detection(
    scores,
    boxes,
    *,
    min_score: float,
    score_index: int = 1,
) -> DetectionResult:
    """
    Pick the highest-scoring anchor.

    Args:
        scores: (1, 1, N, 2) or (1, N, 2) score pairs per anchor.
        boxes: (1, 1, N, 4) or (1, N, 4) normalized boxes per anchor.
        min_score: Strict threshold; a detection needs score > min_score.
        score_index: Channel holding the face probability.

    Returns:
        DetectionResult with present=False when nothing clears the threshold.

    Raises:
        ShapeMismatchError: If the tensors disagree on anchor count.
    """
    face = _face_scores(scores, score_index)
    box_rows = _as_rows(boxes, 4, "Detection boxes")
    if face.shape[0] != box_rows.shape[0]:
        raise ShapeMismatchError("Detection anchors", (face.shape[0], 4), box_rows.shape)
    if face.size == 0:
        return DetectionResult.absent()

    # NaN scores never win; argmax keeps the first anchor on ties
    best = int(np.argmax(np.where(np.isnan(face), -np.inf, face)))
    best_score = float(face[best])
    if not best_score > min_score:
        return DetectionResult.absent()

    return DetectionResult(
        present=True,
        score=best_score,
        box=NormalizedBox.from_tuple(box_rows[best]),
        anchor_index=best,
    )


def count_above(scores, min_score: float, score_index: int = 1) -> int:
    """Number of anchors whose face score exceeds min_score."""
    return int(np.count_nonzero(_face_scores(scores, score_index) > min_score))


def to_ui_rect(box: NormalizedBox, display_w: float, display_h: float) -> UiRect:
    """Map a normalized box into centered-origin, y-up display pixels."""
    cx, cy = box.center
    return UiRect(
        x=(cx - 0.5) * display_w,
        y=(0.5 - cy) * display_h,
        width=box.width * display_w,
        height=box.height * display_h,
    )


def _clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(v, hi))


def to_crop_rect(box: NormalizedBox, src_w: int, src_h: int) -> CropRect:
    """
    Map a normalized box into a bottom-left-origin pixel rectangle.

    The result always lies inside the image and is at least 1x1.
    """
    px = _clamp(round(box.x1 * src_w), 0, src_w - 1)
    py = _clamp(round((1.0 - box.y2) * src_h), 0, src_h - 1)
    pw = _clamp(round(box.width * src_w), 1, src_w - px)
    ph = _clamp(round(box.height * src_h), 1, src_h - py)
    return CropRect(x=px, y=py, width=pw, height=ph)


def crop_rows(rect: CropRect, src_h: int) -> Tuple[int, int]:
    """Top-left-origin row range [top, bottom) covered by rect."""
    top = src_h - (rect.y + rect.height)
    return top, top + rect.height


def crop_pixels(frame: Frame, rect: CropRect) -> np.ndarray:
    """Copy the pixels under rect out of a top-left-origin frame."""
    top, bottom = crop_rows(rect, frame.height)
    return frame.pixels[top:bottom, rect.x:rect.x + rect.width].copy()
