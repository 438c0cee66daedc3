"""
Postprocessing: turn raw model outputs into results.
"""

from .classification import decode_classification, softmax
from .detection import (
    count_above,
    crop_pixels,
    decode_detection,
    to_crop_rect,
    to_ui_rect,
)

__all__ = [
    "decode_classification",
    "softmax",
    "count_above",
    "crop_pixels",
    "decode_detection",
    "to_crop_rect",
    "to_ui_rect",
]
