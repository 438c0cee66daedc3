"""
Preprocessing: resampling and tensor conversion.
"""

from .resample import BILINEAR, NEAREST, crop_center_square, resize, resize_array
from .tensor_builder import TensorPolicy, build_tensor, expected_shape

__all__ = [
    "BILINEAR",
    "NEAREST",
    "crop_center_square",
    "resize",
    "resize_array",
    "TensorPolicy",
    "build_tensor",
    "expected_shape",
]
