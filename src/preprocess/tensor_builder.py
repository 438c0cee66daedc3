"""
Frame to NHWC tensor conversion.

Two policies feed the two models:
- GRAYSCALE: single luma channel mapped to [-1, 1], shape (1, H, W, 1)
- RGB_CENTERED: three channels mapped by (v - 127) / 128, shape (1, H, W, 3)

All arithmetic runs in float32.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

import numpy as np

from inference.errors import ShapeMismatchError
from models.frame import Frame
from models.tensor import Tensor

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)


class TensorPolicy(str, Enum):
    GRAYSCALE = "grayscale"
    RGB_CENTERED = "rgb_centered"

    @property
    def channels(self) -> int:
        return 1 if self is TensorPolicy.GRAYSCALE else 3


def _unit_rgb(frame: Frame) -> np.ndarray:
    """RGB samples in [0, 1] as float32."""
    rgb = frame.pixels[..., :3]
    if frame.is_float:
        return rgb.astype(np.float32)
    return rgb.astype(np.float32) / np.float32(255.0)


def _byte_rgb(frame: Frame) -> np.ndarray:
    """RGB samples in [0, 255] as float32."""
    rgb = frame.pixels[..., :3]
    if frame.is_float:
        return rgb.astype(np.float32) * np.float32(255.0)
    return rgb.astype(np.float32)


def grayscale_normalized(frame: Frame) -> np.ndarray:
    rgb = _unit_rgb(frame)
    luma = rgb[..., 0] * LUMA_WEIGHTS[0] + rgb[..., 1] * LUMA_WEIGHTS[1] + rgb[..., 2] * LUMA_WEIGHTS[2]
    return ((luma - np.float32(0.5)) * np.float32(2.0))[..., None]


def rgb_centered(frame: Frame) -> np.ndarray:
    return (_byte_rgb(frame) - np.float32(127.0)) / np.float32(128.0)


_CONVERTERS = {
    TensorPolicy.GRAYSCALE: grayscale_normalized,
    TensorPolicy.RGB_CENTERED: rgb_centered,
}


def expected_shape(frame: Frame, policy: TensorPolicy):
    return (1, frame.height, frame.width, TensorPolicy(policy).channels)


def build_tensor(
    frame: Frame,
    policy: TensorPolicy,
    shape: Optional[Sequence[int]] = None,
    name: Optional[str] = None,
) -> Tensor:
    """
    Convert a frame into a (1, H, W, C) tensor.

    Args:
        frame: Frame already resized to the model input resolution.
        policy: Conversion policy.
        shape: Shape the model expects; checked before any conversion.

    Raises:
        ShapeMismatchError: If shape is given and differs from what the
            frame produces under this policy.
    """
    policy = TensorPolicy(policy)
    produced = expected_shape(frame, policy)
    if shape is not None and tuple(shape) != produced:
        raise ShapeMismatchError(f"{policy.value} tensor", shape, produced)

    values = _CONVERTERS[policy](frame)
    return Tensor(produced, values.reshape(-1), name=name)
