"""
Frame model for captured video frames.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class Frame:
    """
    Pixel buffer and metadata for a captured video frame.

    Pixels are stored row-major with the origin at the top-left corner,
    shaped (height, width, channels) with RGB or RGBA channel order. uint8
    buffers hold 0-255 samples, float buffers hold 0.0-1.0 samples. The frame
    keeps a read-only copy of the buffer it is given.

    Attributes:
        pixels: Read-only pixel array.
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when frame was captured.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier for the camera/video source.
    """
    pixels: np.ndarray
    width: int
    height: int
    timestamp: float = 0.0
    frame_index: int = 0
    source: Optional[str] = None

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] not in (3, 4):
            raise ValueError(
                f"Frame pixels must be shaped (H, W, 3|4), got {self.pixels.shape}"
            )
        if self.pixels.shape[:2] != (self.height, self.width):
            raise ValueError(
                f"Frame size {self.width}x{self.height} does not match pixels "
                f"{self.pixels.shape[1]}x{self.pixels.shape[0]}"
            )
        if not (self.pixels.dtype == np.uint8 or np.issubdtype(self.pixels.dtype, np.floating)):
            raise ValueError(f"Frame pixels must be uint8 or float, got {self.pixels.dtype}")
        pixels = np.array(self.pixels, copy=True)
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @classmethod
    def from_numpy(
        cls,
        pixels: np.ndarray,
        timestamp: float = 0.0,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "Frame":
        """Create a Frame from a numpy array, copying the buffer."""
        pixels = np.asarray(pixels)
        h, w = pixels.shape[:2]
        return cls(
            pixels=pixels,
            width=w,
            height=h,
            timestamp=timestamp,
            frame_index=frame_index,
            source=source,
        )

    @property
    def channels(self) -> int:
        return self.pixels.shape[2]

    @property
    def is_float(self) -> bool:
        """True when samples are normalized floats rather than 8-bit values."""
        return np.issubdtype(self.pixels.dtype, np.floating)

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Return (height, width, channels)."""
        return self.pixels.shape

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    def with_pixels(self, pixels: np.ndarray) -> "Frame":
        """Return a new Frame carrying this frame's metadata and new pixels."""
        h, w = pixels.shape[:2]
        return Frame(
            pixels=pixels,
            width=w,
            height=h,
            timestamp=self.timestamp,
            frame_index=self.frame_index,
            source=self.source,
        )
