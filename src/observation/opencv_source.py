"""
OpenCV frame sources.

OpenCVSource wraps cv2.VideoCapture (webcam index or video file path);
ImageSource serves one still image on every read. OpenCV decodes to BGR, so
both convert to RGB before a Frame is built.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from .base import ObservationSource, ObservationConfig

# cv2.flip codes keyed by (horizontal, vertical)
_FLIP_CODES = {(True, False): 1, (False, True): 0, (True, True): -1}


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Attributes:
        device_id: Webcam index or video file path.
        buffer_size: Driver-side frame buffer; 1 keeps live frames current.
        max_retries: Attempts to open the device before giving up.
        warmup_s: Pause after opening a webcam before the first grab.
        flip_horizontal: Mirror frames (selfie view).
        flip_vertical: Flip frames upside down.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_retries: int = 3
    warmup_s: float = 0.5
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """Build from the `camera` section of the application config."""
        resolution = camera_cfg.get("resolution")
        return cls(
            source_id=source_id,
            resolution=tuple(resolution) if resolution else None,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=camera_cfg.get("max_retries", 3),
            warmup_s=camera_cfg.get("warmup_s", 0.5),
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
            flip_vertical=camera_cfg.get("flip_vertical", False),
        )


def bgr_to_rgb(pixels: np.ndarray) -> np.ndarray:
    """Convert an OpenCV BGR/BGRA/gray image to RGB (RGBA when alpha is present)."""
    if pixels.ndim == 2:
        code = cv2.COLOR_GRAY2RGB
    elif pixels.shape[2] == 4:
        code = cv2.COLOR_BGRA2RGBA
    else:
        code = cv2.COLOR_BGR2RGB
    return cv2.cvtColor(pixels, code)


class OpenCVSource(ObservationSource):
    """Webcam or video file read through cv2.VideoCapture."""

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self.cfg = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self.cfg.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    def _open(self) -> None:
        attempts = max(1, self.cfg.max_retries)
        for attempt in range(1, attempts + 1):
            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                self._cap = cap
                break
            cap.release()
            if attempt < attempts:
                backoff = min(2 ** attempt, 10)
                logging.warning(
                    f"Failed to open device {self.device_id} (attempt {attempt}/{attempts}), "
                    f"retrying in {backoff}s"
                )
                time.sleep(backoff)
        else:
            raise RuntimeError(f"Failed to open device {self.device_id} after {attempts} attempts")

        if not self.is_file:
            self._configure_camera()

    def _configure_camera(self) -> None:
        cap = self._cap
        if self.cfg.resolution:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.cfg.resolution[0])
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.cfg.resolution[1])
        if self.cfg.fps:
            cap.set(cv2.CAP_PROP_FPS, self.cfg.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, self.cfg.buffer_size)
        logging.info(
            f"Camera {self.device_id}: {int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x"
            f"{int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))} @ {cap.get(cv2.CAP_PROP_FPS):.1f} fps"
        )
        if self.cfg.warmup_s > 0:
            time.sleep(self.cfg.warmup_s)

    def _grab(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ok, pixels = self._cap.read()
        if not ok or pixels is None:
            logging.debug(f"No frame from {self.device_id}")
            return None
        code = _FLIP_CODES.get((bool(self.cfg.flip_horizontal), bool(self.cfg.flip_vertical)))
        if code is not None:
            pixels = cv2.flip(pixels, code)
        return bgr_to_rgb(pixels)

    def _close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None


class ImageSource(ObservationSource):
    """Serves the same still image on every read."""

    def __init__(self, path: str, config: Optional[ObservationConfig] = None):
        super().__init__(config or ObservationConfig(source_id=os.path.basename(path)))
        self.path = path
        self._pixels: Optional[np.ndarray] = None

    def _open(self) -> None:
        pixels = cv2.imread(self.path, cv2.IMREAD_COLOR)
        if pixels is None:
            raise RuntimeError(f"Failed to read image {self.path}")
        self._pixels = bgr_to_rgb(pixels)

    def _grab(self) -> Optional[np.ndarray]:
        return self._pixels

    def _close(self) -> None:
        self._pixels = None


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "camera") -> ObservationSource:
    """Build the frame source selected by camera.backend ("opencv" or "image")."""
    if camera_cfg.get("backend", "opencv") == "image":
        return ImageSource(str(camera_cfg.get("device_id")), ObservationConfig(source_id=source_id))
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))
