"""
Frame suppliers for the pipeline.

A source hands the engine one RGB Frame per tick, or None when nothing is
available yet. Subclasses only grab raw pixels; frame numbering, timestamps
and the read-only Frame wrapper are handled here.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple

import numpy as np

from models.frame import Frame


@dataclass
class ObservationConfig:
    """
    Settings shared by every frame source.

    Attributes:
        source_id: Name stamped on every Frame (e.g., "webcam").
        resolution: Requested (width, height); None keeps the device default.
        fps: Requested capture rate; None keeps the device default.
        metadata: Free-form source settings.
    """
    source_id: str = "default"
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class ObservationSource(ABC):
    """
    Base class for frame sources.

    Subclasses implement _open, _grab and _close. _grab returns an RGB or
    RGBA array, or None for transient absence (camera warming up, end of a
    video file); the engine retries on its next tick.

        with ImageSource("face.png") as source:
            frame = source.read()
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Frames delivered since the last open()."""
        return self._frame_index

    def open(self) -> None:
        """
        Acquire the underlying device or file.

        Raises:
            RuntimeError: If the source cannot be opened.
        """
        if self._is_open:
            return
        self._open()
        self._is_open = True
        self._frame_index = 0
        logging.info(f"{type(self).__name__} opened: source_id={self.source_id}")

    def read(self) -> Optional[Frame]:
        """Next frame, or None if the source is closed or has nothing yet."""
        if not self._is_open:
            return None
        pixels = self._grab()
        if pixels is None:
            return None
        self._frame_index += 1
        return Frame.from_numpy(
            pixels,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        """Release the source. Safe to call multiple times."""
        was_open = self._is_open
        self._is_open = False
        self._close()
        if was_open:
            logging.info(f"{type(self).__name__} closed: source_id={self.source_id}")

    @abstractmethod
    def _open(self) -> None:
        pass

    @abstractmethod
    def _grab(self) -> Optional[np.ndarray]:
        pass

    @abstractmethod
    def _close(self) -> None:
        pass

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[Frame]:
        """Yield frames until the first None. The source must be open."""
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")
        frame = self.read()
        while frame is not None:
            yield frame
            frame = self.read()
