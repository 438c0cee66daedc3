"""
Decoded inference results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

# Index order is fixed by the classifier's output layer.
EMOTION_LABELS: Tuple[str, ...] = (
    "neutral",
    "happiness",
    "surprise",
    "sadness",
    "anger",
    "disgust",
    "fear",
    "contempt",
)


@dataclass(frozen=True)
class NormalizedBox:
    """
    A bounding box normalized to [0, 1] relative to the model input frame.

    Attributes:
        x1: Left edge.
        y1: Top edge.
        x2: Right edge.
        y2: Bottom edge.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    @classmethod
    def from_tuple(cls, t) -> "NormalizedBox":
        """Create from (x1, y1, x2, y2) sequence."""
        return cls(x1=float(t[0]), y1=float(t[1]), x2=float(t[2]), y2=float(t[3]))


@dataclass(frozen=True)
class ClassificationResult:
    """Softmax probabilities over EMOTION_LABELS and the top entry."""
    probabilities: Tuple[float, ...]
    top_index: int
    top_label: str

    @property
    def confidence(self) -> float:
        return self.probabilities[self.top_index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.top_label,
            "index": self.top_index,
            "confidence": self.confidence,
            "probabilities": dict(zip(EMOTION_LABELS, self.probabilities)),
        }


@dataclass(frozen=True)
class DetectionResult:
    """
    Best single detection from an anchor-based detector.

    score and box are None when present is False. An absent detection is a
    valid outcome, not a failure.
    """
    present: bool
    score: Optional[float] = None
    box: Optional[NormalizedBox] = None
    anchor_index: Optional[int] = None

    @classmethod
    def absent(cls) -> "DetectionResult":
        return cls(present=False)

    def to_dict(self) -> Dict[str, Any]:
        if not self.present:
            return {"present": False}
        return {
            "present": True,
            "score": self.score,
            "box": list(self.box.as_tuple()),
            "anchor_index": self.anchor_index,
        }


@dataclass(frozen=True)
class UiRect:
    """
    Rectangle in display pixels.

    The origin is the display center with y pointing up; (x, y) is the
    rectangle center.
    """
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class CropRect:
    """
    Integer pixel rectangle inside a source image.

    The origin is the bottom-left corner of the image with y pointing up,
    (x, y) is the rectangle's bottom-left corner. Always inside the image
    with width and height of at least 1.
    """
    x: int
    y: int
    width: int
    height: int

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class FaceResult:
    """Detection plus the crop rectangle in source-frame pixels, if any."""
    detection: DetectionResult
    crop: Optional[CropRect] = None
    ui_rect: Optional[UiRect] = None
    faces_above_threshold: int = 0

    @property
    def present(self) -> bool:
        return self.detection.present

    def to_dict(self) -> Dict[str, Any]:
        d = self.detection.to_dict()
        d["faces_above_threshold"] = self.faces_above_threshold
        if self.crop is not None:
            d["crop"] = self.crop.to_dict()
        if self.ui_rect is not None:
            r = self.ui_rect
            d["ui_rect"] = {"x": r.x, "y": r.y, "width": r.width, "height": r.height}
        return d
