"""
Typed models for the expression monitor application.

These models carry frames, tensors and decoded results between pipeline
stages, plus the typed configuration adapters.
"""

from .frame import Frame
from .tensor import Tensor
from .results import (
    EMOTION_LABELS,
    ClassificationResult,
    CropRect,
    DetectionResult,
    FaceResult,
    NormalizedBox,
    UiRect,
)
from .config import (
    Config,
    InferenceConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "Frame",
    # Tensor
    "Tensor",
    # Results
    "EMOTION_LABELS",
    "ClassificationResult",
    "CropRect",
    "DetectionResult",
    "FaceResult",
    "NormalizedBox",
    "UiRect",
    # Config
    "Config",
    "InferenceConfig",
    "WebConfig",
]
