"""
Pipeline stages for the expression monitor.

Each stage runs one model on the captured frame:
- emotion: grayscale classifier, softmax over eight labels
- face: anchor-based face detector, best single box
"""

from .base import Stage
from .emotion import EmotionStage, EmotionStageConfig
from .face import FaceStage, FaceStageConfig

__all__ = ["Stage", "EmotionStage", "EmotionStageConfig", "FaceStage", "FaceStageConfig"]
