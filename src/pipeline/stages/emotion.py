"""
Emotion classification stage.

Grayscale 64x64 input normalized to [-1, 1], eight-way softmax output over
EMOTION_LABELS.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from decoding.classification import decode_classification
from inference.backend import InferenceAdapter
from inference.errors import ConfigurationError
from models.frame import Frame
from models.results import ClassificationResult
from preprocess.resample import BILINEAR, crop_center_square
from preprocess.tensor_builder import TensorPolicy
from .base import Stage


@dataclass
class EmotionStageConfig:
    """
    Configuration for the emotion stage.

    Attributes:
        model: Path to the classifier model.
        input_size: Model input as [width, height].
        resize: Resampling method ("nearest" or "bilinear").
        center_crop: Crop the largest centered square before resizing.
        output_name: Output to decode; None = the model's first output.
        debug_raw_output: Log raw scores at debug level every cycle.
    """
    model: str
    input_size: List[int] = field(default_factory=lambda: [64, 64])
    resize: str = BILINEAR
    center_crop: bool = False
    output_name: Optional[str] = None
    debug_raw_output: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EmotionStageConfig":
        return cls(
            model=d.get("model", ""),
            input_size=d.get("input_size", [64, 64]),
            resize=d.get("resize", BILINEAR),
            center_crop=d.get("center_crop", False),
            output_name=d.get("output_name"),
            debug_raw_output=d.get("debug_raw_output", False),
        )


class EmotionStage(Stage):
    name = "emotion"
    policy = TensorPolicy.GRAYSCALE

    def __init__(self, config: EmotionStageConfig, adapter: InferenceAdapter):
        super().__init__(adapter, config.model, tuple(config.input_size), config.resize)
        self.config = config

    def prepare(self, frame: Frame) -> Frame:
        if self.config.center_crop:
            return crop_center_square(frame)
        return frame

    def process(self, frame: Frame) -> ClassificationResult:
        with self.infer(frame) as outputs:
            name = self.config.output_name or self.engine.output_names[0]
            if name not in outputs:
                raise ConfigurationError(
                    f"Emotion model has no output {name!r}; available: {list(outputs)}"
                )
            scores = outputs[name]
            if self.config.debug_raw_output:
                logging.debug(f"Raw output: {', '.join(f'{s:.4f}' for s in scores.data)}")
            try:
                result = decode_classification(scores)
            except ValueError as e:
                raise ConfigurationError(f"Emotion output {name!r} {scores.shape}: {e}") from e

        logging.debug(f"Predicted emotion: {result.top_label} ({result.confidence:.2f})")
        return result
