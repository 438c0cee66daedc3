"""
Face detection stage.

RGB input centered by (v - 127) / 128; the detector returns per-anchor
"scores" (1, 1, N, 2) and "boxes" (1, 1, N, 4). The best anchor above
min_score becomes the face; its box is mapped to a crop rectangle in the
captured frame and, when a display size is configured, to UI coordinates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from decoding.detection import count_above, decode_detection, to_crop_rect, to_ui_rect
from inference.backend import InferenceAdapter
from inference.errors import ConfigurationError
from models.frame import Frame
from models.results import FaceResult
from preprocess.resample import BILINEAR
from preprocess.tensor_builder import TensorPolicy
from .base import Stage


@dataclass
class FaceStageConfig:
    """
    Configuration for the face stage.

    Attributes:
        model: Path to the detector model.
        min_score: Detection threshold (score must be strictly greater).
        input_size: Model input as [width, height].
        resize: Resampling method ("nearest" or "bilinear").
        score_index: Score channel holding the face probability.
        scores_output: Name of the scores output.
        boxes_output: Name of the boxes output.
        display_size: [width, height] of the display for UI mapping; None skips it.
    """
    model: str
    min_score: float
    input_size: List[int] = field(default_factory=lambda: [320, 240])
    resize: str = BILINEAR
    score_index: int = 1
    scores_output: str = "scores"
    boxes_output: str = "boxes"
    display_size: Optional[List[int]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FaceStageConfig":
        if d.get("min_score") is None:
            raise ConfigurationError("face.min_score must be set")
        return cls(
            model=d.get("model", ""),
            min_score=float(d["min_score"]),
            input_size=d.get("input_size", [320, 240]),
            resize=d.get("resize", BILINEAR),
            score_index=d.get("score_index", 1),
            scores_output=d.get("scores_output", "scores"),
            boxes_output=d.get("boxes_output", "boxes"),
            display_size=d.get("display_size"),
        )


class FaceStage(Stage):
    name = "face"
    policy = TensorPolicy.RGB_CENTERED

    def __init__(self, config: FaceStageConfig, adapter: InferenceAdapter):
        super().__init__(adapter, config.model, tuple(config.input_size), config.resize)
        self.config = config

    def _output(self, outputs, name: str):
        if name not in outputs:
            raise ConfigurationError(
                f"Face model has no output {name!r}; available: {list(outputs)}"
            )
        return outputs[name]

    def process(self, frame: Frame) -> FaceResult:
        cfg = self.config
        with self.infer(frame) as outputs:
            scores = self._output(outputs, cfg.scores_output)
            boxes = self._output(outputs, cfg.boxes_output)
            detection = decode_detection(
                scores, boxes, min_score=cfg.min_score, score_index=cfg.score_index
            )
            faces = count_above(scores, cfg.min_score, cfg.score_index)

        if not detection.present:
            logging.debug("No faces detected")
            return FaceResult(detection=detection, faces_above_threshold=faces)

        logging.debug(
            f"Face detected: score={detection.score:.3f} anchor={detection.anchor_index} "
            f"candidates={faces}"
        )
        ui_rect = None
        if cfg.display_size:
            ui_rect = to_ui_rect(detection.box, cfg.display_size[0], cfg.display_size[1])
        return FaceResult(
            detection=detection,
            crop=to_crop_rect(detection.box, frame.width, frame.height),
            ui_rect=ui_rect,
            faces_above_threshold=faces,
        )
