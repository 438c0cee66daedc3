"""
Pipeline module for the expression monitor.

The pipeline orchestrates one inference cycle per timer tick:
- Frame acquisition from an observation source
- Resampling and tensor conversion
- Inference through an InferenceAdapter
- Decoding into emotion and face results
"""

from .engine import (
    PipelineConfig,
    PipelineEngine,
    PipelineState,
    PipelineStats,
    Ticker,
    create_engine_from_config,
    create_stages_from_config,
)
from .stages import EmotionStage, EmotionStageConfig, FaceStage, FaceStageConfig, Stage

__all__ = [
    "PipelineConfig",
    "PipelineEngine",
    "PipelineState",
    "PipelineStats",
    "Ticker",
    "create_engine_from_config",
    "create_stages_from_config",
    "EmotionStage",
    "EmotionStageConfig",
    "FaceStage",
    "FaceStageConfig",
    "Stage",
]
