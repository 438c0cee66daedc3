from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class EmotionResponse(BaseModel):
    label: str
    index: int
    confidence: float
    probabilities: Dict[str, float]


class CropResponse(BaseModel):
    x: int
    y: int
    width: int
    height: int


class UiRectResponse(BaseModel):
    x: float
    y: float
    width: float
    height: float


class FaceResponse(BaseModel):
    present: bool
    score: Optional[float] = None
    box: Optional[List[float]] = Field(None, description="Normalized (x1, y1, x2, y2)")
    anchor_index: Optional[int] = None
    faces_above_threshold: int = 0
    crop: Optional[CropResponse] = Field(None, description="Source pixels, bottom-left origin")
    ui_rect: Optional[UiRectResponse] = Field(None, description="Display pixels, centered origin")


class ResultsResponse(BaseModel):
    emotion: Optional[EmotionResponse] = None
    face: Optional[FaceResponse] = None
    last_result_ts: Optional[float] = None


class HealthResponse(BaseModel):
    status: str = Field(..., description="running|halted|stopped")
    pipeline_state: str
    fault: Optional[str] = None


class StatusResponse(BaseModel):
    """Compact status for dashboard polling."""
    running: bool
    pipeline_state: str
    fault: Optional[str] = None
    last_result_age_s: Optional[float] = Field(None, description="Seconds since last result")
    uptime_seconds: Optional[int] = None
    cycles: int = 0
    dropped_ticks: int = 0
    empty_reads: int = 0
    last_cycle_ms: Optional[float] = None
    warnings: List[str] = Field(default_factory=list)
