"""
Typed configuration models for the application-level YAML sections.

Camera, model and pipeline sections are parsed by the components that own
them (OpenCVSourceConfig, EmotionStageConfig, FaceStageConfig,
PipelineConfig).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class InferenceConfig:
    """Inference runtime configuration."""
    backend: str = "onnxruntime"
    providers: List[str] = field(default_factory=lambda: ["CPUExecutionProvider"])
    intra_op_num_threads: int = 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InferenceConfig":
        return cls(
            backend=d.get("backend", "onnxruntime"),
            providers=d.get("providers", ["CPUExecutionProvider"]),
            intra_op_num_threads=d.get("intra_op_num_threads", 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "providers": self.providers,
            "intra_op_num_threads": self.intra_op_num_threads,
        }


@dataclass
class WebConfig:
    """Status API configuration."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Application configuration read by main.

    This is a typed view of the top-level YAML sections that main consumes
    directly: logging, the inference runtime and the status API.
    """
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/expression_monitor.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            inference=InferenceConfig.from_dict(d.get("inference", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/expression_monitor.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "inference": self.inference.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
