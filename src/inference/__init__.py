"""
Inference layer.

Adapters hide the inference runtime behind a tensor-in/tensor-out contract.
The ONNX Runtime adapter is imported on demand from inference.onnx_backend.
"""

from .backend import Engine, InferenceAdapter, TensorSpec, resolve_shape
from .errors import (
    ConfigurationError,
    InferenceError,
    ModelLoadError,
    ShapeMismatchError,
)

__all__ = [
    "Engine",
    "InferenceAdapter",
    "TensorSpec",
    "resolve_shape",
    "ConfigurationError",
    "InferenceError",
    "ModelLoadError",
    "ShapeMismatchError",
]
