"""
Observation layer for pluggable frame suppliers.

This layer keeps camera and file access out of the processing pipeline.
Each source implements the ObservationSource interface and returns RGB
Frame objects.
"""

from .base import ObservationSource, ObservationConfig
from .opencv_source import ImageSource, OpenCVSource, OpenCVSourceConfig, create_source_from_config

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "ImageSource",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
]
