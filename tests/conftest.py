"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 360]
  fps: 30

emotion:
  model: "models/emotion.onnx"
  input_size: [64, 64]

face:
  model: "models/face.onnx"
  input_size: [320, 240]
  min_score: 0.7

pipeline:
  interval_s: 1.0

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [640, 360],
            "fps": 30,
        },
        "emotion": {
            "model": "models/emotion.onnx",
            "input_size": [64, 64],
            "resize": "bilinear",
        },
        "face": {
            "model": "models/face.onnx",
            "input_size": [320, 240],
            "min_score": 0.7,
        },
        "pipeline": {
            "interval_s": 0.5,
            "offload": False,
        },
        "web": {"port": 5000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def rgb_frame():
    """Return a factory for uint8 RGB frames filled with one color."""
    from models.frame import Frame

    def make(width=8, height=6, color=(0, 0, 0)):
        pixels = np.empty((height, width, 3), dtype=np.uint8)
        pixels[...] = color
        return Frame.from_numpy(pixels)

    return make
