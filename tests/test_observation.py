"""
Tests for observation layer.
"""

import numpy as np
import pytest
import cv2

from observation.base import ObservationSource, ObservationConfig
from observation.opencv_source import (
    ImageSource,
    OpenCVSource,
    OpenCVSourceConfig,
    bgr_to_rgb,
    create_source_from_config,
)
from models.frame import Frame


class MockSource(ObservationSource):
    """Mock observation source for testing."""

    def __init__(self, config: ObservationConfig, frames: list = None):
        super().__init__(config)
        self._frames = frames or []
        self._pos = 0
        self.close_calls = 0

    def _open(self) -> None:
        self._pos = 0

    def _grab(self):
        if self._pos >= len(self._frames):
            return None
        pixels = self._frames[self._pos]
        self._pos += 1
        return pixels

    def _close(self) -> None:
        self.close_calls += 1


class TestObservationConfig:
    def test_default_config(self):
        config = ObservationConfig()
        assert config.source_id == "default"
        assert config.resolution is None
        assert config.fps is None

    def test_custom_config(self):
        config = ObservationConfig(
            source_id="webcam",
            resolution=(640, 360),
            fps=30,
            metadata={"mirror": True},
        )
        assert config.source_id == "webcam"
        assert config.resolution == (640, 360)
        assert config.metadata["mirror"] is True


class TestOpenCVSourceConfig:
    def test_from_camera_config(self):
        camera_cfg = {
            "device_id": 1,
            "resolution": [640, 360],
            "fps": 30,
            "flip_horizontal": True,
        }
        config = OpenCVSourceConfig.from_camera_config(camera_cfg, source_id="webcam")

        assert config.source_id == "webcam"
        assert config.device_id == 1
        assert config.resolution == (640, 360)
        assert config.fps == 30
        assert config.flip_horizontal is True
        assert config.flip_vertical is False

    def test_defaults(self):
        config = OpenCVSourceConfig.from_camera_config({})
        assert config.device_id == 0
        assert config.resolution is None
        assert config.buffer_size == 1


class TestMockSource:
    def test_source_lifecycle(self):
        config = ObservationConfig(source_id="test")
        frames = [np.zeros((10, 10, 3), dtype=np.uint8) for _ in range(3)]
        source = MockSource(config, frames)

        assert not source.is_open
        source.open()
        assert source.is_open
        assert source.frame_index == 0

        frame = source.read()
        assert isinstance(frame, Frame)
        assert frame.source == "test"
        assert frame.frame_index == 1
        assert frame.timestamp > 0
        assert source.frame_index == 1

        source.close()
        source.close()
        assert not source.is_open
        assert source.read() is None

    def test_frames_are_copies(self):
        pixels = np.zeros((4, 4, 3), dtype=np.uint8)
        with MockSource(ObservationConfig(), [pixels]) as source:
            frame = source.read()
        pixels[0, 0, 0] = 9
        assert frame.pixels[0, 0, 0] == 0

    def test_reopen_restarts_numbering(self):
        frames = [np.zeros((2, 2, 3), dtype=np.uint8) for _ in range(2)]
        source = MockSource(ObservationConfig(), frames)
        source.open()
        source.read()
        source.close()
        source.open()
        assert source.read().frame_index == 1

    def test_context_manager(self):
        frames = [np.zeros((5, 5, 3), dtype=np.uint8) for _ in range(2)]
        with MockSource(ObservationConfig(source_id="ctx-test"), frames) as source:
            assert source.is_open
            assert sum(1 for _ in source) == 2
        assert not source.is_open

    def test_empty_source(self):
        with MockSource(ObservationConfig(), []) as source:
            assert source.read() is None

    def test_iteration_requires_open(self):
        source = MockSource(ObservationConfig(), [])
        with pytest.raises(RuntimeError, match="must be open"):
            list(source)


class TestColorConversion:
    def test_bgr_to_rgb(self):
        bgr = np.zeros((1, 1, 3), dtype=np.uint8)
        bgr[0, 0] = (255, 0, 10)
        np.testing.assert_array_equal(bgr_to_rgb(bgr)[0, 0], [10, 0, 255])

    def test_bgra_keeps_alpha(self):
        bgra = np.zeros((1, 1, 4), dtype=np.uint8)
        bgra[0, 0] = (1, 2, 3, 200)
        np.testing.assert_array_equal(bgr_to_rgb(bgra)[0, 0], [3, 2, 1, 200])


class TestImageSource:
    def test_reads_rgb_frames(self, tmp_path):
        bgr = np.zeros((6, 8, 3), dtype=np.uint8)
        bgr[..., 2] = 255  # red in BGR order
        path = tmp_path / "face.png"
        cv2.imwrite(str(path), bgr)

        with ImageSource(str(path)) as source:
            first = source.read()
            second = source.read()

        assert first.size == (8, 6)
        assert np.all(first.pixels[..., 0] == 255)
        assert np.all(first.pixels[..., 2] == 0)
        assert first.frame_index == 1
        assert second.frame_index == 2
        assert source.read() is None

    def test_missing_file_raises(self, tmp_path):
        source = ImageSource(str(tmp_path / "missing.png"))
        with pytest.raises(RuntimeError):
            source.open()


class TestOpenCVSource:
    def test_source_id_property(self):
        source = OpenCVSource(OpenCVSourceConfig(source_id="my-camera", device_id=0))
        assert source.source_id == "my-camera"
        assert source.is_file is False

    def test_read_before_open_returns_none(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        assert source.read() is None

    def test_factory_selects_backend(self, tmp_path):
        image = create_source_from_config({"backend": "image", "device_id": str(tmp_path / "a.png")})
        camera = create_source_from_config({"backend": "opencv", "device_id": 0}, source_id="webcam")

        assert isinstance(image, ImageSource)
        assert isinstance(camera, OpenCVSource)
        assert camera.source_id == "webcam"
