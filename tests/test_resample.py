"""
Tests for deterministic resampling.
"""

import numpy as np
import pytest

from models.frame import Frame
from preprocess.resample import BILINEAR, NEAREST, crop_center_square, resize, resize_array


def _gradient_frame(width, height):
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    for y in range(height):
        for x in range(width):
            pixels[y, x] = (x * 10, y * 10, (x + y) % 256)
    return Frame.from_numpy(pixels, frame_index=3)


class TestIdentity:
    @pytest.mark.parametrize("method", [NEAREST, BILINEAR])
    def test_same_size_is_identity(self, method):
        frame = _gradient_frame(7, 5)
        out = resize(frame, 7, 5, method)

        assert out.size == (7, 5)
        assert out.pixels.dtype == np.uint8
        np.testing.assert_array_equal(out.pixels, frame.pixels)
        assert out.frame_index == 3

    def test_float_identity(self):
        rng = np.random.default_rng(0)
        pixels = rng.random((4, 6, 3)).astype(np.float32)
        out = resize_array(pixels, 6, 4, BILINEAR)
        assert out.dtype == np.float32
        np.testing.assert_array_equal(out, pixels)


class TestNearest:
    def test_downscale_picks_floor_indices(self):
        pixels = np.arange(16, dtype=np.uint8).reshape(4, 4, 1).repeat(3, axis=2)
        out = resize_array(pixels, 2, 2, NEAREST)
        # x, y -> source (2x, 2y)
        np.testing.assert_array_equal(out[..., 0], [[0, 2], [8, 10]])

    def test_upscale_repeats_pixels(self):
        pixels = np.array([[[10, 10, 10], [20, 20, 20]]], dtype=np.uint8)
        out = resize_array(pixels, 4, 2, NEAREST)
        np.testing.assert_array_equal(out[..., 0], [[10, 10, 20, 20], [10, 10, 20, 20]])

    def test_non_integer_ratio(self):
        pixels = np.arange(5, dtype=np.uint8).reshape(1, 5, 1).repeat(3, axis=2)
        out = resize_array(pixels, 3, 1, NEAREST)
        # floor(x * 5 / 3) -> 0, 1, 3
        np.testing.assert_array_equal(out[0, :, 0], [0, 1, 3])


class TestBilinear:
    def test_constant_frame_stays_constant(self):
        pixels = np.full((5, 9, 3), 77, dtype=np.uint8)
        out = resize_array(pixels, 4, 13, BILINEAR)
        assert out.shape == (13, 4, 3)
        assert np.all(out == 77)

    def test_upscale_interpolates_and_clamps_edge(self):
        pixels = np.array([[[0, 0, 0], [100, 100, 100]]], dtype=np.float32)
        out = resize_array(pixels, 4, 1, BILINEAR)
        # positions 0, 0.5, 1.0, 1.5 -> the last one clamps to the edge pixel
        np.testing.assert_allclose(out[0, :, 0], [0.0, 50.0, 100.0, 100.0])

    def test_integer_rounding_is_half_to_even(self):
        pixels = np.array([[[1, 1, 1], [2, 2, 2]]], dtype=np.uint8)
        out = resize_array(pixels, 4, 1, BILINEAR)
        # 1.5 rounds to 2
        np.testing.assert_array_equal(out[0, :, 0], [1, 2, 2, 2])

    def test_deterministic(self):
        rng = np.random.default_rng(1)
        pixels = rng.integers(0, 256, size=(37, 53, 3), dtype=np.uint8)
        a = resize_array(pixels, 64, 64, BILINEAR)
        b = resize_array(pixels.copy(), 64, 64, BILINEAR)
        np.testing.assert_array_equal(a, b)

    def test_keeps_alpha_channel(self):
        pixels = np.zeros((2, 2, 4), dtype=np.uint8)
        pixels[..., 3] = 255
        out = resize_array(pixels, 3, 3, BILINEAR)
        assert out.shape == (3, 3, 4)
        assert np.all(out[..., 3] == 255)


class TestValidation:
    def test_non_positive_target(self):
        frame = _gradient_frame(4, 4)
        with pytest.raises(ValueError):
            resize(frame, 0, 4)

    def test_unknown_method(self):
        frame = _gradient_frame(4, 4)
        with pytest.raises(ValueError):
            resize(frame, 2, 2, "bicubic")

    def test_stretches_without_preserving_aspect(self):
        out = resize(_gradient_frame(10, 2), 3, 7, NEAREST)
        assert out.size == (3, 7)


class TestCropCenterSquare:
    def test_landscape(self):
        frame = _gradient_frame(8, 4)
        out = crop_center_square(frame)
        assert out.size == (4, 4)
        np.testing.assert_array_equal(out.pixels, frame.pixels[:, 2:6])

    def test_portrait(self):
        frame = _gradient_frame(3, 7)
        out = crop_center_square(frame)
        assert out.size == (3, 3)
        np.testing.assert_array_equal(out.pixels, frame.pixels[2:5, :])
