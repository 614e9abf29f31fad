"""
Unit tests for the raster module.
"""

import copy

import numpy as np
import pytest
from PIL import Image

from img2ascii.raster import RasterImage, load_image


class TestRasterImage:
    """Tests for RasterImage construction and validity."""

    def test_dimensions_and_byte_size(self, random_image):
        """Should expose width, height, channels and buffer length."""
        assert random_image.size == (24, 18)
        assert random_image.channels == 3
        assert random_image.byte_size() == 24 * 18 * 3
        assert random_image.data.size == random_image.byte_size()

    def test_empty_image_is_invalid(self):
        """Should report an empty image as invalid with zero dimensions."""
        empty = RasterImage.empty()
        assert not empty.is_valid()
        assert empty.data is None
        assert (empty.width, empty.height, empty.channels) == (0, 0, 0)
        assert empty.byte_size() == 0

    def test_two_dimensional_array_becomes_one_channel(self):
        """Should treat a 2-D array as a single-channel image."""
        image = RasterImage(np.zeros((3, 5), dtype=np.uint8))
        assert image.channels == 1
        assert image.size == (5, 3)

    def test_rejects_unsupported_layouts(self):
        """Should refuse non-uint8 data and more than four channels."""
        with pytest.raises(ValueError):
            RasterImage(np.zeros((2, 2, 3), dtype=np.float32))
        with pytest.raises(ValueError):
            RasterImage(np.zeros((2, 2, 5), dtype=np.uint8))

    def test_buffer_is_read_only(self, random_image):
        """Should not allow writes through the exposed buffer."""
        with pytest.raises(ValueError):
            random_image.data[0, 0, 0] = 1


class TestOwnership:
    """Tests for single-owner transfer semantics."""

    def test_copy_is_refused(self, random_image):
        """Should raise on shallow and deep copies."""
        with pytest.raises(TypeError):
            copy.copy(random_image)
        with pytest.raises(TypeError):
            copy.deepcopy(random_image)

    def test_release_moves_buffer(self, random_image):
        """Should hand the buffer over and invalidate the source."""
        buffer = random_image.data
        moved = random_image.release()

        assert moved.data is buffer
        assert moved.is_valid()
        assert not random_image.is_valid()


class TestPixelQueries:
    """Tests for bounds-checked pixel access."""

    def test_pixel_rgb_in_and_out_of_bounds(self):
        """Should read pixels and return zeros outside the image."""
        data = np.array([[[10, 20, 30], [40, 50, 60]]], dtype=np.uint8)
        image = RasterImage(data)

        assert image.pixel_rgb(1, 0) == (40, 50, 60)
        assert image.pixel_rgb(2, 0) == (0, 0, 0)
        assert image.pixel_rgb(-1, 0) == (0, 0, 0)

    def test_pixel_rgb_needs_three_channels(self):
        """Should return zeros for gray images."""
        image = RasterImage(np.full((2, 2), 99, dtype=np.uint8))
        assert image.pixel_rgb(0, 0) == (0, 0, 0)

    def test_pixel_rgba_fills_missing_channels(self):
        """Should default alpha to 255 and missing color channels to 0."""
        rgb = RasterImage(np.array([[[1, 2, 3]]], dtype=np.uint8))
        gray = RasterImage(np.array([[7]], dtype=np.uint8))
        rgba = RasterImage(np.array([[[1, 2, 3, 4]]], dtype=np.uint8))

        assert rgb.pixel_rgba(0, 0) == (1, 2, 3, 255)
        assert gray.pixel_rgba(0, 0) == (7, 0, 0, 255)
        assert rgba.pixel_rgba(0, 0) == (1, 2, 3, 4)

    def test_luminance_uses_bt709_weights(self):
        """Should weight normalized RGB by 0.2126/0.7152/0.0722."""
        image = RasterImage(np.array([[[255, 0, 0], [0, 255, 0], [0, 0, 255]]], dtype=np.uint8))

        assert image.luminance(0, 0) == pytest.approx(0.2126)
        assert image.luminance(1, 0) == pytest.approx(0.7152)
        assert image.luminance(2, 0) == pytest.approx(0.0722)
        assert image.luminance(5, 5) == 0.0

    def test_luminance_map_matches_pointwise_luminance(self, random_image):
        """Should agree with the per-pixel query everywhere."""
        luma = random_image.luminance_map()
        for y, x in [(0, 0), (5, 7), (17, 23)]:
            assert luma[y, x] == pytest.approx(random_image.luminance(x, y))

    def test_gray_images_expand_to_rgb(self):
        """Should report gray samples as equal R, G and B."""
        image = RasterImage(np.array([[128]], dtype=np.uint8))
        assert image.color_at(0, 0) == (128, 128, 128)
        assert image.rgb_array().shape == (1, 1, 3)
        assert image.luminance(0, 0) == pytest.approx(128 / 255)


class TestLoadImage:
    """Tests for the Pillow decoder boundary."""

    def test_loads_png_as_rgb(self, png_path):
        """Should decode into a 3-channel raster."""
        image = load_image(png_path)
        assert image.is_valid()
        assert image.size == (64, 40)
        assert image.channels == 3

    def test_converts_to_requested_channels(self, tmp_path):
        """Should convert RGBA files to the requested layout."""
        path = tmp_path / "alpha.png"
        Image.new('RGBA', (4, 3), (10, 20, 30, 40)).save(path)

        assert load_image(path, channels=4).channels == 4
        assert load_image(path, channels=1).channels == 1
        assert load_image(path, channels=0).channels == 4

    def test_missing_file_gives_invalid_image(self, tmp_path):
        """Should report a missing file as an invalid image."""
        assert not load_image(tmp_path / "nope.png").is_valid()

    def test_undecodable_file_gives_invalid_image(self, tmp_path):
        """Should report garbage bytes as an invalid image."""
        path = tmp_path / "broken.png"
        path.write_bytes(b"definitely not an image")
        assert not load_image(path).is_valid()
