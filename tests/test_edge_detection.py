"""
Unit tests for Sobel edge detection.
"""

import copy
import os

import numpy as np
import pytest

from img2ascii.constants import Backend, MAX_THREADS
from img2ascii.edge_detection import (
    AcceleratedGradientEngine,
    EdgeDetector,
    EdgeField,
    GradientEngine,
    ReferenceGradientEngine,
    detect_edges,
    get_gradient_engine,
    partition_rows,
    resolve_thread_count,
)
from img2ascii.raster import RasterImage


ENGINES = [ReferenceGradientEngine, AcceleratedGradientEngine]


def orientation_distance(a, b):
    """Smallest difference between two orientations in degrees, modulo 180."""
    d = np.abs(a - b) % 180.0
    return np.minimum(d, 180.0 - d)


def step_image(width, height, vertical=True):
    """Black/white step: left|right halves if vertical, else top/bottom."""
    data = np.zeros((height, width, 3), dtype=np.uint8)
    if vertical:
        data[:, width // 2:] = 255
    else:
        data[height // 2:, :] = 255
    return RasterImage(data)


@pytest.mark.parametrize("engine_cls", ENGINES, ids=lambda c: c.backend.value)
class TestDetect:
    """Tests for EdgeDetector.detect on both engines."""

    def test_borders_are_zero(self, engine_cls, random_image):
        """Should leave every border pixel at magnitude exactly 0."""
        edges = EdgeDetector(engine_cls(), threads=3).detect(random_image, block_size=1)
        mag = edges.magnitude

        assert np.all(mag[0] == 0.0)
        assert np.all(mag[-1] == 0.0)
        assert np.all(mag[:, 0] == 0.0)
        assert np.all(mag[:, -1] == 0.0)

    def test_normalized_to_unit_maximum(self, engine_cls, random_image):
        """Should scale magnitudes so the maximum is exactly 1."""
        edges = EdgeDetector(engine_cls(), threads=1).detect(random_image)
        assert edges.magnitude.max() == 1.0
        assert edges.magnitude.min() >= 0.0

    def test_angles_are_folded(self, engine_cls, random_image):
        """Should keep every angle within [0, 180]."""
        edges = EdgeDetector(engine_cls(), threads=1).detect(random_image)
        assert np.all(edges.angle >= 0.0)
        assert np.all(edges.angle <= 180.0)

    def test_uniform_image_has_no_edges(self, engine_cls, solid_image):
        """Should return an all-zero field without dividing by zero."""
        edges = EdgeDetector(engine_cls(), threads=2).detect(
            solid_image(9, 7, (80, 160, 240)), block_size=1)

        assert edges.is_valid()
        assert np.all(edges.magnitude == 0.0)
        assert not np.any(np.isnan(edges.magnitude))

    @pytest.mark.parametrize("threads", [2, 3, 7, 64])
    def test_thread_count_does_not_change_result(self, engine_cls, random_image, threads):
        """Should produce bit-identical fields for any worker count."""
        single = EdgeDetector(engine_cls(), threads=1).detect(random_image, block_size=1)
        multi = EdgeDetector(engine_cls(), threads=threads).detect(random_image, block_size=1)

        np.testing.assert_array_equal(multi.magnitude, single.magnitude)
        np.testing.assert_array_equal(multi.angle, single.angle)

    def test_auto_thread_count_matches_single(self, engine_cls, random_image):
        """Should match the single-worker result with hardware-dependent workers."""
        single = EdgeDetector(engine_cls(), threads=1).detect(random_image, block_size=1)
        auto = EdgeDetector(engine_cls(), threads=0).detect(random_image, block_size=1)

        np.testing.assert_array_equal(auto.magnitude, single.magnitude)
        np.testing.assert_array_equal(auto.angle, single.angle)

    def test_vertical_step(self, engine_cls):
        """Should find a horizontal gradient (angle 0) along a vertical step."""
        edges = EdgeDetector(engine_cls(), threads=1).detect(step_image(6, 5, vertical=True))

        # Luminance columns 0 0 0 1 1 1: gx != 0 at x = 2 and x = 3
        np.testing.assert_array_equal(edges.magnitude[1:-1, 2], 1.0)
        np.testing.assert_array_equal(edges.magnitude[1:-1, 3], 1.0)
        np.testing.assert_array_equal(edges.magnitude[1:-1, 1], 0.0)
        np.testing.assert_array_equal(edges.angle[1:-1, 2], 0.0)

    def test_horizontal_step(self, engine_cls):
        """Should find a vertical gradient (angle 90) along a horizontal step."""
        edges = EdgeDetector(engine_cls(), threads=1).detect(step_image(5, 6, vertical=False))

        np.testing.assert_array_equal(edges.magnitude[2, 1:-1], 1.0)
        np.testing.assert_allclose(edges.angle[2, 1:-1], 90.0)

    def test_negative_angles_fold_by_180(self, engine_cls):
        """Should fold gradients pointing left or up into [0, 180]."""
        # Bright on the left: gx < 0, gy = 0 -> horizontal orientation
        data = np.zeros((5, 6, 3), dtype=np.uint8)
        data[:, :3] = 255
        edges = EdgeDetector(engine_cls(), threads=1).detect(RasterImage(data))
        assert np.all(orientation_distance(edges.angle[1:-1, 2], 0.0) < 1e-9)
        assert np.all((edges.angle >= 0.0) & (edges.angle <= 180.0))

        # Bright at the top: gy < 0, gx = 0 -> atan2 = -90, folded to 90
        data = np.zeros((6, 5, 3), dtype=np.uint8)
        data[:3] = 255
        edges = EdgeDetector(engine_cls(), threads=1).detect(RasterImage(data))
        np.testing.assert_allclose(edges.angle[2, 1:-1], 90.0)

    def test_invalid_image(self, engine_cls):
        """Should return an invalid field for an invalid image."""
        edges = EdgeDetector(engine_cls()).detect(RasterImage.empty())
        assert not edges.is_valid()

    @pytest.mark.parametrize("size", [(1, 1), (2, 2), (2, 9), (9, 2)])
    def test_images_without_interior(self, engine_cls, rng, size):
        """Should return an all-zero field when there are no interior pixels."""
        width, height = size
        image = RasterImage(rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8))
        edges = EdgeDetector(engine_cls(), threads=4).detect(image, block_size=1)

        assert edges.is_valid()
        assert edges.magnitude.shape == (height, width)
        assert np.all(edges.magnitude == 0.0)

    def test_gray_image(self, engine_cls):
        """Should detect edges in single-channel images."""
        data = np.zeros((5, 6), dtype=np.uint8)
        data[:, 3:] = 200
        edges = EdgeDetector(engine_cls(), threads=1).detect(RasterImage(data))
        assert edges.magnitude.max() == 1.0


class TestBackendAgreement:
    """Tests that the reference and accelerated engines match."""

    @pytest.mark.parametrize("threads", [1, 4])
    def test_random_image(self, random_image, threads):
        """Should agree on magnitudes and orientations within tolerance."""
        reference = EdgeDetector(ReferenceGradientEngine(), threads).detect(random_image, 1)
        accelerated = EdgeDetector(AcceleratedGradientEngine(), threads).detect(random_image, 1)

        np.testing.assert_allclose(accelerated.magnitude, reference.magnitude, rtol=0, atol=1e-6)
        significant = reference.magnitude > 1e-9
        assert np.all(orientation_distance(accelerated.angle, reference.angle)[significant] < 1e-6)

    def test_larger_image(self, rng):
        """Should agree on a larger, rectangular image."""
        image = RasterImage(rng.integers(0, 256, size=(45, 120, 3), dtype=np.uint8))
        reference = detect_edges(image, Backend.REFERENCE, threads=3, block_size=4)
        accelerated = detect_edges(image, Backend.ACCELERATED, threads=3, block_size=4)

        np.testing.assert_allclose(accelerated.magnitude, reference.magnitude, rtol=0, atol=1e-6)


class TestWorkerFailures:
    """Tests for error propagation out of the worker pool."""

    def test_worker_exception_propagates(self, random_image):
        """Should re-raise an exception raised inside a worker."""
        class BrokenEngine(GradientEngine):
            backend = Backend.REFERENCE

            def compute_block(self, luma, start, end):
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            EdgeDetector(BrokenEngine(), threads=4).detect(random_image, block_size=1)


class TestPartitionRows:
    """Tests for row-block partitioning."""

    @pytest.mark.parametrize("height", [3, 4, 10, 45, 101])
    @pytest.mark.parametrize("workers", [1, 2, 3, 8, 64])
    def test_blocks_cover_interior_once(self, height, workers):
        """Should cover rows [1, h-1) with contiguous non-overlapping blocks."""
        blocks = partition_rows(height, workers, block_size=1)

        assert blocks[0][0] == 1
        assert blocks[-1][1] == height - 1
        for (_, end), (start, _) in zip(blocks, blocks[1:]):
            assert end == start
        assert all(start < end for start, end in blocks)
        assert len(blocks) <= workers

    def test_no_interior_rows(self):
        """Should return no blocks for images under three rows tall."""
        assert partition_rows(2, 4) == []
        assert partition_rows(0, 4) == []

    def test_block_size_limits_block_count(self):
        """Should not create blocks shorter than block_size when avoidable."""
        assert partition_rows(10, 64, block_size=16) == [(1, 9)]
        assert len(partition_rows(100, 64, block_size=16)) == 7

    def test_even_split(self):
        """Should split rows as evenly as ceil division allows."""
        assert partition_rows(10, 3, block_size=1) == [(1, 4), (4, 7), (7, 9)]


class TestResolveThreadCount:
    """Tests for worker count resolution."""

    def test_explicit_counts(self):
        """Should keep counts within range."""
        assert resolve_thread_count(1) == 1
        assert resolve_thread_count(5) == 5

    def test_clamps_to_maximum(self):
        """Should clamp large requests to the maximum."""
        assert resolve_thread_count(1000) == MAX_THREADS

    @pytest.mark.parametrize("requested", [0, -3])
    def test_auto(self, requested):
        """Should use the CPU count for 0 and negative requests."""
        expected = max(1, min(MAX_THREADS, os.cpu_count() or 1))
        assert resolve_thread_count(requested) == expected


class TestEdgeField:
    """Tests for the EdgeField container."""

    def test_edge_at_is_bounds_checked(self):
        """Should return zeros outside the field."""
        field = EdgeField.zeros(3, 2)
        field.magnitude[1, 2] = 0.5
        field.angle[1, 2] = 45.0

        assert field.edge_at(2, 1) == (0.5, 45.0)
        assert field.edge_at(3, 1) == (0.0, 0.0)
        assert field.edge_at(-1, 0) == (0.0, 0.0)

    def test_copy_is_refused(self):
        """Should raise on copies."""
        with pytest.raises(TypeError):
            copy.copy(EdgeField.zeros(2, 2))
        with pytest.raises(TypeError):
            copy.deepcopy(EdgeField.zeros(2, 2))

    def test_release(self):
        """Should move both arrays and invalidate the source."""
        field = EdgeField.zeros(4, 4)
        moved = field.release()
        assert moved.is_valid()
        assert not field.is_valid()

    def test_factory(self):
        """Should build engines by name and reject unknown names."""
        assert isinstance(get_gradient_engine("accelerated"), AcceleratedGradientEngine)
        assert isinstance(get_gradient_engine(Backend.REFERENCE), ReferenceGradientEngine)
        with pytest.raises(ValueError):
            get_gradient_engine("simd")
