"""
Tests for rigid superposition and RMSD calculations
"""

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from conftest import helix_coordinates, rotation_about_axis
from seqsuperpose.core.errors import NonFiniteCoordinatesError
from seqsuperpose.core.structural import (
    apply_transform,
    calculate_orientation_error,
    calculate_per_residue_deviation,
    calculate_rmsd_from_coords,
    superimpose_structures,
)


def random_rotation(rng):
    """Uniform proper rotation from the QR decomposition of a Gaussian matrix"""
    q, r = np.linalg.qr(rng.normal(size=(3, 3)))
    q = q * np.sign(np.diag(r))
    if np.linalg.det(q) < 0:
        q[:, 0] = -q[:, 0]
    return q


def assert_proper_rotation(rotation):
    np.testing.assert_allclose(np.dot(rotation, rotation.T), np.eye(3), atol=1e-9)
    assert np.linalg.det(rotation) == pytest.approx(1.0, abs=1e-9)


class TestSuperimposeStructures:
    """Test the Kabsch solver"""

    def test_identical_coordinates(self):
        coords = helix_coordinates(10)

        rmsd, rotation, translation = superimpose_structures(coords, coords)

        assert rmsd == pytest.approx(0.0, abs=1e-9)
        np.testing.assert_allclose(rotation, np.eye(3), atol=1e-6)
        np.testing.assert_allclose(translation, np.zeros(3), atol=1e-6)

    def test_translation_only(self):
        coords_a = helix_coordinates(8)
        offset = np.array([10.0, -5.0, 2.5])

        rmsd, rotation, translation = superimpose_structures(coords_a, coords_a + offset)

        assert rmsd == pytest.approx(0.0, abs=1e-9)
        np.testing.assert_allclose(rotation, np.eye(3), atol=1e-6)
        np.testing.assert_allclose(translation, offset, atol=1e-6)

    def test_recovers_known_rotation(self):
        coords_a = helix_coordinates(12)
        expected_rotation = rotation_about_axis([0.3, -1.0, 0.7], 72.0)
        expected_translation = np.array([1.0, 2.0, -3.0])
        coords_b = apply_transform(coords_a, expected_rotation, expected_translation)

        rmsd, rotation, translation = superimpose_structures(coords_a, coords_b)

        assert rmsd == pytest.approx(0.0, abs=1e-6)
        np.testing.assert_allclose(rotation, expected_rotation, atol=1e-6)
        np.testing.assert_allclose(translation, expected_translation, atol=1e-6)

    @settings(max_examples=40, deadline=None)
    @given(st.integers(min_value=0, max_value=2**32 - 1))
    def test_recovers_random_rotation(self, seed):
        rng = np.random.default_rng(seed)
        coords_a = rng.normal(size=(8, 3)) * 5.0
        expected_rotation = random_rotation(rng)
        expected_translation = rng.normal(size=3) * 10.0
        coords_b = apply_transform(coords_a, expected_rotation, expected_translation)

        rmsd, rotation, translation = superimpose_structures(coords_a, coords_b)

        assert rmsd == pytest.approx(0.0, abs=1e-6)
        assert_proper_rotation(rotation)
        np.testing.assert_allclose(rotation, expected_rotation, atol=1e-6)
        np.testing.assert_allclose(translation, expected_translation, atol=1e-5)

    def test_single_point(self):
        rmsd, rotation, translation = superimpose_structures(
            np.array([[1.0, 2.0, 3.0]]), np.array([[4.0, 6.0, 8.0]])
        )

        assert rmsd == pytest.approx(0.0)
        np.testing.assert_array_equal(rotation, np.eye(3))
        np.testing.assert_allclose(translation, [3.0, 4.0, 5.0])

    def test_collinear_points(self):
        coords_a = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
        coords_b = coords_a + np.array([0.0, 5.0, 0.0])

        rmsd, rotation, _ = superimpose_structures(coords_a, coords_b)

        assert rmsd == pytest.approx(0.0, abs=1e-9)
        assert_proper_rotation(rotation)

    def test_mirror_image_stays_proper(self):
        """A reflected set cannot be matched exactly by a proper rotation"""
        coords_a = helix_coordinates(10)
        coords_b = coords_a * np.array([1.0, 1.0, -1.0])

        rmsd, rotation, _ = superimpose_structures(coords_a, coords_b)

        assert_proper_rotation(rotation)
        assert rmsd > 0.1

    def test_rmsd_matches_definition(self):
        rng = np.random.default_rng(7)
        coords_a = helix_coordinates(15)
        coords_b = apply_transform(
            coords_a, rotation_about_axis([1.0, 0.0, 0.0], 40.0), np.array([0.0, 3.0, 0.0])
        )
        coords_b = coords_b + rng.normal(scale=0.3, size=coords_b.shape)

        rmsd, rotation, translation = superimpose_structures(coords_a, coords_b)

        fitted = np.dot(coords_a, rotation.T) + translation
        expected = np.sqrt(np.mean(np.sum((fitted - coords_b) ** 2, axis=1)))
        assert rmsd == pytest.approx(expected)
        assert rmsd > 0.0

    def test_shape_mismatch(self):
        with pytest.raises(ValueError, match="same shape"):
            superimpose_structures(np.zeros((3, 3)), np.zeros((4, 3)))

    def test_wrong_dimension(self):
        with pytest.raises(ValueError, match=r"\(N, 3\)"):
            superimpose_structures(np.zeros((3, 2)), np.zeros((3, 2)))

    def test_empty(self):
        with pytest.raises(ValueError, match="empty"):
            superimpose_structures(np.zeros((0, 3)), np.zeros((0, 3)))

    @pytest.mark.parametrize("bad_value", [np.nan, np.inf, -np.inf])
    def test_non_finite(self, bad_value):
        coords_a = helix_coordinates(4)
        coords_b = coords_a.copy()
        coords_b[2, 1] = bad_value

        with pytest.raises(NonFiniteCoordinatesError):
            superimpose_structures(coords_a, coords_b)

    def test_non_finite_is_value_error(self):
        coords = helix_coordinates(4)
        coords[0, 0] = np.nan

        with pytest.raises(ValueError):
            superimpose_structures(coords, helix_coordinates(4))


class TestRMSDCalculations:
    """Test RMSD and deviation helpers"""

    def test_rmsd_identical(self):
        coords = helix_coordinates(5)
        assert calculate_rmsd_from_coords(coords, coords) == pytest.approx(0.0)

    def test_rmsd_uniform_offset(self):
        coords = helix_coordinates(5)
        assert calculate_rmsd_from_coords(coords, coords + [0.0, 0.0, 2.0]) == pytest.approx(2.0)

    def test_rmsd_applies_transform_to_second_set(self):
        coords = helix_coordinates(5)
        rotation = rotation_about_axis([0.0, 0.0, 1.0], 90.0)
        moved = apply_transform(coords, rotation.T, np.zeros(3))

        assert calculate_rmsd_from_coords(coords, moved, rotation, np.zeros(3)) == pytest.approx(
            0.0, abs=1e-9
        )

    def test_rmsd_shape_mismatch(self):
        with pytest.raises(ValueError, match="same shape"):
            calculate_rmsd_from_coords(np.zeros((2, 3)), np.zeros((3, 3)))

    def test_rmsd_empty(self):
        with pytest.raises(ValueError, match="empty"):
            calculate_rmsd_from_coords(np.zeros((0, 3)), np.zeros((0, 3)))

    def test_per_residue_deviation(self):
        coords_a = np.zeros((3, 3))
        coords_b = np.array([[1.0, 0.0, 0.0], [0.0, 2.0, 0.0], [0.0, 0.0, 0.0]])

        deviation = calculate_per_residue_deviation(coords_a, coords_b, np.eye(3), np.zeros(3))

        np.testing.assert_allclose(deviation, [1.0, 2.0, 0.0])

    def test_apply_transform(self):
        rotation = rotation_about_axis([0.0, 0.0, 1.0], 90.0)
        moved = apply_transform(np.array([[1.0, 0.0, 0.0]]), rotation, np.array([0.0, 0.0, 1.0]))

        np.testing.assert_allclose(moved, [[0.0, 1.0, 1.0]], atol=1e-12)


class TestOrientationError:
    """Test rotation angle extraction"""

    def test_identity(self):
        assert calculate_orientation_error(np.eye(3)) == pytest.approx(0.0)

    @pytest.mark.parametrize("degrees", [15.0, 90.0, 135.0, 180.0])
    def test_known_angles(self, degrees):
        rotation = rotation_about_axis([1.0, 1.0, 0.0], degrees)
        assert calculate_orientation_error(rotation) == pytest.approx(degrees, abs=1e-4)
