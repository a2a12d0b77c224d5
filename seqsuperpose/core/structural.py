"""
Rigid superposition and RMSD calculations

Transforms follow the column-vector convention: a point ``a`` of the moving
set is placed at ``rotation @ a + translation``. For (N, 3) arrays this is
``coords @ rotation.T + translation``.
"""

import logging

import numpy as np
from Bio.SVDSuperimposer import SVDSuperimposer

from .errors import NonFiniteCoordinatesError

logger = logging.getLogger(__name__)


def _check_coordinate_sets(coords_a: np.ndarray, coords_b: np.ndarray) -> None:
    if coords_a.shape != coords_b.shape:
        raise ValueError(
            f"Coordinate arrays must have same shape. "
            f"Got {coords_a.shape} and {coords_b.shape}"
        )
    if coords_a.ndim != 2 or coords_a.shape[1] != 3:
        raise ValueError(f"Coordinate arrays must have shape (N, 3). Got {coords_a.shape}")
    if len(coords_a) == 0:
        raise ValueError("Cannot superimpose empty coordinate arrays")
    if not (np.isfinite(coords_a).all() and np.isfinite(coords_b).all()):
        raise NonFiniteCoordinatesError("Coordinate arrays contain NaN or infinite values")


def superimpose_structures(coords_a: np.ndarray, coords_b: np.ndarray) -> tuple:
    """
    Find the rotation and translation moving ``coords_a`` onto ``coords_b``.

    Uses the SVD-based least-squares fit (Kabsch) with reflection correction.
    A single point pair yields the identity rotation and the offset between the
    points. Degenerate (collinear or coplanar) sets still yield a valid but not
    necessarily unique rotation.

    Args:
        coords_a: Moving coordinates (N x 3)
        coords_b: Target coordinates (N x 3)

    Returns:
        tuple: (rmsd, rotation_matrix, translation_vector)

    Raises:
        ValueError: If the arrays differ in shape or are empty
        NonFiniteCoordinatesError: If any coordinate is NaN or infinite
    """
    coords_a = np.asarray(coords_a, dtype=np.float64)
    coords_b = np.asarray(coords_b, dtype=np.float64)
    _check_coordinate_sets(coords_a, coords_b)

    if len(coords_a) == 1:
        rotation_matrix = np.eye(3)
        translation_vector = coords_b[0] - coords_a[0]
    else:
        superimposer = SVDSuperimposer()
        superimposer.set(coords_b, coords_a)
        superimposer.run()
        # SVDSuperimposer rotates row vectors (coords @ rot + tran)
        rot, tran = superimposer.get_rotran()
        rotation_matrix = np.asarray(rot).T
        translation_vector = np.asarray(tran)

    rmsd = calculate_rmsd_from_coords(coords_b, coords_a, rotation_matrix, translation_vector)
    logger.debug("Superimposed %d points, RMSD %.3f", len(coords_a), rmsd)
    return rmsd, rotation_matrix, translation_vector


def apply_transform(
    coords: np.ndarray, rotation_matrix: np.ndarray, translation_vector: np.ndarray
) -> np.ndarray:
    """Apply ``rotation @ x + translation`` to every row of ``coords``."""
    return np.dot(np.asarray(coords, dtype=np.float64), rotation_matrix.T) + translation_vector


def calculate_rmsd_from_coords(
    coords1: np.ndarray,
    coords2: np.ndarray,
    rotation_matrix: np.ndarray | None = None,
    translation_vector: np.ndarray | None = None,
) -> float:
    """
    Calculate RMSD between two sets of coordinates.

    Args:
        coords1: Reference coordinates (N x 3 array)
        coords2: Coordinates to compare (N x 3 array)
        rotation_matrix: Optional rotation to apply to coords2
        translation_vector: Optional translation to apply to coords2

    Returns:
        RMSD value in Angstroms

    Raises:
        ValueError: If coordinate arrays have different shapes or are empty
    """
    coords1 = np.asarray(coords1, dtype=np.float64)
    coords2 = np.asarray(coords2, dtype=np.float64)
    if coords1.shape != coords2.shape:
        raise ValueError(
            f"Coordinate arrays must have same shape. "
            f"Got {coords1.shape} and {coords2.shape}"
        )

    if len(coords1) == 0:
        raise ValueError("Cannot calculate RMSD for empty coordinate arrays")

    if rotation_matrix is not None and translation_vector is not None:
        coords2 = apply_transform(coords2, rotation_matrix, translation_vector)

    squared_dists = np.sum((coords1 - coords2) ** 2, axis=1)
    return float(np.sqrt(np.mean(squared_dists)))


def calculate_per_residue_deviation(
    coords_a: np.ndarray,
    coords_b: np.ndarray,
    rotation_matrix: np.ndarray,
    translation_vector: np.ndarray,
) -> np.ndarray:
    """Distance between each fitted point of ``coords_a`` and its partner in ``coords_b``."""
    fitted = apply_transform(coords_a, rotation_matrix, translation_vector)
    return np.linalg.norm(fitted - np.asarray(coords_b, dtype=np.float64), axis=1)


def calculate_orientation_error(rotation_matrix: np.ndarray) -> float:
    """
    Calculate orientation error in degrees from rotation matrix.

    Args:
        rotation_matrix: 3x3 rotation matrix

    Returns:
        Rotation angle in degrees
    """
    # trace(R) = 1 + 2*cos(theta)
    cos_theta = (np.trace(rotation_matrix) - 1) / 2
    cos_theta = np.clip(cos_theta, -1, 1)
    return float(np.degrees(np.arccos(cos_theta)))
