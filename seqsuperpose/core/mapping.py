"""
Translation of gapped alignment columns into residue list positions
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from .errors import InternalConsistencyError
from .residues import Residue
from .sequences import GAP, AlignmentPath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchedPositionSet:
    """Matched residue list positions; ``indices_a[k]`` pairs with ``indices_b[k]``"""

    indices_a: tuple[int, ...] = ()
    indices_b: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if len(self.indices_a) != len(self.indices_b):
            raise InternalConsistencyError(
                f"Matched position arrays differ in length: "
                f"{len(self.indices_a)} and {len(self.indices_b)}"
            )

    def __len__(self) -> int:
        return len(self.indices_a)

    def pairs(self) -> list[tuple[int, int]]:
        return list(zip(self.indices_a, self.indices_b, strict=True))


def map_to_matched_positions(
    path: AlignmentPath, residues_a: Sequence[Residue], residues_b: Sequence[Residue]
) -> MatchedPositionSet:
    """
    Walk an alignment path and collect the residue pairs usable for superposition.

    Two cursors advance independently, each once per non-gap symbol on its side.
    A column contributes a pair only when neither side is a gap and both
    residues have a representative atom; skipped pairs do not shift the cursors.

    Args:
        path: Alignment of the sequences derived from ``residues_a`` and ``residues_b``
        residues_a: Residues the first aligned sequence was derived from
        residues_b: Residues the second aligned sequence was derived from

    Returns:
        MatchedPositionSet with strictly increasing indices on both sides

    Raises:
        InternalConsistencyError: If the path does not cover the residue lists exactly
    """
    cursor_a = 0
    cursor_b = 0
    indices_a: list[int] = []
    indices_b: list[int] = []

    for column, (symbol_a, symbol_b) in enumerate(
        zip(path.aligned_a, path.aligned_b, strict=True)
    ):
        gap_a = symbol_a == GAP
        gap_b = symbol_b == GAP
        if gap_a and gap_b:
            raise InternalConsistencyError(f"Alignment column {column} is a gap on both sides")
        if not gap_a and cursor_a >= len(residues_a):
            raise InternalConsistencyError(
                f"Alignment has more symbols on side A than the {len(residues_a)} residues given"
            )
        if not gap_b and cursor_b >= len(residues_b):
            raise InternalConsistencyError(
                f"Alignment has more symbols on side B than the {len(residues_b)} residues given"
            )

        if not gap_a and not gap_b:
            if residues_a[cursor_a].has_coord and residues_b[cursor_b].has_coord:
                indices_a.append(cursor_a)
                indices_b.append(cursor_b)

        if not gap_a:
            cursor_a += 1
        if not gap_b:
            cursor_b += 1

    if cursor_a != len(residues_a) or cursor_b != len(residues_b):
        raise InternalConsistencyError(
            f"Alignment walk ended at ({cursor_a}, {cursor_b}) "
            f"but residue lists have lengths ({len(residues_a)}, {len(residues_b)})"
        )

    logger.debug(
        "Matched %d of %d alignment columns (cursors %d, %d)",
        len(indices_a),
        len(path),
        cursor_a,
        cursor_b,
    )
    return MatchedPositionSet(indices_a=tuple(indices_a), indices_b=tuple(indices_b))


def extract_coordinates(residues: Sequence[Residue], positions: Sequence[int]) -> np.ndarray:
    """
    Gather representative-atom coordinates for the given residue positions.

    Returns:
        Array of shape (len(positions), 3)

    Raises:
        InternalConsistencyError: If a selected residue has no coordinates
    """
    coords = np.empty((len(positions), 3), dtype=np.float64)
    for k, position in enumerate(positions):
        residue = residues[position]
        if residue.position is None:
            raise InternalConsistencyError(
                f"Residue {residue.code} at position {position} has no representative atom"
            )
        coords[k] = residue.position
    return coords
