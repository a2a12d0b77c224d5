"""
Sequence-alignment driven superposition of two residue lists
"""

import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from .mapping import MatchedPositionSet, extract_coordinates, map_to_matched_positions
from .matrices import SubstitutionMatrix, detect_molecule_class, matrix_for
from .residues import Residue
from .sequences import AlignmentPath, align, get_sequence, to_one_letter
from .structural import (
    apply_transform,
    calculate_orientation_error,
    calculate_per_residue_deviation,
    superimpose_structures,
)

logger = logging.getLogger(__name__)

METHOD_SEQUENCE_ALIGNMENT = "sequence-alignment"
METHOD_RESIDUE_NUMBERING = "residue-numbering"


class FailureKind(str, Enum):
    NO_ALIGNABLE_RESIDUES = "NoAlignableResidues"


@dataclass(frozen=True)
class AlignmentFailure:
    """Outcome of a superposition attempt that found nothing to superpose"""

    kind: FailureKind
    alignment_score: int | None = None
    message: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind.value}


@dataclass(frozen=True, eq=False)
class SuperpositionResult:
    """
    Rigid transform moving side A onto side B, with fit and alignment metrics.

    Attributes:
        rotation: 3x3 orthonormal rotation, applied as ``rotation @ a``
        translation: Translation applied after the rotation
        rmsd: Root-mean-square deviation of the matched points after fitting
        alignment_score: Score of the sequence alignment (0 for numbering-based fits)
        num_aligned_positions: Number of residue pairs used for fitting
        sequence_identity: Identical fraction of gap-free alignment columns
        orientation_error: Rotation angle of the transform in degrees
        translational_error: Length of the translation vector in Angstroms
        per_residue_deviation: Post-fit distance of each matched pair
        matched: Residue list positions used for fitting
        path: Sequence alignment the pairs were derived from, if any
        method: "sequence-alignment" or "residue-numbering"
        molecule_class: Molecule class the substitution matrix was chosen for
    """

    rotation: np.ndarray
    translation: np.ndarray
    rmsd: float
    alignment_score: int
    num_aligned_positions: int
    sequence_identity: float
    orientation_error: float
    translational_error: float
    per_residue_deviation: np.ndarray
    matched: MatchedPositionSet
    path: AlignmentPath | None = None
    method: str = METHOD_SEQUENCE_ALIGNMENT
    molecule_class: str | None = None

    def apply(self, coords: np.ndarray) -> np.ndarray:
        """Move (N, 3) coordinates from the frame of side A into the frame of side B."""
        return apply_transform(coords, self.rotation, self.translation)

    def inverse_transform(self) -> tuple[np.ndarray, np.ndarray]:
        """Return (rotation, translation) moving side B onto side A."""
        rotation = self.rotation.T
        return rotation, -np.dot(rotation, self.translation)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rotation": [float(value) for value in np.ravel(self.rotation, order="C")],
            "translation": [float(value) for value in self.translation],
            "rmsd": float(self.rmsd),
            "alignmentScore": int(self.alignment_score),
            "numAlignedPositions": int(self.num_aligned_positions),
        }


def _superpose_matched(
    residues_a: Sequence[Residue],
    residues_b: Sequence[Residue],
    matched: MatchedPositionSet,
    **metadata: Any,
) -> SuperpositionResult:
    coords_a = extract_coordinates(residues_a, matched.indices_a)
    coords_b = extract_coordinates(residues_b, matched.indices_b)

    rmsd, rotation, translation = superimpose_structures(coords_a, coords_b)

    return SuperpositionResult(
        rotation=rotation,
        translation=translation,
        rmsd=rmsd,
        num_aligned_positions=len(matched),
        orientation_error=calculate_orientation_error(rotation),
        translational_error=float(np.linalg.norm(translation)),
        per_residue_deviation=calculate_per_residue_deviation(
            coords_a, coords_b, rotation, translation
        ),
        matched=matched,
        **metadata,
    )


def align_and_superpose(
    residues_a: Sequence[Residue],
    residues_b: Sequence[Residue],
    molecule_class: str | None = None,
    matrix: SubstitutionMatrix | None = None,
) -> SuperpositionResult | AlignmentFailure:
    """
    Align two residue lists by sequence and superpose the matched residues.

    Args:
        residues_a: Moving residues
        residues_b: Target residues
        molecule_class: "protein" or "other"; detected from ``residues_a`` when None
        matrix: Custom substitution matrix; when given, ``molecule_class`` is ignored
            and the result reports no molecule class

    Returns:
        SuperpositionResult moving A onto B, or AlignmentFailure when no
        aligned residue pair has coordinates on both sides

    Raises:
        InternalConsistencyError: If the alignment cannot be reconciled with the inputs
        NonFiniteCoordinatesError: If matched coordinates are NaN or infinite
    """
    residues_a = list(residues_a)
    residues_b = list(residues_b)

    if matrix is not None:
        molecule_class = None
    else:
        if molecule_class is None:
            molecule_class = detect_molecule_class(residues_a)
            other_class = detect_molecule_class(residues_b)
            if residues_b and other_class != molecule_class:
                logger.warning(
                    "Molecule classes differ (%s vs %s); scoring both sides as %s",
                    molecule_class,
                    other_class,
                    molecule_class,
                )
        matrix = matrix_for(molecule_class)

    path = align(get_sequence(residues_a), get_sequence(residues_b), matrix)
    matched = map_to_matched_positions(path, residues_a, residues_b)

    if not matched:
        logger.info(
            "No alignable residues between %d and %d residues (score %d)",
            len(residues_a),
            len(residues_b),
            path.score,
        )
        return AlignmentFailure(
            kind=FailureKind.NO_ALIGNABLE_RESIDUES,
            alignment_score=path.score,
            message="No aligned residue pair has coordinates on both sides",
        )

    result = _superpose_matched(
        residues_a,
        residues_b,
        matched,
        alignment_score=path.score,
        sequence_identity=path.sequence_identity,
        path=path,
        method=METHOD_SEQUENCE_ALIGNMENT,
        molecule_class=molecule_class,
    )
    logger.info(
        "Superposed %d aligned residues: RMSD %.3f, score %d",
        result.num_aligned_positions,
        result.rmsd,
        result.alignment_score,
    )
    return result


def align_and_superpose_many(
    reference: Sequence[Residue],
    targets: Sequence[Sequence[Residue]],
    molecule_class: str | None = None,
    max_workers: int | None = None,
) -> list[SuperpositionResult | AlignmentFailure]:
    """
    Superpose several residue lists onto one reference.

    The molecule class is decided once, from the reference. Each target is the
    moving side of its superposition. With ``max_workers`` greater than one the
    pairs are processed on a thread pool; results keep the order of ``targets``.
    """
    reference = list(reference)
    if molecule_class is None:
        molecule_class = detect_molecule_class(reference)

    def superpose_target(target: Sequence[Residue]) -> SuperpositionResult | AlignmentFailure:
        return align_and_superpose(target, reference, molecule_class=molecule_class)

    if max_workers is None or max_workers <= 1:
        return [superpose_target(target) for target in targets]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(superpose_target, targets))


def superpose_by_residue_numbering(
    residues_a: Sequence[Residue], residues_b: Sequence[Residue]
) -> SuperpositionResult | AlignmentFailure:
    """
    Superpose residues paired by identical sequence numbers instead of alignment.

    Residues without a ``seqid`` or without coordinates are ignored. When a
    number occurs more than once on either side, its first occurrence with
    coordinates is used.
    """
    residues_a = list(residues_a)
    residues_b = list(residues_b)

    positions_b: dict[str, int] = {}
    for position, residue in enumerate(residues_b):
        if residue.seqid and residue.has_coord:
            positions_b.setdefault(residue.seqid, position)

    indices_a = []
    indices_b = []
    seen_a: set[str] = set()
    for position, residue in enumerate(residues_a):
        if not residue.seqid or not residue.has_coord or residue.seqid in seen_a:
            continue
        seen_a.add(residue.seqid)
        partner = positions_b.get(residue.seqid)
        if partner is not None:
            indices_a.append(position)
            indices_b.append(partner)

    if not indices_a:
        logger.info("No residue numbers shared between the two residue lists")
        return AlignmentFailure(
            kind=FailureKind.NO_ALIGNABLE_RESIDUES,
            message="No residue number occurs with coordinates on both sides",
        )

    matched = MatchedPositionSet(indices_a=tuple(indices_a), indices_b=tuple(indices_b))
    identical = sum(
        1
        for a, b in matched.pairs()
        if to_one_letter(residues_a[a].code) == to_one_letter(residues_b[b].code)
    )
    return _superpose_matched(
        residues_a,
        residues_b,
        matched,
        alignment_score=0,
        sequence_identity=identical / len(matched),
        method=METHOD_RESIDUE_NUMBERING,
    )


def select_best_chain_pair(
    chains_a: Mapping[str, Sequence[Residue]], chains_b: Mapping[str, Sequence[Residue]]
) -> tuple[str, str] | None:
    """
    Pick the chain pair of matching molecule class with the most residues in common.

    Pairs are ranked by the length of their shorter chain; the first pair found
    wins ties.

    Returns:
        (chain_id_a, chain_id_b), or None if no pair shares a molecule class
    """
    classes_b = {chain_id: detect_molecule_class(residues) for chain_id, residues in chains_b.items()}

    best_pair = None
    best_score = 0
    for chain_id_a, residues_a in chains_a.items():
        class_a = detect_molecule_class(residues_a)
        for chain_id_b, residues_b in chains_b.items():
            if classes_b[chain_id_b] != class_a:
                continue
            score = min(len(residues_a), len(residues_b))
            if score > best_score:
                best_score = score
                best_pair = (chain_id_a, chain_id_b)

    return best_pair
