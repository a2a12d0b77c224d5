"""Core modules for sequence alignment and rigid superposition."""

from seqsuperpose.core.alignment import (
    AlignmentFailure,
    FailureKind,
    SuperpositionResult,
    align_and_superpose,
    align_and_superpose_many,
    select_best_chain_pair,
    superpose_by_residue_numbering,
)
from seqsuperpose.core.errors import (
    InternalConsistencyError,
    NonFiniteCoordinatesError,
    SuperpositionError,
)
from seqsuperpose.core.io import extract_chain_residues, get_structure, validate_file
from seqsuperpose.core.mapping import (
    MatchedPositionSet,
    extract_coordinates,
    map_to_matched_positions,
)
from seqsuperpose.core.matrices import SubstitutionMatrix, detect_molecule_class, matrix_for
from seqsuperpose.core.residues import Residue, residues_from_records
from seqsuperpose.core.sequences import AlignmentPath, align, get_sequence
from seqsuperpose.core.structural import superimpose_structures

__all__ = [
    "AlignmentFailure",
    "AlignmentPath",
    "FailureKind",
    "InternalConsistencyError",
    "MatchedPositionSet",
    "NonFiniteCoordinatesError",
    "Residue",
    "SubstitutionMatrix",
    "SuperpositionError",
    "SuperpositionResult",
    "align",
    "align_and_superpose",
    "align_and_superpose_many",
    "detect_molecule_class",
    "extract_chain_residues",
    "extract_coordinates",
    "get_sequence",
    "get_structure",
    "map_to_matched_positions",
    "matrix_for",
    "residues_from_records",
    "select_best_chain_pair",
    "superimpose_structures",
    "superpose_by_residue_numbering",
    "validate_file",
]
