"""
Substitution matrices for sequence alignment

Proteins are scored with BLOSUM62, everything else (nucleic acids, ligands,
generic polymers) with a simple identity matrix. Both use a linear gap model.
"""

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from functools import lru_cache

import numpy as np
from Bio.Align import substitution_matrices

from .residues import Residue
from .sequences import (
    AMBIGUOUS_ONE_LETTER_CODES,
    AMINO_ACID_CODES,
    NUCLEOTIDE_CODES,
    ONE_LETTER_AMINO_ACIDS,
)

logger = logging.getLogger(__name__)

MOLECULE_CLASS_PROTEIN = "protein"
MOLECULE_CLASS_OTHER = "other"

# Linear gap penalties, added once per gap position
PROTEIN_GAP_PENALTY = -4
IDENTITY_GAP_PENALTY = -2

IDENTITY_MATCH_SCORE = 2
IDENTITY_MISMATCH_SCORE = -1

PROTEIN_SUBTYPE_PATTERN = re.compile(r"(polypeptide|cyclic-pseudo-peptide)", re.IGNORECASE)


@dataclass(frozen=True)
class SubstitutionMatrix:
    """
    Symmetric pair scoring table plus a linear gap penalty.

    When ``table`` is set, codes are looked up in ``alphabet`` and anything
    outside it is scored as ``fallback_code``. Without a table, identical codes
    score ``match_score`` and different codes ``mismatch_score``.
    """

    name: str
    gap_penalty: int
    match_score: int = 0
    mismatch_score: int = 0
    alphabet: str = ""
    fallback_code: str = "X"
    table: np.ndarray | None = field(default=None, compare=False, repr=False)

    def _alphabet_indices(self, sequence: Sequence[str]) -> np.ndarray:
        positions = {letter: index for index, letter in enumerate(self.alphabet)}
        fallback = positions[self.fallback_code]
        return np.array([positions.get(code, fallback) for code in sequence], dtype=np.intp)

    def pair_scores(self, seq_a: Sequence[str], seq_b: Sequence[str]) -> np.ndarray:
        """Return the ``(len(seq_a), len(seq_b))`` matrix of pair scores."""
        if self.table is not None:
            rows = self._alphabet_indices(seq_a)
            cols = self._alphabet_indices(seq_b)
            return self.table[np.ix_(rows, cols)].astype(np.int64)

        codes_a = np.array(list(seq_a), dtype=str)
        codes_b = np.array(list(seq_b), dtype=str)
        identical = codes_a[:, np.newaxis] == codes_b[np.newaxis, :]
        return np.where(identical, self.match_score, self.mismatch_score).astype(np.int64)

    def score(self, code_a: str, code_b: str) -> int:
        return int(self.pair_scores([code_a], [code_b])[0, 0])


def _blosum62() -> SubstitutionMatrix:
    blosum = substitution_matrices.load("BLOSUM62")
    table = np.array(blosum, dtype=np.int64)
    table.setflags(write=False)
    return SubstitutionMatrix(
        name="blosum62",
        gap_penalty=PROTEIN_GAP_PENALTY,
        alphabet=blosum.alphabet,
        table=table,
    )


def _identity() -> SubstitutionMatrix:
    return SubstitutionMatrix(
        name="identity",
        gap_penalty=IDENTITY_GAP_PENALTY,
        match_score=IDENTITY_MATCH_SCORE,
        mismatch_score=IDENTITY_MISMATCH_SCORE,
    )


@lru_cache(maxsize=None)
def matrix_for(molecule_class: str) -> SubstitutionMatrix:
    """
    Select the substitution matrix for a molecule class.

    Args:
        molecule_class: "protein" or "other"; unrecognised values count as "other"

    Returns:
        Shared, immutable SubstitutionMatrix
    """
    if molecule_class == MOLECULE_CLASS_PROTEIN:
        return _blosum62()
    if molecule_class != MOLECULE_CLASS_OTHER:
        logger.debug("Unrecognised molecule class %r, using identity matrix", molecule_class)
    return _identity()


def molecule_class_from_subtype(subtype: str | None) -> str:
    """Map an mmCIF entity subtype (e.g. "polypeptide(L)") to a molecule class."""
    if subtype and PROTEIN_SUBTYPE_PATTERN.search(subtype):
        return MOLECULE_CLASS_PROTEIN
    return MOLECULE_CLASS_OTHER


def detect_molecule_class(residues: Iterable[Residue]) -> str:
    """
    Classify residues as protein when amino acids outnumber nucleotides.

    The one-letter codes A, C, G, T and U are ambiguous and count towards
    neither side, so "AGV" is protein while "ACGU" is not.
    """
    protein_residues = 0
    nucleotide_residues = 0

    for residue in residues:
        code = residue.code.upper()
        if code in AMBIGUOUS_ONE_LETTER_CODES:
            continue
        if code in AMINO_ACID_CODES or code in ONE_LETTER_AMINO_ACIDS:
            protein_residues += 1
        elif code in NUCLEOTIDE_CODES:
            nucleotide_residues += 1

    if protein_residues > nucleotide_residues:
        return MOLECULE_CLASS_PROTEIN
    return MOLECULE_CLASS_OTHER
