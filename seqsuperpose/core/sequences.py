"""
Residue code translation and global pairwise sequence alignment
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from .residues import Residue

if TYPE_CHECKING:
    from .matrices import SubstitutionMatrix

logger = logging.getLogger(__name__)

GAP = "-"

# Mapping from 3-letter (and force-field variant) codes to 1-letter codes
AA_THREE_TO_ONE = {
    "ALA": "A",
    "ARG": "R",
    "ASN": "N",
    "ASP": "D",
    "CYS": "C",
    "GLN": "Q",
    "GLU": "E",
    "GLY": "G",
    "HIS": "H",
    "ILE": "I",
    "LEU": "L",
    "LYS": "K",
    "MET": "M",
    "PHE": "F",
    "PRO": "P",
    "SER": "S",
    "THR": "T",
    "TRP": "W",
    "TYR": "Y",
    "VAL": "V",
    # IUPAC
    "SEC": "U",
    "PYL": "O",
    # CHARMM
    "HSD": "H",
    "HSE": "H",
    "HSP": "H",
    "LSN": "K",
    "ASPP": "D",
    "GLUP": "E",
    # AMBER
    "HID": "H",
    "HIE": "H",
    "HIP": "H",
    "LYN": "K",
    "ASH": "D",
    "GLH": "E",
}

NUCLEOTIDE_TO_ONE = {
    "DA": "A",
    "DC": "C",
    "DG": "G",
    "DT": "T",
    "DU": "U",
    "A": "A",
    "C": "C",
    "G": "G",
    "T": "T",
    "U": "U",
    "ADE": "A",
    "CYT": "C",
    "GUA": "G",
    "THY": "T",
    "URA": "U",
}

ONE_LETTER_CODES = {**AA_THREE_TO_ONE, **NUCLEOTIDE_TO_ONE}

AMINO_ACID_CODES = frozenset(AA_THREE_TO_ONE)
NUCLEOTIDE_CODES = frozenset(NUCLEOTIDE_TO_ONE)
ONE_LETTER_AMINO_ACIDS = frozenset("ACDEFGHIKLMNPQRSTVWYUO")
AMBIGUOUS_ONE_LETTER_CODES = frozenset("ACGTU")

# Traceback moves, listed in tie-break order
_DIAGONAL = 0
_GAP_IN_B = 1  # residue of A against a gap
_GAP_IN_A = 2  # residue of B against a gap


def to_one_letter(code: str) -> str:
    """Translate a monomer identifier to its one-letter code ("X" if unknown)."""
    code = code.strip().upper()
    if len(code) == 1:
        return code if code.isalpha() else "X"
    return ONE_LETTER_CODES.get(code, "X")


def get_sequence(residues: Iterable[Residue]) -> list[str]:
    """Extract the one-letter sequence of a residue list, position for position."""
    return [to_one_letter(residue.code) for residue in residues]


@dataclass(frozen=True)
class AlignmentPath:
    """Gapped global alignment of two sequences and its score"""

    aligned_a: str
    aligned_b: str
    score: int

    def __post_init__(self) -> None:
        if len(self.aligned_a) != len(self.aligned_b):
            raise ValueError(
                f"Aligned sequences must have equal length. "
                f"Got {len(self.aligned_a)} and {len(self.aligned_b)}"
            )

    def __len__(self) -> int:
        return len(self.aligned_a)

    @property
    def ungapped_a(self) -> str:
        return self.aligned_a.replace(GAP, "")

    @property
    def ungapped_b(self) -> str:
        return self.aligned_b.replace(GAP, "")

    @property
    def sequence_identity(self) -> float:
        """Fraction of gap-free columns holding identical codes."""
        columns = [
            (a, b) for a, b in zip(self.aligned_a, self.aligned_b, strict=True) if GAP not in (a, b)
        ]
        if not columns:
            return 0.0
        return sum(1 for a, b in columns if a == b) / len(columns)


def align(
    seq_a: Sequence[str], seq_b: Sequence[str], matrix: "SubstitutionMatrix"
) -> AlignmentPath:
    """
    Global alignment of two one-letter sequences (Needleman-Wunsch, linear gap).

    Equal-scoring moves are resolved as diagonal, then gap in B (a residue of A
    against a gap), then gap in A. The score is the value of the final cell.

    Args:
        seq_a: First sequence of one-letter codes
        seq_b: Second sequence of one-letter codes
        matrix: Substitution matrix providing pair scores and the gap penalty

    Returns:
        AlignmentPath covering both sequences completely
    """
    seq_a = list(seq_a)
    seq_b = list(seq_b)
    n, m = len(seq_a), len(seq_b)
    gap = int(matrix.gap_penalty)

    steps = np.arange(m + 1, dtype=np.int64)
    scores = np.empty((n + 1, m + 1), dtype=np.int64)
    moves = np.full((n + 1, m + 1), _GAP_IN_A, dtype=np.int8)
    scores[0, :] = steps * gap
    scores[:, 0] = np.arange(n + 1, dtype=np.int64) * gap
    moves[1:, 0] = _GAP_IN_B

    pair_scores = matrix.pair_scores(seq_a, seq_b)

    for i in range(1, n + 1):
        previous = scores[i - 1]
        diagonal = previous[:-1] + pair_scores[i - 1]
        vertical = previous[1:] + gap
        best = np.maximum(diagonal, vertical)

        # Horizontal gaps chain along the row: row[j] = max(best[j], row[j-1] + gap)
        candidates = np.concatenate(([scores[i, 0]], best)) - steps * gap
        row = np.maximum.accumulate(candidates) + steps * gap
        scores[i] = row

        cells = row[1:]
        moves[i, 1:] = np.where(
            cells == diagonal, _DIAGONAL, np.where(cells == vertical, _GAP_IN_B, _GAP_IN_A)
        )

    aligned_a: list[str] = []
    aligned_b: list[str] = []
    i, j = n, m
    while i > 0 or j > 0:
        move = moves[i, j]
        if move == _DIAGONAL:
            aligned_a.append(seq_a[i - 1])
            aligned_b.append(seq_b[j - 1])
            i -= 1
            j -= 1
        elif move == _GAP_IN_B:
            aligned_a.append(seq_a[i - 1])
            aligned_b.append(GAP)
            i -= 1
        else:
            aligned_a.append(GAP)
            aligned_b.append(seq_b[j - 1])
            j -= 1

    path = AlignmentPath(
        aligned_a="".join(reversed(aligned_a)),
        aligned_b="".join(reversed(aligned_b)),
        score=int(scores[n, m]),
    )
    logger.debug("Aligned %d x %d residues with %s, score %d", n, m, matrix.name, path.score)
    logger.debug("A: %s", path.aligned_a)
    logger.debug("B: %s", path.aligned_b)
    return path
