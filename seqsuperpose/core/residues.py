"""
Residue snapshots consumed by the alignment engine
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Residue:
    """Immutable snapshot of one residue.

    Attributes:
        code: One- or three-letter monomer identifier (e.g. "A" or "ALA")
        index: Ordinal position within the supplied residue list
        position: Coordinates of the representative atom, None when absent
        seqid: Sequence number plus optional insertion code (e.g. "42A")
        chain_id: Chain the residue was taken from
    """

    code: str
    index: int
    position: tuple[float, float, float] | None = None
    seqid: str = ""
    chain_id: str = ""

    @property
    def has_coord(self) -> bool:
        return self.position is not None


def residues_from_records(records: Iterable[Mapping[str, Any]]) -> list[Residue]:
    """
    Build residues from plain records.

    Each record carries ``code`` and ``hasCoord`` and, when ``hasCoord`` is true,
    ``x``, ``y`` and ``z``. Optional ``seqid`` and ``chain_id`` keys are kept.

    Args:
        records: Ordered residue records

    Returns:
        List of Residue objects indexed by their position in ``records``

    Raises:
        KeyError: If a record claims a coordinate but lacks x, y or z
    """
    residues = []
    for index, record in enumerate(records):
        position = None
        if record.get("hasCoord", False):
            position = (float(record["x"]), float(record["y"]), float(record["z"]))
        residues.append(
            Residue(
                code=str(record["code"]),
                index=index,
                position=position,
                seqid=str(record.get("seqid", "")),
                chain_id=str(record.get("chain_id", "")),
            )
        )
    return residues


def reindex(residues: Iterable[Residue]) -> list[Residue]:
    """Return copies of ``residues`` whose indices follow their new order."""
    return [
        Residue(
            code=residue.code,
            index=index,
            position=residue.position,
            seqid=residue.seqid,
            chain_id=residue.chain_id,
        )
        for index, residue in enumerate(residues)
    ]
