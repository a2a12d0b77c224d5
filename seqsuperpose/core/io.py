"""Structure file handling and residue extraction."""

import logging
from datetime import datetime
from pathlib import Path

import gemmi
import numpy as np

from .residues import Residue, reindex
from .sequences import AA_THREE_TO_ONE, NUCLEOTIDE_TO_ONE

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {".pdb", ".cif", ".ent", ".mmcif"}

PROTEIN_REPRESENTATIVE_ATOMS = ("CA",)
# Phosphate first, C3' for terminal residues without one
NUCLEOTIDE_REPRESENTATIVE_ATOMS = ("P", "C3'")

RESIDUE_KIND_AMINO_ACID = "amino-acid"
RESIDUE_KIND_NUCLEOTIDE = "nucleotide"
REPRESENTATIVE_ATOMS = {
    RESIDUE_KIND_AMINO_ACID: PROTEIN_REPRESENTATIVE_ATOMS,
    RESIDUE_KIND_NUCLEOTIDE: NUCLEOTIDE_REPRESENTATIVE_ATOMS,
}

# gemmi.PolymerType names mapped to mmCIF entity_poly.type strings
ENTITY_POLYMER_SUBTYPES = {
    "PeptideL": "polypeptide(L)",
    "PeptideD": "polypeptide(D)",
    "CyclicPseudoPeptide": "cyclic-pseudo-peptide",
    "Dna": "polydeoxyribonucleotide",
    "Rna": "polyribonucleotide",
    "DnaRnaHybrid": "polydeoxyribonucleotide/polyribonucleotide hybrid",
}


def file_type(file_path: Path) -> str:
    """Get the file extension in lowercase."""
    return str(file_path.suffix).lower()


def validate_file(file_path: Path) -> bool:
    """Validate a single file with a specified type."""
    ftype = file_type(file_path)
    if ftype not in SUPPORTED_FORMATS:
        return False

    try:
        structure = gemmi.read_structure(str(file_path))
        if len(structure) == 0:
            logger.warning("No valid model can be extracted from %s", file_path)
            return False
        return True
    except (RuntimeError, ValueError) as e:
        logger.warning("File %s could not be parsed as %s file: %s", file_path, ftype, e)
        return False
    except Exception:
        logger.exception("Unexpected error validating %s", file_path)
        return False


def get_structure(file_path: Path) -> gemmi.Structure | None:
    """Load and return structure from file, or None if invalid."""
    if not validate_file(file_path):
        return None

    try:
        structure = gemmi.read_structure(str(file_path))
    except (RuntimeError, ValueError):
        logger.exception("Error loading structure from %s", file_path)
        return None

    # Entities give each chain its polymer type
    structure.setup_entities()
    return structure


def format_seqid(residue: gemmi.Residue) -> str:
    """Sequence number with insertion code, e.g. "42" or "42A"."""
    icode = residue.seqid.icode.strip() if residue.seqid.icode else ""
    return f"{residue.seqid.num}{icode}"


def residue_kind(name: str) -> str | None:
    """
    Classify a monomer as amino acid or nucleotide.

    Modified residues missing from the local tables (MSE, ...) are looked up in
    gemmi's table of tabulated residues. Returns None for waters, ions and ligands.
    """
    if name in AA_THREE_TO_ONE:
        return RESIDUE_KIND_AMINO_ACID
    if name in NUCLEOTIDE_TO_ONE:
        return RESIDUE_KIND_NUCLEOTIDE

    info = gemmi.find_tabulated_residue(name)
    if info is None:
        return None
    if info.is_amino_acid():
        return RESIDUE_KIND_AMINO_ACID
    if info.is_nucleic_acid():
        return RESIDUE_KIND_NUCLEOTIDE
    return None


def representative_position(residue: gemmi.Residue) -> tuple[float, float, float] | None:
    """
    Position of the representative atom: CA for amino acids, P (or C3') for nucleotides.

    The first atom carrying the name wins, so only one alternate location is used.
    Returns None when the atom is missing.
    """
    kind = residue_kind(residue.name)
    if kind is None:
        return None
    candidates = REPRESENTATIVE_ATOMS[kind]

    atoms_by_name: dict[str, gemmi.Atom] = {}
    for atom in residue:
        atoms_by_name.setdefault(atom.name, atom)

    for name in candidates:
        atom = atoms_by_name.get(name)
        if atom is not None:
            return (float(atom.pos.x), float(atom.pos.y), float(atom.pos.z))
    return None


def extract_chain_residues(
    structure: gemmi.Structure, chain_id: str, model_index: int = 0
) -> list[Residue]:
    """
    Extract the ordered polymer residues of one chain.

    Args:
        structure: GEMMI structure
        chain_id: Chain name
        model_index: Model to read (first model by default)

    Returns:
        Residues in chain order; empty if the chain does not exist
    """
    model = structure[model_index]
    for chain in model:
        if chain.name != chain_id:
            continue
        residues = [
            Residue(
                code=residue.name,
                index=index,
                position=representative_position(residue),
                seqid=format_seqid(residue),
                chain_id=chain_id,
            )
            for index, residue in enumerate(r for r in chain if residue_kind(r.name) is not None)
        ]
        missing = sum(1 for residue in residues if not residue.has_coord)
        if missing:
            logger.debug("Chain %s: %d residues lack a representative atom", chain_id, missing)
        return residues

    logger.warning("Chain %s not found in model %d", chain_id, model_index)
    return []


def extract_all_chains(structure: gemmi.Structure, model_index: int = 0) -> dict[str, list[Residue]]:
    """Map each chain with polymer residues to its extracted residues."""
    chains = {}
    for chain in structure[model_index]:
        residues = extract_chain_residues(structure, chain.name, model_index)
        if residues:
            chains[chain.name] = residues
    return chains


def entity_subtype(structure: gemmi.Structure, chain_id: str, model_index: int = 0) -> str | None:
    """
    Entity polymer type of a chain as an mmCIF subtype string, e.g. "polypeptide(L)".

    The entity's declared type is used when the file provides one; otherwise gemmi
    infers it from the residues of the chain's polymer part.

    Returns:
        Subtype string, or None for missing chains, non-polymers and unknown types
    """
    chain = structure[model_index].find_chain(chain_id)
    if chain is None:
        return None
    polymer = chain.get_polymer()
    if len(polymer) == 0:
        return None

    entity = structure.get_entity_of(polymer)
    polymer_type = entity.polymer_type if entity is not None else gemmi.PolymerType.Unknown
    if polymer_type == gemmi.PolymerType.Unknown:
        polymer_type = polymer.check_polymer_type()

    subtype = ENTITY_POLYMER_SUBTYPES.get(polymer_type.name)
    logger.debug("Chain %s has polymer type %s", chain_id, polymer_type.name)
    return subtype


def _seqid_number(seqid: str) -> int | None:
    digits = seqid.rstrip("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz")
    try:
        return int(digits)
    except ValueError:
        return None


def select_residue_range(residues: list[Residue], start: int, end: int) -> list[Residue]:
    """
    Keep residues whose sequence number lies in [start, end], renumbering indices.

    Insertion codes are ignored for the comparison, so 42A falls within 40-45.
    """
    selected = []
    for residue in residues:
        number = _seqid_number(residue.seqid)
        if number is not None and start <= number <= end:
            selected.append(residue)
    return reindex(selected)


def create_output_directory_structure(base_output_dir: Path | None = None) -> Path:
    """
    Create a timestamped run directory for superposed structures.

    Args:
        base_output_dir: Base directory for outputs (default: ./results)

    Returns:
        Path to the timestamped run directory
    """
    if base_output_dir is None:
        base_output_dir = Path.cwd() / "results"
    else:
        base_output_dir = Path(base_output_dir)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = base_output_dir / f"seqsuperpose_{timestamp}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def save_superposed_structure(
    structure: gemmi.Structure,
    rotation_matrix: np.ndarray,
    translation_vector: np.ndarray,
    output_path: Path,
) -> Path:
    """
    Write a transformed copy of a structure; the input structure is left untouched.

    Every atom is moved to ``rotation @ x + translation``. The format follows the
    file extension: ``.pdb``/``.ent`` write PDB, anything else mmCIF.

    Returns:
        The path written
    """
    output_path = Path(output_path)
    moved = structure.clone()

    for model in moved:
        for chain in model:
            for residue in chain:
                for atom in residue:
                    coord = np.array([atom.pos.x, atom.pos.y, atom.pos.z])
                    x, y, z = np.dot(rotation_matrix, coord) + translation_vector
                    atom.pos = gemmi.Position(float(x), float(y), float(z))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    if file_type(output_path) in {".pdb", ".ent"}:
        moved.write_minimal_pdb(str(output_path))
    else:
        moved.make_mmcif_document().write_file(str(output_path))

    logger.info("Wrote superposed structure to %s", output_path)
    return output_path
