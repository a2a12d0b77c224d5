"""
Shared test fixtures and helpers for GEMMI-compatible testing
"""

from pathlib import Path
from unittest.mock import Mock

import numpy as np
import pytest

from seqsuperpose.core.residues import Residue


def create_mock_gemmi_atom(name, x=0.0, y=0.0, z=0.0):
    """Create a GEMMI-compatible mock atom"""
    atom = Mock()
    atom.name = name

    # GEMMI uses Position for atom.pos
    pos = Mock()
    pos.x = x
    pos.y = y
    pos.z = z
    atom.pos = pos
    return atom


def create_mock_gemmi_residue(resname, seqid_num=1, icode=" ", atoms=None):
    """Create a GEMMI-compatible mock residue

    Without explicit atoms the residue gets a single CA (amino acids) or P atom
    at the origin.
    """
    residue = Mock()
    residue.name = resname

    # Mock seqid (GEMMI uses seqid with num and icode attributes)
    seqid = Mock()
    seqid.num = seqid_num
    seqid.icode = icode
    residue.seqid = seqid

    if atoms is None:
        atoms = [create_mock_gemmi_atom("CA" if len(resname) == 3 else "P")]
    residue.__iter__ = lambda self: iter(atoms)

    return residue


def create_mock_gemmi_chain(chain_name, residues):
    """Create a GEMMI-compatible mock chain"""
    chain = Mock()
    chain.name = chain_name
    chain.__iter__ = lambda self: iter(residues)
    return chain


def create_mock_gemmi_model(chains):
    """Create a GEMMI-compatible mock model"""
    model = Mock()
    model.__iter__ = lambda self: iter(chains)
    return model


def create_mock_gemmi_structure(chains):
    """Create a GEMMI-compatible mock structure"""
    structure = Mock()
    model = create_mock_gemmi_model(chains)
    structure.__iter__ = lambda self: iter([model])
    structure.__len__ = lambda self: 1
    structure.__getitem__ = lambda self, idx: model if idx == 0 else None
    return structure


def helix_coordinates(n, rise=1.5, radius=2.3, turn_degrees=100.0):
    """Alpha-helix-like CA trace with n points"""
    angles = np.radians(turn_degrees) * np.arange(n)
    return np.column_stack(
        [radius * np.cos(angles), radius * np.sin(angles), rise * np.arange(n)]
    )


def rotation_about_axis(axis, degrees):
    """Rotation matrix for a right-handed rotation about ``axis``"""
    axis = np.asarray(axis, dtype=float)
    axis = axis / np.linalg.norm(axis)
    theta = np.radians(degrees)
    k = np.array(
        [
            [0.0, -axis[2], axis[1]],
            [axis[2], 0.0, -axis[0]],
            [-axis[1], axis[0], 0.0],
        ]
    )
    return np.eye(3) + np.sin(theta) * k + (1 - np.cos(theta)) * np.dot(k, k)


def make_residues(codes, coords=None, missing=(), seqids=None):
    """Build residues from codes, optional (N, 3) coordinates and missing positions"""
    residues = []
    for index, code in enumerate(codes):
        position = None
        if coords is not None and index not in missing:
            position = tuple(float(value) for value in coords[index])
        seqid = str(seqids[index]) if seqids is not None else str(index + 1)
        residues.append(Residue(code=code, index=index, position=position, seqid=seqid))
    return residues


def write_pdb(path, chains, hetero=()):
    """Write a minimal PDB file.

    Args:
        path: Output path
        chains: Mapping chain_id -> list of (resname, seqnum, {atom_name: (x, y, z)})
        hetero: Residue names written as HETATM records
    """
    lines = []
    serial = 1
    for chain_id, residues in chains.items():
        for resname, seqnum, atoms in residues:
            for atom_name, (x, y, z) in atoms.items():
                name = f" {atom_name:<3}" if len(atom_name) < 4 else atom_name
                element = atom_name[0]
                record = "HETATM" if resname in hetero else "ATOM  "
                lines.append(
                    f"{record}{serial:5d} {name} {resname:>3} {chain_id}{seqnum:4d}    "
                    f"{x:8.3f}{y:8.3f}{z:8.3f}{1.0:6.2f}{20.0:6.2f}          {element:>2}"
                )
                serial += 1
        lines.append("TER")
    lines.append("END")
    Path(path).write_text("\n".join(lines) + "\n")
    return Path(path)


PROTEIN_SEQUENCE = ["MET", "LYS", "THR", "ALA", "TYR", "ILE", "ALA", "LYS", "GLN", "ARG",
                    "GLN", "ILE", "SER", "PHE", "VAL", "LYS", "SER", "HIS", "PHE", "SER"]


@pytest.fixture
def protein_chain_records():
    """Twenty residue protein chain on a helical CA trace"""
    coords = helix_coordinates(len(PROTEIN_SEQUENCE))
    return [
        (resname, number, {"N": tuple(xyz + [0.5, 0.0, 0.0]), "CA": tuple(xyz)})
        for number, (resname, xyz) in enumerate(zip(PROTEIN_SEQUENCE, coords), start=1)
    ]


@pytest.fixture
def structure_pair(tmp_path, protein_chain_records):
    """Reference PDB and a rotated, translated mobile copy missing its third residue"""
    rotation = rotation_about_axis([1.0, 2.0, 0.5], 35.0)
    translation = np.array([4.0, -3.0, 10.0])

    mobile_records = []
    for resname, number, atoms in protein_chain_records:
        if number == 3:
            continue
        moved = {
            name: tuple(np.dot(rotation, np.asarray(xyz)) + translation)
            for name, xyz in atoms.items()
        }
        mobile_records.append((resname, number, moved))

    reference = write_pdb(tmp_path / "reference.pdb", {"A": protein_chain_records})
    mobile = write_pdb(tmp_path / "mobile.pdb", {"B": mobile_records})
    return reference, mobile, rotation, translation
