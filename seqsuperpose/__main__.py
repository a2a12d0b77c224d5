#!/usr/bin/env python3

"""Entry point for seqsuperpose"""

import json
import logging
from pathlib import Path

from seqsuperpose.cli import MOLECULE_CLASS_AUTO, arg_parser, setup_logging
from seqsuperpose.core.alignment import (
    AlignmentFailure,
    SuperpositionResult,
    align_and_superpose,
    select_best_chain_pair,
    superpose_by_residue_numbering,
)
from seqsuperpose.core.io import (
    create_output_directory_structure,
    entity_subtype,
    extract_all_chains,
    get_structure,
    save_superposed_structure,
    select_residue_range,
)
from seqsuperpose.core.matrices import molecule_class_from_subtype

logger = logging.getLogger(__name__)


def _choose_chains(chains_reference, chains_mobile, reference_chain, mobile_chain):
    """Resolve the chain pair, honouring chain ids given on the command line."""
    if reference_chain is not None:
        chains_reference = {k: v for k, v in chains_reference.items() if k == reference_chain}
    if mobile_chain is not None:
        chains_mobile = {k: v for k, v in chains_mobile.items() if k == mobile_chain}

    if reference_chain is not None and mobile_chain is not None:
        if chains_reference and chains_mobile:
            return reference_chain, mobile_chain
        return None

    return select_best_chain_pair(chains_reference, chains_mobile)


def print_report(result: SuperpositionResult, reference_chain: str, mobile_chain: str) -> None:
    """Print a human readable summary of a superposition."""
    print("\n=== SUPERPOSITION ===")
    print(f"Method:              {result.method}")
    print(f"Chains:              {mobile_chain} (mobile) -> {reference_chain} (reference)")
    print(f"RMSD:                {result.rmsd:.3f} Å")
    print(f"Aligned Residues:    {result.num_aligned_positions}")
    print(f"Alignment Score:     {result.alignment_score}")
    print(f"Sequence Identity:   {result.sequence_identity * 100:.1f}%")

    print("\n=== TRANSFORM ===")
    for row in result.rotation:
        print("  " + " ".join(f"{value:9.5f}" for value in row))
    print("  t = " + " ".join(f"{value:.3f}" for value in result.translation))
    print(f"Orientation Change:  {result.orientation_error:.2f}°")
    print(f"Translation Length:  {result.translational_error:.3f} Å")

    if len(result.per_residue_deviation):
        deviations = result.per_residue_deviation
        print("\nPer-residue deviation statistics:")
        print(f"  Min: {deviations.min():.3f} Å")
        print(f"  Max: {deviations.max():.3f} Å")
        print(f"  Mean: {deviations.mean():.3f} Å")

    if result.path is not None:
        print("\n=== SEQUENCE ALIGNMENT ===")
        print(f"Mobile:    {result.path.aligned_a}")
        print(f"Reference: {result.path.aligned_b}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for structure superposition."""
    args = arg_parser(argv)
    setup_logging(args.verbose)

    reference_structure = get_structure(args.file_path_reference)
    mobile_structure = get_structure(args.file_path_mobile)
    if reference_structure is None or mobile_structure is None:
        print("Could not load both structures")
        return 1

    chains_reference = extract_all_chains(reference_structure)
    chains_mobile = extract_all_chains(mobile_structure)
    chain_pair = _choose_chains(
        chains_reference, chains_mobile, args.reference_chain, args.mobile_chain
    )
    if chain_pair is None:
        print("No matching polymer chains found")
        return 1
    reference_chain, mobile_chain = chain_pair
    logger.info("Using chain %s (mobile) and chain %s (reference)", mobile_chain, reference_chain)

    reference_residues = chains_reference[reference_chain]
    mobile_residues = chains_mobile[mobile_chain]
    if args.reference_range:
        reference_residues = select_residue_range(reference_residues, *args.reference_range)
    if args.mobile_range:
        mobile_residues = select_residue_range(mobile_residues, *args.mobile_range)

    if args.by_numbering:
        result = superpose_by_residue_numbering(mobile_residues, reference_residues)
    else:
        molecule_class = args.molecule_class
        if molecule_class == MOLECULE_CLASS_AUTO:
            subtype = entity_subtype(mobile_structure, mobile_chain)
            # Without entity data the class is detected from the residue codes
            molecule_class = molecule_class_from_subtype(subtype) if subtype else None
            logger.info("Mobile chain %s entity type: %s", mobile_chain, subtype)
        result = align_and_superpose(mobile_residues, reference_residues, molecule_class)

    if isinstance(result, AlignmentFailure):
        if args.json:
            print(json.dumps(result.to_dict()))
        else:
            print(f"Superposition failed ({result.kind.value}): {result.message}")
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_report(result, reference_chain, mobile_chain)

    if args.save_structures:
        run_dir = create_output_directory_structure(args.output_dir)
        mobile_path = Path(args.file_path_mobile)
        suffix = ".pdb" if mobile_path.suffix.lower() in {".pdb", ".ent"} else ".cif"
        output_path = save_superposed_structure(
            mobile_structure,
            result.rotation,
            result.translation,
            run_dir / f"{mobile_path.stem}_superposed{suffix}",
        )
        if not args.json:
            print("\n=== OUTPUT FILES ===")
            print(f"Superposed mobile structure: {output_path}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
