"""CLI scripts called from __main__.py"""

import argparse
import logging
import os
import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from seqsuperpose.core.matrices import MOLECULE_CLASS_OTHER, MOLECULE_CLASS_PROTEIN

MOLECULE_CLASS_AUTO = "auto"
RESIDUE_RANGE_PATTERN = re.compile(r"(-?\d+)-(-?\d+)")


def setup_logging(verbose: int = 0) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
    """
    if verbose == 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:  # verbose >= 2
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("seqsuperpose").setLevel(level)


def validate_file_path(input_path: str) -> Path:
    """Validate file_path and readability"""
    file_path = Path(input_path)
    checks = [
        (lambda: file_path.exists(), "Path does not exist"),
        (lambda: file_path.is_file(), "Not a valid file"),
        (lambda: os.access(file_path, os.R_OK), "No read permission"),
        (lambda: file_path.stat().st_size > 0, "File is empty"),
    ]
    for condition, error_message in checks:
        if not condition():
            raise argparse.ArgumentTypeError(f"File Validation Error: {error_message}")
    return file_path


def parse_residue_range(value: str) -> tuple[int, int]:
    """Parse an inclusive residue number range such as "10-120" or "-5-40"."""
    match = RESIDUE_RANGE_PATTERN.fullmatch(value.strip())
    if match is None:
        raise argparse.ArgumentTypeError(f"Invalid residue range '{value}', expected START-END")
    start, end = int(match.group(1)), int(match.group(2))
    if start > end:
        raise argparse.ArgumentTypeError(f"Residue range '{value}' starts after it ends")
    return start, end


def get_version() -> str:
    """Get version from package metadata"""
    try:
        return version("seqsuperpose")
    except PackageNotFoundError:
        return "0.1.0"  # Fallback for development


def build_parser() -> argparse.ArgumentParser:
    """Assemble command-line argument processing"""
    parser = argparse.ArgumentParser(
        prog="seqsuperpose",
        description="Superpose a mobile structure onto a reference by sequence alignment",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=get_version(),
        help="View seqsuperpose version number",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (-v for INFO, -vv for DEBUG/trace)",
    )

    # File arguments
    parser.add_argument(
        "file_path_reference",
        type=validate_file_path,
        help="Path to reference structure file (stays in place)",
    )
    parser.add_argument(
        "file_path_mobile",
        type=validate_file_path,
        help="Path to mobile structure file (moved onto the reference)",
    )

    # Selection options
    parser.add_argument(
        "--reference-chain",
        help="Reference chain to align (default: best matching chain pair)",
    )
    parser.add_argument(
        "--mobile-chain",
        help="Mobile chain to align (default: best matching chain pair)",
    )
    parser.add_argument(
        "--reference-range",
        type=parse_residue_range,
        help="Restrict the reference chain to residue numbers START-END",
    )
    parser.add_argument(
        "--mobile-range",
        type=parse_residue_range,
        help="Restrict the mobile chain to residue numbers START-END",
    )

    # Method options
    parser.add_argument(
        "--molecule-class",
        choices=[MOLECULE_CLASS_AUTO, MOLECULE_CLASS_PROTEIN, MOLECULE_CLASS_OTHER],
        default=MOLECULE_CLASS_AUTO,
        help="Substitution matrix selection (default: detect from the mobile chain)",
    )
    parser.add_argument(
        "--by-numbering",
        action="store_true",
        help="Pair residues by residue number instead of sequence alignment",
    )

    # Output options
    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        help="Directory to save superposed structures (default: ./results)",
    )
    parser.add_argument(
        "--save-structures",
        action="store_true",
        help="Save the superposed mobile structure",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of a report",
    )

    return parser


def arg_parser(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse the command line arguments"""
    return build_parser().parse_args(argv)
