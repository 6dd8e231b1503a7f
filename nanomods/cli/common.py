"""Shared argparse argument factories for nanomods CLI tools.

Each function adds a group of related arguments to an ArgumentParser.
Default values can be overridden per-script where needed.
"""

import argparse
import os


def existing_file(path: str) -> str:
    """argparse type: path must name an existing file."""
    if not os.path.isfile(path):
        raise argparse.ArgumentTypeError(f"File does not exist: {path}")
    return path


def positive_int(value: str) -> int:
    """argparse type: integer greater than zero."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected an integer, got {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"Must be positive, got {number}")
    return number


def add_input_args(parser: argparse.ArgumentParser,
                   help_text: str = "BAM/SAM input file") -> None:
    """Add -i/--input argument (must exist)."""
    parser.add_argument(
        '-i', '--input', required=True, type=existing_file,
        help=help_text
    )


def add_output_args(parser: argparse.ArgumentParser,
                    required: bool = True,
                    help_text: str = "JSON output file") -> None:
    """Add -o/--output argument."""
    parser.add_argument(
        '-o', '--output', required=required,
        help=help_text
    )


def add_filter_args(parser: argparse.ArgumentParser,
                    min_mapq: int = 0) -> None:
    """Add read filtering arguments (--min-mapq, --primary, --max-reads)."""
    parser.add_argument(
        '--min-mapq', '-q', type=int, default=min_mapq,
        help=f"Minimum mapping quality; >0 also drops unmapped reads (default: {min_mapq})"
    )
    parser.add_argument(
        '--primary', action='store_true',
        help="Only process primary alignments (skip secondary/supplementary)"
    )
    parser.add_argument(
        '--max-reads', type=int, default=0,
        help="Maximum reads to process (0 = all; forces single-core processing)"
    )


def add_parallel_args(parser: argparse.ArgumentParser,
                      default_cores: int = 1,
                      default_region_size: int = 10_000_000) -> None:
    """Add parallelization arguments (--cores, --region-size)."""
    parser.add_argument(
        '--cores', '-c', type=int, default=default_cores,
        help=f"Number of CPU cores (0=auto, default: {default_cores})"
    )
    parser.add_argument(
        '--region-size', type=positive_int, default=default_region_size,
        help=f"Region size in bp for parallel processing (default: {default_region_size:,})"
    )


def add_verbose_args(parser: argparse.ArgumentParser) -> None:
    """Add --verbose flag."""
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help="Verbose output"
    )


def add_version_args(parser: argparse.ArgumentParser) -> None:
    """Add --version flag."""
    from nanomods import __version__
    parser.add_argument(
        '--version', action='version',
        version=f'%(prog)s {__version__}'
    )
