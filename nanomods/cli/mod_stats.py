#!/usr/bin/env python3
"""
nanomods mod_stats CLI entry point.
Builds 5mC / 5hmC ML-quality histograms by CpN context from a modBAM file.

Output (JSON):
  default      {"methyl": {CA, CC, CG, CT}, "hydroxy": {...}}  (strands folded)
  --stranded   {"methyl_fwd", "methyl_rev", "hydroxy_fwd", "hydroxy_rev"}
"""

import argparse
import multiprocessing
import sys

from nanomods.core.bam_reader import InputAccessError, RecordReadError
from nanomods.counting.histograms import ModProbStats
from nanomods.counting.parallel import count_bam, count_bam_parallel
from nanomods.counting.summary import summarize, write_summary, write_summary_tsv
from nanomods.cli.common import (
    add_input_args, add_output_args, add_filter_args,
    add_parallel_args, add_verbose_args, add_version_args,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='nanomods',
        description='Histogram 5mC/5hmC modification probabilities by CpN context',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Strand-combined summary
  nanomods -i calls.bam -o summary.json

  # Strand-resolved summary, plus raw tables for later merging
  nanomods -i calls.bam -o summary.json --stranded --raw-output raw.json

  # Multi-core processing (coordinate-sorted input)
  nanomods -i calls.bam -o summary.json -c 8
'''
    )

    add_version_args(parser)

    # Required
    add_input_args(parser)
    add_output_args(parser)

    parser.add_argument('--stranded', action='store_true',
                        help='Output strand-specific results')

    # Additional outputs
    parser.add_argument('--raw-output', default=None,
                        help='Also write the raw (unfolded) count tables as JSON')
    parser.add_argument('--tsv', default=None,
                        help='Also write non-zero histogram cells as a long-format TSV')

    add_filter_args(parser, min_mapq=0)
    add_parallel_args(parser, default_cores=1)
    add_verbose_args(parser)

    return parser


def parse_args(argv=None):
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        parser.print_help()
        sys.exit(0)
    return parser.parse_args(argv)


def print_extraction_stats(mod_stats: ModProbStats, extraction) -> None:
    """Print per-position outcome tallies (verbose mode)."""
    positions = extraction.positions
    print(f"\n    Extraction Statistics:")
    print(f"      Reads scanned:         {mod_stats.n_reads:>12,}")
    print(f"      Call positions:        {positions:>12,}")
    print(f"      Counted:               {extraction.counted:>12,} "
          f"({100*extraction.counted/max(1, positions):.1f}%)")
    print(f"      ─────────────────────────────────")
    print(f"      Missing 5hmC/5mC pair: {extraction.incomplete:>12,}")
    print(f"      Duplicate kind:        {extraction.duplicate_kind:>12,}")
    print(f"      Read boundary:         {extraction.boundary:>12,}")
    print(f"      Non-ACGT neighbour:    {extraction.invalid_context:>12,}")
    print(f"      5mC before 5hmC:       {extraction.out_of_order:>12,}")

    print(f"\n    Calls per table:")
    for name, table in mod_stats.tables().items():
        print(f"      {name:<12} {int(table.sum()):>12,}")


def main(argv=None):
    args = parse_args(argv)

    # Determine number of cores
    if args.cores == 0:
        n_cores = multiprocessing.cpu_count()
        print(f"Auto-detected {n_cores} CPU cores")
    else:
        n_cores = max(1, args.cores)

    print(f"Processing: {args.input}")
    print(f"  Output: {args.output} ({'strand-resolved' if args.stranded else 'strand-combined'})")
    if args.min_mapq > 0:
        print(f"  Min MAPQ: {args.min_mapq}")
    if args.primary:
        print(f"  Primary alignments only")
    if n_cores > 1 and args.max_reads:
        print(f"  NOTE: --max-reads set, using a single core")
        n_cores = 1
    print(f"  Cores: {n_cores}")

    try:
        if n_cores > 1:
            mod_stats, extraction = count_bam_parallel(
                args.input, n_cores,
                region_size=args.region_size,
                min_mapq=args.min_mapq,
                primary_only=args.primary,
            )
        else:
            mod_stats, extraction = count_bam(
                args.input,
                min_mapq=args.min_mapq,
                primary_only=args.primary,
                max_reads=args.max_reads,
            )
    except InputAccessError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except RecordReadError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"\nProcessed {mod_stats.n_reads:,} reads -> "
          f"{extraction.counted:,} counted positions")
    if args.verbose:
        print_extraction_stats(mod_stats, extraction)

    doc = summarize(mod_stats, stranded=args.stranded)
    try:
        write_summary(doc, args.output)
        if args.raw_output:
            mod_stats.save(args.raw_output)
        if args.tsv:
            write_summary_tsv(doc, args.tsv)
    except OSError as e:
        print(f"Error opening output file: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Summary: {args.output}")
    if args.raw_output:
        print(f"Raw tables: {args.raw_output}")
    if args.tsv:
        print(f"TSV: {args.tsv}")


if __name__ == '__main__':
    main()
