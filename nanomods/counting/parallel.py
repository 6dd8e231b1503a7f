"""
Whole-file scanning: single pass, or region-parallel with per-worker tables.

Region-parallel mode splits the reference into (contig, start, end) tiles.
Each worker fills a private ModProbStats with the reads whose reference_start
falls inside its tile, so a read overlapping two tiles is counted once. Reads
without coordinates are counted by one extra task. The parent sums the
worker tables with ModProbStats.merge().
"""

import os
import sys
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import List, Optional, Tuple

import pysam
from tqdm import tqdm

from nanomods.core.bam_reader import (
    iter_records, open_alignment_file, passes_filters, read_mod_bam,
    to_mod_read,
)
from nanomods.counting.extractor import ExtractionStats
from nanomods.counting.histograms import ModProbStats


# Pseudo-contig for the task that counts reads without coordinates
UNPLACED = '*'

# Global worker state
_worker_params = None


def count_bam(bam_path: str,
              min_mapq: int = 0,
              primary_only: bool = False,
              max_reads: int = 0,
              show_progress: bool = True) -> Tuple[ModProbStats, ExtractionStats]:
    """
    Count modification calls over a whole alignment file in one pass.

    Raises:
        InputAccessError, RecordReadError: propagated from the reader; no
        partial result is returned
    """
    mod_stats = ModProbStats()
    extraction = ExtractionStats()

    reads = read_mod_bam(bam_path, min_mapq=min_mapq,
                         primary_only=primary_only, max_reads=max_reads)
    pbar = tqdm(reads, desc=f"Processing {os.path.basename(bam_path)}",
                disable=not show_progress)
    for read in pbar:
        mod_stats.add_read(read, extraction)

        if mod_stats.n_reads % 5000 == 0:
            pbar.set_postfix({
                'reads': f'{mod_stats.n_reads:,}',
                'positions': f'{extraction.counted:,}',
            })

    return mod_stats, extraction


def _get_genome_regions(bam_path: str,
                        region_size: int = 10_000_000) -> List[Tuple[str, int, int]]:
    """
    Split the reference into regions for parallel processing.

    Returns:
        List of (contig, start, end) tuples covering every contig
    """
    regions = []
    region_size = int(region_size)
    if region_size <= 0:
        raise ValueError(f"region_size must be positive, got {region_size}")

    with open_alignment_file(bam_path) as bam:
        for contig in bam.references:
            contig_len = int(bam.get_reference_length(contig))
            for start in range(0, contig_len, region_size):
                end = min(start + region_size, contig_len)
                regions.append((contig, int(start), int(end)))

    return regions


def _has_index(bam_path: str) -> bool:
    with open_alignment_file(bam_path) as bam:
        return bam.has_index()


def _count_unplaced(bam_path: str) -> int:
    """Number of reads without coordinates, from index statistics."""
    with open_alignment_file(bam_path) as bam:
        return int(bam.nocoordinate)


def _init_region_worker(params: dict):
    """Initialize worker with parameters."""
    global _worker_params
    _worker_params = params


def _count_region(region: Tuple[str, int, int]) -> Tuple[dict, dict]:
    """
    Worker: count calls from reads starting inside one region.

    Returns plain dicts (raw tables, extraction tallies) for pickling.
    """
    contig, start, end = region
    params = _worker_params
    bam_path = params['bam_path']

    mod_stats = ModProbStats()
    extraction = ExtractionStats()

    with open_alignment_file(bam_path) as bam:
        if contig == UNPLACED:
            records = (r for r in iter_records(bam, bam_path) if r.reference_id < 0)
        else:
            records = (r for r in iter_records(bam, bam_path, contig=contig, start=start, stop=end)
                       if start <= r.reference_start < end)

        for read in records:
            if not passes_filters(read, params['min_mapq'], params['primary_only']):
                continue
            mod_stats.add_read(to_mod_read(read), extraction)

    return mod_stats.to_dict(), extraction.as_dict()


def count_bam_parallel(bam_path: str,
                       n_cores: int,
                       region_size: int = 10_000_000,
                       min_mapq: int = 0,
                       primary_only: bool = False) -> Tuple[ModProbStats, ExtractionStats]:
    """
    Count modification calls with region-based parallelism.

    The input should be coordinate-sorted BAM/CRAM; it is indexed if no index
    exists. Input that cannot be indexed (plain SAM, unsorted) is counted with
    a single pass instead. Any worker failure aborts the whole scan.
    """
    start_time = time.time()

    if not _has_index(bam_path):
        print("Indexing input for region-parallel processing...")
        try:
            pysam.index(bam_path)
        except pysam.SamtoolsError as e:
            print(f"NOTE: cannot index {bam_path} ({str(e).strip()}), "
                  f"falling back to a single-core scan")
            return count_bam(bam_path, min_mapq=min_mapq, primary_only=primary_only)

    regions = _get_genome_regions(bam_path, region_size)
    if min_mapq == 0 and _count_unplaced(bam_path) > 0:
        regions.append((UNPLACED, 0, 0))

    print(f"Processing {len(regions)} regions with {n_cores} cores...")
    sys.stdout.flush()

    params = {
        'bam_path': bam_path,
        'min_mapq': min_mapq,
        'primary_only': primary_only,
    }

    mod_stats = ModProbStats()
    extraction = ExtractionStats()

    with ProcessPoolExecutor(
        max_workers=n_cores,
        initializer=_init_region_worker,
        initargs=(params,)
    ) as executor:
        futures = {executor.submit(_count_region, region): region for region in regions}

        for future in tqdm(as_completed(futures), total=len(futures), desc="Regions"):
            try:
                tables, tallies = future.result()
            except Exception as e:
                contig, start, end = futures[future]
                print(f"\nError processing region {contig}:{start}-{end}: {e}",
                      file=sys.stderr)
                raise

            mod_stats.merge(ModProbStats.from_dict(tables))
            extraction.merge(ExtractionStats(**tallies))

    elapsed = time.time() - start_time
    rate = mod_stats.n_reads / elapsed if elapsed > 0 else 0
    print(f"Completed: {mod_stats.n_reads:,} reads | {rate:.1f} reads/s | {elapsed:.1f}s")

    return mod_stats, extraction
