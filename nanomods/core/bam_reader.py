"""
BAM reader module for nanomods
Extracts per-base 5mC / 5hmC modification calls (MM/ML tags) from SAM, BAM
or CRAM files and wraps each alignment as a ModRead.

Call positions are 0-based indices into the stored query sequence (the
orientation htslib reports them in), so the neighbour of a call can be looked
up directly in ModRead.query_sequence.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union

import pysam

from nanomods.core.context import ModKind


# Modification codes as reported by pysam: single-letter SAM codes or
# (positive) ChEBI identifiers
HYDROXY_CODES = ('h', 76792)
METHYL_CODES = ('m', 27551)

# pysam reports -1 when the ML tag carries no probability for a call
UNKNOWN_QUALITY = -1


class InputAccessError(OSError):
    """Alignment file could not be opened or its header could not be parsed."""


class RecordReadError(RuntimeError):
    """An alignment record could not be decoded mid-stream."""


def kind_for_code(code: Union[str, int]) -> Optional[ModKind]:
    """Map a modification code to the counted ModKind (None if not counted)."""
    if code in HYDROXY_CODES:
        return ModKind.HYDROXY
    if code in METHYL_CODES:
        return ModKind.METHYL
    return None


@dataclass(frozen=True)
class ModCall:
    """One modification call: query position, modification code, ML quality."""
    position: int
    code: Union[str, int]
    quality: int

    @property
    def kind(self) -> Optional[ModKind]:
        return kind_for_code(self.code)


@dataclass
class ModRead:
    """A single alignment record with its cytosine modification calls."""
    read_id: str
    query_sequence: str
    is_reverse: bool
    calls: List[ModCall] = field(default_factory=list)

    @property
    def query_length(self) -> int:
        return len(self.query_sequence)

    @property
    def strand(self) -> str:
        return '-' if self.is_reverse else '+'


def get_mod_calls_pysam(read: pysam.AlignedSegment) -> List[ModCall]:
    """
    Collect 5hmC/5mC calls using pysam's built-in modified_bases property.

    pysam.modified_bases returns:
        Dict[(canonical_base, strand, modification_code)] -> [(pos, qual), ...]

    Calls of other modification codes are dropped. The result is ordered by
    query position, hydroxymethylation before methylation at each position.

    Returns:
        List of ModCall (empty if the read has no parsable MM/ML tags)
    """
    mod_bases = read.modified_bases
    if not mod_bases:
        return []

    calls = []
    for (_base, _strand, mod_code), positions in mod_bases.items():
        if kind_for_code(mod_code) is None:
            continue
        for pos, qual in positions:
            calls.append(ModCall(int(pos), mod_code, int(qual)))

    calls.sort(key=lambda c: (c.position, int(c.kind)))
    return calls


def to_mod_read(read: pysam.AlignedSegment) -> ModRead:
    """Wrap a pysam record as a ModRead."""
    sequence = read.query_sequence
    if sequence is None:
        # Secondary records frequently omit SEQ; there is nothing to classify
        return ModRead(read.query_name, '', bool(read.is_reverse), [])

    return ModRead(
        read_id=read.query_name,
        query_sequence=sequence,
        is_reverse=bool(read.is_reverse),
        calls=get_mod_calls_pysam(read),
    )


def open_alignment_file(path: str) -> pysam.AlignmentFile:
    """
    Open a SAM/BAM/CRAM file for reading (format is auto-detected).

    Raises:
        InputAccessError: file missing, unreadable, or header unparsable
    """
    try:
        return pysam.AlignmentFile(path, "r", check_sq=False)
    except (OSError, ValueError) as e:
        raise InputAccessError(f"failed to open alignment file {path}: {e}") from e


def passes_filters(read: pysam.AlignedSegment, min_mapq: int = 0,
                   primary_only: bool = False) -> bool:
    """Read-level filters applied before call extraction."""
    if primary_only and (read.is_secondary or read.is_supplementary):
        return False
    if min_mapq > 0 and (read.is_unmapped or read.mapping_quality < min_mapq):
        return False
    return True


def iter_records(bam: pysam.AlignmentFile, path: str,
                 region: Optional[str] = None,
                 contig: Optional[str] = None,
                 start: Optional[int] = None,
                 stop: Optional[int] = None) -> Iterator[pysam.AlignedSegment]:
    """
    Iterate raw records, converting decoder failures into RecordReadError.

    A region is either a region string or an explicit contig with 0-based
    half-open start/stop; the explicit form is unambiguous for contig names
    containing ':'. Without either the whole file is read in stored order
    (no index needed).
    """
    if contig is not None:
        iterator = bam.fetch(contig=contig, start=start, stop=stop)
    elif region:
        iterator = bam.fetch(region=region)
    else:
        iterator = bam.fetch(until_eof=True)
    while True:
        try:
            read = next(iterator)
        except StopIteration:
            return
        except (OSError, ValueError) as e:
            raise RecordReadError(f"failed reading alignment record from {path}: {e}") from e
        yield read


def read_mod_bam(bam_path: str,
                 region: Optional[str] = None,
                 min_mapq: int = 0,
                 primary_only: bool = False,
                 max_reads: int = 0) -> Iterator[ModRead]:
    """
    Read an alignment file and yield ModRead objects.

    Args:
        bam_path: Path to SAM/BAM/CRAM file (index needed only with region)
        region: Optional region string (e.g., "chr1:1000-5000")
        min_mapq: Minimum mapping quality (0 = keep all, including unmapped)
        primary_only: Skip secondary and supplementary alignments
        max_reads: Stop after this many yielded reads (0 = all)

    Yields:
        ModRead objects in file order

    Raises:
        InputAccessError: before the first record if the file cannot be opened
        RecordReadError: on a corrupt record; the file handle is still closed
    """
    n_yielded = 0
    with open_alignment_file(bam_path) as bam:
        for read in iter_records(bam, bam_path, region):
            if not passes_filters(read, min_mapq, primary_only):
                continue

            yield to_mod_read(read)
            n_yielded += 1

            if max_reads > 0 and n_yielded >= max_reads:
                break


def get_bam_chrom_sizes(bam_path: str) -> dict:
    """Get contig sizes from the alignment header."""
    with open_alignment_file(bam_path) as bam:
        return {name: int(bam.get_reference_length(name)) for name in bam.references}
