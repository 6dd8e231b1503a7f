"""
Shared pytest fixtures for nanomods tests.
"""
import os

import pytest
import pysam

from nanomods.core.bam_reader import ModCall, ModRead


SAM_HEADER = (
    "@HD\tVN:1.6\tSO:coordinate\n"
    "@SQ\tSN:chr1\tLN:1000\n"
    "@SQ\tSN:chr2\tLN:500\n"
)

# Forward read: C at query 1 -> neighbour query 2 'G'
# Reverse read: MM counts Cs of the original read (ACGT); that C is stored at
# query 2, neighbour query 1 'C'
SAM_RECORDS = [
    "fwd1\t0\tchr1\t100\t60\t4M\t*\t0\t0\tACGT\tIIII\tMM:Z:C+h?,0;C+m?,0;\tML:B:C,10,20",
    "rev1\t16\tchr1\t300\t60\t4M\t*\t0\t0\tACGT\tIIII\tMM:Z:C+h?,0;C+m?,0;\tML:B:C,5,7",
    "fwd2\t0\tchr2\t50\t10\t6M\t*\t0\t0\tACCATN\tIIIIII\tMM:Z:C+h?,0,0;C+m?,0,0;\tML:B:C,30,31,40,41",
    "unm1\t4\t*\t0\t0\t*\t*\t0\t0\tACGT\tIIII\tMM:Z:C+h?,0;C+m?,0;\tML:B:C,1,2",
]


def make_read(sequence, calls, is_reverse=False, read_id='read_001'):
    """Build a ModRead from (position, code, quality) tuples."""
    return ModRead(
        read_id=read_id,
        query_sequence=sequence,
        is_reverse=is_reverse,
        calls=[ModCall(pos, code, qual) for pos, code, qual in calls],
    )


@pytest.fixture
def read_factory():
    return make_read


@pytest.fixture
def forward_read():
    """Forward read 'ACGT' with a 5hmC/5mC pair at position 0 (h=10, m=20)."""
    return make_read('ACGT', [(0, 'h', 10), (0, 'm', 20)])


@pytest.fixture
def reverse_read():
    """Reverse read 'ACGT' with a 5hmC/5mC pair at position 3 (h=5, m=7)."""
    return make_read('ACGT', [(3, 'h', 5), (3, 'm', 7)], is_reverse=True)


@pytest.fixture
def sam_path(tmp_path):
    """Small coordinate-sorted SAM file with MM/ML tags."""
    path = tmp_path / "calls.sam"
    path.write_text(SAM_HEADER + "\n".join(SAM_RECORDS) + "\n")
    return str(path)


@pytest.fixture
def bam_path(sam_path, tmp_path):
    """BAM + index converted from sam_path."""
    path = str(tmp_path / "calls.bam")
    with pysam.AlignmentFile(sam_path, "r") as src:
        with pysam.AlignmentFile(path, "wb", template=src) as dst:
            for read in src:
                dst.write(read)
    pysam.index(path)
    assert os.path.exists(path + '.bai')
    return path


@pytest.fixture
def truncated_sam_path(tmp_path):
    """SAM whose second record is malformed."""
    path = tmp_path / "broken.sam"
    path.write_text(SAM_HEADER + SAM_RECORDS[0] + "\n" + "broken\tline\n")
    return str(path)


@pytest.fixture
def colon_contig_bam_path(tmp_path):
    """Indexed BAM whose contig name contains ':' (HLA alt style)."""
    header = (
        "@HD\tVN:1.6\tSO:coordinate\n"
        "@SQ\tSN:HLA-A*01:01:01:01\tLN:1000\n"
    )
    records = [
        "hla1\t0\tHLA-A*01:01:01:01\t100\t60\t4M\t*\t0\t0\tACGT\tIIII\tMM:Z:C+h?,0;C+m?,0;\tML:B:C,10,20",
        "hla2\t16\tHLA-A*01:01:01:01\t600\t60\t4M\t*\t0\t0\tACGT\tIIII\tMM:Z:C+h?,0;C+m?,0;\tML:B:C,5,7",
    ]
    sam = tmp_path / "hla.sam"
    sam.write_text(header + "\n".join(records) + "\n")
    path = str(tmp_path / "hla.bam")
    with pysam.AlignmentFile(str(sam), "r") as src:
        with pysam.AlignmentFile(path, "wb", template=src) as dst:
            for read in src:
                dst.write(read)
    pysam.index(path)
    return path
