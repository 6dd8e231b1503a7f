"""Call extraction, histogram accumulation, summaries and whole-file scans."""

from nanomods.counting.extractor import (
    ContextCall,
    ExtractionStats,
    extract_context_calls,
)
from nanomods.counting.histograms import ModProbStats
from nanomods.counting.summary import (
    combine_strands,
    resolve_strands,
    summarize,
    write_summary,
)
from nanomods.counting.parallel import count_bam, count_bam_parallel

__all__ = [
    'ContextCall',
    'ExtractionStats',
    'extract_context_calls',
    'ModProbStats',
    'combine_strands',
    'resolve_strands',
    'summarize',
    'write_summary',
    'count_bam',
    'count_bam_parallel',
]
