"""
Quality histograms of 5mC/5hmC calls by dinucleotide context and strand.

ModProbStats owns four count tables, each a (4, 256) uint64 array indexed by
[neighbour class, ML quality]:

    methyl_fwd, methyl_rev, hydroxy_fwd, hydroxy_rev

Tables only ever grow while reads are added. Accumulators are independent
objects: parallel workers each fill their own and the results are combined
with merge().
"""

import json
from typing import Dict, Iterable, List, Optional

import numpy as np

from nanomods.core.bam_reader import ModRead
from nanomods.core.context import ModKind, N_NUCS, N_QUALITIES
from nanomods.counting.extractor import (
    ContextCall, ExtractionStats, extract_context_calls,
)


TABLE_NAMES = ('methyl_fwd', 'methyl_rev', 'hydroxy_fwd', 'hydroxy_rev')


def _empty_table() -> np.ndarray:
    return np.zeros((N_NUCS, N_QUALITIES), dtype=np.uint64)


class ModProbStats:
    """
    Accumulates ML-quality histograms per (kind, strand, context).

    This is the counting core used by the nanomods CLI and by the parallel
    region workers.
    """

    def __init__(self):
        self.methyl_fwd = _empty_table()
        self.methyl_rev = _empty_table()
        self.hydroxy_fwd = _empty_table()
        self.hydroxy_rev = _empty_table()

        # Reads passed to add_read (including reads contributing nothing)
        self.n_reads = 0

    def table(self, kind: ModKind, is_reverse: bool) -> np.ndarray:
        """Return the table for a modification kind and strand."""
        if kind == ModKind.METHYL:
            return self.methyl_rev if is_reverse else self.methyl_fwd
        return self.hydroxy_rev if is_reverse else self.hydroxy_fwd

    def tables(self) -> Dict[str, np.ndarray]:
        return {name: getattr(self, name) for name in TABLE_NAMES}

    def add(self, call: ContextCall):
        """Count a single context call."""
        self.table(call.kind, call.is_reverse)[call.context, call.quality] += 1

    def add_calls(self, calls: Iterable[ContextCall]) -> int:
        n = 0
        for call in calls:
            self.add(call)
            n += 1
        return n

    def add_read(self, read: ModRead,
                 stats: Optional[ExtractionStats] = None) -> int:
        """
        Extract and count all calls from one read.

        Returns:
            Number of calls added (two per counted position)
        """
        self.n_reads += 1
        return self.add_calls(extract_context_calls(read, stats))

    def merge(self, other: 'ModProbStats'):
        """Add counts from another accumulator (elementwise sum)."""
        for name in TABLE_NAMES:
            getattr(self, name)[...] += getattr(other, name)
        self.n_reads += other.n_reads

    def total_calls(self) -> int:
        return int(sum(int(t.sum()) for t in self.tables().values()))

    def reset(self):
        """Reset all counts to zero."""
        for name in TABLE_NAMES:
            setattr(self, name, _empty_table())
        self.n_reads = 0

    def copy(self) -> 'ModProbStats':
        """Create a deep copy of this accumulator."""
        new_stats = ModProbStats()
        for name in TABLE_NAMES:
            setattr(new_stats, name, getattr(self, name).copy())
        new_stats.n_reads = self.n_reads
        return new_stats

    def __eq__(self, other):
        if not isinstance(other, ModProbStats):
            return NotImplemented
        return self.n_reads == other.n_reads and all(
            np.array_equal(getattr(self, name), getattr(other, name))
            for name in TABLE_NAMES
        )

    def to_dict(self) -> Dict[str, object]:
        """Raw (unfolded) tables as nested lists of Python ints."""
        data: Dict[str, object] = {
            name: [[int(v) for v in row] for row in getattr(self, name)]
            for name in TABLE_NAMES
        }
        data['n_reads'] = self.n_reads
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> 'ModProbStats':
        stats = cls()
        for name in TABLE_NAMES:
            rows: List[List[int]] = data[name]
            table = np.array(rows, dtype=np.uint64)
            if table.shape != (N_NUCS, N_QUALITIES):
                raise ValueError(f"Table {name} has shape {table.shape}, "
                                 f"expected {(N_NUCS, N_QUALITIES)}")
            setattr(stats, name, table)
        stats.n_reads = int(data.get('n_reads', 0))
        return stats

    def save(self, filepath: str):
        """Save raw tables to a JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f)

    @classmethod
    def load(cls, filepath: str) -> 'ModProbStats':
        """Load raw tables saved with save()."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)
