"""
Summary documents built from a finished ModProbStats.

Two shapes are produced:

strand-combined (default):
    {"methyl": {"CA": [...], "CC": [...], "CG": [...], "CT": [...]},
     "hydroxy": {...}}
    Reverse-strand rows are folded onto forward rows by complement,
    combined[c] = fwd[c] + rev[3 - c].

strand-resolved (--stranded):
    {"methyl_fwd": {CA, CC, CG, CT}, "methyl_rev": {CT, CG, CC, CA},
     "hydroxy_fwd": {...}, "hydroxy_rev": {...}}
    No folding; row i of a reverse table is labelled CONTEXT_LABELS_REV[i].

Every leaf is a list of 256 ints indexed by ML quality.
"""

import json
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from nanomods.core.context import CONTEXT_LABELS, CONTEXT_LABELS_REV, N_NUCS
from nanomods.counting.histograms import ModProbStats


Histograms = Dict[str, List[int]]


def _to_map(table: np.ndarray, labels: Sequence[str]) -> Histograms:
    result = {}
    for idx, label in enumerate(labels):
        result[label] = [int(v) for v in table[idx]]
    return result


def fold_strands(fwd: np.ndarray, rev: np.ndarray) -> np.ndarray:
    """Fold reverse-strand rows onto forward rows: out[i] = fwd[i] + rev[3 - i]."""
    work = fwd.copy()
    for i in range(N_NUCS):
        work[i] += rev[N_NUCS - 1 - i]
    return work


def combine_strands(stats: ModProbStats) -> Dict[str, Histograms]:
    """Strand-combined summary keyed by 'methyl' and 'hydroxy'."""
    return {
        'methyl': _to_map(fold_strands(stats.methyl_fwd, stats.methyl_rev), CONTEXT_LABELS),
        'hydroxy': _to_map(fold_strands(stats.hydroxy_fwd, stats.hydroxy_rev), CONTEXT_LABELS),
    }


def resolve_strands(stats: ModProbStats) -> Dict[str, Histograms]:
    """Strand-resolved summary with one map per kind and strand."""
    return {
        'methyl_fwd': _to_map(stats.methyl_fwd, CONTEXT_LABELS),
        'methyl_rev': _to_map(stats.methyl_rev, CONTEXT_LABELS_REV),
        'hydroxy_fwd': _to_map(stats.hydroxy_fwd, CONTEXT_LABELS),
        'hydroxy_rev': _to_map(stats.hydroxy_rev, CONTEXT_LABELS_REV),
    }


def summarize(stats: ModProbStats, stranded: bool = False) -> Dict[str, Histograms]:
    if stranded:
        return resolve_strands(stats)
    return combine_strands(stats)


def write_summary(doc: Dict[str, Histograms], filepath: str):
    """Write a summary document as indented JSON (key order preserved)."""
    with open(filepath, 'w') as f:
        json.dump(doc, f, indent=4)
        f.write('\n')


def summary_to_dataframe(doc: Dict[str, Histograms]) -> pd.DataFrame:
    """
    Long-format table of the non-zero histogram cells.

    Columns: table, context, quality, count
    """
    rows = []
    for table_name, histograms in doc.items():
        for context, counts in histograms.items():
            for quality, count in enumerate(counts):
                if count:
                    rows.append({
                        'table': table_name,
                        'context': context,
                        'quality': quality,
                        'count': int(count),
                    })

    return pd.DataFrame(rows, columns=['table', 'context', 'quality', 'count'])


def write_summary_tsv(doc: Dict[str, Histograms], filepath: str):
    summary_to_dataframe(doc).to_csv(filepath, sep='\t', index=False)
