"""
Call extraction: turn one ModRead into (context, kind, quality, strand) calls.

Calls are examined one query position at a time. A position is counted only
when it carries both a 5hmC and a 5mC call and its context neighbour is one of
A, C, G, T; otherwise both kinds are dropped together.

Neighbour selection depends on the strand of the alignment:
    + strand: base at position + 1 (read 3' neighbour)
    - strand: base at position - 1 (the stored sequence is reverse
              complemented, so one index lower is the same biological neighbour)
"""

from dataclasses import dataclass, fields
from typing import Dict, List, NamedTuple, Optional

from nanomods.core.bam_reader import ModCall, ModRead, UNKNOWN_QUALITY
from nanomods.core.context import (
    BOUNDARY, ModKind, NucleotideClass, classify_base,
)


class ContextCall(NamedTuple):
    context: NucleotideClass
    kind: ModKind
    quality: int
    is_reverse: bool


@dataclass
class ExtractionStats:
    """Per-position outcome tallies (diagnostics only, never affect counts)."""
    positions: int = 0
    incomplete: int = 0
    duplicate_kind: int = 0
    out_of_order: int = 0
    boundary: int = 0
    invalid_context: int = 0
    counted: int = 0

    def merge(self, other: 'ExtractionStats'):
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    def as_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def neighbor_base(sequence: str, position: int, is_reverse: bool) -> str:
    """Context neighbour of a call, or BOUNDARY past either read end."""
    if is_reverse:
        return sequence[position - 1] if position > 0 else BOUNDARY
    return sequence[position + 1] if position + 1 < len(sequence) else BOUNDARY


def _group_by_position(calls: List[ModCall]) -> Dict[int, List[ModCall]]:
    grouped: Dict[int, List[ModCall]] = {}
    for call in calls:
        grouped.setdefault(call.position, []).append(call)
    return grouped


def _pair_calls(group: List[ModCall],
                stats: ExtractionStats) -> Optional[tuple]:
    """
    Pick the (hydroxy, methyl) calls for one position by kind tag.

    Returns None when the position is incomplete or ambiguous.
    """
    hydroxy = [c for c in group if c.kind == ModKind.HYDROXY]
    methyl = [c for c in group if c.kind == ModKind.METHYL]

    if len(hydroxy) > 1 or len(methyl) > 1:
        stats.duplicate_kind += 1
        return None
    if not hydroxy or not methyl:
        stats.incomplete += 1
        return None

    h_call, m_call = hydroxy[0], methyl[0]
    if h_call.quality == UNKNOWN_QUALITY or m_call.quality == UNKNOWN_QUALITY:
        stats.incomplete += 1
        return None

    # Expected order is 5hmC then 5mC; the kind tag decides either way
    if group.index(m_call) < group.index(h_call):
        stats.out_of_order += 1

    return h_call, m_call


def extract_context_calls(read: ModRead,
                          stats: Optional[ExtractionStats] = None) -> List[ContextCall]:
    """
    Extract context-classified calls from one read.

    Args:
        read: ModRead with ordered modification calls
        stats: Optional ExtractionStats updated with per-position outcomes

    Returns:
        Two ContextCall entries (5hmC then 5mC) per counted position
    """
    if stats is None:
        stats = ExtractionStats()

    result = []
    sequence = read.query_sequence

    for position, group in _group_by_position(read.calls).items():
        stats.positions += 1

        pair = _pair_calls(group, stats)
        if pair is None:
            continue
        h_call, m_call = pair

        if not 0 <= position < len(sequence):
            stats.boundary += 1
            continue

        neighbor = neighbor_base(sequence, position, read.is_reverse)
        if neighbor == BOUNDARY:
            stats.boundary += 1
            continue

        context = classify_base(neighbor)
        if context == NucleotideClass.INVALID:
            stats.invalid_context += 1
            continue

        result.append(ContextCall(context, ModKind.HYDROXY, h_call.quality, read.is_reverse))
        result.append(ContextCall(context, ModKind.METHYL, m_call.quality, read.is_reverse))
        stats.counted += 1

    return result
