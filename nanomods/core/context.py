"""
Dinucleotide context classification for cytosine modification calls.

The modified base is always a C; only the neighbouring base varies, so a
context is fully described by the class of that neighbour:

    A -> 0    C -> 1    G -> 2    T -> 3    anything else -> INVALID (4)

Only the four uppercase canonical bases are valid. 'N', lowercase bases and
the empty read-boundary sentinel all classify as INVALID.
"""

from enum import IntEnum
from typing import Tuple, Union


class NucleotideClass(IntEnum):
    A = 0
    C = 1
    G = 2
    T = 3
    INVALID = 4


class ModKind(IntEnum):
    """Cytosine modification kinds that are counted."""
    HYDROXY = 0  # 5hmC
    METHYL = 1   # 5mC


N_NUCS = 4
N_QUALITIES = 256

# Neighbour sentinel used when the read ends before the neighbour position
BOUNDARY = ''

# Row i of a forward-strand table is the context C + base i
CONTEXT_LABELS: Tuple[str, ...] = ('CA', 'CC', 'CG', 'CT')

# Row i of a reverse-strand table carries the reverse-complement label, so that
# row i in both tables describes complementary contexts
CONTEXT_LABELS_REV: Tuple[str, ...] = ('CT', 'CG', 'CC', 'CA')


def classify_base(base: Union[str, int, None]) -> NucleotideClass:
    """
    Classify a neighbouring base.

    Args:
        base: Single character, byte value (0-255), or the BOUNDARY sentinel

    Returns:
        NucleotideClass, INVALID for anything other than 'A', 'C', 'G', 'T'
    """
    if isinstance(base, int):
        if base == 65:
            return NucleotideClass.A
        if base == 67:
            return NucleotideClass.C
        if base == 71:
            return NucleotideClass.G
        if base == 84:
            return NucleotideClass.T
        return NucleotideClass.INVALID

    if base == 'A':
        return NucleotideClass.A
    if base == 'C':
        return NucleotideClass.C
    if base == 'G':
        return NucleotideClass.G
    if base == 'T':
        return NucleotideClass.T
    return NucleotideClass.INVALID


def complement_class(nuc: int) -> NucleotideClass:
    """A<->T, C<->G on class indices (i -> 3 - i)."""
    if not 0 <= nuc < N_NUCS:
        raise ValueError(f"No complement for nucleotide class {nuc}")
    return NucleotideClass(N_NUCS - 1 - nuc)
