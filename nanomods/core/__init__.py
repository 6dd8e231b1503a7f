"""Context classification and modBAM parsing."""

from nanomods.core.context import (
    NucleotideClass, ModKind, classify_base, complement_class,
    CONTEXT_LABELS, CONTEXT_LABELS_REV,
)
from nanomods.core.bam_reader import (
    ModCall, ModRead, InputAccessError, RecordReadError, read_mod_bam,
)
