"""
nanomods - 5mC / 5hmC modification probability histograms by CpN context
from nanopore modBAM (MM/ML tagged) alignment files.
"""

__version__ = "0.1.0"

from nanomods.core.context import NucleotideClass, ModKind, classify_base
from nanomods.core.bam_reader import ModCall, ModRead, read_mod_bam
from nanomods.counting.histograms import ModProbStats
from nanomods.counting.summary import combine_strands, resolve_strands, summarize
