"""
Unit tests for nanomods call extraction.

Tests cover:
- Strand-dependent neighbour selection and read boundaries
- 5hmC/5mC pairing by kind tag
- Invalid neighbours and ordering diagnostics
"""
import pytest

from nanomods.core.context import BOUNDARY, ModKind, NucleotideClass
from nanomods.counting.extractor import (
    ContextCall,
    ExtractionStats,
    extract_context_calls,
    neighbor_base,
)

from conftest import make_read


class TestNeighborBase:
    """Test neighbour selection."""

    def test_forward_uses_next_base(self):
        assert neighbor_base('ACGT', 0, is_reverse=False) == 'C'
        assert neighbor_base('ACGT', 2, is_reverse=False) == 'T'

    def test_forward_last_position_is_boundary(self):
        assert neighbor_base('ACGT', 3, is_reverse=False) == BOUNDARY

    def test_reverse_uses_previous_base(self):
        assert neighbor_base('ACGT', 3, is_reverse=True) == 'G'
        assert neighbor_base('ACGT', 1, is_reverse=True) == 'A'

    def test_reverse_first_position_is_boundary(self):
        assert neighbor_base('ACGT', 0, is_reverse=True) == BOUNDARY


class TestExtractContextCalls:
    """Test extraction of context calls from single reads."""

    def test_forward_pair(self, forward_read):
        calls = extract_context_calls(forward_read)
        assert calls == [
            ContextCall(NucleotideClass.C, ModKind.HYDROXY, 10, False),
            ContextCall(NucleotideClass.C, ModKind.METHYL, 20, False),
        ]

    def test_reverse_pair(self, reverse_read):
        calls = extract_context_calls(reverse_read)
        assert calls == [
            ContextCall(NucleotideClass.G, ModKind.HYDROXY, 5, True),
            ContextCall(NucleotideClass.G, ModKind.METHYL, 7, True),
        ]

    @pytest.mark.parametrize("sequence", ['ACGT', 'CCAGTTA', 'GATTACA'])
    def test_forward_context_for_every_position(self, sequence):
        for p in range(len(sequence)):
            read = make_read(sequence, [(p, 'h', 1), (p, 'm', 2)])
            calls = extract_context_calls(read)
            if p + 1 >= len(sequence):
                assert calls == []
            else:
                assert {c.context for c in calls} == {NucleotideClass('ACGT'.index(sequence[p + 1]))}

    @pytest.mark.parametrize("sequence", ['ACGT', 'CCAGTTA', 'GATTACA'])
    def test_reverse_context_for_every_position(self, sequence):
        for p in range(len(sequence)):
            read = make_read(sequence, [(p, 'h', 1), (p, 'm', 2)], is_reverse=True)
            calls = extract_context_calls(read)
            if p == 0:
                assert calls == []
            else:
                assert {c.context for c in calls} == {NucleotideClass('ACGT'.index(sequence[p - 1]))}

    def test_hydroxy_only_position_dropped(self):
        stats = ExtractionStats()
        read = make_read('ACGT', [(0, 'h', 10)])
        assert extract_context_calls(read, stats) == []
        assert stats.incomplete == 1
        assert stats.counted == 0

    def test_methyl_only_position_dropped(self):
        read = make_read('ACGT', [(1, 'm', 99)])
        assert extract_context_calls(read) == []

    def test_unpaired_position_does_not_affect_neighbours(self):
        """Positions are paired by position, not by list offset."""
        read = make_read('ACGTAC', [(0, 'h', 1), (1, 'h', 2), (1, 'm', 3)])
        calls = extract_context_calls(read)
        assert calls == [
            ContextCall(NucleotideClass.G, ModKind.HYDROXY, 2, False),
            ContextCall(NucleotideClass.G, ModKind.METHYL, 3, False),
        ]

    @pytest.mark.parametrize("is_reverse", [False, True])
    def test_n_neighbour_dropped(self, is_reverse):
        stats = ExtractionStats()
        read = make_read('NCN', [(1, 'h', 10), (1, 'm', 20)], is_reverse=is_reverse)
        assert extract_context_calls(read, stats) == []
        assert stats.invalid_context == 1

    def test_lowercase_neighbour_dropped(self):
        read = make_read('Cg', [(0, 'h', 10), (0, 'm', 20)])
        assert extract_context_calls(read) == []

    def test_boundary_counted_in_stats(self):
        stats = ExtractionStats()
        read = make_read('ACGT', [(3, 'h', 1), (3, 'm', 2)])
        assert extract_context_calls(read, stats) == []
        assert stats.boundary == 1

    def test_methyl_before_hydroxy_flagged_and_assigned_by_kind(self):
        stats = ExtractionStats()
        read = make_read('ACGT', [(0, 'm', 20), (0, 'h', 10)])
        calls = extract_context_calls(read, stats)
        assert calls == [
            ContextCall(NucleotideClass.C, ModKind.HYDROXY, 10, False),
            ContextCall(NucleotideClass.C, ModKind.METHYL, 20, False),
        ]
        assert stats.out_of_order == 1

    def test_duplicate_kind_dropped(self):
        stats = ExtractionStats()
        read = make_read('ACGT', [(0, 'h', 10), (0, 'h', 11), (0, 'm', 20)])
        assert extract_context_calls(read, stats) == []
        assert stats.duplicate_kind == 1

    def test_other_modification_codes_ignored(self):
        read = make_read('ACGT', [(0, 'a', 200), (0, 'h', 10), (0, 'm', 20)])
        calls = extract_context_calls(read)
        assert [c.kind for c in calls] == [ModKind.HYDROXY, ModKind.METHYL]

    def test_chebi_codes(self):
        read = make_read('ACGT', [(0, 76792, 10), (0, 27551, 20)])
        calls = extract_context_calls(read)
        assert [(c.kind, c.quality) for c in calls] == [
            (ModKind.HYDROXY, 10), (ModKind.METHYL, 20)]

    def test_unknown_quality_dropped(self):
        stats = ExtractionStats()
        read = make_read('ACGT', [(0, 'h', -1), (0, 'm', 20)])
        assert extract_context_calls(read, stats) == []
        assert stats.incomplete == 1

    def test_position_outside_sequence_dropped(self):
        read = make_read('ACGT', [(10, 'h', 1), (10, 'm', 2)])
        assert extract_context_calls(read) == []

    def test_stats_tally(self):
        stats = ExtractionStats()
        read = make_read('ACGTN', [
            (0, 'h', 1), (0, 'm', 2),   # counted (C)
            (2, 'h', 1), (2, 'm', 2),   # counted (T)
            (3, 'h', 1), (3, 'm', 2),   # N neighbour
            (4, 'h', 1), (4, 'm', 2),   # boundary
            (1, 'h', 1),                # incomplete
        ])
        calls = extract_context_calls(read, stats)
        assert len(calls) == 4
        assert stats.as_dict() == {
            'positions': 5,
            'incomplete': 1,
            'duplicate_kind': 0,
            'out_of_order': 0,
            'boundary': 1,
            'invalid_context': 1,
            'counted': 2,
        }

    def test_stats_merge(self):
        a = ExtractionStats(positions=2, counted=1)
        b = ExtractionStats(positions=3, boundary=2)
        a.merge(b)
        assert a.positions == 5
        assert a.counted == 1
        assert a.boundary == 2

    def test_empty_read(self):
        assert extract_context_calls(make_read('', [])) == []
