"""
test_core.py — Unit tests for ExtrusionOptimizer building blocks.

Tests cover:
  - _prepare_work_items: grouping key, quantity sums, ids, preassigned stock length
  - _validate_part_lengths: offending parts, dedup order, finish matching
  - _select_stock_lengths: lowest waste wins, tie to first candidate, skipped rows
  - _pack_bar: anchor + best-fit filler, kerf after every cut, evaluation mode
  - _assemble_plan via optimize: stock ids, consumption, default stock length
  - calculate_summary: waste percentage and the empty plan

Kerf is 0.25 unless a test says otherwise; bar arithmetic is spelled out in
the docstrings.
"""

import pytest
from pydantic import ValidationError

from stockcut import calculate_summary
from stockcut.exceptions import DemandExceedsStockError, InternalPackingInvariantError
from stockcut.models import Cut, CutPlanBar, DemandLine, StockOption


def _items(optimizer, *rows):
    """Build work items from (length, qty, mark) tuples of part A."""
    demand = [DemandLine(part_no="A", length=length, qty=qty, mark_no=mark)
              for length, qty, mark in rows]
    return optimizer._prepare_work_items(demand)


# ===========================================================================
# Demand aggregation
# ===========================================================================

class TestPrepareWorkItems:

    def test_lines_sharing_key_are_summed(self, optimizer):
        demand = [
            DemandLine(part_no="A", length=100, qty=2, mark_no="M1", fab="F1", release="R1"),
            DemandLine(part_no="A", length=100, qty=3, mark_no="M1", fab="F1", release="R2"),
            DemandLine(part_no="A", length=100, qty=1, mark_no="M2", fab="F1"),
            DemandLine(part_no="A", length=50, qty=4, mark_no="M1", fab="F1"),
        ]
        items = optimizer._prepare_work_items(demand)

        assert [i.item for i in items] == [1, 2, 3]
        assert [i.qty for i in items] == [5, 1, 4]
        assert [i.remaining for i in items] == [5, 1, 4]
        assert items[0].release == "R1"

    def test_finish_and_fab_split_groups(self, optimizer):
        demand = [
            DemandLine(part_no="A", finish="ANOD", length=100, qty=1),
            DemandLine(part_no="A", finish="PAINT", length=100, qty=1),
            DemandLine(part_no="A", finish="ANOD", length=100, qty=1, fab="F9"),
        ]
        assert len(optimizer._prepare_work_items(demand)) == 3

    def test_new_items_start_clean(self, optimizer):
        item = optimizer._prepare_work_items([DemandLine(part_no="A", length=10, qty=2)])[0]
        assert item.anchor_count == 0
        assert item.drop_count == 0
        assert item.used_drops_for == []
        assert item.stock_length == 0

    def test_preassigned_stock_length_is_kept(self, optimizer):
        line = DemandLine(part_no="A", length=10, qty=2, stock_length_size=288)
        assert optimizer._prepare_work_items([line])[0].stock_length == 288

    def test_input_is_not_mutated(self, optimizer, mixed_demand, mixed_stock):
        before = [line.model_dump() for line in mixed_demand]
        optimizer.optimize(mixed_demand, mixed_stock)
        assert [line.model_dump() for line in mixed_demand] == before


# ===========================================================================
# Feasibility validation
# ===========================================================================

class TestValidatePartLengths:

    def test_part_longer_than_every_option(self, optimizer):
        demand = [DemandLine(part_no="B", length=400, qty=1)]
        stock = [StockOption(part_no="B", length1=300, qty1=5)]
        assert optimizer._validate_part_lengths(demand, stock) == ["B"]

    def test_offenders_are_distinct_in_first_seen_order(self, optimizer):
        demand = [
            DemandLine(part_no="C", length=500, qty=1),
            DemandLine(part_no="B", length=400, qty=1),
            DemandLine(part_no="C", length=600, qty=1),
            DemandLine(part_no="D", length=100, qty=1),
        ]
        stock = [
            StockOption(part_no="B", length1=300, qty1=1),
            StockOption(part_no="C", length1=300, qty1=1),
            StockOption(part_no="D", length1=300, qty1=1),
        ]
        assert optimizer._validate_part_lengths(demand, stock) == ["C", "B"]

    def test_second_length_counts_as_candidate(self, optimizer):
        demand = [DemandLine(part_no="B", length=400, qty=1)]
        stock = [StockOption(part_no="B", length1=300, qty1=5, length2=450)]
        assert optimizer._validate_part_lengths(demand, stock) == []

    def test_equal_length_is_feasible(self, optimizer):
        demand = [DemandLine(part_no="B", length=300, qty=1)]
        stock = [StockOption(part_no="B", length1=300, qty1=5)]
        assert optimizer._validate_part_lengths(demand, stock) == []

    def test_finish_must_match(self, optimizer):
        demand = [DemandLine(part_no="A", finish="ANOD", length=100, qty=1)]
        stock = [StockOption(part_no="A", finish="PAINT", length1=300, qty1=5)]
        assert optimizer._validate_part_lengths(demand, stock) == ["A"]

    def test_short_preassigned_stock_is_rejected_by_model(self):
        with pytest.raises(ValidationError, match="stock_length_size"):
            DemandLine(part_no="A", length=100, qty=1, stock_length_size=90)

    def test_preassigned_stock_does_not_affect_catalog_check(self, optimizer):
        """Only the catalog decides feasibility: 288 preassigned, 300 offered."""
        demand = [DemandLine(part_no="A", length=100, qty=1, stock_length_size=288)]
        stock = [StockOption(part_no="A", length1=300, qty1=5)]
        assert optimizer._validate_part_lengths(demand, stock) == []

    def test_optimize_names_every_offender(self, optimizer):
        demand = [
            DemandLine(part_no="B", length=400, qty=1),
            DemandLine(part_no="C", length=700, qty=1),
        ]
        stock = [StockOption(part_no="B", length1=300, qty1=5)]
        with pytest.raises(DemandExceedsStockError) as exc:
            optimizer.optimize(demand, stock)
        assert exc.value.part_numbers == ["B", "C"]
        assert "B" in str(exc.value) and "C" in str(exc.value)


# ===========================================================================
# Stock-length selection
# ===========================================================================

class TestSelectStockLengths:

    def test_lower_waste_candidate_wins(self, optimizer):
        """
        100 ×3, kerf 0.25:
          250 → 100, 100 → sobra 49.5
          310 → 100, 100, 100 → sobra 9.25  (wins)
        """
        items = _items(optimizer, (100, 3, "M1"))
        stock = [StockOption(part_no="A", length1=250, qty1=5, length2=310, qty2=5)]
        optimizer._select_stock_lengths(items, stock, 0.25)
        assert items[0].stock_length == 310

    def test_tie_goes_to_first_offered_length(self, zero_kerf_optimizer):
        """50 ×4, no kerf: both 200 and 100 leave 0 on the evaluated bar."""
        items = _items(zero_kerf_optimizer, (50, 4, "M1"))
        stock = [StockOption(part_no="A", length1=200, qty1=5, length2=100, qty2=5)]
        zero_kerf_optimizer._select_stock_lengths(items, stock, 0.0)
        assert items[0].stock_length == 200

        items = _items(zero_kerf_optimizer, (50, 4, "M1"))
        stock = [StockOption(part_no="A", length1=100, qty1=5, length2=200, qty2=5)]
        zero_kerf_optimizer._select_stock_lengths(items, stock, 0.0)
        assert items[0].stock_length == 100

    def test_candidate_shorter_than_longest_piece_is_skipped(self, zero_kerf_optimizer):
        """300 and 150: a 200 bar leaves less waste but cannot hold the 300 piece."""
        items = _items(zero_kerf_optimizer, (300, 1, "M1"), (150, 1, "M2"))
        stock = [StockOption(part_no="A", length1=200, qty1=5, length2=400, qty2=5)]
        zero_kerf_optimizer._select_stock_lengths(items, stock, 0.0)
        assert [i.stock_length for i in items] == [400, 400]

    def test_zero_second_quantity_skips_selection(self, optimizer):
        items = _items(optimizer, (100, 3, "M1"))
        stock = [StockOption(part_no="A", length1=250, qty1=5, length2=310, qty2=0)]
        optimizer._select_stock_lengths(items, stock, 0.25)
        assert items[0].stock_length == 0

    def test_selection_does_not_consume_demand(self, optimizer):
        items = _items(optimizer, (100, 3, "M1"), (60, 2, "M2"))
        stock = [StockOption(part_no="A", length1=250, qty1=5, length2=310, qty2=5)]
        optimizer._select_stock_lengths(items, stock, 0.25)
        assert [i.remaining for i in items] == [3, 2]
        assert all(i.anchor_count == 0 and i.drop_count == 0 for i in items)

    def test_other_groups_untouched(self, optimizer):
        demand = [
            DemandLine(part_no="A", length=100, qty=3),
            DemandLine(part_no="B", length=100, qty=3),
        ]
        items = optimizer._prepare_work_items(demand)
        stock = [StockOption(part_no="A", length1=250, qty1=5, length2=310, qty2=5)]
        optimizer._select_stock_lengths(items, stock, 0.25)
        assert [i.stock_length for i in items] == [310, 0]


# ===========================================================================
# Greedy packing engine
# ===========================================================================

class TestPackBar:

    def test_evaluation_mode_leaves_items_untouched(self, optimizer):
        """
        310 bar, 100 ×3 and 60 ×2:
          anchor 100 → 209.75, 100 → 109.5, 100 → 9.25; 60 no longer fits.
        """
        items = _items(optimizer, (100, 3, "M1"), (60, 2, "M2"))
        packing = optimizer._pack_bar(items, 310, 0.25, commit=False)

        assert [i.length for i in packing.placed] == [100, 100, 100]
        assert packing.remaining_length == pytest.approx(9.25)
        assert [i.remaining for i in items] == [3, 2]
        assert items[0].anchor_count == 0

    def test_commit_mode_updates_counters(self, optimizer):
        items = _items(optimizer, (100, 3, "M1"), (60, 2, "M2"))
        optimizer._pack_bar(items, 310, 0.25, commit=True)

        big, small = items
        assert big.remaining == 0
        assert big.anchor_count == 1
        assert big.drop_count == 2
        assert big.used_drops_for == []
        assert small.remaining == 2

    def test_filler_is_longest_piece_that_fits(self, zero_kerf_optimizer):
        """310 bar, no kerf: 200 → 110; 70 (not 60) → 40; 40 → 0."""
        items = _items(zero_kerf_optimizer, (200, 1, "A"), (70, 1, "B"), (60, 1, "C"), (40, 1, "D"))
        packing = zero_kerf_optimizer._pack_bar(items, 310, 0.0, commit=True)

        assert [i.length for i in packing.placed] == [200, 70, 40]
        assert packing.remaining_length == 0
        assert items[0].used_drops_for == [2, 4]
        assert items[2].remaining == 1

    def test_drop_trace_lists_filler_ids_once(self, zero_kerf_optimizer):
        """500 bar: 200 → 300; 60 ×5 → 0; trace holds item 2 only once."""
        items = _items(zero_kerf_optimizer, (200, 1, "A"), (60, 5, "B"))
        zero_kerf_optimizer._pack_bar(items, 500, 0.0, commit=True)

        assert items[0].used_drops_for == [2]
        assert items[1].drop_count == 5
        assert items[1].remaining == 0

    def test_anchor_skips_pieces_longer_than_bar(self, zero_kerf_optimizer):
        items = _items(zero_kerf_optimizer, (300, 1, "A"), (100, 1, "B"))
        packing = zero_kerf_optimizer._pack_bar(items, 200, 0.0, commit=False)
        assert [i.length for i in packing.placed] == [100]

    def test_equal_lengths_keep_aggregation_order(self, zero_kerf_optimizer):
        """Two 100 groups on 150 bars: mark M1 (item 1) is cut first."""
        items = _items(zero_kerf_optimizer, (100, 1, "M1"), (100, 1, "M2"))
        first = zero_kerf_optimizer._pack_bar(items, 150, 0.0, commit=True)
        second = zero_kerf_optimizer._pack_bar(items, 150, 0.0, commit=True)

        assert [i.mark for i in first.placed] == ["M1"]
        assert [i.mark for i in second.placed] == ["M2"]

    def test_filler_needs_room_for_its_kerf(self, optimizer):
        """200.4 bar, 100 ×2: 100 → 100.15; 100 + 0.25 > 100.15, so one piece per bar."""
        items = _items(optimizer, (100, 2, "M1"))
        packing = optimizer._pack_bar(items, 200.4, 0.25, commit=False)

        assert [i.length for i in packing.placed] == [100]
        assert packing.remaining_length == pytest.approx(100.15)

    def test_kerf_is_charged_after_last_cut(self, optimizer):
        """3 × 100 on 310: 310 - 3 × 100.25 = 9.25, not 9.5."""
        items = _items(optimizer, (100, 3, "M1"))
        packing = optimizer._pack_bar(items, 310, 0.25, commit=False)
        assert packing.remaining_length == pytest.approx(9.25)

    def test_empty_group_scores_full_length(self, optimizer):
        items = _items(optimizer, (100, 0, "M1"))
        packing = optimizer._pack_bar(items, 310, 0.25, commit=False)
        assert packing.placed == []
        assert packing.remaining_length == 310

    def test_no_anchor_is_internal_error(self, optimizer):
        items = _items(optimizer, (400, 1, "M1"))
        with pytest.raises(InternalPackingInvariantError) as exc:
            optimizer._pack_bar(items, 300, 0.25, commit=True)
        assert not isinstance(exc.value, DemandExceedsStockError)
        assert items[0].remaining == 1


# ===========================================================================
# Plan assembly
# ===========================================================================

class TestAssemblePlan:

    def test_stock_ids_restart_per_group(self, optimizer):
        """
        A 100 ×5 on 310 → 3 + 2 pieces (2 bars)
        B 100 ×4 on 210 → 2 + 2 pieces (2 bars)
        """
        demand = [
            DemandLine(part_no="A", length=100, qty=5),
            DemandLine(part_no="B", length=100, qty=4),
        ]
        stock = [
            StockOption(part_no="A", length1=310, qty1=10),
            StockOption(part_no="B", length1=210, qty1=10),
        ]
        result = optimizer.optimize(demand, stock)

        assert [bar.stock_id for bar in result.cut_pattern] == [1, 2, 1, 2]
        assert [len(bar.cuts) for bar in result.cut_pattern] == [3, 2, 2, 2]
        needed = [(s.part_no, s.stock_length, s.quantity) for s in result.stock_lengths_needed]
        assert needed == [("A", 310, 2), ("B", 210, 2)]

    def test_first_length_used_when_no_selection(self, optimizer):
        """length2 offered with qty2 = 0: 100 ×3 goes on 250 bars (2 + 1)."""
        demand = [DemandLine(part_no="A", length=100, qty=3)]
        stock = [StockOption(part_no="A", length1=250, qty1=5, length2=310, qty2=0)]
        result = optimizer.optimize(demand, stock)

        assert result.summary.total_stock_pieces == 2
        assert result.stock_lengths_needed[0].stock_length == 250

    def test_short_first_length_falls_back_to_fitting_candidate(self, optimizer):
        """length1 200 cannot hold 300; the 400 option is used for that piece only."""
        demand = [
            DemandLine(part_no="A", length=300, qty=1, mark_no="L"),
            DemandLine(part_no="A", length=50, qty=2, mark_no="S"),
        ]
        stock = [StockOption(part_no="A", length1=200, qty1=5, length2=400, qty2=0)]
        result = optimizer.optimize(demand, stock)

        lengths = sorted((s.stock_length, s.quantity) for s in result.stock_lengths_needed)
        assert lengths == [(200, 1), (400, 1)]

    def test_zero_quantity_produces_no_bars(self, optimizer):
        demand = [DemandLine(part_no="A", length=100, qty=0)]
        stock = [StockOption(part_no="A", length1=310, qty1=10)]
        result = optimizer.optimize(demand, stock)

        assert result.cut_pattern == []
        assert result.stock_lengths_needed == []
        assert result.summary.waste_percentage == 0

    def test_cuts_carry_demand_attributes(self, optimizer, mixed_demand, mixed_stock):
        result = optimizer.optimize(mixed_demand, mixed_stock)
        y_bar = [bar for bar in result.cut_pattern if bar.cuts[0].part_no == "Y"][0]
        cut = y_bar.cuts[0]
        assert (cut.finish, cut.mark, cut.fab, cut.release) == ("ANOD", "Y1", "F2", "R1")

    def test_mixed_plan_bar_layout(self, optimizer, mixed_demand, mixed_stock):
        """
        X on 288 (kerf 0.25):
          bar 1: 120, 120, 45      → 2.25
          bar 2: 120, 70, 70       → 27.25
          bar 3: 70, 70, 45, 45, 45 → 11.75
          bar 4: 45                → 242.75
        Y on 310: 100, 100, 100    → 9.25
        """
        result = optimizer.optimize(mixed_demand, mixed_stock)

        layout = [[c.length for c in bar.cuts] for bar in result.cut_pattern]
        assert layout == [
            [120, 120, 45],
            [120, 70, 70],
            [70, 70, 45, 45, 45],
            [45],
            [100, 100, 100],
        ]
        remaining = [bar.remaining_length for bar in result.cut_pattern]
        assert remaining == pytest.approx([2.25, 27.25, 11.75, 242.75, 9.25])


# ===========================================================================
# Summary
# ===========================================================================

class TestCalculateSummary:

    def test_waste_percentage(self):
        bars = [
            CutPlanBar(stock_length=300, stock_id=1, remaining_length=99.5,
                       cuts=[Cut(part_no="A", length=100), Cut(part_no="A", length=100)]),
            CutPlanBar(stock_length=100, stock_id=2, remaining_length=19.75,
                       cuts=[Cut(part_no="A", length=80)]),
        ]
        summary = calculate_summary(bars)

        assert summary.total_stock_length == 400
        assert summary.total_cut_length == 280
        assert summary.waste_percentage == pytest.approx(30.0)
        assert summary.total_stock_pieces == 2

    def test_empty_plan(self):
        summary = calculate_summary([])
        assert summary.total_stock_length == 0
        assert summary.waste_percentage == 0
        assert summary.total_stock_pieces == 0
