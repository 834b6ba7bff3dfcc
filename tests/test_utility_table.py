import pytest

from algo.husrm import HUSRM
from algo.utility_table import LeftUtilityRow, LeftUtilityTable, UtilityRow, UtilityTable
from utils.sequence_utils import parse_sequence_line

# itemsets (1 5) (3 6) (2 4 7)
SEQ = parse_sequence_line("1[1] 5[2] -1 3[3] 6[1] -1 2[2] 4[1] 7[1] -1 -2 S:11")


def _row(x, y):
    return HUSRM._build_pair_row(0, SEQ, x, y)


def test_row_for_pair():
    row = _row(1, 4)
    assert (row.alpha, row.beta) == (0, 2)
    assert row.utility == 2.0
    # 5 after x in the alpha itemset, 3 between (> 1 only)
    assert row.lutil == 5.0
    # 7 after y in the beta itemset
    assert row.rutil == 1.0
    # 6 between, greater than both
    assert row.lrutil == 1.0


def test_row_with_items_between_larger_than_consequent_only():
    row = _row(5, 2)
    assert (row.alpha, row.beta) == (0, 2)
    assert row.utility == 4.0
    assert row.lutil == 0.0
    assert row.rutil == 5.0   # 7 and 4 after y, 3 between
    assert row.lrutil == 1.0  # 6


def test_row_dropped_when_consequent_not_after_antecedent():
    assert _row(3, 1) is None


def test_row_dropped_when_antecedent_missing():
    assert _row(9, 2) is None


def test_scenario_rows():
    first = HUSRM._build_pair_row(0, parse_sequence_line("1[2] -1 2[3] -1 -2 S:5"), 1, 2)
    second = HUSRM._build_pair_row(1, parse_sequence_line("1[1] -1 2[4] -1 -2 S:5"), 1, 2)
    assert first.utility == 5.0
    assert second.utility == 5.0
    assert first.alpha < first.beta


def test_table_totals_and_bounds():
    table = UtilityTable()
    table.add(UtilityRow(0, utility=2, lutil=5, rutil=1, lrutil=1, alpha=0, beta=2))
    table.add(UtilityRow(3, utility=4, lutil=0, rutil=5, lrutil=1, alpha=0, beta=2))

    assert len(table) == 2
    assert table.total_utility == 6
    assert table.left_bound(tight=True) == 6 + 5 + 2
    assert table.left_bound(tight=False) == 6 + 5 + 6 + 2
    assert table.right_bound() == 6 + 5 + 6 + 2


def test_left_table_totals():
    table = LeftUtilityTable()
    table.add(LeftUtilityRow(0, utility=3, lutil=2))
    table.add(LeftUtilityRow(1, utility=1.5, lutil=0))
    assert len(table) == 2
    assert table.left_bound() == pytest.approx(6.5)
