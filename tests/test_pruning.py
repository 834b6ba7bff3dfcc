from algo.pruning import estimate_item_utilities, prune_unpromising_items
from utils.sequence_utils import load_database

LINES = [
    "1[5] 2[1] -1 3[4] -1 -2 S:10",
    "2[1] -1 4[1] -1 -2 S:2",
    "1[3] -1 3[3] -1 -2 S:6",
]


def test_estimated_utility_sums_sequences_containing_item():
    db = load_database(LINES)
    assert estimate_item_utilities(db) == {1: 16.0, 2: 12.0, 3: 16.0, 4: 2.0}


def test_removes_items_and_empty_itemsets():
    db = load_database(LINES)
    promising = prune_unpromising_items(db, 5)

    assert 4 not in promising
    assert db.size() == 3
    seq = db.get(1)
    assert seq.itemsets == [[2]]
    assert seq.utilities == [[1.0]]
    assert seq.exact_utility == 1.0
    # untouched sequences keep their utility
    assert db.get(0).exact_utility == 10.0


def test_removal_lowers_estimates_until_stable():
    db = load_database(LINES)
    promising = prune_unpromising_items(db, 12)

    # 4 goes first; sequence 1 then drops to 1 and takes item 2 below 12 with it
    assert promising == {1: 15.0, 3: 15.0}
    assert db.size() == 2
    assert db.get(0).itemsets == [[1], [3]]
    assert db.get(0).utilities == [[5.0], [4.0]]
    assert db.get(0).exact_utility == 9.0
    assert db.get(1).exact_utility == 6.0


def test_rerun_is_a_no_op():
    db = load_database(LINES)
    prune_unpromising_items(db, 12)
    before = [(s.itemsets, s.utilities, s.exact_utility) for s in db.sequences]
    prune_unpromising_items(db, 12)
    after = [(s.itemsets, s.utilities, s.exact_utility) for s in db.sequences]
    assert before == after


def test_everything_pruned_leaves_empty_database():
    db = load_database(LINES)
    assert prune_unpromising_items(db, 100) == {}
    assert db.size() == 0
