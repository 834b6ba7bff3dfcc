import logging

from utils.sequence_utils import SequenceDatabase

logger = logging.getLogger(__name__)


def estimate_item_utilities(db: SequenceDatabase) -> dict[int, float]:
    """Sequence estimated utility of each item: sum of exact utilities of sequences containing it."""
    estimates: dict[int, float] = {}
    for seq in db.sequences:
        seen_in_this_seq = set()
        for itemset in seq.itemsets:
            for item in itemset:
                if item not in seen_in_this_seq:
                    seen_in_this_seq.add(item)
                    estimates[item] = estimates.get(item, 0.0) + seq.exact_utility
    return estimates


def _remove_items(db: SequenceDatabase, promising: dict[int, float]) -> int:
    kept_sequences = []
    for seq in db.sequences:
        new_itemsets = []
        new_utilities = []
        for itemset, utils in zip(seq.itemsets, seq.utilities):
            items_kept = []
            utils_kept = []
            for item, utility in zip(itemset, utils):
                if item in promising:
                    items_kept.append(item)
                    utils_kept.append(utility)
                else:
                    seq.exact_utility -= utility
            if items_kept:
                new_itemsets.append(items_kept)
                new_utilities.append(utils_kept)
        seq.itemsets = new_itemsets
        seq.utilities = new_utilities
        if new_itemsets:
            kept_sequences.append(seq)

    removed = len(db.sequences) - len(kept_sequences)
    db.sequences = kept_sequences
    return removed


def prune_unpromising_items(db: SequenceDatabase, min_utility: float) -> dict[int, float]:
    """
    Remove items whose estimated utility is below min_utility (in place).

    The utility of every removed occurrence is subtracted from its sequence and
    emptied itemsets and sequences are dropped. Removing items lowers the exact
    utility of their sequences, so estimates are recomputed until no item falls
    below the threshold; running the pass again is then a no-op.
    Returns the estimates of the remaining items.
    """
    removed_items = 0
    removed_sequences = 0
    rounds = 0
    while True:
        estimates = estimate_item_utilities(db)
        promising = {item: est for item, est in estimates.items() if est >= min_utility}
        if len(promising) == len(estimates):
            break
        rounds += 1
        removed_items += len(estimates) - len(promising)
        removed_sequences += _remove_items(db, promising)

    logger.info("Pruned %d unpromising items and %d empty sequences in %d rounds (minutil=%s)",
                removed_items, removed_sequences, rounds, min_utility)
    return promising
