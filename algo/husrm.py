import logging
from time import time
from typing import Optional, TextIO

from algo.config import MiningConfig
from algo.pruning import prune_unpromising_items
from algo.rule import Rule
from algo.sequence_ids import SequenceIdSet, new_sequence_ids
from algo.utility_table import LeftUtilityRow, LeftUtilityTable, UtilityRow, UtilityTable
from utils.memory import MemoryObserver
from utils.sequence_utils import SequenceDatabase, SequenceWithUtility, load_database

logger = logging.getLogger(__name__)


class MiningInvariantError(RuntimeError):
    pass


class PairEstimate:
    """Estimated utility of a size-2 rule X ==> Y and the sequences where X occurs before Y."""
    __slots__ = ("utility", "sequence_ids")

    def __init__(self):
        self.utility = 0.0
        self.sequence_ids: list[int] = []


class HUSRM:
    """
    High-utility sequential rule miner (Zida, Fournier-Viger et al., MLDM 2015).

    Rules are grown from size-2 rules X ==> Y: right expansions append items to
    the consequent, left expansions append items to the antecedent. Appended
    items are always larger than the current largest item of that side, so each
    rule is generated once.
    """

    def __init__(self, config: Optional[MiningConfig] = None):
        self.config = (config or MiningConfig()).validate()
        self.total_time_ms = 0
        self.rule_count = 0
        self.max_memory_mb = 0.0

        self._minutil = self.config.effective_min_utility
        self._db: Optional[SequenceDatabase] = None
        self._writer: Optional[TextIO] = None
        self._observer: Optional[MemoryObserver] = None
        self._item_sids: dict[int, SequenceIdSet] = {}

    # ---------------------- Public API ----------------------
    def run(self, input_file: str, output_file: str, observer: Optional[MemoryObserver] = None) -> int:
        """Load input_file, mine it and write one line per rule to output_file."""
        if not output_file:
            raise ValueError("output_file must be provided")

        db = load_database(input_file, self.config.max_sequences)
        logger.info("Database: %s", db.stats())
        with open(output_file, "w", encoding="utf-8") as writer:
            return self.mine(db, writer, observer)

    def mine(self, database: SequenceDatabase, writer: TextIO, observer: Optional[MemoryObserver] = None) -> int:
        """
        Mine an already loaded database. The database is pruned in place when
        item pruning is enabled, so it should not be reused afterwards.
        Returns the number of rules written.
        """
        start = time()
        self.rule_count = 0
        self._db = database
        self._writer = writer
        self._observer = observer if observer is not None else MemoryObserver()
        self._observer.reset()

        try:
            if self.config.prune_items:
                prune_unpromising_items(self._db, self._minutil)
            self._item_sids = self._build_item_sequence_index()
            candidates = self._generate_candidate_pairs()
            self._mine_pairs(candidates)
            self._observer.sample()
        finally:
            self.total_time_ms = int((time() - start) * 1000)
            self.max_memory_mb = self._observer.peak()
            self._db = None  # detach
            self._writer = None
            self._item_sids = {}

        self.log_stats()
        return self.rule_count

    def stats(self) -> dict:
        return {
            "minutil": self._minutil,
            "rule_count": self.rule_count,
            "total_time_ms": self.total_time_ms,
            "max_memory_mb": self.max_memory_mb,
        }

    def log_stats(self):
        logger.info("HUSRM: minutil=%s rules=%d time=%d ms max memory=%.2f MB",
                    self._minutil, self.rule_count, self.total_time_ms, self.max_memory_mb)

    # ---------------------- Step 1: sequence ids per item ----------------------
    def _build_item_sequence_index(self) -> dict[int, SequenceIdSet]:
        index: dict[int, SequenceIdSet] = {}
        capacity = self._db.size()
        for sid, seq in enumerate(self._db.sequences):
            for itemset in seq.itemsets:
                for item in itemset:
                    ids = index.get(item)
                    if ids is None:
                        ids = new_sequence_ids(self.config.use_bit_vectors, capacity)
                        index[item] = ids
                    ids.add(sid)
        return index

    # ---------------------- Step 2: size-2 candidate rules ----------------------
    def _generate_candidate_pairs(self) -> dict[int, dict[int, PairEstimate]]:
        pairs: dict[int, dict[int, PairEstimate]] = {}
        for sid, seq in enumerate(self._db.sequences):
            itemsets = seq.itemsets
            for i, itemset in enumerate(itemsets):
                for x in itemset:
                    for k in range(i + 1, len(itemsets)):
                        for y in itemsets[k]:
                            by_y = pairs.get(x)
                            if by_y is None:
                                by_y = pairs[x] = {}
                            est = by_y.get(y)
                            if est is None:
                                est = by_y[y] = PairEstimate()
                            # once per (i, k, x, y) occurrence: an over-estimate, still admissible
                            est.utility += seq.exact_utility
                            if not est.sequence_ids or est.sequence_ids[-1] != sid:
                                est.sequence_ids.append(sid)

        if self.config.prune_pairs:
            dropped = 0
            for x in list(pairs):
                by_y = pairs[x]
                for y in [y for y, est in by_y.items() if est.utility < self._minutil]:
                    del by_y[y]
                    dropped += 1
            logger.debug("Dropped %d size-2 candidates below minutil", dropped)
        return pairs

    def _mine_pairs(self, candidates: dict[int, dict[int, PairEstimate]]):
        for x, by_y in candidates.items():
            sids_x = self._item_sids[x]
            for y, est in by_y.items():
                table = self._build_pair_table(x, y, est.sequence_ids)
                if table.rows:
                    self._evaluate_pair(x, y, table, sids_x)
            self._observer.sample()

    # ---------------------- Step 3: utility table of X ==> Y ----------------------
    def _build_pair_table(self, x: int, y: int, sids: list[int]) -> UtilityTable:
        table = UtilityTable()
        for sid in sids:
            row = self._build_pair_row(sid, self._db.sequences[sid], x, y)
            if row is not None:
                table.add(row)
        return table

    @staticmethod
    def _build_pair_row(sid: int, seq: SequenceWithUtility, x: int, y: int) -> Optional[UtilityRow]:
        row = UtilityRow(sid)
        pos_x = HUSRM._scan_for_antecedent(seq, x, row)
        if pos_x < 0:
            return None
        pos_y = HUSRM._scan_for_consequent(seq, y, row)
        if pos_y < 0:
            return None
        HUSRM._classify_between(seq, x, y, row, pos_x)
        return row

    @staticmethod
    def _scan_for_antecedent(seq: SequenceWithUtility, x: int, row: UtilityRow) -> int:
        """Left to right until x; sets alpha. Items greater than x seen before it go to lutil."""
        for i, itemset in enumerate(seq.itemsets):
            utils = seq.utilities[i]
            for j, item in enumerate(itemset):
                if item == x:
                    row.utility += utils[j]
                    row.alpha = i
                    return j
                if item > x:
                    row.lutil += utils[j]
        return -1

    @staticmethod
    def _scan_for_consequent(seq: SequenceWithUtility, y: int, row: UtilityRow) -> int:
        """Right to left down to alpha (excluded) until y; sets beta. Items greater than y go to rutil."""
        for i in range(seq.size() - 1, row.alpha, -1):
            itemset = seq.itemsets[i]
            utils = seq.utilities[i]
            for j in range(len(itemset) - 1, -1, -1):
                item = itemset[j]
                if item == y:
                    row.utility += utils[j]
                    row.beta = i
                    return j
                if item > y:
                    row.rutil += utils[j]
        return -1

    @staticmethod
    def _classify_between(seq: SequenceWithUtility, x: int, y: int, row: UtilityRow, pos_x: int):
        # rest of the alpha itemset: larger than x, can only join the antecedent
        row.lutil += sum(seq.utilities[row.alpha][pos_x + 1:])

        for i in range(row.alpha + 1, row.beta):
            utils = seq.utilities[i]
            for j, item in enumerate(seq.itemsets[i]):
                if item > x and item > y:
                    row.lrutil += utils[j]
                elif item > x:
                    row.lutil += utils[j]
                elif item > y:
                    row.rutil += utils[j]
        # items before y in the beta itemset are smaller than y and cannot extend either side

    # ---------------------- Step 4: evaluation ----------------------
    def _evaluate_pair(self, x: int, y: int, table: UtilityTable, sids_x: SequenceIdSet):
        tight = self.config.tight_bounds
        antecedent = (x,)
        consequent = (y,)
        confidence = self._confidence(len(table), sids_x.size(), antecedent)
        left_bound = table.left_bound(tight)
        right_bound = table.right_bound()

        logger.debug("RULE %s ==> %s utility=%s support=%d conf=%s lutil=%s rutil=%s lrutil=%s",
                     x, y, table.total_utility, len(table), confidence,
                     table.total_lutil, table.total_rutil, table.total_lrutil)

        if table.total_utility >= self._minutil and confidence >= self.config.min_confidence:
            self._save_rule(Rule(antecedent, consequent, len(table), confidence, table.total_utility))

        if right_bound >= self._minutil and len(consequent) < self.config.max_consequent_size:
            self._expand_right(table, antecedent, consequent, sids_x)
        if left_bound >= self._minutil and len(antecedent) < self.config.max_antecedent_size:
            self._expand_first_left(table, antecedent, consequent, sids_x)

    @staticmethod
    def _confidence(rule_support: int, antecedent_support: int, antecedent: tuple) -> float:
        if antecedent_support == 0:
            raise MiningInvariantError(f"antecedent {antecedent} has zero support")
        return rule_support / antecedent_support

    def _save_rule(self, rule: Rule):
        self.rule_count += 1
        self._writer.write(rule.to_line())

    # ---------------------- Step 5: right expansion ----------------------
    def _expand_right(self, table: UtilityTable, antecedent: tuple[int, ...],
                      consequent: tuple[int, ...], sids_antecedent: SequenceIdSet):
        largest_ant = antecedent[-1]
        largest_cons = consequent[-1]
        tables: dict[int, UtilityTable] = {}

        for row in table.rows:
            seq = self._db.sequences[row.sid]
            self._right_candidates_after_beta(seq, row, largest_cons, tables)
            self._right_candidates_between(seq, row, largest_ant, largest_cons, tables)

        tight = self.config.tight_bounds
        for item, new_table in tables.items():
            new_consequent = consequent + (item,)
            confidence = self._confidence(len(new_table), sids_antecedent.size(), antecedent)

            if new_table.total_utility >= self._minutil and confidence >= self.config.min_confidence:
                self._save_rule(Rule(antecedent, new_consequent, len(new_table), confidence,
                                     new_table.total_utility))

            if (new_table.left_bound(tight) >= self._minutil
                    and len(antecedent) < self.config.max_antecedent_size):
                self._expand_first_left(new_table, antecedent, new_consequent, sids_antecedent)
            if (new_table.right_bound() >= self._minutil
                    and len(new_consequent) < self.config.max_consequent_size):
                self._expand_right(new_table, antecedent, new_consequent, sids_antecedent)

        self._observer.sample()

    @staticmethod
    def _right_candidates_after_beta(seq: SequenceWithUtility, row: UtilityRow, largest_cons: int,
                                     tables: dict[int, UtilityTable]):
        """Region (a): itemsets from beta to the end; beta does not move."""
        for i in range(row.beta, seq.size()):
            utils = seq.utilities[i]
            for j, item in enumerate(seq.itemsets[i]):
                if item <= largest_cons:
                    continue
                utility = utils[j]
                new_row = UtilityRow(row.sid,
                                     utility=row.utility + utility,
                                     lutil=row.lutil,
                                     rutil=row.rutil - utility,
                                     lrutil=row.lrutil,
                                     alpha=row.alpha,
                                     beta=row.beta)
                # items between the old and the new largest consequent item can no longer be appended
                new_row.rutil -= _sum_in_range(seq, row.beta, seq.size(), largest_cons, item)
                _table_for(tables, item).add(new_row)

    @staticmethod
    def _right_candidates_between(seq: SequenceWithUtility, row: UtilityRow, largest_ant: int,
                                  largest_cons: int, tables: dict[int, UtilityTable]):
        """Region (b): itemsets strictly between alpha and beta; beta moves to the candidate's itemset."""
        left_until_beta_prime = 0.0
        for i in range(row.beta - 1, row.alpha, -1):
            utils = seq.utilities[i]
            for j, item in enumerate(seq.itemsets[i]):
                utility = utils[j]
                if largest_ant < item < largest_cons:
                    # left only; lost for the antecedent once beta moves before it
                    left_until_beta_prime += utility
                elif largest_cons < item < largest_ant:
                    right_smaller, either_larger = _split_between(seq, i, row.beta, largest_ant,
                                                                  largest_cons, item)
                    new_row = UtilityRow(row.sid,
                                         utility=row.utility + utility,
                                         lutil=row.lutil - left_until_beta_prime,
                                         rutil=row.rutil - utility + either_larger - right_smaller,
                                         lrutil=row.lrutil,
                                         alpha=row.alpha,
                                         beta=i)
                    _table_for(tables, item).add(new_row)
                elif item > largest_ant and item > largest_cons:
                    right_smaller, _ = _split_between(seq, i, row.beta, largest_ant, largest_cons, item)
                    new_row = UtilityRow(row.sid,
                                         utility=row.utility + utility,
                                         lutil=row.lutil - left_until_beta_prime,
                                         rutil=row.rutil - right_smaller,
                                         lrutil=row.lrutil - utility,
                                         alpha=row.alpha,
                                         beta=i)
                    _table_for(tables, item).add(new_row)

    # ---------------------- Step 6: left expansion on two-sided tables ----------------------
    def _expand_first_left(self, table: UtilityTable, antecedent: tuple[int, ...],
                           consequent: tuple[int, ...], sids_antecedent: SequenceIdSet):
        largest_ant = antecedent[-1]
        tight = self.config.tight_bounds
        tables: dict[int, LeftUtilityTable] = {}

        for row in table.rows:
            seq = self._db.sequences[row.sid]
            reachable = row.lutil + row.lrutil if tight else row.lutil + row.lrutil + row.rutil
            for i in range(row.beta):
                utils = seq.utilities[i]
                for j, item in enumerate(seq.itemsets[i]):
                    if item <= largest_ant:
                        continue
                    utility = utils[j]
                    lutil = reachable - utility - _sum_in_range(seq, 0, row.beta, largest_ant, item)
                    _left_table_for(tables, item).add(LeftUtilityRow(row.sid, row.utility + utility, lutil))

        beta_by_sid: Optional[dict[int, int]] = None
        for item, new_table in tables.items():
            new_antecedent = antecedent + (item,)
            should_expand = (new_table.left_bound() >= self._minutil
                             and len(new_antecedent) < self.config.max_antecedent_size)
            sids_new = self._emit_left_rule(new_table, new_antecedent, consequent, sids_antecedent,
                                            should_expand)
            if should_expand:
                if beta_by_sid is None:
                    # beta stays fixed under left expansions; computed once for all candidates
                    beta_by_sid = {row.sid: row.beta for row in table.rows}
                self._expand_second_left(new_table, new_antecedent, consequent, sids_new, beta_by_sid)

        self._observer.sample()

    # ---------------------- Step 7: left expansion on left-only tables ----------------------
    def _expand_second_left(self, table: LeftUtilityTable, antecedent: tuple[int, ...],
                            consequent: tuple[int, ...], sids_antecedent: SequenceIdSet,
                            beta_by_sid: dict[int, int]):
        largest_ant = antecedent[-1]
        tables: dict[int, LeftUtilityTable] = {}

        for row in table.rows:
            seq = self._db.sequences[row.sid]
            beta = beta_by_sid[row.sid]
            for i in range(beta):
                utils = seq.utilities[i]
                for j, item in enumerate(seq.itemsets[i]):
                    if item <= largest_ant:
                        continue
                    utility = utils[j]
                    lutil = row.lutil - utility - _sum_in_range(seq, 0, beta, largest_ant, item)
                    _left_table_for(tables, item).add(LeftUtilityRow(row.sid, row.utility + utility, lutil))

        for item, new_table in tables.items():
            new_antecedent = antecedent + (item,)
            should_expand = (new_table.left_bound() >= self._minutil
                             and len(new_antecedent) < self.config.max_antecedent_size)
            sids_new = self._emit_left_rule(new_table, new_antecedent, consequent, sids_antecedent,
                                            should_expand)
            if should_expand:
                self._expand_second_left(new_table, new_antecedent, consequent, sids_new, beta_by_sid)

        self._observer.sample()

    def _emit_left_rule(self, table: LeftUtilityTable, antecedent: tuple[int, ...],
                        consequent: tuple[int, ...], sids_previous: SequenceIdSet,
                        should_expand: bool) -> Optional[SequenceIdSet]:
        """Saves antecedent ==> consequent if it qualifies; returns the new antecedent's sequence ids."""
        is_high_utility = table.total_utility >= self._minutil
        if not (should_expand or is_high_utility):
            return None
        sids_new = sids_previous.intersect(self._item_sids[antecedent[-1]])
        confidence = self._confidence(len(table), sids_new.size(), antecedent)
        if is_high_utility and confidence >= self.config.min_confidence:
            self._save_rule(Rule(antecedent, consequent, len(table), confidence, table.total_utility))
        return sids_new


# ---------------------- scan helpers ----------------------
def _table_for(tables: dict[int, UtilityTable], item: int) -> UtilityTable:
    table = tables.get(item)
    if table is None:
        table = tables[item] = UtilityTable()
    return table


def _left_table_for(tables: dict[int, LeftUtilityTable], item: int) -> LeftUtilityTable:
    table = tables.get(item)
    if table is None:
        table = tables[item] = LeftUtilityTable()
    return table


def _sum_in_range(seq: SequenceWithUtility, start: int, stop: int, low: int, high: int) -> float:
    """Utility of items strictly between low and high in itemsets [start, stop)."""
    total = 0.0
    for z in range(start, stop):
        itemset = seq.itemsets[z]
        utils = seq.utilities[z]
        for w in range(len(itemset) - 1, -1, -1):
            item = itemset[w]
            if item <= low:
                break  # 오름차순이므로 이후는 모두 low 이하
            if item < high:
                total += utils[w]
    return total


def _split_between(seq: SequenceWithUtility, start: int, stop: int, largest_ant: int,
                   largest_cons: int, item: int) -> tuple[float, float]:
    """
    For itemsets [start, stop): utility of right-only items smaller than item, and
    of either-side items larger than item.
    """
    right_smaller = 0.0
    either_larger = 0.0
    for z in range(start, stop):
        utils = seq.utilities[z]
        for w, other in enumerate(seq.itemsets[z]):
            if largest_cons < other < largest_ant and other < item:
                right_smaller += utils[w]
            elif other > largest_ant and other > largest_cons and other > item:
                either_larger += utils[w]
    return right_smaller, either_larger
