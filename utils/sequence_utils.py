import logging
import re
from typing import Iterable, Optional, Union

logger = logging.getLogger(__name__)

COMMENT_PREFIXES = ("#", "%", "@")

# ASCII 숫자만 허용 (int()/float()가 받는 "1_0", 전각 숫자 등은 거부)
ITEM_RE = re.compile(r"[0-9]+")
NUMBER_RE = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")


class CorpusParseError(ValueError):
    """Raised when a corpus line cannot be parsed. No partial database is kept."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class SequenceWithUtility:
    __slots__ = ("itemsets", "utilities", "exact_utility")

    def __init__(self):
        self.itemsets: list[list[int]] = []
        self.utilities: list[list[float]] = []
        self.exact_utility = 0.0

    def add_itemset(self, items: list[int], utilities: list[float]):
        # 아이템 오름차순 유지 (가지치기 비교가 이 순서에 의존)
        pairs = sorted(zip(items, utilities))
        self.itemsets.append([item for item, _ in pairs])
        self.utilities.append([utility for _, utility in pairs])

    def size(self) -> int:
        return len(self.itemsets)

    def __str__(self) -> str:
        parts = []
        for items, utils in zip(self.itemsets, self.utilities):
            inner = " ".join(f"{item}[{utility:g}]" for item, utility in zip(items, utils))
            parts.append(f"({inner})")
        return "".join(parts) + f"   sequenceUtility: {self.exact_utility:g}"


class SequenceDatabase:
    def __init__(self):
        self.sequences: list[SequenceWithUtility] = []

    def load_file(self, path: str, max_sequences: Optional[int] = None):
        """
        SPMF utility format, one sequence per line:
            1[2] 4[1] -1 3[5] -1 -2 S:8
        - item[utility]: item occurrence, -1: end of itemset, -2: end of sequence
        - S:<value> (or SUtility:<value>): declared sequence utility
        - lines starting with #, % or @ are skipped
        """
        with open(path, "r", encoding="utf-8") as f:
            self.load_lines(f, max_sequences)

    def load_lines(self, lines: Iterable[str], max_sequences: Optional[int] = None):
        parsed: list[SequenceWithUtility] = []
        for line_number, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line or line[0] in COMMENT_PREFIXES:
                continue
            sequence = parse_sequence_line(line, line_number)
            if sequence is None:
                continue
            parsed.append(sequence)
            if max_sequences is not None and len(parsed) >= max_sequences:
                break
        # 파싱이 모두 성공한 경우에만 반영
        self.sequences.extend(parsed)
        logger.info("Loaded %d sequences", len(parsed))

    def size(self) -> int:
        return len(self.sequences)

    def __len__(self) -> int:
        return len(self.sequences)

    def get(self, idx: int) -> SequenceWithUtility:
        return self.sequences[idx]

    def stats(self) -> dict:
        count = len(self.sequences)
        total = sum(seq.size() for seq in self.sequences)
        return {
            "sequence_count": count,
            "mean_size": total / count if count else 0.0,
        }

    def __str__(self) -> str:
        return "".join(f"{sid}:  {seq}\n" for sid, seq in enumerate(self.sequences))


def parse_sequence_line(line: str, line_number: Optional[int] = None) -> Optional[SequenceWithUtility]:
    """Returns None for a line that never reaches -2; such a sequence is not kept."""
    sequence = SequenceWithUtility()
    seen: set[int] = set()
    repeated_utility = 0.0
    declared: Optional[float] = None
    kept_utility = 0.0
    items: list[int] = []
    utils: list[float] = []
    terminated = False

    for tok in line.split():
        if tok == "-2":
            terminated = True
            continue
        if tok == "-1":
            if items:
                sequence.add_itemset(items, utils)
            items, utils = [], []
            continue
        if tok[0] == "S":
            declared = _parse_declared_utility(tok, line_number)
            continue
        if terminated:
            raise CorpusParseError(f"token {tok!r} after end of sequence", line_number)

        item, utility = _parse_item_token(tok, line_number)
        if item in seen:
            # 같은 시퀀스에서 반복된 아이템: 효용만 보정값에 누적
            repeated_utility += utility
        else:
            seen.add(item)
            items.append(item)
            utils.append(utility)
            kept_utility += utility

    if not terminated:
        logger.warning("Line %s: sequence not terminated by -2, skipped", line_number)
        return None
    if items:
        sequence.add_itemset(items, utils)

    if declared is None:
        sequence.exact_utility = kept_utility
    else:
        sequence.exact_utility = declared - repeated_utility
    return sequence


def _parse_item_token(tok: str, line_number: Optional[int]) -> tuple[int, float]:
    bracket = tok.find("[")
    if bracket <= 0 or not tok.endswith("]"):
        raise CorpusParseError(f"expected item[utility], got {tok!r}", line_number)
    item_text = tok[:bracket]
    utility_text = tok[bracket + 1:-1]
    if not ITEM_RE.fullmatch(item_text) or not NUMBER_RE.fullmatch(utility_text):
        raise CorpusParseError(f"malformed item token {tok!r}", line_number)
    item = int(item_text)
    utility = float(utility_text)
    if item <= 0:
        raise CorpusParseError(f"item ids must be positive, got {item}", line_number)
    return item, utility


def _parse_declared_utility(tok: str, line_number: Optional[int]) -> float:
    _, sep, value = tok.partition(":")
    if not sep or not NUMBER_RE.fullmatch(value):
        raise CorpusParseError(f"malformed sequence utility {tok!r}", line_number)
    return float(value)


def load_database(source: Union[str, Iterable[str]], max_sequences: Optional[int] = None) -> SequenceDatabase:
    """Build a database from a path or from an iterable of lines (e.g. an open stream)."""
    db = SequenceDatabase()
    if isinstance(source, str):
        db.load_file(source, max_sequences)
    else:
        db.load_lines(source, max_sequences)
    return db
