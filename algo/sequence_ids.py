from abc import ABC, abstractmethod
from bisect import bisect_left
from typing import Iterator


class SequenceIdSet(ABC):
    """Set of sequence ids used for support counting."""

    @abstractmethod
    def add(self, sid: int) -> None:
        ...

    @abstractmethod
    def size(self) -> int:
        ...

    @abstractmethod
    def intersect(self, other: "SequenceIdSet") -> "SequenceIdSet":
        ...

    @abstractmethod
    def __iter__(self) -> Iterator[int]:
        ...

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)})"


class BitVectorSequenceIds(SequenceIdSet):
    __slots__ = ("capacity", "_bits", "_size")

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._bits = 0
        self._size = -1  # cached popcount, -1 = stale

    def add(self, sid: int) -> None:
        if sid < 0 or sid >= self.capacity:
            raise IndexError(f"sequence id {sid} outside [0, {self.capacity})")
        self._bits |= 1 << sid
        self._size = -1

    def size(self) -> int:
        if self._size == -1:
            self._size = bin(self._bits).count("1")
        return self._size

    def intersect(self, other: SequenceIdSet) -> "BitVectorSequenceIds":
        if not isinstance(other, BitVectorSequenceIds):
            raise TypeError(f"cannot intersect {type(self).__name__} with {type(other).__name__}")
        result = BitVectorSequenceIds(min(self.capacity, other.capacity))
        result._bits = self._bits & other._bits
        return result

    def __iter__(self) -> Iterator[int]:
        bits = self._bits
        sid = 0
        while bits:
            if bits & 1:
                yield sid
            bits >>= 1
            sid += 1


class SortedListSequenceIds(SequenceIdSet):
    __slots__ = ("_ids",)

    def __init__(self):
        self._ids: list[int] = []

    def add(self, sid: int) -> None:
        # ids arrive in increasing order while the index is built
        if self._ids:
            last = self._ids[-1]
            if sid == last:
                return
            if sid < last:
                raise ValueError(f"sequence id {sid} added after {last}")
        self._ids.append(sid)

    def size(self) -> int:
        return len(self._ids)

    def intersect(self, other: SequenceIdSet) -> "SortedListSequenceIds":
        if not isinstance(other, SortedListSequenceIds):
            raise TypeError(f"cannot intersect {type(self).__name__} with {type(other).__name__}")
        result = SortedListSequenceIds()
        others = other._ids
        n = len(others)
        for sid in self._ids:
            pos = bisect_left(others, sid)
            if pos < n and others[pos] == sid:
                result._ids.append(sid)
        return result

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)


def new_sequence_ids(use_bit_vectors: bool, capacity: int) -> SequenceIdSet:
    if use_bit_vectors:
        return BitVectorSequenceIds(capacity)
    return SortedListSequenceIds()
