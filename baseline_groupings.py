#!/usr/bin/env python3

import random
from typing import List

# ================== BASELINE ENUMERATORS ==================

class SeqGrouping:
    """
    All group_count ** chain_count clockings in counting order.

    Chain 0 is the fastest changing digit: [0,0,0], [1,0,0], ... Iterating
    again (iter()) starts over from the all-zero clocking.
    """

    def __init__(self, chain_count: int, group_count: int):
        if group_count < 1:
            raise ValueError(f"group_count must be >= 1, got {group_count}")
        self.chain_count = chain_count
        self.group_count = group_count
        self.reset()

    def reset(self):
        self._current = [0] * self.chain_count
        self._exhausted = False

    def total(self) -> int:
        return self.group_count ** self.chain_count

    def skip(self, count: int) -> int:
        """Advance count clockings; returns how many could actually be skipped"""
        skipped = 0
        while skipped < count and self.has_next():
            self.next()
            skipped += 1
        return skipped

    def has_next(self) -> bool:
        return not self._exhausted

    def next(self) -> List[int]:
        if self._exhausted:
            raise StopIteration
        clocking = list(self._current)
        for pos in range(self.chain_count):
            self._current[pos] += 1
            if self._current[pos] < self.group_count:
                break
            self._current[pos] = 0
        else:
            # wrapped around
            self._exhausted = True
        return clocking

    def __iter__(self):
        self.reset()
        return self

    def __next__(self) -> List[int]:
        return self.next()


class RandomGrouping:
    """Endless uniformly random clockings, reproducible from start_seed"""

    def __init__(self, chain_count: int, group_count: int, start_seed: int = 0):
        if group_count < 1:
            raise ValueError(f"group_count must be >= 1, got {group_count}")
        self.chain_count = chain_count
        self.group_count = group_count
        self.start_seed = start_seed
        self.reset()

    def reset(self):
        self.rng = random.Random(self.start_seed)

    def has_next(self) -> bool:
        return True

    def next(self) -> List[int]:
        return [self.rng.randrange(self.group_count) for _ in range(self.chain_count)]

    def __iter__(self):
        self.reset()
        return self

    def __next__(self) -> List[int]:
        return self.next()
