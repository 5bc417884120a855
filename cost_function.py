#!/usr/bin/env python3

import logging
from typing import List, Optional, Sequence

import numpy as np

from conflict_model import ConflictModel

EXCLUDED = -1


class FastCostFunction:
    """
    Conflict cost of a clocking (chain -> group assignment).

    A group's cost counts, over all scan cells of all chains in the group,
    the aggressor entries that lie in the impact set of another chain of the
    same group. Aggressors inside the chain's own impact set switch whatever
    the grouping is and are not counted. The cost of a clocking is the cost
    of its worst group.

    clocking[i] == EXCLUDED (-1) removes chain i from every group. Callers
    probe marginal contributions by setting an entry to -1, evaluating and
    restoring it; entries must otherwise lie in [0, group_count).
    """

    def __init__(self, model: ConflictModel, logger: Optional[logging.Logger] = None):
        self.model = model
        self.log = logger or logging.getLogger(__name__)

        chains, cells = model.chain_count, model.cell_count
        self._impacts = np.zeros((chains, cells), dtype=bool)
        self._weights = np.zeros((chains, cells), dtype=np.int64)
        for chain in range(chains):
            if model.impact_sets[chain]:
                self._impacts[chain, list(model.impact_sets[chain])] = True
            for region in model.aggressor_regions[chain]:
                for idx in region:
                    self._weights[chain, idx] += 1
        # self impact is not a conflict
        self._weights[self._impacts] = 0
        self._weights_float = self._weights.astype(np.float64)

        self.group_cost: List[int] = []
        self.last_cost = 0
        self._last_worst_group = -1

    @property
    def chain_count(self) -> int:
        return self.model.chain_count

    @property
    def weights(self) -> np.ndarray:
        """Aggressor entries per (chain, cell), zero inside the chain's own impact set"""
        return self._weights

    @property
    def impacts(self) -> np.ndarray:
        return self._impacts

    def get_last_worst_group(self) -> int:
        """Group with the highest cost in the last evaluation (lowest id on ties)"""
        return self._last_worst_group

    def _group_costs(self, clocking: Sequence[int], group_count: int, weights: np.ndarray) -> np.ndarray:
        if group_count < 1:
            raise ValueError(f"group_count must be >= 1, got {group_count}")
        assignment = np.asarray(clocking, dtype=np.int64)
        if assignment.shape != (self.chain_count,):
            raise ValueError(f"clocking has {assignment.size} entries for {self.chain_count} chains")

        costs = np.zeros(group_count, dtype=weights.dtype)
        for g in range(group_count):
            members = assignment == g
            if members.sum() < 2:
                continue
            covered = self._impacts[members].any(axis=0).astype(weights.dtype)
            costs[g] = weights[members].sum(axis=0) @ covered
        return costs

    def _record(self, costs: np.ndarray):
        self._last_worst_group = int(np.argmax(costs))
        self.last_cost = costs[self._last_worst_group].item()
        return self.last_cost

    def evaluate(self, clocking: Sequence[int], group_count: int) -> int:
        costs = self._group_costs(clocking, group_count, self._weights)
        self.group_cost = [int(c) for c in costs]
        return int(self._record(costs))

    def evaluate_float(self, clocking: Sequence[int], group_count: int) -> float:
        costs = self._group_costs(clocking, group_count, self._weights_float)
        self.group_cost = [int(c) for c in costs]
        return float(self._record(costs))

    def pair_costs(self) -> np.ndarray:
        """
        pair_cost[i][j]: cost of chains i and j alone sharing a group.

        Same value as evaluating a clocking with only i and j in group 0,
        computed for all pairs at once. The diagonal is zero.
        """
        cross = self._weights @ self._impacts.T.astype(np.int64)
        pair = cross + cross.T
        np.fill_diagonal(pair, 0)
        return pair
