#!/usr/bin/env python3

from typing import List, Optional

import numpy as np

from config import BGC_CONFIG
from cost_function import EXCLUDED
from graph_colorizer import GraphColorizer
from grouper_base import ScanChainGrouper

# ================== BOUNDED GRAPH COLORING ==================

class BoundedGraphColoringGrouper(ScanChainGrouper):
    """
    Grouping by constraint-graph coloring.

    1. Bounds: all chains in one group (upper), every chain alone (lower).
    2. Binary search for the smallest pair-cost threshold whose conflict
       graph is still colorable with group_count colors. This raises the
       lower bound as far as pairwise reasoning allows.
    3. Refinement: pairs under-estimate groups of three or more chains, so
       while the coloring's true cost is above the lower bound, the chains of
       its worst group that explain that cost become a hyperedge and the
       graph is recolored. Stops when recoloring fails, the lower bound is
       reached or max_refinements hyperedges have been added.
    """

    name = 'bgc'

    def __init__(self, model, cost=None, seed=None, logger=None,
                 max_refinements: int = BGC_CONFIG['max_refinements']):
        super().__init__(model, cost=cost, seed=seed, logger=logger)
        self.max_refinements = max_refinements
        self.lower_bound: Optional[int] = None
        self.upper_bound: Optional[int] = None
        self.best_known_history: List[int] = []

    def calculate_clocking(self, group_count: int) -> List[int]:
        chains = self.chain_count
        clocking = [0] * chains

        upper_bound = self.cost.evaluate(clocking, 1)
        self.log.info("UpperBound (by c=1) %d", upper_bound)

        clocking = list(range(chains))
        lower_bound = self.cost.evaluate(clocking, max(chains, 1))
        self.log.info("LowerBound (by c=inf) %d", lower_bound)
        self.upper_bound = upper_bound

        pair_cost = self.calculate_pair_cost()

        lower_bound = max(lower_bound, self.search_lower_bound(lower_bound, upper_bound, group_count,
                                                               pair_cost, clocking))
        self.lower_bound = lower_bound
        self.log.info("LowerBound (after pair coloring) %d", lower_bound)

        g = self.make_graph_colorizer(group_count, pair_cost, lower_bound)
        clocking = g.colorize()
        best_known = self.cost.evaluate(clocking, group_count)
        self.best_known_history = [best_known]
        self.log.info("BestKnownSolution (after pair coloring) %d", best_known)

        candidate = list(clocking)
        refinements = 0
        while best_known > lower_bound:
            if refinements >= self.max_refinements:
                self.log.warning("Stopping refinement after %d hyperedges", refinements)
                break
            refinements += 1

            worst_group = self.cost.get_last_worst_group()
            edge = self.make_edge_for_group(worst_group, candidate)
            g.add_hyperedge(edge)
            candidate = g.colorize()
            if candidate is None:
                self.log.info("No coloring left after %d hyperedges (%d constraints)",
                              refinements, g.count_edges())
                break

            new_cost = self.cost.evaluate(candidate, group_count)
            if new_cost < best_known:
                clocking = list(candidate)
                best_known = new_cost
                self.log.info("BestKnownSolution %d", best_known)
            self.best_known_history.append(best_known)

        if best_known == lower_bound:
            self.log.info("Returning best possible solution.")
        self.lower_bound = lower_bound
        return clocking

    def calculate_pair_cost(self) -> np.ndarray:
        """Symmetric matrix of the cost of every chain pair alone in one group"""
        self.log.debug("PairCost calculation for %d chains ...", self.chain_count)
        return self.cost.pair_costs()

    def search_lower_bound(self, lb: int, ub: int, group_count: int, pair_cost: np.ndarray,
                           solution: List[int]) -> int:
        """
        Smallest threshold t in [lb, ub] such that separating every pair
        costing more than t is possible with group_count colors. solution
        receives the last successful coloring.
        """
        while True:
            middle = (ub - lb) // 2 + lb
            g = self.make_graph_colorizer(group_count, pair_cost, middle)
            s = g.colorize()
            if s is not None:
                solution[:] = s
                self.log.info("Solution for %d (%d constraints on %d chains)", middle, g.count_edges(), g.size())
                if middle > lb:
                    ub = middle
                    continue
                return middle
            self.log.info("Conflict for %d (%d constraints on %d chains)", middle, g.count_edges(), g.size())
            if middle < ub - 1:
                lb = middle
                continue
            return middle + 1

    def make_graph_colorizer(self, group_count: int, pair_cost: np.ndarray, threshold: int) -> GraphColorizer:
        g = GraphColorizer(self.chain_count, group_count, logger=self.log)
        rows, cols = np.nonzero(np.triu(pair_cost > threshold, k=1))
        for i, j in zip(rows.tolist(), cols.tolist()):
            g.add_edge(i, j)
        return g

    def make_edge_for_group(self, group: int, clocking: List[int]) -> List[int]:
        """
        Chains of one group whose joint presence explains that group's cost:
        starting from the whole group, a chain is dropped whenever dropping
        it leaves the cost unchanged.
        """
        probe = [0 if c == group else EXCLUDED for c in clocking]
        chain_count = probe.count(0)

        base = self.cost.evaluate(probe, 1)
        for chain in range(len(probe)):
            if probe[chain] == EXCLUDED:
                continue
            probe[chain] = EXCLUDED
            if self.cost.evaluate(probe, 1) != base:
                probe[chain] = 0

        edge = [chain for chain, c in enumerate(probe) if c == 0]
        self.log.info("Last worst group: %d containing %d chains. adding constraint of size %d",
                      group, chain_count, len(edge))
        return edge
