#!/usr/bin/env python3

from typing import List

from config import RLS_CONFIG
from cost_function import EXCLUDED
from grouper_base import ScanChainGrouper

# ================== RANDOM RESTARTS + LOCAL IMPROVEMENT ==================

class RandomLocalSearchGrouper(ScanChainGrouper):
    """
    Baseline strategy: best of uniformly random clockings, then a few rounds
    of moving the worst chain to its best group.
    """

    name = 'rls'

    def __init__(self, model, cost=None, seed=None, logger=None,
                 random_timeout: int = RLS_CONFIG['random_timeout'],
                 tweak_rounds: int = RLS_CONFIG['tweak_rounds']):
        super().__init__(model, cost=cost, seed=RLS_CONFIG['seed'] if seed is None else seed, logger=logger)
        self.random_timeout = random_timeout
        self.tweak_rounds = tweak_rounds

    def calculate_clocking(self, group_count: int) -> List[int]:
        clocking = self.random_search(group_count)
        self.log.info("Best after random search: %s", self.cost.evaluate_float(clocking, group_count))

        for _ in range(self.tweak_rounds):
            chain = self.find_worst_chain(clocking, group_count)
            if chain < 0:
                break
            if self.tweak_chain(clocking, group_count, chain) == 0:
                break

        self.log.info("Cost after optimizing: %s", self.cost.evaluate_float(clocking, group_count))
        return clocking

    def random_search(self, group_count: int) -> List[int]:
        """Sample until random_timeout consecutive tries bring no improvement"""
        clocking = [0] * self.chain_count
        best_cost = float('inf')
        tries = 0
        while tries < self.random_timeout:
            tries += 1
            candidate = [self.rng.randrange(group_count) for _ in range(self.chain_count)]
            this_cost = self.cost.evaluate_float(candidate, group_count)
            if this_cost < best_cost:
                clocking = candidate
                best_cost = this_cost
                self.log.info("Better guess %s found after %d tries.", best_cost, tries)
                tries = 0
        return clocking

    def find_worst_chain(self, clocking: List[int], group_count: int) -> int:
        """Chain whose removal lowers the cost the most, -1 if none lowers it"""
        worst_chain = -1
        highest_diff = 0.0
        base_cost = self.cost.evaluate_float(clocking, group_count)
        for chain in range(len(clocking)):
            group = clocking[chain]
            clocking[chain] = EXCLUDED
            diff = base_cost - self.cost.evaluate_float(clocking, group_count)
            clocking[chain] = group
            if diff > highest_diff:
                worst_chain = chain
                highest_diff = diff
        self.log.debug("Worst chain %d with diff %s", worst_chain, highest_diff)
        return worst_chain

    def tweak_chain(self, clocking: List[int], group_count: int, chain: int) -> float:
        """Move chain to the group with the largest cost drop; returns the drop"""
        old_group = clocking[chain]
        best_group = old_group
        highest_diff = 0.0
        base_cost = self.cost.evaluate_float(clocking, group_count)
        for group in range(group_count):
            clocking[chain] = group
            diff = base_cost - self.cost.evaluate_float(clocking, group_count)
            if diff > highest_diff:
                best_group = group
                highest_diff = diff
        clocking[chain] = best_group
        if best_group == old_group:
            self.log.info("Could not find a better group for chain %d", chain)
        return highest_diff
