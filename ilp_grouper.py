#!/usr/bin/env python3

import time as time_module
from typing import Any, Dict, List

import numpy as np
from pulp import (LpMinimize, LpProblem, LpStatus, LpStatusNotSolved, LpStatusOptimal, LpVariable,
                  PULP_CBC_CMD, lpSum)

from config import ILP_CONFIG
from grouper_base import ScanChainGrouper

# ================== EXACT MIN-MAX GROUPING (PuLP) ==================

class ExactILPGrouper(ScanChainGrouper):
    """
    Exact grouping solved in-process with CBC.

    Minimizes the worst group cost of FastCostFunction directly:
      x[i,g]      chain i is in group g (one group per chain)
      u[c,g]      cell c is impacted by some chain of group g
      w[i,c,g]    chain i sits in group g while c is impacted there
      T           >= cost of every group
    """

    name = 'ilp'

    def __init__(self, model, cost=None, seed=None, logger=None,
                 timeout_seconds: int = ILP_CONFIG['timeout_seconds'],
                 msg: bool = ILP_CONFIG['msg']):
        super().__init__(model, cost=cost, seed=seed, logger=logger)
        self.timeout_seconds = timeout_seconds
        self.msg = msg
        self.last_solution: Dict[str, Any] = {}

    def calculate_clocking(self, group_count: int) -> List[int]:
        solution = self.solve(group_count)
        if solution['status'] == 'infeasible':
            raise RuntimeError(solution.get('note', 'ILP found no grouping'))
        return solution['clocking']

    def solve(self, group_count: int, timeout=None) -> Dict[str, Any]:
        timeout = self.timeout_seconds if timeout is None else timeout
        chains = self.chain_count
        groups = range(group_count)

        self.log.info("=== ILP GROUPER ===")
        weights = self.cost.weights
        impacts = self.cost.impacts

        # only cells that some chain impacts and some other chain aggresses matter
        relevant = np.nonzero(impacts.any(axis=0) & (weights > 0).any(axis=0))[0].tolist()
        impacted_by = {c: np.nonzero(impacts[:, c])[0].tolist() for c in relevant}
        weighted = [(i, c, int(weights[i, c])) for i in range(chains) for c in relevant if weights[i, c] > 0]

        prob = LpProblem("ScanChainGrouping", LpMinimize)

        # DECISION VARIABLES
        x = {}
        for i in range(chains):
            for g in groups:
                x[i, g] = LpVariable(f"x_{i}_{g}", cat='Binary')

        u = {}
        for c in relevant:
            for g in groups:
                u[c, g] = LpVariable(f"u_{c}_{g}", lowBound=0, upBound=1)

        w = {}
        for i, c, _ in weighted:
            for g in groups:
                w[i, c, g] = LpVariable(f"w_{i}_{c}_{g}", lowBound=0, upBound=1)

        worst = LpVariable("worst_group_cost", lowBound=0)
        prob += worst

        # CONSTRAINTS
        for i in range(chains):
            prob += lpSum(x[i, g] for g in groups) == 1

        for c in relevant:
            for g in groups:
                for j in impacted_by[c]:
                    prob += u[c, g] >= x[j, g]

        for i, c, _ in weighted:
            for g in groups:
                prob += w[i, c, g] >= x[i, g] + u[c, g] - 1

        for g in groups:
            prob += worst >= lpSum(weight * w[i, c, g] for i, c, weight in weighted)

        # group labels are interchangeable
        if chains > 0:
            prob += x[0, 0] == 1

        self.log.info("ILP formulation: %d chains, %d groups, %d cells, %d weighted pairs. Solving with timeout=%ss...",
                      chains, group_count, len(relevant), len(weighted), timeout)

        solve_start = time_module.time()
        solver = PULP_CBC_CMD(timeLimit=timeout, msg=self.msg)
        status = prob.solve(solver)
        solve_time = time_module.time() - solve_start

        if status == LpStatusOptimal or status == LpStatusNotSolved:
            clocking = []
            for i in range(chains):
                for g in groups:
                    if x[i, g].value() is not None and x[i, g].value() > 0.5:
                        clocking.append(g)
                        break

            if len(clocking) == chains:
                # CBC reports optimal even when stopped by the time limit
                if status == LpStatusOptimal and solve_time < timeout * 0.95:
                    solution_status = 'optimal'
                else:
                    solution_status = 'timeout_feasible'

                self.last_solution = {
                    'status': solution_status,
                    'clocking': clocking,
                    'cost': self.cost.evaluate(clocking, group_count),
                    'solve_time': solve_time
                }
                self.log.info("ILP %s, worst group cost %d", solution_status, self.last_solution['cost'])
                return self.last_solution

            self.last_solution = {
                'status': 'infeasible',
                'solve_time': solve_time,
                'note': f'Incomplete solution extraction: only {len(clocking)}/{chains} chains assigned'
            }
            return self.last_solution

        status_name = LpStatus.get(status, f'Unknown({status})')
        self.last_solution = {
            'status': 'infeasible',
            'solve_time': solve_time,
            'note': f'ILP failed with status {status_name}'
        }
        return self.last_solution
