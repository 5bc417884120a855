#!/usr/bin/env python3
"""
Scan chain grouping framework: problem definition and strategy selection.

    problem = ScanChainGroupingProblem('s38417_footprints.txt')
    solution = problem.solve(method='bgc', group_count=4)
"""

import logging
import time as time_module
from typing import Any, Dict, Iterator, Optional, Sequence, Union

from baseline_groupings import RandomGrouping, SeqGrouping
from bgc_grouper import BoundedGraphColoringGrouper
from config import DEFAULT_GROUP_COUNT, DEFAULT_GROUPING_METHOD, get_config_for_method
from conflict_model import ConflictModel, load_conflict_model
from cost_function import FastCostFunction
from ga_grouper import GeneticGrouper
from grouper_base import ScanChainGrouper
from grouping_utils import format_clocking, generate_solution_file
from ilp_grouper import ExactILPGrouper
from rls_grouper import RandomLocalSearchGrouper

logger = logging.getLogger(__name__)

# ================== STRATEGY REGISTRY ==================

GROUPERS = {
    'rls': RandomLocalSearchGrouper,
    'bgc': BoundedGraphColoringGrouper,
    'ga': GeneticGrouper,
    'ilp': ExactILPGrouper
}

BASELINES = ('seq', 'random')


def resolve_method(method: str) -> str:
    """Canonical method name; 'se...' selects seq and 'ra...' random"""
    name = method.lower()
    if name in GROUPERS or name in BASELINES:
        return name
    if name.startswith('se'):
        return 'seq'
    if name.startswith('ra'):
        return 'random'
    raise ValueError(f"unknown grouping method {method}")


def make_grouper(method: str, model: ConflictModel, cost: Optional[FastCostFunction] = None,
                 logger: Optional[logging.Logger] = None, **params) -> ScanChainGrouper:
    """Grouper for method with its config defaults, overridden by params"""
    name = resolve_method(method)
    if name not in GROUPERS:
        raise ValueError(f"{method} is a baseline enumeration, not a grouping strategy")
    kwargs = get_config_for_method(name)
    kwargs.update(params)
    return GROUPERS[name](model, cost=cost, logger=logger, **kwargs)


def make_baseline(method: str, chain_count: int, group_count: int, start: int = 0,
                  log: Optional[logging.Logger] = None) -> Union[SeqGrouping, RandomGrouping]:
    """Baseline enumerator; start is the index of the first clocking (seq) or the seed (random)"""
    log = log or logger
    name = resolve_method(method)
    if name == 'random':
        log.info("GroupingMethod Random")
        log.info("GroupingStart %d", start)
        return RandomGrouping(chain_count, group_count, start)
    if name == 'seq':
        log.info("GroupingMethod Sequential")
        log.info("GroupingStart %d", start)
        grouping = SeqGrouping(chain_count, group_count)
        if grouping.skip(start) < start:
            log.info("startSeed out of bound")
            grouping.reset()
        return grouping
    raise ValueError(f"{method} is not a baseline enumeration")

# ================== PROBLEM DEFINITION ==================

class ScanChainGroupingProblem:
    """
    A loaded conflict model plus the shared cost function
    """

    def __init__(self, data_file: Optional[str] = None, model: Optional[ConflictModel] = None,
                 logger: Optional[logging.Logger] = None):
        if model is None and data_file is None:
            raise ValueError("either data_file or model is required")
        self.data_file = data_file or 'model'
        self.log = logger or logging.getLogger(__name__)
        self.model = model if model is not None else load_conflict_model(data_file)
        self.cost = FastCostFunction(self.model, logger=self.log)

    @property
    def chain_count(self) -> int:
        return self.model.chain_count

    def get_problem_stats(self) -> Dict[str, int]:
        return {
            'num_chains': self.model.chain_count,
            'num_scan_cells': sum(self.model.chain_length(c) for c in range(self.model.chain_count)),
            'num_cells': self.model.cell_count,
            'max_chain_length': max((self.model.chain_length(c) for c in range(self.model.chain_count)), default=0)
        }

    def evaluate(self, clocking: Sequence[int], group_count: int) -> Dict[str, Any]:
        cost = self.cost.evaluate(clocking, group_count)
        return {
            'clocking': list(clocking),
            'group_count': group_count,
            'cost': cost,
            'group_cost': list(self.cost.group_cost),
            'worst_group': self.cost.get_last_worst_group()
        }

    def report(self, clocking: Sequence[int], group_count: int, name: str, status: str,
               solve_time: float = 0.0, **extras) -> Dict[str, Any]:
        """Evaluate a clocking and log it as the result of one grouping case"""
        solution = self.evaluate(clocking, group_count)
        solution.update(extras)
        solution['status'] = status
        solution['algorithm'] = name
        solution['solve_time'] = solve_time

        self.log.info("CostDifference %d", solution['cost'])
        self.log.info("GroupCost %s Worst group %d", format_clocking(solution['group_cost']),
                      solution['worst_group'])
        self.log.info("Clocking %s", format_clocking(clocking))
        return solution

    def solve_cases(self, method: str = DEFAULT_GROUPING_METHOD, group_count: int = DEFAULT_GROUP_COUNT,
                    cases: int = 1, start: int = 0, **params) -> Iterator[Dict[str, Any]]:
        """
        Yield one evaluated solution per grouping case.

        Baselines enumerate cases clockings from start (seq wraps around
        when it runs out). Optimizing strategies produce a single case; a
        failing strategy yields one 'infeasible' dict and stops.
        """
        chains = self.chain_count
        name = resolve_method(method)
        if group_count < 1:
            raise ValueError(f"group_count must be >= 1, got {group_count}")

        if group_count == 1 or group_count > chains:
            if group_count == 1:
                self.log.info("AvailableGroupCount = 1")
                clocking = [0] * chains
            else:
                self.log.info("AvailableGroupCount Larger Than ChainCount, One Chain Per Group")
                group_count = max(chains, 1)
                clocking = list(range(chains))
            for case_id in range(cases):
                self.log.info("GroupingCase %d", case_id)
                yield self.report(clocking, group_count, name, 'trivial')
            return

        if name in BASELINES:
            grouping = make_baseline(name, chains, group_count, start, self.log)
            for case_id in range(cases):
                self.log.info("GroupingCase %d", case_id)
                case_start = time_module.time()
                if not grouping.has_next():
                    self.log.error("prt_start+caseId out of bounds, starting over")
                    grouping.reset()
                clocking = grouping.next()
                yield self.report(clocking, group_count, name, 'feasible', time_module.time() - case_start)
            return

        if cases > 1:
            self.log.warning("prt_cases is ignored, only a single grouping is evaluated.")
        if start > 0:
            self.log.warning("prt_start is ignored, only a single grouping is evaluated")
        self.log.info("GroupingMethod %s", name.upper())
        grouper = make_grouper(name, self.model, cost=self.cost, logger=self.log, **params)

        self.log.info("GroupingCase 0")
        self.log.info("ScanChainGrouping start with %d available groups... ", group_count)
        solve_start = time_module.time()
        try:
            clocking = grouper.calculate_clocking(group_count)
        except RuntimeError as e:
            self.log.error("%s grouping failed: %s", name, e)
            yield {
                'status': 'infeasible',
                'algorithm': name,
                'solve_time': time_module.time() - solve_start,
                'note': str(e)
            }
            return
        self.log.info("ScanChainGrouping finished.")
        solve_time = time_module.time() - solve_start

        status = 'feasible'
        extras: Dict[str, Any] = {}
        if isinstance(grouper, ExactILPGrouper):
            status = grouper.last_solution['status']
        if isinstance(grouper, BoundedGraphColoringGrouper):
            extras = {'lower_bound': grouper.lower_bound, 'upper_bound': grouper.upper_bound}
        if isinstance(grouper, GeneticGrouper):
            extras = {'generations': len(grouper.generation_best) - 1}
        yield self.report(clocking, group_count, name, status, solve_time, **extras)

    def solve(self, method: str = DEFAULT_GROUPING_METHOD, group_count: int = DEFAULT_GROUP_COUNT,
              save_solution_file: bool = False, solution_file_suffix: str = "", out_dir: Optional[str] = None,
              start: int = 0, **params) -> Dict[str, Any]:
        """
        Group the chains with one method.

        Accepted params are the keyword arguments of the selected grouper
        (see config.py). Baselines return their first clocking from start.
        """
        solution = next(self.solve_cases(method, group_count, start=start, **params))
        if save_solution_file and solution['status'] != 'infeasible':
            solution['solution_file'] = generate_solution_file(solution, solution['algorithm'], self.data_file,
                                                               suffix=solution_file_suffix, out_dir=out_dir)
        return solution
