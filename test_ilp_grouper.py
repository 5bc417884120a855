import itertools

import pytest

from conftest import make_random_model
from cost_function import FastCostFunction
from ilp_grouper import ExactILPGrouper


def brute_force_optimum(model, group_count):
    cost = FastCostFunction(model)
    return min(cost.evaluate(list(c), group_count)
               for c in itertools.product(range(group_count), repeat=model.chain_count))


def test_ilp_min_model(min_model):
    grouper = ExactILPGrouper(min_model, timeout_seconds=60)
    solution = grouper.solve(2)
    assert solution['status'] == 'optimal'
    assert solution['cost'] == 1
    assert solution['clocking'][0] != solution['clocking'][2]
    assert grouper.calculate_clocking(2) == grouper.last_solution['clocking']


@pytest.mark.parametrize("seed,groups", [(0, 2), (1, 3), (2, 2)])
def test_ilp_matches_exhaustive_search(seed, groups):
    model = make_random_model(chains=6, cells=20, seed=seed)
    solution = ExactILPGrouper(model, timeout_seconds=60).solve(groups)
    assert solution['status'] == 'optimal'
    assert len(solution['clocking']) == 6
    assert solution['clocking'][0] == 0
    assert solution['cost'] == brute_force_optimum(model, groups)


def test_ilp_without_conflicts():
    model = make_random_model(chains=4, region_size=0)
    solution = ExactILPGrouper(model, timeout_seconds=60).solve(2)
    assert solution['status'] == 'optimal'
    assert solution['cost'] == 0
