import random

import numpy as np
import pytest

from conflict_model import ConflictModel
from conftest import make_random_model
from cost_function import EXCLUDED, FastCostFunction


def test_min_model_group_costs(min_model):
    cost = FastCostFunction(min_model)

    assert cost.evaluate([0, 1, 0], 2) == 3
    assert cost.group_cost == [3, 0]
    assert cost.get_last_worst_group() == 0

    assert cost.evaluate([0, 1, 1], 2) == 1
    assert cost.group_cost == [0, 1]
    assert cost.get_last_worst_group() == 1

    assert cost.evaluate([0, 0, 0], 1) == 4


def test_separating_mutual_aggressors_is_cheaper(min_model):
    # chain 0 and chain 2 aggress each other's impact set
    cost = FastCostFunction(min_model)
    apart = cost.evaluate([0, 1, 1], 2)
    together = cost.evaluate([0, 1, 0], 2)
    assert apart < together


def test_evaluate_is_deterministic(random_model):
    cost = FastCostFunction(random_model)
    rng = random.Random(3)
    for _ in range(20):
        clocking = [rng.randrange(3) for _ in range(random_model.chain_count)]
        first = cost.evaluate(clocking, 3)
        first_groups = list(cost.group_cost)
        assert cost.evaluate(clocking, 3) == first
        assert cost.group_cost == first_groups


def test_all_excluded_costs_nothing(random_model):
    cost = FastCostFunction(random_model)
    assert cost.evaluate([EXCLUDED] * random_model.chain_count, 4) == 0
    assert cost.group_cost == [0, 0, 0, 0]


def test_excluded_chain_is_removed_from_every_group(random_model):
    cost = FastCostFunction(random_model)
    rng = random.Random(5)
    for removed in range(random_model.chain_count):
        clocking = [rng.randrange(2) for _ in range(random_model.chain_count)]
        clocking[removed] = EXCLUDED

        keep = [c for c in range(random_model.chain_count) if c != removed]
        smaller = ConflictModel.from_sets(
            [random_model.impact_sets[c] for c in keep],
            [random_model.aggressor_regions[c] for c in keep]
        )
        expected = FastCostFunction(smaller).evaluate([clocking[c] for c in keep], 2)
        assert cost.evaluate(clocking, 2) == expected


def test_costs_lie_between_bounds():
    for seed in range(5):
        model = make_random_model(seed=seed)
        cost = FastCostFunction(model)
        n = model.chain_count
        upper = cost.evaluate([0] * n, 1)
        lower = cost.evaluate(list(range(n)), n)
        rng = random.Random(seed)
        for _ in range(10):
            clocking = [rng.randrange(3) for _ in range(n)]
            assert lower <= cost.evaluate(clocking, 3) <= upper


def test_self_impact_is_not_a_conflict():
    # the only aggressor of chain 0 lies in its own impact set
    model = ConflictModel.from_sets([{0}, {1}], [[[0, 0]], [[]]])
    assert FastCostFunction(model).evaluate([0, 0], 1) == 0


def test_pair_costs_match_evaluate(random_model):
    cost = FastCostFunction(random_model)
    pair = cost.pair_costs()
    n = random_model.chain_count
    assert pair.shape == (n, n)
    assert np.array_equal(pair, pair.T)
    assert all(pair[i, i] == 0 for i in range(n))
    for i in range(n):
        for j in range(i + 1, n):
            probe = [EXCLUDED] * n
            probe[i] = probe[j] = 0
            assert cost.evaluate(probe, 1) == pair[i, j]


def test_float_and_int_agree(random_model):
    cost = FastCostFunction(random_model)
    rng = random.Random(11)
    for _ in range(10):
        clocking = [rng.randrange(2) for _ in range(random_model.chain_count)]
        assert cost.evaluate_float(clocking, 2) == float(cost.evaluate(clocking, 2))


def test_tied_groups_report_lowest_id(min_model):
    cost = FastCostFunction(min_model)
    cost.evaluate([0, 1, 2], 3)
    assert cost.get_last_worst_group() == 0


def test_precondition_violations(min_model):
    cost = FastCostFunction(min_model)
    with pytest.raises(ValueError):
        cost.evaluate([0, 1], 2)
    with pytest.raises(ValueError):
        cost.evaluate([0, 0, 0], 0)
