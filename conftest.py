import logging
import random

import pytest

from conflict_model import ConflictModel


def pytest_configure(config):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def make_random_model(chains=8, cells=40, chain_length=4, region_size=5, seed=0):
    rng = random.Random(seed)
    impact_sets = [rng.sample(range(cells), rng.randint(0, 6)) for _ in range(chains)]
    aggressor_regions = [
        [[rng.randrange(cells) for _ in range(rng.randint(0, region_size))] for _ in range(chain_length)]
        for _ in range(chains)
    ]
    return ConflictModel.from_sets(impact_sets, aggressor_regions)


@pytest.fixture
def min_model():
    """
    3 chains. chain 0 impacts {0,1}, chain 1 impacts {1,2}, chain 2 nothing.
    chain 0 has two scan cells aggressed by 1 and 2, chain 1 one scan cell
    without aggressors, chain 2 two scan cells aggressed by 0,0 and 1.
    """
    return ConflictModel.from_sets(
        impact_sets=[{0, 1}, {1, 2}, set()],
        aggressor_regions=[[[1], [2]], [[]], [[0, 0], [1]]]
    )


@pytest.fixture
def random_model():
    return make_random_model()


FOOTPRINTS = """# chain_id\tcell\taggressors\timpacts
0\ta0\tx1,x2,x2\tNone
0\ta1\tx2\tn1
1\tb0\tx1\tx1
1\tb1\ta0\tNone
2\tc0\ta1\tNone
"""


@pytest.fixture
def footprint_file(tmp_path):
    path = tmp_path / "tiny_footprints.txt"
    path.write_text(FOOTPRINTS)
    return str(path)
