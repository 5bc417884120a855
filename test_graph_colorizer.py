import itertools
import random

import pytest

from graph_colorizer import GraphColorizer


def satisfies(coloring, pairs, hyperedges):
    if any(coloring[i] == coloring[j] for i, j in pairs):
        return False
    return not any(len({coloring[n] for n in edge}) == 1 for edge in hyperedges)


def brute_force_colorable(node_count, color_count, pairs, hyperedges):
    return any(satisfies(c, pairs, hyperedges)
               for c in itertools.product(range(color_count), repeat=node_count))


def test_triangle_needs_three_colors():
    for colors, feasible in ((2, False), (3, True)):
        g = GraphColorizer(3, colors)
        for i, j in ((0, 1), (1, 2), (0, 2)):
            g.add_edge(i, j)
        coloring = g.colorize()
        assert (coloring is not None) == feasible
        if feasible:
            assert satisfies(coloring, [(0, 1), (1, 2), (0, 2)], [])


def test_infeasible_stays_infeasible():
    g = GraphColorizer(4, 2)
    for i, j in ((0, 1), (1, 2), (0, 2)):
        g.add_edge(i, j)
    assert g.colorize() is None
    g.add_edge(2, 3)
    g.add_hyperedge([0, 1, 3])
    assert g.colorize() is None


def test_hyperedge_forbids_one_shared_color():
    g = GraphColorizer(3, 1)
    g.add_hyperedge([0, 1, 2])
    assert g.colorize() is None

    g = GraphColorizer(3, 2)
    g.add_hyperedge([0, 1, 2])
    coloring = g.colorize()
    assert coloring is not None
    assert len(set(coloring)) == 2


def test_single_node_constraints_are_infeasible():
    g = GraphColorizer(3, 3)
    g.add_hyperedge([1])
    assert g.colorize() is None

    g = GraphColorizer(3, 3)
    g.add_edge(2, 2)
    assert g.colorize() is None


def test_two_node_hyperedge_is_a_pair_edge():
    g = GraphColorizer(3, 2)
    g.add_hyperedge([2, 0])
    g.add_edge(0, 2)
    assert g.count_edges() == 1
    coloring = g.colorize()
    assert coloring[0] != coloring[2]


def test_hyperedge_size_limits_members():
    g = GraphColorizer(4, 2)
    g.add_hyperedge([0, 1, 2, 3], size=3)
    g.add_edge(0, 3)
    coloring = g.colorize()
    assert coloring is not None
    assert len({coloring[0], coloring[1], coloring[2]}) == 2


def test_colorize_is_deterministic():
    g = GraphColorizer(6, 3)
    for i, j in ((0, 1), (1, 2), (2, 3), (3, 4), (4, 5), (5, 0), (0, 3)):
        g.add_edge(i, j)
    g.add_hyperedge([1, 3, 5])
    assert g.colorize() == g.colorize()


def test_size_and_count_edges():
    g = GraphColorizer(5, 2)
    assert g.size() == 5
    g.add_edge(0, 1)
    g.add_edge(1, 0)
    g.add_hyperedge([2, 3, 4])
    assert g.count_edges() == 2


def test_empty_graph():
    assert GraphColorizer(0, 2).colorize() == []
    assert GraphColorizer(3, 1).colorize() == [0, 0, 0]


def test_rejects_zero_colors():
    with pytest.raises(ValueError):
        GraphColorizer(3, 0)


@pytest.mark.parametrize("seed", range(15))
def test_matches_exhaustive_search(seed):
    rng = random.Random(seed)
    nodes, colors = 6, rng.choice([2, 3])
    pairs = [(i, j) for i in range(nodes) for j in range(i + 1, nodes) if rng.random() < 0.35]
    hyperedges = [tuple(rng.sample(range(nodes), 3)) for _ in range(rng.randint(0, 4))]

    g = GraphColorizer(nodes, colors)
    for i, j in pairs:
        g.add_edge(i, j)
    for edge in hyperedges:
        g.add_hyperedge(edge)

    coloring = g.colorize()
    assert (coloring is not None) == brute_force_colorable(nodes, colors, pairs, hyperedges)
    if coloring is not None:
        assert all(0 <= c < colors for c in coloring)
        assert satisfies(coloring, pairs, hyperedges)
