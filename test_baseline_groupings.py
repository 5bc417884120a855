import pytest

from baseline_groupings import RandomGrouping, SeqGrouping


def test_seq_counts_through_all_clockings():
    grouping = SeqGrouping(2, 2)
    seen = []
    while grouping.has_next():
        seen.append(grouping.next())
    assert seen == [[0, 0], [1, 0], [0, 1], [1, 1]]
    with pytest.raises(StopIteration):
        grouping.next()


def test_seq_iteration_starts_over():
    grouping = SeqGrouping(3, 2)
    first = list(grouping)
    assert len(first) == grouping.total() == 8
    assert len({tuple(c) for c in first}) == 8
    assert list(grouping) == first


def test_seq_skip():
    grouping = SeqGrouping(2, 3)
    assert grouping.skip(4) == 4
    assert grouping.next() == [1, 1]
    assert SeqGrouping(2, 2).skip(10) == 4


def test_random_grouping_is_reproducible():
    a = RandomGrouping(5, 3, start_seed=7)
    b = RandomGrouping(5, 3, start_seed=7)
    first = [a.next() for _ in range(5)]
    assert first == [b.next() for _ in range(5)]
    assert all(0 <= g < 3 for c in first for g in c)
    assert a.has_next()

    a.reset()
    assert a.next() == first[0]


def test_rejects_zero_groups():
    with pytest.raises(ValueError):
        SeqGrouping(3, 0)
    with pytest.raises(ValueError):
        RandomGrouping(3, 0)
