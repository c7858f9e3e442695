import numpy as np
import pytest

from nsga3fs.errors import SelectionUnderflow
from nsga3fs.ga.niching import associate, assign_niches, niche_select
from nsga3fs.ga.refpoints import reference_points


def test_selects_exactly_k_distinct():
    rng = np.random.default_rng(0)
    refs = reference_points(3)
    for p in (1, 2, 5, 13):
        front = rng.random((p, 3))
        ids = list(range(1000, 1000 + p))
        for k in range(1, p + 1):
            out = niche_select(ids, front, refs, k, rng)
            assert len(out) == k
            assert len(set(out)) == k
            assert set(out) <= set(ids)


def test_least_crowded_niche_first():
    refs = reference_points(2)
    front = np.array([[0.0, 1.0], [0.02, 0.98], [0.01, 0.99], [1.0, 0.0]])
    ids = [10, 11, 12, 13]
    for seed in range(10):
        out = niche_select(ids, front, refs, 1, np.random.default_rng(seed))
        assert out == [13]
        out = niche_select(ids, front, refs, 2, np.random.default_rng(seed))
        assert 13 in out


def test_association_ties_go_to_lowest_index():
    refs = np.array([[1.0, 0.0], [0.0, 1.0]])
    idx, dist = associate(np.array([[0.5, 0.5]]), refs)
    assert idx.tolist() == [0]
    assert dist[0] == pytest.approx(np.sqrt(0.5))


def test_assignment_members_cover_front():
    refs = reference_points(3)
    front = np.random.default_rng(1).random((9, 3))
    members = assign_niches(list(range(9)), front, refs).members()
    assert sorted(i for m in members.values() for i in m) == list(range(9))


def test_underflow_when_front_too_small():
    refs = reference_points(2)
    with pytest.raises(SelectionUnderflow):
        niche_select([1, 2], np.array([[0.0, 1.0], [1.0, 0.0]]), refs, 3, np.random.default_rng(0))
    with pytest.raises(SelectionUnderflow):
        niche_select([], np.zeros((0, 2)), refs, 1, np.random.default_rng(0))


def test_identical_points_still_fill_slots():
    refs = reference_points(2)
    front = np.ones((6, 2))
    out = niche_select(list(range(6)), front, refs, 4, np.random.default_rng(0))
    assert len(set(out)) == 4
