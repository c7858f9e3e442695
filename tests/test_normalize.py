import numpy as np
import pytest

from nsga3fs.ga.normalize import EPS, extreme_points, ideal_point, intercepts, normalize_front, translate


def test_translation_moves_ideal_to_origin():
    rng = np.random.default_rng(2)
    front = rng.normal(5, 3, size=(25, 3))
    t = translate(front, ideal_point(front))
    assert np.array_equal(t.min(axis=0), np.zeros(3))


def test_extreme_points_and_intercepts():
    t = np.array([[0.0, 4.0], [2.0, 1.0], [1.0, 0.0]])
    ext = extreme_points(t)
    assert ext.tolist() == [[2.0, 1.0], [0.0, 4.0]]
    assert intercepts(ext).tolist() == [2.0, 4.0]


def test_normalized_front_bounds():
    front = np.array([[1.0, 10.0], [3.0, 6.0], [5.0, 2.0]])
    norm = normalize_front(front)
    assert norm.ideal.tolist() == [1.0, 2.0]
    assert norm.normalized.shape == front.shape
    assert np.allclose(norm.normalized.max(axis=0), [1.0, 1.0])
    assert np.allclose(norm.normalized.min(axis=0), [0.0, 0.0])


def test_zero_intercept_uses_epsilon():
    front = np.array([[1.0, 3.0], [2.0, 3.0]])
    norm = normalize_front(front)
    assert norm.intercepts[1] == 0.0
    assert np.all(np.isfinite(norm.normalized))
    assert norm.normalized[:, 1].tolist() == [0.0, 0.0]
    assert EPS > 0


def test_empty_front_rejected():
    with pytest.raises(ValueError):
        normalize_front(np.zeros((0, 2)))
