import numpy as np
import pytest

from nsga3fs.ga.population import Population
from nsga3fs.results import aggregate, features_above, majority_vote


def test_majority_vote_fractions():
    genes = np.array([[1, 0, 1], [1, 1, 0], [1, 0, 0], [0, 0, 1]])
    votes = majority_vote(genes, ["a", "b", "c"])
    assert votes["feature"].tolist() == ["a", "b", "c"]
    assert votes["vote"].tolist() == [0.75, 0.25, 0.5]
    assert features_above(votes, 0.5) == ["a", "c"]


def test_majority_vote_shape_check():
    with pytest.raises(ValueError):
        majority_vote(np.ones((2, 3)), ["a", "b"])


def test_aggregate_uses_first_front_only():
    pop = Population(n_features=3)
    a = pop.add([1, 0, 0], [0.1, 1])
    b = pop.add([1, 1, 0], [0.05, 2])
    pop.add([1, 1, 1], [0.2, 3])  # dominated by both
    result = aggregate(pop, ["err", "nf"], ["min", "min"], ["x", "y", "z"], threshold=0.5)
    assert sorted(result.ids) == [a, b]
    assert result.votes_table["vote"].tolist() == [1.0, 0.5, 0.0]
    assert result.features_above_threshold == ["x", "y"]
    views = {item["id"]: item for item in result.per_individual}
    assert views[b]["selected_feature_names"] == ["x", "y"]
    assert views[a]["objective_values"] == {"err": 0.1, "nf": 1.0}
    assert np.allclose(result.normalized.min(axis=0), 0.0)


def test_to_dict_layout():
    pop = Population(n_features=2)
    pop.add([1, 0], [0.3, 1])
    d = aggregate(pop, ["err", "nf"], ["min", "min"], ["p", "q"], threshold=0.5, runtime={"total_seconds": 1.0}).to_dict()
    assert set(d) == {"front", "per_individual", "majority_vote", "runtime_stats", "history"}
    assert d["front"]["individuals"] == [[1, 0]]
    assert d["majority_vote"]["features_above_threshold"] == ["p"]
    assert d["runtime_stats"]["total_seconds"] == 1.0
    assert d["per_individual"][0]["selected_feature_names"] == ["p"]
    assert d["majority_vote"]["votes_table"] == [{"feature": "p", "vote": 1.0}, {"feature": "q", "vote": 0.0}]
