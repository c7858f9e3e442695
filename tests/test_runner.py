import threading

import numpy as np
import pytest
from sklearn.tree import DecisionTreeClassifier

from nsga3fs.config import RunSettings
from nsga3fs.errors import ConfigError, EvaluationFailure
from nsga3fs.examples.synthetic import make_synthetic_classification
from nsga3fs.fitness.evaluator import Objective, SklearnEvaluator
from nsga3fs.fitness.models import make_resampling
from nsga3fs.ga.population import Population
from nsga3fs.ga.refpoints import reference_points
from nsga3fs.ga.runner import PENALTY, environmental_selection, evaluate_population, run_nsga3


class CountingEvaluator:
    """Prefers few features that sit early in the vector."""

    def __init__(self, n_features):
        self.feature_names = [f"f{i}" for i in range(n_features)]
        self.obj_names = ["position", "n_features"]
        self.directions = ["min", "min"]
        self.calls = 0
        self._lock = threading.Lock()

    def evaluate(self, genes):
        with self._lock:
            self.calls += 1
        genes = np.asarray(genes)
        return np.array([float(np.flatnonzero(genes).mean()), float(genes.sum())])


class FailingEvaluator(CountingEvaluator):
    def evaluate(self, genes):
        super().evaluate(genes)
        raise EvaluationFailure("model refused", genes)


def test_end_to_end_small_dataset():
    df = make_synthetic_classification(n=60, n_informative=2, n_noise=1, seed=5)
    assert df.shape[1] == 4
    ev = SklearnEvaluator.from_frame(
        df, "target",
        objectives=[Objective.from_metric("mmce", direction="min")],
        model=DecisionTreeClassifier(max_depth=2, random_state=0),
        resampling=make_resampling({"method": "stratified_cv", "folds": 3}),
        num_features=True,
    )
    result = run_nsga3(ev, RunSettings(pop_size=4, max_gen=1, seed=0))
    assert 1 <= len(result.ids) <= 4
    assert list(result.fitness.columns) == ["mmce", "n_features"]
    assert len(result.votes_table) == 3
    assert result.votes_table["vote"].between(0, 1).all()
    assert set(result.features_above_threshold) <= {"x0", "x1", "noise0"}
    for item in result.per_individual:
        assert item["selected_feature_names"]
    assert result.runtime["n_evaluations"] == 8


def test_population_size_is_constant_and_history_recorded():
    ev = CountingEvaluator(8)
    events = []
    result = run_nsga3(ev, RunSettings(pop_size=10, max_gen=5, seed=3), observer=events.append)
    assert [e.generation for e in events] == [0, 1, 2, 3, 4, 5]
    for e in events[1:]:
        assert sum(e.front_sizes) == 20
    assert ev.calls == 10 * 6
    assert len(result.history) == 6
    assert len(result.ids) <= 10


def test_threaded_evaluation_keeps_order():
    ev = CountingEvaluator(6)
    genes = [np.eye(6, dtype=np.int8)[i % 6] for i in range(12)]
    vecs, penalized = evaluate_population(genes, ev, workers=4)
    assert penalized == 0
    for g, v in zip(genes, vecs):
        assert v[0] == float(np.flatnonzero(g)[0])


def test_raise_policy_propagates():
    ev = FailingEvaluator(4)
    with pytest.raises(EvaluationFailure):
        run_nsga3(ev, RunSettings(pop_size=4, max_gen=1, seed=0, failure_policy="raise"))


def test_raise_policy_waits_for_whole_generation():
    ev = FailingEvaluator(4)
    genes = [np.array([1, 0, 0, 0])] * 6
    with pytest.raises(EvaluationFailure):
        evaluate_population(genes, ev, workers=3, failure_policy="raise")
    assert ev.calls == 6


def test_penalize_policy_retries_then_assigns_worst():
    ev = FailingEvaluator(4)
    vecs, penalized = evaluate_population([np.array([1, 0, 0, 0])], ev, failure_policy="penalize")
    assert ev.calls == 2
    assert penalized == 1
    assert vecs[0].tolist() == [PENALTY, PENALTY]


def test_penalize_run_completes():
    ev = FailingEvaluator(5)
    result = run_nsga3(ev, RunSettings(pop_size=6, max_gen=2, seed=1, failure_policy="penalize"))
    assert len(result.ids) == 6


def test_environmental_selection_fills_exactly_n():
    pop = Population(n_features=3)
    rng = np.random.default_rng(0)
    ids = [pop.add([1, 0, 0], v) for v in rng.random((12, 2))]
    refs = reference_points(2)
    selected, sizes, niched = environmental_selection(pop, ids, ["min", "min"], refs, 5, rng)
    assert len(selected) == len(set(selected)) == 5
    assert sum(sizes) == 12
    assert 0 <= niched <= 5


def test_three_objective_run():
    class ThreeObj(CountingEvaluator):
        def __init__(self, n):
            super().__init__(n)
            self.obj_names = ["position", "n_features", "last"]
            self.directions = ["min", "min", "max"]

        def evaluate(self, genes):
            base = super().evaluate(genes)
            return np.append(base, float(np.flatnonzero(genes).max()))

    result = run_nsga3(ThreeObj(7), RunSettings(pop_size=8, max_gen=3, seed=2))
    assert result.runtime["n_reference_points"] == 15
    assert len(result.votes_table) == 7


class MinimalEvaluator:
    """Declares exactly the Evaluator protocol attributes and nothing else."""

    def __init__(self):
        self.feature_names = ["a", "b", "c"]
        self.obj_names = ["n_features", "last"]
        self.directions = ["min", "min"]

    def evaluate(self, genes):
        genes = np.asarray(genes)
        return np.array([float(genes.sum()), float(genes[-1])])


class NamelessEvaluator:
    obj_names = ["n_features", "first"]
    directions = ["min", "min"]

    def evaluate(self, genes):
        genes = np.asarray(genes)
        return np.array([float(genes.sum()), float(genes[0])])


def test_protocol_evaluator_runs():
    result = run_nsga3(MinimalEvaluator(), RunSettings(pop_size=4, max_gen=1, seed=0))
    assert result.votes_table["feature"].tolist() == ["a", "b", "c"]
    assert all(set(v["objective_values"]) == {"n_features", "last"} for v in result.per_individual)


def test_missing_feature_names_is_config_error():
    with pytest.raises(ConfigError):
        run_nsga3(NamelessEvaluator(), RunSettings(pop_size=4, max_gen=1, seed=0))
    result = run_nsga3(NamelessEvaluator(), RunSettings(pop_size=4, max_gen=1, seed=0), feature_names=["p", "q"])
    assert len(result.votes_table) == 2


def test_process_pool_matches_sequential():
    df = make_synthetic_classification(n=60, n_informative=2, n_noise=2, seed=9)
    ev = SklearnEvaluator.from_frame(
        df, "target",
        objectives=[Objective.from_metric("mmce"), Objective.from_metric("auc")],
        model=DecisionTreeClassifier(max_depth=2, random_state=0),
        resampling=make_resampling({"method": "stratified_cv", "folds": 3, "seed": 0}),
    )
    genes = [np.array(g, dtype=np.int8) for g in ([1, 0, 0, 0], [1, 1, 0, 0], [0, 0, 1, 1], [1, 1, 1, 1])]
    sequential, _ = evaluate_population(genes, ev, workers=1)
    pooled, penalized = evaluate_population(genes, ev, workers=2, use_processes=True)
    assert penalized == 0
    for a, b in zip(sequential, pooled):
        assert np.array_equal(a, b)
