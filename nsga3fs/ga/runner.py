from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging
import time
from concurrent.futures import ThreadPoolExecutor, ProcessPoolExecutor, as_completed

import numpy as np

from nsga3fs.config import RunSettings
from nsga3fs.errors import ConfigError, EvaluationFailure
from nsga3fs.fitness.evaluator import Evaluator
from nsga3fs.ga.niching import niche_select
from nsga3fs.ga.operators import create_children, mutate_all
from nsga3fs.ga.population import Population, init_population
from nsga3fs.ga.refpoints import reference_points
from nsga3fs.ga.sorting import fast_nondominated_sort, parse_direction, to_minimize
from nsga3fs.results import NSGA3Result, aggregate

# worst-possible finite objective value for penalized individuals
PENALTY = 1e12


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


@dataclass
class GenerationEvent:
    generation: int  # 0 = initial population
    max_gen: int
    elapsed: float
    eval_seconds: float
    evaluated: int
    front_sizes: List[int]
    niched: int = 0
    penalized: int = 0


Observer = Callable[[GenerationEvent], None]


def penalty_vector(directions: Sequence[str]) -> np.ndarray:
    return np.array([-PENALTY if parse_direction(d) == "max" else PENALTY for d in directions])


def _evaluate_one(evaluator: Evaluator, genes: np.ndarray, policy: str) -> Tuple[np.ndarray, bool]:
    try:
        return evaluator.evaluate(genes), False
    except EvaluationFailure as exc:
        if policy == "raise":
            raise
        _logger().warning("Evaluation failed, retrying once: %s", exc)
    try:
        return evaluator.evaluate(genes), False
    except EvaluationFailure as exc:
        _logger().warning("Evaluation failed twice, assigning worst fitness: %s", exc)
        return penalty_vector(evaluator.directions), True


# multiprocessing helpers (module-level so they are picklable)
_proc_evaluator = None


def _proc_init(ev):
    global _proc_evaluator
    _proc_evaluator = ev


def _proc_score(genes, policy):
    if _proc_evaluator is None:
        raise RuntimeError("Process worker not initialized")
    return _evaluate_one(_proc_evaluator, genes, policy)


def evaluate_population(
    genes_list: Sequence[np.ndarray],
    evaluator: Evaluator,
    workers: int = 1,
    use_processes: bool = False,
    failure_policy: str = "raise",
) -> Tuple[List[np.ndarray], int]:
    """Evaluate every individual and return vectors in input order plus the penalized count.

    All submitted evaluations finish before this returns, even when one of
    them fails; the first failure is then re-raised.
    """
    n_obj = len(evaluator.obj_names)
    results: List[Optional[Tuple[np.ndarray, bool]]] = [None] * len(genes_list)
    failures: List[Tuple[int, BaseException]] = []

    if workers > 1 and len(genes_list) > 1:
        if use_processes:
            ex = ProcessPoolExecutor(max_workers=workers, initializer=_proc_init, initargs=(evaluator,))
            submit = lambda g: ex.submit(_proc_score, g, failure_policy)
        else:
            ex = ThreadPoolExecutor(max_workers=workers)
            submit = lambda g: ex.submit(_evaluate_one, evaluator, g, failure_policy)
        with ex:
            future_to_pos = {submit(g): pos for pos, g in enumerate(genes_list)}
            for fut in as_completed(future_to_pos):
                pos = future_to_pos[fut]
                try:
                    results[pos] = fut.result()
                except EvaluationFailure as exc:
                    failures.append((pos, exc))
    else:
        for pos, g in enumerate(genes_list):
            try:
                results[pos] = _evaluate_one(evaluator, g, failure_policy)
            except EvaluationFailure as exc:
                failures.append((pos, exc))
                break

    if failures:
        pos, exc = min(failures, key=lambda x: x[0])
        raise exc

    out = []
    penalized = 0
    for pos, (vec, pen) in enumerate(results):
        vec = np.asarray(vec, dtype=float)
        if vec.shape != (n_obj,):
            raise EvaluationFailure(
                f"Evaluator returned {vec.shape[0] if vec.ndim else 0} objectives, expected {n_obj}", genes_list[pos]
            )
        out.append(vec)
        penalized += int(pen)
    return out, penalized


def environmental_selection(
    pop: Population,
    ids: Sequence[int],
    directions: Sequence[str],
    refs: np.ndarray,
    n: int,
    rng: np.random.Generator,
) -> Tuple[List[int], List[int], int]:
    """Fill n slots with whole fronts, niching the boundary front.

    Returns the selected ids, the sizes of every front of the pool and the
    number of slots filled by niching.
    """
    ids = list(ids)
    mat = pop.fitness_matrix(ids)
    fronts = [[ids[i] for i in f] for f in fast_nondominated_sort(mat, directions)]
    sizes = [len(f) for f in fronts]

    selected: List[int] = []
    niched = 0
    for front in fronts:
        if len(selected) == n:
            break
        if len(selected) + len(front) <= n:
            selected.extend(front)
            continue
        k = n - len(selected)
        boundary = to_minimize(pop.fitness_matrix(front), directions)
        selected.extend(niche_select(front, boundary, refs, k, rng))
        niched = k
        break
    return selected, sizes, niched


def run_nsga3(
    evaluator: Evaluator,
    settings: RunSettings,
    feature_names: Optional[Sequence[str]] = None,
    observer: Optional[Observer] = None,
    rng: Optional[np.random.Generator] = None,
) -> NSGA3Result:
    """Evolve feature subsets for settings.max_gen generations and aggregate the final front."""
    rng = rng if rng is not None else np.random.default_rng(settings.seed)
    if feature_names is None:
        feature_names = getattr(evaluator, "feature_names", None)
    if feature_names is None:
        raise ConfigError("Feature names are required: pass feature_names= or give the evaluator a feature_names attribute")
    names = list(feature_names)
    if not names:
        raise ConfigError("At least one feature is required")
    n_features = len(names)
    n = settings.pop_size
    obj_names = list(evaluator.obj_names)
    directions = [parse_direction(d) for d in evaluator.directions]

    start = time.perf_counter()
    refs = reference_points(len(obj_names), settings.ref_method, rng, settings.ref_max_iter)
    _logger().info("Generated %d reference points for %d objectives", len(refs), len(obj_names))

    pop = init_population(n_features, n, rng)
    t0 = time.perf_counter()
    vecs, penalized = evaluate_population(
        [pop.genes(i) for i in pop.ids()], evaluator, settings.workers, settings.use_processes, settings.failure_policy
    )
    for ind_id, v in zip(pop.ids(), vecs):
        pop.set_fitness(ind_id, v)
    init_seconds = time.perf_counter() - t0
    n_evaluations = n

    history: List[Dict] = []
    gen_seconds: List[float] = []

    def emit(ev: GenerationEvent):
        history.append(asdict(ev))
        if observer is not None:
            observer(ev)

    init_fronts = fast_nondominated_sort(pop.fitness_matrix(), directions)
    emit(GenerationEvent(0, settings.max_gen, init_seconds, init_seconds, n, [len(f) for f in init_fronts], 0, penalized))

    for gen in range(1, settings.max_gen + 1):
        it_start = time.perf_counter()
        parent_ids = pop.ids()
        mating_pool = [pop.genes(i) for i in rng.permutation(parent_ids)]
        children = mutate_all(create_children(mating_pool, rng), settings.mutation_rate, rng)

        t0 = time.perf_counter()
        vecs, penalized = evaluate_population(
            children, evaluator, settings.workers, settings.use_processes, settings.failure_policy
        )
        eval_seconds = time.perf_counter() - t0
        n_evaluations += len(children)
        child_ids = [pop.add(g, v) for g, v in zip(children, vecs)]

        selected, sizes, niched = environmental_selection(
            pop, parent_ids + child_ids, directions, refs, n, rng
        )
        pop.retain(selected)
        if len(pop) != n:
            raise RuntimeError(f"Population size drifted to {len(pop)} (expected {n})")

        elapsed = time.perf_counter() - it_start
        gen_seconds.append(elapsed)
        emit(GenerationEvent(gen, settings.max_gen, elapsed, eval_seconds, len(children), sizes, niched, penalized))

    runtime = {
        "total_seconds": time.perf_counter() - start,
        "init_eval_seconds": init_seconds,
        "generation_seconds": gen_seconds,
        "n_evaluations": n_evaluations,
        "pop_size": n,
        "generations": settings.max_gen,
        "n_reference_points": int(len(refs)),
    }
    if hasattr(evaluator, "describe"):
        runtime.update(evaluator.describe())
    return aggregate(pop, obj_names, directions, names, settings.threshold, runtime=runtime, history=history)
