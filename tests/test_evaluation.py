# tests/test_evaluation.py
"""
Cross-validated evaluation: costs, prediction strength and stability, plus
the fold split used by cross_validate and the orchestrator.
"""

from __future__ import annotations

import numpy as np
import pytest
import torch

from kmeans_parallel import (
    Centers,
    EvaluationResult,
    InvalidArgument,
    KMeansEvaluation,
    MultiRunOrchestrator,
    cross_validate,
    evaluate,
    run_grid,
)
from kmeans_parallel.utils.metrics import weighted_cost

from data_gen import make_blobs, weighted


@pytest.fixture
def two_blobs():
    X, _, C = make_blobs([[0.0, 0.0], [10.0, 0.0]], n_per=50, scale=0.5, seed=0)
    return X, C


def test_identical_models_are_perfectly_stable(two_blobs):
    X, C = two_blobs
    centers = Centers(torch.as_tensor(C))
    results = evaluate([centers], weighted(X), [centers])

    assert len(results) == 1
    r = results[0]
    assert isinstance(r, EvaluationResult)
    assert r.n_clusters == 2
    assert r.prediction_strength == pytest.approx(1.0)
    assert r.stable_clusters == 2
    assert r.stable_points == pytest.approx(1.0)
    assert r.test_cost == pytest.approx(r.train_cost)


def test_split_clusters_have_low_prediction_strength(two_blobs):
    X, C = two_blobs
    test = Centers(torch.as_tensor(C))
    # Train centers cut both blobs in half along y
    train = Centers([[5.0, -1.0], [5.0, 1.0]])
    r = evaluate([test], weighted(X), [train])[0]
    assert r.prediction_strength < 0.8
    assert r.stable_clusters == 0
    assert r.stable_points == 0.0


def test_costs(two_blobs):
    X, C = two_blobs
    Xt = torch.as_tensor(X)
    w = np.linspace(0.5, 2.0, len(X))
    test = Centers(torch.as_tensor(C))
    train = Centers([[5.0, 0.0]])
    r = evaluate([test], weighted(X, w), [train])[0]
    wt = torch.as_tensor(w, dtype=torch.float32)
    assert r.test_cost == pytest.approx(test.cost(Xt, wt), rel=1e-5)
    # Without train points the train centers are scored on the test points
    assert r.train_cost == pytest.approx(train.cost(Xt, wt), rel=1e-5)
    assert r.n_clusters == 1

    other = weighted(np.zeros((3, 2), dtype=np.float32))
    r2 = evaluate([test], weighted(X, w), [train], train_points=other)[0]
    assert r2.train_cost == pytest.approx(3 * 25.0)


def test_evaluation_class_exposes_columns(two_blobs):
    X, C = two_blobs
    a = Centers(torch.as_tensor(C))
    b = Centers(torch.as_tensor(C[:1]))
    ev = KMeansEvaluation([a, b], weighted(X), [a, b])
    assert len(ev.test_costs) == 2
    assert len(ev.prediction_strengths) == 2
    assert ev.results()[1].n_clusters == 1
    # One cluster holding everything is trivially stable
    assert ev.prediction_strengths[1] == pytest.approx(1.0)


def test_small_split_cluster_sets_prediction_strength():
    # Ten points at 0 and a pair around 50 that the train centers pull apart
    X = np.array([[0.0]] * 10 + [[49.0], [51.0]], dtype=np.float32)
    test = Centers([[0.0], [50.0]])
    train = Centers([[40.0], [60.0]])
    r = evaluate([test], weighted(X), [train])[0]
    assert r.prediction_strength == 0.0
    assert r.stable_clusters == 1
    assert r.stable_points == pytest.approx(10 / 12)


def test_no_pairs_gives_unit_strength():
    points = weighted(np.array([[0.0], [10.0]], dtype=np.float32), [1.0, 1.0])
    c = Centers([[0.0], [10.0]])
    r = evaluate([c], points, [c])[0]
    assert r.prediction_strength == 1.0


def test_mismatched_lists(two_blobs):
    X, C = two_blobs
    c = Centers(torch.as_tensor(C))
    with pytest.raises(InvalidArgument):
        evaluate([c, c], weighted(X), [c])


def _sketches(seed=0):
    X, _, _ = make_blobs([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]], n_per=60, scale=0.5, seed=seed)
    rng = np.random.default_rng(seed)
    folds = rng.integers(2, size=len(X))
    return [weighted(X[folds == f]) for f in range(2)]


def test_cross_validate_on_clean_blobs():
    results = cross_validate(_sketches(), [2, 3], best_of=3, random_state=0)
    assert [r.n_clusters for r in results] == [2, 3]
    three = results[1]
    assert three.prediction_strength > 0.8
    assert three.stable_clusters == 3


def test_cross_validate_scores_train_cost_on_training_folds():
    train = weighted(np.array([[100.0, 0.0], [101.0, 0.0]], dtype=np.float32))
    test = weighted(np.array([[0.0, 0.0], [1.0, 0.0]], dtype=np.float32))
    r = cross_validate([train, test], [1], random_state=0)[0]
    assert r.train_cost == pytest.approx(0.5)
    assert r.test_cost == pytest.approx(0.5)


def test_cross_validate_train_cost_matches_train_centers():
    sketches = _sketches(2)
    results = cross_validate(sketches, [2, 3], best_of=3, random_state=4)
    train_results = run_grid(sketches[0], [2, 3], best_of=3, random_state=4)
    X = torch.stack([wp.vector for wp in sketches[0]])
    w = torch.tensor([wp.weight for wp in sketches[0]])
    for r, t in zip(results, train_results):
        assert r.train_cost == pytest.approx(weighted_cost(X, t.centers.tensor, w), rel=1e-5)


def test_cross_validate_needs_two_folds():
    with pytest.raises(InvalidArgument):
        cross_validate(_sketches()[:1], [2])


def test_orchestrator_runs_and_evaluates():
    sketches = _sketches(1)
    orchestrator = MultiRunOrchestrator(best_of=2, random_state=3, n_workers=2)
    results, evaluation = orchestrator.run(sketches, [3, 1])
    assert [r.n_clusters for r in results] == [3, 1]
    assert evaluation is not None
    assert [e.n_clusters for e in evaluation] == [3, 1]

    results, evaluation = orchestrator.run(sketches[:1], [2])
    assert evaluation is None
    assert len(results) == 1

    with pytest.raises(InvalidArgument):
        orchestrator.run([], [2])
