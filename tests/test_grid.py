# tests/test_grid.py
"""
Multi-run grid: trial fan-out, best-of selection, result ordering, failure
and timeout reporting.
"""

from __future__ import annotations

import threading
import time

import numpy as np
import pytest
import torch

from kmeans_parallel import (
    run_grid,
    Centers,
    ClusteringResult,
    InsufficientCandidates,
    InvalidArgument,
    TrialFailure,
)
from kmeans_parallel.utils.random import derive_seed

from data_gen import make_blobs, weighted


@pytest.fixture
def sample():
    X, _, C = make_blobs([[0.0, 0.0], [8.0, 0.0], [0.0, 8.0], [8.0, 8.0]], n_per=15, scale=0.4, seed=0)
    return weighted(X)


class _Recorder:
    """refine() stand-in that picks random candidates and records every call."""

    def __init__(self, fail_for=None, delay=0.0, slow_for=None):
        self.calls = []
        self.fail_for = fail_for
        self.delay = delay
        self.slow_for = slow_for
        self._lock = threading.Lock()

    def __call__(self, points, k, seed, stopping_criterion):
        with self._lock:
            self.calls.append((k, seed))
        if self.delay and (self.slow_for is None or k == self.slow_for):
            time.sleep(self.delay)
        if k == self.fail_for:
            raise ArithmeticError(f"cannot cluster k={k}")
        rng = np.random.default_rng(seed)
        idx = rng.choice(len(points), size=k, replace=False)
        return Centers([points[i].vector for i in idx])


@pytest.mark.parametrize("n_workers", [1, 4])
def test_results_follow_input_order(sample, n_workers):
    counts = [3, 1, 4, 2, 3]
    results = run_grid(sample, counts, best_of=2, random_state=0, n_workers=n_workers)
    assert [r.n_clusters for r in results] == counts
    assert all(isinstance(r, ClusteringResult) for r in results)
    assert all(len(r.centers) == r.n_clusters for r in results)
    # Duplicate counts share one best result
    assert results[0] == results[4]


def test_trial_counts_per_k(sample):
    rec = _Recorder()
    run_grid(sample, [1, 2, 3], best_of=4, random_state=0, refine=rec)
    ks = [k for k, _ in rec.calls]
    assert ks.count(1) == 1
    assert ks.count(2) == 4
    assert ks.count(3) == 4

    rec = _Recorder()
    run_grid(sample, [2], best_of=0, random_state=0, refine=rec)
    assert len(rec.calls) == 1


def test_best_of_keeps_lowest_cost(sample):
    rec = _Recorder()
    results = run_grid(sample, [3], best_of=6, random_state=5, refine=rec)
    X = torch.stack([wp.vector for wp in sample])
    costs = []
    for k, seed in list(rec.calls):
        costs.append(rec(sample, k, seed, None).cost(X))
    best = results[0]
    assert best.cost == pytest.approx(min(costs), rel=1e-6)
    assert best.seed == derive_seed(5, 3, best.restart)


def test_same_random_state_same_results(sample):
    a = run_grid(sample, [2, 4], best_of=3, random_state=42, n_workers=2)
    b = run_grid(sample, [2, 4], best_of=3, random_state=42, n_workers=1)
    for ra, rb in zip(a, b):
        assert ra.centers == rb.centers
        assert ra.cost == rb.cost
        assert ra.restart == rb.restart


def test_default_refinement_finds_the_blobs(sample):
    result = run_grid(sample, [4], best_of=5, random_state=1)[0]
    one = run_grid(sample, [1], random_state=1)[0]
    assert result.cost < 0.1 * one.cost


def test_trial_failure_carries_k_and_restart(sample):
    rec = _Recorder(fail_for=2)
    with pytest.raises(TrialFailure) as info:
        run_grid(sample, [1, 2, 3], best_of=3, random_state=0, n_workers=2, refine=rec)
    err = info.value
    assert err.n_clusters == 2
    assert 0 <= err.restart < 3
    assert isinstance(err.__cause__, ArithmeticError)


def test_trial_failure_does_not_wait_for_slow_trials(sample):
    rec = _Recorder(fail_for=2, delay=3.0, slow_for=3)
    start = time.perf_counter()
    with pytest.raises(TrialFailure) as info:
        run_grid(sample, [2, 3], best_of=1, random_state=0, n_workers=2, refine=rec)
    assert time.perf_counter() - start < 1.5
    assert info.value.n_clusters == 2


def test_insufficient_candidates_raised_before_any_trial(sample):
    rec = _Recorder()
    with pytest.raises(InsufficientCandidates) as info:
        run_grid(sample[:3], [2, 5], best_of=1, random_state=0, refine=rec)
    assert info.value.n_clusters == 5
    assert info.value.n_candidates == 3
    assert rec.calls == []


def test_warns_when_sample_is_small(sample):
    with pytest.warns(UserWarning, match="candidates"):
        run_grid(sample[:10], [6], best_of=1, random_state=0)


def test_timeout(sample):
    rec = _Recorder(delay=1.0)
    with pytest.raises(TimeoutError):
        run_grid(sample, [2], best_of=1, random_state=0, refine=rec, timeout=0.05)


@pytest.mark.parametrize("counts,kwargs", [
    ([], {}),
    ([0], {}),
    ([2, -1], {}),
    ([2], {"n_workers": 0}),
])
def test_invalid_arguments(sample, counts, kwargs):
    with pytest.raises(InvalidArgument):
        run_grid(sample, counts, **kwargs)


def test_empty_sample():
    with pytest.raises(InvalidArgument):
        run_grid([], [2])
