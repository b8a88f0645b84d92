# tests/test_data_structures.py
"""
Data model: weighted points, immutable center sets and the cost function.
"""

from __future__ import annotations

import pytest
import torch

from kmeans_parallel import (
    Point,
    WeightedPoint,
    Centers,
    InvalidArgument,
    KMeansParallelError,
)


def test_weighted_point_rejects_negative_weight():
    with pytest.raises(InvalidArgument):
        WeightedPoint(torch.zeros(2), -1.0)
    # Also catchable as a plain ValueError
    with pytest.raises(ValueError):
        WeightedPoint(torch.zeros(2), -0.5)


def test_weighted_point_merge_adds_weights():
    a = WeightedPoint(torch.tensor([1.0, 2.0]), 2.0)
    b = WeightedPoint(torch.tensor([1.0, 2.0]), 3.5)
    merged = a.merge(b)
    assert merged.weight == pytest.approx(5.5)
    assert torch.equal(merged.vector, a.vector)
    # Inputs are unchanged
    assert a.weight == 2.0 and b.weight == 3.5


def test_weighted_point_merge_dimension_mismatch():
    with pytest.raises(InvalidArgument):
        WeightedPoint(torch.zeros(2), 1.0).merge(WeightedPoint(torch.zeros(3), 1.0))


def test_point_accepts_lists_and_keeps_id():
    p = Point([1, 2, 3], id="row-7")
    assert p.dimension == 3
    assert p.vector.dtype == torch.float32
    assert p.id == "row-7"


def test_centers_empty_raises():
    with pytest.raises(InvalidArgument):
        Centers([])
    with pytest.raises(KMeansParallelError):
        Centers(torch.zeros(0, 3))


def test_centers_sequence_behaviour():
    c = Centers([[0.0, 0.0], [1.0, 1.0], [1.0, 1.0]])  # duplicates allowed
    assert len(c) == 3
    assert c.dimension == 2
    assert torch.equal(c[1], torch.tensor([1.0, 1.0]))
    assert [v.tolist() for v in c] == [[0.0, 0.0], [1.0, 1.0], [1.0, 1.0]]
    assert c == Centers(torch.tensor([[0.0, 0.0], [1.0, 1.0], [1.0, 1.0]]))
    assert c != Centers([[0.0, 0.0]])


def test_centers_are_immutable_snapshots():
    data = torch.tensor([[0.0, 0.0], [2.0, 0.0]])
    c = Centers(data)
    data[0, 0] = 100.0
    c.tensor[1, 0] = -5.0
    assert c[0].tolist() == [0.0, 0.0]
    assert c[1].tolist() == [2.0, 0.0]


def test_index_of_closest():
    c = Centers([[0.0, 0.0], [10.0, 0.0]])
    idx, d = c.index_of_closest(torch.tensor([7.0, 1.0]))
    assert idx == 1
    assert d == pytest.approx(9.0 + 1.0)


def test_cost_is_zero_iff_points_coincide_with_centers():
    c = Centers([[0.0, 0.0], [3.0, 4.0]])
    on = torch.tensor([[0.0, 0.0], [3.0, 4.0], [3.0, 4.0]])
    assert c.cost(on) == 0.0
    off = torch.tensor([[0.0, 0.0], [3.0, 5.0]])
    assert c.cost(off) == pytest.approx(1.0)


def test_cost_is_order_invariant_and_weighted(rng):
    X = torch.as_tensor(rng.normal(size=(50, 3)), dtype=torch.float32)
    w = torch.as_tensor(rng.uniform(0.0, 2.0, size=50), dtype=torch.float32)
    c = Centers(X[:4])
    perm = torch.as_tensor(rng.permutation(50))
    assert c.cost(X, w) == pytest.approx(c.cost(X[perm], w[perm]), rel=1e-5)

    # Doubling every weight doubles the cost
    assert c.cost(X, 2 * w) == pytest.approx(2 * c.cost(X, w), rel=1e-5)


def test_closest_rejects_wrong_dimension():
    c = Centers([[0.0, 0.0]])
    with pytest.raises(InvalidArgument):
        c.closest(torch.zeros(4, 3))
