# tests/utils.py
"""
Small, reusable helpers used across the k-means|| test suite.

Functions:
- match_centers(found, truth): smallest max distance over permutations of the found centers.
- time_block(label, meta=None): context manager that prints wall-clock time with optional metadata.
- print_timing(label, seconds, **meta): convenience printer for timings (used by time_block).
"""

from __future__ import annotations

import json
import itertools
import time
from contextlib import contextmanager
from typing import Any, Dict, Tuple, Union

import numpy as np
import torch

ArrayLike = Union[np.ndarray, torch.Tensor]


def _to_numpy_2d(x: Any) -> np.ndarray:
    """Convert a 2D array (numpy, torch or Centers) to numpy array."""
    if hasattr(x, "tensor") and not isinstance(x, torch.Tensor):
        x = x.tensor
    if isinstance(x, torch.Tensor):
        x = x.detach().cpu().numpy()
    x = np.asarray(x)
    if x.ndim != 2:
        raise ValueError(f"Expected 2D array, got shape {x.shape}")
    return x


def match_centers(found: Any, truth: ArrayLike) -> Tuple[float, Tuple[int, ...]]:
    """
    Best matching of found centers to true centers.

    Returns
    -------
    (worst_distance, perm)
      worst_distance: largest Euclidean distance between a true center and
        the found center matched to it, minimized over permutations
      perm: found[perm[i]] is matched to truth[i]

    Notes
    -----
    - O(k!) brute force; tests keep k small.
    """
    F = _to_numpy_2d(found)
    T = _to_numpy_2d(truth)
    if F.shape != T.shape:
        raise ValueError(f"Shape mismatch: found {F.shape} vs truth {T.shape}")
    k = T.shape[0]

    D = np.linalg.norm(T[:, None, :] - F[None, :, :], axis=2)
    best = np.inf
    best_perm: Tuple[int, ...] = tuple(range(k))
    for perm in itertools.permutations(range(k)):
        worst = float(np.max(D[np.arange(k), perm]))
        if worst < best:
            best = worst
            best_perm = perm
    return best, best_perm


@contextmanager
def time_block(label: str, meta: Dict[str, Any] | None = None):
    """
    Context manager to time a block and print a single-line summary.

    Example
    -------
    >>> with time_block("seed", {"n": 400, "d": 2, "L": 10}):
    ...     kmp.initialization(points, 5, 10, [X[0]])

    Output
    ------
    [timing] seed {"n":400,"d":2,"L":10} 0.123s
    """
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt = time.perf_counter() - t0
        print_timing(label, dt, **(meta or {}))


def print_timing(label: str, seconds: float, **meta: Any) -> None:
    """
    Print timing in a compact, machine-readable single line.

    Example:
    [timing] seed {"n":400,"d":2,"L":10} 0.123s
    """
    meta_str = ""
    if meta:
        meta_str = " " + json.dumps(meta, separators=(",", ":"), default=str)
    print(f"[timing] {label}{meta_str} {seconds:.3f}s")
