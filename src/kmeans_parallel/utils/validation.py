"""
Input validation utilities.

Eager checks run at the public call boundaries, before any dataset work is
scheduled. All failures raise InvalidArgument.
"""

from typing import Optional, Union, Sequence, List, Tuple
import torch
from torch import Tensor
import numpy as np

from ..base.data_structures import WeightedPoint, Point
from ..base.errors import InvalidArgument


def validate_data(X: Union[Tensor, np.ndarray, list],
                  dtype: torch.dtype = torch.float32,
                  ensure_finite: bool = True,
                  ensure_min_samples: int = 1) -> Tensor:
    """Validate and convert input data to a 2D tensor.

    Args:
        X: Input data (tensor, numpy array, or list of rows)
        dtype: Target data type
        ensure_finite: Whether to check for inf/nan
        ensure_min_samples: Minimum number of samples required

    Returns:
        Validated (n, d) tensor

    Raises:
        InvalidArgument: If validation fails
    """
    if isinstance(X, Tensor):
        X = X.detach().to(dtype=dtype)
    elif isinstance(X, np.ndarray):
        X = torch.from_numpy(X).to(dtype=dtype)
    elif isinstance(X, (list, tuple)):
        if len(X) > 0 and isinstance(X[0], Tensor):
            X = torch.stack([x.detach().to(dtype=dtype) for x in X])
        else:
            X = torch.tensor(X, dtype=dtype)
    else:
        raise TypeError(f"Cannot convert {type(X)} to tensor")

    if X.dim() == 1:
        X = X.unsqueeze(1)
    elif X.dim() != 2:
        raise InvalidArgument(f"Expected 2D array, got {X.dim()}D")

    n_samples = X.shape[0]
    if n_samples < ensure_min_samples:
        raise InvalidArgument(f"Found {n_samples} samples, but need at least "
                              f"{ensure_min_samples}")

    if ensure_finite and n_samples > 0:
        if torch.isnan(X).any():
            raise InvalidArgument("Input contains NaN values")
        if torch.isinf(X).any():
            raise InvalidArgument("Input contains infinite values")

    return X


def validate_vector(v: Union[Tensor, Point, Sequence[float]],
                    dimension: Optional[int] = None) -> Tensor:
    """Validate a single point and return it as a 1D float32 tensor."""
    if isinstance(v, (Point, WeightedPoint)):
        v = v.vector
    elif not isinstance(v, Tensor):
        v = torch.tensor(v, dtype=torch.float32)
    v = v.detach().to(dtype=torch.float32)

    if v.dim() != 1:
        raise InvalidArgument(f"Expected 1D vector, got {v.dim()}D")
    if dimension is not None and v.shape[0] != dimension:
        raise InvalidArgument(f"Expected dimension {dimension}, got {v.shape[0]}")
    return v


def validate_weighted_points(points: Sequence[WeightedPoint]) -> Tuple[Tensor, Tensor]:
    """Stack weighted points into (n, d) vectors and (n,) weights.

    Raises:
        InvalidArgument: If the list is empty or dimensions disagree
    """
    if len(points) == 0:
        raise InvalidArgument("No weighted points specified")

    dimension = points[0].dimension
    for i, wp in enumerate(points):
        if not isinstance(wp, WeightedPoint):
            raise InvalidArgument(f"points[{i}] is {type(wp).__name__}, expected WeightedPoint")
        if wp.dimension != dimension:
            raise InvalidArgument(f"points[{i}] has dimension {wp.dimension}, "
                                  f"expected {dimension}")

    vectors = torch.stack([wp.vector for wp in points])
    weights = torch.tensor([wp.weight for wp in points], dtype=torch.float32)
    return vectors, weights


def check_n_clusters(n_clusters: int, n_samples: Optional[int] = None) -> None:
    """Validate a single cluster count.

    Raises:
        InvalidArgument: If non-positive or larger than n_samples
    """
    if isinstance(n_clusters, bool) or not isinstance(n_clusters, (int, np.integer)):
        raise InvalidArgument(f"n_clusters must be int, got {type(n_clusters)}")

    if n_clusters <= 0:
        raise InvalidArgument(f"n_clusters must be positive, got {n_clusters}")

    if n_samples is not None and n_clusters > n_samples:
        raise InvalidArgument(f"n_clusters ({n_clusters}) cannot be larger than "
                              f"n_samples ({n_samples})")


def check_cluster_counts(cluster_counts: Sequence[int]) -> List[int]:
    """Validate a grid of requested cluster counts, preserving its order."""
    counts = list(cluster_counts)
    if not counts:
        raise InvalidArgument("No cluster counts specified")
    for k in counts:
        check_n_clusters(k)
    return [int(k) for k in counts]


def check_random_state(random_state: Optional[Union[int, torch.Generator]]) -> Optional[torch.Generator]:
    """Create generator from random state.

    Args:
        random_state: Seed or generator

    Returns:
        Generator or None
    """
    if random_state is None:
        return None
    elif isinstance(random_state, (int, np.integer)):
        generator = torch.Generator()
        generator.manual_seed(int(random_state))
        return generator
    elif isinstance(random_state, torch.Generator):
        return random_state
    else:
        raise TypeError(f"random_state must be int or Generator, got {type(random_state)}")
