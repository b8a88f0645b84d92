"""
Distance and cost helpers shared by local refinement and evaluation.
"""

from typing import Optional
import torch
from torch import Tensor


def pairwise_sq_distances(X: Tensor, Y: Tensor) -> Tensor:
    """Squared Euclidean distances between the rows of X (n, d) and Y (m, d).

    Returns:
        (n, m) distance matrix
    """
    # ||x - y||² = ||x||² + ||y||² - 2<x,y>
    X_norm = (X ** 2).sum(dim=1, keepdim=True)
    Y_norm = (Y ** 2).sum(dim=1, keepdim=True)
    XY = torch.matmul(X, Y.t())
    distances = X_norm + Y_norm.t() - 2 * XY
    return torch.clamp(distances, min=0.0)  # Numerical safety


def assign_closest(X: Tensor, centers: Tensor) -> tuple:
    """Closest center index and exact squared distance for every row of X."""
    labels = torch.argmin(pairwise_sq_distances(X, centers), dim=1)
    diff = X - centers[labels]
    return labels, torch.sum(diff * diff, dim=1)


def weighted_cost(X: Tensor, centers: Tensor, weights: Optional[Tensor] = None) -> float:
    """Weighted sum of squared distances to the closest center."""
    if X.shape[0] == 0:
        return 0.0
    _, distances = assign_closest(X, centers)
    if weights is not None:
        distances = distances * weights
    return float(distances.double().sum().item())


def inertia(X: Tensor, labels: Tensor, centers: Tensor,
            weights: Optional[Tensor] = None) -> float:
    """Weighted within-cluster sum of squares for given labels."""
    diff = X - centers[labels]
    distances = torch.sum(diff * diff, dim=1)
    if weights is not None:
        distances = distances * weights
    return float(distances.double().sum().item())
