"""
Random initialization strategy.

Selects random candidates (without replacement, proportional to weight) as
the initial cluster centers.
"""

from typing import Optional
import torch
from torch import Tensor

from ..base.interfaces import InitializationStrategy
from ..base.errors import InsufficientCandidates


class RandomInit(InitializationStrategy):
    """Random initialization by selecting weighted candidates."""

    def initialize(self, points: Tensor, weights: Tensor, n_clusters: int,
                   generator: Optional[torch.Generator] = None) -> Tensor:
        """Initialize clusters with random candidates.

        Args:
            points: (n, d) candidate points
            weights: (n,) non-negative weights
            n_clusters: Number of clusters
            generator: Random source

        Returns:
            (n_clusters, d) initial centers
        """
        n_points = points.shape[0]

        if n_clusters > n_points:
            raise InsufficientCandidates(n_points, n_clusters)

        # Zero-weight candidates are only picked once positive ones run out.
        probabilities = weights.double().clamp(min=0) + 1e-12
        indices = torch.multinomial(probabilities / probabilities.sum(), n_clusters,
                                    replacement=False, generator=generator)

        return points[indices].clone()
