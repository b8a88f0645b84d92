"""
Weighted K-means++ initialization strategy.

Selects initial cluster centers from a weighted candidate set, choosing
centers that are far apart to improve convergence speed and quality.
"""

from typing import Optional
import math
import torch
from torch import Tensor

from ..base.interfaces import InitializationStrategy
from ..base.errors import InsufficientCandidates


class KMeansPlusPlusInit(InitializationStrategy):
    """K-means++ initialization on weighted points.

    Algorithm:
    1. Choose first center with probability proportional to weight
    2. For each remaining center:
       - Compute distance from each point to nearest existing center
       - Sample a few candidates with probability proportional to weight * squared distance
       - Keep the candidate that lowers the weighted cost the most
    """

    def __init__(self, n_local_trials: Optional[int] = None):
        """
        Args:
            n_local_trials: Number of candidates to try for each center.
                           If None, uses 2 + log(k) as in sklearn
        """
        self.n_local_trials = n_local_trials

    def initialize(self, points: Tensor, weights: Tensor, n_clusters: int,
                   generator: Optional[torch.Generator] = None) -> Tensor:
        """Initialize cluster centers using K-means++.

        Args:
            points: (n, d) candidate points
            weights: (n,) non-negative weights
            n_clusters: Number of clusters
            generator: Random source

        Returns:
            (n_clusters, d) initial centers
        """
        n_points, dimension = points.shape

        if n_clusters > n_points:
            raise InsufficientCandidates(n_points, n_clusters)

        if self.n_local_trials is None:
            n_local_trials = 2 + int(math.log(n_clusters))
        else:
            n_local_trials = self.n_local_trials

        # All-zero weights degrade to uniform choice.
        if weights.sum() <= 0:
            weights = torch.ones_like(weights)

        chosen = torch.zeros(n_points, dtype=torch.bool)
        first_idx = _sample(weights, 1, generator)[0]
        center_indices = [first_idx]
        chosen[first_idx] = True

        distances = torch.sum((points - points[first_idx].unsqueeze(0)) ** 2, dim=1)

        for _ in range(1, n_clusters):
            potential_weights = weights * distances
            if potential_weights.sum() <= 0:
                # Every remaining point coincides with a center; fall back to
                # weight among the points not yet chosen.
                fallback = torch.where(chosen, torch.zeros_like(weights), weights)
                if fallback.sum() <= 0:
                    fallback = (~chosen).to(weights.dtype)
                best_candidate = _sample(fallback, 1, generator)[0]
            else:
                candidates = _sample(potential_weights, n_local_trials, generator)

                best_potential = float('inf')
                best_candidate = None
                for idx in candidates:
                    candidate_distances = torch.sum((points - points[idx].unsqueeze(0)) ** 2, dim=1)
                    new_distances = torch.minimum(distances, candidate_distances)
                    potential = (weights * new_distances).sum().item()

                    if potential < best_potential:
                        best_potential = potential
                        best_candidate = idx

            center_indices.append(best_candidate)
            chosen[best_candidate] = True
            new_center_distances = torch.sum((points - points[best_candidate].unsqueeze(0)) ** 2, dim=1)
            distances = torch.minimum(distances, new_center_distances)

        return points[center_indices].clone()


def _sample(weights: Tensor, n_samples: int, generator: Optional[torch.Generator]) -> list:
    """Indices drawn with replacement, probability proportional to weights."""
    probabilities = weights.double() / weights.double().sum()
    return torch.multinomial(probabilities, n_samples, replacement=True,
                             generator=generator).tolist()
