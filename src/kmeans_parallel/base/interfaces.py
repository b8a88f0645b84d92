"""
Core interfaces for the k-means|| pipeline.

Abstract base classes for the pluggable pieces of local refinement:
how initial centers are chosen and when Lloyd's iterations stop.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import torch
from torch import Tensor


class StoppingCriterion(ABC):
    """Abstract base class for local refinement stopping rules.

    Criteria are stateless: everything they need is passed in ``current_state``,
    so one instance can be shared read-only by many concurrent trials.
    Criteria compose with ``|`` (stop when any says stop) and ``&``
    (stop when all say stop).
    """

    @abstractmethod
    def check(self, current_state: Dict[str, Any]) -> bool:
        """Check if refinement should stop.

        Args:
            current_state: Dictionary with at least
                - 'iteration': zero-based iteration just completed
                - 'center_shift': largest center movement in this iteration
                - 'objective': weighted cost after this iteration

        Returns:
            True to stop, False to keep iterating
        """
        pass

    def __or__(self, other: 'StoppingCriterion') -> 'StoppingCriterion':
        from ..utils.convergence import CombinedCriterion
        return CombinedCriterion([self, other], mode='any')

    def __and__(self, other: 'StoppingCriterion') -> 'StoppingCriterion':
        from ..utils.convergence import CombinedCriterion
        return CombinedCriterion([self, other], mode='all')


class InitializationStrategy(ABC):
    """Abstract base class for choosing initial centers from weighted points."""

    @abstractmethod
    def initialize(self, points: Tensor, weights: Tensor, n_clusters: int,
                   generator: Optional[torch.Generator] = None) -> Tensor:
        """Choose initial centers.

        Args:
            points: (n, d) candidate points
            weights: (n,) non-negative point weights
            n_clusters: Number of centers to choose
            generator: Random source for reproducible draws

        Returns:
            (n_clusters, d) tensor of initial centers
        """
        pass
