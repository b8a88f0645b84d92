"""
Weighted K-means for local refinement of k-means|| candidates.

Clusters the small weighted candidate set produced by the seeding engine on a
single machine: K-means++ (or random) initialization followed by weighted
Lloyd's iterations until the stopping criterion fires.
"""

from typing import Optional, Sequence, Union
import time
import warnings
import torch
from torch import Tensor

from ..base.data_structures import Centers, WeightedPoint
from ..base.errors import InsufficientCandidates, InvalidArgument
from ..base.interfaces import InitializationStrategy, StoppingCriterion
from ..initialization.kmeans_plusplus import KMeansPlusPlusInit
from ..initialization.random import RandomInit
from ..utils.convergence import default_stopping_criterion
from ..utils.metrics import assign_closest, inertia
from ..utils.validation import validate_weighted_points, check_n_clusters, check_random_state


class KMeans:
    """Weighted K-means clustering.

    Parameters
    ----------
    init : str or InitializationStrategy, default='k-means++'
        Initialization method:
        - 'k-means++' : K-means++ initialization
        - 'random' : Random initialization
        - an InitializationStrategy instance
    stopping_criterion : StoppingCriterion, optional
        When to stop Lloyd's iterations; defaults to center movement
        below 1e-4 or 100 iterations
    verbose : int, default=0
        Verbosity level
    device : torch.device, optional
        Device for computation

    Attributes
    ----------
    cluster_centers_ : Centers
        Centers of the last fit
    inertia_ : float
        Weighted sum of squared distances to the nearest center
    n_iter_ : int
        Number of iterations run
    """

    def __init__(self,
                 init: Union[str, InitializationStrategy] = 'k-means++',
                 stopping_criterion: Optional[StoppingCriterion] = None,
                 verbose: int = 0,
                 device: Optional[torch.device] = None):
        self.init = init
        self.stopping_criterion = stopping_criterion or default_stopping_criterion()
        self.verbose = verbose
        self.device = device if device is not None else torch.device('cpu')

        self.initialization_strategy = self._create_initialization()

        self.cluster_centers_: Optional[Centers] = None
        self.inertia_: Optional[float] = None
        self.n_iter_ = 0
        self.fitted_ = False

    def _create_initialization(self) -> InitializationStrategy:
        if isinstance(self.init, InitializationStrategy):
            return self.init
        if self.init == 'k-means++':
            return KMeansPlusPlusInit()
        elif self.init == 'random':
            return RandomInit()
        raise InvalidArgument(f"Unknown init method: {self.init}")

    def compute(self, points: Sequence[WeightedPoint], n_clusters: int,
                random_state: Optional[Union[int, torch.Generator]] = None) -> Centers:
        """Cluster weighted points into ``n_clusters`` centers.

        Does not touch the fitted attributes, so one instance can serve many
        concurrent trials.

        Raises:
            InvalidArgument: If n_clusters is not positive
            InsufficientCandidates: If there are fewer points than clusters
        """
        check_n_clusters(n_clusters)
        X, weights = validate_weighted_points(points)
        if X.shape[0] < n_clusters:
            raise InsufficientCandidates(X.shape[0], n_clusters)

        centers, _, _ = self._lloyd(X.to(self.device), weights.to(self.device),
                                    n_clusters, check_random_state(random_state))
        return Centers(centers.cpu())

    def fit(self, points: Sequence[WeightedPoint], n_clusters: int,
            random_state: Optional[Union[int, torch.Generator]] = None) -> 'KMeans':
        """Cluster weighted points and store the result on the estimator."""
        check_n_clusters(n_clusters)
        X, weights = validate_weighted_points(points)
        if X.shape[0] < n_clusters:
            raise InsufficientCandidates(X.shape[0], n_clusters)

        X = X.to(self.device)
        weights = weights.to(self.device)
        centers, objective, n_iter = self._lloyd(X, weights, n_clusters,
                                                 check_random_state(random_state))

        self.cluster_centers_ = Centers(centers.cpu())
        self.inertia_ = objective
        self.n_iter_ = n_iter
        self.fitted_ = True
        return self

    def predict(self, X: Tensor) -> Tensor:
        """Closest center index for each row of X."""
        if not self.fitted_:
            raise RuntimeError("Model must be fitted before calling predict")
        labels, _ = self.cluster_centers_.closest(X.to(torch.float32))
        return labels

    def _lloyd(self, X: Tensor, weights: Tensor, n_clusters: int,
               generator: Optional[torch.Generator]):
        """Weighted Lloyd's iterations from an initial set of centers."""
        start_time = time.time()
        centers = self.initialization_strategy.initialize(X, weights, n_clusters, generator)

        objective = None
        n_iter = 0
        converged = False
        while not converged:
            iter_start_time = time.time()

            # Assignment step
            labels, _ = assign_closest(X, centers)

            # Update step: weighted means; empty clusters keep their center
            sums = torch.zeros_like(centers).index_add_(0, labels, X * weights.unsqueeze(1))
            totals = torch.zeros(n_clusters, dtype=X.dtype, device=X.device).index_add_(0, labels, weights)
            occupied = totals > 0
            new_centers = centers.clone()
            new_centers[occupied] = sums[occupied] / totals[occupied].unsqueeze(1)

            shift = torch.norm(new_centers - centers, dim=1).max().item()
            centers = new_centers

            previous_objective = objective
            labels, _ = assign_closest(X, centers)
            objective = inertia(X, labels, centers, weights)

            converged = self.stopping_criterion.check({
                'iteration': n_iter,
                'center_shift': shift,
                'objective': objective,
                'previous_objective': previous_objective
            })

            if self.verbose >= 2:
                print(f"Iteration {n_iter:3d}: objective = {objective:.6f} "
                      f"shift = {shift:.6f} ({time.time() - iter_start_time:.3f}s)")
            n_iter += 1

        if self.verbose:
            if not _settled(self.stopping_criterion, shift, objective, previous_objective):
                warnings.warn(f"Stopped after {n_iter} iterations before the centers settled "
                              f"(last shift {shift:.6f})")
            print(f"K-means (k={n_clusters}): objective = {objective:.6f} after "
                  f"{n_iter} iterations ({time.time() - start_time:.3f}s)")

        return centers, objective, n_iter


def _settled(criterion: StoppingCriterion, shift: float, objective: float,
             previous_objective) -> bool:
    """Whether ``criterion`` stops on the final state with iteration limits taken out."""
    return shift == 0 or criterion.check({'iteration': -1, 'center_shift': shift,
                                          'objective': objective,
                                          'previous_objective': previous_objective})


def refine(points: Sequence[WeightedPoint], n_clusters: int,
           seed: Optional[int] = None,
           stopping_criterion: Optional[StoppingCriterion] = None) -> Centers:
    """Local refinement: weighted K-means++ plus Lloyd's iterations."""
    return KMeans(stopping_criterion=stopping_criterion).compute(points, n_clusters, seed)
