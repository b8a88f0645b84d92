"""
kmeans_parallel: scalable k-means|| seeding and multi-run clustering.

This package implements the k-means|| initialization of Bahmani et al.
over a partitioned dataset, including:
- An approximate closest-center index (random-hyperplane sketches)
- Distributed weighted reservoir sampling
- Cross-folded seeding in a single set of passes
- Weighted K-means refinement over a grid of cluster counts
- Prediction-strength evaluation of the resulting clusterings

Example usage:
    >>> import torch
    >>> from kmeans_parallel import LocalDataset, Crossfold, KMeansParallel, MultiRunOrchestrator
    >>>
    >>> # Partition the data
    >>> X = torch.randn(10000, 5)
    >>> points = LocalDataset.from_tensor(X, num_partitions=4)
    >>>
    >>> # Seed two folds with k-means||
    >>> kmp = KMeansParallel(random_state=0, verbose=1)
    >>> sketches = kmp.initialization(points, 5, 50, [X[0]], Crossfold(2, seed=0))
    >>>
    >>> # Cluster the sketches and cross-validate
    >>> results, evaluation = MultiRunOrchestrator(random_state=0).run(sketches, [2, 4, 8])
"""

__version__ = '0.1.0'

# Core data model
from .base import (
    Point,
    WeightedPoint,
    Centers,
    Distances,
    Assignment,
    ClusteringResult,
    EvaluationResult,
    KMeansParallelError,
    InvalidArgument,
    InvalidState,
    InsufficientCandidates,
    TrialFailure
)

# Seeding pipeline
from .dataset import Dataset, LocalDataset, Crossfold
from .index import CentersIndex
from .sampling import WeightedReservoir, grouped_weighted_sample
from .initialization import KMeansParallel, KMeansPlusPlusInit, RandomInit

# Local refinement and orchestration
from .algorithms import KMeans, refine
from .orchestration import run_grid, cross_validate, evaluate, KMeansEvaluation, MultiRunOrchestrator
from .utils import threshold, max_iterations, any_of, all_of

# Import visualization
from .visualization import plot_clusters_2d, plot_weighted_candidates

__all__ = [
    # Data model
    'Point',
    'WeightedPoint',
    'Centers',
    'Distances',
    'Assignment',
    'ClusteringResult',
    'EvaluationResult',

    # Errors
    'KMeansParallelError',
    'InvalidArgument',
    'InvalidState',
    'InsufficientCandidates',
    'TrialFailure',

    # Seeding
    'Dataset',
    'LocalDataset',
    'Crossfold',
    'CentersIndex',
    'WeightedReservoir',
    'grouped_weighted_sample',
    'KMeansParallel',
    'KMeansPlusPlusInit',
    'RandomInit',

    # Refinement and orchestration
    'KMeans',
    'refine',
    'run_grid',
    'cross_validate',
    'evaluate',
    'KMeansEvaluation',
    'MultiRunOrchestrator',

    # Stopping criteria
    'threshold',
    'max_iterations',
    'any_of',
    'all_of',

    # Visualization
    'plot_clusters_2d',
    'plot_weighted_candidates',

    # Version
    '__version__'
]
