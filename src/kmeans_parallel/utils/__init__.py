"""Utility functions for the k-means|| pipeline."""

from .convergence import (
    CenterShiftThreshold,
    ChangeInObjective,
    MaxIterations,
    CombinedCriterion,
    threshold,
    max_iterations,
    any_of,
    all_of,
    default_stopping_criterion
)

from .metrics import (
    pairwise_sq_distances,
    assign_closest,
    weighted_cost,
    inertia
)

from .validation import (
    validate_data,
    validate_vector,
    validate_weighted_points,
    check_n_clusters,
    check_cluster_counts,
    check_random_state
)

from .random import (
    resolve_seed,
    derive_seed,
    derive_rng
)

__all__ = [
    # Stopping criteria
    'CenterShiftThreshold',
    'ChangeInObjective',
    'MaxIterations',
    'CombinedCriterion',
    'threshold',
    'max_iterations',
    'any_of',
    'all_of',
    'default_stopping_criterion',

    # Metrics
    'pairwise_sq_distances',
    'assign_closest',
    'weighted_cost',
    'inertia',

    # Validation
    'validate_data',
    'validate_vector',
    'validate_weighted_points',
    'check_n_clusters',
    'check_cluster_counts',
    'check_random_state',

    # Random sources
    'resolve_seed',
    'derive_seed',
    'derive_rng'
]
