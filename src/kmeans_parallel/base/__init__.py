"""Base data model, interfaces and errors for the k-means|| pipeline."""

from .interfaces import (
    StoppingCriterion,
    InitializationStrategy
)

from .data_structures import (
    Point,
    WeightedPoint,
    Centers,
    Distances,
    Assignment,
    ClusteringResult,
    EvaluationResult
)

from .errors import (
    KMeansParallelError,
    InvalidArgument,
    InvalidState,
    InsufficientCandidates,
    TrialFailure
)

__all__ = [
    # Interfaces
    'StoppingCriterion',
    'InitializationStrategy',

    # Data structures
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
    'TrialFailure'
]
