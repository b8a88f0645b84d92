"""Grid clustering of k-means|| sketches and cross-validated evaluation."""

from .grid import run_grid, cross_validate, MultiRunOrchestrator
from .evaluation import KMeansEvaluation, evaluate

__all__ = [
    'run_grid',
    'cross_validate',
    'MultiRunOrchestrator',
    'KMeansEvaluation',
    'evaluate'
]
