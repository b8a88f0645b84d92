"""Initialization strategies: k-means|| seeding and local K-means++/random starts."""

from .random import RandomInit
from .kmeans_plusplus import KMeansPlusPlusInit
from .kmeans_parallel import KMeansParallel

__all__ = [
    'RandomInit',
    'KMeansPlusPlusInit',
    'KMeansParallel'
]
