"""Local refinement algorithms."""

from .kmeans import KMeans, refine

__all__ = [
    'KMeans',
    'refine'
]
