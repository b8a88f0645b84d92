"""Visualization utilities for k-means|| runs."""

from .plot_clusters import (
    plot_clusters_2d,
    plot_weighted_candidates
)

__all__ = [
    'plot_clusters_2d',
    'plot_weighted_candidates'
]
