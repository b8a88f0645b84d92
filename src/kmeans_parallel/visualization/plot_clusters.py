"""
Diagnostic plots for k-means|| runs.

2D views of a final clustering and of the weighted candidate set the
seeding pass hands to local refinement.
"""

from typing import Optional, Sequence, Union, List
import torch
from torch import Tensor
import matplotlib.pyplot as plt
import numpy as np

from ..base.data_structures import Centers, WeightedPoint


def _to_numpy(values: Union[Tensor, Centers, np.ndarray]) -> np.ndarray:
    if isinstance(values, Centers):
        values = values.tensor
    if isinstance(values, Tensor):
        return values.detach().cpu().numpy()
    return np.asarray(values)


def plot_clusters_2d(X: Tensor,
                     labels: Tensor,
                     centers: Optional[Union[Tensor, Centers]] = None,
                     ax: Optional[plt.Axes] = None,
                     colors: Optional[List[str]] = None,
                     alpha: float = 0.7,
                     center_marker: str = 'X',
                     center_size: int = 200,
                     point_size: int = 50,
                     show_legend: bool = True,
                     title: Optional[str] = None) -> plt.Axes:
    """Plot 2D clustering results.

    Args:
        X: (n, 2) data points
        labels: (n,) cluster labels
        centers: Optional (k, 2) cluster centers
        ax: Matplotlib axes (created if None)
        colors: List of colors for clusters
        alpha: Point transparency
        center_marker: Marker for centers
        center_size: Size of center markers
        point_size: Size of data points
        show_legend: Whether to show legend
        title: Plot title

    Returns:
        Matplotlib axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6))

    X_np = _to_numpy(X)
    labels_np = _to_numpy(labels)

    unique_labels = np.unique(labels_np)
    n_clusters = len(unique_labels)

    if colors is None:
        cmap = plt.get_cmap('tab10' if n_clusters <= 10 else 'tab20')
        colors = [cmap(i / max(n_clusters, 1)) for i in range(n_clusters)]

    for i, label in enumerate(unique_labels):
        mask = labels_np == label
        ax.scatter(X_np[mask, 0], X_np[mask, 1],
                   c=[colors[i % len(colors)]],
                   s=point_size,
                   alpha=alpha,
                   edgecolors='black',
                   linewidth=0.5,
                   label=f'Cluster {label}')

    if centers is not None:
        centers_np = _to_numpy(centers)
        ax.scatter(centers_np[:, 0], centers_np[:, 1],
                   c='black',
                   marker=center_marker,
                   s=center_size,
                   edgecolors='white',
                   linewidth=2,
                   label='Centers',
                   zorder=10)

    ax.set_xlabel('Feature 1')
    ax.set_ylabel('Feature 2')

    if title:
        ax.set_title(title)

    if show_legend:
        ax.legend()

    return ax


def plot_weighted_candidates(candidates: Sequence[WeightedPoint],
                             ax: Optional[plt.Axes] = None,
                             centers: Optional[Union[Tensor, Centers]] = None,
                             max_marker_size: float = 400.0,
                             color: str = 'tab:blue',
                             title: Optional[str] = None) -> plt.Axes:
    """Scatter the first two coordinates of weighted candidates.

    Marker area is proportional to weight, so the densest regions of the
    original data stand out.

    Args:
        candidates: Weighted candidates from one fold
        ax: Matplotlib axes (created if None)
        centers: Optional final centers to overlay
        max_marker_size: Marker area of the heaviest candidate
        color: Candidate color
        title: Plot title

    Returns:
        Matplotlib axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6))

    if len(candidates) > 0:
        vectors = torch.stack([c.vector for c in candidates]).cpu().numpy()
        weights = np.array([c.weight for c in candidates], dtype=float)
        top = weights.max()
        sizes = weights / top * max_marker_size if top > 0 else np.full_like(weights, 1.0)

        ax.scatter(vectors[:, 0], vectors[:, 1],
                   s=sizes,
                   c=color,
                   alpha=0.6,
                   edgecolors='black',
                   linewidth=0.5,
                   label=f'Candidates ({len(candidates)})')

    if centers is not None:
        centers_np = _to_numpy(centers)
        ax.scatter(centers_np[:, 0], centers_np[:, 1],
                   c='red',
                   marker='X',
                   s=200,
                   edgecolors='white',
                   linewidth=2,
                   label='Centers',
                   zorder=10)

    ax.set_xlabel('Feature 1')
    ax.set_ylabel('Feature 2')

    if title:
        ax.set_title(title)

    if len(candidates) > 0 or centers is not None:
        ax.legend()

    return ax
