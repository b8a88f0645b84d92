"""
Core data structures for the k-means|| pipeline.

Points, weighted candidates, immutable center sets and the small result
records passed between the index, the seeding engine and the orchestrator.
"""

from typing import Optional, List, Tuple, Iterator, Sequence, Union
from dataclasses import dataclass
import torch
from torch import Tensor

from .errors import InvalidArgument


def _as_vector(value: Union[Tensor, Sequence[float]]) -> Tensor:
    if isinstance(value, Tensor):
        vector = value.detach().to(dtype=torch.float32)
    else:
        vector = torch.tensor(value, dtype=torch.float32)
    if vector.dim() != 1:
        raise InvalidArgument(f"Expected 1D vector, got {vector.dim()}D")
    return vector


@dataclass(frozen=True, eq=False)
class Point:
    """A fixed-dimension vector with an optional identifier.

    The identifier is opaque and only used to attribute assignment output.
    """

    vector: Tensor
    id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'vector', _as_vector(self.vector))

    @property
    def dimension(self) -> int:
        return self.vector.shape[0]


@dataclass(frozen=True, eq=False)
class WeightedPoint:
    """A candidate vector together with a non-negative weight."""

    vector: Tensor
    weight: float

    def __post_init__(self):
        object.__setattr__(self, 'vector', _as_vector(self.vector))
        weight = float(self.weight)
        if weight < 0 or weight != weight:
            raise InvalidArgument(f"Weight must be non-negative, got {self.weight}")
        object.__setattr__(self, 'weight', weight)

    @property
    def dimension(self) -> int:
        return self.vector.shape[0]

    def merge(self, other: 'WeightedPoint') -> 'WeightedPoint':
        """Combine two weights for the same vector."""
        if other.dimension != self.dimension:
            raise InvalidArgument(f"Cannot merge dimension {other.dimension} "
                                  f"into dimension {self.dimension}")
        return WeightedPoint(self.vector, self.weight + other.weight)


class Centers:
    """An ordered, immutable sequence of cluster centers.

    The position of a center in the sequence is its stable id within this
    configuration. Duplicate centers are allowed.
    """

    def __init__(self, centers: Union[Tensor, Sequence[Tensor], Sequence[Sequence[float]]]):
        """
        Args:
            centers: (k, d) tensor or a non-empty sequence of 1D vectors
        """
        if isinstance(centers, Tensor):
            data = centers.detach().to(dtype=torch.float32).clone()
        else:
            if len(centers) == 0:
                raise InvalidArgument("No centers specified")
            data = torch.stack([_as_vector(c) for c in centers])

        if data.dim() != 2:
            raise InvalidArgument(f"Expected 2D tensor of centers, got {data.dim()}D")
        if data.shape[0] == 0:
            raise InvalidArgument("No centers specified")

        data.requires_grad_(False)
        self._data = data

    @property
    def dimension(self) -> int:
        return self._data.shape[1]

    @property
    def tensor(self) -> Tensor:
        """(k, d) copy of the centers."""
        return self._data.clone()

    def __len__(self) -> int:
        return self._data.shape[0]

    def __getitem__(self, index: int) -> Tensor:
        return self._data[index].clone()

    def __iter__(self) -> Iterator[Tensor]:
        for i in range(len(self)):
            yield self[i]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Centers):
            return NotImplemented
        return self._data.shape == other._data.shape and torch.equal(self._data, other._data)

    def __repr__(self) -> str:
        return f"Centers(n_centers={len(self)}, dimension={self.dimension})"

    def closest(self, points: Tensor) -> Tuple[Tensor, Tensor]:
        """Closest center id and squared distance for each of (n, d) points."""
        if points.dim() != 2 or points.shape[1] != self.dimension:
            raise InvalidArgument(f"Expected points of shape (n, {self.dimension}), "
                                  f"got {tuple(points.shape)}")
        diff = points.unsqueeze(1) - self._data.unsqueeze(0)
        sq_dists = torch.sum(diff * diff, dim=2)
        distances, ids = torch.min(sq_dists, dim=1)
        return ids, distances

    def index_of_closest(self, vector: Tensor) -> Tuple[int, float]:
        """Closest center id and squared distance for a single vector."""
        ids, distances = self.closest(_as_vector(vector).unsqueeze(0))
        return int(ids[0].item()), float(distances[0].item())

    def cost(self, points: Tensor, weights: Optional[Tensor] = None) -> float:
        """Weighted sum of squared distances from points to their closest center."""
        if points.shape[0] == 0:
            return 0.0
        _, distances = self.closest(points)
        if weights is not None:
            distances = distances * weights.to(distances.dtype)
        return float(distances.double().sum().item())


@dataclass(frozen=True)
class Distances:
    """Result of one index query: per active fold, closest id and squared distance."""

    closest_points: List[int]
    cluster_distances: List[float]


@dataclass(frozen=True)
class Assignment:
    """Closest center of one point within one center configuration."""

    point_id: Optional[str]
    cluster_id: int
    closest_center_id: int
    distance: float


@dataclass(frozen=True)
class ClusteringResult:
    """Best local refinement result for one requested cluster count."""

    n_clusters: int
    centers: Centers
    cost: float
    restart: int
    seed: int


@dataclass(frozen=True)
class EvaluationResult:
    """Cross-validation statistics for one requested cluster count."""

    n_clusters: int
    test_cost: float
    train_cost: float
    prediction_strength: float
    stable_clusters: int
    stable_points: float
