"""
Approximate closest-center index over per-fold candidate sets.

Each fold owns an append-only arena of candidate centers. Alongside it the
index keeps a random-hyperplane sketch of every center: ``projection_samples``
independent tables, each keyed by the ``projection_bits``-bit pattern of signs
of the center's dot products with that table's hyperplanes. A query only
scores the centers sharing at least one bucket with it, and falls back to an
exact scan of the fold when no bucket matches.

Mutation and querying of a fold must not interleave. The seeding engine
scores every point inside a ``query_phase()`` and only adds the sampled
points after the phase has closed; ``add`` refuses to run while a phase is
open.
"""

from contextlib import contextmanager
from typing import Dict, List, Optional, Sequence
import threading
import torch
from torch import Tensor

from ..base.data_structures import Centers, Distances, WeightedPoint
from ..base.errors import InvalidArgument, InvalidState
from ..utils.random import resolve_seed
from ..utils.validation import validate_vector


class _FoldCenters:
    """Arena of centers and bucket tables for one fold."""

    def __init__(self, projection_samples: int):
        self.vectors: List[Tensor] = []
        self.tables: List[Dict[int, List[int]]] = [dict() for _ in range(projection_samples)]
        self.version = 0
        self._stacked: Optional[Tensor] = None

    def append(self, vector: Tensor, keys: List[int]) -> int:
        center_id = len(self.vectors)
        self.vectors.append(vector)
        for table, key in zip(self.tables, keys):
            table.setdefault(key, []).append(center_id)
        self.version += 1
        self._stacked = None
        return center_id

    def stacked(self) -> Tensor:
        if self._stacked is None:
            self._stacked = torch.stack(self.vectors)
        return self._stacked

    def __len__(self) -> int:
        return len(self.vectors)


class CentersIndex:
    """Per-fold candidate centers with locality-sensitive closest-center queries.

    Parameters
    ----------
    num_folds : int
        Number of independent center sets
    dimension : int
        Dimension of every center and query point
    projection_bits : int, default=16
        Hyperplanes per table; the bucket key is this many bits wide (1-62)
    projection_samples : int, default=8
        Number of independent hash tables
    seed : int, optional
        Seed for the random hyperplanes
    """

    def __init__(self,
                 num_folds: int,
                 dimension: int,
                 projection_bits: int = 16,
                 projection_samples: int = 8,
                 seed: Optional[int] = None):
        if num_folds < 1:
            raise InvalidArgument(f"num_folds must be positive, got {num_folds}")
        if dimension < 1:
            raise InvalidArgument(f"dimension must be positive, got {dimension}")
        if not 1 <= projection_bits <= 62:
            raise InvalidArgument(f"projection_bits must be in [1, 62], got {projection_bits}")
        if projection_samples < 1:
            raise InvalidArgument(f"projection_samples must be positive, got {projection_samples}")

        self.dimension = dimension
        self.projection_bits = projection_bits
        self.projection_samples = projection_samples
        self.seed = resolve_seed(seed)

        generator = torch.Generator()
        generator.manual_seed(self.seed)
        projections = torch.randn(projection_samples * projection_bits, dimension,
                                  generator=generator)
        self._projections = projections / torch.norm(projections, dim=1, keepdim=True).clamp(min=1e-12)
        self._powers = 2 ** torch.arange(projection_bits, dtype=torch.int64)

        self._folds = [_FoldCenters(projection_samples) for _ in range(num_folds)]
        self._open_queries = 0
        self._lock = threading.Lock()

    @classmethod
    def from_centers(cls, centers: Sequence[Centers],
                     projection_bits: int = 16,
                     projection_samples: int = 8,
                     seed: Optional[int] = None) -> 'CentersIndex':
        """Index with one fold per center configuration."""
        if len(centers) == 0:
            raise InvalidArgument("No centers specified")
        dimension = centers[0].dimension
        index = cls(len(centers), dimension, projection_bits, projection_samples, seed)
        for fold, config in enumerate(centers):
            if config.dimension != dimension:
                raise InvalidArgument(f"centers[{fold}] has dimension {config.dimension}, "
                                      f"expected {dimension}")
            for center in config:
                index.add(center, fold)
        return index

    @property
    def num_folds(self) -> int:
        return len(self._folds)

    def sketch(self, vector: Tensor) -> List[int]:
        """Bucket key of ``vector`` in each of the hash tables."""
        bits = (torch.mv(self._projections, vector) > 0).view(self.projection_samples,
                                                              self.projection_bits)
        return (bits.long() * self._powers).sum(dim=1).tolist()

    @contextmanager
    def query_phase(self):
        """Mark a read-only phase during which ``add`` is refused."""
        with self._lock:
            self._open_queries += 1
        try:
            yield self
        finally:
            with self._lock:
                self._open_queries -= 1

    def _check_fold(self, fold: int) -> _FoldCenters:
        if not 0 <= fold < len(self._folds):
            raise InvalidArgument(f"fold must be in [0, {len(self._folds)}), got {fold}")
        return self._folds[fold]

    def add(self, vector: Tensor, fold: int) -> int:
        """Append a center to ``fold`` and return its id.

        Raises:
            InvalidState: If a query phase is open
        """
        fold_centers = self._check_fold(fold)
        vector = validate_vector(vector, self.dimension).clone()
        with self._lock:
            if self._open_queries:
                raise InvalidState("Cannot add centers while a query phase is open")
            return fold_centers.append(vector, self.sketch(vector))

    def get_distances(self, vector: Tensor, approximate: bool = True) -> Distances:
        """Closest center id and squared distance in every fold.

        Args:
            vector: (d,) query point
            approximate: Restrict the search to centers sharing a sketch bucket

        Raises:
            InvalidState: If any fold has no centers
        """
        vector = validate_vector(vector, self.dimension)
        keys = self.sketch(vector) if approximate else None

        closest_points = []
        cluster_distances = []
        for fold, fold_centers in enumerate(self._folds):
            if len(fold_centers) == 0:
                raise InvalidState(f"Fold {fold} has no centers to query")

            candidates = None
            if approximate:
                matched = set()
                for table, key in zip(fold_centers.tables, keys):
                    matched.update(table.get(key, ()))
                if matched:
                    candidates = sorted(matched)

            stacked = fold_centers.stacked()
            if candidates is not None:
                ids = torch.tensor(candidates, dtype=torch.long)
                diff = stacked[ids] - vector
            else:
                ids = None
                diff = stacked - vector
            distances = torch.sum(diff * diff, dim=1)
            best = int(torch.argmin(distances).item())

            closest_points.append(candidates[best] if ids is not None else best)
            cluster_distances.append(float(distances[best].item()))

        return Distances(closest_points, cluster_distances)

    def get_weighted_vectors(self, counts_per_fold: Sequence[Sequence[float]]) -> List[List[WeightedPoint]]:
        """Pair every fold's centers with their point counts.

        Raises:
            InvalidArgument: If the counts do not line up with the centers
        """
        if len(counts_per_fold) != len(self._folds):
            raise InvalidArgument(f"Expected counts for {len(self._folds)} folds, "
                                  f"got {len(counts_per_fold)}")

        weighted = []
        for fold, (fold_centers, counts) in enumerate(zip(self._folds, counts_per_fold)):
            if len(counts) != len(fold_centers):
                raise InvalidArgument(f"Fold {fold} has {len(fold_centers)} centers "
                                      f"but {len(counts)} counts")
            weighted.append([WeightedPoint(v, float(c))
                             for v, c in zip(fold_centers.vectors, counts)])
        return weighted

    def get_centers(self, fold: int) -> Centers:
        """Snapshot of the centers of one fold."""
        fold_centers = self._check_fold(fold)
        if len(fold_centers) == 0:
            raise InvalidState(f"Fold {fold} has no centers")
        return Centers(fold_centers.stacked())

    def get_version(self, fold: int) -> int:
        """Number of adds applied to a fold so far."""
        return self._check_fold(fold).version

    def get_points_per_cluster(self) -> List[int]:
        """Number of centers in each fold."""
        return [len(f) for f in self._folds]

    def get_num_centers(self) -> int:
        """Number of center configurations (folds) in the index."""
        return len(self._folds)

    def __repr__(self) -> str:
        return (f"CentersIndex(num_folds={self.num_folds}, dimension={self.dimension}, "
                f"projection_bits={self.projection_bits}, "
                f"projection_samples={self.projection_samples})")
