"""
K-means|| initialization over a partitioned dataset.

Implements the oversampling seeding of Bahmani et al. (2012), "Scalable
K-Means++". Each iteration scores every point against the current candidate
centers of its fold, samples ``samples_per_iteration`` points per fold with
probability proportional to squared distance, and adds them to the fold's
candidates. A final pass counts how many points are closest to each
candidate, giving a small weighted set that local refinement can cluster
on a single machine.

Several folds are seeded in the same passes over the data, which is what
makes cross-validated evaluation of the final clusterings cheap.
"""

from typing import Optional, List, Sequence, Union
import time
import torch
from torch import Tensor

from ..base.data_structures import Centers, Point, WeightedPoint, Assignment
from ..base.errors import InvalidArgument
from ..dataset.base import Dataset
from ..dataset.crossfold import Crossfold
from ..index.centers_index import CentersIndex
from ..sampling.reservoir import grouped_weighted_sample
from ..utils.random import resolve_seed, derive_seed
from ..utils.validation import validate_vector


def _vector_of(element) -> Tensor:
    return element.vector if isinstance(element, (Point, WeightedPoint)) else element


class KMeansParallel:
    """K-means|| seeding, cost and assignment passes over a Dataset.

    Parameters
    ----------
    projection_bits : int, default=16
        Hyperplanes per sketch table of the closest-center index
    projection_samples : int, default=8
        Number of sketch tables of the closest-center index
    random_state : int, optional
        Base seed for the index projections and the per-iteration sampling
    verbose : int, default=0
        Verbosity level (0=silent, 1=per-iteration progress)
    """

    def __init__(self,
                 projection_bits: int = 16,
                 projection_samples: int = 8,
                 random_state: Optional[int] = None,
                 verbose: int = 0):
        self.projection_bits = projection_bits
        self.projection_samples = projection_samples
        self.random_state = resolve_seed(random_state)
        self.verbose = verbose

    def _create_index(self, centers: Sequence[Centers]) -> CentersIndex:
        return CentersIndex.from_centers(centers, self.projection_bits,
                                         self.projection_samples,
                                         derive_seed(self.random_state, 0))

    def initialization(self,
                       points: Dataset,
                       num_iterations: int,
                       samples_per_iteration: int,
                       initial_points: Sequence[Union[Tensor, Point]],
                       crossfold: Optional[Crossfold] = None) -> List[List[WeightedPoint]]:
        """Run k-means|| and return the weighted candidates of every fold.

        At least five iterations are recommended. ``samples_per_iteration``
        should comfortably exceed the largest cluster count that will be
        requested from the candidates (2x or more).

        Args:
            points: Dataset of Points (or 1D tensors)
            num_iterations: Number of oversampling passes
            samples_per_iteration: Points sampled per fold per pass (L)
            initial_points: Seeds added to every fold before the first pass
            crossfold: Fold assignment; defaults to a single fold

        Returns:
            One list of WeightedPoint per fold; weights are the number of
            points closest to each candidate
        """
        if num_iterations < 0:
            raise InvalidArgument(f"num_iterations must be non-negative, got {num_iterations}")
        if samples_per_iteration < 1:
            raise InvalidArgument(f"samples_per_iteration must be positive, "
                                  f"got {samples_per_iteration}")
        if len(initial_points) == 0:
            raise InvalidArgument("At least one initial point is required")

        seeds = [validate_vector(p) for p in initial_points]
        dimension = seeds[0].shape[0]
        for i, s in enumerate(seeds):
            if s.shape[0] != dimension:
                raise InvalidArgument(f"initial_points[{i}] has dimension {s.shape[0]}, "
                                      f"expected {dimension}")

        if crossfold is None:
            crossfold = Crossfold(1)
        num_folds = crossfold.get_num_folds()
        l_values = [samples_per_iteration] * num_folds

        index = CentersIndex(num_folds, dimension, self.projection_bits,
                             self.projection_samples, derive_seed(self.random_state, 0))
        for seed_point in seeds:
            for fold in range(num_folds):
                index.add(seed_point, fold)

        folds = crossfold.apply(points)

        for iteration in range(num_iterations):
            iter_start_time = time.time()

            # Scoring and sampling must finish before any center is added.
            with index.query_phase():
                scores = folds.flat_map(_scoring_fn(index))
                sample = grouped_weighted_sample(
                    scores, l_values, derive_seed(self.random_state, 1, iteration)
                ).materialize()

            for fold, element in sample:
                index.add(_vector_of(element), fold)

            if self.verbose:
                sizes = index.get_points_per_cluster()
                print(f"Iteration {iteration:3d}: sampled {len(sample)} points, "
                      f"candidates per fold = {sizes} ({time.time() - iter_start_time:.3f}s)")

        counts = _counts_of_closest(folds, index)
        return index.get_weighted_vectors(counts)

    def seed(self, points: Dataset, num_iterations: int, samples_per_iteration: int,
             initial_points: Sequence[Union[Tensor, Point]],
             crossfold: Optional[Crossfold] = None) -> List[List[WeightedPoint]]:
        """Alias of :meth:`initialization`."""
        return self.initialization(points, num_iterations, samples_per_iteration,
                                   initial_points, crossfold)

    def get_counts_of_closest(self, points: Dataset, centers: Sequence[Centers]) -> List[List[int]]:
        """For every center of every configuration, count the points closest to it."""
        if len(centers) == 0:
            raise InvalidArgument("No centers specified")
        index = self._create_index(centers)
        return _counts_of_closest(points.map(lambda e: (0, e)), index, all_folds=True)

    def get_costs(self, points: Dataset, centers: Sequence[Centers]) -> List[float]:
        """Sum of squared distances from every point to each configuration."""
        if len(centers) == 0:
            raise InvalidArgument("No centers specified")
        index = self._create_index(centers)

        def point_costs(element):
            d = index.get_distances(_vector_of(element), False)
            return list(enumerate(d.cluster_distances))

        with index.query_phase():
            totals = dict(points.flat_map(point_costs)
                          .aggregate_by_key(lambda key, partition: 0.0,
                                            lambda acc, value: acc + value,
                                            lambda a, b: a + b)
                          .materialize())
        return [totals.get(i, 0.0) for i in range(len(centers))]

    def cost(self, points: Dataset, centers: Centers) -> float:
        """Sum of squared distances from every point to its closest center."""
        return self.get_costs(points, [centers])[0]

    def compute_cluster_assignments(self,
                                    points: Dataset,
                                    centers: Sequence[Centers],
                                    cluster_ids: Optional[Sequence[int]] = None) -> Dataset:
        """Closest center of every point in every configuration.

        Args:
            points: Dataset of Points; their ids label the output
            centers: Center configurations
            cluster_ids: Identifier of each configuration (defaults to position)

        Returns:
            Dataset of Assignment records, one per (point, configuration)
        """
        if len(centers) == 0:
            raise InvalidArgument("No centers specified")
        if cluster_ids is not None and len(cluster_ids) > 0:
            if len(cluster_ids) != len(centers):
                raise InvalidArgument("Num centers and num clusters must be equal")
            ids = list(cluster_ids)
        else:
            ids = list(range(len(centers)))
        index = self._create_index(centers)

        def assigned(element):
            point_id = element.id if isinstance(element, Point) else None
            d = index.get_distances(_vector_of(element), False)
            return [Assignment(point_id, ids[i], d.closest_points[i], d.cluster_distances[i])
                    for i in range(len(ids))]

        with index.query_phase():
            return points.flat_map(assigned)

    def assign(self, points: Dataset, centers: Sequence[Centers],
               cluster_ids: Optional[Sequence[int]] = None) -> Dataset:
        """Alias of :meth:`compute_cluster_assignments`."""
        return self.compute_cluster_assignments(points, centers, cluster_ids)


def _scoring_fn(index: CentersIndex):
    """Emit ``(fold, (element, distance))`` for points not on a center."""
    def score(pair):
        fold, element = pair
        d = index.get_distances(_vector_of(element), True)
        dist = d.cluster_distances[fold]
        if dist > 0.0:
            return [(fold, (element, dist))]
        return []
    return score


def _counts_of_closest(folds: Dataset, index: CentersIndex,
                       all_folds: bool = False) -> List[List[int]]:
    """Number of points closest to each center, per fold.

    With ``all_folds`` every point is counted against every configuration;
    otherwise only against the fold it was routed to.
    """
    def closest(pair):
        fold, element = pair
        d = index.get_distances(_vector_of(element), True)
        if all_folds:
            return [((f, c), 1) for f, c in enumerate(d.closest_points)]
        return [((fold, d.closest_points[fold]), 1)]

    with index.query_phase():
        totals = (folds.flat_map(closest)
                  .aggregate_by_key(lambda key, partition: 0,
                                    lambda acc, value: acc + value,
                                    lambda a, b: a + b)
                  .materialize())

    counts = [[0] * n for n in index.get_points_per_cluster()]
    for (fold, center_id), count in totals:
        counts[fold][center_id] = count
    return counts
