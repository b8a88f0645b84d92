"""
Fold assignment for cross-validation and multi-fold seeding.
"""

from typing import Optional

from .base import Dataset
from ..base.errors import InvalidArgument
from ..utils.random import resolve_seed, derive_rng


class Crossfold:
    """Route every element of a dataset to exactly one fold in [0, num_folds).

    With a single fold everything goes to fold 0. Otherwise each element gets a
    uniformly random fold, drawn from a source derived from the seed and the
    element's partition, so a fixed seed and partitioning always reproduce the
    same routing.
    """

    def __init__(self, num_folds: int = 1, seed: Optional[int] = None):
        if num_folds < 1:
            raise InvalidArgument(f"num_folds must be positive, got {num_folds}")
        self.num_folds = num_folds
        self.seed = resolve_seed(seed)

    def get_num_folds(self) -> int:
        return self.num_folds

    def apply(self, dataset: Dataset) -> Dataset:
        """Return a dataset of ``(fold, element)`` pairs."""
        if self.num_folds == 1:
            return dataset.map(lambda element: (0, element))

        num_folds = self.num_folds
        seed = self.seed

        def route(partition_index, elements):
            rng = derive_rng(seed, partition_index)
            for element in elements:
                yield int(rng.integers(num_folds)), element

        return dataset.map_partitions(route)

    def __repr__(self) -> str:
        return f"Crossfold(num_folds={self.num_folds}, seed={self.seed})"
