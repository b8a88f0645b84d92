"""
In-process reference backend for the Dataset contract.

Partitions are plain Python lists held in memory. Operations are evaluated
eagerly; with ``max_workers > 1`` the partitions of one operation are
processed concurrently on a thread pool. Output order always follows
partition order, whatever order the work completes in.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Union
import torch
from torch import Tensor
import numpy as np

from .base import Dataset
from ..base.data_structures import Point
from ..base.errors import InvalidArgument


class LocalDataset(Dataset):
    """A partitioned in-memory collection.

    Parameters
    ----------
    partitions : sequence of sequences
        Elements of each partition
    max_workers : int, default=1
        Threads used to process partitions (1 means sequential)
    """

    def __init__(self, partitions: Sequence[Sequence[Any]], max_workers: int = 1):
        if len(partitions) == 0:
            raise InvalidArgument("A dataset needs at least one partition")
        if max_workers < 1:
            raise InvalidArgument(f"max_workers must be positive, got {max_workers}")
        self._partitions = [list(p) for p in partitions]
        self.max_workers = max_workers

    @classmethod
    def parallelize(cls, items: Iterable[Any], num_partitions: int = 4,
                    max_workers: int = 1) -> 'LocalDataset':
        """Split items into contiguous, near-equal partitions."""
        if num_partitions < 1:
            raise InvalidArgument(f"num_partitions must be positive, got {num_partitions}")
        items = list(items)
        n = len(items)
        bounds = [round(i * n / num_partitions) for i in range(num_partitions + 1)]
        partitions = [items[bounds[i]:bounds[i + 1]] for i in range(num_partitions)]
        return cls(partitions, max_workers=max_workers)

    @classmethod
    def from_tensor(cls, X: Union[Tensor, np.ndarray],
                    ids: Optional[Sequence[str]] = None,
                    num_partitions: int = 4,
                    max_workers: int = 1) -> 'LocalDataset':
        """Build a dataset of Points from the rows of an (n, d) array."""
        if isinstance(X, np.ndarray):
            X = torch.from_numpy(X)
        X = X.detach().to(dtype=torch.float32)
        if X.dim() != 2:
            raise InvalidArgument(f"Expected 2D array, got {X.dim()}D")
        if ids is not None and len(ids) != X.shape[0]:
            raise InvalidArgument(f"Expected {X.shape[0]} ids, got {len(ids)}")

        points = [Point(X[i], None if ids is None else str(ids[i]))
                  for i in range(X.shape[0])]
        return cls.parallelize(points, num_partitions=num_partitions,
                               max_workers=max_workers)

    @property
    def num_partitions(self) -> int:
        return len(self._partitions)

    @property
    def partitions(self) -> List[List[Any]]:
        """Shallow copies of the partitions."""
        return [list(p) for p in self._partitions]

    def _run(self, fn: Callable[[int, List[Any]], Any]) -> List[Any]:
        """Run fn over every partition, returning outputs in partition order."""
        indexed = list(enumerate(self._partitions))
        if self.max_workers == 1 or len(indexed) == 1:
            return [fn(i, p) for i, p in indexed]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(lambda ip: fn(ip[0], ip[1]), indexed))

    def map_partitions(self, fn: Callable[[int, Iterator[Any]], Iterable[Any]]) -> 'LocalDataset':
        outputs = self._run(lambda i, p: list(fn(i, iter(p))))
        return LocalDataset(outputs, max_workers=self.max_workers)

    def aggregate_by_key(self,
                         zero_fn: Callable[[Any, int], Any],
                         seq_fn: Callable[[Any, Any], Any],
                         comb_fn: Callable[[Any, Any], Any]) -> 'LocalDataset':
        def partial(partition_index: int, elements: List[Any]) -> dict:
            accumulators = {}
            for key, value in elements:
                if key not in accumulators:
                    accumulators[key] = zero_fn(key, partition_index)
                accumulators[key] = seq_fn(accumulators[key], value)
            return accumulators

        combined = {}
        for accumulators in self._run(partial):
            for key, acc in accumulators.items():
                if key in combined:
                    combined[key] = comb_fn(combined[key], acc)
                else:
                    combined[key] = acc

        return LocalDataset([list(combined.items())], max_workers=self.max_workers)

    def materialize(self) -> List[Any]:
        return [e for p in self._partitions for e in p]

    def __len__(self) -> int:
        return sum(len(p) for p in self._partitions)

    def __repr__(self) -> str:
        return (f"LocalDataset(num_partitions={self.num_partitions}, "
                f"n_elements={len(self)}, max_workers={self.max_workers})")
