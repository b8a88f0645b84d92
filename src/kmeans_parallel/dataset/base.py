"""
The distributed-dataset contract consumed by the seeding engine.

The engine needs only three capabilities from an execution backend:
apply a function to every partition, group-and-combine values by key, and
materialize a (small) result into local memory. Any backend offering these
can drive the k-means|| seeding, from the in-process reference
implementation to a cluster execution engine.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Iterator, List


class Dataset(ABC):
    """Abstract partitioned collection of opaque elements."""

    @property
    @abstractmethod
    def num_partitions(self) -> int:
        """Number of disjoint partitions (shards) of this dataset."""
        pass

    @abstractmethod
    def map_partitions(self, fn: Callable[[int, Iterator[Any]], Iterable[Any]]) -> 'Dataset':
        """Apply ``fn(partition_index, elements)`` to every partition.

        Each call returns the elements of the corresponding output partition.
        Partition boundaries are preserved.
        """
        pass

    @abstractmethod
    def aggregate_by_key(self,
                         zero_fn: Callable[[Any, int], Any],
                         seq_fn: Callable[[Any, Any], Any],
                         comb_fn: Callable[[Any, Any], Any]) -> 'Dataset':
        """Group ``(key, value)`` elements by key and combine their values.

        Args:
            zero_fn: ``zero_fn(key, partition_index)`` creates an empty
                accumulator for a key within one partition
            seq_fn: ``seq_fn(acc, value)`` folds one value into an
                accumulator and returns it
            comb_fn: ``comb_fn(acc1, acc2)`` merges two partial accumulators
                of the same key; must be associative and commutative

        Returns:
            Dataset of ``(key, accumulator)`` pairs, one per distinct key
        """
        pass

    @abstractmethod
    def materialize(self) -> List[Any]:
        """Collect every element into local memory."""
        pass

    def map(self, fn: Callable[[Any], Any]) -> 'Dataset':
        """Apply ``fn`` to every element."""
        return self.map_partitions(lambda _, elements: (fn(e) for e in elements))

    def flat_map(self, fn: Callable[[Any], Iterable[Any]]) -> 'Dataset':
        """Apply ``fn`` to every element and emit each of its outputs."""
        def apply(_, elements):
            for element in elements:
                yield from fn(element)
        return self.map_partitions(apply)

    def count(self) -> int:
        """Number of elements."""
        counts = self.map_partitions(lambda _, elements: [sum(1 for _ in elements)])
        return sum(counts.materialize())
