"""
Weighted reservoir sampling over a partitioned, keyed stream.

Implements A-ES (Efraimidis & Spirakis): every item draws ``u ~ U(0, 1]`` and
gets the key ``u ** (1 / weight)``; keeping the ``size`` largest keys is a
weighted sample without replacement. Keys are stored as ``log(u) / weight``,
which orders identically and avoids underflow for small weights.

Because the sample is simply "the top keys", partial reservoirs built on
disjoint partitions merge exactly: the merge of two reservoirs keeps the top
``size`` keys of their union, which is associative and commutative.
"""

from typing import Any, List, Optional, Sequence, Tuple
import heapq
import itertools
import math
import numpy as np

from ..base.errors import InvalidArgument
from ..dataset.base import Dataset
from ..utils.random import resolve_seed, derive_rng

# Last-resort tie-break so heap comparisons never reach the items themselves.
_sequence = itertools.count()


class WeightedReservoir:
    """Fixed-size weighted random sample of a stream.

    Parameters
    ----------
    size : int
        Maximum number of items to retain
    rng : numpy.random.Generator, optional
        Source of the uniform draws
    tag : int, default=0
        Identifies the stream (e.g. its partition) for deterministic tie-breaks
    """

    def __init__(self, size: int, rng: Optional[np.random.Generator] = None, tag: int = 0):
        if size < 0:
            raise InvalidArgument(f"Reservoir size must be non-negative, got {size}")
        self.size = size
        self.rng = rng if rng is not None else np.random.default_rng()
        self.tag = tag
        self._position = 0
        # Min-heap of (key, (tag, position), seq, item); heap[0] is the weakest entry.
        self._heap: List[Tuple[float, Tuple[int, int], int, Any]] = []

    def add(self, item: Any, weight: float) -> 'WeightedReservoir':
        """Offer one item to the reservoir.

        Zero-weight items can never be sampled and are skipped.

        Raises:
            InvalidArgument: If weight is negative or not finite
        """
        weight = float(weight)
        if not weight >= 0 or math.isinf(weight):
            raise InvalidArgument(f"Sampling weight must be finite and non-negative, got {weight}")
        if weight == 0 or self.size == 0:
            return self

        u = 1.0 - self.rng.random()  # (0, 1]
        key = math.log(u) / weight
        entry = (key, (self.tag, self._position), next(_sequence), item)
        self._position += 1

        if len(self._heap) < self.size:
            heapq.heappush(self._heap, entry)
        elif entry[:2] > self._heap[0][:2]:
            heapq.heapreplace(self._heap, entry)
        return self

    def merge(self, other: 'WeightedReservoir') -> 'WeightedReservoir':
        """Reservoir holding the top keys of both inputs."""
        if other.size != self.size:
            raise InvalidArgument(f"Cannot merge reservoirs of size {self.size} and {other.size}")

        merged = WeightedReservoir(self.size, self.rng, self.tag)
        merged._position = self._position
        entries = heapq.nlargest(self.size, self._heap + other._heap, key=lambda e: e[:2])
        merged._heap = entries
        heapq.heapify(merged._heap)
        return merged

    def items(self) -> List[Any]:
        """Sampled items, strongest key first."""
        return [e[3] for e in sorted(self._heap, key=lambda e: e[:2], reverse=True)]

    def __len__(self) -> int:
        return len(self._heap)

    def __repr__(self) -> str:
        return f"WeightedReservoir(size={self.size}, n_items={len(self._heap)})"


def grouped_weighted_sample(dataset: Dataset,
                            sizes: Sequence[int],
                            seed: Optional[int] = None) -> Dataset:
    """Draw a weighted sample of ``sizes[key]`` items for every key.

    Args:
        dataset: Dataset of ``(key, (item, weight))`` pairs, keys in [0, len(sizes))
        sizes: Target sample size per key
        seed: Base seed; each (key, partition) reservoir derives its own source

    Returns:
        Dataset of ``(key, item)`` pairs with exactly ``min(sizes[key], n_key)``
        items per key, where n_key counts the positive-weight items of that key
    """
    sizes = [int(s) for s in sizes]
    if any(s < 0 for s in sizes):
        raise InvalidArgument(f"Sample sizes must be non-negative, got {sizes}")
    seed = resolve_seed(seed)

    def zero(key: int, partition_index: int) -> WeightedReservoir:
        if not 0 <= key < len(sizes):
            raise InvalidArgument(f"Key {key} outside [0, {len(sizes)})")
        return WeightedReservoir(sizes[key], derive_rng(seed, key, partition_index),
                                 tag=partition_index)

    def seq(reservoir: WeightedReservoir, value) -> WeightedReservoir:
        item, weight = value
        return reservoir.add(item, weight)

    def comb(a: WeightedReservoir, b: WeightedReservoir) -> WeightedReservoir:
        return a.merge(b)

    reservoirs = dataset.aggregate_by_key(zero, seq, comb)
    return reservoirs.flat_map(lambda kv: [(kv[0], item) for item in kv[1].items()])
