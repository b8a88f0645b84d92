"""
Reproducible random sources derived from a base seed.

Every random draw in the pipeline (reservoir keys, fold routing, trial
seeds) comes from a NumPy ``SeedSequence`` keyed by a base seed plus the
coordinates of the work item, so reruns with the same seed and the same
partitioning reproduce exactly, whatever order the work runs in.
"""

from typing import Optional
import time
import numpy as np


def resolve_seed(seed: Optional[int]) -> int:
    """Use ``seed`` if given, otherwise draw one from the clock."""
    if seed is None:
        return time.time_ns() & 0x7FFFFFFFFFFFFFFF
    return int(seed)


def _entropy(base: int, keys) -> list:
    return [int(base) & 0xFFFFFFFFFFFFFFFF] + [int(k) for k in keys]


def derive_seed(base: int, *keys: int) -> int:
    """Derive a 63-bit integer seed from ``base`` and integer coordinates."""
    ss = np.random.SeedSequence(_entropy(base, keys))
    return int(ss.generate_state(1, dtype=np.uint64)[0]) & 0x7FFFFFFFFFFFFFFF


def derive_rng(base: int, *keys: int) -> np.random.Generator:
    """NumPy Generator seeded from ``base`` and integer coordinates."""
    return np.random.default_rng(np.random.SeedSequence(_entropy(base, keys)))
