"""Distributed-dataset contract, in-process backend and fold assignment."""

from .base import Dataset
from .local import LocalDataset
from .crossfold import Crossfold

__all__ = [
    'Dataset',
    'LocalDataset',
    'Crossfold'
]
