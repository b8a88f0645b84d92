"""Approximate closest-center index."""

from .centers_index import CentersIndex

__all__ = [
    'CentersIndex'
]
