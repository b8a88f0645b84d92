"""Weighted reservoir sampling."""

from .reservoir import WeightedReservoir, grouped_weighted_sample

__all__ = [
    'WeightedReservoir',
    'grouped_weighted_sample'
]
