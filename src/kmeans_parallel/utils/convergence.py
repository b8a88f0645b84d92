"""
Stopping criteria for local refinement.

Lloyd's iterations can stop on:
- Small movement of the centers
- Small relative change in the weighted cost
- A maximum number of iterations
- Any AND/OR combination of the above
"""

from typing import Dict, Any, List

from ..base.interfaces import StoppingCriterion
from ..base.errors import InvalidArgument


class CenterShiftThreshold(StoppingCriterion):
    """Stop once no center moved more than ``tol`` in the last iteration."""

    def __init__(self, tol: float = 1e-4):
        """
        Args:
            tol: Largest Euclidean center movement still considered converged
        """
        if tol < 0:
            raise InvalidArgument(f"tol must be non-negative, got {tol}")
        self.tol = tol

    def check(self, current_state: Dict[str, Any]) -> bool:
        """Check if the centers have stopped moving."""
        shift = current_state.get('center_shift')
        if shift is None:
            return False
        return shift < self.tol

    def __repr__(self) -> str:
        return f"CenterShiftThreshold(tol={self.tol})"


class ChangeInObjective(StoppingCriterion):
    """Stop once the relative change in cost drops below ``rel_tol``."""

    def __init__(self, rel_tol: float = 1e-4, abs_tol: float = 1e-8):
        """
        Args:
            rel_tol: Relative tolerance for objective change
            abs_tol: Absolute tolerance for objective change
        """
        self.rel_tol = rel_tol
        self.abs_tol = abs_tol

    def check(self, current_state: Dict[str, Any]) -> bool:
        """Compare the current objective with the previous one."""
        current = current_state.get('objective')
        previous = current_state.get('previous_objective')
        if current is None or previous is None:
            return False

        abs_change = abs(current - previous)
        if abs(previous) > 1e-10:
            rel_change = abs_change / abs(previous)
        else:
            rel_change = abs_change

        return abs_change < self.abs_tol or rel_change < self.rel_tol

    def __repr__(self) -> str:
        return f"ChangeInObjective(rel_tol={self.rel_tol}, abs_tol={self.abs_tol})"


class MaxIterations(StoppingCriterion):
    """Stop after ``max_iter`` iterations have completed."""

    def __init__(self, max_iter: int = 100):
        if max_iter < 1:
            raise InvalidArgument(f"max_iter must be positive, got {max_iter}")
        self.max_iter = max_iter

    def check(self, current_state: Dict[str, Any]) -> bool:
        return current_state['iteration'] + 1 >= self.max_iter

    def __repr__(self) -> str:
        return f"MaxIterations(max_iter={self.max_iter})"


class CombinedCriterion(StoppingCriterion):
    """Combine multiple stopping criteria with AND/OR logic."""

    def __init__(self, criteria: List[StoppingCriterion],
                 mode: str = 'any'):
        """
        Args:
            criteria: List of stopping criteria
            mode: 'any' (OR) or 'all' (AND)
        """
        if mode not in ['any', 'all']:
            raise InvalidArgument(f"Mode must be 'any' or 'all', got {mode}")
        if not criteria:
            raise InvalidArgument("At least one criterion is required")

        self.criteria = list(criteria)
        self.mode = mode

    def check(self, current_state: Dict[str, Any]) -> bool:
        """Check all criteria and combine results."""
        results = [criterion.check(current_state) for criterion in self.criteria]

        if self.mode == 'any':
            return any(results)
        return all(results)

    def __repr__(self) -> str:
        return f"CombinedCriterion({self.criteria!r}, mode={self.mode!r})"


def threshold(tol: float) -> StoppingCriterion:
    """Stop when the centers move less than ``tol``."""
    return CenterShiftThreshold(tol)


def max_iterations(max_iter: int) -> StoppingCriterion:
    """Stop after ``max_iter`` iterations."""
    return MaxIterations(max_iter)


def any_of(*criteria: StoppingCriterion) -> StoppingCriterion:
    return CombinedCriterion(list(criteria), mode='any')


def all_of(*criteria: StoppingCriterion) -> StoppingCriterion:
    return CombinedCriterion(list(criteria), mode='all')


def default_stopping_criterion(tol: float = 1e-4, max_iter: int = 100) -> StoppingCriterion:
    """Center movement below ``tol`` OR ``max_iter`` iterations, whichever comes first."""
    return any_of(threshold(tol), max_iterations(max_iter))
