"""
Error taxonomy for the k-means|| seeding and scoring pipeline.

Each error also derives from the builtin exception a caller would expect
(ValueError for bad inputs, RuntimeError for bad state), so existing
``except ValueError`` handlers keep working.
"""


class KMeansParallelError(Exception):
    """Base class for all errors raised by this package."""


class InvalidArgument(KMeansParallelError, ValueError):
    """An argument failed validation at a call boundary."""


class InvalidState(KMeansParallelError, RuntimeError):
    """An operation was attempted on an object in the wrong state.

    Raised when querying a fold that has no centers yet, or when mutating
    the center index while a query phase is open.
    """


class InsufficientCandidates(KMeansParallelError, ValueError):
    """Fewer candidate points than the number of requested clusters."""

    def __init__(self, n_candidates: int, n_clusters: int):
        super().__init__(f"Cannot create {n_clusters} clusters from "
                         f"{n_candidates} candidate points")
        self.n_candidates = n_candidates
        self.n_clusters = n_clusters


class TrialFailure(KMeansParallelError, RuntimeError):
    """A single local refinement trial of a grid run failed.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, n_clusters: int, restart: int, cause: BaseException):
        super().__init__(f"Clustering trial failed for k={n_clusters}, "
                         f"restart={restart}: {cause!r}")
        self.n_clusters = n_clusters
        self.restart = restart
        self.__cause__ = cause
