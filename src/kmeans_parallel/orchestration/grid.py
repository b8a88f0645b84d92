"""
Multi-run clustering of weighted candidate sets.

The seeding pass leaves a small weighted sketch per fold. This module fans
local refinement out over a grid of cluster counts with several restarts
each, keeps the cheapest restart per count, and optionally scores the
clusterings with a train/test split of the folds.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed, TimeoutError as FuturesTimeout
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import time
import warnings

from ..algorithms.kmeans import refine as lloyd_refine
from ..base.data_structures import Centers, ClusteringResult, EvaluationResult, WeightedPoint
from ..base.errors import InsufficientCandidates, InvalidArgument, TrialFailure
from ..base.interfaces import StoppingCriterion
from ..utils.random import resolve_seed, derive_seed
from ..utils.validation import check_cluster_counts, validate_weighted_points
from .evaluation import evaluate

RefineFn = Callable[[Sequence[WeightedPoint], int, int, Optional[StoppingCriterion]], Centers]


def run_grid(points: Sequence[WeightedPoint],
             cluster_counts: Sequence[int],
             best_of: int = 5,
             stopping_criterion: Optional[StoppingCriterion] = None,
             random_state: Optional[int] = None,
             n_workers: int = 1,
             refine: Optional[RefineFn] = None,
             timeout: Optional[float] = None,
             verbose: int = 0) -> List[ClusteringResult]:
    """Cluster a weighted sample once per requested cluster count.

    Every count gets ``max(1, best_of)`` independent trials (a single one
    for k=1) with seeds derived from ``(random_state, k, restart)``. Trials
    run on a pool of ``n_workers`` threads. The trial with the lowest
    weighted cost wins; ties go to the lowest restart.

    Args:
        points: Weighted candidates to cluster
        cluster_counts: Requested cluster counts; duplicates are allowed
        best_of: Restarts per cluster count
        stopping_criterion: Passed through to ``refine``
        random_state: Base seed for the trial seeds
        n_workers: Number of concurrent trials
        refine: ``refine(points, k, seed, stopping_criterion) -> Centers``;
            defaults to weighted K-means
        timeout: Seconds to wait for the whole grid
        verbose: Verbosity level

    Returns:
        One ClusteringResult per entry of ``cluster_counts``, in that order

    Raises:
        InvalidArgument: For an empty grid, a bad count, an empty sample or
            a bad worker count
        InsufficientCandidates: If some count exceeds the number of points
        TrialFailure: As soon as the first failed trial completes
        TimeoutError: If the grid did not finish within ``timeout``
    """
    counts = check_cluster_counts(cluster_counts)
    X, weights = validate_weighted_points(points)
    if n_workers < 1:
        raise InvalidArgument(f"n_workers must be positive, got {n_workers}")
    if refine is None:
        refine = lloyd_refine
    base_seed = resolve_seed(random_state)
    restarts = max(1, best_of)
    n_candidates = X.shape[0]

    for k in sorted(set(counts)):
        if n_candidates < k:
            raise InsufficientCandidates(n_candidates, k)
        if n_candidates < 2 * k:
            warnings.warn(f"Only {n_candidates} candidates for k={k}; k-means|| should "
                          f"sample at least {2 * k}")

    def trial(k: int, restart: int, seed: int) -> Tuple[Centers, float]:
        centers = refine(points, k, seed, stopping_criterion)
        return centers, centers.cost(X, weights)

    start_time = time.time()
    outcomes: Dict[Tuple[int, int], Tuple[Centers, float, int]] = {}

    executor = ThreadPoolExecutor(max_workers=n_workers)
    abandoned = False
    try:
        futures = {}
        for k in sorted(set(counts)):
            for restart in range(1 if k == 1 else restarts):
                seed = derive_seed(base_seed, k, restart)
                futures[executor.submit(trial, k, restart, seed)] = (k, restart, seed)

        try:
            for future in as_completed(futures, timeout=timeout):
                k, restart, seed = futures[future]
                try:
                    centers, cost = future.result()
                except Exception as e:
                    abandoned = True
                    raise TrialFailure(k, restart, e) from e
                outcomes[(k, restart)] = (centers, cost, seed)
                if verbose >= 2:
                    print(f"k={k:3d} restart={restart}: cost = {cost:.6f}")
        except FuturesTimeout as e:
            abandoned = True
            raise TimeoutError(f"Clustering grid did not finish within {timeout}s") from e
    finally:
        # Trials already running are left to finish in the background
        executor.shutdown(wait=not abandoned, cancel_futures=abandoned)

    best: Dict[int, ClusteringResult] = {}
    for (k, restart), (centers, cost, seed) in sorted(outcomes.items()):
        if k not in best or cost < best[k].cost:
            best[k] = ClusteringResult(n_clusters=k, centers=centers, cost=cost,
                                       restart=restart, seed=seed)

    if verbose:
        for k in counts:
            print(f"k={k:3d}: best cost = {best[k].cost:.6f} (restart {best[k].restart})")
        print(f"Grid of {len(futures)} trials finished in {time.time() - start_time:.3f}s")

    return [best[k] for k in counts]


def _combine(sketches: Sequence[Sequence[WeightedPoint]]) -> List[WeightedPoint]:
    combined: List[WeightedPoint] = []
    for sketch in sketches:
        combined.extend(sketch)
    return combined


def cross_validate(sketches: Sequence[Sequence[WeightedPoint]],
                   cluster_counts: Sequence[int],
                   best_of: int = 5,
                   stopping_criterion: Optional[StoppingCriterion] = None,
                   random_state: Optional[int] = None,
                   n_workers: int = 1,
                   refine: Optional[RefineFn] = None,
                   timeout: Optional[float] = None,
                   verbose: int = 0) -> List[EvaluationResult]:
    """Train on all folds but the last, test on the last.

    Both sides are clustered for every requested count; the evaluation then
    compares the two clusterings on the held-out fold.
    """
    if len(sketches) < 2:
        raise InvalidArgument(f"Cross-validation needs at least 2 folds, got {len(sketches)}")

    train = _combine(sketches[:-1])
    test = list(sketches[-1])
    kwargs = dict(best_of=best_of, stopping_criterion=stopping_criterion,
                  random_state=random_state, n_workers=n_workers, refine=refine,
                  timeout=timeout, verbose=verbose)
    train_centers = [r.centers for r in run_grid(train, cluster_counts, **kwargs)]
    test_centers = [r.centers for r in run_grid(test, cluster_counts, **kwargs)]
    return evaluate(test_centers, test, train_centers, train_points=train)


class MultiRunOrchestrator:
    """Cluster k-means|| sketches over a grid of cluster counts.

    Parameters
    ----------
    best_of : int, default=5
        Restarts per cluster count
    stopping_criterion : StoppingCriterion, optional
        Stopping rule for local refinement
    random_state : int, optional
        Base seed for all trials
    n_workers : int, default=1
        Concurrent trials
    refine : callable, optional
        Local refinement function; defaults to weighted K-means
    timeout : float, optional
        Seconds to wait for each grid
    verbose : int, default=0
        Verbosity level
    """

    def __init__(self,
                 best_of: int = 5,
                 stopping_criterion: Optional[StoppingCriterion] = None,
                 random_state: Optional[int] = None,
                 n_workers: int = 1,
                 refine: Optional[RefineFn] = None,
                 timeout: Optional[float] = None,
                 verbose: int = 0):
        self.best_of = best_of
        self.stopping_criterion = stopping_criterion
        self.random_state = resolve_seed(random_state)
        self.n_workers = n_workers
        self.refine = refine
        self.timeout = timeout
        self.verbose = verbose

    def _options(self) -> dict:
        return dict(best_of=self.best_of, stopping_criterion=self.stopping_criterion,
                    random_state=self.random_state, n_workers=self.n_workers,
                    refine=self.refine, timeout=self.timeout, verbose=self.verbose)

    def run(self, sketches: Sequence[Sequence[WeightedPoint]],
            cluster_counts: Sequence[int]
            ) -> Tuple[List[ClusteringResult], Optional[List[EvaluationResult]]]:
        """Cluster all folds combined and, with two or more folds, cross-validate.

        Returns:
            Tuple of (results in ``cluster_counts`` order, evaluation or None)
        """
        if len(sketches) == 0:
            raise InvalidArgument("No sketches specified")

        results = run_grid(_combine(sketches), cluster_counts, **self._options())

        evaluation = None
        if len(sketches) > 1:
            evaluation = cross_validate(sketches, cluster_counts, **self._options())
            if self.verbose:
                print("n_clusters  test_cost  train_cost  pred_strength  stable_clusters  stable_points")
                for r in evaluation:
                    print(f"{r.n_clusters:10d}  {r.test_cost:9.2f}  {r.train_cost:10.2f}  "
                          f"{r.prediction_strength:13.4f}  {r.stable_clusters:15d}  "
                          f"{r.stable_points:13.4f}")

        return results, evaluation
