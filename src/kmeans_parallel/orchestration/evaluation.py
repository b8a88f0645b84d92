"""
Cross-validated evaluation of clusterings.

Compares clusterings trained on one part of the data with clusterings of the
same sizes fit on a held-out part. Besides the two costs, it reports the
prediction strength of Tibshirani & Walther (2005): for every test cluster,
the fraction of pairs of its points that the training centers also put
together. A clustering that generalizes keeps this close to one.
"""

from typing import List, Optional, Sequence
import torch
from torch import Tensor

from ..base.data_structures import Centers, EvaluationResult, WeightedPoint
from ..base.errors import InvalidArgument
from ..utils.metrics import weighted_cost
from ..utils.validation import validate_weighted_points

STABLE_THRESHOLD = 0.8


class KMeansEvaluation:
    """Evaluate train/test clusterings on weighted held-out points.

    Parameters
    ----------
    test_centers : list of Centers
        Clusterings fit on the test points
    test_points : list of WeightedPoint
        Held-out points
    train_centers : list of Centers
        Clusterings fit on the training points, aligned with ``test_centers``
    train_points : list of WeightedPoint, optional
        Training points; when given, the train cost is measured on them
        instead of the test points
    stable_threshold : float, default=0.8
        Score at which a test cluster counts as stable

    Attributes
    ----------
    test_costs : list of float
    train_costs : list of float
    prediction_strengths : list of float
    stable_clusters : list of int
    stable_points : list of float
    """

    def __init__(self,
                 test_centers: Sequence[Centers],
                 test_points: Sequence[WeightedPoint],
                 train_centers: Sequence[Centers],
                 train_points: Optional[Sequence[WeightedPoint]] = None,
                 stable_threshold: float = STABLE_THRESHOLD):
        if len(test_centers) != len(train_centers):
            raise InvalidArgument(f"Got {len(test_centers)} test clusterings but "
                                  f"{len(train_centers)} train clusterings")
        if len(test_centers) == 0:
            raise InvalidArgument("No centers specified")

        self.test_centers = list(test_centers)
        self.train_centers = list(train_centers)
        self.stable_threshold = stable_threshold

        X_test, w_test = validate_weighted_points(test_points)
        if train_points is not None:
            X_train, w_train = validate_weighted_points(train_points)
        else:
            X_train, w_train = X_test, w_test

        self.test_costs: List[float] = []
        self.train_costs: List[float] = []
        self.prediction_strengths: List[float] = []
        self.stable_clusters: List[int] = []
        self.stable_points: List[float] = []

        for test, train in zip(self.test_centers, self.train_centers):
            if test.dimension != X_test.shape[1] or train.dimension != X_test.shape[1]:
                raise InvalidArgument("Centers and points must share one dimension")
            self.test_costs.append(weighted_cost(X_test, test.tensor, w_test))
            self.train_costs.append(weighted_cost(X_train, train.tensor, w_train))

            strength, n_stable, stable_weight = self._prediction_strength(
                X_test, w_test, test, train)
            self.prediction_strengths.append(strength)
            self.stable_clusters.append(n_stable)
            self.stable_points.append(stable_weight)

    def _prediction_strength(self, X: Tensor, weights: Tensor,
                             test: Centers, train: Centers):
        """Prediction strength, stable cluster count and stable weight fraction."""
        test_labels, _ = test.closest(X)
        train_labels, _ = train.closest(X)

        # a[i, j]: weight of test cluster i that the training centers put in cluster j
        a = torch.zeros(len(test), len(train), dtype=torch.float64)
        a.index_put_((test_labels, train_labels), weights.double(), accumulate=True)
        totals = a.sum(dim=1)

        pairs = totals * (totals - 1)
        has_pairs = pairs > 0
        scores = torch.ones(len(test), dtype=torch.float64)
        scores[has_pairs] = (a * (a - 1)).sum(dim=1)[has_pairs] / pairs[has_pairs]

        strength = scores[has_pairs].min().item() if has_pairs.any() else 1.0

        stable = has_pairs & (scores >= self.stable_threshold)
        total_weight = totals.sum().item()
        stable_weight = totals[stable].sum().item() / total_weight if total_weight > 0 else 0.0
        return strength, int(stable.sum().item()), stable_weight

    def results(self) -> List[EvaluationResult]:
        """One EvaluationResult per clustering, in input order."""
        return [
            EvaluationResult(n_clusters=len(self.train_centers[i]),
                             test_cost=self.test_costs[i],
                             train_cost=self.train_costs[i],
                             prediction_strength=self.prediction_strengths[i],
                             stable_clusters=self.stable_clusters[i],
                             stable_points=self.stable_points[i])
            for i in range(len(self.test_centers))
        ]


def evaluate(test_centers: Sequence[Centers],
             test_points: Sequence[WeightedPoint],
             train_centers: Sequence[Centers],
             train_points: Optional[Sequence[WeightedPoint]] = None) -> List[EvaluationResult]:
    """Evaluate aligned train/test clusterings; see :class:`KMeansEvaluation`."""
    return KMeansEvaluation(test_centers, test_points, train_centers, train_points).results()
