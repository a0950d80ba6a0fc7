"""Out-of-bag error estimation.

Each training row is predicted only by the members whose bootstrap draw
left it out. Using an in-bag member would leak the row's own target into
its prediction and bias the estimate downward.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, mean_squared_error

from bagging.core.aggregation import align_probabilities, class_positions, resolve_scores
from bagging.core.ensemble import BaggingEnsemble, EnsembleMember
from bagging.errors import InsufficientOOBCoverageError, SchemaMismatchError
from bagging.utils import take_rows


@dataclass
class OOBPredictions:
    """Out-of-bag predictions for every training row.

    Attributes:
        predictions: Aggregated OOB prediction per row (undefined where not covered)
        n_learners: Number of members for which each row was out-of-bag
    """
    predictions: np.ndarray
    n_learners: np.ndarray

    @property
    def covered(self) -> np.ndarray:
        return self.n_learners > 0

    @property
    def coverage(self) -> float:
        """Fraction of training rows with at least one OOB member."""
        if len(self.n_learners) == 0:
            return 0.0
        return float(np.mean(self.covered))


class OOBAccumulator:
    """Accumulates OOB predictions one member at a time.

    Regression sums predictions. Classification sums one-hot votes (hard)
    or aligned probability vectors (soft), resolved with the same
    lowest-label tie-break as ensemble prediction.
    """

    def __init__(self, ensemble: BaggingEnsemble, X):
        self.ensemble = ensemble
        self.X = ensemble.schema.conform(X)
        n_rows = self.X.shape[0]
        if n_rows != ensemble.n_samples:
            raise SchemaMismatchError(
                f"OOB evaluation needs the {ensemble.n_samples} training rows, got {n_rows}"
            )

        self.n_learners = np.zeros(n_rows, dtype=int)
        if ensemble.task == 'regression':
            self.scores = np.zeros(n_rows)
        else:
            self.scores = np.zeros((n_rows, len(ensemble.classes)))

    def add(self, member: EnsembleMember) -> None:
        """Add one member's predictions on its out-of-bag rows."""
        oob = member.oob_indices
        if len(oob) == 0:
            return

        ensemble = self.ensemble
        X_oob = take_rows(self.X, oob)

        if ensemble.task == 'regression':
            self.scores[oob] += np.asarray(ensemble.learner.predict(member.model, X_oob), dtype=float)
        elif ensemble.voting == 'soft':
            proba = ensemble.learner.predict_proba(member.model, X_oob)
            member_classes = ensemble.learner.classes(member.model)
            self.scores[oob] += align_probabilities(proba, member_classes, ensemble.classes)
        else:
            labels = ensemble.learner.predict(member.model, X_oob)
            self.scores[oob, class_positions(labels, ensemble.classes)] += 1.0

        self.n_learners[oob] += 1

    def result(self) -> OOBPredictions:
        covered = self.n_learners > 0
        if self.ensemble.task == 'regression':
            predictions = np.full(len(self.n_learners), np.nan)
            predictions[covered] = self.scores[covered] / self.n_learners[covered]
        else:
            predictions = np.empty(len(self.n_learners), dtype=object)
            predictions[covered] = resolve_scores(self.scores[covered], self.ensemble.classes)
        return OOBPredictions(predictions=predictions, n_learners=self.n_learners.copy())

    def error(self, y) -> float:
        """OOB loss over covered rows.

        Raises:
            InsufficientOOBCoverageError: If no row is out-of-bag for any member
        """
        oob = self.result()
        covered = oob.covered
        if not covered.any():
            raise InsufficientOOBCoverageError(
                "No training example is out-of-bag for any base learner"
            )
        y_true = np.asarray(y)[covered]
        y_pred = oob.predictions[covered]
        if self.ensemble.task == 'regression':
            return float(mean_squared_error(y_true.astype(float), y_pred.astype(float)))
        return float(1.0 - accuracy_score(y_true.tolist(), y_pred.tolist()))


def _check_targets(ensemble: BaggingEnsemble, y) -> None:
    if len(y) != ensemble.n_samples:
        raise SchemaMismatchError(
            f"OOB evaluation needs {ensemble.n_samples} targets, got {len(y)}"
        )


def out_of_bag_predictions(ensemble: BaggingEnsemble, X) -> OOBPredictions:
    """OOB-aggregated prediction for each training row.

    Args:
        ensemble: Fitted ensemble
        X: The training features the ensemble was fit on

    Returns:
        OOBPredictions with per-row predictions and OOB member counts
    """
    accumulator = OOBAccumulator(ensemble, X)
    for member in ensemble.members:
        accumulator.add(member)
    return accumulator.result()


def out_of_bag_error(ensemble: BaggingEnsemble, X, y) -> float:
    """Out-of-bag error estimate of a fitted ensemble.

    Mean squared error for regression, mis-classification rate for
    classification, over training rows that are out-of-bag for at least
    one member.

    Raises:
        InsufficientOOBCoverageError: If no row has an OOB member (e.g. B=0 or N=1)
        SchemaMismatchError: If X, y are not the training set's shape
    """
    _check_targets(ensemble, y)
    accumulator = OOBAccumulator(ensemble, X)
    for member in ensemble.members:
        accumulator.add(member)
    return accumulator.error(y)


def oob_error_curve(
    ensemble: BaggingEnsemble,
    X,
    y,
    checkpoints: Optional[Iterable[int]] = None
) -> pd.Series:
    """OOB error as a function of the number of members included.

    The error at checkpoint k uses only the first k members. Checkpoints
    where no row is covered yet are NaN. Meant for deciding B by inspecting
    where the curve plateaus; no stopping rule is applied.

    Args:
        ensemble: Fitted ensemble
        X, y: The training set the ensemble was fit on
        checkpoints: Member counts to evaluate (default: 1..B)

    Returns:
        Series indexed by n_estimators with the OOB error at each checkpoint
    """
    _check_targets(ensemble, y)
    n_members = len(ensemble.members)
    if checkpoints is None:
        checkpoints = range(1, n_members + 1)
    checkpoints = sorted({int(k) for k in checkpoints})
    for k in checkpoints:
        if not 1 <= k <= n_members:
            raise ValueError(f"Checkpoint {k} outside 1..{n_members}")

    accumulator = OOBAccumulator(ensemble, X)
    errors = {}
    included = 0
    for k in checkpoints:
        while included < k:
            accumulator.add(ensemble.members[included])
            included += 1
        try:
            errors[k] = accumulator.error(y)
        except InsufficientOOBCoverageError:
            errors[k] = np.nan

    curve = pd.Series(errors, dtype=float, name='oob_error')
    curve.index.name = 'n_estimators'
    return curve
