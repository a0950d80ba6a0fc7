"""Held-out evaluation of bagged ensembles.

Compares a bagged ensemble with a single base learner fit on the full
training set, which is the usual way to check that bagging reduces the
variance of a high-variance learner.
"""

import logging
from typing import Any, Dict, Optional

import numpy as np
from sklearn.metrics import accuracy_score, mean_squared_error

from bagging.config import BaggingConfig, ParallelConfig
from bagging.core.ensemble import BaggingEnsemble, FeatureSchema
from bagging.training.trainer import BaggingTrainer


def prediction_error(task: str, y_true, y_pred) -> float:
    """Mean squared error (regression) or mis-classification rate (classification)."""
    if task == 'regression':
        return float(mean_squared_error(np.asarray(y_true, dtype=float),
                                        np.asarray(y_pred, dtype=float)))
    return float(1.0 - accuracy_score(np.asarray(y_true).tolist(), np.asarray(y_pred).tolist()))


def evaluate_ensemble(ensemble: BaggingEnsemble, X, y) -> float:
    """Held-out error of a fitted ensemble."""
    return prediction_error(ensemble.task, y, ensemble.predict(X))


def evaluate_single_learner(learner: Any, task: str, X_train, y_train, X_test, y_test) -> float:
    """Held-out error of one base learner fit on the full training set."""
    X_test = FeatureSchema.from_data(X_train).conform(X_test)
    model = learner.fit(X_train, y_train)
    return prediction_error(task, y_test, learner.predict(model, X_test))


def compare_with_single_learner(
    X_train,
    y_train,
    X_test,
    y_test,
    learner: Any,
    n_estimators: int = 100,
    random_state: Optional[int] = None,
    task: str = 'regression',
    voting: str = 'hard',
    backend: str = 'thread',
    logger: Optional[logging.Logger] = None
) -> Dict[str, Any]:
    """Fit a single learner and a bagged ensemble and compare held-out errors.

    Parameters
    ----------
    X_train, y_train : training set
    X_test, y_test : held-out set
    learner : object or str
        Base learner capability, or a learner name from the default table.
    n_estimators : int, default=100
        Number of bagged members.
    random_state : int, optional
        Root seed for bootstrap resampling.
    task : {'regression', 'classification'}, default='regression'
    voting : {'hard', 'soft'}, default='hard'
    backend : {'thread', 'process', 'sequential'}, default='thread'
    logger : logging.Logger, optional

    Returns
    -------
    results : dict
        single_error, bagged_error, oob_error, improvement (single - bagged)
        and the fitted ensemble.
    """
    config = BaggingConfig(
        random_state=random_state,
        task=task,
        n_estimators=n_estimators,
        voting=voting,
        parallel=ParallelConfig(backend=backend)
    )
    trainer = BaggingTrainer(config, learner=learner, logger=logger)
    ensemble = trainer.train(X_train, y_train, oob_score=True)

    single_error = evaluate_single_learner(
        trainer.learner, task, X_train, y_train, X_test, y_test
    )
    bagged_error = evaluate_ensemble(ensemble, X_test, y_test)

    return {
        'single_error': single_error,
        'bagged_error': bagged_error,
        'oob_error': ensemble.metadata.get('oob_error'),
        'improvement': single_error - bagged_error,
        'ensemble': ensemble
    }
