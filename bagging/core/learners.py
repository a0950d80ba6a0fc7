"""Base learner capability and the learners shipped with the package.

The trainer is generic over anything exposing ``fit(X, y) -> model`` and
``predict(model, X) -> predictions``. Soft voting additionally needs
``predict_proba(model, X)`` and ``classes(model)``.
"""

from typing import Any, Dict, Optional, Protocol, runtime_checkable
import numpy as np
from sklearn.base import BaseEstimator, clone

from bagging.config import BaggingConfig, LearnerConfig


@runtime_checkable
class BaseLearner(Protocol):
    """Capability interface for base learners."""

    def fit(self, X, y) -> Any:
        ...

    def predict(self, model: Any, X) -> np.ndarray:
        ...


def supports_proba(learner) -> bool:
    """Whether a learner can produce class-probability vectors.

    Wrappers may expose ``has_proba`` to report what the wrapped model supports.
    """
    if not getattr(learner, 'has_proba', True):
        return False
    return callable(getattr(learner, 'predict_proba', None)) and \
        callable(getattr(learner, 'classes', None))


class SklearnLearner:
    """Wraps a scikit-learn estimator as a base learner.

    Every fit works on a fresh clone, so the wrapped estimator is never
    mutated and fitted models are owned by the ensemble member that made them.
    With ``seed_estimator=True`` the clone's ``random_state`` is set to the
    seed of the iteration being fitted, so members differ in estimator
    randomness as well as in their bootstrap samples.

    Example:
        >>> from sklearn.tree import DecisionTreeRegressor
        >>> learner = SklearnLearner(DecisionTreeRegressor(), seed_estimator=True)
        >>> model = learner.fit(X_sample, y_sample, random_state=12345)
        >>> preds = learner.predict(model, X_test)
    """

    def __init__(self, estimator: BaseEstimator, seed_estimator: bool = False):
        self.estimator = estimator
        self.seed_estimator = seed_estimator

    @property
    def has_proba(self) -> bool:
        """Whether the wrapped estimator can produce class probabilities."""
        return hasattr(self.estimator, 'predict_proba')

    def fit(self, X, y, random_state: Optional[int] = None) -> BaseEstimator:
        model = clone(self.estimator)
        if self.seed_estimator and random_state is not None \
                and 'random_state' in model.get_params():
            model.set_params(random_state=random_state)
        return model.fit(X, y)

    def predict(self, model: BaseEstimator, X) -> np.ndarray:
        return np.asarray(model.predict(X))

    def predict_proba(self, model: BaseEstimator, X) -> np.ndarray:
        if not hasattr(model, 'predict_proba'):
            raise AttributeError(
                f"{type(model).__name__} does not support predict_proba"
            )
        return np.asarray(model.predict_proba(X))

    def classes(self, model: BaseEstimator) -> np.ndarray:
        return np.asarray(model.classes_)

    def __repr__(self):
        return f"SklearnLearner({self.estimator!r})"


class MeanLearner:
    """Predicts the mean target of its training sample (regression)."""

    def fit(self, X, y) -> float:
        y = np.asarray(y, dtype=float)
        if y.size == 0:
            raise ValueError("MeanLearner cannot fit an empty sample")
        return float(y.mean())

    def predict(self, model: float, X) -> np.ndarray:
        return np.full(_n_rows(X), model, dtype=float)

    def __repr__(self):
        return "MeanLearner()"


class MajorityLearner:
    """Predicts the most frequent class of its training sample.

    Ties go to the lowest class label.
    """

    def fit(self, X, y) -> Any:
        labels, counts = np.unique(np.asarray(y), return_counts=True)
        if labels.size == 0:
            raise ValueError("MajorityLearner cannot fit an empty sample")
        # argmax returns the first maximum, i.e. the lowest label
        return labels[int(np.argmax(counts))]

    def predict(self, model: Any, X) -> np.ndarray:
        return np.full(_n_rows(X), model)

    def predict_proba(self, model: Any, X) -> np.ndarray:
        return np.ones((_n_rows(X), 1))

    def classes(self, model: Any) -> np.ndarray:
        return np.asarray([model])

    def __repr__(self):
        return "MajorityLearner()"


def _n_rows(X) -> int:
    shape = getattr(X, 'shape', None)
    if shape is not None and len(shape) > 0:
        return int(shape[0])
    return len(X)


BUILTIN_LEARNERS = {
    'mean': MeanLearner,
    'majority': MajorityLearner
}


class LearnerPool:
    """Builds base learners from the configured learner table.

    Attributes:
        config: BaggingConfig holding the learner table

    Example:
        >>> from bagging.config import BaggingConfig
        >>> pool = LearnerPool(BaggingConfig(task='classification'))
        >>> learner = pool.build('knn')
    """

    def __init__(self, config: BaggingConfig):
        self.config = config

    def get_available_learners(self, task: Optional[str] = None) -> list:
        """Names of enabled learners for a task (default: configured task)."""
        task = task or self.config.task
        return [
            name for name, learner_config in self.config.learners.get(task, {}).items()
            if learner_config.enabled
        ]

    def get_config(self, name: str, task: Optional[str] = None) -> LearnerConfig:
        """Get configuration for a specific learner.

        Raises:
            KeyError: If learner name not found for the task
        """
        task = task or self.config.task
        task_learners = self.config.learners.get(task, {})
        if name not in task_learners:
            raise KeyError(f"Learner '{name}' not found for task '{task}'")
        return task_learners[name]

    def build(self, name: Optional[str] = None, task: Optional[str] = None):
        """Build a base learner by name.

        Args:
            name: Learner name (default: config.learner)
            task: Task name (default: config.task)

        Returns:
            Object implementing the base learner capability
        """
        name = name or self.config.learner
        learner_config = self.get_config(name, task)

        if learner_config.estimator_class is None:
            if name not in BUILTIN_LEARNERS:
                raise KeyError(f"Learner '{name}' has no estimator class and is not built in")
            return BUILTIN_LEARNERS[name]()

        params: Dict[str, Any] = dict(learner_config.hyperparameters)
        return SklearnLearner(
            learner_config.estimator_class(**params),
            seed_estimator=learner_config.seed_estimator
        )
