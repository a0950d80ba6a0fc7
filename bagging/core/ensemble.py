"""Fitted bagging ensemble and its feature schema.

A BaggingEnsemble is created once by the trainer and never modified
afterwards: members are stored in a tuple, and every member keeps the
(model, out-of-bag set) pairing of the iteration that produced it.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from bagging.core.aggregation import (
    mean_prediction, mean_probability, plurality_vote, resolve_scores, vote_counts
)
from bagging.core.learners import supports_proba
from bagging.errors import ConfigurationError, EmptyEnsembleError, SchemaMismatchError


@dataclass(frozen=True)
class FeatureSchema:
    """Shape and column layout of the training features.

    Attributes:
        n_features: Number of feature columns
        columns: Column names when trained on a DataFrame, else None
        numeric: Per-column flag, True when the training column was numeric
    """
    n_features: int
    columns: Optional[Tuple[Any, ...]] = None
    numeric: Tuple[bool, ...] = ()

    @classmethod
    def from_data(cls, X) -> 'FeatureSchema':
        """Record the schema of a training feature matrix."""
        if isinstance(X, pd.DataFrame):
            return cls(
                n_features=X.shape[1],
                columns=tuple(X.columns),
                numeric=tuple(pd.api.types.is_numeric_dtype(X[col]) for col in X.columns)
            )

        X = np.asarray(X)
        if X.ndim != 2:
            raise SchemaMismatchError(f"Training features must be 2-D, got {X.ndim}-D")
        is_numeric = bool(np.issubdtype(X.dtype, np.number) or X.dtype == bool)
        return cls(n_features=X.shape[1], numeric=(is_numeric,) * X.shape[1])

    def conform(self, X):
        """Validate a feature matrix and return it in the training layout.

        A single feature vector (1-D array, list or Series) is treated as one
        row. DataFrame columns are reordered to the training order.

        Raises:
            SchemaMismatchError: If the features do not match the schema
        """
        if isinstance(X, pd.Series):
            X = X.to_frame().T.infer_objects()
        elif not isinstance(X, pd.DataFrame):
            X = np.asarray(X)
            if X.ndim == 1:
                X = X.reshape(1, -1)
            if X.ndim != 2:
                raise SchemaMismatchError(f"Features must be 1-D or 2-D, got {X.ndim}-D")

        if X.shape[1] != self.n_features:
            raise SchemaMismatchError(
                f"Expected {self.n_features} features, got {X.shape[1]}"
            )

        if isinstance(X, pd.DataFrame):
            if self.columns is not None:
                missing = [col for col in self.columns if col not in X.columns]
                unknown = [col for col in X.columns if col not in self.columns]
                if missing or unknown:
                    raise SchemaMismatchError(
                        f"Column mismatch: missing {missing}, unknown {unknown}"
                    )
                X = X[list(self.columns)]
                for col, was_numeric in zip(self.columns, self.numeric):
                    if was_numeric and not pd.api.types.is_numeric_dtype(X[col]):
                        raise SchemaMismatchError(
                            f"Column '{col}' was numeric at training time, got {X[col].dtype}"
                        )
            else:
                X = X.to_numpy()

        if isinstance(X, np.ndarray):
            if all(self.numeric) and not (np.issubdtype(X.dtype, np.number) or X.dtype == bool):
                try:
                    X = X.astype(float)
                except (TypeError, ValueError) as e:
                    raise SchemaMismatchError(f"Expected numeric features: {e}") from e
            if self.columns is not None:
                X = pd.DataFrame(X, columns=list(self.columns))

        return X


@dataclass(frozen=True, eq=False)
class EnsembleMember:
    """One fitted base learner and the rows it never saw.

    Attributes:
        iteration: Index of the bootstrap iteration that produced the member
        model: Fitted model returned by the base learner
        oob_indices: Sorted training-row indices absent from the bootstrap draw
        n_unique: Number of distinct rows in the bootstrap draw
        fit_time_sec: Wall-clock fit time
        memory_mb: Resident memory change observed while fitting
    """
    iteration: int
    model: Any
    oob_indices: np.ndarray
    n_unique: int
    fit_time_sec: float = 0.0
    memory_mb: float = 0.0

    def __post_init__(self):
        oob_indices = np.array(self.oob_indices, dtype=np.intp)
        oob_indices.flags.writeable = False
        object.__setattr__(self, 'oob_indices', oob_indices)

    @property
    def oob_size(self) -> int:
        return int(len(self.oob_indices))


@dataclass(frozen=True, eq=False)
class BaggingEnsemble:
    """Fitted bagging ensemble.

    Attributes:
        members: Ensemble members ordered by iteration
        learner: Base learner used to fit and predict members
        task: 'regression' or 'classification'
        schema: Training feature schema
        n_samples: Training set size N
        classes: Sorted class labels (classification only)
        voting: 'hard' or 'soft' (classification only)
        metadata: Run details recorded by the trainer (run_id, OOB error, timing)

    Example:
        >>> ensemble = train(X, y, n_estimators=100, learner=learner, random_state=42)
        >>> y_pred = ensemble.predict(X_test)
        >>> per_member = ensemble.member_predictions(X_test)
    """
    members: Tuple[EnsembleMember, ...]
    learner: Any
    task: str
    schema: FeatureSchema
    n_samples: int
    classes: Optional[np.ndarray] = None
    voting: str = 'hard'
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'members', tuple(self.members))
        object.__setattr__(self, 'metadata', dict(self.metadata))
        # members unpickled from worker processes come back writeable
        for member in self.members:
            member.oob_indices.flags.writeable = False
        if self.task == 'classification':
            if self.classes is None or len(self.classes) == 0:
                raise ConfigurationError("classification ensemble needs class labels")
            if self.voting == 'soft' and not supports_proba(self.learner):
                raise ConfigurationError(
                    f"Soft voting needs a learner with predict_proba and classes, "
                    f"got {self.learner!r}"
                )

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[EnsembleMember]:
        return iter(self.members)

    @property
    def n_estimators(self) -> int:
        return len(self.members)

    @property
    def models(self) -> List[Any]:
        """Fitted base learners in iteration order."""
        return [member.model for member in self.members]

    def with_members(self, members: Sequence[EnsembleMember]) -> 'BaggingEnsemble':
        """New ensemble sharing everything but the member sequence."""
        return BaggingEnsemble(
            members=tuple(members),
            learner=self.learner,
            task=self.task,
            schema=self.schema,
            n_samples=self.n_samples,
            classes=self.classes,
            voting=self.voting,
            metadata=dict(self.metadata)
        )

    def head(self, n_estimators: int) -> 'BaggingEnsemble':
        """Ensemble of the first n_estimators members."""
        return self.with_members(self.members[:n_estimators])

    def _require_members(self):
        if not self.members:
            raise EmptyEnsembleError()

    def predict_member(self, member: EnsembleMember, X) -> np.ndarray:
        """Predictions of a single member on already-conformed features."""
        return np.asarray(self.learner.predict(member.model, X))

    def member_predictions(self, X) -> np.ndarray:
        """Per-member predictions.

        Returns:
            (n_members, n_rows) prediction matrix

        Raises:
            EmptyEnsembleError: If the ensemble has no members
            SchemaMismatchError: If X does not match the training schema
        """
        self._require_members()
        X = self.schema.conform(X)
        return np.vstack([self.predict_member(member, X) for member in self.members])

    def predict_proba(self, X) -> np.ndarray:
        """Mean class-probability matrix (classification only).

        With hard voting, this is the vote share of each class.
        """
        self._require_members()
        if self.task != 'classification':
            raise ConfigurationError("predict_proba is only available for classification")

        X = self.schema.conform(X)
        if self.voting == 'soft':
            probas = [self.learner.predict_proba(m.model, X) for m in self.members]
            member_classes = [self.learner.classes(m.model) for m in self.members]
            return mean_probability(probas, member_classes, self.classes)

        predictions = np.vstack([self.predict_member(m, X) for m in self.members])
        return vote_counts(predictions, self.classes) / len(self.members)

    def predict(self, X) -> np.ndarray:
        """Aggregated prediction for every row of X.

        Regression: mean of member predictions. Classification: plurality
        vote (hard) or argmax of the mean probability vector (soft); ties go
        to the lowest class label.

        Raises:
            EmptyEnsembleError: If the ensemble has no members
            SchemaMismatchError: If X does not match the training schema
        """
        self._require_members()
        if self.task == 'regression':
            return mean_prediction(self.member_predictions(X))

        if self.voting == 'soft':
            return resolve_scores(self.predict_proba(X), self.classes)
        return plurality_vote(self.member_predictions(X), self.classes)

    def predict_one(self, x) -> Any:
        """Aggregated prediction for a single feature vector."""
        predictions = self.predict(x)
        if len(predictions) != 1:
            raise SchemaMismatchError(f"Expected one feature vector, got {len(predictions)} rows")
        value = predictions[0]
        return value.item() if isinstance(value, np.generic) else value

    def get_ensemble_info(self) -> dict:
        """Summary statistics about the bootstrap draws behind the members."""
        if not self.members:
            return {
                'n_estimators': 0,
                'n_samples': self.n_samples,
                'mean_unique_fraction': 0.0,
                'mean_oob_fraction': 0.0,
                'empty_oob_members': 0,
                'total_fit_time_sec': 0.0
            }

        unique_fractions = [m.n_unique / self.n_samples for m in self.members]
        oob_fractions = [m.oob_size / self.n_samples for m in self.members]
        return {
            'n_estimators': len(self.members),
            'n_samples': self.n_samples,
            'mean_unique_fraction': float(np.mean(unique_fractions)),
            'mean_oob_fraction': float(np.mean(oob_fractions)),
            'empty_oob_members': sum(1 for m in self.members if m.oob_size == 0),
            'total_fit_time_sec': float(sum(m.fit_time_sec for m in self.members))
        }

    def summary(self) -> str:
        """Human-readable ensemble summary."""
        info = self.get_ensemble_info()
        lines = [
            "Bagging Ensemble Summary",
            "=" * 50,
            f"Task: {self.task}",
            f"Base learner: {self.learner!r}",
            f"Members: {info['n_estimators']}",
            f"Training rows: {self.n_samples:,}",
            f"Features: {self.schema.n_features}",
        ]
        if self.task == 'classification':
            lines.append(f"Classes: {list(self.classes)}")
            lines.append(f"Voting: {self.voting}")
        lines += [
            f"Mean unique rows per draw: {info['mean_unique_fraction']:.1%}",
            f"Mean out-of-bag rows per draw: {info['mean_oob_fraction']:.1%}",
            f"Members with empty OOB set: {info['empty_oob_members']}",
            "=" * 50
        ]
        return "\n".join(lines)
