"""Bootstrap aggregating (bagging) ensembles.

A bagging system featuring:
- Bootstrap resampling from per-iteration seeded generators
- Pluggable base learners (any fit/predict capability, sklearn wrappers included)
- Parallel fitting on thread or process pools
- Mean / plurality-vote / soft-vote aggregation
- Out-of-bag error estimation and OOB error curves
- Run tracking via SQLite and joblib persistence
"""

__version__ = "1.0.0"
__author__ = "Bagging Ensemble Team"

from bagging.config import BaggingConfig
from bagging.core import (
    BaggingEnsemble, BootstrapSampler, MajorityLearner, MeanLearner, SklearnLearner,
    out_of_bag_error, oob_error_curve
)
from bagging.errors import (
    BaggingError, BaseLearnerFitError, ConfigurationError, EmptyEnsembleError,
    InsufficientOOBCoverageError, SchemaMismatchError
)
from bagging.training import BaggingTrainer, train

__all__ = [
    'BaggingConfig',
    'BaggingEnsemble',
    'BaggingTrainer',
    'BootstrapSampler',
    'MajorityLearner',
    'MeanLearner',
    'SklearnLearner',
    'train',
    'out_of_bag_error',
    'oob_error_curve',
    # Errors
    'BaggingError',
    'BaseLearnerFitError',
    'ConfigurationError',
    'EmptyEnsembleError',
    'InsufficientOOBCoverageError',
    'SchemaMismatchError'
]
