"""Core bagging abstractions.

This subpackage provides clean, testable implementations of the core
bagging concepts:
- Bootstrap sampling with out-of-bag tracking
- Base learner capability and built-in learners
- Prediction aggregation (mean, plurality vote, soft vote)
- The fitted ensemble and out-of-bag error estimation
"""

from bagging.core.sampler import BootstrapSampler, out_of_bag_indices
from bagging.core.learners import (
    BaseLearner, LearnerPool, MajorityLearner, MeanLearner, SklearnLearner, supports_proba
)
from bagging.core.aggregation import mean_prediction, mean_probability, plurality_vote
from bagging.core.ensemble import BaggingEnsemble, EnsembleMember, FeatureSchema
from bagging.core.oob import (
    OOBPredictions, out_of_bag_error, out_of_bag_predictions, oob_error_curve
)

__all__ = [
    'BootstrapSampler',
    'out_of_bag_indices',
    'BaseLearner',
    'LearnerPool',
    'MajorityLearner',
    'MeanLearner',
    'SklearnLearner',
    'supports_proba',
    'mean_prediction',
    'mean_probability',
    'plurality_vote',
    'BaggingEnsemble',
    'EnsembleMember',
    'FeatureSchema',
    'OOBPredictions',
    'out_of_bag_error',
    'out_of_bag_predictions',
    'oob_error_curve'
]
