"""Ensemble training and evaluation.

This subpackage handles:
- Bagging training (BaggingTrainer and the train convenience function)
- Held-out comparison against a single base learner
"""

from .trainer import BaggingTrainer, train
from .evaluation import (
    compare_with_single_learner,
    evaluate_ensemble,
    evaluate_single_learner,
    prediction_error
)

__all__ = [
    'BaggingTrainer',
    'train',
    'compare_with_single_learner',
    'evaluate_ensemble',
    'evaluate_single_learner',
    'prediction_error'
]
