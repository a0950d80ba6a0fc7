"""Data management utilities.

This subpackage handles data operations:
- Feature / target separation and train / test splitting
- Synthetic noisy datasets
"""

from .splits import TrainTestSplit, split_features_target
from .synthetic import make_noisy_classification, make_noisy_regression

__all__ = [
    # Data splitting
    'TrainTestSplit',
    'split_features_target',
    # Synthetic data
    'make_noisy_classification',
    'make_noisy_regression'
]
