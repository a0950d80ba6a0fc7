"""Unit tests for data modules.

This test suite validates feature/target separation, TrainTestSplit and
the synthetic datasets.
"""

import unittest
import sys
from pathlib import Path
import numpy as np
import pandas as pd

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bagging.data import (
    TrainTestSplit, make_noisy_classification, make_noisy_regression, split_features_target
)


class TestSplitFeaturesTarget(unittest.TestCase):
    """Test feature/target separation."""

    def test_split(self):
        """Test the label column is separated from the features."""
        data = pd.DataFrame({'a': [1, 2], 'b': [3, 4], 'label': [0, 1]})
        X, y = split_features_target(data, 'label')

        self.assertEqual(list(X.columns), ['a', 'b'])
        self.assertEqual(y.tolist(), [0, 1])

    def test_missing_label(self):
        """Test a missing label column raises KeyError."""
        with self.assertRaises(KeyError):
            split_features_target(pd.DataFrame({'a': [1]}), 'label')


class TestTrainTestSplit(unittest.TestCase):
    """Test TrainTestSplit functionality."""

    def setUp(self):
        """Set up labeled classification data."""
        X, y = make_noisy_classification(n_samples=400, random_state=0)
        self.data = X.assign(target=y)

    def test_split_sizes(self):
        """Test split sizes add up."""
        split = TrainTestSplit(self.data, 'target', test_size=0.25)
        X_train, X_test, y_train, y_test = split.get_all_splits()

        self.assertEqual(len(X_train), 300)
        self.assertEqual(len(X_test), 100)
        self.assertEqual(len(y_train), len(X_train))
        self.assertNotIn('target', X_train.columns)

    def test_stratification(self):
        """Test integer labels are stratified."""
        split = TrainTestSplit(self.data, 'target')
        _, y_train = split.get_train()
        _, y_test = split.get_test()

        self.assertTrue(split.stratified)
        self.assertAlmostEqual(y_train.mean(), y_test.mean(), delta=0.02)

    def test_regression_not_stratified(self):
        """Test float labels are not stratified."""
        X, y = make_noisy_regression(n_samples=100)
        split = TrainTestSplit(X.assign(target=y), 'target', test_size=0.2)

        self.assertFalse(split.stratified)
        self.assertEqual(len(split.get_test()[0]), 20)

    def test_reproducible(self):
        """Test the same random_state gives the same split."""
        first = TrainTestSplit(self.data, 'target', random_state=7).get_test()[0]
        second = TrainTestSplit(self.data, 'target', random_state=7).get_test()[0]

        self.assertEqual(list(first.index), list(second.index))

    def test_summary(self):
        """Test summary generation."""
        summary = TrainTestSplit(self.data, 'target').summary()

        self.assertIn("Data Split Summary", summary)
        self.assertIn("400", summary)


class TestSyntheticData(unittest.TestCase):
    """Test synthetic noisy datasets."""

    def test_regression_shape(self):
        """Test regression data shape and names."""
        X, y = make_noisy_regression(n_samples=50, n_features=7, random_state=1)

        self.assertEqual(X.shape, (50, 7))
        self.assertEqual(list(X.columns)[:2], ['feature_0', 'feature_1'])
        self.assertEqual(y.name, 'target')
        self.assertTrue(pd.api.types.is_float_dtype(y))

    def test_noise_changes_targets(self):
        """Test noise is added to the targets."""
        _, clean = make_noisy_regression(n_samples=50, noise=0.0, random_state=1)
        _, noisy = make_noisy_regression(n_samples=50, noise=2.0, random_state=1)

        self.assertFalse(np.allclose(clean, noisy))

    def test_classification_labels(self):
        """Test classification labels are integers in range."""
        X, y = make_noisy_classification(n_samples=90, n_classes=3, random_state=1)

        self.assertEqual(X.shape, (90, 10))
        self.assertEqual(sorted(y.unique()), [0, 1, 2])
        self.assertEqual(y.dtype, np.int64)


if __name__ == '__main__':
    unittest.main(verbosity=2)
