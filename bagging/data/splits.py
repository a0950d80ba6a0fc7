"""Data splitting utilities for bagging experiments.

Bagging estimates generalization error from out-of-bag rows, so only a
single held-out test split is needed to check that estimate.
"""

from typing import Optional, Tuple

import pandas as pd
from sklearn.model_selection import train_test_split


def split_features_target(data: pd.DataFrame, label_column: str) -> Tuple[pd.DataFrame, pd.Series]:
    """Separate a labeled DataFrame into features and target.

    Parameters
    ----------
    data : pd.DataFrame
        Dataset including the label column.
    label_column : str
        Name of the label column.

    Returns
    -------
    X : pd.DataFrame
        Feature columns.
    y : pd.Series
        Target column.
    """
    if label_column not in data.columns:
        raise KeyError(f"Label column '{label_column}' not in data")
    return data.drop(columns=[label_column]), data[label_column]


class TrainTestSplit:
    """Manages a reproducible train / held-out test split.

    Classification splits are stratified to preserve class distribution.
    """

    def __init__(
        self,
        data: pd.DataFrame,
        label_column: str,
        test_size: float = 0.25,
        random_state: int = 42,
        stratify: Optional[bool] = None
    ):
        """Initialize data split.

        Parameters
        ----------
        data : pd.DataFrame
            Full dataset with labels.
        label_column : str
            Name of the label column.
        test_size : float, default=0.25
            Fraction of rows held out for testing.
        random_state : int, default=42
            Random state for reproducible splits.
        stratify : bool or None, default=None
            Stratify by label. If None, stratifies when the label is not
            floating point.
        """
        assert 0 < test_size < 1, f"test_size must be in (0, 1), got {test_size}"

        self.label_column = label_column
        self.random_state = random_state

        X_full, y_full = split_features_target(data, label_column)
        if stratify is None:
            stratify = not pd.api.types.is_float_dtype(y_full)

        self.X_train, self.X_test, self.y_train, self.y_test = train_test_split(
            X_full,
            y_full,
            test_size=test_size,
            random_state=random_state,
            stratify=y_full if stratify else None
        )
        self.stratified = stratify

        self._sizes = {
            'train': len(self.X_train),
            'test': len(self.X_test),
            'total': len(X_full)
        }

    def get_train(self) -> Tuple[pd.DataFrame, pd.Series]:
        """Get training data."""
        return self.X_train, self.y_train

    def get_test(self) -> Tuple[pd.DataFrame, pd.Series]:
        """Get held-out test data."""
        return self.X_test, self.y_test

    def get_all_splits(self) -> Tuple[pd.DataFrame, pd.DataFrame, pd.Series, pd.Series]:
        """Get all splits at once, in train_test_split order."""
        return self.X_train, self.X_test, self.y_train, self.y_test

    def summary(self) -> str:
        """Get summary of data split.

        Returns
        -------
        summary : str
            Human-readable summary of the split.
        """
        total = self._sizes['total']
        lines = [
            "Data Split Summary",
            "=" * 60,
            f"Total samples: {total:,}",
            f"  Training:  {self._sizes['train']:,} ({self._sizes['train']/total*100:.1f}%)",
            f"  Held-out:  {self._sizes['test']:,} ({self._sizes['test']/total*100:.1f}%)",
            f"Stratified: {self.stratified}",
            "=" * 60
        ]
        return "\n".join(lines)
