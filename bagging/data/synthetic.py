"""Synthetic datasets with injected noise.

Noisy targets make single unpruned trees overfit, which is the setting
where bagging visibly reduces error.
"""

from typing import Tuple

import numpy as np
import pandas as pd
from sklearn.datasets import make_classification, make_friedman1


def make_noisy_regression(
    n_samples: int = 500,
    n_features: int = 5,
    noise: float = 1.0,
    random_state: int = 42
) -> Tuple[pd.DataFrame, pd.Series]:
    """Friedman #1 regression problem with Gaussian noise.

    Parameters
    ----------
    n_samples : int, default=500
        Number of rows.
    n_features : int, default=5
        Number of features (>= 5; only the first five are informative).
    noise : float, default=1.0
        Standard deviation of the Gaussian noise added to the target.
    random_state : int, default=42
        Random state for reproducibility.

    Returns
    -------
    X : pd.DataFrame
        Features named feature_0 .. feature_{n_features-1}.
    y : pd.Series
        Noisy target named 'target'.
    """
    X, y = make_friedman1(
        n_samples=n_samples,
        n_features=n_features,
        noise=noise,
        random_state=random_state
    )
    columns = [f'feature_{i}' for i in range(X.shape[1])]
    return pd.DataFrame(X, columns=columns), pd.Series(y, name='target')


def make_noisy_classification(
    n_samples: int = 500,
    n_features: int = 10,
    n_classes: int = 2,
    flip_y: float = 0.1,
    random_state: int = 42
) -> Tuple[pd.DataFrame, pd.Series]:
    """Classification problem with a fraction of flipped labels.

    Parameters
    ----------
    n_samples : int, default=500
        Number of rows.
    n_features : int, default=10
        Number of features.
    n_classes : int, default=2
        Number of classes.
    flip_y : float, default=0.1
        Fraction of labels assigned at random.
    random_state : int, default=42
        Random state for reproducibility.

    Returns
    -------
    X : pd.DataFrame
        Features named feature_0 .. feature_{n_features-1}.
    y : pd.Series
        Integer class labels named 'target'.
    """
    n_informative = max(2, n_features // 2)
    X, y = make_classification(
        n_samples=n_samples,
        n_features=n_features,
        n_informative=n_informative,
        n_redundant=min(2, n_features - n_informative),
        n_classes=n_classes,
        flip_y=flip_y,
        random_state=random_state
    )
    columns = [f'feature_{i}' for i in range(X.shape[1])]
    return pd.DataFrame(X, columns=columns), pd.Series(y.astype(np.int64), name='target')
