"""Utility functions for bagging ensemble training."""

import hashlib
import json
from typing import Any, Dict

import numpy as np
import pandas as pd


def take_rows(X, indices):
    """Select rows by position from a DataFrame, Series or array."""
    if isinstance(X, (pd.DataFrame, pd.Series)):
        return X.iloc[indices]
    return np.asarray(X)[indices]


def compute_run_hash(metadata: Dict[str, Any]) -> str:
    """Compute a hash of a training run configuration for tracking.

    Parameters
    ----------
    metadata : dict
        Run metadata (task, learner, n_estimators, random_state, n_samples, ...).

    Returns
    -------
    hash_str : str
        SHA256 hash of the run configuration.
    """
    config_str = json.dumps({
        'task': metadata.get('task', ''),
        'learner': metadata.get('learner', ''),
        'n_estimators': metadata.get('n_estimators', 0),
        'random_state': metadata.get('random_state'),
        'n_samples': metadata.get('n_samples', 0),
        'n_features': metadata.get('n_features', 0),
        'voting': metadata.get('voting', '')
    }, sort_keys=True, default=str)

    return hashlib.sha256(config_str.encode()).hexdigest()[:16]
