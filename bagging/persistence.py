"""Saving and loading fitted ensembles.

Ensembles are bundled with their metadata and written with joblib. The
learner and fitted models must be importable where the bundle is loaded.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import joblib

from bagging.core.ensemble import BaggingEnsemble

BUNDLE_VERSION = 1


def save_ensemble(
    ensemble: BaggingEnsemble,
    path: Path,
    metadata: Optional[Dict[str, Any]] = None
) -> Path:
    """Save a fitted ensemble bundle.

    Parameters
    ----------
    ensemble : BaggingEnsemble
        Fitted ensemble.
    path : Path
        Destination file (parent directories are created).
    metadata : dict, optional
        Extra metadata stored alongside the ensemble.

    Returns
    -------
    path : Path
        Path to the saved bundle.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    bundle = {
        'bundle_version': BUNDLE_VERSION,
        'ensemble': ensemble,
        'metadata': {
            'n_estimators': len(ensemble),
            'task': ensemble.task,
            'saved_at': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
            **(metadata or {})
        }
    }

    joblib.dump(bundle, path, compress=3)
    return path


def load_ensemble(path: Path, return_metadata: bool = False):
    """Load an ensemble bundle written by save_ensemble.

    Parameters
    ----------
    path : Path
        Bundle file.
    return_metadata : bool, default=False
        Also return the bundle metadata.

    Returns
    -------
    ensemble : BaggingEnsemble
        Or (ensemble, metadata) when return_metadata is True.

    Raises
    ------
    ValueError
        If the file is not an ensemble bundle.
    """
    bundle = joblib.load(Path(path))
    if not isinstance(bundle, dict) or not isinstance(bundle.get('ensemble'), BaggingEnsemble):
        raise ValueError(f"{path} is not a bagging ensemble bundle")

    if return_metadata:
        return bundle['ensemble'], bundle['metadata']
    return bundle['ensemble']
