"""Bagging ensemble training.

This module turns a training set, an iteration count and a base learner
into a BaggingEnsemble: bootstrap draws are prepared per iteration, fit on
a worker pool and reassembled in iteration order. Optional OOB scoring and
run tracking happen after all members are fit.
"""

import logging
import math
import time
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

import numpy as np

from bagging.config import BaggingConfig, ParallelConfig
from bagging.core.ensemble import BaggingEnsemble, FeatureSchema
from bagging.core.learners import LearnerPool, supports_proba
from bagging.core.oob import OOBAccumulator, oob_error_curve
from bagging.core.sampler import BootstrapSampler
from bagging.errors import ConfigurationError, InsufficientOOBCoverageError, SchemaMismatchError
from bagging.parallel.scheduler import get_batch_info, prepare_fit_jobs
from bagging.parallel.worker import fit_members_parallel, summarize_members
from bagging.tracking.database import BaggingDatabase
from bagging.tracking.logger import (
    log_error, log_performance_metrics, log_phase_end, log_phase_start,
    log_success, log_training_progress, log_warning, logger_from_config
)
from bagging.persistence import save_ensemble
from bagging.utils import compute_run_hash


class BaggingTrainer:
    """Trains bagging ensembles from a BaggingConfig.

    Attributes:
        config: Validated BaggingConfig
        learner: Base learner capability (built from config.learner if not given)
        sampler: BootstrapSampler seeded with config.random_state
        logger: Logger for status messages
        database: Run tracking database, or None when tracking is disabled

    Example:
        >>> config = BaggingConfig(n_estimators=100, random_state=42)
        >>> trainer = BaggingTrainer(config)
        >>> ensemble = trainer.train(X_train, y_train)
        >>> print(ensemble.metadata['oob_error'])
    """

    def __init__(
        self,
        config: Optional[BaggingConfig] = None,
        learner: Any = None,
        logger: Optional[logging.Logger] = None,
        database: Optional[BaggingDatabase] = None,
        sampler: Optional[BootstrapSampler] = None
    ):
        self.config = config or BaggingConfig()
        self.config.validate()

        if learner is None or isinstance(learner, str):
            self.learner_name = learner or self.config.learner
            self.config.check_learner(self.learner_name)
            learner = LearnerPool(self.config).build(self.learner_name)
        else:
            self.learner_name = repr(learner)
        self.learner = learner

        if self.config.task == 'classification' and self.config.voting == 'soft' \
                and not supports_proba(learner):
            raise ConfigurationError(f"Soft voting needs predict_proba and classes on {learner!r}")

        self.sampler = sampler or BootstrapSampler(self.config.random_state)
        self.logger = logger or logger_from_config(self.config.tracking)

        if database is None and self.config.tracking.db_path:
            database = BaggingDatabase(
                self.config.tracking.db_path,
                enable_wal=self.config.tracking.enable_wal
            )
            database.initialize()
        self.database = database

    def _progress_callback(self, total: int):
        step = max(1, math.ceil(total * self.config.tracking.progress_every))

        def callback(completed: int, total_jobs: int) -> None:
            if completed % step == 0 or completed == total_jobs:
                log_training_progress(self.logger, completed, total_jobs)

        return callback

    def train(
        self,
        X,
        y,
        oob_score: bool = False,
        oob_curve: bool = False,
        run_id: Optional[str] = None
    ) -> BaggingEnsemble:
        """Fit config.n_estimators base learners on bootstrap samples.

        Parameters
        ----------
        X : DataFrame or 2-D array
            Training features (N rows).
        y : Series or 1-D array
            Training targets.
        oob_score : bool, default=False
            Compute the OOB error and store it in ``ensemble.metadata``.
        oob_curve : bool, default=False
            Also compute the OOB error curve over 1..B members.
        run_id : str, optional
            Identifier for run tracking (generated if omitted).

        Returns
        -------
        ensemble : BaggingEnsemble
            Immutable ensemble of config.n_estimators members.

        Raises
        ------
        ConfigurationError
            If the training set is empty.
        SchemaMismatchError
            If X and y have different lengths.
        BaseLearnerFitError
            If a base learner fit fails. No partial ensemble is returned.
        """
        config = self.config
        n_samples = len(X)
        if n_samples == 0:
            raise ConfigurationError("Training set must contain at least one example")
        if len(y) != n_samples:
            raise SchemaMismatchError(f"X has {n_samples} rows but y has {len(y)}")

        schema = FeatureSchema.from_data(X)
        classes = np.unique(np.asarray(y)) if config.task == 'classification' else None
        run_id = run_id or uuid.uuid4().hex[:12]

        log_phase_start(
            self.logger,
            'Bagging training',
            f"{config.n_estimators} x {self.learner!r} on {n_samples:,} rows "
            f"({config.parallel.backend} backend)"
        )
        start = time.time()

        jobs = prepare_fit_jobs(config.n_estimators, n_samples, self.sampler)
        batch_info = get_batch_info(jobs)
        self.logger.debug(f"Prepared {batch_info['n_jobs']} bootstrap jobs")
        if batch_info['empty_oob_jobs']:
            log_warning(
                self.logger,
                f"{batch_info['empty_oob_jobs']} bootstrap draws cover every row "
                f"and have no out-of-bag rows"
            )

        try:
            members = fit_members_parallel(
                jobs, X, y, self.learner,
                backend=config.parallel.backend,
                max_workers=config.parallel.n_workers,
                logger=self.logger,
                progress_callback=self._progress_callback(len(jobs))
            )
        except Exception as e:
            log_error(self.logger, e, context='bagging training')
            raise

        ensemble = BaggingEnsemble(
            members=tuple(members),
            learner=self.learner,
            task=config.task,
            schema=schema,
            n_samples=n_samples,
            classes=classes,
            voting=config.voting
        )

        metadata = {
            'run_id': run_id,
            'random_state': config.random_state,
            'trained_at': datetime.now().isoformat()
        }
        if oob_score or oob_curve:
            metadata.update(self._score_oob(ensemble, X, y, oob_curve))

        elapsed = time.time() - start
        metadata['training_time_sec'] = elapsed
        ensemble = replace(ensemble, metadata=metadata)

        log_performance_metrics(self.logger, summarize_members(members), prefix='Fit statistics')
        if 'oob_error' in metadata:
            log_performance_metrics(
                self.logger,
                {'oob_error': metadata['oob_error'], 'oob_coverage': metadata['oob_coverage']},
                prefix='Out-of-bag'
            )
        log_phase_end(self.logger, 'Bagging training', elapsed)

        if self.database is not None:
            self._record_run(ensemble)

        if config.paths.checkpoint_path:
            save_ensemble(ensemble, config.paths.checkpoint_path)
            log_success(self.logger, f"Ensemble saved to {config.paths.checkpoint_path}")

        return ensemble

    def _score_oob(self, ensemble: BaggingEnsemble, X, y, with_curve: bool) -> dict:
        accumulator = OOBAccumulator(ensemble, X)
        for member in ensemble.members:
            accumulator.add(member)

        scores = {'oob_coverage': accumulator.result().coverage}
        try:
            scores['oob_error'] = accumulator.error(y)
        except InsufficientOOBCoverageError as e:
            log_warning(self.logger, str(e))
            scores['oob_error'] = None

        if with_curve and len(ensemble) > 0:
            scores['oob_curve'] = oob_error_curve(ensemble, X, y)
        return scores

    def _record_run(self, ensemble: BaggingEnsemble) -> None:
        config = self.config
        run_data = {
            'run_id': ensemble.metadata['run_id'],
            'task': config.task,
            'learner': self.learner_name,
            'n_estimators': len(ensemble),
            'n_samples': ensemble.n_samples,
            'n_features': ensemble.schema.n_features,
            'random_state': config.random_state,
            'voting': config.voting if config.task == 'classification' else None,
            'backend': config.parallel.backend,
            'oob_error': ensemble.metadata.get('oob_error'),
            'oob_coverage': ensemble.metadata.get('oob_coverage'),
            'training_time_sec': ensemble.metadata.get('training_time_sec')
        }
        run_data['config_hash'] = compute_run_hash(run_data)

        self.database.insert_run(run_data)
        self.database.insert_members(run_data['run_id'], ensemble.members)
        if 'oob_curve' in ensemble.metadata:
            self.database.insert_oob_curve(run_data['run_id'], ensemble.metadata['oob_curve'])


def train(
    X,
    y,
    n_estimators: int,
    learner: Any,
    random_state: Optional[int] = None,
    task: str = 'regression',
    voting: str = 'hard',
    backend: str = 'thread',
    n_workers: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
    sampler: Optional[BootstrapSampler] = None
) -> BaggingEnsemble:
    """Train a bagging ensemble (convenience function).

    This is a convenience wrapper around BaggingTrainer for simple use cases.

    Parameters
    ----------
    X, y : training set
        Features (DataFrame or 2-D array) and targets.
    n_estimators : int
        Number of bootstrap iterations (B >= 0).
    learner : object or str
        Base learner capability, or a learner name from the default table.
    random_state : int, optional
        Root seed; the same seed reproduces the same bootstrap draws.
    task : {'regression', 'classification'}, default='regression'
    voting : {'hard', 'soft'}, default='hard'
    backend : {'thread', 'process', 'sequential'}, default='thread'
    n_workers : int, optional
        Worker count (None = number of CPUs).
    logger : logging.Logger, optional
    sampler : BootstrapSampler, optional
        Custom sampler (overrides random_state).

    Returns
    -------
    ensemble : BaggingEnsemble
    """
    config = BaggingConfig(
        random_state=random_state,
        task=task,
        n_estimators=n_estimators,
        voting=voting,
        parallel=ParallelConfig(backend=backend, n_workers=n_workers)
    )
    if isinstance(learner, str):
        config.learner = learner
    trainer = BaggingTrainer(config, learner=learner, logger=logger, sampler=sampler)
    return trainer.train(X, y)
