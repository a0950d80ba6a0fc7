"""Worker management for parallel base learner fitting.

Fits are independent, so jobs are handed to a thread or process pool and
collected in completion order, then reassembled by iteration. The first
failed fit cancels the remaining jobs and is raised to the caller tagged
with its iteration; no iteration is retried or skipped.
"""

import logging
import os
import time
from concurrent.futures import (
    Future, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
)
from typing import Callable, Dict, List, Optional

import numpy as np
import psutil

from bagging.core.ensemble import EnsembleMember
from bagging.errors import BaseLearnerFitError, ConfigurationError
from bagging.parallel.scheduler import FitJob, resolve_n_workers
from bagging.utils import take_rows


def fit_single_member(job: FitJob, X, y, learner) -> EnsembleMember:
    """Fit one base learner on its bootstrap sample.

    Parameters
    ----------
    job : FitJob
        Bootstrap iteration to fit.
    X, y : DataFrame/Series or arrays
        Full training set (read-only).
    learner : object
        Base learner capability.

    Returns
    -------
    member : EnsembleMember
        Fitted member paired with the job's out-of-bag set.
    """
    # Track memory usage
    process = psutil.Process(os.getpid())
    mem_before = process.memory_info().rss / 1024 / 1024  # MB
    start = time.perf_counter()

    X_sample = take_rows(X, job.indices)
    y_sample = take_rows(y, job.indices)
    if getattr(learner, 'seed_estimator', False) and job.seed is not None:
        model = learner.fit(X_sample, y_sample, random_state=job.seed)
    else:
        model = learner.fit(X_sample, y_sample)

    runtime_sec = time.perf_counter() - start
    mem_after = process.memory_info().rss / 1024 / 1024  # MB

    return EnsembleMember(
        iteration=job.iteration,
        model=model,
        oob_indices=job.oob_indices,
        n_unique=job.n_unique,
        fit_time_sec=runtime_sec,
        memory_mb=mem_after - mem_before
    )


def _fit_error(job: FitJob, error: Exception) -> BaseLearnerFitError:
    return BaseLearnerFitError(job.iteration, f"{type(error).__name__}: {error}")


def fit_members_sequential(
    jobs: List[FitJob],
    X,
    y,
    learner,
    progress_callback: Optional[Callable[[int, int], None]] = None
) -> List[EnsembleMember]:
    """Fit all jobs in the calling thread, in iteration order."""
    members = []
    for job in jobs:
        try:
            members.append(fit_single_member(job, X, y, learner))
        except Exception as e:
            raise _fit_error(job, e) from e
        if progress_callback is not None:
            progress_callback(len(members), len(jobs))
    return members


def fit_members_parallel(
    jobs: List[FitJob],
    X,
    y,
    learner,
    backend: str = 'thread',
    max_workers: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None
) -> List[EnsembleMember]:
    """Fit a batch of bootstrap jobs on a worker pool.

    Parameters
    ----------
    jobs : list of FitJob
        Jobs to fit.
    X, y : DataFrame/Series or arrays
        Full training set shared by all jobs.
    learner : object
        Base learner capability. Must be picklable for the process backend.
    backend : {'thread', 'process', 'sequential'}, default='thread'
        Executor type.
    max_workers : int or None, default=None
        Maximum number of workers. If None, uses the number of CPUs.
    logger : logging.Logger, optional
        Logger for status messages.
    progress_callback : callable, optional
        Called as ``progress_callback(completed, total)`` after each fit.

    Returns
    -------
    members : list of EnsembleMember
        Fitted members ordered by iteration.

    Raises
    ------
    BaseLearnerFitError
        If any fit fails. Pending jobs are cancelled.
    """
    logger = logger or logging.getLogger('bagging')

    if not jobs:
        return []

    if backend == 'sequential':
        return fit_members_sequential(jobs, X, y, learner, progress_callback)

    if backend == 'thread':
        executor_class = ThreadPoolExecutor
    elif backend == 'process':
        executor_class = ProcessPoolExecutor
    else:
        raise ConfigurationError(f"Unknown backend '{backend}'")

    n_workers = resolve_n_workers(max_workers, len(jobs))
    logger.debug(f"Fitting {len(jobs)} members on {n_workers} {backend} workers")

    results: Dict[int, EnsembleMember] = {}

    with executor_class(max_workers=n_workers) as executor:
        future_to_job: Dict[Future, FitJob] = {
            executor.submit(fit_single_member, job, X, y, learner): job
            for job in jobs
        }

        # Collect results as they complete
        for future in as_completed(future_to_job):
            job = future_to_job[future]

            try:
                results[job.iteration] = future.result()
            except Exception as e:
                for pending in future_to_job:
                    pending.cancel()
                logger.error(f"Iteration {job.iteration}: base learner fit failed - {e}")
                raise _fit_error(job, e) from e

            if progress_callback is not None:
                progress_callback(len(results), len(jobs))

    return [results[iteration] for iteration in sorted(results)]


def summarize_members(members: List[EnsembleMember]) -> dict:
    """Fit time and memory statistics for fitted members."""
    if not members:
        return {'n_members': 0, 'total_fit_time_sec': 0.0,
                'mean_fit_time_sec': 0.0, 'max_memory_mb': 0.0}

    fit_times = np.array([m.fit_time_sec for m in members])
    return {
        'n_members': len(members),
        'total_fit_time_sec': float(fit_times.sum()),
        'mean_fit_time_sec': float(fit_times.mean()),
        'max_memory_mb': float(max(m.memory_mb for m in members))
    }
