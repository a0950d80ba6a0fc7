"""Job preparation for parallel base learner fitting.

Bootstrap draws are made in the main process from per-iteration generators,
so the jobs (and therefore the ensemble) are identical whichever backend or
worker count executes them.
"""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import psutil

from bagging.core.sampler import BootstrapSampler


@dataclass(frozen=True, eq=False)
class FitJob:
    """One bootstrap iteration to fit.

    Attributes:
        iteration: Iteration index
        indices: The N bootstrap-drawn training-row indices
        oob_indices: Sorted training-row indices never drawn
        seed: Seed for learners that take a per-iteration random_state
    """
    iteration: int
    indices: np.ndarray
    oob_indices: np.ndarray
    seed: Optional[int] = None

    @property
    def n_unique(self) -> int:
        # every row is either drawn at least once or out-of-bag
        return int(len(self.indices) - len(self.oob_indices))


def prepare_fit_jobs(
    n_estimators: int,
    n_samples: int,
    sampler: BootstrapSampler,
    start_iteration: int = 0
) -> List[FitJob]:
    """Prepare one fit job per bootstrap iteration.

    Parameters
    ----------
    n_estimators : int
        Number of iterations (B).
    n_samples : int
        Training set size (N).
    sampler : BootstrapSampler
        Sampler providing per-iteration draws.
    start_iteration : int, default=0
        Index of the first iteration.

    Returns
    -------
    jobs : list of FitJob
        Jobs ordered by iteration.
    """
    if n_estimators < 0:
        raise ValueError(f"n_estimators must be non-negative, got {n_estimators}")

    jobs = []
    for iteration in range(start_iteration, start_iteration + n_estimators):
        indices, oob_indices = sampler.draw(iteration, n_samples)
        jobs.append(FitJob(
            iteration=iteration,
            indices=indices,
            oob_indices=oob_indices,
            seed=sampler.estimator_seed(iteration)
        ))

    return jobs


def resolve_n_workers(n_workers: Optional[int], n_jobs: int) -> int:
    """Number of workers to start for n_jobs jobs.

    Parameters
    ----------
    n_workers : int or None
        Requested workers. If None, uses the number of logical CPUs.
    n_jobs : int
        Number of jobs to run.

    Returns
    -------
    n_workers : int
        At least 1 and never more than n_jobs.
    """
    if n_workers is None:
        n_workers = psutil.cpu_count(logical=True) or 1
    return max(1, min(n_workers, n_jobs))


def get_batch_info(jobs: List[FitJob]) -> dict:
    """Get summary information about prepared fit jobs.

    Parameters
    ----------
    jobs : list of FitJob
        Prepared jobs.

    Returns
    -------
    info : dict
        Dictionary with job statistics.
    """
    if not jobs:
        return {
            'n_jobs': 0,
            'n_samples': 0,
            'mean_unique_fraction': 0.0,
            'mean_oob_fraction': 0.0,
            'empty_oob_jobs': 0
        }

    n_samples = len(jobs[0].indices)
    unique_fractions = [job.n_unique / n_samples for job in jobs]
    oob_fractions = [len(job.oob_indices) / n_samples for job in jobs]

    return {
        'n_jobs': len(jobs),
        'n_samples': n_samples,
        'mean_unique_fraction': float(np.mean(unique_fractions)),
        'mean_oob_fraction': float(np.mean(oob_fractions)),
        'empty_oob_jobs': sum(1 for job in jobs if len(job.oob_indices) == 0)
    }
