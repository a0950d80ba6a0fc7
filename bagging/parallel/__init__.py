"""Parallel execution for ensemble training.

This package provides job preparation and worker pool management for
fitting bootstrap members in parallel.
"""

from .scheduler import (
    FitJob,
    prepare_fit_jobs,
    resolve_n_workers,
    get_batch_info
)

from .worker import (
    fit_single_member,
    fit_members_sequential,
    fit_members_parallel,
    summarize_members
)

__all__ = [
    'FitJob',
    'prepare_fit_jobs',
    'resolve_n_workers',
    'get_batch_info',
    'fit_single_member',
    'fit_members_sequential',
    'fit_members_parallel',
    'summarize_members'
]
