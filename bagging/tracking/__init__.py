"""Tracking and monitoring utilities.

This subpackage handles:
- SQLite run tracking
- Structured logging
"""

from .database import BaggingDatabase
from .logger import (
    setup_logger,
    log_phase_start,
    log_phase_end,
    log_training_progress,
    log_performance_metrics,
    log_error,
    log_warning,
    log_success,
    logger_from_config
)

__all__ = [
    # Database
    'BaggingDatabase',
    # Logging
    'setup_logger',
    'log_phase_start',
    'log_phase_end',
    'log_training_progress',
    'log_performance_metrics',
    'log_error',
    'log_warning',
    'log_success',
    'logger_from_config'
]
