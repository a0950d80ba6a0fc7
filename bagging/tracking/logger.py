"""Logging helpers for bagging runs.

The trainer, the worker pool and the evaluation code all log through the
'bagging' logger configured here. Messages use a single
``[timestamp] LEVEL: message`` layout on the console and, optionally, in a
per-run log file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = '[%(asctime)s] %(levelname)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
SEPARATOR = '=' * 80


def setup_logger(
    name: str = 'bagging',
    level: int = logging.INFO,
    log_file: Optional[Path] = None
) -> logging.Logger:
    """Configure a logger for a bagging run.

    Existing handlers on the logger are replaced, so calling this again
    for a new run does not duplicate output.

    Parameters
    ----------
    name : str, default='bagging'
        Logger name.
    level : int, default=logging.INFO
        Level applied to the logger and all of its handlers.
    log_file : Path, optional
        Also write to this file (truncated first, parent directories created).

    Returns
    -------
    logger : logging.Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    handlers = [logging.StreamHandler()]
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode='w'))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def logger_from_config(tracking_config, name: str = 'bagging') -> logging.Logger:
    """Build the run logger from a TrackingConfig.

    With ``log_to_file`` set, output is mirrored to
    ``<log_directory>/<name>.log``.
    """
    log_file = None
    if tracking_config.log_to_file:
        log_file = Path(tracking_config.log_directory) / f'{name}.log'
    return setup_logger(
        name=name,
        level=getattr(logging, tracking_config.log_level),
        log_file=log_file
    )


def log_phase_start(logger: logging.Logger, phase_name: str, details: str = "") -> None:
    """Banner marking the start of a phase such as training or OOB scoring."""
    logger.info(SEPARATOR)
    logger.info(phase_name.upper())
    if details:
        logger.info(details)
    logger.info(SEPARATOR)


def log_phase_end(
    logger: logging.Logger,
    phase_name: str,
    elapsed_time: Optional[float] = None
) -> None:
    """Banner marking the end of a phase, with its duration when known."""
    suffix = f" ({elapsed_time:.1f}s)" if elapsed_time is not None else ""
    logger.info(SEPARATOR)
    logger.info(f"{phase_name.upper()} COMPLETE{suffix}")
    logger.info(SEPARATOR)


def log_training_progress(
    logger: logging.Logger,
    current: int,
    total: int,
    message: str = "Fitting base learners"
) -> None:
    """Log how many members have been fitted so far."""
    pct = current / total * 100 if total > 0 else 0.0
    logger.info(f"{message}: {current}/{total} ({pct:.1f}%)")


def log_performance_metrics(
    logger: logging.Logger,
    metrics: Dict[str, Any],
    prefix: str = ""
) -> None:
    """Log one indented line per metric, floats to six decimals.

    Parameters
    ----------
    logger : logging.Logger
    metrics : dict
        Metric name to value, e.g. the output of summarize_members.
    prefix : str, optional
        Heading logged before the metrics.
    """
    if prefix:
        logger.info(f"{prefix}:")
    for name, value in metrics.items():
        shown = f"{value:.6f}" if isinstance(value, float) else value
        logger.info(f"  {name}: {shown}")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log an exception type and message, optionally with where it happened."""
    where = f"Error in {context}: " if context else ""
    logger.error(f"{where}{type(error).__name__}: {error}")


def log_warning(logger: logging.Logger, message: str) -> None:
    logger.warning(f"⚠️  {message}")


def log_success(logger: logging.Logger, message: str) -> None:
    logger.info(f"✓ {message}")
