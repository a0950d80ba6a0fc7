"""Consolidated configuration for the bagging system.

This module provides a type-safe, validated configuration structure using
dataclasses. All configuration parameters are consolidated here with:
- Clear documentation
- Type hints
- Validation logic
- Sensible default values

The configuration is organized hierarchically:
    BaggingConfig (root)
    ├── ParallelConfig
    ├── TrackingConfig
    ├── PathsConfig
    └── LearnerConfig (per learner, per task)

Usage:
    >>> from bagging.config import BaggingConfig
    >>> config = BaggingConfig()  # Use defaults
    >>> config.validate()  # Check configuration validity

    >>> # Or customize
    >>> config = BaggingConfig(
    ...     task='classification',
    ...     n_estimators=200,
    ...     parallel=ParallelConfig(backend='process', n_workers=8)
    ... )
"""

import numbers
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from pathlib import Path

from sklearn.linear_model import LinearRegression, LogisticRegression
from sklearn.neighbors import KNeighborsClassifier, KNeighborsRegressor
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

from bagging.errors import ConfigurationError


TASKS = ('regression', 'classification')
VOTING_MODES = ('hard', 'soft')
BACKENDS = ('thread', 'process', 'sequential')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


def _check(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


# ==============================================================================
# PARALLEL EXECUTION CONFIGURATION
# ==============================================================================

@dataclass
class ParallelConfig:
    """Worker pool configuration for fitting base learners.

    Attributes:
        backend: 'thread', 'process' or 'sequential' (no pool)
        n_workers: Number of workers (None = number of CPUs)
    """
    backend: str = 'thread'
    n_workers: Optional[int] = None

    def validate(self):
        """Validate parallel configuration."""
        _check(self.backend in BACKENDS, f"backend must be one of {BACKENDS}, got '{self.backend}'")
        if self.n_workers is not None:
            _check(self.n_workers > 0, "n_workers must be positive")


# ==============================================================================
# LEARNER CONFIGURATION
# ==============================================================================

@dataclass
class LearnerConfig:
    """Configuration for a single base learner type.

    Attributes:
        estimator_class: The sklearn estimator class (None for built-in learners)
        hyperparameters: Keyword arguments passed to the estimator
        enabled: Whether this learner may be selected
        seed_estimator: Whether each member gets its own per-iteration random_state
    """
    estimator_class: Optional[type]
    hyperparameters: Dict[str, Any] = field(default_factory=dict)
    enabled: bool = True
    seed_estimator: bool = False


def get_default_learner_configs() -> Dict[str, Dict[str, LearnerConfig]]:
    """Get default base learner configurations per task.

    Trees are left unpruned: bagging pays off on high-variance learners.

    Returns:
        Dict mapping task name to a dict of learner name -> LearnerConfig
    """
    return {
        'regression': {
            'decision_tree': LearnerConfig(
                estimator_class=DecisionTreeRegressor,
                hyperparameters={'max_depth': None, 'min_samples_leaf': 1},
                seed_estimator=True
            ),
            'linear': LearnerConfig(
                estimator_class=LinearRegression,
                hyperparameters={}
            ),
            'knn': LearnerConfig(
                estimator_class=KNeighborsRegressor,
                hyperparameters={'n_neighbors': 5, 'weights': 'uniform'}
            ),
            'mean': LearnerConfig(estimator_class=None)
        },
        'classification': {
            'decision_tree': LearnerConfig(
                estimator_class=DecisionTreeClassifier,
                hyperparameters={'max_depth': None, 'min_samples_leaf': 1},
                seed_estimator=True
            ),
            'logistic': LearnerConfig(
                estimator_class=LogisticRegression,
                hyperparameters={'max_iter': 1000}
            ),
            'knn': LearnerConfig(
                estimator_class=KNeighborsClassifier,
                hyperparameters={'n_neighbors': 5, 'weights': 'uniform'}
            ),
            'majority': LearnerConfig(estimator_class=None)
        }
    }


# ==============================================================================
# TRACKING CONFIGURATION
# ==============================================================================

@dataclass
class TrackingConfig:
    """Database and logging configuration.

    Attributes:
        db_path: Path to SQLite database file (None disables run tracking)
        enable_wal: Whether to use WAL mode (better concurrency)
        log_level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        log_to_file: Whether to log to file in addition to stdout
        log_directory: Directory for log files
        progress_every: Log progress every this fraction of members
    """
    db_path: Optional[str] = None
    enable_wal: bool = True
    log_level: str = 'INFO'
    log_to_file: bool = False
    log_directory: str = 'logs'
    progress_every: float = 0.10

    def validate(self):
        """Validate tracking configuration."""
        _check(self.log_level in LOG_LEVELS,
               "log_level must be DEBUG, INFO, WARNING, or ERROR")
        _check(0 < self.progress_every <= 1, "progress_every must be in (0, 1]")


# ==============================================================================
# PATHS CONFIGURATION
# ==============================================================================

@dataclass
class PathsConfig:
    """File paths configuration.

    Attributes:
        checkpoint_path: Path to save/load the trained ensemble
    """
    checkpoint_path: Optional[Path] = None

    def __post_init__(self):
        """Convert strings to Path objects."""
        if self.checkpoint_path:
            self.checkpoint_path = Path(self.checkpoint_path)

    def validate(self):
        """Validate paths configuration."""
        # Directories are created on save
        pass


# ==============================================================================
# ROOT CONFIGURATION
# ==============================================================================

@dataclass
class BaggingConfig:
    """Complete bagging system configuration.

    This is the root configuration object. Create an instance and call
    validate() before use.

    Attributes:
        random_state: Root seed for bootstrap resampling (None = fresh entropy)
        task: 'regression' or 'classification'
        n_estimators: Number of bootstrap iterations (B)
        voting: Classification aggregation mode ('hard' or 'soft')
        learner: Name of the default base learner in the learner table
        parallel: Worker pool configuration
        tracking: Database and logging configuration
        paths: File paths configuration
        learners: Learner table keyed by task then learner name

    Example:
        >>> config = BaggingConfig(n_estimators=100)
        >>> config.validate()
        >>> print(config.summary())
    """
    random_state: Optional[int] = 315
    task: str = 'regression'
    n_estimators: int = 100
    voting: str = 'hard'
    learner: str = 'decision_tree'
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    learners: Dict[str, Dict[str, LearnerConfig]] = field(default_factory=dict)

    def __post_init__(self):
        """Initialize the default learner table if not provided."""
        if not self.learners:
            self.learners = get_default_learner_configs()

    def validate(self):
        """Validate entire configuration hierarchy.

        Raises:
            ConfigurationError: If any configuration parameter is invalid
        """
        _check(self.task in TASKS, f"task must be one of {TASKS}, got '{self.task}'")
        _check(self.voting in VOTING_MODES,
               f"voting must be one of {VOTING_MODES}, got '{self.voting}'")
        _check(isinstance(self.n_estimators, numbers.Integral)
               and not isinstance(self.n_estimators, bool) and self.n_estimators >= 0,
               "n_estimators must be a non-negative integer")
        self.n_estimators = int(self.n_estimators)
        if self.random_state is not None:
            _check(isinstance(self.random_state, numbers.Integral)
                   and not isinstance(self.random_state, bool) and self.random_state >= 0,
                   "random_state must be a non-negative integer")
            self.random_state = int(self.random_state)

        self.check_learner(self.learner)

        self.parallel.validate()
        self.tracking.validate()
        self.paths.validate()

    def check_learner(self, name: str):
        """Check that a learner name is configured and enabled for the task.

        Raises:
            ConfigurationError: If the learner cannot be used for this task
        """
        task_learners = self.learners.get(self.task, {})
        _check(name in task_learners,
               f"Learner '{name}' not configured for task '{self.task}'")
        _check(task_learners[name].enabled, f"Learner '{name}' is not enabled")

    def summary(self) -> str:
        """Generate a human-readable configuration summary.

        Returns:
            Multi-line string describing key configuration parameters
        """
        lines = [
            "Bagging Configuration Summary",
            "=" * 50,
            f"Random State: {self.random_state}",
            f"Task: {self.task}",
            f"Estimators: {self.n_estimators}",
            f"Base learner: {self.learner}",
        ]
        if self.task == 'classification':
            lines.append(f"Voting: {self.voting}")
        lines += [
            "",
            "Parallel Execution:",
            f"  Backend: {self.parallel.backend}",
            f"  Workers: {self.parallel.n_workers or 'all CPUs'}",
            "",
            "Tracking:",
            f"  Database: {self.tracking.db_path or 'disabled'}",
            f"  Log level: {self.tracking.log_level}",
            ""
        ]
        return "\n".join(lines)
