"""Exception hierarchy for the bagging package.

All errors raised by the trainer, the ensemble and the OOB estimator derive
from BaggingError so callers can catch them in one place.
"""


class BaggingError(Exception):
    """Base class for all bagging errors."""


class ConfigurationError(BaggingError, ValueError):
    """Invalid configuration value or ensemble use that needs a learner."""


class EmptyEnsembleError(ConfigurationError):
    """Raised when predicting from an ensemble with no base learners."""

    def __init__(self, message: str = "no base learners in ensemble"):
        super().__init__(message)


class SchemaMismatchError(BaggingError, ValueError):
    """Feature matrix does not conform to the training schema."""


class BaseLearnerFitError(BaggingError):
    """A base learner failed to fit on one bootstrap sample.

    The original exception is chained as ``__cause__``.

    Attributes:
        iteration: Index of the iteration whose fit failed
    """

    def __init__(self, iteration: int, message: str):
        self.iteration = iteration
        super().__init__(f"Iteration {iteration}: base learner fit failed - {message}")


class InsufficientOOBCoverageError(BaggingError):
    """No training example was out-of-bag for any base learner."""
