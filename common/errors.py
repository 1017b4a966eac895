"""
Error taxonomy for the forecasting pipeline.

Fatal errors derive from ForecastPipelineError and abort the whole run.
Numeric degeneracies in the metrics are reported through
NumericDegeneracyWarning and never raised as exceptions.
"""


class ForecastPipelineError(ValueError):
    """
    Base class for fatal pipeline errors.

    Subclasses ValueError so that callers already handling bad input
    with ``except ValueError`` keep working.
    """

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InsufficientDataError(ForecastPipelineError):
    """Too few raw rows, or nothing left after dropping the warm-up prefix."""


class InsufficientSplitError(ForecastPipelineError):
    """Chronological split produced an empty train or test partition."""


class ShapeMismatchError(ForecastPipelineError):
    """Feature matrix width does not match the configured model input."""


class MalformedRecordError(ForecastPipelineError):
    """A raw record is missing a required field or has an unparseable timestamp."""


class PipelineCancelledError(ForecastPipelineError):
    """Training was cancelled by the caller."""


class PipelineTimeoutError(PipelineCancelledError):
    """Training exceeded the deadline imposed by the caller."""


class NumericDegeneracyWarning(RuntimeWarning):
    """A metric hit a zero denominator and is reported as NaN or infinity."""
