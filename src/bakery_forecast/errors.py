"""Exceptions raised by the forecasting pipeline."""


class ForecastError(Exception):
    """Base class for pipeline failures an operator can act on."""


class DomainError(ForecastError, ValueError):
    """A value fell outside the admissible domain of a transform."""


class NonConvergenceError(ForecastError):
    """The likelihood optimiser did not converge for a candidate order."""


class InsufficientDataError(ForecastError):
    """Too few observations to estimate or evaluate the requested model."""


class ScheduleIntegrityError(ForecastError):
    """Loaded dates are duplicated or cannot be parsed."""


class ModelSelectionError(ForecastError):
    """No candidate survived the residual diagnostics."""
