"""Exceptions and warnings for quadrature integration."""

import enum

__all__ = [
    "AllocationFailedError",
    "ConfigurationError",
    "ConfigurationErrorKind",
    "DomainError",
    "IntegrationError",
    "InvalidParameterError",
    "PrecisionUnavailableError",
    "QuadratureError",
    "QuadratureErrorKind",
    "QuadratureWarning",
    "UnsupportedPointCountError",
]


class QuadratureErrorKind(enum.IntEnum):
    """Failure classification reported across the handle bridge."""

    NONE = 0
    UNSUPPORTED_POINT_COUNT = 1
    PRECISION_UNAVAILABLE = 2
    ALLOCATION_FAILED = 3
    INVALID_PARAMETER = 4
    INVALID_HANDLE = 5


ConfigurationErrorKind = QuadratureErrorKind


class QuadratureWarning(UserWarning):
    """Warning for quadrature issues (e.g., no convergence, bad integrand)."""

    pass


class QuadratureError(Exception):
    """Base exception for quadrature errors."""

    pass


class ConfigurationError(QuadratureError, ValueError):
    """Raised when an integrator cannot be constructed.

    Configuration errors are caller-correctable and always raised before an
    integrator exists, so a failed construction never leaves a partially
    built rule behind.

    Attributes
    ----------
    kind : QuadratureErrorKind
        Machine-readable classification of the failure.
    """

    kind = QuadratureErrorKind.INVALID_PARAMETER


class UnsupportedPointCountError(ConfigurationError):
    """Raised when a fixed-node rule is requested with a point count
    outside the family's tabulated set."""

    kind = QuadratureErrorKind.UNSUPPORTED_POINT_COUNT


class PrecisionUnavailableError(ConfigurationError):
    """Raised when the requested floating-point precision has no backing
    dtype on this platform."""

    kind = QuadratureErrorKind.PRECISION_UNAVAILABLE


class AllocationFailedError(ConfigurationError):
    """Raised when the node/weight tables cannot be allocated."""

    kind = QuadratureErrorKind.ALLOCATION_FAILED


class InvalidParameterError(ConfigurationError):
    """Raised when a rule parameter is out of range.

    This occurs when:
    - alpha or beta is not finite or is <= -1
    - max_refinements is not a positive integer
    - tolerance is not finite or is <= 0
    """

    kind = QuadratureErrorKind.INVALID_PARAMETER


class DomainError(QuadratureError, ValueError):
    """Raised when an integration cannot be evaluated.

    This occurs when:
    - An integration bound is non-finite where the rule needs finite bounds
    - The lower bound exceeds the upper bound
    - The integrand produces a non-finite value or raises an arithmetic error

    Integrators catch this at their boundary and report it through the
    result record instead of propagating it.
    """

    pass


class IntegrationError(QuadratureError):
    """Error when integration fails to converge."""

    pass
