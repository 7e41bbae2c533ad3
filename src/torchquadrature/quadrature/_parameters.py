"""Rule parameters and their validation."""

import dataclasses
import math
from typing import Tuple, Union

from torchquadrature.quadrature._exceptions import (
    InvalidParameterError,
    UnsupportedPointCountError,
)
from torchquadrature.quadrature._types import RuleKind, rule_kind_to_string

__all__ = [
    "AdaptiveParameters",
    "DEFAULT_MAX_REFINEMENTS",
    "DEFAULT_TOLERANCE",
    "GaussHermiteParameters",
    "GaussJacobiParameters",
    "GaussKronrodParameters",
    "GaussLaguerreParameters",
    "GaussLegendreParameters",
    "RuleParameters",
    "SUPPORTED_POINTS",
    "parameters_for",
    "supported_points",
]

DEFAULT_MAX_REFINEMENTS = 10
DEFAULT_TOLERANCE = 1e-9

# Only these counts are accepted, even though the eigenvalue solver could
# produce any of them.
SUPPORTED_POINTS = {
    RuleKind.GAUSS_LEGENDRE: (
        7, 10, 15, 20, 25, 30, 40, 50, 60, 70, 80, 90, 100,
    ),
    RuleKind.GAUSS_HERMITE: (10, 15, 20, 25, 30, 40, 50),
    RuleKind.GAUSS_LAGUERRE: (10, 15, 20, 25, 30, 40, 50),
    RuleKind.GAUSS_JACOBI: (10, 15, 20, 30, 50),
    RuleKind.GAUSS_KRONROD: (15, 21, 31, 41, 51, 61),
}


@dataclasses.dataclass(frozen=True)
class GaussLegendreParameters:
    points: int


@dataclasses.dataclass(frozen=True)
class GaussKronrodParameters:
    points: int


@dataclasses.dataclass(frozen=True)
class GaussHermiteParameters:
    points: int


@dataclasses.dataclass(frozen=True)
class GaussLaguerreParameters:
    """Gauss-Laguerre parameters; ``alpha`` selects the generalized weight
    ``x^alpha * exp(-x)``."""

    points: int
    alpha: float = 0.0


@dataclasses.dataclass(frozen=True)
class GaussJacobiParameters:
    """Gauss-Jacobi parameters for the weight ``(1-x)^alpha * (1+x)^beta``."""

    points: int
    alpha: float
    beta: float


@dataclasses.dataclass(frozen=True)
class AdaptiveParameters:
    """Refinement budget and relative tolerance of a double-exponential rule."""

    max_refinements: int = DEFAULT_MAX_REFINEMENTS
    tolerance: float = DEFAULT_TOLERANCE


RuleParameters = Union[
    GaussLegendreParameters,
    GaussKronrodParameters,
    GaussHermiteParameters,
    GaussLaguerreParameters,
    GaussJacobiParameters,
    AdaptiveParameters,
]

PARAMETER_TYPES = {
    RuleKind.GAUSS_LEGENDRE: GaussLegendreParameters,
    RuleKind.GAUSS_HERMITE: GaussHermiteParameters,
    RuleKind.GAUSS_LAGUERRE: GaussLaguerreParameters,
    RuleKind.GAUSS_JACOBI: GaussJacobiParameters,
    RuleKind.GAUSS_KRONROD: GaussKronrodParameters,
    RuleKind.TANH_SINH: AdaptiveParameters,
    RuleKind.SINH_SINH: AdaptiveParameters,
    RuleKind.EXP_SINH: AdaptiveParameters,
}


def supported_points(kind: RuleKind) -> Tuple[int, ...]:
    """Point counts accepted by ``kind``; empty for adaptive rules."""
    return SUPPORTED_POINTS.get(kind, ())


def parameters_for(kind: RuleKind, **fields) -> RuleParameters:
    """
    Build the parameter record matching ``kind``.

    Examples
    --------
    >>> parameters_for(RuleKind.GAUSS_JACOBI, points=10, alpha=0.5, beta=0.5)
    GaussJacobiParameters(points=10, alpha=0.5, beta=0.5)
    """
    return PARAMETER_TYPES[RuleKind(kind)](**fields)


def check_points(kind: RuleKind, points: int) -> int:
    if isinstance(points, bool) or points not in SUPPORTED_POINTS[kind]:
        raise UnsupportedPointCountError(
            f"{rule_kind_to_string(kind)} does not support {points} points; "
            f"supported: {SUPPORTED_POINTS[kind]}"
        )
    return int(points)


def check_shape(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= -1:
        raise InvalidParameterError(
            f"{name} must be finite and > -1, got {value}"
        )
    return value


def check_max_refinements(max_refinements: int) -> int:
    if (
        isinstance(max_refinements, bool)
        or not isinstance(max_refinements, int)
        or max_refinements < 1
    ):
        raise InvalidParameterError(
            "max_refinements must be a positive integer, "
            f"got {max_refinements!r}"
        )
    return max_refinements


def check_tolerance(tolerance: float) -> float:
    tolerance = float(tolerance)
    if not math.isfinite(tolerance) or tolerance <= 0:
        raise InvalidParameterError(
            f"tolerance must be finite and positive, got {tolerance}"
        )
    return tolerance
