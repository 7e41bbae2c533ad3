"""
Numerical integration (quadrature) module.

Rule kinds and metadata:
    RuleKind, Precision, RuleDescription, SemiInfiniteInterval,
    rule_kind_to_string, rule_is_adaptive, rule_supports_infinite_bounds

Quadrature rule classes:
    Integrator, GaussLegendre, GaussHermite, GaussLaguerre, GaussJacobi,
    GaussKronrod, TanhSinh, SinhSinh, ExpSinh

Construction:
    create_integrator, parameters_for, supported_points

Function-based integration (evaluates callable):
    quad, quad_info

Node/weight computation for Gaussian quadrature:
    gauss_legendre_nodes_weights, gauss_hermite_nodes_weights,
    gauss_laguerre_nodes_weights, gauss_jacobi_nodes_weights,
    gauss_kronrod_nodes_weights

Results:
    IntegrationResult, QuadratureStatus

Exceptions:
    QuadratureWarning, QuadratureError, ConfigurationError,
    UnsupportedPointCountError, PrecisionUnavailableError,
    AllocationFailedError, InvalidParameterError, DomainError,
    IntegrationError
"""

from torchquadrature.quadrature._backend import (
    dtype_for,
    is_precision_available,
)
from torchquadrature.quadrature._catalog import create_integrator
from torchquadrature.quadrature._exceptions import (
    AllocationFailedError,
    ConfigurationError,
    ConfigurationErrorKind,
    DomainError,
    IntegrationError,
    InvalidParameterError,
    PrecisionUnavailableError,
    QuadratureError,
    QuadratureErrorKind,
    QuadratureWarning,
    UnsupportedPointCountError,
)
from torchquadrature.quadrature._nodes import (
    gauss_hermite_nodes_weights,
    gauss_jacobi_nodes_weights,
    gauss_kronrod_nodes_weights,
    gauss_laguerre_nodes_weights,
    gauss_legendre_nodes_weights,
)
from torchquadrature.quadrature._parameters import (
    SUPPORTED_POINTS,
    AdaptiveParameters,
    GaussHermiteParameters,
    GaussJacobiParameters,
    GaussKronrodParameters,
    GaussLaguerreParameters,
    GaussLegendreParameters,
    RuleParameters,
    parameters_for,
    supported_points,
)
from torchquadrature.quadrature._quad import quad, quad_info
from torchquadrature.quadrature._result import (
    IntegrationResult,
    QuadratureStatus,
    error_result,
)
from torchquadrature.quadrature._rules import (
    ExpSinh,
    GaussHermite,
    GaussJacobi,
    GaussKronrod,
    GaussLaguerre,
    GaussLegendre,
    Integrator,
    SinhSinh,
    TanhSinh,
)
from torchquadrature.quadrature._types import (
    UNKNOWN_POINTS,
    Precision,
    RuleDescription,
    RuleKind,
    SemiInfiniteInterval,
    rule_is_adaptive,
    rule_kind_to_string,
    rule_supports_infinite_bounds,
)

__all__ = [
    # Kinds and metadata
    "Precision",
    "RuleDescription",
    "RuleKind",
    "SemiInfiniteInterval",
    "UNKNOWN_POINTS",
    "rule_is_adaptive",
    "rule_kind_to_string",
    "rule_supports_infinite_bounds",
    # Precision support
    "dtype_for",
    "is_precision_available",
    # Rule classes
    "Integrator",
    "GaussLegendre",
    "GaussHermite",
    "GaussLaguerre",
    "GaussJacobi",
    "GaussKronrod",
    "TanhSinh",
    "SinhSinh",
    "ExpSinh",
    # Construction
    "AdaptiveParameters",
    "GaussHermiteParameters",
    "GaussJacobiParameters",
    "GaussKronrodParameters",
    "GaussLaguerreParameters",
    "GaussLegendreParameters",
    "RuleParameters",
    "SUPPORTED_POINTS",
    "create_integrator",
    "parameters_for",
    "supported_points",
    # Function-based
    "quad",
    "quad_info",
    # Node/weight computation
    "gauss_legendre_nodes_weights",
    "gauss_hermite_nodes_weights",
    "gauss_laguerre_nodes_weights",
    "gauss_jacobi_nodes_weights",
    "gauss_kronrod_nodes_weights",
    # Results
    "IntegrationResult",
    "QuadratureStatus",
    "error_result",
    # Exceptions
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
