"""Construction of integrators from a rule kind and its parameters."""

import dataclasses
from typing import Optional

from torchquadrature.quadrature._parameters import (
    PARAMETER_TYPES,
    AdaptiveParameters,
    RuleParameters,
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
    Precision,
    RuleKind,
    rule_is_adaptive,
    rule_kind_to_string,
)

__all__ = ["create_integrator"]

_RULES = {
    RuleKind.GAUSS_LEGENDRE: GaussLegendre,
    RuleKind.GAUSS_HERMITE: GaussHermite,
    RuleKind.GAUSS_LAGUERRE: GaussLaguerre,
    RuleKind.GAUSS_JACOBI: GaussJacobi,
    RuleKind.GAUSS_KRONROD: GaussKronrod,
    RuleKind.TANH_SINH: TanhSinh,
    RuleKind.SINH_SINH: SinhSinh,
    RuleKind.EXP_SINH: ExpSinh,
}


def create_integrator(
    kind: RuleKind,
    precision: Precision = Precision.FLOAT64,
    parameters: Optional[RuleParameters] = None,
) -> Integrator:
    """
    Construct the integrator for ``kind``.

    Parameters
    ----------
    kind : RuleKind or int
        Rule family.
    precision : Precision or int
        Floating-point representation.
    parameters : RuleParameters, optional
        Parameter record matching ``kind`` (see :func:`parameters_for`).
        May be omitted for adaptive rules, which then use their defaults.

    Returns
    -------
    Integrator

    Raises
    ------
    TypeError
        If ``parameters`` is missing for a fixed-node rule or is of the
        wrong class for ``kind``.
    UnsupportedPointCountError
        If the point count is not tabulated for the family.
    InvalidParameterError
        If alpha, beta, the refinement budget or the tolerance is out of
        range.
    PrecisionUnavailableError
        If ``precision`` has no backing dtype.
    AllocationFailedError
        If the node tables cannot be allocated.

    Examples
    --------
    >>> rule = create_integrator(
    ...     RuleKind.GAUSS_LEGENDRE,
    ...     parameters=GaussLegendreParameters(points=10),
    ... )
    >>> rule.integrate_over_interval(lambda x: x**4, 0, 1).value  # 0.2
    """
    kind = RuleKind(kind)
    precision = Precision(precision)
    expected = PARAMETER_TYPES[kind]

    if parameters is None:
        if not rule_is_adaptive(kind):
            raise TypeError(
                f"{rule_kind_to_string(kind)} requires "
                f"{expected.__name__}, got None"
            )
        parameters = AdaptiveParameters()

    if type(parameters) is not expected:
        raise TypeError(
            f"{rule_kind_to_string(kind)} requires {expected.__name__}, "
            f"got {type(parameters).__name__}"
        )

    return _RULES[kind](
        precision=precision,
        **dataclasses.asdict(parameters),
    )
