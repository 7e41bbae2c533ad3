"""Rule kinds, precisions, and rule metadata."""

import enum
from typing import NamedTuple

__all__ = [
    "Precision",
    "RuleDescription",
    "RuleKind",
    "SemiInfiniteInterval",
    "UNKNOWN_POINTS",
    "rule_is_adaptive",
    "rule_kind_to_string",
    "rule_supports_infinite_bounds",
]

# Point count reported by rules whose evaluation points are chosen at runtime.
UNKNOWN_POINTS = -1


class RuleKind(enum.IntEnum):
    """Quadrature rule families.

    The integer values are part of the handle bridge's contract.
    """

    GAUSS_LEGENDRE = 0
    GAUSS_HERMITE = 1
    GAUSS_LAGUERRE = 2
    GAUSS_JACOBI = 3
    GAUSS_KRONROD = 4
    TANH_SINH = 5
    SINH_SINH = 6
    EXP_SINH = 7


class Precision(enum.IntEnum):
    """Floating-point representation used by an integrator."""

    FLOAT32 = 0
    FLOAT64 = 1
    EXTENDED_FLOAT80 = 2


_NAMES = {
    RuleKind.GAUSS_LEGENDRE: "gauss_legendre",
    RuleKind.GAUSS_HERMITE: "gauss_hermite",
    RuleKind.GAUSS_LAGUERRE: "gauss_laguerre",
    RuleKind.GAUSS_JACOBI: "gauss_jacobi",
    RuleKind.GAUSS_KRONROD: "gauss_kronrod",
    RuleKind.TANH_SINH: "tanh_sinh",
    RuleKind.SINH_SINH: "sinh_sinh",
    RuleKind.EXP_SINH: "exp_sinh",
}

_ADAPTIVE = frozenset(
    {RuleKind.TANH_SINH, RuleKind.SINH_SINH, RuleKind.EXP_SINH}
)

_INFINITE_BOUNDS = frozenset(
    {RuleKind.GAUSS_HERMITE, RuleKind.SINH_SINH, RuleKind.EXP_SINH}
)


def rule_kind_to_string(kind: int) -> str:
    """
    Return the snake_case name of a rule kind.

    Parameters
    ----------
    kind : RuleKind or int
        Rule kind, or its integer value.

    Returns
    -------
    str
        Name such as ``"gauss_legendre"``, or ``"unknown"`` for values that
        are not a rule kind.
    """
    return _NAMES.get(kind, "unknown")


def rule_is_adaptive(kind: int) -> bool:
    """Whether the rule refines its evaluation points at runtime."""
    return kind in _ADAPTIVE


def rule_supports_infinite_bounds(kind: int) -> bool:
    """Whether the rule's natural domain is unbounded."""
    return kind in _INFINITE_BOUNDS


class RuleDescription(NamedTuple):
    """Static metadata of an integrator.

    Attributes
    ----------
    kind : RuleKind
    points : int
        Number of nodes, or ``UNKNOWN_POINTS`` for adaptive rules.
    is_adaptive : bool
    supports_infinite_bounds : bool
    precision : Precision
    """

    kind: RuleKind
    points: int
    is_adaptive: bool
    supports_infinite_bounds: bool
    precision: Precision


class SemiInfiniteInterval(NamedTuple):
    """The interval ``[lower, inf)``."""

    lower: float = 0.0
