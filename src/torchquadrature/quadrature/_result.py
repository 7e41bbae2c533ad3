"""Integration result data structure."""

import enum

import torch
from tensordict.tensorclass import tensorclass
from torch import Tensor

__all__ = [
    "IntegrationResult",
    "QuadratureStatus",
    "domain_error_result",
    "error_result",
]


class QuadratureStatus(enum.IntEnum):
    """Outcome of an integration call."""

    CONVERGED = 0
    NOT_CONVERGED = 1
    DOMAIN_ERROR = 2
    INVALID_HANDLE = 3


@tensorclass
class IntegrationResult:
    """Result of a quadrature call.

    Attributes
    ----------
    value : Tensor
        Integral approximation, 0-d, in the integrator's dtype.
    estimated_error : Tensor
        Estimated absolute error. Zero for Gauss rules without an embedded
        estimate, ``inf`` on failure.
    l1_norm : Tensor
        The same quadrature applied to ``|f|``.
    iteration_count : int
        1 for fixed-node rules, trapezoidal passes for double-exponential
        rules, subintervals for adaptive Gauss-Kronrod.
    function_call_count : int
        Number of abscissae at which the integrand was evaluated.
    converged : bool
        Whether the requested tolerance was met.
    status : QuadratureStatus
        Why the call ended. Stored as a 0-d tensor; use :meth:`outcome` for
        the enum.
    """

    value: Tensor
    estimated_error: Tensor
    l1_norm: Tensor
    iteration_count: int
    function_call_count: int
    converged: bool
    status: QuadratureStatus

    def outcome(self) -> QuadratureStatus:
        """Return ``status`` as a :class:`QuadratureStatus`."""
        return QuadratureStatus(int(self.status))


def error_result(
    dtype: torch.dtype = torch.float64,
    status: QuadratureStatus = QuadratureStatus.INVALID_HANDLE,
) -> IntegrationResult:
    """Canonical failure record: value 0, infinite error, nothing evaluated."""
    return IntegrationResult(
        value=torch.zeros((), dtype=dtype),
        estimated_error=torch.full((), float("inf"), dtype=dtype),
        l1_norm=torch.zeros((), dtype=dtype),
        iteration_count=0,
        function_call_count=0,
        converged=False,
        status=status,
    )


def domain_error_result(
    dtype: torch.dtype,
    function_call_count: int,
    iteration_count: int = 0,
) -> IntegrationResult:
    return IntegrationResult(
        value=torch.full((), float("nan"), dtype=dtype),
        estimated_error=torch.full((), float("inf"), dtype=dtype),
        l1_norm=torch.full((), float("nan"), dtype=dtype),
        iteration_count=iteration_count,
        function_call_count=function_call_count,
        converged=False,
        status=QuadratureStatus.DOMAIN_ERROR,
    )
