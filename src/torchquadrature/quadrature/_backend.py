"""Mapping from precisions to the tensor dtypes that implement them.

Every numerical kernel in this package runs on PyTorch. PyTorch has no
80-bit extended floating type, so ``Precision.EXTENDED_FLOAT80`` is never
available: requesting it is a configuration error, never a silent fallback
to float64. The Gauss-Hermite, Gauss-Laguerre and Gauss-Jacobi families are
computed by the same eigenvalue solver as Gauss-Legendre and are always
available.
"""

import torch

from torchquadrature.quadrature._exceptions import PrecisionUnavailableError
from torchquadrature.quadrature._types import Precision

__all__ = ["dtype_for", "is_precision_available"]

_DTYPES = {
    Precision.FLOAT32: torch.float32,
    Precision.FLOAT64: torch.float64,
}


def is_precision_available(precision: Precision) -> bool:
    """Whether ``precision`` can be used on this platform."""
    return precision in _DTYPES


def dtype_for(precision: Precision) -> torch.dtype:
    """
    Return the dtype implementing ``precision``.

    Raises
    ------
    PrecisionUnavailableError
        If the precision has no backing dtype.
    """
    try:
        return _DTYPES[precision]
    except KeyError:
        raise PrecisionUnavailableError(
            f"{Precision(precision).name} has no tensor dtype on this platform"
        ) from None
