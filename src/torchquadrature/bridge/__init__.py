"""
Opaque-handle interface to the quadrature rules.

Lifecycle:
    quad_<rule>_create_{f,d,l}, quad_destroy, owned_handle, NULL_HANDLE

Integration:
    quad_integrate_{f,d,l}, quad_integrate_interval_{f,d,l}

Metadata:
    quad_get_type, quad_get_precision, quad_get_points,
    quad_get_abscissa_weights_{f,d,l}, quad_type_to_string,
    quad_is_adaptive, quad_supports_infinite_bounds

Errors:
    quad_last_error

Records:
    QuadratureResultF, QuadratureResultD, QuadratureResultL,
    IntegrandFunctionF, IntegrandFunctionD, IntegrandFunctionL

The suffix selects the precision: ``f`` float32, ``d`` float64, ``l``
extended. Extended precision is never available, so ``_l`` constructors
return ``NULL_HANDLE`` with ``PRECISION_UNAVAILABLE``.
"""

from torchquadrature.bridge import _handles
from torchquadrature.bridge._handles import *  # noqa: F401,F403
from torchquadrature.bridge._records import (
    IntegrandFunctionD,
    IntegrandFunctionF,
    IntegrandFunctionL,
    QuadratureResultD,
    QuadratureResultF,
    QuadratureResultL,
)

__all__ = [
    *_handles.__all__,
    "IntegrandFunctionD",
    "IntegrandFunctionF",
    "IntegrandFunctionL",
    "QuadratureResultD",
    "QuadratureResultF",
    "QuadratureResultL",
]
