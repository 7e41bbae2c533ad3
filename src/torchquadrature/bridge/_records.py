"""Fixed-layout result records and integrand function types.

The layouts match the C declarations::

    typedef double (*IntegrandFunctionD)(double x, void* context);

    typedef struct {
        double result;
        double error;
        double l1_norm;
        int iterations;
        int function_calls;
        int converged;
    } QuadratureResultD;

with ``float`` (``F``) and ``long double`` (``L``) variants.
"""

import ctypes

from torchquadrature.quadrature import (
    IntegrationResult,
    Precision,
    error_result,
)

__all__ = [
    "IntegrandFunctionD",
    "IntegrandFunctionF",
    "IntegrandFunctionL",
    "QuadratureResultD",
    "QuadratureResultF",
    "QuadratureResultL",
    "RECORD_TYPES",
]

IntegrandFunctionF = ctypes.CFUNCTYPE(
    ctypes.c_float, ctypes.c_float, ctypes.c_void_p
)
IntegrandFunctionD = ctypes.CFUNCTYPE(
    ctypes.c_double, ctypes.c_double, ctypes.c_void_p
)
IntegrandFunctionL = ctypes.CFUNCTYPE(
    ctypes.c_longdouble, ctypes.c_longdouble, ctypes.c_void_p
)


class _QuadratureResult(ctypes.Structure):
    @classmethod
    def from_result(cls, result: IntegrationResult):
        return cls(
            result.value.item(),
            result.estimated_error.item(),
            result.l1_norm.item(),
            int(result.iteration_count),
            int(result.function_call_count),
            int(result.converged),
        )

    @classmethod
    def error_record(cls):
        """The record returned for an unknown or mismatched handle:
        ``{0, inf, 0, 0, 0, 0}``."""
        return cls.from_result(error_result())

    def __repr__(self):
        return (
            f"{type(self).__name__}(result={self.result}, "
            f"error={self.error}, l1_norm={self.l1_norm}, "
            f"iterations={self.iterations}, "
            f"function_calls={self.function_calls}, "
            f"converged={self.converged})"
        )


class QuadratureResultF(_QuadratureResult):
    _fields_ = [
        ("result", ctypes.c_float),
        ("error", ctypes.c_float),
        ("l1_norm", ctypes.c_float),
        ("iterations", ctypes.c_int),
        ("function_calls", ctypes.c_int),
        ("converged", ctypes.c_int),
    ]


class QuadratureResultD(_QuadratureResult):
    _fields_ = [
        ("result", ctypes.c_double),
        ("error", ctypes.c_double),
        ("l1_norm", ctypes.c_double),
        ("iterations", ctypes.c_int),
        ("function_calls", ctypes.c_int),
        ("converged", ctypes.c_int),
    ]


class QuadratureResultL(_QuadratureResult):
    _fields_ = [
        ("result", ctypes.c_longdouble),
        ("error", ctypes.c_longdouble),
        ("l1_norm", ctypes.c_longdouble),
        ("iterations", ctypes.c_int),
        ("function_calls", ctypes.c_int),
        ("converged", ctypes.c_int),
    ]


RECORD_TYPES = {
    Precision.FLOAT32: QuadratureResultF,
    Precision.FLOAT64: QuadratureResultD,
    Precision.EXTENDED_FLOAT80: QuadratureResultL,
}
