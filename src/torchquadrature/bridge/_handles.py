"""Opaque integer handles over integrators.

Every entry point takes and returns plain integers, floats and ctypes
records, so the surface can be exported through a foreign function
interface unchanged. Failures never raise: constructors return
``NULL_HANDLE``, integration returns a sentinel record, and the reason is
available from :func:`quad_last_error` on the calling thread.
"""

import contextlib
import itertools
import threading
from typing import Callable, Dict, Optional, Tuple

import torch
from torch import Tensor

from torchquadrature.bridge._records import RECORD_TYPES
from torchquadrature.quadrature import (
    ConfigurationError,
    DomainError,
    Integrator,
    Precision,
    QuadratureErrorKind,
    RuleKind,
    create_integrator,
    parameters_for,
    rule_is_adaptive,
    rule_kind_to_string,
    rule_supports_infinite_bounds,
)

__all__ = [
    "NULL_HANDLE",
    "owned_handle",
    "quad_destroy",
    "quad_exp_sinh_create_d",
    "quad_exp_sinh_create_f",
    "quad_exp_sinh_create_l",
    "quad_exp_sinh_create_with_params_d",
    "quad_exp_sinh_create_with_params_f",
    "quad_exp_sinh_create_with_params_l",
    "quad_gauss_create_d",
    "quad_gauss_create_f",
    "quad_gauss_create_l",
    "quad_gauss_hermite_create_d",
    "quad_gauss_hermite_create_f",
    "quad_gauss_hermite_create_l",
    "quad_gauss_jacobi_create_d",
    "quad_gauss_jacobi_create_f",
    "quad_gauss_jacobi_create_l",
    "quad_gauss_kronrod_create_d",
    "quad_gauss_kronrod_create_f",
    "quad_gauss_kronrod_create_l",
    "quad_gauss_laguerre_create_alpha_d",
    "quad_gauss_laguerre_create_alpha_f",
    "quad_gauss_laguerre_create_alpha_l",
    "quad_gauss_laguerre_create_d",
    "quad_gauss_laguerre_create_f",
    "quad_gauss_laguerre_create_l",
    "quad_get_abscissa_weights_d",
    "quad_get_abscissa_weights_f",
    "quad_get_abscissa_weights_l",
    "quad_get_points",
    "quad_get_precision",
    "quad_get_type",
    "quad_integrate_d",
    "quad_integrate_f",
    "quad_integrate_interval_d",
    "quad_integrate_interval_f",
    "quad_integrate_interval_l",
    "quad_integrate_l",
    "quad_is_adaptive",
    "quad_last_error",
    "quad_sinh_sinh_create_d",
    "quad_sinh_sinh_create_f",
    "quad_sinh_sinh_create_l",
    "quad_sinh_sinh_create_with_params_d",
    "quad_sinh_sinh_create_with_params_f",
    "quad_sinh_sinh_create_with_params_l",
    "quad_supports_infinite_bounds",
    "quad_tanh_sinh_create_d",
    "quad_tanh_sinh_create_f",
    "quad_tanh_sinh_create_l",
    "quad_tanh_sinh_create_with_params_d",
    "quad_tanh_sinh_create_with_params_f",
    "quad_tanh_sinh_create_with_params_l",
    "quad_type_to_string",
]

NULL_HANDLE = 0

_lock = threading.Lock()
_integrators: Dict[int, Integrator] = {}
_handles = itertools.count(1)

_state = threading.local()


def _set_last_error(kind: QuadratureErrorKind) -> None:
    _state.last_error = kind


def quad_last_error() -> QuadratureErrorKind:
    """Outcome of the most recent bridge call on this thread."""
    return getattr(_state, "last_error", QuadratureErrorKind.NONE)


def _lookup(handle: int, precision: Optional[Precision] = None):
    with _lock:
        integrator = _integrators.get(handle)

    if integrator is None or (
        precision is not None and integrator.precision != precision
    ):
        _set_last_error(QuadratureErrorKind.INVALID_HANDLE)
        return None

    _set_last_error(QuadratureErrorKind.NONE)
    return integrator


def _create(kind: RuleKind, precision: Precision, **fields) -> int:
    try:
        integrator = create_integrator(
            kind, precision, parameters_for(kind, **fields)
        )
    except ConfigurationError as exc:
        _set_last_error(exc.kind)
        return NULL_HANDLE

    with _lock:
        handle = next(_handles)
        _integrators[handle] = integrator

    _set_last_error(QuadratureErrorKind.NONE)
    return handle


def quad_destroy(handle: int) -> None:
    """Release the integrator behind ``handle``.

    Unknown or already destroyed handles are ignored and only recorded as
    ``INVALID_HANDLE``.
    """
    with _lock:
        integrator = _integrators.pop(handle, None)

    _set_last_error(
        QuadratureErrorKind.NONE
        if integrator is not None
        else QuadratureErrorKind.INVALID_HANDLE
    )


@contextlib.contextmanager
def owned_handle(handle: int):
    """
    Destroy ``handle`` when the block exits.

    Examples
    --------
    >>> with owned_handle(quad_gauss_create_d(10)) as handle:
    ...     quad_integrate_interval_d(handle, lambda x, _: x**4, None, 0, 1)
    """
    try:
        yield handle
    finally:
        if handle != NULL_HANDLE:
            quad_destroy(handle)


def _vectorize(f: Callable, context, dtype: torch.dtype):
    """Adapt a scalar callback ``f(x, context)`` to a tensor integrand."""

    def integrand(x: Tensor) -> Tensor:
        try:
            return torch.tensor(
                [float(f(v, context)) for v in x.tolist()], dtype=dtype
            )
        except Exception as exc:
            # Nothing raised by foreign code may cross the bridge.
            raise DomainError(
                f"callback raised {type(exc).__name__}: {exc}"
            ) from exc

    return integrand


def _integrate(
    precision: Precision,
    handle: int,
    f: Optional[Callable],
    context,
    bounds: Optional[Tuple[float, float]] = None,
):
    record = RECORD_TYPES[precision]

    integrator = _lookup(handle, precision)
    if integrator is None:
        return record.error_record()

    integrand = None if f is None else _vectorize(f, context, integrator.dtype)

    if bounds is None:
        result = integrator.integrate(integrand)
    else:
        result = integrator.integrate_over_interval(integrand, *bounds)

    return record.from_result(result)


def _copy_abscissa_weights(
    precision: Precision,
    handle: int,
    abscissa,
    weights,
    buffer_size: int,
) -> int:
    integrator = _lookup(handle, precision)
    if integrator is None:
        return 0

    if abscissa is None or weights is None or buffer_size < 0:
        _set_last_error(QuadratureErrorKind.INVALID_PARAMETER)
        return 0

    return int(
        integrator.copy_abscissa_weights(abscissa, weights, buffer_size)
    )


def quad_get_type(handle: int) -> RuleKind:
    """Rule kind behind ``handle``; ``GAUSS_LEGENDRE`` if the handle is
    invalid."""
    integrator = _lookup(handle)
    return RuleKind.GAUSS_LEGENDRE if integrator is None else integrator.kind


def quad_get_precision(handle: int) -> Precision:
    """Precision behind ``handle``; ``FLOAT64`` if the handle is invalid."""
    integrator = _lookup(handle)
    return Precision.FLOAT64 if integrator is None else integrator.precision


def quad_get_points(handle: int) -> int:
    """Point count behind ``handle``: -1 for adaptive rules, 0 if the handle
    is invalid."""
    integrator = _lookup(handle)
    return 0 if integrator is None else integrator.points


def quad_type_to_string(kind: int) -> str:
    return rule_kind_to_string(kind)


def quad_is_adaptive(kind: int) -> int:
    return int(rule_is_adaptive(kind))


def quad_supports_infinite_bounds(kind: int) -> int:
    return int(rule_supports_infinite_bounds(kind))


# Per-precision entry points. Each family has one generic implementation
# above; the suffix fixes the precision: f float32, d float64, l extended.


def _named(name: str, function: Callable) -> Callable:
    function.__name__ = function.__qualname__ = name
    function.__module__ = __name__
    return function


def _fixed_creator(kind: RuleKind, precision: Precision):
    def create(points: int) -> int:
        return _create(kind, precision, points=points)

    return create


def _laguerre_alpha_creator(precision: Precision):
    def create(points: int, alpha: float) -> int:
        return _create(
            RuleKind.GAUSS_LAGUERRE, precision, points=points, alpha=alpha
        )

    return create


def _jacobi_creator(precision: Precision):
    def create(points: int, alpha: float, beta: float) -> int:
        return _create(
            RuleKind.GAUSS_JACOBI,
            precision,
            points=points,
            alpha=alpha,
            beta=beta,
        )

    return create


def _adaptive_creator(kind: RuleKind, precision: Precision):
    def create() -> int:
        return _create(kind, precision)

    return create


def _adaptive_creator_with_params(kind: RuleKind, precision: Precision):
    def create(max_refinements: int, tolerance: float) -> int:
        return _create(
            kind,
            precision,
            max_refinements=max_refinements,
            tolerance=tolerance,
        )

    return create


def _integrator_entry(precision: Precision):
    def integrate(handle: int, f: Optional[Callable], context):
        return _integrate(precision, handle, f, context)

    return integrate


def _interval_entry(precision: Precision):
    def integrate_interval(
        handle: int,
        f: Optional[Callable],
        context,
        a: float,
        b: float,
    ):
        return _integrate(precision, handle, f, context, (a, b))

    return integrate_interval


def _abscissa_entry(precision: Precision):
    def get_abscissa_weights(
        handle: int,
        abscissa,
        weights,
        buffer_size: int,
    ) -> int:
        return _copy_abscissa_weights(
            precision, handle, abscissa, weights, buffer_size
        )

    return get_abscissa_weights


quad_gauss_create_f = _named(
    "quad_gauss_create_f",
    _fixed_creator(RuleKind.GAUSS_LEGENDRE, Precision.FLOAT32),
)

quad_gauss_kronrod_create_f = _named(
    "quad_gauss_kronrod_create_f",
    _fixed_creator(RuleKind.GAUSS_KRONROD, Precision.FLOAT32),
)

quad_gauss_hermite_create_f = _named(
    "quad_gauss_hermite_create_f",
    _fixed_creator(RuleKind.GAUSS_HERMITE, Precision.FLOAT32),
)

quad_gauss_laguerre_create_f = _named(
    "quad_gauss_laguerre_create_f",
    _fixed_creator(RuleKind.GAUSS_LAGUERRE, Precision.FLOAT32),
)

quad_gauss_laguerre_create_alpha_f = _named(
    "quad_gauss_laguerre_create_alpha_f",
    _laguerre_alpha_creator(Precision.FLOAT32),
)

quad_gauss_jacobi_create_f = _named(
    "quad_gauss_jacobi_create_f", _jacobi_creator(Precision.FLOAT32)
)

quad_tanh_sinh_create_f = _named(
    "quad_tanh_sinh_create_f",
    _adaptive_creator(RuleKind.TANH_SINH, Precision.FLOAT32),
)

quad_tanh_sinh_create_with_params_f = _named(
    "quad_tanh_sinh_create_with_params_f",
    _adaptive_creator_with_params(RuleKind.TANH_SINH, Precision.FLOAT32),
)

quad_sinh_sinh_create_f = _named(
    "quad_sinh_sinh_create_f",
    _adaptive_creator(RuleKind.SINH_SINH, Precision.FLOAT32),
)

quad_sinh_sinh_create_with_params_f = _named(
    "quad_sinh_sinh_create_with_params_f",
    _adaptive_creator_with_params(RuleKind.SINH_SINH, Precision.FLOAT32),
)

quad_exp_sinh_create_f = _named(
    "quad_exp_sinh_create_f",
    _adaptive_creator(RuleKind.EXP_SINH, Precision.FLOAT32),
)

quad_exp_sinh_create_with_params_f = _named(
    "quad_exp_sinh_create_with_params_f",
    _adaptive_creator_with_params(RuleKind.EXP_SINH, Precision.FLOAT32),
)

quad_integrate_f = _named(
    "quad_integrate_f", _integrator_entry(Precision.FLOAT32)
)

quad_integrate_interval_f = _named(
    "quad_integrate_interval_f", _interval_entry(Precision.FLOAT32)
)

quad_get_abscissa_weights_f = _named(
    "quad_get_abscissa_weights_f", _abscissa_entry(Precision.FLOAT32)
)


quad_gauss_create_d = _named(
    "quad_gauss_create_d",
    _fixed_creator(RuleKind.GAUSS_LEGENDRE, Precision.FLOAT64),
)

quad_gauss_kronrod_create_d = _named(
    "quad_gauss_kronrod_create_d",
    _fixed_creator(RuleKind.GAUSS_KRONROD, Precision.FLOAT64),
)

quad_gauss_hermite_create_d = _named(
    "quad_gauss_hermite_create_d",
    _fixed_creator(RuleKind.GAUSS_HERMITE, Precision.FLOAT64),
)

quad_gauss_laguerre_create_d = _named(
    "quad_gauss_laguerre_create_d",
    _fixed_creator(RuleKind.GAUSS_LAGUERRE, Precision.FLOAT64),
)

quad_gauss_laguerre_create_alpha_d = _named(
    "quad_gauss_laguerre_create_alpha_d",
    _laguerre_alpha_creator(Precision.FLOAT64),
)

quad_gauss_jacobi_create_d = _named(
    "quad_gauss_jacobi_create_d", _jacobi_creator(Precision.FLOAT64)
)

quad_tanh_sinh_create_d = _named(
    "quad_tanh_sinh_create_d",
    _adaptive_creator(RuleKind.TANH_SINH, Precision.FLOAT64),
)

quad_tanh_sinh_create_with_params_d = _named(
    "quad_tanh_sinh_create_with_params_d",
    _adaptive_creator_with_params(RuleKind.TANH_SINH, Precision.FLOAT64),
)

quad_sinh_sinh_create_d = _named(
    "quad_sinh_sinh_create_d",
    _adaptive_creator(RuleKind.SINH_SINH, Precision.FLOAT64),
)

quad_sinh_sinh_create_with_params_d = _named(
    "quad_sinh_sinh_create_with_params_d",
    _adaptive_creator_with_params(RuleKind.SINH_SINH, Precision.FLOAT64),
)

quad_exp_sinh_create_d = _named(
    "quad_exp_sinh_create_d",
    _adaptive_creator(RuleKind.EXP_SINH, Precision.FLOAT64),
)

quad_exp_sinh_create_with_params_d = _named(
    "quad_exp_sinh_create_with_params_d",
    _adaptive_creator_with_params(RuleKind.EXP_SINH, Precision.FLOAT64),
)

quad_integrate_d = _named(
    "quad_integrate_d", _integrator_entry(Precision.FLOAT64)
)

quad_integrate_interval_d = _named(
    "quad_integrate_interval_d", _interval_entry(Precision.FLOAT64)
)

quad_get_abscissa_weights_d = _named(
    "quad_get_abscissa_weights_d", _abscissa_entry(Precision.FLOAT64)
)


quad_gauss_create_l = _named(
    "quad_gauss_create_l",
    _fixed_creator(RuleKind.GAUSS_LEGENDRE, Precision.EXTENDED_FLOAT80),
)

quad_gauss_kronrod_create_l = _named(
    "quad_gauss_kronrod_create_l",
    _fixed_creator(RuleKind.GAUSS_KRONROD, Precision.EXTENDED_FLOAT80),
)

quad_gauss_hermite_create_l = _named(
    "quad_gauss_hermite_create_l",
    _fixed_creator(RuleKind.GAUSS_HERMITE, Precision.EXTENDED_FLOAT80),
)

quad_gauss_laguerre_create_l = _named(
    "quad_gauss_laguerre_create_l",
    _fixed_creator(RuleKind.GAUSS_LAGUERRE, Precision.EXTENDED_FLOAT80),
)

quad_gauss_laguerre_create_alpha_l = _named(
    "quad_gauss_laguerre_create_alpha_l",
    _laguerre_alpha_creator(Precision.EXTENDED_FLOAT80),
)

quad_gauss_jacobi_create_l = _named(
    "quad_gauss_jacobi_create_l", _jacobi_creator(Precision.EXTENDED_FLOAT80)
)

quad_tanh_sinh_create_l = _named(
    "quad_tanh_sinh_create_l",
    _adaptive_creator(RuleKind.TANH_SINH, Precision.EXTENDED_FLOAT80),
)

quad_tanh_sinh_create_with_params_l = _named(
    "quad_tanh_sinh_create_with_params_l",
    _adaptive_creator_with_params(
        RuleKind.TANH_SINH, Precision.EXTENDED_FLOAT80
    ),
)

quad_sinh_sinh_create_l = _named(
    "quad_sinh_sinh_create_l",
    _adaptive_creator(RuleKind.SINH_SINH, Precision.EXTENDED_FLOAT80),
)

quad_sinh_sinh_create_with_params_l = _named(
    "quad_sinh_sinh_create_with_params_l",
    _adaptive_creator_with_params(
        RuleKind.SINH_SINH, Precision.EXTENDED_FLOAT80
    ),
)

quad_exp_sinh_create_l = _named(
    "quad_exp_sinh_create_l",
    _adaptive_creator(RuleKind.EXP_SINH, Precision.EXTENDED_FLOAT80),
)

quad_exp_sinh_create_with_params_l = _named(
    "quad_exp_sinh_create_with_params_l",
    _adaptive_creator_with_params(
        RuleKind.EXP_SINH, Precision.EXTENDED_FLOAT80
    ),
)

quad_integrate_l = _named(
    "quad_integrate_l", _integrator_entry(Precision.EXTENDED_FLOAT80)
)

quad_integrate_interval_l = _named(
    "quad_integrate_interval_l", _interval_entry(Precision.EXTENDED_FLOAT80)
)

quad_get_abscissa_weights_l = _named(
    "quad_get_abscissa_weights_l", _abscissa_entry(Precision.EXTENDED_FLOAT80)
)
