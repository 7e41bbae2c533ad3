"""Node and weight computation for quadrature rules."""

import functools
import math
from typing import Optional, Tuple

import torch
from torch import Tensor

__all__ = [
    "gauss_hermite_nodes_weights",
    "gauss_jacobi_nodes_weights",
    "gauss_kronrod_nodes_weights",
    "gauss_laguerre_nodes_weights",
    "gauss_legendre_nodes_weights",
]

# Bisection halves a bracket of width <= 2 per step; 2**-100 is far below
# float64 resolution on [-1, 1].
_BISECTION_STEPS = 100


def _golub_welsch(
    diag: Tensor,
    off_diag: Tensor,
    mass: float,
) -> Tuple[Tensor, Tensor]:
    """Nodes and weights from the symmetric tridiagonal Jacobi matrix.

    Eigenvalues are the nodes; the squared first components of the
    normalized eigenvectors, scaled by the total mass of the weight
    function, are the weights.
    """
    T = (
        torch.diag(diag)
        + torch.diag(off_diag, diagonal=1)
        + torch.diag(off_diag, diagonal=-1)
    )

    eigenvalues, eigenvectors = torch.linalg.eigh(T)

    weights = mass * eigenvectors[0, :] ** 2

    sorted_idx = torch.argsort(eigenvalues)

    return eigenvalues[sorted_idx], weights[sorted_idx]


def _symmetrize(nodes: Tensor, weights: Tensor) -> Tuple[Tensor, Tensor]:
    # For weight functions even about 0: x_i = -x_{n-1-i}, w_i = w_{n-1-i}.
    return (nodes - nodes.flip(0)) / 2, (weights + weights.flip(0)) / 2


def _legendre_polynomials(x: Tensor, degree: int) -> Tensor:
    """P_0(x), ..., P_degree(x) by the three-term recurrence, shape
    (degree + 1, *x.shape)."""
    values = [torch.ones_like(x), x]

    for k in range(1, degree):
        values.append(
            ((2 * k + 1) * x * values[k] - k * values[k - 1]) / (k + 1)
        )

    return torch.stack(values[: degree + 1])


def _check_n(n: int) -> None:
    if n < 1:
        raise ValueError(f"n must be at least 1, got {n}")


@functools.lru_cache(maxsize=None)
def _legendre(n: int) -> Tuple[Tensor, Tensor]:
    k = torch.arange(1, n, dtype=torch.float64)
    off_diag = k / torch.sqrt(4 * k**2 - 1)

    return _symmetrize(
        *_golub_welsch(torch.zeros(n, dtype=torch.float64), off_diag, 2.0)
    )


@functools.lru_cache(maxsize=None)
def _hermite(n: int) -> Tuple[Tensor, Tensor]:
    k = torch.arange(1, n, dtype=torch.float64)
    off_diag = torch.sqrt(k / 2)

    return _symmetrize(
        *_golub_welsch(
            torch.zeros(n, dtype=torch.float64),
            off_diag,
            math.sqrt(math.pi),
        )
    )


@functools.lru_cache(maxsize=None)
def _laguerre(n: int, alpha: float) -> Tuple[Tensor, Tensor]:
    k = torch.arange(n, dtype=torch.float64)
    diag = 2 * k + alpha + 1

    k_off = torch.arange(1, n, dtype=torch.float64)
    off_diag = torch.sqrt(k_off * (k_off + alpha))

    return _golub_welsch(diag, off_diag, math.gamma(alpha + 1))


@functools.lru_cache(maxsize=None)
def _jacobi(n: int, alpha: float, beta: float) -> Tuple[Tensor, Tensor]:
    ab = alpha + beta

    # 2^{alpha+beta+1} B(alpha+1, beta+1), in log space to avoid overflow.
    mass = math.exp(
        (ab + 1) * math.log(2)
        + math.lgamma(alpha + 1)
        + math.lgamma(beta + 1)
        - math.lgamma(ab + 2)
    )

    k = torch.arange(1, n, dtype=torch.float64)
    diag = torch.empty(n, dtype=torch.float64)
    diag[0] = (beta - alpha) / (ab + 2)
    diag[1:] = (beta**2 - alpha**2) / ((2 * k + ab) * (2 * k + ab + 2))

    # The general off-diagonal formula is 0/0 at k = 1 when alpha + beta = -1,
    # so the first entry uses its cancelled form.
    off_diag = torch.empty(n - 1, dtype=torch.float64)
    if n > 1:
        off_diag[0] = (
            2
            / (2 + ab)
            * math.sqrt((1 + alpha) * (1 + beta) / (3 + ab))
        )
        k = k[1:]
        off_diag[1:] = (
            2
            / (2 * k + ab)
            * torch.sqrt(
                k
                * (k + alpha)
                * (k + beta)
                * (k + ab)
                / ((2 * k + ab - 1) * (2 * k + ab + 1))
            )
        )

    return _golub_welsch(diag, off_diag, mass)


@functools.lru_cache(maxsize=None)
def _kronrod(points: int) -> Tuple[Tensor, Tensor, Tensor, Tensor]:
    n = (points - 1) // 2

    gauss_nodes, gauss_weights = _legendre(n)

    # Stieltjes polynomial E_{n+1} = P_{n+1} + sum_{k<=n} c_k P_k, fixed by
    # int P_n E_{n+1} P_j dx = 0 for j = 0..n. The integrands have degree
    # <= 3n + 1, so a (2n + 2)-point Gauss-Legendre rule evaluates them
    # exactly.
    xq, wq = _legendre(2 * n + 2)
    P = _legendre_polynomials(xq, n + 1)
    moments = (P[: n + 1] * (P[n] * wq)) @ P.T

    coefficients = torch.linalg.solve(
        moments[:, : n + 1], -moments[:, n + 1]
    )
    coefficients = torch.cat(
        [coefficients, torch.ones(1, dtype=torch.float64)]
    )

    def stieltjes(x: Tensor) -> Tensor:
        return coefficients @ _legendre_polynomials(x, n + 1)

    # The zeros of E_{n+1} interlace with the Gauss nodes, one per bracket.
    one = torch.ones(1, dtype=torch.float64)
    lo = torch.cat([-one, gauss_nodes])
    hi = torch.cat([gauss_nodes, one])
    f_lo = stieltjes(lo)

    for _ in range(_BISECTION_STEPS):
        mid = (lo + hi) / 2
        f_mid = stieltjes(mid)
        move_lo = torch.sign(f_mid) == torch.sign(f_lo)
        lo = torch.where(move_lo, mid, lo)
        f_lo = torch.where(move_lo, f_mid, f_lo)
        hi = torch.where(move_lo, hi, mid)

    nodes = torch.empty(2 * n + 1, dtype=torch.float64)
    nodes[0::2] = (lo + hi) / 2
    nodes[1::2] = gauss_nodes

    # Interpolatory weights on the Kronrod nodes are the Kronrod weights.
    V = _legendre_polynomials(nodes, 2 * n)
    rhs = torch.zeros(2 * n + 1, dtype=torch.float64)
    rhs[0] = 2.0
    kronrod_weights = torch.linalg.solve(V, rhs)

    nodes, kronrod_weights = _symmetrize(nodes, kronrod_weights)

    gauss_indices = torch.arange(1, 2 * n, 2)

    return nodes, kronrod_weights, gauss_weights, gauss_indices


def gauss_legendre_nodes_weights(
    n: int,
    dtype: torch.dtype = torch.float64,
    device: Optional[torch.device] = None,
) -> Tuple[Tensor, Tensor]:
    """
    Compute Gauss-Legendre nodes and weights on [-1, 1].

    Uses the Golub-Welsch algorithm (eigenvalues of symmetric tridiagonal matrix).

    Parameters
    ----------
    n : int
        Number of quadrature points.
    dtype : torch.dtype
        Data type for output tensors.
    device : torch.device, optional
        Device for output tensors.

    Returns
    -------
    nodes : Tensor
        Quadrature nodes, shape (n,), sorted ascending.
    weights : Tensor
        Quadrature weights, shape (n,).

    Raises
    ------
    ValueError
        If n < 1.

    Notes
    -----
    Gauss-Legendre quadrature is exact for polynomials of degree <= 2n-1.

    Tables are computed once in float64 and cast to ``dtype``. Nodes and
    weights are exactly symmetric about 0.

    References
    ----------
    Golub, G. H., & Welsch, J. H. (1969). Calculation of Gauss quadrature rules.
    Mathematics of Computation, 23(106), 221-230.
    """
    _check_n(n)

    nodes, weights = _legendre(n)

    return (
        nodes.to(dtype=dtype, device=device, copy=True),
        weights.to(dtype=dtype, device=device, copy=True),
    )


def gauss_hermite_nodes_weights(
    n: int,
    dtype: torch.dtype = torch.float64,
    device: Optional[torch.device] = None,
) -> Tuple[Tensor, Tensor]:
    r"""
    Compute Gauss-Hermite nodes and weights for the physicists' convention.

    Integrates functions with weight w(x) = exp(-x^2) on (-infinity, infinity):

    .. math::

        \int_{-\infty}^{\infty} f(x) e^{-x^2} dx \approx \sum_{i=1}^{n} w_i f(x_i)

    Parameters
    ----------
    n : int
        Number of quadrature points.
    dtype : torch.dtype
        Data type for output tensors.
    device : torch.device, optional
        Device for output tensors.

    Returns
    -------
    nodes : Tensor
        Quadrature nodes, shape (n,), sorted ascending.
    weights : Tensor
        Quadrature weights, shape (n,). They sum to sqrt(pi).

    Notes
    -----
    The Jacobi matrix for Hermite (physicists') has zero diagonal and
    off-diagonal[k] = sqrt(k/2).
    """
    _check_n(n)

    nodes, weights = _hermite(n)

    return (
        nodes.to(dtype=dtype, device=device, copy=True),
        weights.to(dtype=dtype, device=device, copy=True),
    )


def gauss_laguerre_nodes_weights(
    n: int,
    alpha: float = 0.0,
    dtype: torch.dtype = torch.float64,
    device: Optional[torch.device] = None,
) -> Tuple[Tensor, Tensor]:
    r"""
    Compute Gauss-Laguerre nodes and weights.

    Integrates functions with weight w(x) = x^alpha * exp(-x) on [0, infinity):

    .. math::

        \int_{0}^{\infty} f(x) x^{\alpha} e^{-x} dx \approx \sum_{i=1}^{n} w_i f(x_i)

    Parameters
    ----------
    n : int
        Number of quadrature points.
    alpha : float
        Parameter for generalized Laguerre polynomials. Must be > -1.
        Default is 0 (standard Laguerre).
    dtype : torch.dtype
        Data type for output tensors.
    device : torch.device, optional
        Device for output tensors.

    Returns
    -------
    nodes : Tensor
        Quadrature nodes, shape (n,), sorted ascending.
    weights : Tensor
        Quadrature weights, shape (n,). They sum to Gamma(alpha + 1).

    Raises
    ------
    ValueError
        If n < 1 or alpha <= -1.
    """
    _check_n(n)
    if alpha <= -1:
        raise ValueError(f"alpha must be > -1, got {alpha}")

    nodes, weights = _laguerre(n, float(alpha))

    return (
        nodes.to(dtype=dtype, device=device, copy=True),
        weights.to(dtype=dtype, device=device, copy=True),
    )


def gauss_jacobi_nodes_weights(
    n: int,
    alpha: float,
    beta: float,
    dtype: torch.dtype = torch.float64,
    device: Optional[torch.device] = None,
) -> Tuple[Tensor, Tensor]:
    r"""
    Compute Gauss-Jacobi nodes and weights on [-1, 1].

    Integrates functions with weight w(x) = (1-x)^alpha * (1+x)^beta:

    .. math::

        \int_{-1}^{1} f(x) (1-x)^{\alpha} (1+x)^{\beta} dx \approx \sum_{i=1}^{n} w_i f(x_i)

    Parameters
    ----------
    n : int
        Number of quadrature points.
    alpha : float
        Exponent for (1-x). Must be > -1.
    beta : float
        Exponent for (1+x). Must be > -1.
    dtype : torch.dtype
        Data type for output tensors.
    device : torch.device, optional
        Device for output tensors.

    Returns
    -------
    nodes : Tensor
        Quadrature nodes, shape (n,), sorted ascending.
    weights : Tensor
        Quadrature weights, shape (n,).

    Raises
    ------
    ValueError
        If n < 1 or alpha <= -1 or beta <= -1.

    Notes
    -----
    Special cases:
    - alpha = beta = 0: Gauss-Legendre
    - alpha = beta = -1/2: Gauss-Chebyshev T
    - alpha = beta = 1/2: Gauss-Chebyshev U

    The total weight integral is 2^{alpha+beta+1} * Beta(alpha+1, beta+1).
    """
    _check_n(n)
    if alpha <= -1:
        raise ValueError(f"alpha must be > -1, got {alpha}")
    if beta <= -1:
        raise ValueError(f"beta must be > -1, got {beta}")

    nodes, weights = _jacobi(n, float(alpha), float(beta))

    return (
        nodes.to(dtype=dtype, device=device, copy=True),
        weights.to(dtype=dtype, device=device, copy=True),
    )


def gauss_kronrod_nodes_weights(
    points: int = 15,
    dtype: torch.dtype = torch.float64,
    device: Optional[torch.device] = None,
) -> Tuple[Tensor, Tensor, Tensor, Tensor]:
    """
    Compute Gauss-Kronrod nodes and weights on [-1, 1].

    Returns both Kronrod (``points`` nodes) and embedded Gauss weights for
    error estimation.

    Parameters
    ----------
    points : int
        Number of Kronrod nodes, 2n + 1 for the embedded n-point Gauss rule.
        Must be odd and at least 3.
    dtype : torch.dtype
        Data type for output tensors.
    device : torch.device, optional
        Device for output tensors.

    Returns
    -------
    nodes : Tensor
        Kronrod nodes, shape (points,), sorted ascending.
    kronrod_weights : Tensor
        Kronrod weights, shape (points,).
    gauss_weights : Tensor
        Gauss weights, shape (points // 2,).
    gauss_indices : Tensor
        Indices into nodes where Gauss nodes are located, shape (points // 2,).

    Raises
    ------
    ValueError
        If points is even or less than 3.

    Notes
    -----
    The n Kronrod nodes added to the Gauss nodes are the zeros of the
    Stieltjes polynomial E_{n+1}, which interlace with the Gauss nodes.
    The Kronrod rule is exact for polynomials of degree <= 3n + 1.

    G7-K15, G10-K21, G15-K31, G20-K41, G25-K51 and G30-K61 are the pairs
    used by QUADPACK.

    References
    ----------
    Piessens, R., et al. (1983). QUADPACK: A subroutine package for automatic integration.
    Monegato, G. (1978). Some remarks on the construction of extended Gaussian
    quadrature rules. Mathematics of Computation, 32(141), 247-252.
    """
    if points < 3 or points % 2 == 0:
        raise ValueError(f"points must be odd and at least 3, got {points}")

    nodes, k_weights, g_weights, g_indices = _kronrod(int(points))

    return (
        nodes.to(dtype=dtype, device=device, copy=True),
        k_weights.to(dtype=dtype, device=device, copy=True),
        g_weights.to(dtype=dtype, device=device, copy=True),
        g_indices.to(device=device, copy=True),
    )
