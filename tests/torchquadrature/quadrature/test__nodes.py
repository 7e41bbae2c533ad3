import math

import pytest
import scipy.special
import torch
from numpy.polynomial.hermite import hermgauss
from numpy.polynomial.laguerre import laggauss
from numpy.polynomial.legendre import leggauss


class TestGaussLegendreNodesWeights:
    @pytest.mark.parametrize("n", [2, 5, 10, 30, 100])
    def test_matches_numpy(self, n):
        """Compare with numpy's Gauss-Legendre implementation"""
        from torchquadrature.quadrature import gauss_legendre_nodes_weights

        nodes, weights = gauss_legendre_nodes_weights(n, dtype=torch.float64)
        np_nodes, np_weights = leggauss(n)

        assert torch.allclose(nodes, torch.tensor(np_nodes), rtol=1e-12)
        assert torch.allclose(weights, torch.tensor(np_weights), rtol=1e-12)

    def test_nodes_in_interval(self):
        """Nodes should be in [-1, 1]"""
        from torchquadrature.quadrature import gauss_legendre_nodes_weights

        nodes, _ = gauss_legendre_nodes_weights(100)

        assert (nodes >= -1).all()
        assert (nodes <= 1).all()

    @pytest.mark.parametrize("n", [7, 10, 15, 20, 25, 30, 40, 50, 60, 100])
    def test_weights_sum_to_two(self, n):
        """Weights should sum to 2 (length of [-1, 1])"""
        from torchquadrature.quadrature import gauss_legendre_nodes_weights

        _, weights = gauss_legendre_nodes_weights(n, dtype=torch.float64)

        assert torch.allclose(
            weights.sum(), torch.tensor(2.0, dtype=torch.float64), rtol=1e-12
        )

    @pytest.mark.parametrize("n", [7, 10, 15, 20])
    def test_symmetric(self, n):
        from torchquadrature.quadrature import gauss_legendre_nodes_weights

        nodes, weights = gauss_legendre_nodes_weights(n, dtype=torch.float64)

        assert torch.equal(nodes, -nodes.flip(0))
        assert torch.equal(weights, weights.flip(0))

    def test_exact_for_polynomial(self):
        """Should exactly integrate polynomials up to degree 2n-1"""
        from torchquadrature.quadrature import gauss_legendre_nodes_weights

        n = 5
        nodes, weights = gauss_legendre_nodes_weights(n, dtype=torch.float64)

        # Integrate x^8 from -1 to 1 (degree 8 < 2*5-1=9, so should be exact)
        result = (nodes**8 * weights).sum()
        expected = torch.tensor(2 / 9, dtype=torch.float64)

        assert torch.allclose(result, expected, rtol=1e-12)

    def test_n_equals_1(self):
        """Single-point quadrature: midpoint rule"""
        from torchquadrature.quadrature import gauss_legendre_nodes_weights

        nodes, weights = gauss_legendre_nodes_weights(1, dtype=torch.float64)

        assert torch.allclose(nodes, torch.tensor([0.0], dtype=torch.float64))
        assert torch.allclose(
            weights, torch.tensor([2.0], dtype=torch.float64)
        )

    def test_invalid_n_raises(self):
        from torchquadrature.quadrature import gauss_legendre_nodes_weights

        with pytest.raises(ValueError, match="at least 1"):
            gauss_legendre_nodes_weights(0)

    def test_dtype(self):
        from torchquadrature.quadrature import gauss_legendre_nodes_weights

        nodes, weights = gauss_legendre_nodes_weights(10, dtype=torch.float32)

        assert nodes.dtype == torch.float32
        assert weights.dtype == torch.float32

    def test_returns_copies(self):
        """Mutating a returned table must not corrupt later calls"""
        from torchquadrature.quadrature import gauss_legendre_nodes_weights

        nodes, _ = gauss_legendre_nodes_weights(10)
        nodes.zero_()

        again, _ = gauss_legendre_nodes_weights(10)

        assert not torch.equal(again, nodes)


class TestGaussHermiteNodesWeights:
    @pytest.mark.parametrize("n", [10, 20, 50])
    def test_matches_numpy(self, n):
        from torchquadrature.quadrature import gauss_hermite_nodes_weights

        nodes, weights = gauss_hermite_nodes_weights(n)
        np_nodes, np_weights = hermgauss(n)

        assert torch.allclose(nodes, torch.tensor(np_nodes), rtol=1e-10)
        assert torch.allclose(
            weights, torch.tensor(np_weights), rtol=1e-8, atol=1e-14
        )

    def test_weights_sum_to_sqrt_pi(self):
        from torchquadrature.quadrature import gauss_hermite_nodes_weights

        _, weights = gauss_hermite_nodes_weights(30)

        assert math.isclose(weights.sum().item(), math.sqrt(math.pi))


class TestGaussLaguerreNodesWeights:
    @pytest.mark.parametrize("n", [10, 25])
    def test_matches_numpy(self, n):
        from torchquadrature.quadrature import gauss_laguerre_nodes_weights

        nodes, weights = gauss_laguerre_nodes_weights(n)
        np_nodes, np_weights = laggauss(n)

        assert torch.allclose(nodes, torch.tensor(np_nodes), rtol=1e-10)
        assert torch.allclose(
            weights, torch.tensor(np_weights), rtol=1e-8, atol=1e-14
        )

    @pytest.mark.parametrize("alpha", [-0.5, 0.5, 2.0])
    def test_generalized_matches_scipy(self, alpha):
        from torchquadrature.quadrature import gauss_laguerre_nodes_weights

        nodes, weights = gauss_laguerre_nodes_weights(15, alpha)
        sp_nodes, sp_weights = scipy.special.roots_genlaguerre(15, alpha)

        assert torch.allclose(nodes, torch.tensor(sp_nodes), rtol=1e-10)
        assert math.isclose(weights.sum().item(), math.gamma(alpha + 1))

    def test_invalid_alpha_raises(self):
        from torchquadrature.quadrature import gauss_laguerre_nodes_weights

        with pytest.raises(ValueError, match="alpha"):
            gauss_laguerre_nodes_weights(10, alpha=-1.0)


class TestGaussJacobiNodesWeights:
    @pytest.mark.parametrize(
        "alpha,beta",
        [(0.5, 0.5), (-0.5, -0.5), (1.0, 2.0), (0.5, -0.5), (-0.25, 0.25)],
    )
    def test_matches_scipy(self, alpha, beta):
        from torchquadrature.quadrature import gauss_jacobi_nodes_weights

        nodes, weights = gauss_jacobi_nodes_weights(10, alpha, beta)
        sp_nodes, sp_weights = scipy.special.roots_jacobi(10, alpha, beta)

        assert torch.allclose(nodes, torch.tensor(sp_nodes), rtol=1e-10)
        assert torch.allclose(weights, torch.tensor(sp_weights), rtol=1e-10)

    def test_zero_exponents_reduce_to_legendre(self):
        from torchquadrature.quadrature import (
            gauss_jacobi_nodes_weights,
            gauss_legendre_nodes_weights,
        )

        nodes, weights = gauss_jacobi_nodes_weights(20, 0.0, 0.0)
        l_nodes, l_weights = gauss_legendre_nodes_weights(20)

        assert torch.allclose(nodes, l_nodes, atol=1e-13)
        assert torch.allclose(weights, l_weights, rtol=1e-12)

    def test_invalid_beta_raises(self):
        from torchquadrature.quadrature import gauss_jacobi_nodes_weights

        with pytest.raises(ValueError, match="beta"):
            gauss_jacobi_nodes_weights(10, 0.0, -2.0)


class TestGaussKronrodNodesWeights:
    @pytest.mark.parametrize("points", [15, 21, 31, 41, 51, 61])
    def test_shapes(self, points):
        from torchquadrature.quadrature import gauss_kronrod_nodes_weights

        nodes, k_weights, g_weights, g_indices = gauss_kronrod_nodes_weights(
            points
        )

        n_gauss = points // 2
        assert nodes.shape == (points,)
        assert k_weights.shape == (points,)
        assert g_weights.shape == (n_gauss,)
        assert g_indices.shape == (n_gauss,)

    def test_invalid_points(self):
        from torchquadrature.quadrature import gauss_kronrod_nodes_weights

        with pytest.raises(ValueError, match="points must be"):
            gauss_kronrod_nodes_weights(20)

    @pytest.mark.parametrize("points", [15, 21, 31, 41, 51, 61])
    def test_weights_sum_to_two(self, points):
        from torchquadrature.quadrature import gauss_kronrod_nodes_weights

        _, k_weights, g_weights, _ = gauss_kronrod_nodes_weights(points)

        assert torch.allclose(
            k_weights.sum(), torch.tensor(2.0, dtype=torch.float64), rtol=1e-12
        )
        assert torch.allclose(
            g_weights.sum(), torch.tensor(2.0, dtype=torch.float64), rtol=1e-12
        )

    def test_k15_matches_quadpack(self):
        """Tabulated QUADPACK qk15 abscissae and weights"""
        from torchquadrature.quadrature import gauss_kronrod_nodes_weights

        nodes, k_weights, _, _ = gauss_kronrod_nodes_weights(15)

        assert math.isclose(
            nodes[-1].item(), 0.991455371120812639, rel_tol=1e-13
        )
        assert math.isclose(
            nodes[-3].item(), 0.864864423359769073, rel_tol=1e-13
        )
        assert math.isclose(
            k_weights[7].item(), 0.209482141084727828, rel_tol=1e-12
        )
        assert math.isclose(
            k_weights[-1].item(), 0.022935322010529225, rel_tol=1e-12
        )

    def test_k21_matches_quadpack(self):
        """Tabulated QUADPACK qk21 abscissae and weights"""
        from torchquadrature.quadrature import gauss_kronrod_nodes_weights

        nodes, k_weights, _, _ = gauss_kronrod_nodes_weights(21)

        assert math.isclose(
            nodes[-1].item(), 0.995657163025808081, rel_tol=1e-13
        )
        assert math.isclose(
            k_weights[10].item(), 0.149445554002916906, rel_tol=1e-12
        )

    @pytest.mark.parametrize("points", [15, 31, 61])
    def test_exact_to_degree_3n_plus_1(self, points):
        from torchquadrature.quadrature import gauss_kronrod_nodes_weights

        nodes, k_weights, _, _ = gauss_kronrod_nodes_weights(points)

        n = points // 2
        degree = 3 * n + 1 if (3 * n + 1) % 2 == 0 else 3 * n
        result = (nodes**degree * k_weights).sum()

        assert math.isclose(result.item(), 2 / (degree + 1), rel_tol=1e-9)

    @pytest.mark.parametrize("points", [15, 21, 41])
    def test_gauss_indices_correct(self, points):
        """Gauss nodes should be at the returned indices"""
        from torchquadrature.quadrature import gauss_kronrod_nodes_weights

        nodes, _, g_weights, g_indices = gauss_kronrod_nodes_weights(points)

        np_g_nodes, np_g_weights = leggauss(points // 2)

        assert torch.allclose(
            nodes[g_indices], torch.tensor(np_g_nodes), rtol=1e-12
        )
        assert torch.allclose(
            g_weights, torch.tensor(np_g_weights), rtol=1e-12
        )

    def test_nodes_sorted_and_symmetric(self):
        from torchquadrature.quadrature import gauss_kronrod_nodes_weights

        nodes, k_weights, _, _ = gauss_kronrod_nodes_weights(31)

        assert (nodes[1:] > nodes[:-1]).all()
        assert torch.equal(nodes, -nodes.flip(0))
        assert torch.equal(k_weights, k_weights.flip(0))
        assert (k_weights > 0).all()
