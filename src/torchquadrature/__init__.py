"""torchquadrature: numerical integration rules for PyTorch."""

from . import (
    bridge,
    quadrature,
)

__all__ = [
    "bridge",
    "quadrature",
]

__version__ = "0.1.0"
