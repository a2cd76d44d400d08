"""Temperature-dependent thermal conductivity of insulation materials.

Each material answers one question for the heat-balance solver: the mean
conductivity between two temperatures,

    k̄(T1, T2) = 1/(T2 − T1) · ∫_{T1}^{T2} k(T) dT

Three conductivity laws are supported:

- Polynomial:       k(T) = c0 + c1·T + c2·T² + ...       (exact integral)
- Exponential:      ln k(T) = a + b·T                   (exact integral)
- Piecewise linear: k(T) = a_i + b_i·T on three ranges  (trapezoidal rule)

Units: temperature in °F, conductivity in BTU·in/(hr·ft²·°F).

Materials are frozen dataclasses and hold no mutable state, so one instance
may be shared by any number of layers and concurrent solves. The numerical
kernels are Numba-compiled functions over packed float64 parameter arrays.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numba import njit

from c680_core.errors import InvalidInputError

logger = logging.getLogger(__name__)


# ===================================================================
# NUMERICAL KERNELS (Numba JIT)
# ===================================================================


@njit(cache=True)
def _polynomial_k(c: np.ndarray, t: float) -> float:
    """Evaluate k(T) = Σ c_i·T^i."""
    k = 0.0
    p = 1.0
    for i in range(len(c)):
        k += c[i] * p
        p *= t
    return k


@njit(cache=True)
def _polynomial_avg(c: np.ndarray, t1: float, t2: float) -> float:
    """Exact integral mean of a polynomial conductivity over [t1, t2].

    Parameters
    ----------
    c : np.ndarray
        Coefficients c_0..c_n. Shape: (n+1,).
    t1, t2 : float
        Interval end points [°F], either order.

    Returns
    -------
    float
        Σ c_i·(t2^(i+1) − t1^(i+1))/(i+1) / (t2 − t1).
    """
    if t1 == t2:
        return _polynomial_k(c, t1)

    total = 0.0
    p1 = t1
    p2 = t2
    for i in range(len(c)):
        total += c[i] * (p2 - p1) / (i + 1)
        p1 *= t1
        p2 *= t2
    return total / (t2 - t1)


@njit(cache=True)
def _piecewise_k(p: np.ndarray, t: float) -> float:
    """Evaluate the three-segment linear conductivity.

    ``p`` is packed as [a1, b1, TL, a2, b2, TU, a3, b3].
    """
    if t <= p[2]:
        return p[0] + p[1] * t
    if t <= p[5]:
        return p[3] + p[4] * t
    return p[6] + p[7] * t


@njit(cache=True)
def _piecewise_avg(p: np.ndarray, t1: float, t2: float, n: int) -> float:
    """Trapezoidal mean of the piecewise conductivity over [t1, t2].

    Samples k at ``n`` equally spaced points including both end points.
    """
    if t1 == t2:
        return _piecewise_k(p, t1)

    dt = (t2 - t1) / (n - 1)
    total = 0.0
    k_prev = _piecewise_k(p, t1)
    for i in range(1, n):
        k_next = _piecewise_k(p, t1 + i * dt)
        total += (k_prev + k_next) / 2.0 * dt
        k_prev = k_next
    return total / (t2 - t1)


# ===================================================================
# MATERIAL MODELS
# ===================================================================


class Material(ABC):
    """Capability interface: mean conductivity between two temperatures."""

    kind: str = "abstract"

    @abstractmethod
    def conductivity(self, t: float) -> float:
        """Pointwise conductivity k(T) [BTU·in/(hr·ft²·°F)]."""

    @abstractmethod
    def conductivity_avg(self, t_a: float, t_b: float) -> float:
        """Integral-mean conductivity between ``t_a`` and ``t_b`` [°F].

        The result does not depend on argument order. When the two
        temperatures coincide the pointwise value k(t_a) is returned,
        which is the limit of the mean.
        """

    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """Return the defining parameters as plain Python values."""


@dataclass(frozen=True)
class PolynomialMaterial(Material):
    """Polynomial conductivity k(T) = c0 + c1·T + c2·T² + ...

    Parameters
    ----------
    coefficients : tuple[float, ...]
        Ordered coefficients c0..cn. At least one is required.
    """

    coefficients: tuple[float, ...]
    _c: np.ndarray = field(init=False, repr=False, compare=False)

    kind = "polynomial"

    def __post_init__(self) -> None:
        coeffs = tuple(float(c) for c in self.coefficients)
        if not coeffs:
            raise InvalidInputError("Polynomial material needs at least one coefficient.")
        if not all(math.isfinite(c) for c in coeffs):
            raise InvalidInputError(f"Polynomial coefficients must be finite, got {coeffs}")
        object.__setattr__(self, "coefficients", coeffs)
        object.__setattr__(self, "_c", np.array(coeffs, dtype=np.float64))

    def conductivity(self, t: float) -> float:
        return float(_polynomial_k(self._c, float(t)))

    def conductivity_avg(self, t_a: float, t_b: float) -> float:
        return float(_polynomial_avg(self._c, float(t_a), float(t_b)))

    def parameters(self) -> dict[str, Any]:
        return {"coefficients": list(self.coefficients)}


@dataclass(frozen=True)
class ExponentialMaterial(Material):
    """Exponential conductivity ln k(T) = a + b·T.

    Parameters
    ----------
    a : float
        Intercept of ln k.
    b : float
        Slope of ln k [1/°F]. Must be non-zero.
    """

    a: float
    b: float

    kind = "exponential"

    def __post_init__(self) -> None:
        if not (math.isfinite(self.a) and math.isfinite(self.b)):
            raise InvalidInputError(
                f"Exponential parameters must be finite, got a={self.a}, b={self.b}"
            )
        if self.b == 0.0:
            # A zero slope is a constant conductivity; use PolynomialMaterial.
            raise InvalidInputError("Exponential material requires b != 0.")

    def conductivity(self, t: float) -> float:
        return math.exp(self.a + self.b * t)

    def conductivity_avg(self, t_a: float, t_b: float) -> float:
        if t_a == t_b:
            return self.conductivity(t_a)
        return (
            (math.exp(self.a + self.b * t_b) - math.exp(self.a + self.b * t_a))
            / (self.b * (t_b - t_a))
        )

    def parameters(self) -> dict[str, Any]:
        return {"a": self.a, "b": self.b}


@dataclass(frozen=True)
class PiecewiseLinearMaterial(Material):
    """Three-segment linear conductivity.

    k(T) = a1 + b1·T   for T ≤ TL
           a2 + b2·T   for TL < T ≤ TU
           a3 + b3·T   for T > TU

    The mean over an interval is computed with a fixed-resolution
    trapezoidal rule, so results carry a small quadrature error when the
    interval straddles a breakpoint.

    Parameters
    ----------
    a1, b1, t_lower : float
        First segment and its upper breakpoint TL [°F].
    a2, b2, t_upper : float
        Second segment and its upper breakpoint TU [°F]. TL ≤ TU.
    a3, b3 : float
        Third segment.
    quadrature_points : int
        Number of samples for the trapezoidal rule.
    """

    a1: float
    b1: float
    t_lower: float
    a2: float
    b2: float
    t_upper: float
    a3: float
    b3: float
    quadrature_points: int = 100
    _p: np.ndarray = field(init=False, repr=False, compare=False)

    kind = "piecewise_linear"

    def __post_init__(self) -> None:
        packed = (
            self.a1, self.b1, self.t_lower,
            self.a2, self.b2, self.t_upper,
            self.a3, self.b3,
        )
        if not all(math.isfinite(v) for v in packed):
            raise InvalidInputError(f"Piecewise parameters must be finite, got {packed}")
        if self.t_lower > self.t_upper:
            raise InvalidInputError(
                f"Breakpoints must satisfy TL <= TU, got TL={self.t_lower}, TU={self.t_upper}"
            )
        if self.quadrature_points < 2:
            raise InvalidInputError("Trapezoidal rule needs at least 2 quadrature points.")
        object.__setattr__(self, "_p", np.array(packed, dtype=np.float64))

    def conductivity(self, t: float) -> float:
        return float(_piecewise_k(self._p, float(t)))

    def conductivity_avg(self, t_a: float, t_b: float) -> float:
        return float(
            _piecewise_avg(self._p, float(t_a), float(t_b), int(self.quadrature_points))
        )

    def parameters(self) -> dict[str, Any]:
        return {
            "segments": [
                [self.a1, self.b1, self.t_lower],
                [self.a2, self.b2, self.t_upper],
                [self.a3, self.b3],
            ],
            "quadrature_points": self.quadrature_points,
        }


def compute_conductivity_profile(
    material: Material,
    temperatures: np.ndarray,
) -> np.ndarray:
    """Evaluate pointwise conductivity over a temperature array.

    Useful for diagnostics and for checking that a material stays
    positive over the operating range.

    Parameters
    ----------
    material : Material
        Conductivity model.
    temperatures : np.ndarray
        Temperatures [°F]. Shape: (N,).

    Returns
    -------
    np.ndarray
        k(T) values. Shape: (N,).
    """
    temperatures = np.asarray(temperatures, dtype=np.float64)
    k_arr = np.empty(len(temperatures), dtype=np.float64)
    for i in range(len(temperatures)):
        k_arr[i] = material.conductivity(temperatures[i])
    return k_arr
