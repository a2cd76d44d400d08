"""Tests for the conductivity models.

Test Strategy
-------------
1. **Polynomial**: constant, linear and quadratic laws against closed-form means.
2. **Exponential**: closed-form mean, b = 0 rejected.
3. **Piecewise linear**: exact on one segment, close to the exact integral
   across a breakpoint, breakpoint ordering enforced.
4. **Contract**: argument order does not matter, equal temperatures give k(T).
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from c680_core.errors import InvalidInputError
from c680_core.materials import (
    ExponentialMaterial,
    PiecewiseLinearMaterial,
    PolynomialMaterial,
    compute_conductivity_profile,
)


# ===================================================================
# FIXTURES
# ===================================================================


@pytest.fixture
def fiberglass() -> PiecewiseLinearMaterial:
    """Continuous three-segment material with breakpoints at 100 F and 300 F."""
    return PiecewiseLinearMaterial(
        0.22, 3.0e-4, 100.0,
        0.21, 4.0e-4, 300.0,
        0.18, 5.0e-4,
    )


# ===================================================================
# POLYNOMIAL
# ===================================================================


class TestPolynomialMaterial:
    """Exact integral mean of polynomial conductivity."""

    @pytest.mark.parametrize("t1, t2", [(0.0, 200.0), (650.0, 75.0), (-40.0, 10.0)])
    def test_constant_conductivity(self, t1: float, t2: float) -> None:
        """A single coefficient k0 gives k0 for any interval."""
        mat = PolynomialMaterial((0.3,))
        assert mat.conductivity_avg(t1, t2) == pytest.approx(0.3, rel=1e-14)

    def test_linear_mean_is_midpoint_value(self) -> None:
        """For linear k(T) the mean equals k at the interval midpoint."""
        mat = PolynomialMaterial((0.3, 1.0e-4))
        assert mat.conductivity_avg(100.0, 500.0) == pytest.approx(0.33, rel=1e-12)

    def test_quadratic_exact_integral(self) -> None:
        """k = 1 + 3T² over [0, 2] has mean 1 + 3·(4/3) = 5."""
        mat = PolynomialMaterial((1.0, 0.0, 3.0))
        assert mat.conductivity_avg(0.0, 2.0) == pytest.approx(5.0, rel=1e-12)

    def test_pointwise_conductivity(self) -> None:
        mat = PolynomialMaterial((1.0, 2.0, 3.0))
        assert mat.conductivity(2.0) == pytest.approx(17.0)

    def test_empty_coefficients_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            PolynomialMaterial(())

    def test_non_finite_coefficient_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            PolynomialMaterial((0.3, math.nan))

    def test_coefficients_normalized_to_floats(self) -> None:
        mat = PolynomialMaterial([1, 2])
        assert mat.coefficients == (1.0, 2.0)
        assert mat.parameters() == {"coefficients": [1.0, 2.0]}


# ===================================================================
# EXPONENTIAL
# ===================================================================


class TestExponentialMaterial:
    """Exact integral mean of ln k = a + b·T."""

    def test_closed_form_mean(self) -> None:
        """a=0, b=0.01 over [0, 100]: (e − 1)/1."""
        mat = ExponentialMaterial(a=0.0, b=0.01)
        assert mat.conductivity_avg(0.0, 100.0) == pytest.approx(math.e - 1.0, rel=1e-12)

    def test_mean_lies_between_end_values(self) -> None:
        mat = ExponentialMaterial(a=-1.6, b=1.8e-3)
        k_avg = mat.conductivity_avg(80.0, 600.0)
        assert mat.conductivity(80.0) < k_avg < mat.conductivity(600.0)

    def test_zero_slope_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            ExponentialMaterial(a=-1.0, b=0.0)

    def test_invalid_input_is_value_error(self) -> None:
        """Callers catching ValueError also see invalid-input failures."""
        with pytest.raises(ValueError):
            ExponentialMaterial(a=-1.0, b=0.0)


# ===================================================================
# PIECEWISE LINEAR
# ===================================================================


class TestPiecewiseLinearMaterial:
    """Trapezoidal mean of a three-segment linear law."""

    def test_segment_selection(self, fiberglass: PiecewiseLinearMaterial) -> None:
        assert fiberglass.conductivity(50.0) == pytest.approx(0.22 + 3.0e-4 * 50.0)
        assert fiberglass.conductivity(100.0) == pytest.approx(0.22 + 3.0e-4 * 100.0)
        assert fiberglass.conductivity(200.0) == pytest.approx(0.21 + 4.0e-4 * 200.0)
        assert fiberglass.conductivity(400.0) == pytest.approx(0.18 + 5.0e-4 * 400.0)

    def test_exact_within_one_segment(self, fiberglass: PiecewiseLinearMaterial) -> None:
        """Trapezoidal rule is exact for a linear integrand."""
        expected = 0.22 + 3.0e-4 * 40.0
        assert fiberglass.conductivity_avg(0.0, 80.0) == pytest.approx(expected, rel=1e-12)

    def test_across_breakpoint_close_to_exact(
        self, fiberglass: PiecewiseLinearMaterial
    ) -> None:
        """∫0..200 k dT = 23.5 + 27.0, mean 0.2525."""
        assert fiberglass.conductivity_avg(0.0, 200.0) == pytest.approx(0.2525, rel=1e-4)

    def test_quadrature_points_respected(self) -> None:
        coarse = PiecewiseLinearMaterial(
            1.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0, quadrature_points=2
        )
        # Two samples: trapezoid of k(-1)=1 and k(1)=1 over [-1, 1].
        assert coarse.conductivity_avg(-1.0, 1.0) == pytest.approx(1.0)

    def test_breakpoints_out_of_order_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            PiecewiseLinearMaterial(0.2, 0.0, 300.0, 0.2, 0.0, 100.0, 0.2, 0.0)

    def test_too_few_quadrature_points_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            PiecewiseLinearMaterial(
                0.2, 0.0, 0.0, 0.2, 0.0, 1.0, 0.2, 0.0, quadrature_points=1
            )


# ===================================================================
# CONTRACT
# ===================================================================


class TestConductivityContract:
    """Properties shared by every material model."""

    @pytest.mark.parametrize(
        "material",
        [
            PolynomialMaterial((0.3, 1.0e-4, 2.0e-7)),
            ExponentialMaterial(a=-1.6, b=1.8e-3),
            PiecewiseLinearMaterial(0.22, 3.0e-4, 100.0, 0.21, 4.0e-4, 300.0, 0.18, 5.0e-4),
        ],
    )
    def test_argument_order_irrelevant(self, material) -> None:
        assert material.conductivity_avg(75.0, 450.0) == pytest.approx(
            material.conductivity_avg(450.0, 75.0), rel=1e-12
        )

    @pytest.mark.parametrize(
        "material",
        [
            PolynomialMaterial((0.3, 1.0e-4)),
            ExponentialMaterial(a=-1.6, b=1.8e-3),
            PiecewiseLinearMaterial(0.22, 3.0e-4, 100.0, 0.21, 4.0e-4, 300.0, 0.18, 5.0e-4),
        ],
    )
    def test_equal_temperatures_give_pointwise_value(self, material) -> None:
        assert material.conductivity_avg(250.0, 250.0) == pytest.approx(
            material.conductivity(250.0)
        )

    def test_materials_are_immutable(self) -> None:
        mat = PolynomialMaterial((0.3,))
        with pytest.raises(AttributeError):
            mat.coefficients = (0.5,)

    def test_conductivity_profile(self) -> None:
        mat = PolynomialMaterial((0.3, 1.0e-4))
        temps = np.array([0.0, 100.0, 200.0])
        np.testing.assert_allclose(
            compute_conductivity_profile(mat, temps), [0.3, 0.31, 0.32], rtol=1e-12
        )
