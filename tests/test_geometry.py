"""Tests for layer-stack bookkeeping."""

from __future__ import annotations

import numpy as np
import pytest

from c680_core.errors import InvalidInputError
from c680_core.geometry import Layer, build_layer_stack
from c680_core.materials import PolynomialMaterial


@pytest.fixture
def material() -> PolynomialMaterial:
    return PolynomialMaterial((0.3,))


class TestLayerStack:
    """Diameter derivation and initial temperature guess."""

    def test_cylindrical_diameters(self, material: PolynomialMaterial) -> None:
        """Pipe OD 2.0 with [0.5, 1.0, 1.5] → ID [2, 3, 5], OD [3, 5, 8]."""
        layers = [Layer(t, material) for t in (0.5, 1.0, 1.5)]
        stack = build_layer_stack(layers, is_cylinder=True, pipe_od=2.0)

        np.testing.assert_allclose(stack.inner_diameter, [2.0, 3.0, 5.0])
        np.testing.assert_allclose(stack.outer_diameter, [3.0, 5.0, 8.0])
        assert stack.outermost_diameter == pytest.approx(8.0)

    def test_diameters_strictly_increasing(self, material: PolynomialMaterial) -> None:
        layers = [Layer(t, material) for t in (0.25, 2.0, 0.1, 1.0)]
        stack = build_layer_stack(layers, is_cylinder=True, pipe_od=4.5)

        assert np.all(stack.outer_diameter > stack.inner_diameter)
        np.testing.assert_array_equal(stack.inner_diameter[1:], stack.outer_diameter[:-1])

    def test_flat_starts_at_zero_diameter(self, material: PolynomialMaterial) -> None:
        stack = build_layer_stack([Layer(1.0, material)], is_cylinder=False, pipe_od=6.0)
        assert stack.pipe_od == 0.0
        assert stack.inner_diameter[0] == 0.0
        assert not stack.is_cylinder

    def test_initial_temperatures_by_thickness_fraction(
        self, material: PolynomialMaterial
    ) -> None:
        """Drop of 200 F over [1, 3] in: 50 F across the first layer."""
        stack = build_layer_stack(
            [Layer(1.0, material), Layer(3.0, material)], is_cylinder=False
        )
        np.testing.assert_allclose(stack.initial_temperatures(200.0, 0.0), [200.0, 150.0, 0.0])

    def test_len_and_total_thickness(self, material: PolynomialMaterial) -> None:
        stack = build_layer_stack(
            [Layer(1.5, material), Layer(2.5, material)], is_cylinder=False
        )
        assert len(stack) == 2
        assert stack.total_thickness == pytest.approx(4.0)


class TestLayerStackValidation:
    """Invalid stacks are rejected before any solve."""

    def test_empty_stack(self) -> None:
        with pytest.raises(InvalidInputError):
            build_layer_stack([], is_cylinder=False)

    @pytest.mark.parametrize("thickness", [0.0, -1.0, float("nan")])
    def test_non_positive_thickness(self, material: PolynomialMaterial, thickness: float) -> None:
        with pytest.raises(InvalidInputError):
            build_layer_stack([Layer(thickness, material)], is_cylinder=False)

    @pytest.mark.parametrize("pipe_od", [0.0, -2.0])
    def test_cylinder_needs_pipe_diameter(
        self, material: PolynomialMaterial, pipe_od: float
    ) -> None:
        with pytest.raises(InvalidInputError):
            build_layer_stack([Layer(1.0, material)], is_cylinder=True, pipe_od=pipe_od)

    def test_missing_material(self) -> None:
        with pytest.raises(InvalidInputError):
            build_layer_stack([Layer(1.0, None)], is_cylinder=False)
