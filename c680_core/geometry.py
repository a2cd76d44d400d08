"""Insulation layer stack and derived cylindrical diameters.

Layers are ordered from the hot (service) side outward. For cylindrical
systems the diameters grow outward from the pipe:

    ID[0] = pipe OD,  OD[i] = ID[i] + 2·thickness[i],  ID[i+1] = OD[i]

For flat systems ID[0] = 0 and the diameters are bookkeeping only.
All lengths in inches.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from c680_core.errors import InvalidInputError
from c680_core.materials import Material

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Layer:
    """One insulation layer.

    Attributes
    ----------
    thickness : float
        Layer thickness [in]. Must be positive.
    material : Material
        Conductivity model, possibly shared with other layers.
    """

    thickness: float
    material: Material


@dataclass(frozen=True, eq=False)
class LayerStack:
    """Validated, ordered layers plus their geometry.

    Attributes
    ----------
    layers : tuple[Layer, ...]
        Layers from service side outward.
    is_cylinder : bool
        True for pipe insulation.
    pipe_od : float
        Pipe outer diameter [in]; 0.0 for flat geometry.
    thickness : np.ndarray
        Layer thicknesses [in]. Shape: (N,).
    inner_diameter : np.ndarray
        ID of each layer [in]. Shape: (N,).
    outer_diameter : np.ndarray
        OD of each layer [in]. Shape: (N,).
    """

    layers: tuple[Layer, ...]
    is_cylinder: bool
    pipe_od: float
    thickness: np.ndarray
    inner_diameter: np.ndarray
    outer_diameter: np.ndarray

    def __len__(self) -> int:
        return len(self.layers)

    @property
    def total_thickness(self) -> float:
        """Sum of layer thicknesses [in]."""
        return float(self.thickness.sum())

    @property
    def outermost_diameter(self) -> float:
        """OD of the last layer [in]."""
        return float(self.outer_diameter[-1])

    def initial_temperatures(self, t_service: float, t_ambient: float) -> np.ndarray:
        """Linear initial guess of interface temperatures.

        The total drop is distributed in proportion to cumulative
        thickness, so T[0] = service and T[N] = ambient.

        Returns
        -------
        np.ndarray
            Interface temperatures [°F]. Shape: (N+1,).
        """
        n = len(self.layers)
        T = np.empty(n + 1, dtype=np.float64)
        T[0] = t_service
        t_delta = t_service - t_ambient
        total = self.total_thickness
        for i in range(1, n + 1):
            T[i] = T[i - 1] - self.thickness[i - 1] / total * t_delta
        return T


def build_layer_stack(
    layers: Sequence[Layer],
    is_cylinder: bool,
    pipe_od: float = 0.0,
) -> LayerStack:
    """Validate layers and derive per-layer diameters.

    Parameters
    ----------
    layers : sequence of Layer
        Layers from service side outward. Must be non-empty.
    is_cylinder : bool
        Whether the system is pipe insulation.
    pipe_od : float
        Pipe outer diameter [in]. Required (> 0) when ``is_cylinder``;
        ignored otherwise.

    Returns
    -------
    LayerStack
        Stack with ID/OD arrays strictly increasing outward.

    Raises
    ------
    InvalidInputError
        If the stack is empty, a thickness is not positive and finite,
        a layer has no material, or the pipe diameter is invalid.
    """
    layers = tuple(layers)
    if not layers:
        raise InvalidInputError("Layer stack must contain at least one layer.")

    for i, layer in enumerate(layers):
        if not isinstance(layer.material, Material):
            raise InvalidInputError(f"Layer {i} has no conductivity model: {layer.material!r}")
        if not (math.isfinite(layer.thickness) and layer.thickness > 0.0):
            raise InvalidInputError(
                f"Layer {i} thickness must be positive, got {layer.thickness}"
            )

    if is_cylinder:
        if not (math.isfinite(pipe_od) and pipe_od > 0.0):
            raise InvalidInputError(f"Pipe outer diameter must be positive, got {pipe_od}")
    else:
        pipe_od = 0.0

    n = len(layers)
    thickness = np.array([layer.thickness for layer in layers], dtype=np.float64)
    ID = np.empty(n, dtype=np.float64)
    OD = np.empty(n, dtype=np.float64)
    ID[0] = pipe_od
    for i in range(n):
        if i > 0:
            ID[i] = OD[i - 1]
        OD[i] = ID[i] + 2.0 * thickness[i]

    logger.debug(
        "Layer stack built: %d layers, cylinder=%s, total thickness=%.3f in, OD=%.3f in",
        n,
        is_cylinder,
        thickness.sum(),
        OD[-1],
    )

    return LayerStack(
        layers=layers,
        is_cylinder=is_cylinder,
        pipe_od=float(pipe_od),
        thickness=thickness,
        inner_diameter=ID,
        outer_diameter=OD,
    )
