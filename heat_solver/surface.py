"""External surface heat-transfer coefficient.

The outer insulation surface loses heat to ambient through a combined
convective + radiative film coefficient H [BTU/(hr·ft²·°F)]. H is either
fixed by the user or computed from the ASTM C-680 correlation:

    Tair   = (Tamb + Ts)/2 + 459.69                       film temperature [°R]
    ΔT     = max(|Tamb − Ts|, 1)
    Hconv  = coef · Dx^-0.2 · Tair^-0.181 · ΔT^0.266 · √(1 + 1.277·V)
    Hrad   = ε · σ' · ((Tamb+459.69)⁴ − (Ts+459.69)⁴) / (Tamb − Ts)
    H      = Hconv + Hrad,   H := 1.61 if H < 0

where Dx is the characteristic length (pipe: 12·OD capped at 24; flat: 24)
and coef depends on orientation. The correlation is evaluated with the
current outer-surface temperature on every pass of the heat balance, so
H and the temperature profile converge together.

References
----------
- ASTM C680-19, Section 7 (surface resistance).
- Heilman, R.H. (1929). Trans. ASME, 51, 287-302.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Union

from c680_core.constants import CorrelationConstants
from c680_core.errors import InvalidInputError

logger = logging.getLogger(__name__)


class PipeOrientation(IntEnum):
    """Orientation of an insulated pipe."""

    VERTICAL = 1
    HORIZONTAL = 2


class FlatOrientation(IntEnum):
    """Orientation of an insulated flat surface."""

    VERTICAL_SURFACE = 1
    HEAT_FLOW_DOWN = 2
    HEAT_FLOW_UP = 3


Orientation = Union[PipeOrientation, FlatOrientation]


class ExternalSurface(ABC):
    """Capability interface for the external surface coefficient."""

    @abstractmethod
    def coefficient(
        self,
        diameter: float,
        surface_temp: float,
        ambient_temp: float,
        is_cylinder: bool,
    ) -> float:
        """Surface coefficient H for the current surface state."""

    @abstractmethod
    def validate(self, is_cylinder: bool) -> None:
        """Raise ``InvalidInputError`` if unusable for the given geometry."""

    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """Return the defining parameters as plain Python values."""


@dataclass(frozen=True)
class FixedSurface(ExternalSurface):
    """Caller-supplied constant surface coefficient.

    Parameters
    ----------
    value : float
        H [BTU/(hr·ft²·°F)]. Must be positive.
    """

    value: float

    def coefficient(
        self,
        diameter: float,
        surface_temp: float,
        ambient_temp: float,
        is_cylinder: bool,
    ) -> float:
        return self.value

    def validate(self, is_cylinder: bool) -> None:
        if not (math.isfinite(self.value) and self.value > 0.0):
            raise InvalidInputError(
                f"Fixed surface coefficient must be positive, got {self.value}"
            )

    def parameters(self) -> dict[str, Any]:
        return {"mode": "fixed", "value": self.value}


@dataclass(frozen=True)
class CorrelationSurface(ExternalSurface):
    """Surface coefficient from wind, emittance, and orientation.

    Parameters
    ----------
    wind_speed : float
        Air speed over the surface [mph]. Must be >= 0.
    emissivity : float
        Surface emittance [-], in [0, 1].
    orientation : PipeOrientation or FlatOrientation
        Must match the geometry being solved.
    constants : CorrelationConstants
        Empirical constants of the correlation.
    """

    wind_speed: float
    emissivity: float
    orientation: Orientation
    constants: CorrelationConstants = field(
        default_factory=CorrelationConstants, repr=False, compare=False
    )

    def validate(self, is_cylinder: bool) -> None:
        if not (math.isfinite(self.wind_speed) and self.wind_speed >= 0.0):
            raise InvalidInputError(f"Wind speed must be >= 0, got {self.wind_speed}")
        if not (0.0 <= self.emissivity <= 1.0):
            raise InvalidInputError(f"Emissivity must be in [0, 1], got {self.emissivity}")
        self.orientation_coefficient(is_cylinder)

    def orientation_coefficient(self, is_cylinder: bool) -> float:
        """Look up the convective coefficient for the orientation.

        Raises
        ------
        InvalidInputError
            If the orientation is not a member of the enumeration that
            belongs to the geometry.
        """
        if is_cylinder:
            if not isinstance(self.orientation, PipeOrientation):
                raise InvalidInputError(
                    f"Pipe insulation needs a PipeOrientation, got {self.orientation!r}"
                )
            table = self.constants.pipe_coefficients
        else:
            if not isinstance(self.orientation, FlatOrientation):
                raise InvalidInputError(
                    f"Flat insulation needs a FlatOrientation, got {self.orientation!r}"
                )
            table = self.constants.flat_coefficients

        key = self.orientation.name.lower()
        if key not in table:
            raise InvalidInputError(f"No orientation coefficient configured for '{key}'")
        return table[key]

    def characteristic_length(self, diameter: float, is_cylinder: bool) -> float:
        """Characteristic length Dx of the convective term."""
        c = self.constants
        if not is_cylinder:
            return c.flat_characteristic_length
        return min(diameter * c.diameter_length_factor, c.max_characteristic_length)

    def convective(
        self,
        diameter: float,
        surface_temp: float,
        ambient_temp: float,
        is_cylinder: bool,
    ) -> float:
        """Convective part Hconv of the surface coefficient."""
        c = self.constants
        t_air = (ambient_temp + surface_temp) / 2.0 + c.rankine_offset_F
        if t_air <= 0.0:
            raise InvalidInputError(
                f"Film temperature below absolute zero: Ts={surface_temp}, Tamb={ambient_temp}"
            )
        at_delt = max(abs(ambient_temp - surface_temp), c.min_delta_T_F)
        dx = self.characteristic_length(diameter, is_cylinder)

        return (
            self.orientation_coefficient(is_cylinder)
            * dx ** c.length_exponent
            * t_air ** c.film_temperature_exponent
            * at_delt ** c.delta_T_exponent
            * math.sqrt(1.0 + c.wind_factor * self.wind_speed)
        )

    def radiative(self, surface_temp: float, ambient_temp: float) -> float:
        """Linearized radiative part Hrad; zero when Ts == Tamb."""
        if ambient_temp == surface_temp:
            return 0.0
        c = self.constants
        ta = ambient_temp + c.rankine_offset_F
        ts = surface_temp + c.rankine_offset_F
        return (
            self.emissivity
            * c.radiation_constant
            * (ta**4 - ts**4)
            / (ambient_temp - surface_temp)
        )

    def resolve(
        self,
        diameter: float,
        surface_temp: float,
        ambient_temp: float,
        is_cylinder: bool,
    ) -> float:
        """Evaluate the full correlation H = Hconv + Hrad.

        Parameters
        ----------
        diameter : float
            Outermost insulation diameter [in]. Ignored for flat surfaces.
        surface_temp : float
            Current outer-surface temperature Ts [°F].
        ambient_temp : float
            Ambient air temperature Tamb [°F].
        is_cylinder : bool
            Geometry selector.

        Returns
        -------
        float
            Surface coefficient [BTU/(hr·ft²·°F)], floored when negative.
        """
        h = self.convective(diameter, surface_temp, ambient_temp, is_cylinder) + self.radiative(
            surface_temp, ambient_temp
        )
        if h < 0.0:
            h = self.constants.coefficient_floor
        return h

    def coefficient(
        self,
        diameter: float,
        surface_temp: float,
        ambient_temp: float,
        is_cylinder: bool,
    ) -> float:
        return self.resolve(diameter, surface_temp, ambient_temp, is_cylinder)

    def parameters(self) -> dict[str, Any]:
        return {
            "mode": "correlation",
            "wind_speed": self.wind_speed,
            "emissivity": self.emissivity,
            "orientation": self.orientation.name.lower(),
        }
