"""Solver settings, correlation constants, and configuration loader.

Every empirical constant of the ASTM C-680 surface correlation and every
iteration control of the heat-balance solver is carried by a typed, frozen
configuration object. Defaults reproduce the published method; a YAML file
may override any of them.

References
----------
- ASTM C680, "Standard Practice for Estimate of the Heat Gain or Loss and
  the Surface Temperatures of Insulated Flat, Cylindrical, and Spherical
  Systems by Use of Computer Programs."
- Heilman, R.H. (1929). "Surface Heat Transmission." Trans. ASME, 51.
"""

from __future__ import annotations

import logging
import platform
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import numba
import numpy as np
import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default_config.yaml"

# ---------------------------------------------------------------------------
# Configuration Data Classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SolverConfig:
    """Heat-balance iteration settings.

    Attributes
    ----------
    max_iterations : int
        Maximum Gauss-Seidel passes before giving up.
    tolerance_F : float
        Convergence threshold on Σ|ΔT| over one pass [°F].
    time_limit_s : float or None
        Optional wall-clock limit per solve [s]. None disables it.
    log_interval : int
        Emit a DEBUG residual line every this many passes.
    """

    max_iterations: int = 2000
    tolerance_F: float = 1e-5
    time_limit_s: float | None = None
    log_interval: int = 100


@dataclass(frozen=True)
class MaterialConfig:
    """Numerical settings for conductivity averaging.

    Attributes
    ----------
    piecewise_quadrature_points : int
        Sample count of the trapezoidal rule used by piecewise-linear
        materials.
    """

    piecewise_quadrature_points: int = 100


def _default_pipe_coefficients() -> dict[str, float]:
    return {"vertical": 1.016, "horizontal": 1.235}


def _default_flat_coefficients() -> dict[str, float]:
    return {"vertical_surface": 1.394, "heat_flow_down": 0.89, "heat_flow_up": 1.79}


@dataclass(frozen=True)
class CorrelationConstants:
    """Empirical constants of the external surface coefficient correlation.

    H = coef · Dx^a · Tair^b · ΔT^c · √(1 + w·V) + ε·σ'·(Ta⁴ − Ts⁴)/(Ta − Ts)

    Attributes
    ----------
    rankine_offset_F : float
        Offset from °F to °R.
    radiation_constant : float
        Stefan-Boltzmann constant in BTU/(hr·ft²·°R⁴).
    min_delta_T_F : float
        Floor on |Tamb − Ts| inside the convective term [°F].
    flat_characteristic_length : float
        Characteristic length used for flat surfaces [in].
    max_characteristic_length : float
        Cap on the cylindrical characteristic length [in].
    diameter_length_factor : float
        Multiplier from outer diameter to characteristic length.
    length_exponent : float
        Exponent on the characteristic length.
    film_temperature_exponent : float
        Exponent on the absolute film temperature.
    delta_T_exponent : float
        Exponent on the surface-to-ambient temperature difference.
    wind_factor : float
        Wind-speed factor inside the square root [1/mph].
    coefficient_floor : float
        Value substituted when the combined coefficient comes out negative.
    pipe_coefficients : Mapping[str, float]
        Orientation coefficient by pipe orientation name. Stored as a
        read-only copy.
    flat_coefficients : Mapping[str, float]
        Orientation coefficient by flat-surface orientation name. Stored as
        a read-only copy.
    """

    rankine_offset_F: float = 459.69
    radiation_constant: float = 0.1713e-8
    min_delta_T_F: float = 1.0
    flat_characteristic_length: float = 24.0
    max_characteristic_length: float = 24.0
    diameter_length_factor: float = 12.0
    length_exponent: float = -0.2
    film_temperature_exponent: float = -0.181
    delta_T_exponent: float = 0.266
    wind_factor: float = 1.277
    coefficient_floor: float = 1.61
    pipe_coefficients: Mapping[str, float] = field(default_factory=_default_pipe_coefficients)
    flat_coefficients: Mapping[str, float] = field(default_factory=_default_flat_coefficients)

    def __post_init__(self) -> None:
        for name in ("pipe_coefficients", "flat_coefficients"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))


@dataclass(frozen=True)
class HeatBalanceConfig:
    """Top-level configuration.

    Attributes
    ----------
    solver : SolverConfig
        Iteration controls.
    materials : MaterialConfig
        Conductivity averaging settings.
    correlation : CorrelationConstants
        Surface correlation constants.
    """

    solver: SolverConfig = field(default_factory=SolverConfig)
    materials: MaterialConfig = field(default_factory=MaterialConfig)
    correlation: CorrelationConstants = field(default_factory=CorrelationConstants)


# ---------------------------------------------------------------------------
# Configuration Loader
# ---------------------------------------------------------------------------


def default_config() -> HeatBalanceConfig:
    """Return the built-in configuration of the published method."""
    return HeatBalanceConfig()


def load_config(config_path: str | Path = DEFAULT_CONFIG_PATH) -> HeatBalanceConfig:
    """Load and validate a heat-balance configuration from a YAML file.

    Sections and keys that are absent keep their built-in defaults.

    Parameters
    ----------
    config_path : str or Path
        Path to the YAML configuration file.

    Returns
    -------
    HeatBalanceConfig
        Fully populated, typed configuration object.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ValueError
        If values are physically invalid.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    logger.info("Loading configuration from: %s", config_path)

    defaults = default_config()

    # --- Parse solver settings ---
    slv = raw.get("solver") or {}
    limit = slv.get("time_limit_s", defaults.solver.time_limit_s)
    solver = SolverConfig(
        max_iterations=int(slv.get("max_iterations", defaults.solver.max_iterations)),
        tolerance_F=float(slv.get("tolerance_F", defaults.solver.tolerance_F)),
        time_limit_s=None if limit is None else float(limit),
        log_interval=int(slv.get("log_interval", defaults.solver.log_interval)),
    )

    # --- Parse material settings ---
    mat = raw.get("materials") or {}
    materials = MaterialConfig(
        piecewise_quadrature_points=int(
            mat.get("piecewise_quadrature_points", defaults.materials.piecewise_quadrature_points)
        ),
    )

    # --- Parse surface correlation constants ---
    cor = raw.get("surface_correlation") or {}
    d = defaults.correlation
    orient = cor.get("orientation_coefficients") or {}
    pipe = dict(d.pipe_coefficients)
    pipe.update({str(k): float(v) for k, v in (orient.get("pipe") or {}).items()})
    flat = dict(d.flat_coefficients)
    flat.update({str(k): float(v) for k, v in (orient.get("flat") or {}).items()})

    correlation = CorrelationConstants(
        rankine_offset_F=float(cor.get("rankine_offset_F", d.rankine_offset_F)),
        radiation_constant=float(cor.get("radiation_constant", d.radiation_constant)),
        min_delta_T_F=float(cor.get("min_delta_T_F", d.min_delta_T_F)),
        flat_characteristic_length=float(
            cor.get("flat_characteristic_length", d.flat_characteristic_length)
        ),
        max_characteristic_length=float(
            cor.get("max_characteristic_length", d.max_characteristic_length)
        ),
        diameter_length_factor=float(cor.get("diameter_length_factor", d.diameter_length_factor)),
        length_exponent=float(cor.get("length_exponent", d.length_exponent)),
        film_temperature_exponent=float(
            cor.get("film_temperature_exponent", d.film_temperature_exponent)
        ),
        delta_T_exponent=float(cor.get("delta_T_exponent", d.delta_T_exponent)),
        wind_factor=float(cor.get("wind_factor", d.wind_factor)),
        coefficient_floor=float(cor.get("coefficient_floor", d.coefficient_floor)),
        pipe_coefficients=pipe,
        flat_coefficients=flat,
    )

    config = HeatBalanceConfig(solver=solver, materials=materials, correlation=correlation)

    _validate_config(config)
    logger.info(
        "Configuration loaded successfully: max_iterations=%d, tolerance=%.1e F",
        config.solver.max_iterations,
        config.solver.tolerance_F,
    )

    return config


def _validate_config(config: HeatBalanceConfig) -> None:
    """Validate physical and numerical constraints on configuration values.

    Raises
    ------
    ValueError
        If any value is invalid.
    """
    if config.solver.max_iterations < 1:
        raise ValueError(
            f"max_iterations must be >= 1, got {config.solver.max_iterations}"
        )
    if config.solver.tolerance_F <= 0:
        raise ValueError("Convergence tolerance must be positive.")
    if config.solver.time_limit_s is not None and config.solver.time_limit_s <= 0:
        raise ValueError("Time limit must be positive when set.")
    if config.solver.log_interval < 1:
        raise ValueError("log_interval must be >= 1.")
    if config.materials.piecewise_quadrature_points < 2:
        raise ValueError("Piecewise quadrature needs at least 2 points.")

    cor = config.correlation
    if cor.radiation_constant <= 0:
        raise ValueError("Radiation constant must be positive.")
    if cor.min_delta_T_F <= 0:
        raise ValueError("Minimum correlation delta-T must be positive.")
    if cor.flat_characteristic_length <= 0 or cor.max_characteristic_length <= 0:
        raise ValueError("Characteristic lengths must be positive.")
    if cor.coefficient_floor <= 0:
        raise ValueError("Surface coefficient floor must be positive.")
    for name, value in {**cor.pipe_coefficients, **cor.flat_coefficients}.items():
        if value <= 0:
            raise ValueError(f"Orientation coefficient '{name}' must be positive, got {value}")

    logger.debug("Configuration validation passed.")


def log_platform_info() -> None:
    """Log platform and library version information for reproducibility."""
    logger.info("=" * 70)
    logger.info("PLATFORM INFORMATION (for reproducibility)")
    logger.info("=" * 70)
    logger.info("  Python:    %s", sys.version)
    logger.info("  Platform:  %s", platform.platform())
    logger.info("  NumPy:     %s", np.__version__)
    logger.info("  Numba:     %s", numba.__version__)
    logger.info("  Float64 eps: %e", np.finfo(np.float64).eps)
    logger.info("=" * 70)
