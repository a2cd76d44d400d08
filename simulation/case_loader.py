"""Insulation case files.

A case file is a YAML description of one insulated system: boundary
temperatures, geometry, a catalogue of named materials, the layer stack
referencing those materials, and the external surface.

Example
-------
::

    name: steam_header
    geometry: cylinder          # or: flat
    pipe_od_in: 4.5
    t_service_F: 600.0
    t_ambient_F: 75.0
    materials:
      calsil:
        type: polynomial
        coefficients: [0.3, 1.0e-4]
    layers:
      - {material: calsil, thickness_in: 2.0}
    surface:
      mode: correlation         # or: fixed (with value)
      wind_speed_mph: 5.0
      emissivity: 0.9
      orientation: horizontal
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from c680_core.constants import HeatBalanceConfig, default_config
from c680_core.geometry import Layer
from c680_core.materials import (
    ExponentialMaterial,
    Material,
    PiecewiseLinearMaterial,
    PolynomialMaterial,
)
from heat_solver.surface import (
    CorrelationSurface,
    ExternalSurface,
    FixedSurface,
    FlatOrientation,
    PipeOrientation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsulationCase:
    """One insulated system ready to solve.

    Attributes
    ----------
    name : str
        Case identifier (used for output file names).
    t_service : float
        Service temperature [°F].
    t_ambient : float
        Ambient temperature [°F].
    layers : tuple[Layer, ...]
        Layers from the service side outward.
    surface : ExternalSurface
        External surface specification.
    is_cylinder : bool
        Pipe insulation when True.
    pipe_od : float
        Pipe outer diameter [in]; 0.0 for flat.
    """

    name: str
    t_service: float
    t_ambient: float
    layers: tuple[Layer, ...]
    surface: ExternalSurface
    is_cylinder: bool = False
    pipe_od: float = 0.0


def load_case(
    case_path: str | Path,
    config: HeatBalanceConfig | None = None,
) -> InsulationCase:
    """Load an insulation case from a YAML file.

    Parameters
    ----------
    case_path : str or Path
        Path to the case file.
    config : HeatBalanceConfig, optional
        Supplies correlation constants and quadrature settings.

    Returns
    -------
    InsulationCase
        Parsed case. Physical validation happens when it is solved.

    Raises
    ------
    FileNotFoundError
        If the case file does not exist.
    ValueError
        If the file is structurally invalid (missing keys, unknown geometry,
        material type, surface mode or orientation, or an undefined
        material reference).
    """
    case_path = Path(case_path)
    if not case_path.exists():
        raise FileNotFoundError(f"Case file not found: {case_path}")

    with open(case_path, "r", encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    case = parse_case(raw, config=config, default_name=case_path.stem)
    logger.info(
        "Loaded case '%s' from %s: %s, %d layers",
        case.name,
        case_path,
        "cylinder" if case.is_cylinder else "flat",
        len(case.layers),
    )
    return case


def parse_case(
    raw: dict[str, Any],
    config: HeatBalanceConfig | None = None,
    default_name: str = "case",
) -> InsulationCase:
    """Build an ``InsulationCase`` from an already-parsed mapping."""
    if config is None:
        config = default_config()

    geometry = str(raw.get("geometry", "flat")).lower()
    if geometry not in ("flat", "cylinder"):
        raise ValueError(f"Unknown geometry '{geometry}' (expected 'flat' or 'cylinder')")
    is_cylinder = geometry == "cylinder"

    try:
        t_service = float(raw["t_service_F"])
        t_ambient = float(raw["t_ambient_F"])
    except KeyError as exc:
        raise ValueError(f"Case is missing required key {exc}") from exc

    pipe_od = float(raw.get("pipe_od_in", 0.0)) if is_cylinder else 0.0

    materials = {
        str(name): _parse_material(str(name), spec, config)
        for name, spec in (raw.get("materials") or {}).items()
    }

    layers = []
    for i, entry in enumerate(raw.get("layers") or []):
        try:
            ref = str(entry["material"])
            thickness = float(entry["thickness_in"])
        except KeyError as exc:
            raise ValueError(f"Layer {i} is missing required key {exc}") from exc
        if ref not in materials:
            raise ValueError(f"Layer {i} references undefined material '{ref}'")
        layers.append(Layer(thickness=thickness, material=materials[ref]))

    surface = _parse_surface(raw.get("surface") or {}, is_cylinder, config)

    return InsulationCase(
        name=str(raw.get("name", default_name)),
        t_service=t_service,
        t_ambient=t_ambient,
        layers=tuple(layers),
        surface=surface,
        is_cylinder=is_cylinder,
        pipe_od=pipe_od,
    )


def _parse_material(name: str, spec: dict[str, Any], config: HeatBalanceConfig) -> Material:
    try:
        return _build_material(name, spec, config)
    except KeyError as exc:
        raise ValueError(f"Material '{name}' is missing required key {exc}") from exc


def _build_material(name: str, spec: dict[str, Any], config: HeatBalanceConfig) -> Material:
    kind = str(spec.get("type", "")).lower()
    if kind == "polynomial":
        return PolynomialMaterial(tuple(float(c) for c in spec["coefficients"]))
    if kind == "exponential":
        return ExponentialMaterial(a=float(spec["a"]), b=float(spec["b"]))
    if kind == "piecewise_linear":
        (a1, b1, tl), (a2, b2, tu), (a3, b3) = spec["segments"]
        return PiecewiseLinearMaterial(
            float(a1), float(b1), float(tl),
            float(a2), float(b2), float(tu),
            float(a3), float(b3),
            quadrature_points=config.materials.piecewise_quadrature_points,
        )
    raise ValueError(f"Material '{name}' has unknown type '{kind}'")


def _parse_surface(
    spec: dict[str, Any],
    is_cylinder: bool,
    config: HeatBalanceConfig,
) -> ExternalSurface:
    mode = str(spec.get("mode", "fixed")).lower()
    if mode == "fixed":
        if "value" not in spec:
            raise ValueError("Fixed surface needs a 'value' (surface coefficient)")
        return FixedSurface(float(spec["value"]))
    if mode != "correlation":
        raise ValueError(f"Unknown surface mode '{mode}' (expected 'fixed' or 'correlation')")

    enum = PipeOrientation if is_cylinder else FlatOrientation
    orient = spec.get("orientation")
    try:
        if isinstance(orient, int):
            orientation = enum(orient)
        else:
            orientation = enum[str(orient).upper()]
    except (KeyError, ValueError) as exc:
        valid = ", ".join(m.name.lower() for m in enum)
        raise ValueError(
            f"Unknown {enum.__name__} '{orient}' (expected one of: {valid})"
        ) from exc

    if "emissivity" not in spec:
        raise ValueError("Correlation surface needs an 'emissivity'")

    return CorrelationSurface(
        wind_speed=float(spec.get("wind_speed_mph", 0.0)),
        emissivity=float(spec["emissivity"]),
        orientation=orientation,
        constants=config.correlation,
    )
