"""Steady-state heat balance through multi-layer insulation (ASTM C-680).

Solves for the heat flux Q and interface temperatures T of a series
resistance network whose resistances depend on the temperatures:

    R_i = t_i / k̄_i                                   (flat)
    R_i = (OD_N / 2) · ln(OD_i / ID_i) / k̄_i          (cylinder, outer-area basis)
    k̄_i = k̄(T_i, T_{i+1})                             (mean conductivity)

    R_sum = 1/H + Σ R_i,    Q = (T_service − T_amb) / R_sum

Interface temperatures are then swept outward,

    T_{i+1} = T_i − Q · R_i

and written in place, so every layer sees the temperatures already
updated on the same pass (Gauss-Seidel). When H comes from the surface
correlation it is recomputed from the current outer temperature at the
start of every pass. Iteration stops when Σ|ΔT_{i+1}| over one pass drops
below the configured tolerance.

For cylinders the converged flux is reported per foot of pipe:

    Q_linear = Q · π · OD_N / 12         [BTU/(hr·ft)]

References
----------
- ASTM C680-19, Sections 6-8.
- Incropera, F.P., et al. (2007). Fundamentals of Heat and Mass Transfer,
  6th ed., Ch. 3 (thermal resistance networks).
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
from numba import njit

from c680_core.constants import HeatBalanceConfig, default_config
from c680_core.errors import ConvergenceError, InvalidInputError, SolveTimeoutError
from c680_core.geometry import Layer, LayerStack, build_layer_stack
from c680_core.materials import PiecewiseLinearMaterial, compute_conductivity_profile
from heat_solver.surface import CorrelationSurface, ExternalSurface

logger = logging.getLogger(__name__)

# Samples used to check that each material stays positive over the
# service-to-ambient range before iterating.
_VALIDATION_SAMPLES = 11


# ===================================================================
# RESULT CONTAINER
# ===================================================================


@dataclass
class HeatBalanceResult:
    """Converged heat-balance solution.

    Attributes
    ----------
    heat_flux : float
        Total heat flux. BTU/(hr·ft²) for flat, BTU/(hr·ft) for cylinder.
    temperatures : np.ndarray
        Interface temperatures [°F], service side first. Shape: (N+1,).
    conductivities : np.ndarray
        Mean layer conductivities [BTU·in/(hr·ft²·°F)]. Shape: (N,).
    resistances : np.ndarray
        Layer resistances [hr·ft²·°F/BTU]. Shape: (N,).
    surface_coefficient : float
        Final surface coefficient H [BTU/(hr·ft²·°F)].
    total_resistance : float
        1/H + Σ R_i [hr·ft²·°F/BTU].
    iterations : int
        Passes performed, including the converged one.
    residual : float
        Σ|ΔT| of the last pass [°F].
    t_service : float
        Service temperature [°F].
    t_ambient : float
        Ambient temperature [°F].
    stack : LayerStack
        Layers and derived diameters.
    surface : ExternalSurface
        Surface specification used.
    """

    heat_flux: float
    temperatures: np.ndarray
    conductivities: np.ndarray
    resistances: np.ndarray
    surface_coefficient: float
    total_resistance: float
    iterations: int
    residual: float
    t_service: float
    t_ambient: float
    stack: LayerStack
    surface: ExternalSurface

    @property
    def is_cylinder(self) -> bool:
        return self.stack.is_cylinder

    @property
    def surface_temperature(self) -> float:
        """Outer insulation surface temperature [°F]."""
        return float(self.temperatures[-1])

    def layer_table(self) -> list[dict[str, float]]:
        """Per-layer rows for a report sink.

        Returns
        -------
        list[dict]
            One dict per layer with keys ``index``, ``thickness``,
            ``conductivity``, ``resistance``, ``inside_temperature``,
            ``outside_temperature``.
        """
        rows = []
        for i, layer in enumerate(self.stack.layers):
            rows.append(
                {
                    "index": i,
                    "thickness": float(layer.thickness),
                    "conductivity": float(self.conductivities[i]),
                    "resistance": float(self.resistances[i]),
                    "inside_temperature": float(self.temperatures[i]),
                    "outside_temperature": float(self.temperatures[i + 1]),
                }
            )
        return rows

    def summary(self) -> dict[str, Any]:
        """Echoed inputs and headline outputs for a report sink."""
        out: dict[str, Any] = {
            "geometry": "cylinder" if self.is_cylinder else "flat",
            "t_service_F": self.t_service,
            "t_ambient_F": self.t_ambient,
            "surface": self.surface.parameters(),
            "surface_coefficient": self.surface_coefficient,
            "heat_flux": self.heat_flux,
            "heat_flux_units": "BTU/hr.ft" if self.is_cylinder else "BTU/hr.ft2",
            "surface_temperature_F": self.surface_temperature,
            "total_resistance": self.total_resistance,
            "iterations": self.iterations,
            "residual": self.residual,
            "layers": self.layer_table(),
        }
        if self.is_cylinder:
            out["pipe_od_in"] = self.stack.pipe_od
        return out


# ===================================================================
# GAUSS-SEIDEL SWEEP (Numba JIT)
# ===================================================================


@njit(cache=True)
def _gauss_seidel_update(T: np.ndarray, Q: float, R: np.ndarray) -> float:
    """Sweep interface temperatures outward, in place.

    T[i+1] is overwritten before T[i+2] is computed, so each layer uses
    the value produced earlier on the same sweep.

    Parameters
    ----------
    T : np.ndarray
        Interface temperatures [°F]. Shape: (N+1,). Modified in-place.
    Q : float
        Heat flux on the resistance basis [BTU/(hr·ft²)].
    R : np.ndarray
        Layer resistances. Shape: (N,).

    Returns
    -------
    float
        Σ|T_new − T_old| over interfaces 1..N [°F].
    """
    tol = 0.0
    for i in range(len(R)):
        t_next = T[i] - Q * R[i]
        tol += abs(T[i + 1] - t_next)
        T[i + 1] = t_next
    return tol


# ===================================================================
# HIGH-LEVEL SOLVER CLASS
# ===================================================================


class HeatBalanceSolver:
    """Fixed-point heat-balance solver for flat and cylindrical insulation.

    The solver keeps no state between calls; every ``solve`` allocates its
    own working arrays, so one instance may be shared.

    Parameters
    ----------
    config : HeatBalanceConfig, optional
        Solver and correlation settings. Defaults to the published method.

    Notes
    -----
    Correlation constants and the piecewise quadrature count belong to the
    surface and material objects passed to ``solve``; the solver does not
    rebuild them from ``config``. A mismatch with ``config`` is logged as a
    warning and the objects' own settings are used.
    """

    def __init__(self, config: HeatBalanceConfig | None = None) -> None:
        self._config = config if config is not None else default_config()
        self._max_iter = self._config.solver.max_iterations
        self._tol = self._config.solver.tolerance_F
        self._time_limit = self._config.solver.time_limit_s
        self._log_interval = self._config.solver.log_interval

        logger.debug(
            "HeatBalanceSolver initialized: max_iter=%d, tol=%.1e F, time_limit=%s",
            self._max_iter,
            self._tol,
            self._time_limit,
        )

    @property
    def config(self) -> HeatBalanceConfig:
        return self._config

    def solve(
        self,
        t_service: float,
        layers: Sequence[Layer],
        t_ambient: float,
        surface: ExternalSurface,
        is_cylinder: bool = False,
        pipe_od: float = 0.0,
    ) -> HeatBalanceResult:
        """Solve the heat balance.

        Parameters
        ----------
        t_service : float
            Service (hot/cold face) temperature [°F].
        layers : sequence of Layer
            Insulation layers from the service side outward.
        t_ambient : float
            Ambient air temperature [°F].
        surface : ExternalSurface
            Fixed or correlated external surface coefficient.
        is_cylinder : bool
            Pipe insulation when True.
        pipe_od : float
            Pipe outer diameter [in]; required for cylinders.

        Returns
        -------
        HeatBalanceResult
            Converged flux, temperatures, conductivities and resistances.

        Raises
        ------
        InvalidInputError
            If inputs fail validation. Raised before iterating.
        ConvergenceError
            If the iteration cap is reached or the iteration produces a
            non-physical state.
        SolveTimeoutError
            If the configured wall-clock limit is exceeded.
        """
        stack = build_layer_stack(layers, is_cylinder, pipe_od)
        self._validate_inputs(t_service, t_ambient, stack, surface)

        n = len(stack)
        T = stack.initial_temperatures(t_service, t_ambient)
        K = np.zeros(n, dtype=np.float64)
        R = np.zeros(n, dtype=np.float64)

        thickness = stack.thickness
        ID = stack.inner_diameter
        OD = stack.outer_diameter
        od_last = stack.outermost_diameter
        # Cylindrical shape factor per layer, referenced to the outer surface.
        shape = od_last / 2.0 * np.log(OD / ID) if is_cylinder else thickness

        Q = 0.0
        H = 0.0
        r_sum = 0.0
        tol = math.inf
        iteration = 0
        converged = False
        start = time.perf_counter()

        while iteration < self._max_iter:
            iteration += 1

            # --- Surface coefficient from the current outer temperature ---
            try:
                H = surface.coefficient(od_last, T[n], t_ambient, is_cylinder)
            except OverflowError as exc:
                raise ConvergenceError(
                    f"Surface coefficient overflowed at Ts={T[n]:.4g} F",
                    iterations=iteration,
                    residual=tol,
                ) from exc
            r_sum = 1.0 / H

            # --- Layer conductivities and resistances ---
            for i in range(n):
                try:
                    K[i] = stack.layers[i].material.conductivity_avg(T[i], T[i + 1])
                except OverflowError as exc:
                    raise ConvergenceError(
                        f"Layer {i} conductivity overflowed "
                        f"between {T[i]:.4g} F and {T[i + 1]:.4g} F",
                        iterations=iteration,
                        residual=tol,
                    ) from exc
                if not (math.isfinite(K[i]) and K[i] > 0.0):
                    raise ConvergenceError(
                        f"Layer {i} conductivity left the physical domain "
                        f"(k={K[i]!r} between {T[i]:.4g} F and {T[i + 1]:.4g} F)",
                        iterations=iteration,
                        residual=tol,
                    )
                R[i] = shape[i] / K[i]
                if not math.isfinite(R[i]):
                    raise ConvergenceError(
                        f"Layer {i} resistance is not finite (k={K[i]!r})",
                        iterations=iteration,
                        residual=tol,
                    )
                r_sum += R[i]

            # --- Heat flux ---
            Q = (t_service - t_ambient) / r_sum

            # --- Gauss-Seidel temperature sweep ---
            tol = float(_gauss_seidel_update(T, Q, R))
            if not math.isfinite(tol):
                raise ConvergenceError(
                    "Temperature profile became non-finite",
                    iterations=iteration,
                    residual=tol,
                )

            if iteration % self._log_interval == 0:
                logger.debug(
                    "Pass %d: Q=%.6g, H=%.4f, residual=%.3e F", iteration, Q, H, tol
                )

            if tol < self._tol:
                converged = True
                break

            if self._time_limit is not None and time.perf_counter() - start > self._time_limit:
                raise SolveTimeoutError(
                    f"Heat balance exceeded {self._time_limit:.3g} s after {iteration} passes",
                    iterations=iteration,
                    residual=tol,
                )

        if not converged:
            raise ConvergenceError(
                f"Heat balance did not converge in {self._max_iter} passes "
                f"(residual={tol:.3e} F)",
                iterations=iteration,
                residual=tol,
            )

        if is_cylinder:
            Q = Q * math.pi * od_last / 12.0

        logger.info(
            "Heat balance converged: %s, Q=%.4f, Ts=%.2f F, H=%.3f, %d passes",
            "cylinder" if is_cylinder else "flat",
            Q,
            T[n],
            H,
            iteration,
        )

        return HeatBalanceResult(
            heat_flux=float(Q),
            temperatures=T,
            conductivities=K,
            resistances=R,
            surface_coefficient=float(H),
            total_resistance=float(r_sum),
            iterations=iteration,
            residual=tol,
            t_service=float(t_service),
            t_ambient=float(t_ambient),
            stack=stack,
            surface=surface,
        )

    def _validate_inputs(
        self,
        t_service: float,
        t_ambient: float,
        stack: LayerStack,
        surface: ExternalSurface,
    ) -> None:
        """Check boundary temperatures, surface and materials.

        Raises
        ------
        InvalidInputError
            If any precondition fails.
        """
        absolute_zero = -self._config.correlation.rankine_offset_F
        for name, value in (("service", t_service), ("ambient", t_ambient)):
            if not math.isfinite(value):
                raise InvalidInputError(f"{name} temperature must be finite, got {value}")
            if value <= absolute_zero:
                raise InvalidInputError(
                    f"{name} temperature {value} F is at or below absolute zero"
                )
        if t_service == t_ambient:
            raise InvalidInputError(
                f"Service and ambient temperatures are equal ({t_service} F); no heat flows"
            )

        surface.validate(stack.is_cylinder)
        if (
            isinstance(surface, CorrelationSurface)
            and surface.constants != self._config.correlation
        ):
            logger.warning(
                "Surface correlation constants differ from the solver configuration; "
                "using the constants carried by the surface."
            )

        t_range = np.linspace(
            min(t_service, t_ambient), max(t_service, t_ambient), _VALIDATION_SAMPLES
        )
        seen: set[int] = set()
        for i, layer in enumerate(stack.layers):
            material = layer.material
            if id(material) in seen:
                continue
            seen.add(id(material))

            quad = self._config.materials.piecewise_quadrature_points
            if isinstance(material, PiecewiseLinearMaterial) and material.quadrature_points != quad:
                logger.warning(
                    "Layer %d material uses %d quadrature points, configuration says %d; "
                    "using the material's own setting.",
                    i,
                    material.quadrature_points,
                    quad,
                )

            try:
                k_profile = compute_conductivity_profile(material, t_range)
                k_avg = material.conductivity_avg(t_service, t_ambient)
            except OverflowError as exc:
                raise InvalidInputError(
                    f"Layer {i} material ({material.kind}) conductivity overflows "
                    f"between {t_range[0]} F and {t_range[-1]} F"
                ) from exc
            if not (np.all(np.isfinite(k_profile)) and np.all(k_profile > 0.0)):
                raise InvalidInputError(
                    f"Layer {i} material ({material.kind}) has non-positive conductivity "
                    f"between {t_range[0]} F and {t_range[-1]} F"
                )
            if not (math.isfinite(k_avg) and k_avg > 0.0):
                raise InvalidInputError(
                    f"Layer {i} material ({material.kind}) has non-positive mean conductivity "
                    f"{k_avg!r}"
                )

        logger.debug("Heat balance inputs validated: %d layers.", len(stack))


# ===================================================================
# ENTRY POINTS
# ===================================================================


def solve_flat(
    t_service: float,
    layers: Sequence[Layer],
    t_ambient: float,
    surface: ExternalSurface,
    config: HeatBalanceConfig | None = None,
) -> HeatBalanceResult:
    """Heat balance of flat insulation (heat flux per ft² of surface)."""
    return HeatBalanceSolver(config).solve(t_service, layers, t_ambient, surface)


def solve_cylinder(
    t_service: float,
    layers: Sequence[Layer],
    t_ambient: float,
    surface: ExternalSurface,
    pipe_od: float,
    config: HeatBalanceConfig | None = None,
) -> HeatBalanceResult:
    """Heat balance of pipe insulation (heat flux per ft of pipe)."""
    return HeatBalanceSolver(config).solve(
        t_service, layers, t_ambient, surface, is_cylinder=True, pipe_od=pipe_od
    )
