"""Case runner — solve insulation cases and persist their results.

Orchestrates:
1. Load each YAML case file
2. Solve its heat balance (flat or cylinder)
3. Optionally save the structured result
4. Return results keyed by case name
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable

from c680_core.constants import HeatBalanceConfig, default_config, log_platform_info
from heat_solver.heat_balance import HeatBalanceResult, HeatBalanceSolver
from simulation.case_loader import InsulationCase, load_case
from simulation.io_manager import save_result

logger = logging.getLogger(__name__)


def run_case(
    case: InsulationCase,
    config: HeatBalanceConfig | None = None,
) -> HeatBalanceResult:
    """Solve the heat balance of one case."""
    solver = HeatBalanceSolver(config)
    return solver.solve(
        case.t_service,
        case.layers,
        case.t_ambient,
        case.surface,
        is_cylinder=case.is_cylinder,
        pipe_od=case.pipe_od,
    )


class CaseRunner:
    """Batch runner over case files.

    Parameters
    ----------
    config : HeatBalanceConfig, optional
        Shared configuration for loading and solving every case.
    """

    def __init__(self, config: HeatBalanceConfig | None = None) -> None:
        self._config = config if config is not None else default_config()

    def run(
        self,
        case_paths: Iterable[str | Path],
        output_dir: str | Path | None = None,
    ) -> dict[str, HeatBalanceResult]:
        """Load, solve and optionally save each case.

        Parameters
        ----------
        case_paths : iterable of str or Path
            Case YAML files.
        output_dir : str or Path, optional
            If given, each result is saved there under the case name.

        Returns
        -------
        dict[str, HeatBalanceResult]
            Results keyed by case name, in input order.

        Raises
        ------
        ValueError
            If two cases share a name.
        """
        log_platform_info()

        results: dict[str, HeatBalanceResult] = {}
        t0 = time.perf_counter()

        for path in case_paths:
            case = load_case(path, self._config)
            if case.name in results:
                raise ValueError(f"Duplicate case name '{case.name}' in {path}")

            result = run_case(case, self._config)
            results[case.name] = result

            logger.info(
                "  %-24s Q=%10.3f %-10s Ts=%8.2f F  H=%6.3f  (%d passes)",
                case.name,
                result.heat_flux,
                result.summary()["heat_flux_units"],
                result.surface_temperature,
                result.surface_coefficient,
                result.iterations,
            )

            if output_dir is not None:
                save_result(output_dir, result, name=case.name)

        logger.info(
            "Solved %d cases in %.3f s", len(results), time.perf_counter() - t0
        )
        return results
