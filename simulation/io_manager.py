"""Data I/O manager — persist heat-balance results.

Saves the structured solver output so a separate report step can render
it without re-solving.

File layout under output_dir/:
    <name>_profile.npz   : T, K, R, ID, OD arrays
    <name>.json          : summary: echoed inputs, Q, H, per-layer table
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path

import numpy as np

from heat_solver.heat_balance import HeatBalanceResult

logger = logging.getLogger(__name__)

_PROFILE_KEYS = (
    "temperatures",
    "conductivities",
    "resistances",
    "inner_diameter",
    "outer_diameter",
)


def save_result(
    output_dir: Path | str,
    result: HeatBalanceResult,
    name: str = "heat_balance",
) -> list[Path]:
    """Save one heat-balance result to disk as NumPy arrays + JSON.

    Parameters
    ----------
    output_dir : Path or str
        Output directory (created if needed).
    result : HeatBalanceResult
        Converged solution.
    name : str
        Base name of the written files.

    Returns
    -------
    list[Path]
        Paths to all saved files.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    saved: list[Path] = []

    profile_path = output_dir / f"{name}_profile.npz"
    np.savez_compressed(
        profile_path,
        temperatures=result.temperatures,
        conductivities=result.conductivities,
        resistances=result.resistances,
        inner_diameter=result.stack.inner_diameter,
        outer_diameter=result.stack.outer_diameter,
    )
    saved.append(profile_path)
    logger.debug("Saved %s: %d layers", profile_path.name, len(result.resistances))

    meta_path = output_dir / f"{name}.json"
    safe_meta = _sanitize_for_json(result.summary())
    with open(meta_path, "w", encoding="utf-8") as f:
        json.dump(safe_meta, f, indent=2, ensure_ascii=False)
    saved.append(meta_path)

    logger.info(
        "Saved %d files to %s (Q=%.4f, %d layers)",
        len(saved), output_dir, result.heat_flux, len(result.resistances),
    )

    return saved


def load_result(
    output_dir: Path | str,
    name: str = "heat_balance",
) -> dict[str, np.ndarray | dict]:
    """Load a previously saved heat-balance result.

    Parameters
    ----------
    output_dir : Path or str
        Directory containing saved results.
    name : str
        Base name used when saving.

    Returns
    -------
    dict
        Keys: 'temperatures', 'conductivities', 'resistances',
        'inner_diameter', 'outer_diameter', 'summary'.
    """
    output_dir = Path(output_dir)

    if not output_dir.exists():
        raise FileNotFoundError(f"Output directory not found: {output_dir}")

    data: dict = {}

    profile_path = output_dir / f"{name}_profile.npz"
    if profile_path.exists():
        with np.load(profile_path) as npz:
            for key in _PROFILE_KEYS:
                data[key] = npz[key]
    else:
        logger.warning("Missing file: %s", profile_path)
        for key in _PROFILE_KEYS:
            data[key] = None

    meta_path = output_dir / f"{name}.json"
    if meta_path.exists():
        with open(meta_path, "r", encoding="utf-8") as f:
            data["summary"] = json.load(f)
    else:
        logger.warning("Missing file: %s", meta_path)
        data["summary"] = {}

    logger.info("Loaded result '%s' from %s", name, output_dir)

    return data


def _sanitize_for_json(obj: object) -> object:
    """Convert a result summary to JSON-native values.

    Mappings (including read-only ones) become dicts, orientation enums
    become their lower-case names, and NumPy scalars and arrays become
    Python numbers and lists.
    """
    if isinstance(obj, Mapping):
        return {str(k): _sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize_for_json(v) for v in obj]
    if isinstance(obj, Enum):
        return obj.name.lower()
    if isinstance(obj, (np.integer, np.floating, np.bool_)):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj
