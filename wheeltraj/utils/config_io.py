"""Robot configuration JSON (``config.json``) load/save helpers."""

from __future__ import annotations

import json
import logging
import math
import os
from typing import Any, Dict, List, Optional, Tuple

from wheeltraj.errors import InvalidRobotConfigError
from wheeltraj.models.path_model import PathConstraints
from wheeltraj.models.robot_config import (
    AccelBudget,
    DriveType,
    RobotConfig,
    elliptical_budget,
    independent_budget,
    linear_budget,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "drive_type": "holonomic",
    "robot_length_meters": 0.5,
    "robot_width_meters": 0.5,
    # Explicit module offsets override the corners derived from length/width
    "module_locations_meters": None,
    "track_width_meters": None,
    "max_module_speed_meters_per_sec": 4.5,
    "max_acceleration_meters_per_sec2": 7.0,
    "max_centripetal_acceleration_meters_per_sec2": None,
    "max_angular_acceleration_deg_per_sec2": 1500.0,
    "mass_kg": None,
    "module_max_force_newtons": None,
    "accel_budget": "elliptical",
    # Defaults for path-level constraints when a path file leaves them out
    "default_max_velocity_meters_per_sec": 4.5,
    "default_max_acceleration_meters_per_sec2": 7.0,
    "default_max_velocity_deg_per_sec": 720.0,
    "default_max_acceleration_deg_per_sec2": 1500.0,
}

ACCEL_BUDGETS: Dict[str, AccelBudget] = {
    "elliptical": elliptical_budget,
    "linear": linear_budget,
    "independent": independent_budget,
}


def merged_config(data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Merge onto defaults so missing keys get defaults."""
    merged = DEFAULT_CONFIG.copy()
    if data:
        merged.update(data)
    return merged


def load_config(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise InvalidRobotConfigError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidRobotConfigError(f"Could not read config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidRobotConfigError(f"Config {path} must hold a JSON object")
    unknown = sorted(set(data) - set(DEFAULT_CONFIG))
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", path, ", ".join(unknown))
    return merged_config(data)


def save_config(config: Dict[str, Any], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)


def _corner_modules(length_m: float, width_m: float) -> List[Tuple[float, float]]:
    hx = length_m / 2.0
    hy = width_m / 2.0
    # Front-left, front-right, back-left, back-right
    return [(hx, hy), (hx, -hy), (-hx, hy), (-hx, -hy)]


def robot_config_from_dict(data: Dict[str, Any]) -> RobotConfig:
    cfg = merged_config(data)
    budget_name = str(cfg.get("accel_budget", "elliptical"))
    if budget_name not in ACCEL_BUDGETS:
        raise InvalidRobotConfigError(
            f"Unknown accel_budget {budget_name!r}; expected one of {sorted(ACCEL_BUDGETS)}"
        )

    length_m = _opt_float(cfg.get("robot_length_meters"))
    width_m = _opt_float(cfg.get("robot_width_meters"))
    raw_modules = cfg.get("module_locations_meters")
    if raw_modules is not None:
        try:
            modules = [(float(x), float(y)) for x, y in raw_modules]
        except (TypeError, ValueError) as exc:
            raise InvalidRobotConfigError(
                "module_locations_meters must be a list of [x, y] pairs"
            ) from exc
    elif length_m is not None and width_m is not None:
        modules = _corner_modules(length_m, width_m)
    else:
        modules = []

    track_width = _opt_float(cfg.get("track_width_meters"))
    if track_width is None:
        track_width = width_m

    angular_accel_deg = _opt_float(cfg.get("max_angular_acceleration_deg_per_sec2"))
    try:
        drive_type = DriveType(str(cfg.get("drive_type")))
    except ValueError as exc:
        raise InvalidRobotConfigError(f"Unknown drive_type {cfg.get('drive_type')!r}") from exc

    return RobotConfig(
        drive_type=drive_type,
        max_module_speed_mps=_opt_float(cfg.get("max_module_speed_meters_per_sec")),
        max_acceleration_mps2=_opt_float(cfg.get("max_acceleration_meters_per_sec2")),
        max_centripetal_acceleration_mps2=_opt_float(
            cfg.get("max_centripetal_acceleration_meters_per_sec2")
        ),
        max_angular_acceleration_radps2=(
            math.radians(angular_accel_deg) if angular_accel_deg is not None else None
        ),
        module_locations=modules if drive_type == DriveType.HOLONOMIC else [],
        track_width_m=track_width if drive_type == DriveType.DIFFERENTIAL else None,
        mass_kg=_opt_float(cfg.get("mass_kg")),
        module_max_force_n=_opt_float(cfg.get("module_max_force_newtons")),
        accel_budget=ACCEL_BUDGETS[budget_name],
    )


def robot_config_to_dict(config: RobotConfig) -> Dict[str, Any]:
    budget_name = next(
        (name for name, fn in ACCEL_BUDGETS.items() if fn is config.accel_budget), "elliptical"
    )
    alpha = config.max_angular_acceleration_radps2
    return {
        "drive_type": config.drive_type.value,
        "module_locations_meters": [list(loc) for loc in config.module_locations] or None,
        "track_width_meters": config.track_width_m,
        "max_module_speed_meters_per_sec": config.max_module_speed_mps,
        "max_acceleration_meters_per_sec2": config.max_acceleration_mps2,
        "max_centripetal_acceleration_meters_per_sec2": config.max_centripetal_acceleration_mps2,
        "max_angular_acceleration_deg_per_sec2": math.degrees(alpha) if alpha is not None else None,
        "mass_kg": config.mass_kg,
        "module_max_force_newtons": config.module_max_force_n,
        "accel_budget": budget_name,
    }


def load_robot_config(path: str) -> RobotConfig:
    return robot_config_from_dict(load_config(path))


def default_path_constraints(config: Dict[str, Any]) -> PathConstraints:
    """Global path constraints from the ``default_*`` config keys."""
    cfg = merged_config(config)
    try:
        return PathConstraints(
            max_velocity_mps=float(cfg["default_max_velocity_meters_per_sec"]),
            max_acceleration_mps2=float(cfg["default_max_acceleration_meters_per_sec2"]),
            max_angular_velocity_radps=math.radians(float(cfg["default_max_velocity_deg_per_sec"])),
            max_angular_acceleration_radps2=math.radians(
                float(cfg["default_max_acceleration_deg_per_sec2"])
            ),
        )
    except (TypeError, ValueError) as exc:
        raise InvalidRobotConfigError(f"Invalid default path constraints: {exc}") from exc


def _opt_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidRobotConfigError(f"Expected a number, got {value!r}") from None
