"""Pure serialization helpers for paths and generated trajectories."""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, List, Optional

from wheeltraj.errors import InvalidPathError, TrajectoryError
from wheeltraj.models.geometry import ChassisSpeeds, Pose
from wheeltraj.models.path_builder import PathBuilder
from wheeltraj.models.path_model import EventMarker, Path, PathConstraints, PathPoint
from wheeltraj.models.trajectory import Trajectory
from wheeltraj.models.trajectory_state import SwerveModuleTrajectoryState, TrajectoryState

logger = logging.getLogger(__name__)


def serialize_constraints(constraints: PathConstraints) -> Dict[str, float]:
    return {
        "max_velocity_meters_per_sec": float(constraints.max_velocity_mps),
        "max_acceleration_meters_per_sec2": float(constraints.max_acceleration_mps2),
        "max_velocity_deg_per_sec": math.degrees(constraints.max_angular_velocity_radps),
        "max_acceleration_deg_per_sec2": math.degrees(constraints.max_angular_acceleration_radps2),
    }


def deserialize_constraints(
    data: Any, fallback: Optional[PathConstraints] = None
) -> PathConstraints:
    if not isinstance(data, dict):
        raise InvalidPathError(f"Constraints must be a JSON object, got {data!r}")
    base = fallback or PathConstraints()
    try:
        return PathConstraints(
            max_velocity_mps=float(
                data.get("max_velocity_meters_per_sec", base.max_velocity_mps)
            ),
            max_acceleration_mps2=float(
                data.get("max_acceleration_meters_per_sec2", base.max_acceleration_mps2)
            ),
            max_angular_velocity_radps=math.radians(
                float(
                    data.get(
                        "max_velocity_deg_per_sec",
                        math.degrees(base.max_angular_velocity_radps),
                    )
                )
            ),
            max_angular_acceleration_radps2=math.radians(
                float(
                    data.get(
                        "max_acceleration_deg_per_sec2",
                        math.degrees(base.max_angular_acceleration_radps2),
                    )
                )
            ),
        )
    except InvalidPathError:
        raise
    except (TypeError, ValueError) as exc:
        raise InvalidPathError(f"Invalid constraints block: {exc}") from exc


def serialize_path(path: Path) -> Dict[str, Any]:
    """Convert a Path model into the JSON structure stored on disk."""
    points: List[Dict[str, Any]] = []
    for p in path.points:
        entry: Dict[str, Any] = {
            "x_meters": float(p.x_m),
            "y_meters": float(p.y_m),
            "distance_meters": float(p.distance_m),
            "curvature": float(p.curvature),
        }
        if p.rotation_target_rad is not None:
            entry["rotation_radians"] = float(p.rotation_target_rad)
        if p.constraints is not None:
            entry["constraints"] = serialize_constraints(p.constraints)
        points.append(entry)

    result: Dict[str, Any] = {
        "constraints": serialize_constraints(path.global_constraints),
        "end_velocity_meters_per_sec": float(path.end_velocity_mps),
        "points": points,
    }
    if path.drive_reversed:
        result["reversed"] = True
    if path.event_markers:
        result["event_markers"] = [
            {"distance_meters": float(m.distance_m), "handle": m.handle}
            for m in path.event_markers
        ]
    return result


def deserialize_path(
    data: Any, default_constraints: Optional[PathConstraints] = None
) -> Path:
    """Construct a Path from JSON data.

    Two layouts are accepted: an explicit ``points`` list, or a
    ``path_elements`` list of line/arc/rotation/event elements that is laid out
    with ``PathBuilder``.
    """
    if not isinstance(data, dict):
        raise InvalidPathError("Path JSON must be an object")

    constraints_block = data.get("constraints")
    if constraints_block is None:
        global_constraints = default_constraints or PathConstraints()
    else:
        global_constraints = deserialize_constraints(constraints_block, default_constraints)

    try:
        end_velocity = float(data.get("end_velocity_meters_per_sec", 0.0))
    except (TypeError, ValueError) as exc:
        raise InvalidPathError("end_velocity_meters_per_sec must be a number") from exc
    reversed_flag = bool(data.get("reversed", False))

    if "points" in data:
        path = Path(
            points=[_deserialize_point(item, idx, global_constraints)
                    for idx, item in enumerate(data.get("points") or [])],
            global_constraints=global_constraints,
            end_velocity_mps=end_velocity,
            drive_reversed=reversed_flag,
        )
        for item in data.get("event_markers", []) or []:
            if not isinstance(item, dict):
                continue
            try:
                path.event_markers.append(
                    EventMarker(float(item["distance_meters"]), item.get("handle"))
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise InvalidPathError(f"Malformed event marker {item!r}") from exc
    elif "path_elements" in data:
        path = _build_from_elements(data, global_constraints, end_velocity, reversed_flag)
    else:
        raise InvalidPathError("Path JSON needs either 'points' or 'path_elements'")

    path.validate()
    return path


def _deserialize_point(item: Any, idx: int, global_constraints: PathConstraints) -> PathPoint:
    if not isinstance(item, dict):
        raise InvalidPathError(f"Path point {idx} must be an object")
    try:
        rotation = item.get("rotation_radians")
        zone = item.get("constraints")
        return PathPoint(
            x_m=float(item["x_meters"]),
            y_m=float(item["y_meters"]),
            distance_m=float(item["distance_meters"]),
            curvature=float(item.get("curvature", 0.0)),
            rotation_target_rad=float(rotation) if rotation is not None else None,
            constraints=(
                deserialize_constraints(zone, global_constraints) if zone is not None else None
            ),
        )
    except InvalidPathError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidPathError(f"Malformed path point {idx}: {exc}") from exc


def _build_from_elements(
    data: Dict[str, Any],
    global_constraints: PathConstraints,
    end_velocity: float,
    reversed_flag: bool,
) -> Path:
    start = data.get("start", {}) or {}
    try:
        builder = PathBuilder(
            start_x_m=float(start.get("x_meters", 0.0)),
            start_y_m=float(start.get("y_meters", 0.0)),
            start_heading_rad=float(start.get("heading_radians", 0.0)),
            spacing_m=float(data.get("point_spacing_meters", 0.05)),
        )
        if "rotation_radians" in start:
            builder.rotation_target(float(start["rotation_radians"]))
        for item in data.get("path_elements") or []:
            if not isinstance(item, dict):
                continue
            typ = item.get("type")
            if typ in ("line", "arc"):
                zone = item.get("constraints")
                if zone is None:
                    _emit_segment(builder, item)
                else:
                    with builder.constraint_zone(
                        deserialize_constraints(zone, global_constraints)
                    ):
                        _emit_segment(builder, item)
            elif typ == "rotation":
                builder.rotation_target(float(item["rotation_radians"]))
            elif typ == "event_trigger":
                builder.event(item.get("lib_key"))
            else:
                logger.warning("Skipping unknown path element type %r", typ)
    except InvalidPathError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidPathError(f"Malformed path element: {exc}") from exc
    return builder.build(global_constraints, end_velocity, reversed_flag)


def _emit_segment(builder: PathBuilder, item: Dict[str, Any]) -> None:
    if item["type"] == "line":
        builder.line(float(item["length_meters"]))
    else:
        builder.arc(float(item["radius_meters"]), float(item["sweep_radians"]))


def load_path(filepath: str, default_constraints: Optional[PathConstraints] = None) -> Path:
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidPathError(f"Could not read path {filepath}: {exc}") from exc
    return deserialize_path(data, default_constraints)


def save_path(path: Path, filepath: str) -> None:
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(serialize_path(path), f, indent=2)


def serialize_trajectory(trajectory: Trajectory) -> Dict[str, Any]:
    states: List[Dict[str, Any]] = []
    for s in trajectory.get_states():
        states.append(
            {
                "time_seconds": s.time_s,
                "x_meters": s.pose.x_m,
                "y_meters": s.pose.y_m,
                "rotation_radians": s.pose.theta_rad,
                "velocity_meters_per_sec": s.linear_velocity_mps,
                "acceleration_meters_per_sec2": s.linear_acceleration_mps2,
                "vx_meters_per_sec": s.chassis_speeds.vx_mps,
                "vy_meters_per_sec": s.chassis_speeds.vy_mps,
                "omega_radians_per_sec": s.chassis_speeds.omega_radps,
                "curvature": s.curvature,
                "heading_radians": s.heading_rad,
                "distance_meters": s.distance_m,
                "modules": [
                    {
                        "speed_meters_per_sec": m.speed_mps,
                        "angle_radians": m.angle_rad,
                        "acceleration_meters_per_sec2": m.acceleration_mps2,
                    }
                    for m in s.module_states
                ],
            }
        )
    return {
        "total_time_seconds": trajectory.get_total_time(),
        "states": states,
        "event_commands": [
            {"time_seconds": t, "handle": handle} for t, handle in trajectory.get_event_commands()
        ],
    }


def deserialize_trajectory(data: Any) -> Trajectory:
    """Rebuild a Trajectory from pre-computed states (no re-profiling)."""
    if not isinstance(data, dict) or not isinstance(data.get("states"), list):
        raise TrajectoryError("Trajectory JSON must be an object with a 'states' list")
    states: List[TrajectoryState] = []
    try:
        for item in data["states"]:
            distance = float(item.get("distance_meters", 0.0))
            states.append(
                TrajectoryState(
                    time_s=float(item["time_seconds"]),
                    pose=Pose(
                        float(item["x_meters"]),
                        float(item["y_meters"]),
                        float(item.get("rotation_radians", 0.0)),
                    ),
                    linear_velocity_mps=float(item.get("velocity_meters_per_sec", 0.0)),
                    linear_acceleration_mps2=float(item.get("acceleration_meters_per_sec2", 0.0)),
                    chassis_speeds=ChassisSpeeds(
                        float(item.get("vx_meters_per_sec", 0.0)),
                        float(item.get("vy_meters_per_sec", 0.0)),
                        float(item.get("omega_radians_per_sec", 0.0)),
                    ),
                    curvature=float(item.get("curvature", 0.0)),
                    heading_rad=float(item.get("heading_radians", 0.0)),
                    distance_m=distance,
                    delta_pos_m=distance - states[-1].distance_m if states else 0.0,
                    module_states=[
                        SwerveModuleTrajectoryState(
                            speed_mps=float(m.get("speed_meters_per_sec", 0.0)),
                            angle_rad=float(m.get("angle_radians", 0.0)),
                            acceleration_mps2=float(m.get("acceleration_meters_per_sec2", 0.0)),
                        )
                        for m in item.get("modules", []) or []
                    ],
                )
            )
        events = [
            (float(e["time_seconds"]), e.get("handle"))
            for e in data.get("event_commands", []) or []
        ]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise TrajectoryError(f"Malformed trajectory JSON: {exc}") from exc
    return Trajectory(states, events)


def save_trajectory(trajectory: Trajectory, filepath: str) -> None:
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(serialize_trajectory(trajectory), f, indent=2)


def load_trajectory(filepath: str) -> Trajectory:
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise TrajectoryError(f"Could not read trajectory {filepath}: {exc}") from exc
    return deserialize_trajectory(data)
