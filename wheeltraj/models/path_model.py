from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, List, Optional

from wheeltraj.errors import InvalidPathError


@dataclass
class PathConstraints:
    """Velocity/acceleration limits for the whole path or a local zone."""

    max_velocity_mps: float = 3.0
    max_acceleration_mps2: float = 3.0
    max_angular_velocity_radps: float = 2.0 * math.pi
    max_angular_acceleration_radps2: float = 4.0 * math.pi

    def __post_init__(self):
        for name in (
            "max_velocity_mps",
            "max_acceleration_mps2",
            "max_angular_velocity_radps",
            "max_angular_acceleration_radps2",
        ):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0.0:
                raise InvalidPathError(f"Constraint {name} must be positive, got {value!r}")


@dataclass
class PathPoint:
    x_m: float
    y_m: float
    distance_m: float
    curvature: float = 0.0
    # Field-relative holonomic heading requested at this point, if any
    rotation_target_rad: Optional[float] = None
    # Local constraint zone; falls back to the path's global constraints
    constraints: Optional[PathConstraints] = None


@dataclass
class EventMarker:
    """An opaque handle to fire once the robot passes ``distance_m``."""

    distance_m: float
    handle: Any = None


@dataclass
class Path:
    points: List[PathPoint] = field(default_factory=list)
    global_constraints: PathConstraints = field(default_factory=PathConstraints)
    end_velocity_mps: float = 0.0
    event_markers: List[EventMarker] = field(default_factory=list)
    # Differential robots drive the path backwards (heading = travel + pi)
    drive_reversed: bool = False

    def num_points(self) -> int:
        return len(self.points)

    def get_point(self, index: int) -> PathPoint:
        if 0 <= index < len(self.points):
            return self.points[index]
        raise IndexError("Index out of range")

    def constraints_at(self, index: int) -> PathConstraints:
        point = self.get_point(index)
        return point.constraints if point.constraints is not None else self.global_constraints

    def total_distance_m(self) -> float:
        if not self.points:
            return 0.0
        return self.points[-1].distance_m - self.points[0].distance_m

    def validate(self) -> None:
        """Raise ``InvalidPathError`` if the point sequence cannot be profiled."""
        if not self.points:
            raise InvalidPathError("Path has no points")
        if not math.isfinite(self.end_velocity_mps) or self.end_velocity_mps < 0.0:
            raise InvalidPathError(
                f"End velocity must be finite and non-negative, got {self.end_velocity_mps!r}"
            )
        last_distance: Optional[float] = None
        for idx, p in enumerate(self.points):
            values = (p.x_m, p.y_m, p.distance_m, p.curvature)
            if not all(math.isfinite(v) for v in values):
                raise InvalidPathError(f"Path point {idx} has non-finite values: {p!r}")
            if last_distance is not None and p.distance_m < last_distance:
                raise InvalidPathError(
                    f"Arc length decreases at point {idx}: {p.distance_m} < {last_distance}"
                )
            last_distance = p.distance_m
