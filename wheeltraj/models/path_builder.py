"""Small geometry helper that lays out straight/arc path points.

Real robots usually get their points from a spline layer; this builder covers
paths made of lines and constant-radius turns, which is enough for tests, the
CLI examples and simple autonomous routines.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from wheeltraj.errors import InvalidPathError
from wheeltraj.models.path_model import EventMarker, Path, PathConstraints, PathPoint


class PathBuilder:
    def __init__(
        self,
        start_x_m: float = 0.0,
        start_y_m: float = 0.0,
        start_heading_rad: float = 0.0,
        spacing_m: float = 0.05,
    ):
        if spacing_m <= 0.0:
            raise InvalidPathError(f"Point spacing must be positive, got {spacing_m!r}")
        self.spacing_m = float(spacing_m)
        self._x = float(start_x_m)
        self._y = float(start_y_m)
        self._heading = float(start_heading_rad)
        self._distance = 0.0
        self._zone: Optional[PathConstraints] = None
        self._markers: List[EventMarker] = []
        self.points: List[PathPoint] = [PathPoint(self._x, self._y, 0.0)]

    @property
    def distance_m(self) -> float:
        return self._distance

    def _steps(self, length_m: float) -> int:
        return max(1, int(math.ceil(length_m / self.spacing_m - 1e-9)))

    def line(self, length_m: float) -> PathBuilder:
        if length_m <= 0.0:
            return self
        n = self._steps(length_m)
        ux = math.cos(self._heading)
        uy = math.sin(self._heading)
        x0, y0, s0 = self._x, self._y, self._distance
        for k in range(1, n + 1):
            d = length_m * k / n
            self.points.append(
                PathPoint(x0 + ux * d, y0 + uy * d, s0 + d, 0.0, None, self._zone)
            )
        self._x = x0 + ux * length_m
        self._y = y0 + uy * length_m
        self._distance = s0 + length_m
        return self

    def arc(self, radius_m: float, sweep_rad: float) -> PathBuilder:
        """Turn through ``sweep_rad`` (positive = left) at constant radius."""
        if radius_m <= 0.0 or sweep_rad == 0.0:
            return self
        direction = 1.0 if sweep_rad > 0.0 else -1.0
        curvature = direction / radius_m
        length_m = radius_m * abs(sweep_rad)
        # Centre sits to the left of travel for a left turn
        cx = self._x - direction * radius_m * math.sin(self._heading)
        cy = self._y + direction * radius_m * math.cos(self._heading)
        start_angle = math.atan2(self._y - cy, self._x - cx)
        h0, s0 = self._heading, self._distance
        n = self._steps(length_m)
        for k in range(1, n + 1):
            swept = sweep_rad * k / n
            angle = start_angle + swept
            self.points.append(
                PathPoint(
                    cx + radius_m * math.cos(angle),
                    cy + radius_m * math.sin(angle),
                    s0 + length_m * k / n,
                    curvature,
                    None,
                    self._zone,
                )
            )
        self._x = self.points[-1].x_m
        self._y = self.points[-1].y_m
        self._heading = h0 + sweep_rad
        self._distance = s0 + length_m
        return self

    def rotation_target(self, theta_rad: float) -> PathBuilder:
        """Request a holonomic heading at the most recently emitted point."""
        self.points[-1].rotation_target_rad = float(theta_rad)
        return self

    def event(self, handle: Any) -> PathBuilder:
        self._markers.append(EventMarker(self._distance, handle))
        return self

    @contextmanager
    def constraint_zone(self, constraints: PathConstraints) -> Iterator[PathBuilder]:
        previous = self._zone
        self._zone = constraints
        try:
            yield self
        finally:
            self._zone = previous

    def build(
        self,
        global_constraints: Optional[PathConstraints] = None,
        end_velocity_mps: float = 0.0,
        drive_reversed: bool = False,
    ) -> Path:
        return Path(
            points=list(self.points),
            global_constraints=global_constraints or PathConstraints(),
            end_velocity_mps=end_velocity_mps,
            event_markers=list(self._markers),
            drive_reversed=drive_reversed,
        )
