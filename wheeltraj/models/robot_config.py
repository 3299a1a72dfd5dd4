from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

from wheeltraj.errors import InvalidRobotConfigError
from wheeltraj.models.geometry import ChassisSpeeds
from wheeltraj.models.kinematics import DifferentialKinematics, HolonomicKinematics, ModuleState

# (max tangential accel, lateral accel, max lateral accel) -> available tangential accel
AccelBudget = Callable[[float, float, float], float]


def elliptical_budget(max_accel: float, lateral_accel: float, max_lateral_accel: float) -> float:
    """Friction-ellipse sharing between tangential and centripetal demand."""
    ratio = abs(lateral_accel) / max_lateral_accel
    if ratio >= 1.0:
        return 0.0
    return max_accel * math.sqrt(1.0 - ratio * ratio)


def linear_budget(max_accel: float, lateral_accel: float, max_lateral_accel: float) -> float:
    """Tangential budget shrinks linearly with lateral load."""
    ratio = abs(lateral_accel) / max_lateral_accel
    return max_accel * max(0.0, 1.0 - ratio)


def independent_budget(max_accel: float, lateral_accel: float, max_lateral_accel: float) -> float:
    """No sharing: lateral load never reduces the tangential budget."""
    return max_accel


class DriveType(str, Enum):
    HOLONOMIC = "holonomic"
    DIFFERENTIAL = "differential"


Kinematics = Union[HolonomicKinematics, DifferentialKinematics]


@dataclass
class RobotConfig:
    drive_type: DriveType
    max_module_speed_mps: float
    max_acceleration_mps2: float
    # Defaults to max_acceleration_mps2 when omitted
    max_centripetal_acceleration_mps2: Optional[float] = None
    # None leaves heading changes bounded only by module speeds
    max_angular_acceleration_radps2: Optional[float] = None
    module_locations: List[Tuple[float, float]] = field(default_factory=list)
    track_width_m: Optional[float] = None
    mass_kg: Optional[float] = None
    module_max_force_n: Optional[float] = None
    accel_budget: AccelBudget = elliptical_budget

    def __post_init__(self):
        try:
            self.drive_type = DriveType(self.drive_type)
        except ValueError as exc:
            raise InvalidRobotConfigError(f"Unknown drive type {self.drive_type!r}") from exc

        _require_positive("max_module_speed_mps", self.max_module_speed_mps)
        _require_positive("max_acceleration_mps2", self.max_acceleration_mps2)
        if self.max_centripetal_acceleration_mps2 is None:
            self.max_centripetal_acceleration_mps2 = float(self.max_acceleration_mps2)
        _require_positive(
            "max_centripetal_acceleration_mps2", self.max_centripetal_acceleration_mps2
        )
        if self.max_angular_acceleration_radps2 is not None:
            _require_positive(
                "max_angular_acceleration_radps2", self.max_angular_acceleration_radps2
            )

        if (self.mass_kg is None) != (self.module_max_force_n is None):
            raise InvalidRobotConfigError("mass_kg and module_max_force_n must be given together")
        if self.mass_kg is not None:
            _require_positive("mass_kg", self.mass_kg)
            _require_positive("module_max_force_n", self.module_max_force_n)

        if self.drive_type == DriveType.HOLONOMIC:
            if len(self.module_locations) < 2:
                raise InvalidRobotConfigError("Holonomic robots need at least two module locations")
            self.module_locations = [(float(x), float(y)) for x, y in self.module_locations]
            if all(math.hypot(x, y) < 1e-9 for x, y in self.module_locations):
                raise InvalidRobotConfigError("Module locations must not all sit at the robot centre")
            self._kinematics: Kinematics = HolonomicKinematics(self.module_locations)
        else:
            _require_positive("track_width_m", self.track_width_m)
            self._kinematics = DifferentialKinematics(float(self.track_width_m))

    @property
    def is_holonomic(self) -> bool:
        return self.drive_type == DriveType.HOLONOMIC

    @property
    def kinematics(self) -> Kinematics:
        return self._kinematics

    @property
    def num_modules(self) -> int:
        return self._kinematics.num_modules

    def module_offsets(self) -> List[Tuple[float, float]]:
        """Robot-relative (x, y) of each module; wheels sit on the y axis for tank drives."""
        if self.is_holonomic:
            return list(self.module_locations)
        half = float(self.track_width_m) / 2.0
        return [(0.0, half), (0.0, -half)]

    def to_module_states(self, speeds: ChassisSpeeds) -> List[ModuleState]:
        return self._kinematics.to_module_states(speeds)

    def to_chassis_speeds(self, states: Sequence[ModuleState]) -> ChassisSpeeds:
        return self._kinematics.to_chassis_speeds(states)

    def max_linear_acceleration_mps2(self) -> float:
        accel = float(self.max_acceleration_mps2)
        if self.mass_kg is not None and self.module_max_force_n is not None:
            accel = min(accel, self.num_modules * self.module_max_force_n / self.mass_kg)
        return accel

    def available_acceleration(self, lateral_accel_mps2: float, max_accel_mps2: float) -> float:
        """Tangential acceleration left once ``lateral_accel_mps2`` is being spent."""
        budget = self.accel_budget(
            max_accel_mps2, lateral_accel_mps2, float(self.max_centripetal_acceleration_mps2)
        )
        return max(0.0, min(float(budget), max_accel_mps2))


def _require_positive(name: str, value) -> None:
    if (
        value is None
        or isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or value <= 0.0
    ):
        raise InvalidRobotConfigError(f"{name} must be a positive number, got {value!r}")
