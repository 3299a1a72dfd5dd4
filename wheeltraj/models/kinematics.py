"""Chassis-speed <-> module-state conversions.

Two drivetrains are supported and share no base class:
``HolonomicKinematics`` for N independently steered modules and
``DifferentialKinematics`` for a two-wheel tank drive. ``RobotConfig`` picks one
by its ``drive_type`` flag.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from wheeltraj.models.geometry import ChassisSpeeds


@dataclass
class ModuleState:
    speed_mps: float = 0.0
    angle_rad: float = 0.0


class HolonomicKinematics:
    """Swerve/omni kinematics for modules at fixed offsets from the robot centre."""

    def __init__(self, module_locations: Sequence[Tuple[float, float]]):
        self.module_locations: List[Tuple[float, float]] = [
            (float(x), float(y)) for x, y in module_locations
        ]
        rows = []
        for x, y in self.module_locations:
            rows.append([1.0, 0.0, -y])
            rows.append([0.0, 1.0, x])
        self._forward = np.array(rows, dtype=float)
        self._inverse = np.linalg.pinv(self._forward)

    @property
    def num_modules(self) -> int:
        return len(self.module_locations)

    def module_velocities(self, speeds: ChassisSpeeds) -> np.ndarray:
        """Return an (N, 2) array of robot-relative module velocity vectors."""
        chassis = np.array([speeds.vx_mps, speeds.vy_mps, speeds.omega_radps], dtype=float)
        return (self._forward @ chassis).reshape(-1, 2)

    def to_module_states(self, speeds: ChassisSpeeds) -> List[ModuleState]:
        states: List[ModuleState] = []
        for vx, vy in self.module_velocities(speeds):
            speed = math.hypot(vx, vy)
            angle = math.atan2(vy, vx) if speed > 1e-12 else 0.0
            states.append(ModuleState(speed_mps=float(speed), angle_rad=float(angle)))
        return states

    def to_chassis_speeds(self, states: Sequence[ModuleState]) -> ChassisSpeeds:
        """Least-squares inverse; exact whenever the module states are consistent."""
        if len(states) != self.num_modules:
            raise ValueError(
                f"Expected {self.num_modules} module states, got {len(states)}"
            )
        module_vec = np.empty(2 * self.num_modules, dtype=float)
        for i, state in enumerate(states):
            module_vec[2 * i] = state.speed_mps * math.cos(state.angle_rad)
            module_vec[2 * i + 1] = state.speed_mps * math.sin(state.angle_rad)
        vx, vy, omega = self._inverse @ module_vec
        return ChassisSpeeds(vx_mps=float(vx), vy_mps=float(vy), omega_radps=float(omega))


class DifferentialKinematics:
    """Left/right wheel kinematics; wheels point along the chassis heading."""

    def __init__(self, track_width_m: float):
        self.track_width_m = float(track_width_m)

    @property
    def num_modules(self) -> int:
        return 2

    def to_module_states(self, speeds: ChassisSpeeds) -> List[ModuleState]:
        half = self.track_width_m / 2.0
        left = speeds.vx_mps - speeds.omega_radps * half
        right = speeds.vx_mps + speeds.omega_radps * half
        return [ModuleState(left, 0.0), ModuleState(right, 0.0)]

    def to_chassis_speeds(self, states: Sequence[ModuleState]) -> ChassisSpeeds:
        if len(states) != 2:
            raise ValueError(f"Expected 2 wheel states, got {len(states)}")
        left = states[0].speed_mps * math.cos(states[0].angle_rad)
        right = states[1].speed_mps * math.cos(states[1].angle_rad)
        return ChassisSpeeds(
            vx_mps=(left + right) / 2.0,
            vy_mps=0.0,
            omega_radps=(right - left) / self.track_width_m,
        )
