from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import List, Optional

from wheeltraj.models.geometry import ChassisSpeeds, Pose, lerp, pose_lerp, rotation_lerp
from wheeltraj.models.path_model import PathConstraints


@dataclass
class SwerveModuleTrajectoryState:
    speed_mps: float = 0.0
    # Robot-relative steering angle
    angle_rad: float = 0.0
    acceleration_mps2: float = 0.0
    field_x_m: float = 0.0
    field_y_m: float = 0.0
    delta_pos_m: float = 0.0

    def interpolate(
        self, end: SwerveModuleTrajectoryState, t: float
    ) -> SwerveModuleTrajectoryState:
        return SwerveModuleTrajectoryState(
            speed_mps=lerp(self.speed_mps, end.speed_mps, t),
            angle_rad=rotation_lerp(self.angle_rad, end.angle_rad, t),
            acceleration_mps2=lerp(self.acceleration_mps2, end.acceleration_mps2, t),
            field_x_m=lerp(self.field_x_m, end.field_x_m, t),
            field_y_m=lerp(self.field_y_m, end.field_y_m, t),
            delta_pos_m=lerp(self.delta_pos_m, end.delta_pos_m, t),
        )


@dataclass
class TrajectoryState:
    time_s: float = 0.0
    pose: Pose = field(default_factory=lambda: Pose(0.0, 0.0, 0.0))
    linear_velocity_mps: float = 0.0
    linear_acceleration_mps2: float = 0.0
    # Robot-relative
    chassis_speeds: ChassisSpeeds = field(default_factory=ChassisSpeeds)
    curvature: float = 0.0
    # Field-relative direction of travel (differs from pose heading on holonomic robots)
    heading_rad: float = 0.0
    distance_m: float = 0.0
    delta_pos_m: float = 0.0
    module_states: List[SwerveModuleTrajectoryState] = field(default_factory=list)
    constraints: Optional[PathConstraints] = None
    # Speed ceiling from global, zone and centripetal limits
    max_velocity_mps: float = math.inf
    # Heading change per metre of travel (d theta / ds)
    rotation_per_m: float = 0.0

    def interpolate(self, end: TrajectoryState, t: float) -> TrajectoryState:
        """Blend toward ``end``; ``t`` is the fraction of the interval in [0, 1]."""
        modules = [
            start.interpolate(stop, t) for start, stop in zip(self.module_states, end.module_states)
        ]
        return TrajectoryState(
            time_s=lerp(self.time_s, end.time_s, t),
            pose=pose_lerp(self.pose, end.pose, t),
            linear_velocity_mps=lerp(self.linear_velocity_mps, end.linear_velocity_mps, t),
            linear_acceleration_mps2=lerp(
                self.linear_acceleration_mps2, end.linear_acceleration_mps2, t
            ),
            chassis_speeds=ChassisSpeeds(
                vx_mps=lerp(self.chassis_speeds.vx_mps, end.chassis_speeds.vx_mps, t),
                vy_mps=lerp(self.chassis_speeds.vy_mps, end.chassis_speeds.vy_mps, t),
                omega_radps=lerp(self.chassis_speeds.omega_radps, end.chassis_speeds.omega_radps, t),
            ),
            curvature=lerp(self.curvature, end.curvature, t),
            heading_rad=rotation_lerp(self.heading_rad, end.heading_rad, t),
            distance_m=lerp(self.distance_m, end.distance_m, t),
            delta_pos_m=lerp(self.delta_pos_m, end.delta_pos_m, t),
            module_states=modules,
            constraints=self.constraints,
            max_velocity_mps=min(self.max_velocity_mps, end.max_velocity_mps),
            rotation_per_m=lerp(self.rotation_per_m, end.rotation_per_m, t),
        )

    def copy(self) -> TrajectoryState:
        return copy.deepcopy(self)
