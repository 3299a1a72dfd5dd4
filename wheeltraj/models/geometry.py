from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class Pose:
    x_m: float
    y_m: float
    theta_rad: float


@dataclass
class ChassisSpeeds:
    vx_mps: float = 0.0
    vy_mps: float = 0.0
    omega_radps: float = 0.0

    def translation_speed(self) -> float:
        return math.hypot(self.vx_mps, self.vy_mps)

    def scaled(self, factor: float) -> ChassisSpeeds:
        return ChassisSpeeds(
            vx_mps=self.vx_mps * factor,
            vy_mps=self.vy_mps * factor,
            omega_radps=self.omega_radps * factor,
        )

    @staticmethod
    def from_field_relative(speeds: ChassisSpeeds, robot_angle_rad: float) -> ChassisSpeeds:
        """Rotate field-relative speeds into the robot frame."""
        c = math.cos(robot_angle_rad)
        s = math.sin(robot_angle_rad)
        return ChassisSpeeds(
            vx_mps=speeds.vx_mps * c + speeds.vy_mps * s,
            vy_mps=-speeds.vx_mps * s + speeds.vy_mps * c,
            omega_radps=speeds.omega_radps,
        )

    @staticmethod
    def to_field_relative(speeds: ChassisSpeeds, robot_angle_rad: float) -> ChassisSpeeds:
        """Rotate robot-relative speeds into the field frame."""
        c = math.cos(robot_angle_rad)
        s = math.sin(robot_angle_rad)
        return ChassisSpeeds(
            vx_mps=speeds.vx_mps * c - speeds.vy_mps * s,
            vy_mps=speeds.vx_mps * s + speeds.vy_mps * c,
            omega_radps=speeds.omega_radps,
        )


def wrap_angle_radians(theta: float) -> float:
    while theta > math.pi:
        theta -= 2.0 * math.pi
    while theta <= -math.pi:
        theta += 2.0 * math.pi
    return theta


def shortest_angular_distance(target: float, current: float) -> float:
    return wrap_angle_radians(target - current)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def rotation_lerp(start_rad: float, end_rad: float, t: float) -> float:
    """Interpolate headings along the shortest arc."""
    delta = shortest_angular_distance(end_rad, start_rad)
    return wrap_angle_radians(start_rad + delta * t)


def cosine_interpolate(start_rad: float, end_rad: float, t: float) -> float:
    """Ease-in/ease-out heading blend; zero angular rate at both ends."""
    t2 = (1.0 - math.cos(t * math.pi)) / 2.0
    return rotation_lerp(start_rad, end_rad, t2)


def pose_lerp(start: Pose, end: Pose, t: float) -> Pose:
    return Pose(
        x_m=lerp(start.x_m, end.x_m, t),
        y_m=lerp(start.y_m, end.y_m, t),
        theta_rad=rotation_lerp(start.theta_rad, end.theta_rad, t),
    )


def heading_between(ax: float, ay: float, bx: float, by: float) -> float:
    return math.atan2(by - ay, bx - ax)
