"""Kinematically feasible trajectory generation for wheeled robots."""

from wheeltraj.errors import InvalidPathError, InvalidRobotConfigError, TrajectoryError
from wheeltraj.models import (
    ChassisSpeeds,
    DriveType,
    Path,
    PathBuilder,
    PathConstraints,
    PathPoint,
    Pose,
    RobotConfig,
    Trajectory,
    TrajectoryState,
    desaturate,
)

__version__ = "0.1.0"

__all__ = [
    "ChassisSpeeds",
    "DriveType",
    "InvalidPathError",
    "InvalidRobotConfigError",
    "Path",
    "PathBuilder",
    "PathConstraints",
    "PathPoint",
    "Pose",
    "RobotConfig",
    "Trajectory",
    "TrajectoryError",
    "TrajectoryState",
    "desaturate",
]
