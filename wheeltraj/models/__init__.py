"""Shared data models and the trajectory engine."""

# Re-export key types for convenience when importing the package directly.
from .desaturation import desaturate
from .geometry import ChassisSpeeds, Pose
from .kinematics import DifferentialKinematics, HolonomicKinematics, ModuleState
from .path_builder import PathBuilder
from .path_model import EventMarker, Path, PathConstraints, PathPoint
from .robot_config import (
    DriveType,
    RobotConfig,
    elliptical_budget,
    independent_budget,
    linear_budget,
)
from .trajectory import Trajectory
from .trajectory_state import SwerveModuleTrajectoryState, TrajectoryState

__all__ = [
    "ChassisSpeeds",
    "DifferentialKinematics",
    "DriveType",
    "EventMarker",
    "HolonomicKinematics",
    "ModuleState",
    "Path",
    "PathBuilder",
    "PathConstraints",
    "PathPoint",
    "Pose",
    "RobotConfig",
    "SwerveModuleTrajectoryState",
    "Trajectory",
    "TrajectoryState",
    "desaturate",
    "elliptical_budget",
    "independent_budget",
    "linear_budget",
]
