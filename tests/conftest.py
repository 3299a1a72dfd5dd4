import math

import pytest

from wheeltraj.models.path_model import PathConstraints
from wheeltraj.models.robot_config import DriveType, RobotConfig

SQUARE_MODULES = [(0.3, 0.3), (0.3, -0.3), (-0.3, 0.3), (-0.3, -0.3)]


@pytest.fixture
def swerve_config():
    return RobotConfig(
        drive_type=DriveType.HOLONOMIC,
        max_module_speed_mps=4.5,
        max_acceleration_mps2=2.0,
        max_centripetal_acceleration_mps2=4.0,
        module_locations=SQUARE_MODULES,
    )


@pytest.fixture
def tank_config():
    return RobotConfig(
        drive_type=DriveType.DIFFERENTIAL,
        max_module_speed_mps=3.0,
        max_acceleration_mps2=2.0,
        max_centripetal_acceleration_mps2=10.0,
        track_width_m=0.6,
    )


@pytest.fixture
def limits():
    """3 m/s, 2 m/s^2 with generous rotation limits."""
    return PathConstraints(
        max_velocity_mps=3.0,
        max_acceleration_mps2=2.0,
        max_angular_velocity_radps=4.0 * math.pi,
        max_angular_acceleration_radps2=8.0 * math.pi,
    )
