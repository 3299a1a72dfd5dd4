import math

import pytest

from wheeltraj.models.geometry import (
    ChassisSpeeds,
    Pose,
    cosine_interpolate,
    pose_lerp,
    rotation_lerp,
    shortest_angular_distance,
    wrap_angle_radians,
)


def test_wrap_angle_into_half_open_range():
    assert wrap_angle_radians(1.5 * math.pi) == pytest.approx(-0.5 * math.pi)
    assert wrap_angle_radians(-1.5 * math.pi) == pytest.approx(0.5 * math.pi)
    assert wrap_angle_radians(math.pi) == pytest.approx(math.pi)
    assert wrap_angle_radians(-math.pi) == pytest.approx(math.pi)


def test_shortest_angular_distance_crosses_pi():
    assert shortest_angular_distance(-3.0, 3.0) == pytest.approx(2.0 * math.pi - 6.0)


def test_rotation_lerp_takes_short_way_round():
    mid = rotation_lerp(3.0, -3.0, 0.5)
    assert abs(mid) == pytest.approx(math.pi)


def test_cosine_interpolate_eases_in_and_out():
    assert cosine_interpolate(0.0, 1.0, 0.0) == pytest.approx(0.0)
    assert cosine_interpolate(0.0, 1.0, 1.0) == pytest.approx(1.0)
    assert cosine_interpolate(0.0, 1.0, 0.5) == pytest.approx(0.5)
    quarter = (1.0 - math.cos(0.25 * math.pi)) / 2.0
    assert cosine_interpolate(0.0, 1.0, 0.25) == pytest.approx(quarter)
    # Slower than linear near the ends
    assert cosine_interpolate(0.0, 1.0, 0.1) < 0.1


def test_pose_lerp():
    pose = pose_lerp(Pose(0.0, 0.0, 0.0), Pose(2.0, 4.0, 1.0), 0.25)
    assert pose.x_m == pytest.approx(0.5)
    assert pose.y_m == pytest.approx(1.0)
    assert pose.theta_rad == pytest.approx(0.25)


def test_field_robot_frame_conversion():
    field = ChassisSpeeds(1.0, 0.0, 0.5)
    robot = ChassisSpeeds.from_field_relative(field, math.pi / 2.0)
    assert robot.vx_mps == pytest.approx(0.0, abs=1e-12)
    assert robot.vy_mps == pytest.approx(-1.0)
    assert robot.omega_radps == 0.5

    back = ChassisSpeeds.to_field_relative(robot, math.pi / 2.0)
    assert back.vx_mps == pytest.approx(1.0)
    assert back.vy_mps == pytest.approx(0.0, abs=1e-12)


def test_scaled_and_translation_speed():
    speeds = ChassisSpeeds(3.0, 4.0, 2.0)
    assert speeds.translation_speed() == pytest.approx(5.0)
    half = speeds.scaled(0.5)
    assert (half.vx_mps, half.vy_mps, half.omega_radps) == (1.5, 2.0, 1.0)
