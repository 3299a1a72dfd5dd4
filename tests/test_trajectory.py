import copy
import math

import pytest

from wheeltraj.errors import TrajectoryError
from wheeltraj.models.geometry import ChassisSpeeds, Pose
from wheeltraj.models.path_builder import PathBuilder
from wheeltraj.models.trajectory import Trajectory
from wheeltraj.models.trajectory_state import SwerveModuleTrajectoryState, TrajectoryState


@pytest.fixture
def straight(swerve_config, limits):
    path = PathBuilder().line(6.0).event("shoot").build(limits)
    return Trajectory.generate(path, ChassisSpeeds(), 0.0, swerve_config)


def _state(time_s, x_m, theta_rad, velocity=0.0, module_angle=0.0):
    return TrajectoryState(
        time_s=time_s,
        pose=Pose(x_m, 0.0, theta_rad),
        linear_velocity_mps=velocity,
        distance_m=x_m,
        module_states=[SwerveModuleTrajectoryState(speed_mps=velocity, angle_rad=module_angle)],
    )


def test_sample_at_state_time_returns_that_state(straight):
    for state in straight.get_states()[::7]:
        sampled = straight.sample(state.time_s)
        assert sampled == state
        assert sampled is not state


def test_sample_at_shared_time_returns_last_state():
    states = [
        _state(0.0, 0.0, 0.0),
        _state(1.0, 1.0, 0.0, 1.0),
        _state(1.0, 1.0, 0.0, 2.0),
        _state(2.0, 2.0, 0.0),
    ]
    traj = Trajectory(states)
    assert traj.sample(1.0) == states[2]
    assert traj.sample(0.0) == states[0]
    assert traj.sample(2.0) == states[3]
    # Past the shared time, interpolation starts from the later state
    after = traj.sample(1.5)
    assert after.linear_velocity_mps == pytest.approx(1.0)


def test_sample_clamps_outside_span(straight):
    assert straight.sample(-1.0) == straight.get_initial_state()
    assert straight.sample(straight.get_total_time() + 10.0) == straight.get_end_state()


def test_sample_between_states_interpolates(straight):
    a = straight.get_state(30)
    b = straight.get_state(31)
    mid = straight.sample(0.5 * (a.time_s + b.time_s))
    assert mid.time_s == pytest.approx(0.5 * (a.time_s + b.time_s))
    assert mid.pose.x_m == pytest.approx(0.5 * (a.pose.x_m + b.pose.x_m))
    assert mid.linear_velocity_mps == pytest.approx(
        0.5 * (a.linear_velocity_mps + b.linear_velocity_mps)
    )
    assert a.linear_velocity_mps < mid.linear_velocity_mps < b.linear_velocity_mps
    assert len(mid.module_states) == 4


def test_sample_does_not_mutate_trajectory(straight):
    before = copy.deepcopy(straight.get_states())
    for t in (2.0, 0.3, 3.4, 0.0, 1.7, 99.0):
        straight.sample(t)
    assert straight.get_states() == before


def test_query_order_does_not_matter(straight):
    times = [0.1, 2.9, 1.3, 0.7]
    forward = [straight.sample(t) for t in times]
    backward = [straight.sample(t) for t in reversed(times)]
    assert forward == list(reversed(backward))


def test_heading_interpolates_the_short_way():
    traj = Trajectory([_state(0.0, 0.0, 3.0, 0.0, 3.0), _state(1.0, 2.0, -3.0, 2.0, -3.0)])
    mid = traj.sample(0.5)
    assert mid.pose.x_m == pytest.approx(1.0)
    assert abs(mid.pose.theta_rad) == pytest.approx(math.pi)
    assert abs(mid.module_states[0].angle_rad) == pytest.approx(math.pi)
    assert mid.module_states[0].speed_mps == pytest.approx(1.0)


def test_accessors(straight):
    states = straight.get_states()
    assert len(straight) == len(states)
    assert straight.get_initial_state() is states[0]
    assert straight.get_end_state() is states[-1]
    assert straight.get_state(5) is states[5]
    assert straight.get_total_time() == states[-1].time_s
    assert straight.get_initial_pose() == Pose(0.0, 0.0, 0.0)
    assert straight.get_event_commands() == [(states[-1].time_s, "shoot")]


def test_repeated_generation_is_deterministic(swerve_config, limits):
    path = PathBuilder().line(2.0).arc(1.0, 1.0).build(limits)
    first = Trajectory.generate(path, ChassisSpeeds(), 0.0, swerve_config)
    second = Trajectory.generate(path, ChassisSpeeds(), 0.0, swerve_config)
    assert first.get_states() == second.get_states()


def test_constructor_rejects_bad_states():
    with pytest.raises(TrajectoryError):
        Trajectory([])
    with pytest.raises(TrajectoryError):
        Trajectory([_state(1.0, 0.0, 0.0), _state(0.5, 1.0, 0.0)])


def test_state_copy_is_deep():
    state = _state(0.0, 1.0, 0.0, 1.0)
    clone = state.copy()
    clone.module_states[0].speed_mps = 5.0
    clone.pose.x_m = 9.0
    assert state.module_states[0].speed_mps == 1.0
    assert state.pose.x_m == 1.0
