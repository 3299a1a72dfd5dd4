import json
import math

import pytest

from wheeltraj.errors import InvalidPathError, TrajectoryError
from wheeltraj.models.geometry import ChassisSpeeds
from wheeltraj.models.path_builder import PathBuilder
from wheeltraj.models.path_model import PathConstraints
from wheeltraj.models.trajectory import Trajectory
from wheeltraj.utils.project_io import (
    deserialize_path,
    deserialize_trajectory,
    load_path,
    load_trajectory,
    save_path,
    save_trajectory,
    serialize_path,
    serialize_trajectory,
)

ELEMENTS = {
    "constraints": {
        "max_velocity_meters_per_sec": 3.0,
        "max_acceleration_meters_per_sec2": 2.0,
    },
    "end_velocity_meters_per_sec": 0.5,
    "path_elements": [
        {"type": "line", "length_meters": 2.0},
        {"type": "event_trigger", "lib_key": "score"},
        {
            "type": "arc",
            "radius_meters": 1.0,
            "sweep_radians": math.pi / 2.0,
            "constraints": {"max_velocity_meters_per_sec": 1.0},
        },
        {"type": "rotation", "rotation_radians": 1.0},
        {"type": "teleport"},
    ],
}


def test_path_elements_are_laid_out():
    path = deserialize_path(ELEMENTS)
    assert path.global_constraints.max_velocity_mps == 3.0
    # Unspecified keys fall back to the defaults
    assert path.global_constraints.max_angular_velocity_radps == pytest.approx(2.0 * math.pi)
    assert path.end_velocity_mps == 0.5

    end = path.points[-1]
    assert end.x_m == pytest.approx(3.0)
    assert end.y_m == pytest.approx(1.0)
    assert end.curvature == pytest.approx(1.0)
    assert end.rotation_target_rad == 1.0
    assert end.constraints.max_velocity_mps == 1.0
    # Zone fields left out inherit from the global block
    assert end.constraints.max_acceleration_mps2 == 2.0
    assert path.get_point(40).constraints is None

    assert len(path.event_markers) == 1
    assert path.event_markers[0].handle == "score"
    assert path.event_markers[0].distance_m == pytest.approx(2.0)


def test_default_constraints_used_when_block_missing():
    fallback = PathConstraints(max_velocity_mps=1.5)
    path = deserialize_path({"path_elements": [{"type": "line", "length_meters": 1.0}]}, fallback)
    assert path.global_constraints is fallback


def test_point_list_round_trip(tmp_path):
    builder = PathBuilder(spacing_m=0.25).line(1.0).rotation_target(0.5).event(7)
    with builder.constraint_zone(PathConstraints(max_velocity_mps=1.0)):
        builder.arc(1.0, -1.0)
    path = builder.build(PathConstraints(2.0, 2.0), end_velocity_mps=0.25, drive_reversed=True)

    file_path = tmp_path / "path.json"
    save_path(path, str(file_path))
    loaded = load_path(str(file_path))

    assert loaded.num_points() == path.num_points()
    assert loaded.drive_reversed is True
    assert loaded.end_velocity_mps == 0.25
    assert loaded.event_markers[0].handle == 7
    assert loaded.get_point(4).rotation_target_rad == 0.5
    assert loaded.points[-1].constraints.max_velocity_mps == pytest.approx(1.0)
    for a, b in zip(loaded.points, path.points):
        assert a.x_m == pytest.approx(b.x_m)
        assert a.y_m == pytest.approx(b.y_m)
        assert a.curvature == pytest.approx(b.curvature)
    assert serialize_path(loaded)["points"][0] == {
        "x_meters": 0.0,
        "y_meters": 0.0,
        "distance_meters": 0.0,
        "curvature": 0.0,
    }


@pytest.mark.parametrize(
    "data",
    [
        [],
        {},
        {"points": []},
        {"points": [{"x_meters": 0.0, "y_meters": 0.0}]},
        {"points": [{"x_meters": 0.0, "y_meters": 0.0, "distance_meters": "far"}]},
        {
            "points": [
                {"x_meters": 0.0, "y_meters": 0.0, "distance_meters": 1.0},
                {"x_meters": 1.0, "y_meters": 0.0, "distance_meters": 0.0},
            ]
        },
        {"constraints": {"max_velocity_meters_per_sec": -1.0}, "points": []},
        {"constraints": "fast", "path_elements": []},
        {"path_elements": [{"type": "line"}]},
        {"path_elements": [{"type": "line", "length_meters": 1.0}], "end_velocity_meters_per_sec": "x"},
        {"path_elements": [{"type": "line", "length_meters": 1.0}], "point_spacing_meters": 0.0},
    ],
)
def test_malformed_paths_raise(data):
    with pytest.raises(InvalidPathError):
        deserialize_path(data)


def test_unreadable_path_file(tmp_path):
    with pytest.raises(InvalidPathError):
        load_path(str(tmp_path / "nope.json"))


def test_trajectory_file_round_trip(tmp_path, swerve_config, limits):
    path = PathBuilder().line(2.0).event("score").arc(1.0, 1.0).build(limits)
    traj = Trajectory.generate(path, ChassisSpeeds(), 0.0, swerve_config)

    file_path = tmp_path / "traj.json"
    save_trajectory(traj, str(file_path))
    loaded = load_trajectory(str(file_path))

    assert len(loaded) == len(traj)
    assert loaded.get_total_time() == pytest.approx(traj.get_total_time())
    assert loaded.get_event_commands() == traj.get_event_commands()
    t = 0.37 * traj.get_total_time()
    original = traj.sample(t)
    restored = loaded.sample(t)
    assert restored.pose.x_m == pytest.approx(original.pose.x_m)
    assert restored.pose.y_m == pytest.approx(original.pose.y_m)
    assert restored.linear_velocity_mps == pytest.approx(original.linear_velocity_mps)
    assert restored.module_states[2].speed_mps == pytest.approx(original.module_states[2].speed_mps)

    data = serialize_trajectory(traj)
    assert json.loads(json.dumps(data))["total_time_seconds"] == pytest.approx(traj.get_total_time())


@pytest.mark.parametrize(
    "data",
    [
        None,
        {"states": "lots"},
        {"states": []},
        {"states": [{"x_meters": 0.0, "y_meters": 0.0}]},
        {"states": [
            {"time_seconds": 1.0, "x_meters": 0.0, "y_meters": 0.0},
            {"time_seconds": 0.0, "x_meters": 1.0, "y_meters": 0.0},
        ]},
        {"states": [1, 2]},
    ],
)
def test_malformed_trajectories_raise(data):
    with pytest.raises(TrajectoryError):
        deserialize_trajectory(data)
