from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from wheeltraj.errors import TrajectoryError
from wheeltraj.models.geometry import ChassisSpeeds
from wheeltraj.models.trajectory import Trajectory
from wheeltraj.utils.config_io import (
    DEFAULT_CONFIG,
    default_path_constraints,
    load_config,
    robot_config_from_dict,
)
from wheeltraj.utils.project_io import load_path, save_trajectory


def print_summary(trajectory: Trajectory, sample_period_s: float) -> None:
    states = trajectory.get_states()
    peak = max(s.linear_velocity_mps for s in states)
    total = trajectory.get_total_time()
    print(f"[wheeltraj] States: {len(states)}")
    print(f"[wheeltraj] Total time: {total:.3f} s")
    print(f"[wheeltraj] Peak velocity: {peak:.3f} m/s")
    print(f"[wheeltraj] Events: {len(trajectory.get_event_commands())}")
    if sample_period_s <= 0.0:
        return
    t = 0.0
    while t <= total + 1e-9:
        s = trajectory.sample(t)
        print(
            f"  t={s.time_s:7.3f}  x={s.pose.x_m:7.3f}  y={s.pose.y_m:7.3f}  "
            f"theta={s.pose.theta_rad:6.3f}  v={s.linear_velocity_mps:6.3f}  "
            f"a={s.linear_acceleration_mps2:6.3f}"
        )
        t += sample_period_s


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wheeltraj", description="Generate a time-parameterised trajectory for a path"
    )
    parser.add_argument("path", help="Path JSON file")
    parser.add_argument("--config", help="Robot config JSON file (defaults used if omitted)")
    parser.add_argument("--out", help="Write the generated trajectory JSON here")
    parser.add_argument(
        "--start-rotation",
        type=float,
        default=0.0,
        help="Starting field-relative rotation in radians",
    )
    parser.add_argument(
        "--sample-period",
        type=float,
        default=0.0,
        help="Print samples every N seconds (0 disables)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = load_config(args.config) if args.config else DEFAULT_CONFIG.copy()
        robot = robot_config_from_dict(cfg)
        path = load_path(args.path, default_path_constraints(cfg))
        trajectory = Trajectory.generate(path, ChassisSpeeds(), args.start_rotation, robot)
    except TrajectoryError as e:
        print(f"[wheeltraj] {e}", file=sys.stderr)
        return 1

    print_summary(trajectory, args.sample_period)
    if args.out:
        try:
            save_trajectory(trajectory, args.out)
        except OSError as e:
            print(f"[wheeltraj] Could not write {args.out}: {e}", file=sys.stderr)
            return 1
        print(f"[wheeltraj] Trajectory written to: {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
