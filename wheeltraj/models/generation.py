"""Time-parameterisation of a geometric path.

The build runs in four steps over one index-addressable list of states:

1. ``generate_states`` lays out poses, headings and per-point speed ceilings.
2. ``forward_accel_pass`` caps each velocity by what is reachable from the
   previous state.
3. ``reverse_accel_pass`` caps each velocity by what can still brake down to
   the next state's velocity.
4. ``finalize_states`` integrates timestamps and derives accelerations,
   chassis speeds and module states.

Every candidate velocity is also pushed through wheel-speed desaturation so no
state asks a module for more than it can deliver.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

from wheeltraj.models.desaturation import desaturation_scale
from wheeltraj.models.geometry import (
    ChassisSpeeds,
    Pose,
    cosine_interpolate,
    heading_between,
    shortest_angular_distance,
    wrap_angle_radians,
)
from wheeltraj.models.path_model import Path, PathConstraints
from wheeltraj.models.robot_config import RobotConfig
from wheeltraj.models.trajectory_state import SwerveModuleTrajectoryState, TrajectoryState

logger = logging.getLogger(__name__)

_EPS_DIST = 1e-9
_EPS_VEL = 1e-9


def next_rotation_target_index(path: Path, start_index: int) -> int:
    """Index of the first point at or after ``start_index`` carrying a rotation target.

    The last point of the path counts as the implicit target when none is found.
    """
    last = path.num_points() - 1
    for i in range(start_index, last):
        if path.get_point(i).rotation_target_rad is not None:
            return i
    return last


def _travel_heading(path: Path, index: int) -> Optional[float]:
    """Direction of travel at ``index``, or None when every point coincides."""
    p = path.get_point(index)
    for j in range(index + 1, path.num_points()):
        q = path.get_point(j)
        if math.hypot(q.x_m - p.x_m, q.y_m - p.y_m) > _EPS_DIST:
            return heading_between(p.x_m, p.y_m, q.x_m, q.y_m)
    for j in range(index - 1, -1, -1):
        q = path.get_point(j)
        if math.hypot(p.x_m - q.x_m, p.y_m - q.y_m) > _EPS_DIST:
            return heading_between(q.x_m, q.y_m, p.x_m, p.y_m)
    return None


def _effective_constraints(path: Path, index: int, config: RobotConfig) -> PathConstraints:
    """Zone limits clipped by the path's global limits and the robot's own limits."""
    zone = path.constraints_at(index)
    base = path.global_constraints
    angular_accel = min(zone.max_angular_acceleration_radps2, base.max_angular_acceleration_radps2)
    if config.max_angular_acceleration_radps2 is not None:
        angular_accel = min(angular_accel, config.max_angular_acceleration_radps2)
    return PathConstraints(
        max_velocity_mps=min(
            zone.max_velocity_mps, base.max_velocity_mps, config.max_module_speed_mps
        ),
        max_acceleration_mps2=min(
            zone.max_acceleration_mps2,
            base.max_acceleration_mps2,
            config.max_linear_acceleration_mps2(),
        ),
        max_angular_velocity_radps=min(
            zone.max_angular_velocity_radps, base.max_angular_velocity_radps
        ),
        max_angular_acceleration_radps2=angular_accel,
    )


def curvature_speed_bound(curvature: float, max_centripetal_accel_mps2: float) -> float:
    """Fastest speed that keeps v^2 * |k| within the centripetal limit."""
    if abs(curvature) < 1e-9:
        return math.inf
    return math.sqrt(max_centripetal_accel_mps2 / abs(curvature))


def generate_states(
    path: Path, starting_rotation_rad: float, config: RobotConfig
) -> List[TrajectoryState]:
    """Build one state per path point with pose, heading and speed ceiling.

    Velocities start at each point's ceiling; timing is left for the passes.
    """
    path.validate()
    n = path.num_points()
    states: List[TrajectoryState] = []

    prev_target_idx = 0
    prev_target_rot = float(starting_rotation_rad)
    next_target_idx = next_rotation_target_index(path, 0)
    next_target_rot = _target_or(path, next_target_idx, prev_target_rot)

    offsets = config.module_offsets()
    heading = float(starting_rotation_rad)

    for i in range(n):
        p = path.get_point(i)
        if i > next_target_idx:
            prev_target_idx = next_target_idx
            prev_target_rot = next_target_rot
            next_target_idx = next_rotation_target_index(path, i)
            next_target_rot = _target_or(path, next_target_idx, prev_target_rot)

        # Interpolate by arc length; point spacing is not uniform across segments
        d_prev = path.get_point(prev_target_idx).distance_m
        span = path.get_point(next_target_idx).distance_m - d_prev
        t = (p.distance_m - d_prev) / span if span > _EPS_DIST else 1.0
        t = 0.0 if t < 0.0 else 1.0 if t > 1.0 else t
        holonomic_rot = cosine_interpolate(prev_target_rot, next_target_rot, t)

        travel = _travel_heading(path, i)
        if travel is not None:
            heading = travel
        if config.is_holonomic:
            theta = holonomic_rot
        elif path.drive_reversed and travel is not None:
            theta = wrap_angle_radians(heading + math.pi)
        else:
            # No direction of travel: keep facing the starting rotation
            theta = heading

        constraints = _effective_constraints(path, i, config)
        ceiling = min(
            constraints.max_velocity_mps,
            curvature_speed_bound(p.curvature, float(config.max_centripetal_acceleration_mps2)),
        )

        state = TrajectoryState(
            pose=Pose(p.x_m, p.y_m, theta),
            curvature=p.curvature,
            heading_rad=heading,
            distance_m=p.distance_m,
            constraints=constraints,
            max_velocity_mps=ceiling,
            linear_velocity_mps=ceiling,
        )
        if i > 0:
            state.delta_pos_m = max(0.0, p.distance_m - path.get_point(i - 1).distance_m)

        c = math.cos(theta)
        s = math.sin(theta)
        for m, (ox, oy) in enumerate(offsets):
            module = SwerveModuleTrajectoryState(
                field_x_m=p.x_m + ox * c - oy * s,
                field_y_m=p.y_m + ox * s + oy * c,
            )
            if i > 0:
                prev_module = states[i - 1].module_states[m]
                module.delta_pos_m = math.hypot(
                    module.field_x_m - prev_module.field_x_m,
                    module.field_y_m - prev_module.field_y_m,
                )
            state.module_states.append(module)
        states.append(state)

    _assign_rotation_rates(states, config)
    _apply_angular_accel_ceilings(states)
    logger.debug("Laid out %d states over %.3f m", n, path.total_distance_m())
    return states


def _target_or(path: Path, index: int, fallback: float) -> float:
    target = path.get_point(index).rotation_target_rad
    return float(target) if target is not None else fallback


def _assign_rotation_rates(states: List[TrajectoryState], config: RobotConfig) -> None:
    last_rate = 0.0
    for i, state in enumerate(states):
        if not config.is_holonomic:
            # Tank drives turn with the path
            state.rotation_per_m = state.curvature
            continue
        if i + 1 < len(states) and states[i + 1].delta_pos_m > _EPS_DIST:
            nxt = states[i + 1]
            delta = shortest_angular_distance(nxt.pose.theta_rad, state.pose.theta_rad)
            last_rate = delta / nxt.delta_pos_m
        state.rotation_per_m = last_rate


def _segment_alpha(state: TrajectoryState, nxt: TrajectoryState) -> Optional[float]:
    limits = [
        s.constraints.max_angular_acceleration_radps2
        for s in (state, nxt)
        if s.constraints is not None
    ]
    return min(limits) if limits else None


def _segment_rotation_terms(state: TrajectoryState, nxt: TrajectoryState) -> Tuple[float, float]:
    """(|mean rotation per m|, |change in rotation per m per m|) over one segment."""
    mean_rate = abs(state.rotation_per_m + nxt.rotation_per_m) / 2.0
    rate_slope = abs(nxt.rotation_per_m - state.rotation_per_m) / nxt.delta_pos_m
    return mean_rate, rate_slope


def _apply_angular_accel_ceilings(states: List[TrajectoryState]) -> None:
    """Cap speed where the heading rate changes along the path.

    Over a segment, d omega / dt = r * a + v^2 * dr/ds; keeping v^2 * |dr/ds|
    within the angular acceleration limit at both ends leaves the passes a
    feasible budget for the r * a term.
    """
    for state, nxt in zip(states, states[1:]):
        alpha = _segment_alpha(state, nxt)
        if alpha is None or nxt.delta_pos_m <= _EPS_DIST:
            continue
        _, rate_slope = _segment_rotation_terms(state, nxt)
        if rate_slope < 1e-12:
            continue
        ceiling = math.sqrt(alpha / rate_slope)
        for s in (state, nxt):
            s.max_velocity_mps = min(s.max_velocity_mps, ceiling)
            s.linear_velocity_mps = min(s.linear_velocity_mps, ceiling)


def angular_accel_velocity(
    from_velocity_mps: float, state: TrajectoryState, nxt: TrajectoryState
) -> float:
    """Fastest speed at the far end of a segment that keeps |d omega / dt| within limits.

    With trapezoidal timing the segment's angular acceleration is exactly
    ``mean_rate * a + v_mean^2 * rate_slope``; the bound is symmetric in the
    two end speeds, so the same root serves both passes.
    """
    alpha = _segment_alpha(state, nxt)
    ds = nxt.delta_pos_m
    if alpha is None or ds <= _EPS_DIST:
        return math.inf
    mean_rate, rate_slope = _segment_rotation_terms(state, nxt)
    v0 = from_velocity_mps
    a = mean_rate / (2.0 * ds) + rate_slope / 4.0
    if a < 1e-12:
        return math.inf
    b = rate_slope * v0 / 2.0
    c = rate_slope * v0 * v0 / 4.0 - mean_rate * v0 * v0 / (2.0 * ds) - alpha
    disc = b * b - 4.0 * a * c
    if disc < 0.0:
        return v0
    return max(0.0, (-b + math.sqrt(disc)) / (2.0 * a))


def field_speeds_at(state: TrajectoryState, velocity_mps: float) -> ChassisSpeeds:
    return ChassisSpeeds(
        vx_mps=velocity_mps * math.cos(state.heading_rad),
        vy_mps=velocity_mps * math.sin(state.heading_rad),
        omega_radps=velocity_mps * state.rotation_per_m,
    )


def robot_speeds_at(state: TrajectoryState, velocity_mps: float) -> ChassisSpeeds:
    return ChassisSpeeds.from_field_relative(
        field_speeds_at(state, velocity_mps), state.pose.theta_rad
    )


def _wheel_feasible_velocity(state: TrajectoryState, velocity_mps: float, config: RobotConfig) -> float:
    if velocity_mps <= _EPS_VEL:
        return max(0.0, velocity_mps)
    constraints = state.constraints
    scale = desaturation_scale(
        robot_speeds_at(state, velocity_mps),
        config.kinematics,
        config.max_module_speed_mps,
        state.max_velocity_mps,
        constraints.max_angular_velocity_radps if constraints is not None else None,
    )
    return velocity_mps * scale


def _max_tangential_accel(
    from_velocity_mps: float, state: TrajectoryState, config: RobotConfig
) -> float:
    constraints = state.constraints
    if constraints is not None:
        max_accel = constraints.max_acceleration_mps2
    else:
        max_accel = config.max_linear_acceleration_mps2()
    lateral = from_velocity_mps * from_velocity_mps * abs(state.curvature)
    return config.available_acceleration(lateral, max_accel)


def reachable_velocity(
    from_velocity_mps: float, delta_pos_m: float, state: TrajectoryState, config: RobotConfig
) -> float:
    """v^2 = v0^2 + 2 a ds with ``a`` from the shared tangential/lateral budget."""
    if delta_pos_m <= _EPS_DIST:
        return from_velocity_mps
    accel = _max_tangential_accel(from_velocity_mps, state, config)
    return math.sqrt(from_velocity_mps * from_velocity_mps + 2.0 * accel * delta_pos_m)


def forward_accel_pass(
    states: List[TrajectoryState], config: RobotConfig, starting_velocity_mps: float
) -> None:
    first = states[0]
    start = max(0.0, float(starting_velocity_mps))
    if start > first.max_velocity_mps + 1e-9:
        logger.warning(
            "Starting velocity %.3f m/s exceeds the first state's ceiling %.3f m/s; clamping",
            start,
            first.max_velocity_mps,
        )
    first.linear_velocity_mps = _wheel_feasible_velocity(
        first, min(start, first.max_velocity_mps), config
    )

    for i in range(1, len(states)):
        prev = states[i - 1]
        state = states[i]
        v = reachable_velocity(prev.linear_velocity_mps, state.delta_pos_m, state, config)
        v = min(v, angular_accel_velocity(prev.linear_velocity_mps, prev, state))
        v = _wheel_feasible_velocity(state, min(v, state.max_velocity_mps), config)
        state.linear_velocity_mps = min(state.linear_velocity_mps, v)


def reverse_accel_pass(
    states: List[TrajectoryState], config: RobotConfig, end_velocity_mps: float = 0.0
) -> None:
    last = states[-1]
    if end_velocity_mps > last.linear_velocity_mps + 1e-9:
        logger.warning(
            "Requested end velocity %.3f m/s is not reachable; ending at %.3f m/s",
            end_velocity_mps,
            last.linear_velocity_mps,
        )
    last.linear_velocity_mps = min(last.linear_velocity_mps, max(0.0, float(end_velocity_mps)))

    for i in range(len(states) - 2, -1, -1):
        state = states[i]
        nxt = states[i + 1]
        v = reachable_velocity(nxt.linear_velocity_mps, nxt.delta_pos_m, state, config)
        v = min(v, angular_accel_velocity(nxt.linear_velocity_mps, state, nxt))
        state.linear_velocity_mps = min(state.linear_velocity_mps, v)


def finalize_states(states: List[TrajectoryState], config: RobotConfig) -> None:
    """Timestamp the states and derive accelerations, chassis and module speeds."""
    states[0].time_s = 0.0
    for i in range(1, len(states)):
        prev = states[i - 1]
        state = states[i]
        sum_v = prev.linear_velocity_mps + state.linear_velocity_mps
        if state.delta_pos_m <= _EPS_DIST or sum_v < 1e-6:
            dt = 0.0
        else:
            # Trapezoidal integration; exact under constant acceleration
            dt = 2.0 * state.delta_pos_m / sum_v
        state.time_s = prev.time_s + dt

    unit_modules = [_unit_module_states(state, config) for state in states]
    for state, unit in zip(states, unit_modules):
        state.chassis_speeds = robot_speeds_at(state, state.linear_velocity_mps)
        for module, (unit_speed, angle) in zip(state.module_states, unit):
            module.speed_mps = unit_speed * state.linear_velocity_mps
            module.angle_rad = angle

    last_accel = 0.0
    last_module_accels = [0.0] * config.num_modules
    for i, state in enumerate(states):
        if i == len(states) - 1:
            state.linear_acceleration_mps2 = 0.0
            for module in state.module_states:
                module.acceleration_mps2 = 0.0
            break
        nxt = states[i + 1]
        dt = nxt.time_s - state.time_s
        if dt > 1e-12:
            last_accel = (nxt.linear_velocity_mps - state.linear_velocity_mps) / dt
            last_module_accels = [
                (b.speed_mps - a.speed_mps) / dt
                for a, b in zip(state.module_states, nxt.module_states)
            ]
        # Coincident points carry the previous acceleration forward
        state.linear_acceleration_mps2 = last_accel
        for module, accel in zip(state.module_states, last_module_accels):
            module.acceleration_mps2 = accel


def _unit_module_states(state: TrajectoryState, config: RobotConfig) -> List[Tuple[float, float]]:
    """Module (speed per m/s of travel, angle); angles stay defined at rest."""
    unit = config.to_module_states(robot_speeds_at(state, 1.0))
    return [(m.speed_mps, m.angle_rad) for m in unit]


def starting_velocity_along_path(
    starting_speeds: ChassisSpeeds, starting_rotation_rad: float, first: TrajectoryState
) -> float:
    """Project robot-relative starting speeds onto the path tangent."""
    field = ChassisSpeeds.to_field_relative(starting_speeds, starting_rotation_rad)
    along = field.vx_mps * math.cos(first.heading_rad) + field.vy_mps * math.sin(first.heading_rad)
    return max(0.0, along)


def build_states(
    path: Path,
    starting_speeds: Optional[ChassisSpeeds],
    starting_rotation_rad: float,
    config: RobotConfig,
) -> List[TrajectoryState]:
    states = generate_states(path, starting_rotation_rad, config)
    start_v = starting_velocity_along_path(
        starting_speeds or ChassisSpeeds(), starting_rotation_rad, states[0]
    )
    forward_accel_pass(states, config, start_v)
    reverse_accel_pass(states, config, path.end_velocity_mps)
    finalize_states(states, config)
    logger.debug(
        "Profiled %d states: %.3f s, peak %.3f m/s",
        len(states),
        states[-1].time_s,
        max(s.linear_velocity_mps for s in states),
    )
    return states
