from __future__ import annotations

import bisect
import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from wheeltraj.errors import TrajectoryError
from wheeltraj.models.generation import build_states
from wheeltraj.models.geometry import ChassisSpeeds, Pose
from wheeltraj.models.path_model import Path
from wheeltraj.models.robot_config import RobotConfig
from wheeltraj.models.trajectory_state import TrajectoryState

logger = logging.getLogger(__name__)

EventCommand = Tuple[float, Any]


class Trajectory:
    """A finished, time-ordered sequence of states plus timestamped event handles.

    Instances are not modified after construction (``get_states`` hands out the
    underlying list for callers that post-process on purpose), so several
    readers may ``sample`` the same trajectory concurrently.
    """

    def __init__(
        self,
        states: Sequence[TrajectoryState],
        event_commands: Optional[Iterable[EventCommand]] = None,
    ):
        if not states:
            raise TrajectoryError("A trajectory needs at least one state")
        self._states: List[TrajectoryState] = list(states)
        self._event_commands: List[EventCommand] = [
            (float(t), handle) for t, handle in (event_commands or [])
        ]
        self._times: List[float] = [s.time_s for s in self._states]
        if any(b < a for a, b in zip(self._times, self._times[1:])):
            raise TrajectoryError("State timestamps must be non-decreasing")

    @classmethod
    def generate(
        cls,
        path: Path,
        starting_speeds: Optional[ChassisSpeeds],
        starting_rotation_rad: float,
        config: RobotConfig,
    ) -> Trajectory:
        """Profile ``path`` for the robot described by ``config``.

        ``starting_speeds`` are robot-relative; ``starting_rotation_rad`` is the
        robot's field-relative heading when the trajectory begins.
        """
        states = build_states(path, starting_speeds, starting_rotation_rad, config)
        events = _timestamp_events(path, states)
        return cls(states, events)

    def get_event_commands(self) -> List[EventCommand]:
        return list(self._event_commands)

    def get_states(self) -> List[TrajectoryState]:
        return self._states

    def get_state(self, index: int) -> TrajectoryState:
        return self._states[index]

    def get_initial_state(self) -> TrajectoryState:
        return self._states[0]

    def get_end_state(self) -> TrajectoryState:
        return self._states[-1]

    def get_total_time(self) -> float:
        return self.get_end_state().time_s

    def get_initial_pose(self) -> Pose:
        return self.get_initial_state().pose

    def sample(self, time_s: float) -> TrajectoryState:
        """Return a new state for ``time_s``, clamped to the trajectory's span."""
        if time_s < self._times[0]:
            return self._states[0].copy()
        if time_s >= self._times[-1]:
            return self._states[-1].copy()

        # First state whose time is >= time_s
        high = bisect.bisect_left(self._times, time_s)
        if self._times[high] == time_s:
            # Coincident points share a timestamp; the last of them is where the robot settles
            return self._states[bisect.bisect_right(self._times, time_s) - 1].copy()
        low = high - 1
        prev = self._states[low]
        nxt = self._states[high]
        span = nxt.time_s - prev.time_s
        if span <= 0.0:
            return nxt.copy()
        return prev.interpolate(nxt, (time_s - prev.time_s) / span)

    def __len__(self) -> int:
        return len(self._states)


def _timestamp_events(path: Path, states: List[TrajectoryState]) -> List[EventCommand]:
    distances = [s.distance_m for s in states]
    events: List[EventCommand] = []
    for marker in path.event_markers:
        idx = bisect.bisect_left(distances, marker.distance_m - 1e-9)
        if idx >= len(states):
            logger.warning(
                "Event marker at %.3f m lies past the end of the path; firing at the end",
                marker.distance_m,
            )
            idx = len(states) - 1
        events.append((states[idx].time_s, marker.handle))
    events.sort(key=lambda e: e[0])
    return events
