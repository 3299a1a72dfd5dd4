"""Exceptions raised while building trajectories."""

from __future__ import annotations


class TrajectoryError(ValueError):
    """Base class for construction-time failures."""


class InvalidPathError(TrajectoryError):
    """The path point sequence is empty, unordered, or otherwise malformed."""


class InvalidRobotConfigError(TrajectoryError):
    """A robot configuration carries a physically meaningless limit or layout."""
