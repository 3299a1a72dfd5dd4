"""Uniform scale-down of chassis commands that would saturate a wheel."""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

from wheeltraj.models.geometry import ChassisSpeeds
from wheeltraj.models.kinematics import DifferentialKinematics, HolonomicKinematics, ModuleState

# Commands within this relative margin of a limit count as on the limit
_REL_TOL = 1e-9


def desaturation_scale(
    speeds: ChassisSpeeds,
    kinematics: Union[HolonomicKinematics, DifferentialKinematics],
    max_module_speed_mps: float,
    max_translation_mps: Optional[float] = None,
    max_rotation_radps: Optional[float] = None,
) -> float:
    """Return the factor in [0, 1] that brings ``speeds`` inside every limit."""
    states = kinematics.to_module_states(speeds)
    real_max = max((abs(s.speed_mps) for s in states), default=0.0)

    scale = 1.0
    if real_max > max_module_speed_mps * (1.0 + _REL_TOL):
        scale = max_module_speed_mps / real_max

    if max_translation_mps is not None and max_translation_mps > 1e-8:
        translation_pct = speeds.translation_speed() / max_translation_mps
        if translation_pct > 1.0 + _REL_TOL:
            scale = min(scale, 1.0 / translation_pct)
    if max_rotation_radps is not None and max_rotation_radps > 1e-8:
        rotation_pct = abs(speeds.omega_radps) / max_rotation_radps
        if rotation_pct > 1.0 + _REL_TOL:
            scale = min(scale, 1.0 / rotation_pct)
    return scale


def desaturate(
    speeds: ChassisSpeeds,
    kinematics: Union[HolonomicKinematics, DifferentialKinematics],
    max_module_speed_mps: float,
    max_translation_mps: Optional[float] = None,
    max_rotation_radps: Optional[float] = None,
) -> ChassisSpeeds:
    """Scale vx, vy and omega by one common factor so no module exceeds its limit.

    The direction of travel and the ratio of rotation to translation are kept;
    only the magnitude of the command shrinks. Commands that already fit are
    returned unchanged, so applying this twice gives the same result as once.
    """
    scale = desaturation_scale(
        speeds, kinematics, max_module_speed_mps, max_translation_mps, max_rotation_radps
    )
    if scale >= 1.0:
        return ChassisSpeeds(speeds.vx_mps, speeds.vy_mps, speeds.omega_radps)
    return speeds.scaled(scale)


def desaturate_module_states(
    states: Sequence[ModuleState], max_module_speed_mps: float
) -> List[ModuleState]:
    real_max = max((abs(s.speed_mps) for s in states), default=0.0)
    if real_max <= max_module_speed_mps * (1.0 + _REL_TOL):
        return [ModuleState(s.speed_mps, s.angle_rad) for s in states]
    scale = max_module_speed_mps / real_max
    return [ModuleState(s.speed_mps * scale, s.angle_rad) for s in states]
