import math

import pytest

from wheeltraj.models.desaturation import desaturate, desaturate_module_states, desaturation_scale
from wheeltraj.models.geometry import ChassisSpeeds
from wheeltraj.models.kinematics import DifferentialKinematics, HolonomicKinematics, ModuleState

# Four modules 0.5 m from the centre on the diagonals
_A = 0.5 / math.sqrt(2.0)
DIAGONAL_MODULES = [(_A, _A), (_A, -_A), (-_A, _A), (-_A, -_A)]


def _max_module_speed(kin, speeds):
    return max(abs(s.speed_mps) for s in kin.to_module_states(speeds))


def test_spinning_while_driving_is_scaled_uniformly():
    kin = HolonomicKinematics(DIAGONAL_MODULES)
    command = ChassisSpeeds(3.0, 0.0, 10.0)
    assert _max_module_speed(kin, command) > 4.0

    result = desaturate(command, kin, 4.0)

    assert _max_module_speed(kin, result) == pytest.approx(4.0, rel=1e-9)
    assert result.vy_mps == pytest.approx(0.0, abs=1e-12)
    assert result.vx_mps / result.omega_radps == pytest.approx(0.3)
    assert result.vx_mps < 3.0


def test_desaturate_is_idempotent():
    kin = HolonomicKinematics(DIAGONAL_MODULES)
    once = desaturate(ChassisSpeeds(3.0, 1.0, 10.0), kin, 4.0)
    twice = desaturate(once, kin, 4.0)
    assert twice == once


def test_command_within_limits_is_unchanged():
    kin = HolonomicKinematics(DIAGONAL_MODULES)
    command = ChassisSpeeds(1.0, 0.5, 0.5)
    result = desaturate(command, kin, 4.0)
    assert result == command
    assert result is not command


def test_translation_and_rotation_caps():
    kin = HolonomicKinematics(DIAGONAL_MODULES)
    capped = desaturate(ChassisSpeeds(3.0, 0.0, 0.0), kin, 10.0, max_translation_mps=2.0)
    assert capped.vx_mps == pytest.approx(2.0)

    capped = desaturate(ChassisSpeeds(1.0, 0.0, 4.0), kin, 10.0, max_rotation_radps=2.0)
    assert capped.omega_radps == pytest.approx(2.0)
    assert capped.vx_mps == pytest.approx(0.5)


def test_zero_command_stays_zero():
    kin = HolonomicKinematics(DIAGONAL_MODULES)
    assert desaturation_scale(ChassisSpeeds(), kin, 4.0) == 1.0
    assert desaturate(ChassisSpeeds(), kin, 4.0) == ChassisSpeeds()


def test_differential_outer_wheel_is_limited():
    kin = DifferentialKinematics(0.6)
    result = desaturate(ChassisSpeeds(3.0, 0.0, 10.0), kin, 4.0)
    left, right = kin.to_module_states(result)
    assert right.speed_mps == pytest.approx(4.0)
    assert abs(left.speed_mps) <= 4.0
    assert result.vx_mps == pytest.approx(2.0)
    assert result.omega_radps == pytest.approx(20.0 / 3.0)


def test_desaturate_module_states():
    states = [ModuleState(6.0, 0.1), ModuleState(-3.0, 0.2)]
    scaled = desaturate_module_states(states, 4.0)
    assert scaled[0].speed_mps == pytest.approx(4.0)
    assert scaled[1].speed_mps == pytest.approx(-2.0)
    assert [s.angle_rad for s in scaled] == [0.1, 0.2]

    unchanged = desaturate_module_states(scaled, 4.0)
    assert unchanged == scaled
