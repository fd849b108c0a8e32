import math

import pytest

from tiltwatch.errors import DegenerateVectorError, EmptyWindowError
from tiltwatch.vecmath import Vector3, angle_between, format_vector, peak_to_peak, peak_to_peak_max


def test_angle_same_and_opposite():
    u = Vector3(0.3, -1.2, 9.7)
    assert angle_between(u, u) == pytest.approx(0.0, abs=1e-6)
    assert angle_between(u, Vector3(-u.x, -u.y, -u.z)) == pytest.approx(math.pi, abs=1e-6)


def test_angle_symmetric():
    u = Vector3(1.0, 2.0, 3.0)
    v = Vector3(-2.0, 0.5, 1.0)
    assert angle_between(u, v) == angle_between(v, u)


def test_angle_keeps_obtuse_sign():
    # 135 degrees must not fold back to 45
    assert math.degrees(angle_between((1, 0, 0), (-1, 1, 0))) == pytest.approx(135.0)
    assert math.degrees(angle_between((1, 0, 0), (1, 1, 0))) == pytest.approx(45.0)


def test_gravity_vs_sideways_is_right_angle():
    assert angle_between((0, 0, 9.8), (9.8, 0, 0)) == pytest.approx(math.pi / 2)
    assert angle_between((0, 0, 9.8), (0, 0, 9.8)) == pytest.approx(0.0, abs=1e-6)


def test_degenerate_vector_raises():
    with pytest.raises(DegenerateVectorError):
        angle_between((0, 0, 0), (0, 0, 9.8))
    with pytest.raises(DegenerateVectorError):
        angle_between((0, 0, 9.8), (1e-9, 0, 0))


def test_peak_to_peak():
    window = [(0, 0, 0), (1, 0, 0), (0, 2, 0)]
    assert peak_to_peak(window, 0) == 1
    assert peak_to_peak(window, 1) == 2
    assert peak_to_peak(window, 2) == 0
    assert peak_to_peak_max(window) == 2


def test_peak_to_peak_empty_window():
    with pytest.raises(EmptyWindowError):
        peak_to_peak_max([])
    with pytest.raises(EmptyWindowError):
        peak_to_peak([], 0)


def test_peak_to_peak_bad_axis():
    with pytest.raises(ValueError):
        peak_to_peak([(0, 0, 0)], 3)


def test_format_vector():
    assert format_vector((0, -1.234, 9.8)) == "[0.00,-1.23,9.80]"
