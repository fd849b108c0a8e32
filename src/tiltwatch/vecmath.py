from __future__ import annotations
import math
from typing import NamedTuple, Sequence

from .errors import DegenerateVectorError, EmptyWindowError

# squared magnitude under which a vector has no usable direction
EPSILON = 1e-12


class Vector3(NamedTuple):
    x: float
    y: float
    z: float


def dot(u: Sequence[float], v: Sequence[float]) -> float:
    return u[0]*v[0] + u[1]*v[1] + u[2]*v[2]


def angle_between(u: Sequence[float], v: Sequence[float]) -> float:
    """Angle between two vectors in radians, in [0, pi].

    cos(theta) is recovered from cos^2(theta) and re-signed with the dot
    product, so obtuse angles stay obtuse.
    """
    u_mag_sq = dot(u, u)
    v_mag_sq = dot(v, v)
    if u_mag_sq < EPSILON or v_mag_sq < EPSILON:
        raise DegenerateVectorError(
            f"cannot take angle of degenerate vector (|u|^2={u_mag_sq:g}, |v|^2={v_mag_sq:g})"
        )
    d = dot(u, v)
    cos_sq = min(1.0, (d * d) / (u_mag_sq * v_mag_sq))
    cos_theta = math.copysign(math.sqrt(cos_sq), d)
    return math.acos(cos_theta)


def peak_to_peak(samples: Sequence[Sequence[float]], axis: int) -> float:
    """max - min of one axis (0=x, 1=y, 2=z) over a non-empty window."""
    if axis not in (0, 1, 2):
        raise ValueError(f"axis must be 0, 1 or 2, got {axis!r}")
    if not samples:
        raise EmptyWindowError("peak-to-peak of an empty sample window")
    values = [s[axis] for s in samples]
    return float(max(values) - min(values))


def peak_to_peak_max(samples: Sequence[Sequence[float]]) -> float:
    """Largest per-axis peak-to-peak amplitude of the window."""
    return max(peak_to_peak(samples, axis) for axis in (0, 1, 2))


def format_vector(v: Sequence[float]) -> str:
    return "[%.2f,%.2f,%.2f]" % (v[0], v[1], v[2])
