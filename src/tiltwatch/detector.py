from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .sampling import SampleSource, acquire
from .errors import DegenerateVectorError
from .vecmath import EPSILON, Vector3, angle_between, dot


class DriftEvent(str, Enum):
    CALIBRATED = "calibrated"
    DRIFT_WITHIN_BOUNDS = "drift_within_bounds"
    DRIFT_EXCEEDED = "drift_exceeded"


@dataclass(frozen=True)
class DriftReading:
    event: DriftEvent
    angle: float = 0.0


class DriftDetector:
    """Tilt drift of each sample against a gravity reference.

    The first sample seen without a reference becomes the reference. Later
    samples are compared by angle (radians) against tilt_threshold; reaching
    the threshold counts as exceeded.
    """
    def __init__(self, tilt_threshold: float, reference: Optional[Vector3] = None):
        if tilt_threshold < 0:
            raise ValueError("tilt_threshold must be >= 0")
        self.tilt_threshold = tilt_threshold
        self._reference = reference

    @property
    def reference(self) -> Optional[Vector3]:
        return self._reference

    def clear(self):
        self._reference = None

    def restore(self, reference: Optional[Vector3]):
        self._reference = Vector3(*reference) if reference is not None else None

    def observe(self, sample: Vector3) -> DriftReading:
        if self._reference is None:
            # a zero vector has no direction and cannot serve as gravity
            if dot(sample, sample) < EPSILON:
                raise DegenerateVectorError(f"refusing degenerate reference {tuple(sample)}")
            self._reference = Vector3(*sample)
            return DriftReading(DriftEvent.CALIBRATED)
        angle = angle_between(self._reference, sample)
        if angle >= self.tilt_threshold:
            return DriftReading(DriftEvent.DRIFT_EXCEEDED, angle)
        return DriftReading(DriftEvent.DRIFT_WITHIN_BOUNDS, angle)


async def read_sample(source: SampleSource, timeout: Optional[float] = None) -> Vector3:
    """One fresh sample; the subscription only lives for this read."""
    async with acquire(source) as bridge:
        return await bridge.get(timeout)
