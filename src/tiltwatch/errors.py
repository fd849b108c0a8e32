from __future__ import annotations


class TiltwatchError(Exception):
    """Base class for failures raised inside a monitoring tick."""


class DegenerateVectorError(TiltwatchError):
    """A vector is too short to define a direction (|v|^2 below epsilon)."""


class EmptyWindowError(TiltwatchError):
    """A sample window holds no samples."""


class NetworkError(TiltwatchError):
    """The outlet command could not be sent."""


class RadioTimeoutError(TiltwatchError):
    """The radio did not associate within the allowed time."""


class SensorTimeoutError(TiltwatchError):
    """No accelerometer sample arrived within the allowed time."""
