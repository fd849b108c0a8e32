from __future__ import annotations
import struct
from typing import Iterator, Optional

from ..vecmath import Vector3

# WitMotion serial-protocol acceleration frame, also relayed over BLE notify:
# 0x55 0x51 AxL AxH AyL AyH AzL AzH TL TH SUM  (11 bytes)
_HDR = 0x55
_FLAG_ACC = 0x51
_FRAME_LEN = 11
_RANGE_G = 16.0
STANDARD_GRAVITY = 9.80665


def _checksum_ok(frame: bytes) -> bool:
    return (sum(frame[:_FRAME_LEN - 1]) & 0xFF) == frame[_FRAME_LEN - 1]


def parse_5551(frame: bytes) -> Optional[Vector3]:
    """Parse one acceleration frame into m/s^2.

    Returns None when the header, length or checksum does not match.
    Axis scaling: s16 / 32768 * 16 g.
    """
    if len(frame) < _FRAME_LEN:
        return None
    b = frame[:_FRAME_LEN]
    if b[0] != _HDR or b[1] != _FLAG_ACC:
        return None
    if not _checksum_ok(b):
        return None
    ax, ay, az = struct.unpack_from('<hhh', b, 2)
    scale = _RANGE_G * STANDARD_GRAVITY / 32768.0
    return Vector3(ax * scale, ay * scale, az * scale)


def iter_frames(payload: bytes) -> Iterator[bytes]:
    """Split a notification into 11-byte frames, resyncing on the 0x55 header."""
    i = 0
    n = len(payload)
    while i + _FRAME_LEN <= n:
        if payload[i] != _HDR:
            i += 1
            continue
        yield payload[i:i + _FRAME_LEN]
        i += _FRAME_LEN


def parse_accel(payload: bytes) -> Optional[Vector3]:
    """Last valid acceleration vector in a notification payload, if any."""
    last = None
    for frame in iter_frames(payload):
        v = parse_5551(frame)
        if v is not None:
            last = v
    return last
