import struct

import pytest

from tiltwatch.ble.wtvb_parse import STANDARD_GRAVITY, iter_frames, parse_5551, parse_accel


def accel_frame(ax, ay, az, temp=2500):
    body = bytes([0x55, 0x51]) + struct.pack('<hhhh', ax, ay, az, temp)
    return body + bytes([sum(body) & 0xFF])


def test_parse_5551_scaling():
    # 2048 counts = 1 g on the +-16 g range
    v = parse_5551(accel_frame(0, -2048, 2048))
    assert v is not None
    assert v.x == pytest.approx(0.0)
    assert v.y == pytest.approx(-STANDARD_GRAVITY)
    assert v.z == pytest.approx(STANDARD_GRAVITY)


def test_parse_5551_rejects_bad_checksum():
    frame = bytearray(accel_frame(0, 0, 2048))
    frame[-1] ^= 0xFF
    assert parse_5551(bytes(frame)) is None


def test_parse_5551_rejects_other_frames():
    assert parse_5551(bytes([0x55, 0x52]) + b"\x00" * 9) is None
    assert parse_5551(b"\x55\x51\x00") is None


def test_parse_accel_takes_last_valid_frame():
    gyro = bytes([0x55, 0x52]) + b"\x00" * 9
    payload = b"\x00\x13" + accel_frame(2048, 0, 0) + gyro + accel_frame(0, 0, 2048)
    assert len(list(iter_frames(payload))) == 3
    v = parse_accel(payload)
    assert v.z == pytest.approx(STANDARD_GRAVITY)
    assert v.x == pytest.approx(0.0)


def test_parse_accel_none_without_frames():
    assert parse_accel(b"") is None
    assert parse_accel(b"\x01\x02\x03") is None


def test_bt50_notification_reaches_listeners():
    from tiltwatch.ble.witmotion_bt50 import Bt50Accelerometer
    acc = Bt50Accelerometer("hci0", "F8:FE:92:31:12:E3")
    got = []
    acc.add_listener(got.append)
    acc._on_notify(None, bytearray(accel_frame(0, 0, 2048)))
    acc._on_notify(None, bytearray(b"\x55\x52" + b"\x00" * 9))
    assert len(got) == 1
    assert got[0].z == pytest.approx(STANDARD_GRAVITY)
