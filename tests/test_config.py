import pytest

from tiltwatch.config import AppCfg, load_config, parse_config


def _write(tmp_path, text):
    p = tmp_path / "config.yaml"
    p.write_text(text, encoding="utf-8")
    return str(p)


def test_load_config(tmp_path):
    path = _write(tmp_path, """
monitor:
  detection_interval_sec: 30
  tilt_angle_threshold: 0.1
activity:
  mode: noise
  sampling_duration_ms: 500
  engine_noise_threshold: 0.8
actuator:
  address: 192.168.1.42
radio:
  backend: nmcli
sensor:
  mac: "F8:FE:92:31:12:E3"
state:
  path: /tmp/alarm.yaml
""")
    cfg = load_config(path)
    assert cfg.monitor.detection_interval_sec == 30
    assert cfg.monitor.tilt_angle_threshold == pytest.approx(0.1)
    assert cfg.monitor.alarm_ceiling_sec == 120.0
    assert cfg.activity.mode == "noise"
    assert cfg.activity.sampling_duration_ms == 500
    assert cfg.actuator.address == "192.168.1.42"
    assert cfg.actuator.port == 9999
    assert cfg.radio.backend == "nmcli"
    assert cfg.sensor.adapter == "hci0"
    assert cfg.state.path == "/tmp/alarm.yaml"


def test_numeric_strings_are_coerced():
    cfg = parse_config({
        "monitor": {"detection_interval_sec": "15", "tilt_angle_threshold": "0.2"},
        "activity": {"mode": "none", "engine_noise_threshold": "1.5"},
        "sensor": {"backend": "replay"},
    })
    assert cfg.monitor.detection_interval_sec == 15
    assert cfg.monitor.tilt_angle_threshold == pytest.approx(0.2)
    assert cfg.activity.engine_noise_threshold == pytest.approx(1.5)


def test_defaults_with_replay_sensor():
    cfg = parse_config({"sensor": {"backend": "replay", "replay_samples": [[0, 0, 9.8]]}})
    assert isinstance(cfg, AppCfg)
    assert cfg.activity.mode == "external"
    assert cfg.sensor.replay_samples == [[0, 0, 9.8]]


@pytest.mark.parametrize("raw", [
    {"monitor": {"detection_interval_sec": 0}},
    {"monitor": {"tilt_angle_threshold": -0.1}},
    {"activity": {"mode": "psychic"}},
    {"activity": {"sampling_duration_ms": 0}},
    {"activity": {"engine_noise_threshold": -1}},
    {"radio": {"backend": "carrier-pigeon"}},
])
def test_invalid_values_rejected(raw):
    raw.setdefault("sensor", {"backend": "replay"})
    with pytest.raises(ValueError):
        parse_config(raw)


def test_bt50_requires_mac():
    with pytest.raises(ValueError):
        parse_config({})
