from __future__ import annotations
import yaml
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from .activity import POWER_SUPPLY_GLOB
from .ble.witmotion_bt50 import DEFAULT_NOTIFY_UUID
from .net.outlet import BROADCAST_ADDR, OUTLET_PORT

ACTIVITY_MODES = ("none", "external", "noise")
RADIO_BACKENDS = ("none", "nmcli")
SENSOR_BACKENDS = ("bt50", "replay")

@dataclass
class MonitorCfg:
    detection_interval_sec: int = 10
    # radians; 0.087 ~ 5 degrees
    tilt_angle_threshold: float = 0.087
    # 0 runs until stopped
    work_duration_sec: int = 0
    alarm_ceiling_sec: float = 120.0
    # bound on waiting for one accelerometer sample
    sample_timeout_sec: float = 5.0

@dataclass
class ActivityCfg:
    # none: angle only, external: power-supply signal, noise: vibration analysis
    mode: str = "external"
    sampling_duration_ms: int = 1000
    engine_noise_threshold: float = 0.5
    power_supply_glob: str = POWER_SUPPLY_GLOB

@dataclass
class ActuatorCfg:
    address: str = BROADCAST_ADDR
    port: int = OUTLET_PORT

@dataclass
class RadioCfg:
    backend: str = "none"
    assoc_timeout_sec: float = 15.0
    settle_sec: float = 1.0
    pre_off_delay_sec: float = 0.5

@dataclass
class SensorCfg:
    backend: str = "bt50"
    adapter: str = "hci0"
    mac: str = ""
    notify_uuid: str = DEFAULT_NOTIFY_UUID
    # replay backend: recorded [x, y, z] samples and their rate
    replay_samples: Optional[List[List[float]]] = None
    replay_period_sec: float = 0.05

@dataclass
class LoggingCfg:
    dir: str = "./logs"
    file_prefix: str = "tiltwatch"
    # 'regular' drops debug records from the main file unless whitelisted;
    # 'verbose' emits everything.
    mode: str = "regular"
    verbose_whitelist: Optional[List[str]] = None
    # Dual-file logging: compact main log in `dir`, full log in `dir/debug`.
    dual_file: bool = False
    debug_subdir: Optional[str] = "debug"
    # mirror status lines to stdout
    echo: bool = True

@dataclass
class StateCfg:
    # YAML file keeping the alarm state across restarts; None keeps it in memory
    path: Optional[str] = None

@dataclass
class AppCfg:
    monitor: MonitorCfg = field(default_factory=MonitorCfg)
    activity: ActivityCfg = field(default_factory=ActivityCfg)
    actuator: ActuatorCfg = field(default_factory=ActuatorCfg)
    radio: RadioCfg = field(default_factory=RadioCfg)
    sensor: SensorCfg = field(default_factory=SensorCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)
    state: StateCfg = field(default_factory=StateCfg)


def _as_float(d: Dict[str, Any], key: str, default: float) -> float:
    v = d.get(key, default)
    try:
        return float(v)
    except (TypeError, ValueError):
        return default

def _as_int(d: Dict[str, Any], key: str, default: int) -> int:
    v = d.get(key, default)
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def validate(cfg: AppCfg) -> AppCfg:
    m, a = cfg.monitor, cfg.activity
    if m.detection_interval_sec <= 0:
        raise ValueError("monitor.detection_interval_sec must be > 0")
    if m.tilt_angle_threshold < 0:
        raise ValueError("monitor.tilt_angle_threshold must be >= 0")
    if m.work_duration_sec < 0:
        raise ValueError("monitor.work_duration_sec must be >= 0")
    if a.mode not in ACTIVITY_MODES:
        raise ValueError(f"activity.mode must be one of {ACTIVITY_MODES}, got {a.mode!r}")
    if a.sampling_duration_ms <= 0:
        raise ValueError("activity.sampling_duration_ms must be > 0")
    if a.engine_noise_threshold < 0:
        raise ValueError("activity.engine_noise_threshold must be >= 0")
    if cfg.radio.backend not in RADIO_BACKENDS:
        raise ValueError(f"radio.backend must be one of {RADIO_BACKENDS}, got {cfg.radio.backend!r}")
    if cfg.sensor.backend not in SENSOR_BACKENDS:
        raise ValueError(f"sensor.backend must be one of {SENSOR_BACKENDS}, got {cfg.sensor.backend!r}")
    if cfg.sensor.backend == "bt50" and not cfg.sensor.mac:
        raise ValueError("sensor.mac is required for the bt50 backend")
    return cfg


def parse_config(raw: Optional[Dict[str, Any]]) -> AppCfg:
    raw = raw or {}
    # Coerce numeric fields; YAML/ENV templating can hand us strings
    mon_raw = dict(raw.get("monitor", {}))
    mon = MonitorCfg(
        detection_interval_sec=_as_int(mon_raw, "detection_interval_sec", MonitorCfg.detection_interval_sec),
        tilt_angle_threshold=_as_float(mon_raw, "tilt_angle_threshold", MonitorCfg.tilt_angle_threshold),
        work_duration_sec=_as_int(mon_raw, "work_duration_sec", MonitorCfg.work_duration_sec),
        alarm_ceiling_sec=_as_float(mon_raw, "alarm_ceiling_sec", MonitorCfg.alarm_ceiling_sec),
        sample_timeout_sec=_as_float(mon_raw, "sample_timeout_sec", MonitorCfg.sample_timeout_sec),
    )
    act_raw = dict(raw.get("activity", {}))
    act = ActivityCfg(
        mode=str(act_raw.get("mode", ActivityCfg.mode)),
        sampling_duration_ms=_as_int(act_raw, "sampling_duration_ms", ActivityCfg.sampling_duration_ms),
        engine_noise_threshold=_as_float(act_raw, "engine_noise_threshold", ActivityCfg.engine_noise_threshold),
        power_supply_glob=str(act_raw.get("power_supply_glob", ActivityCfg.power_supply_glob)),
    )
    actuator_raw = dict(raw.get("actuator", {}))
    actuator = ActuatorCfg(
        address=str(actuator_raw.get("address", ActuatorCfg.address)),
        port=_as_int(actuator_raw, "port", ActuatorCfg.port),
    )
    radio_raw = dict(raw.get("radio", {}))
    radio = RadioCfg(
        backend=str(radio_raw.get("backend", RadioCfg.backend)),
        assoc_timeout_sec=_as_float(radio_raw, "assoc_timeout_sec", RadioCfg.assoc_timeout_sec),
        settle_sec=_as_float(radio_raw, "settle_sec", RadioCfg.settle_sec),
        pre_off_delay_sec=_as_float(radio_raw, "pre_off_delay_sec", RadioCfg.pre_off_delay_sec),
    )
    sensor = SensorCfg(**raw.get("sensor", {}))
    log = LoggingCfg(**raw.get("logging", {}))
    state = StateCfg(**raw.get("state", {}))
    return validate(AppCfg(monitor=mon, activity=act, actuator=actuator, radio=radio,
                           sensor=sensor, logging=log, state=state))


def load_config(path: str) -> AppCfg:
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return parse_config(raw)
