from __future__ import annotations
import asyncio, math, signal, time
from datetime import datetime
from typing import Callable, Optional

from .activity import build_classifier
from .alarm import AlarmStateMachine
from .ble.witmotion_bt50 import Bt50Accelerometer
from .config import AppCfg, load_config
from .detector import DriftDetector, read_sample
from .logs import NdjsonLogger
from .net.outlet import Outlet, OutletClient
from .net.radio import NmcliRadio, Radio, RadioController, StaticRadio
from .sampling import ReplaySource, SampleSource
from .state import MemoryStateStore, StateStore, YamlStateStore
from .vecmath import Vector3


def build_source(cfg: AppCfg, log_status: Callable[[str], None]) -> SampleSource:
    s = cfg.sensor
    if s.backend == "replay":
        return ReplaySource(s.replay_samples or [], period_sec=s.replay_period_sec, repeat=True)
    return Bt50Accelerometer(s.adapter, s.mac, s.notify_uuid, log_status)


def build_radio(cfg: AppCfg) -> Radio:
    if cfg.radio.backend == "nmcli":
        return NmcliRadio()
    return StaticRadio()


def build_store(cfg: AppCfg) -> StateStore:
    if cfg.state.path:
        return YamlStateStore(cfg.state.path)
    return MemoryStateStore()


class Monitor:
    """Runs one alarm tick every detection interval until stopped or expired."""
    def __init__(self, cfg: AppCfg, *, source: Optional[SampleSource] = None,
                 radio: Optional[Radio] = None, outlet=None,
                 store: Optional[StateStore] = None, logger: Optional[NdjsonLogger] = None,
                 probe: Optional[Callable[[], bool]] = None,
                 clock: Callable[[], float] = time.monotonic,
                 wall_clock: Callable[[], float] = time.time):
        self.cfg = cfg
        self._owns_logger = logger is None
        self.logger = logger or NdjsonLogger(
            cfg.logging.dir, cfg.logging.file_prefix,
            dual_file=cfg.logging.dual_file, debug_subdir=cfg.logging.debug_subdir,
            mode=cfg.logging.mode, verbose_whitelist=cfg.logging.verbose_whitelist,
            echo=cfg.logging.echo,
        )
        log = self.log
        self.source = source or build_source(cfg, log)
        self.radio = RadioController(
            radio or build_radio(cfg), log,
            assoc_timeout_sec=cfg.radio.assoc_timeout_sec,
            settle_sec=cfg.radio.settle_sec,
            pre_off_delay_sec=cfg.radio.pre_off_delay_sec,
        )
        self.outlet = outlet or Outlet(OutletClient(cfg.actuator.address, cfg.actuator.port), self.radio, log)
        self.classifier = build_classifier(cfg.activity, self.source, log, probe)
        self.machine = AlarmStateMachine(
            DriftDetector(cfg.monitor.tilt_angle_threshold),
            self.classifier,
            self._read_sample,
            self.outlet,
            store=store or build_store(cfg),
            log_status=log,
            clock=clock,
            wall_clock=wall_clock,
            alarm_ceiling_sec=cfg.monitor.alarm_ceiling_sec,
        )
        self.interval_sec: float = float(cfg.monitor.detection_interval_sec)
        self.work_duration_sec: float = float(cfg.monitor.work_duration_sec)
        self.ticks = 0
        self.failed_ticks = 0
        self._stop = asyncio.Event()
        self._started: Optional[float] = None

    def log(self, msg: str):
        self.logger.status(msg)

    async def _read_sample(self) -> Vector3:
        return await read_sample(self.source, self.cfg.monitor.sample_timeout_sec)

    def request_stop(self):
        """Stop after the tick in progress, if any."""
        if not self._stop.is_set():
            self.log("Stopping monitor")
        self._stop.set()

    def _expired(self) -> bool:
        if self.work_duration_sec <= 0 or self._started is None:
            return False
        return time.monotonic() - self._started >= self.work_duration_sec

    async def _tick(self):
        self.ticks += 1
        try:
            await self.machine.tick()
        except Exception as e:
            # one failed tick never stops monitoring
            self.failed_ticks += 1
            self.log(f"Tick failed: {type(e).__name__}: {e}")

    async def run(self):
        self._started = time.monotonic()
        self.log("Starting monitor (%s, %d, %d, %.1f)" % (
            datetime.now().replace(microsecond=0).isoformat(),
            self.work_duration_sec,
            self.interval_sec,
            math.degrees(self.cfg.monitor.tilt_angle_threshold),
        ))
        try:
            await self.source.start()
            while not self._stop.is_set() and not self._expired():
                await self._tick()
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self.interval_sec)
                except asyncio.TimeoutError:
                    pass
            self.log("End of the monitoring loop")
        finally:
            await self.close()

    async def close(self):
        try:
            await self.source.stop()
        except Exception as e:
            self.log(f"Sensor stop failed: {type(e).__name__}: {e}")
        if self._owns_logger:
            self.logger.close()


async def run(config_path: str, duration_sec: Optional[int] = None):
    cfg = load_config(config_path)
    if duration_sec is not None:
        cfg.monitor.work_duration_sec = duration_sec
    mon = Monitor(cfg)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, mon.request_stop)
        except (NotImplementedError, RuntimeError):
            pass
    await mon.run()
