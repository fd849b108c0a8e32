from __future__ import annotations
import asyncio, glob
from enum import Enum
from typing import Callable, List, Optional

from .sampling import SampleSource, acquire
from .vecmath import Vector3, peak_to_peak_max

# /sys/class/power_supply/<name>/status
POWER_SUPPLY_GLOB = "/sys/class/power_supply/*/status"


class Activity(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ActivityClassifier:
    """Decides whether the monitored object is in legitimate use right now."""
    name = "base"

    async def classify(self) -> Activity:
        raise NotImplementedError


class NeverActive(ActivityClassifier):
    """Angle-only monitoring: the object is never considered in use."""
    name = "none"

    async def classify(self) -> Activity:
        return Activity.INACTIVE


class ExternalSignalActivity(ActivityClassifier):
    """Asks an outside signal (engine running, vehicle charging)."""
    name = "external"

    def __init__(self, probe: Callable[[], bool]):
        self.probe = probe

    async def classify(self) -> Activity:
        return Activity.ACTIVE if self.probe() else Activity.INACTIVE


def power_supply_probe(pattern: str = POWER_SUPPLY_GLOB) -> Callable[[], bool]:
    """Probe that is True while any power supply reports Charging or Full.

    On a vehicle-mounted host the supply only charges while the engine runs.
    """
    def _probe() -> bool:
        for path in glob.glob(pattern):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    status = f.read().strip()
            except OSError:
                continue
            if status in ("Charging", "Full"):
                return True
        return False
    return _probe


class VibrationNoiseActivity(ActivityClassifier):
    """A running engine shakes the sensor: classify by peak-to-peak noise."""
    name = "noise"

    def __init__(self, source: SampleSource, sampling_duration_ms: int, noise_threshold: float,
                 log_status: Optional[Callable[[str], None]] = None):
        self.source = source
        self.sampling_duration_ms = sampling_duration_ms
        self.noise_threshold = noise_threshold
        self._log = log_status or (lambda _msg: None)

    async def collect_window(self) -> List[Vector3]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.sampling_duration_ms / 1000.0
        window: List[Vector3] = []
        async with acquire(self.source) as bridge:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    window.append(await asyncio.wait_for(bridge.get(), timeout=remaining))
                except asyncio.TimeoutError:
                    break
        return window

    async def classify(self) -> Activity:
        window = await self.collect_window()
        noise = peak_to_peak_max(window)
        self._log("noise=%.3f (%d samples)" % (noise, len(window)))
        return Activity.ACTIVE if noise >= self.noise_threshold else Activity.INACTIVE


def build_classifier(cfg, source: SampleSource, log_status: Optional[Callable[[str], None]] = None,
                     probe: Optional[Callable[[], bool]] = None) -> ActivityClassifier:
    """Pick the activity strategy once, from the `activity` config section."""
    if cfg.mode == "none":
        return NeverActive()
    if cfg.mode == "external":
        return ExternalSignalActivity(probe or power_supply_probe(cfg.power_supply_glob))
    if cfg.mode == "noise":
        return VibrationNoiseActivity(source, cfg.sampling_duration_ms, cfg.engine_noise_threshold, log_status)
    raise ValueError(f"unknown activity mode {cfg.mode!r}")
