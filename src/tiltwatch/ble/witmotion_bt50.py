from __future__ import annotations
import asyncio
from asyncio.subprocess import PIPE
from typing import Callable, Optional
from bleak import BleakScanner, BleakClient

from ..sampling import SampleSource
from .wtvb_parse import parse_accel

# WitMotion BLE modules notify on 0xFFE4
DEFAULT_NOTIFY_UUID = "0000ffe4-0000-1000-8000-00805f9b34fb"

# serializes BlueZ discovery when several sources share an adapter
scan_lock = asyncio.Lock()


async def bluez_scan_off():
    """Best-effort stop of a lingering bluetoothctl discovery; failures are ignored."""
    try:
        proc = await asyncio.create_subprocess_exec(
            "bluetoothctl", "--timeout", "1", "scan", "off", stdout=PIPE, stderr=PIPE
        )
        await proc.communicate()
    except OSError:
        pass


class Bt50Accelerometer(SampleSource):
    """WitMotion BLE accelerometer exposed as a push-style sample source."""
    def __init__(self, adapter: str, mac: str, notify_uuid: str = DEFAULT_NOTIFY_UUID,
                 log_status: Optional[Callable[[str], None]] = None):
        super().__init__()
        self.adapter = adapter
        self.mac = mac
        self.notify_uuid = notify_uuid
        self.client: Optional[BleakClient] = None
        self._log = log_status or (lambda _msg: None)
        # tuneables
        self.connect_timeout_s: float = 20.0
        self.find_timeout_s: float = 10.0
        self.scan_attempts: int = 3
        self._stopping = False

    async def _discover_device(self):
        """Locate the sensor advertising on the configured adapter, or None."""
        for attempt in range(1, self.scan_attempts + 1):
            # a lingering discovery makes BlueZ answer InProgress
            await bluez_scan_off()
            try:
                async with scan_lock:
                    dev = await BleakScanner.find_device_by_address(
                        self.mac, timeout=self.find_timeout_s, adapter=self.adapter)
            except Exception as e:
                if "InProgress" in str(e):
                    await asyncio.sleep(3.0)
                dev = None
            if dev:
                return dev
            self._log(f"Accelerometer {self.mac} not found (attempt {attempt}/{self.scan_attempts})")
            await asyncio.sleep(2.0)
        return None

    def _on_disconnect(self, _client):
        if not self._stopping:
            self._log(f"Accelerometer {self.mac} disconnected")

    def _on_notify(self, _sender, data: bytearray):
        v = parse_accel(bytes(data))
        if v is not None:
            self.emit(v)

    async def start(self):
        self._stopping = False
        # direct connect by MAC first, BlueZ does not need a prior scan
        try:
            self.client = BleakClient(self.mac, adapter=self.adapter, disconnected_callback=self._on_disconnect)
            await self.client.connect(timeout=self.connect_timeout_s)
        except Exception:
            try:
                await self.client.disconnect()
            except Exception:
                pass
            self.client = None

        if self.client is None:
            dev = await self._discover_device()
            if not dev:
                raise RuntimeError(
                    f"Accelerometer {self.mac} not found advertising on {self.adapter}. "
                    "Ensure it's powered and not connected elsewhere."
                )
            self.client = BleakClient(dev, adapter=self.adapter, disconnected_callback=self._on_disconnect)
            await self.client.connect(timeout=self.connect_timeout_s)

        await self.client.start_notify(self.notify_uuid, self._on_notify)
        self._log(f"Accelerometer {self.mac} connected")

    async def stop(self):
        self._stopping = True
        if self.client:
            try:
                await self.client.stop_notify(self.notify_uuid)
            except Exception:
                pass
            try:
                await self.client.disconnect()
            finally:
                self.client = None

