from __future__ import annotations
import asyncio, contextlib
from asyncio.subprocess import PIPE
from typing import Callable, Optional, Tuple

from ..errors import NetworkError, RadioTimeoutError


class Radio:
    """Power and association state of the wireless interface."""

    async def is_enabled(self) -> bool:
        raise NotImplementedError

    async def set_enabled(self, enabled: bool) -> None:
        raise NotImplementedError

    async def is_connected(self) -> bool:
        raise NotImplementedError


class StaticRadio(Radio):
    """A link that is always up (wired host, or radio managed elsewhere)."""
    def __init__(self, enabled: bool = True, connected: bool = True):
        self.enabled = enabled
        self.connected = connected

    async def is_enabled(self) -> bool:
        return self.enabled

    async def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled

    async def is_connected(self) -> bool:
        return self.enabled and self.connected


class NmcliRadio(Radio):
    """Wi-Fi radio driven through NetworkManager's nmcli."""
    def __init__(self, nmcli: str = "nmcli"):
        self.nmcli = nmcli

    async def _run(self, *args: str) -> Tuple[int, str]:
        try:
            proc = await asyncio.create_subprocess_exec(self.nmcli, *args, stdout=PIPE, stderr=PIPE)
        except OSError as e:
            raise NetworkError(f"cannot run {self.nmcli}: {e}") from e
        out, _err = await proc.communicate()
        return proc.returncode or 0, out.decode("utf-8", "replace").strip()

    async def is_enabled(self) -> bool:
        rc, out = await self._run("radio", "wifi")
        if rc != 0:
            raise NetworkError(f"nmcli radio wifi exited with {rc}")
        return out == "enabled"

    async def set_enabled(self, enabled: bool) -> None:
        rc, _ = await self._run("radio", "wifi", "on" if enabled else "off")
        if rc != 0:
            raise NetworkError(f"nmcli radio wifi {'on' if enabled else 'off'} exited with {rc}")

    async def is_connected(self) -> bool:
        rc, out = await self._run("-t", "-f", "TYPE,STATE", "device")
        if rc != 0:
            return False
        # lines look like "wifi:connected"
        for line in out.splitlines():
            typ, _, state = line.partition(":")
            if typ == "wifi" and state == "connected":
                return True
        return False


class RadioController:
    """Makes sure the radio is up and associated before traffic is sent."""
    def __init__(self, radio: Radio, log_status: Optional[Callable[[str], None]] = None, *,
                 assoc_timeout_sec: float = 15.0, settle_sec: float = 1.0,
                 pre_off_delay_sec: float = 0.5, poll_sec: float = 0.5):
        self.radio = radio
        self._log = log_status or (lambda _msg: None)
        self.assoc_timeout_sec = assoc_timeout_sec
        self.settle_sec = settle_sec
        self.pre_off_delay_sec = pre_off_delay_sec
        self.poll_sec = poll_sec

    async def turn_on(self) -> bool:
        """Enable the radio if needed. Returns True when it was switched on here."""
        if await self.radio.is_enabled():
            self._log("Wifi already ON")
            return False
        self._log("Wifi ON")
        await self.radio.set_enabled(True)
        await self._wait_until_ready()
        return True

    async def _wait_until_ready(self):
        async def _poll():
            while not await self.radio.is_connected():
                await asyncio.sleep(self.poll_sec)
        try:
            await asyncio.wait_for(_poll(), timeout=self.assoc_timeout_sec)
        except asyncio.TimeoutError:
            raise RadioTimeoutError(f"radio not associated after {self.assoc_timeout_sec:g}s") from None
        await asyncio.sleep(self.settle_sec)

    async def turn_off(self) -> bool:
        await asyncio.sleep(self.pre_off_delay_sec)
        if await self.radio.is_enabled():
            self._log("Wifi OFF")
            await self.radio.set_enabled(False)
            return True
        self._log("Wifi already OFF")
        return False

    @contextlib.asynccontextmanager
    async def ready(self):
        """Radio up for the body; switched back off afterwards if it was off before."""
        switched_on = not await self.radio.is_enabled()
        try:
            await self.turn_on()
            yield self
        finally:
            if switched_on:
                await self.turn_off()
