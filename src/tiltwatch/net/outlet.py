from __future__ import annotations
import json, socket
from typing import Callable, Optional

from ..errors import NetworkError
from . import kasa_codec
from .radio import RadioController

BROADCAST_ADDR = "255.255.255.255"
OUTLET_PORT = 9999


def relay_command(on: bool) -> dict:
    return {"system": {"set_relay_state": {"state": 1 if on else 0}}}


class OutletClient:
    """Fire-and-forget relay commands for a local smart outlet.

    One UDP datagram per command on a fresh socket. The outlet does not
    acknowledge anything, so a successful send only means the datagram left
    this host.
    """
    def __init__(self, address: str = BROADCAST_ADDR, port: int = OUTLET_PORT):
        self.address = address
        self.port = port

    def payload(self, on: bool) -> bytes:
        text = json.dumps(relay_command(on), separators=(",", ":"))
        return kasa_codec.encode(text)

    def set_relay(self, on: bool) -> int:
        data = self.payload(on)
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as e:
            raise NetworkError(f"cannot open UDP socket: {e}") from e
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            return sock.sendto(data, (self.address, self.port))
        except OSError as e:
            raise NetworkError(f"relay {'ON' if on else 'OFF'} to {self.address}:{self.port} failed: {e}") from e
        finally:
            sock.close()


class Outlet:
    """Switches the outlet with the radio brought up around the send."""
    def __init__(self, client: OutletClient, radio: RadioController,
                 log_status: Optional[Callable[[str], None]] = None):
        self.client = client
        self.radio = radio
        self._log = log_status or (lambda _msg: None)

    async def switch(self, on: bool):
        async with self.radio.ready():
            sent = self.client.set_relay(on)
        self._log(f"Relay {'ON' if on else 'OFF'} sent ({sent} bytes to {self.client.address}:{self.client.port})")
