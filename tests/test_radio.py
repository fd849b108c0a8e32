import asyncio

import pytest

from tiltwatch.errors import RadioTimeoutError
from tiltwatch.net.radio import NmcliRadio, Radio, RadioController


class SlowRadio(Radio):
    """Associates after a number of connectivity polls (never if None)."""
    def __init__(self, enabled=False, polls_to_connect=2):
        self.enabled = enabled
        self.polls_to_connect = polls_to_connect
        self.polls = 0
        self.switches = []

    async def is_enabled(self):
        return self.enabled

    async def set_enabled(self, enabled):
        self.enabled = enabled
        self.switches.append(enabled)

    async def is_connected(self):
        self.polls += 1
        return self.polls_to_connect is not None and self.polls >= self.polls_to_connect


def _ctl(radio, **kw):
    kw.setdefault("settle_sec", 0)
    kw.setdefault("pre_off_delay_sec", 0)
    kw.setdefault("poll_sec", 0.001)
    return RadioController(radio, **kw)


def test_turn_on_noop_when_enabled():
    radio = SlowRadio(enabled=True)
    lines = []
    assert asyncio.run(_ctl(radio, log_status=lines.append).turn_on()) is False
    assert radio.switches == []
    assert lines == ["Wifi already ON"]


def test_turn_on_waits_for_association():
    radio = SlowRadio(enabled=False, polls_to_connect=3)
    assert asyncio.run(_ctl(radio).turn_on()) is True
    assert radio.enabled
    assert radio.polls == 3


def test_turn_on_times_out():
    radio = SlowRadio(enabled=False, polls_to_connect=None)
    with pytest.raises(RadioTimeoutError):
        asyncio.run(_ctl(radio, assoc_timeout_sec=0.05).turn_on())


def test_turn_off():
    radio = SlowRadio(enabled=True)
    lines = []
    ctl = _ctl(radio, log_status=lines.append)
    assert asyncio.run(ctl.turn_off()) is True
    assert not radio.enabled
    assert asyncio.run(ctl.turn_off()) is False
    assert lines == ["Wifi OFF", "Wifi already OFF"]


def test_ready_restores_off_state_on_error():
    radio = SlowRadio(enabled=False, polls_to_connect=1)

    async def body():
        async with _ctl(radio).ready():
            assert radio.enabled
            raise ValueError("boom")

    with pytest.raises(ValueError):
        asyncio.run(body())
    assert radio.switches == [True, False]


def test_ready_switches_off_after_association_timeout():
    radio = SlowRadio(enabled=False, polls_to_connect=None)

    async def body():
        async with _ctl(radio, assoc_timeout_sec=0.02).ready():
            pass

    with pytest.raises(RadioTimeoutError):
        asyncio.run(body())
    assert radio.enabled is False


def test_ready_keeps_radio_on_when_it_was_on():
    radio = SlowRadio(enabled=True)

    async def body():
        async with _ctl(radio).ready():
            pass

    asyncio.run(body())
    assert radio.switches == []


def test_nmcli_parses_device_states(monkeypatch):
    radio = NmcliRadio()
    outputs = {
        ("radio", "wifi"): (0, "enabled"),
        ("-t", "-f", "TYPE,STATE", "device"): (0, "ethernet:unavailable\nwifi:connected\nloopback:unmanaged"),
    }

    async def fake_run(*args):
        return outputs[args]
    monkeypatch.setattr(radio, "_run", fake_run)
    assert asyncio.run(radio.is_enabled()) is True
    assert asyncio.run(radio.is_connected()) is True

    outputs[("-t", "-f", "TYPE,STATE", "device")] = (0, "wifi:connecting")
    assert asyncio.run(radio.is_connected()) is False
