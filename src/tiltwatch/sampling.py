from __future__ import annotations
import asyncio, contextlib
from collections import deque
from typing import Callable, Deque, Iterable, List, Optional

from .errors import SensorTimeoutError
from .vecmath import Vector3

Listener = Callable[[Vector3], None]


class SampleSource:
    """Push-style producer of accelerometer samples.

    Hardware backends call emit() from their notification callback; every
    registered listener receives the sample.
    """
    def __init__(self):
        self._listeners: List[Listener] = []

    def add_listener(self, fn: Listener):
        self._listeners.append(fn)

    def remove_listener(self, fn: Listener):
        try:
            self._listeners.remove(fn)
        except ValueError:
            pass

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, sample: Vector3):
        for fn in list(self._listeners):
            fn(sample)

    async def start(self):
        pass

    async def stop(self):
        pass


class ReplaySource(SampleSource):
    """Plays a recorded sample list back at a fixed rate.

    Samples only advance while somebody listens, so a recording is not
    drained between ticks. With repeat=True the list is cycled.
    """
    def __init__(self, samples: Iterable, period_sec: float = 0.01, repeat: bool = False):
        super().__init__()
        self.pending: Deque[Vector3] = deque(Vector3(*map(float, s)) for s in samples)
        self.period_sec = period_sec
        self.repeat = repeat
        self._task: Optional[asyncio.Task] = None

    async def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self._pump())

    async def _pump(self):
        while True:
            await asyncio.sleep(self.period_sec)
            if self.listener_count and self.pending:
                sample = self.pending.popleft()
                if self.repeat:
                    self.pending.append(sample)
                self.emit(sample)

    async def stop(self):
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None


class SampleBridge:
    """Single-slot rendezvous between a producer callback and an awaiting consumer.

    offer() never blocks: an unconsumed sample is replaced by the newer one.
    """
    def __init__(self):
        self._slot: Optional[Vector3] = None
        self._ready = asyncio.Event()
        self._loop = asyncio.get_running_loop()

    def offer(self, sample: Vector3):
        self._slot = Vector3(*sample)
        self._ready.set()

    def offer_threadsafe(self, sample: Vector3):
        self._loop.call_soon_threadsafe(self.offer, sample)

    async def get(self, timeout: Optional[float] = None) -> Vector3:
        if timeout is None:
            await self._ready.wait()
        else:
            try:
                await asyncio.wait_for(self._ready.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                raise SensorTimeoutError(f"no accelerometer sample within {timeout:g}s") from None
        sample = self._slot
        self._slot = None
        self._ready.clear()
        return sample


@contextlib.asynccontextmanager
async def acquire(source: SampleSource):
    """Subscribe a fresh bridge to the source for the duration of the block."""
    bridge = SampleBridge()
    source.add_listener(bridge.offer)
    try:
        yield bridge
    finally:
        source.remove_listener(bridge.offer)
