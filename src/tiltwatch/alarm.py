from __future__ import annotations
import math, time
from typing import Awaitable, Callable, Optional

from .activity import Activity, ActivityClassifier
from .detector import DriftDetector, DriftEvent
from .state import AlarmState, MemoryStateStore, SessionState, StateStore
from .vecmath import Vector3, format_vector

# sustained drift past this is taken as the object having been moved
ALARM_CEILING_SEC = 120.0


class AlarmStateMachine:
    """Debounced alarm decisions, one call to tick() per monitoring interval.

    IDLE -> ARMED_REFERENCE_SET when a reference is adopted,
    ARMED_REFERENCE_SET -> ALARM_ACTIVE when drift reaches the threshold,
    ALARM_ACTIVE -> IDLE when drift falls back or the alarm ceiling passes.
    An ACTIVE classification sends any state back to IDLE.

    The outlet is only switched on state-entering transitions. The new state
    is stored before the command goes out; a failed send does not undo it.
    """
    def __init__(self, detector: DriftDetector, classifier: ActivityClassifier,
                 sampler: Callable[[], Awaitable[Vector3]], outlet, *,
                 store: Optional[StateStore] = None,
                 log_status: Optional[Callable[[str], None]] = None,
                 clock: Callable[[], float] = time.monotonic,
                 wall_clock: Callable[[], float] = time.time,
                 alarm_ceiling_sec: float = ALARM_CEILING_SEC):
        self.detector = detector
        self.classifier = classifier
        self.sampler = sampler
        self.outlet = outlet
        self.store = store or MemoryStateStore()
        self._log = log_status or (lambda _msg: None)
        self.clock = clock
        self.wall_clock = wall_clock
        self.alarm_ceiling_sec = alarm_ceiling_sec

        st = self.store.load()
        if not st.is_consistent():
            st = SessionState()
        self.state = st.state
        self.alarm_since = st.alarm_since
        self._alarm_started: Optional[float] = None
        if st.alarm_since is not None:
            # time already spent alarming before the restart; a wall clock that
            # moved backwards counts as none
            elapsed = max(0.0, self.wall_clock() - st.alarm_since)
            self._alarm_started = self.clock() - elapsed
        self.detector.restore(st.reference)
        if self.state != AlarmState.IDLE:
            self._log(f"Resuming in {self.state.value} (u={format_vector(st.reference)})")

    @property
    def reference(self) -> Optional[Vector3]:
        return self.detector.reference

    def _persist(self):
        self.store.save(SessionState(self.state, self.detector.reference, self.alarm_since))

    def _enter_idle(self):
        self.detector.clear()
        self.alarm_since = None
        self._alarm_started = None
        self.state = AlarmState.IDLE
        self._persist()

    async def _switch(self, on: bool):
        self._log("Alarm ON" if on else "Alarm OFF")
        await self.outlet.switch(on)

    async def tick(self) -> AlarmState:
        activity = await self.classifier.classify()
        if activity == Activity.ACTIVE:
            self._log("Object in use, detection suspended")
            was_alarm = self.state == AlarmState.ALARM_ACTIVE
            if self.state != AlarmState.IDLE:
                self._enter_idle()
            if was_alarm:
                await self._switch(False)
            return self.state

        if self.state == AlarmState.IDLE:
            self.detector.clear()

        sample = await self.sampler()
        reading = self.detector.observe(sample)

        if reading.event == DriftEvent.CALIBRATED:
            self._log(f"u={format_vector(sample)}")
            self.state = AlarmState.ARMED_REFERENCE_SET
            self._persist()
            return self.state

        self._log("u=%s v=%s angle=%.1f" % (
            format_vector(self.detector.reference), format_vector(sample), math.degrees(reading.angle)))
        exceeded = reading.event == DriftEvent.DRIFT_EXCEEDED

        if self.state == AlarmState.ARMED_REFERENCE_SET:
            if exceeded:
                self.alarm_since = self.wall_clock()
                self._alarm_started = self.clock()
                self.state = AlarmState.ALARM_ACTIVE
                self._persist()
                await self._switch(True)
        elif self.state == AlarmState.ALARM_ACTIVE:
            if not exceeded:
                self._enter_idle()
                await self._switch(False)
            elif self.clock() - self._alarm_started >= self.alarm_ceiling_sec:
                self._log("Alarm ceiling reached, re-calibrating")
                self._enter_idle()
                await self._switch(False)
        return self.state
