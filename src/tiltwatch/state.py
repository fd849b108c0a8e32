from __future__ import annotations
import os, pathlib
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import yaml

from .vecmath import EPSILON, Vector3, dot


class AlarmState(str, Enum):
    IDLE = "idle"
    ARMED_REFERENCE_SET = "armed_reference_set"
    ALARM_ACTIVE = "alarm_active"


@dataclass
class SessionState:
    state: AlarmState = AlarmState.IDLE
    reference: Optional[Vector3] = None
    # wall-clock seconds, set while ALARM_ACTIVE
    alarm_since: Optional[float] = None

    def is_consistent(self) -> bool:
        if self.state == AlarmState.IDLE:
            return self.reference is None and self.alarm_since is None
        if self.reference is None or dot(self.reference, self.reference) < EPSILON:
            return False
        if self.state == AlarmState.ALARM_ACTIVE:
            return self.alarm_since is not None
        return self.alarm_since is None


class StateStore:
    """Where the alarm state lives between restarts. Owned by the caller."""

    def load(self) -> SessionState:
        raise NotImplementedError

    def save(self, st: SessionState) -> None:
        raise NotImplementedError


class MemoryStateStore(StateStore):
    def __init__(self, initial: Optional[SessionState] = None):
        self.current = initial or SessionState()
        self.saves = 0

    def load(self) -> SessionState:
        return SessionState(self.current.state, self.current.reference, self.current.alarm_since)

    def save(self, st: SessionState) -> None:
        self.current = SessionState(st.state, st.reference, st.alarm_since)
        self.saves += 1


class YamlStateStore(StateStore):
    def __init__(self, path: str):
        self.path = pathlib.Path(path)

    def load(self) -> SessionState:
        if not self.path.exists():
            return SessionState()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
            ref = raw.get("reference")
            st = SessionState(
                state=AlarmState(raw.get("state", AlarmState.IDLE.value)),
                reference=Vector3(*(float(c) for c in ref)) if ref else None,
                alarm_since=float(raw["alarm_since"]) if raw.get("alarm_since") is not None else None,
            )
        except (yaml.YAMLError, AttributeError, TypeError, ValueError):
            return SessionState()
        # a half-written or hand-edited record restarts from IDLE
        return st if st.is_consistent() else SessionState()

    def save(self, st: SessionState) -> None:
        raw = {
            "state": st.state.value,
            "reference": [float(c) for c in st.reference] if st.reference is not None else None,
            "alarm_since": st.alarm_since,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            yaml.safe_dump(raw, f, sort_keys=False)
        os.replace(tmp, self.path)
