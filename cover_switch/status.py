# -*- coding: utf-8 -*-
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any, Dict, Optional
import logging

LOG = logging.getLogger("cover_switch.status")


class CoverState(str, Enum):
    """Motion state reported by the device (distinct from the requested Action)."""
    OPEN = "open"
    CLOSED = "closed"
    OPENING = "opening"
    CLOSING = "closing"
    CALIBRATING = "calibrating"
    STOPPED = "stopped"


MOVING_STATES = frozenset({CoverState.OPENING, CoverState.CLOSING, CoverState.CALIBRATING})

# older firmware reports the closed end stop with the verb token
_STATE_ALIASES = {"close": CoverState.CLOSED}


def parse_state(raw: Any) -> Optional[CoverState]:
    token = str(raw).strip().lower()
    if token in _STATE_ALIASES:
        return _STATE_ALIASES[token]
    try:
        return CoverState(token)
    except ValueError:
        return None


@dataclass(frozen=True)
class CoverStatus:
    state: CoverState
    position: Optional[int] = None
    slat_position: Optional[int] = None

    @property
    def is_moving(self) -> bool:
        return self.state in MOVING_STATES

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["CoverStatus"]:
        """Build from a device status object ('state', 'current_pos', 'slat_pos')."""
        state = parse_state(data.get("state"))
        if state is None:
            LOG.warning(f"Unknown cover state: {data.get('state')!r}")
            return None
        return cls(state=state,
                   position=_opt_pct(data.get("current_pos")),
                   slat_position=_opt_pct(data.get("slat_pos")))


def _opt_pct(val: Any) -> Optional[int]:
    if val is None:
        return None
    try:
        return max(0, min(100, int(round(float(val)))))
    except (TypeError, ValueError):
        return None


class StatusStore:
    """
    Live mirror of component status as reported by the device.
    Full status topics replace an entry, NotifyStatus deltas are merged in.
    """

    def __init__(self):
        self._lock = Lock()
        self._raw: Dict[str, Dict[str, Any]] = {}

    def replace(self, key: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._raw[key] = dict(data)

    def merge(self, key: str, delta: Dict[str, Any]) -> None:
        with self._lock:
            self._raw.setdefault(key, {}).update(delta)

    def raw(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            data = self._raw.get(key)
            return dict(data) if data is not None else None

    def get_status(self, cover_id: int) -> Optional[CoverStatus]:
        data = self.raw(f"cover:{cover_id}")
        if not data:
            return None
        return CoverStatus.from_dict(data)
