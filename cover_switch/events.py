# -*- coding: utf-8 -*-
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Source families handled by the router: BTHome sensors, BTHome multi-button
# devices and virtual buttons.
SOURCE_PREFIXES = ("bthomesensor:", "bthomedevice:", "button:")


@dataclass(frozen=True)
class InboundEvent:
    source: str
    event_type: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_known_source(self) -> bool:
        return self.source.startswith(SOURCE_PREFIXES)

    @property
    def index(self) -> Optional[int]:
        """Button index of a multi-button device, if carried in the payload."""
        idx = self.payload.get("idx")
        if isinstance(idx, bool) or not isinstance(idx, int):
            return None
        return idx


def events_from_notification(frame: Dict[str, Any]) -> List[InboundEvent]:
    """Decode a NotifyEvent frame into inbound events, in delivery order."""
    if frame.get("method") != "NotifyEvent":
        return []
    out = []
    for ev in (frame.get("params") or {}).get("events") or []:
        source = ev.get("component")
        etype = ev.get("event")
        if not source or not etype:
            continue
        out.append(InboundEvent(source=str(source), event_type=str(etype), payload=dict(ev)))
    return out
