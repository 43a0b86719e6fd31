# -*- coding: utf-8 -*-
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union
import os
import yaml

from cover_switch.utils import split_component_key

WILDCARD = "*"


class Action(str, Enum):
    """Logical action requested by a routed input."""
    OPEN = "open"
    CLOSE = "close"
    SLAT_OPEN = "slat_open"
    SLAT_CLOSE = "slat_close"


# Button order of a four-button BTHome remote, addressed by payload "idx".
BY_INDEX_ORDER: Tuple[Action, ...] = (Action.OPEN, Action.CLOSE, Action.SLAT_OPEN, Action.SLAT_CLOSE)

RouteTarget = Union[Action, Tuple[Action, ...]]


@dataclass(frozen=True)
class VirtualComponent:
    key: str
    name: str


@dataclass(frozen=True)
class EventAction:
    """Routing table entry. 'action' is a single Action or a per-button tuple."""
    source: str
    event: str
    action: RouteTarget

    def matches(self, source: str, event: str) -> bool:
        return self.source == source and (self.event == WILDCARD or self.event == event)


@dataclass(frozen=True)
class ControllerConfig:
    cover_id: int
    virtual_components: Tuple[VirtualComponent, ...] = ()
    event_actions: Tuple[EventAction, ...] = ()
    debug: bool = False
    startup_delay_sec: float = 2.0


def load_config(default_path: str = "config.yaml") -> Dict[str, Any]:
    """
    Load YAML configuration file.
    Priority:
      1. Environment variable COVER_SWITCH_CONFIG
      2. Provided default_path
    """
    path = os.environ.get("COVER_SWITCH_CONFIG", default_path)
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0", ""}


def _parse_bool(raw: Any, name: str) -> bool:
    if raw is None or isinstance(raw, bool):
        return bool(raw)
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str) and raw.strip().lower() in _TRUE | _FALSE:
        return raw.strip().lower() in _TRUE
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _parse_action(raw: Any) -> RouteTarget:
    if isinstance(raw, (list, tuple)):
        if not 1 <= len(raw) <= len(BY_INDEX_ORDER):
            raise ValueError(f"Indexed action needs 1..{len(BY_INDEX_ORDER)} entries, got {len(raw)}")
        return tuple(Action(str(a).strip().lower()) for a in raw)
    name = str(raw).strip().lower()
    if name == "by_index":
        return BY_INDEX_ORDER
    try:
        return Action(name)
    except ValueError:
        raise ValueError(f"Unsupported action: {raw}") from None


def build_controller_config(section: Optional[Dict[str, Any]]) -> ControllerConfig:
    """Build the immutable controller config from the 'controller' YAML section."""
    section = section or {}
    if "cover_id" not in section:
        raise ValueError("controller.cover_id is required")

    components = []
    seen = set()
    for item in section.get("virtual_components") or []:
        key = str(item["key"]).strip()
        split_component_key(key)  # validates "<type>:<id>"
        if key in seen:
            raise ValueError(f"Duplicate virtual component key: {key}")
        seen.add(key)
        components.append(VirtualComponent(key=key, name=str(item["name"])))

    actions = []
    for item in section.get("event_actions") or []:
        actions.append(EventAction(
            source=str(item["source"]).strip(),
            event=str(item.get("event", WILDCARD)).strip(),
            action=_parse_action(item["action"]),
        ))

    return ControllerConfig(
        cover_id=int(section["cover_id"]),
        virtual_components=tuple(components),
        event_actions=tuple(actions),
        debug=_parse_bool(section.get("debug", False), "controller.debug"),
        startup_delay_sec=max(0.0, float(section.get("startup_delay_sec", 2.0))),
    )
