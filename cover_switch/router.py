# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Callable, Iterable, Optional
import logging

from cover_switch.config import Action, EventAction
from cover_switch.events import InboundEvent

LOG = logging.getLogger("cover_switch.router")


class EventRouter:
    """Maps inbound button events to logical actions through an ordered table (first match wins)."""

    def __init__(self, table: Iterable[EventAction], handler: Callable[[Action], None], debug: bool = False):
        self.table = tuple(table)
        self.handler = handler
        self.debug = debug

    def lookup(self, event: InboundEvent) -> Optional[EventAction]:
        for entry in self.table:
            if entry.matches(event.source, event.event_type):
                return entry
        return None

    def resolve(self, entry: EventAction, event: InboundEvent) -> Optional[Action]:
        if isinstance(entry.action, Action):
            return entry.action
        idx = event.index
        if idx is None or not 0 <= idx < len(entry.action):
            LOG.debug(f"[ROUTER] {event.source} button index {event.payload.get('idx')!r} ignored")
            return None
        return entry.action[idx]

    def route(self, event: InboundEvent) -> None:
        if not event.is_known_source:
            return
        if self.debug:
            LOG.info(f"[ROUTER] event {event.source} {event.event_type} {event.payload}")
        try:
            entry = self.lookup(event)
            if entry is None:
                return
            action = self.resolve(entry, event)
            if action is None:
                return
            if self.debug:
                LOG.info(f"[ROUTER] {event.source}/{event.event_type} -> {action.value}")
            self.handler(action)
        except Exception as e:
            LOG.exception(f"[ROUTER] action failed for {event.source}/{event.event_type}: {e}")
