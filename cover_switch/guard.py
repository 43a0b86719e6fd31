# -*- coding: utf-8 -*-
"""
Cover state guard: turns a requested action into at most one cover command.

A moving cover is always stopped first, whatever was requested. Otherwise
open/close are sent only when the cover is not already there, and slat
requests step the tilt by a fixed amount within 0..100.
"""
from __future__ import annotations
from typing import Any, Dict, Optional
import logging

from cover_switch.config import Action
from cover_switch.status import CoverState

LOG = logging.getLogger("cover_switch.guard")

SLAT_STEP = 25
SLAT_DEFAULT = 50


class CoverGuard:
    def __init__(self, cover_id: int, status_provider, transport):
        """
        status_provider: object with get_status(cover_id) -> CoverStatus | None
        transport: object with call(method, params, callback)
        """
        self.cover_id = cover_id
        self.status_provider = status_provider
        self.transport = transport

    def handle(self, action: Action) -> None:
        status = self.status_provider.get_status(self.cover_id)
        if status is None:
            LOG.error(f"[GUARD] cover:{self.cover_id} status unavailable, ignoring {action.value}")
            return

        if status.is_moving:
            LOG.info(f"[GUARD] cover:{self.cover_id} is {status.state.value}, stopping ({action.value} requested)")
            self._send("Cover.Stop", "Cover is stopped")
            return

        if action is Action.OPEN:
            if status.state is not CoverState.OPEN:
                self._send("Cover.Open", "Cover is opening")
            else:
                LOG.debug(f"[GUARD] cover:{self.cover_id} already open")
        elif action is Action.CLOSE:
            if status.state is not CoverState.CLOSED:
                self._send("Cover.Close", "Cover is closing")
            else:
                LOG.debug(f"[GUARD] cover:{self.cover_id} already closed")
        elif action in (Action.SLAT_OPEN, Action.SLAT_CLOSE):
            self._adjust_slat(status.slat_position, SLAT_STEP if action is Action.SLAT_OPEN else -SLAT_STEP)
        else:
            LOG.warning(f"[GUARD] unsupported action: {action}")

    def _adjust_slat(self, current: Optional[int], step: int) -> None:
        current = SLAT_DEFAULT if current is None else current
        target = max(0, min(100, current + step))
        if target == current:
            LOG.debug(f"[GUARD] cover:{self.cover_id} slat already at {current}%")
            return
        # only slat_pos is sent so the cover position stays where it is
        self._send("Cover.GoToPosition", f"Slat moving to {target}%", slat_pos=target)

    def _send(self, method: str, ok_message: str, **extra: Any) -> None:
        params: Dict[str, Any] = {"id": self.cover_id}
        params.update(extra)

        def _done(_res, error_code, error_message):
            if error_code == 0:
                LOG.info(f"[GUARD] {ok_message}")
            else:
                LOG.error(f"[GUARD] {method} failed ({error_code}): {error_message}")

        self.transport.call(method, params, _done)
