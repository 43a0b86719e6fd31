# -*- coding: utf-8 -*-
from __future__ import annotations
from concurrent.futures import Future
from typing import Any, Callable, Dict, Optional
import asyncio
import logging

import aiohttp

from cover_switch.async_loop import AsyncLoopThread

LOG = logging.getLogger("cover_switch.remote")


def _missing(val: Any) -> bool:
    return val is None or (isinstance(val, str) and not val.strip())


class RemoteTrigger:
    """Fires a synthetic input event (Input.Trigger) on a peer device over HTTP. No retry."""

    def __init__(self, loop: AsyncLoopThread, timeout_sec: float = 5.0,
                 session_factory: Callable[..., Any] = aiohttp.ClientSession):
        self.loop = loop
        self.timeout_sec = timeout_sec
        self.session_factory = session_factory

    def trigger(self, address: Optional[str], input_id: Any, event_type: Optional[str]) -> Optional[Future]:
        """Schedule the request and return its future, or None if arguments are missing."""
        missing = [n for n, v in (("address", address), ("input_id", input_id), ("event_type", event_type)) if _missing(v)]
        if missing:
            LOG.error(f"[TRIGGER] missing argument(s): {', '.join(missing)}")
            return None
        return self.loop.submit(self._send(str(address).strip(), input_id, str(event_type).strip()))

    async def _send(self, address: str, input_id: Any, event_type: str) -> Dict[str, Any]:
        url = f"http://{address}/rpc/Input.Trigger"
        params = {"id": str(input_id), "event_type": event_type}
        timeout = aiohttp.ClientTimeout(total=self.timeout_sec)
        try:
            async with self.session_factory(timeout=timeout) as s:
                async with s.get(url, params=params) as r:
                    text = await r.text()
                    resp = {"ok": r.status < 300, "status": r.status, "url": url, "text": text}
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            LOG.error(f"[TRIGGER] {address} input {input_id} {event_type} failed: {type(e).__name__}: {e}")
            return {"ok": False, "status": 0, "url": url, "text": "", "error": str(e)}
        if resp["ok"]:
            LOG.info(f"[TRIGGER] {address} input {input_id} {event_type} sent")
        else:
            LOG.error(f"[TRIGGER] {address} input {input_id} {event_type} rejected: HTTP {resp['status']} {text}")
        return resp
