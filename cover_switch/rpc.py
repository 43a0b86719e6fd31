# -*- coding: utf-8 -*-
"""
Shelly Gen2 RPC over MQTT.

Requests go to '<prefix>/rpc', responses come back on '<src>/rpc' and are
matched to the caller by request id. Responses are delivered on the paho
network thread, so callbacks run there too.
"""
from __future__ import annotations
from concurrent.futures import Future, TimeoutError as FuturesTimeoutError
from itertools import count
from threading import Lock
from time import monotonic
from typing import Any, Callable, Dict, List, Optional, Tuple
import json
import logging

import paho.mqtt.client as mqtt

LOG = logging.getLogger("cover_switch.rpc")

# callback(response, error_code, error_message); error_code == 0 means success
RpcCallback = Callable[[Optional[Dict[str, Any]], int, str], None]

ERR_PUBLISH = -1
ERR_TIMEOUT = -2


class RpcError(RuntimeError):
    def __init__(self, code: int, message: str):
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


class RpcClient:
    """Command transport for one device."""

    def __init__(self, client: mqtt.Client, device_prefix: str, src: str, timeout_sec: float = 5.0,
                 clock: Callable[[], float] = monotonic):
        self.client = client
        self.device_prefix = device_prefix
        self.src = src
        self.timeout_sec = timeout_sec
        self._ids = count(1)
        self._lock = Lock()
        self.clock = clock
        # req_id -> (callback, deadline)
        self._pending: Dict[int, Tuple[RpcCallback, float]] = {}

    @property
    def request_topic(self) -> str:
        return f"{self.device_prefix}/rpc"

    @property
    def response_topic(self) -> str:
        return f"{self.src}/rpc"

    def call(self, method: str, params: Optional[Dict[str, Any]] = None,
             callback: Optional[RpcCallback] = None, timeout: Optional[float] = None) -> int:
        """
        Fire an RPC request and return its id. Failures reach the callback, never the caller.
        A request with no response by its deadline completes with ERR_TIMEOUT.
        """
        self.expire_stale()
        cb = callback or _log_result(method)
        deadline = self.clock() + (self.timeout_sec if timeout is None else timeout)
        with self._lock:
            req_id = next(self._ids)
            self._pending[req_id] = (cb, deadline)
        frame = {"id": req_id, "src": self.src, "method": method}
        if params:
            frame["params"] = params
        try:
            info = self.client.publish(self.request_topic, json.dumps(frame), qos=1)
            rc = info.rc
        except Exception as e:
            LOG.error(f"[RPC] publish exception for {method}: {e}")
            rc = None
        if rc != mqtt.MQTT_ERR_SUCCESS:
            self._complete(req_id, None, ERR_PUBLISH, f"publish failed rc={rc} for {method}")
        else:
            LOG.debug(f"[RPC] -> {method} id={req_id} params={params}")
        return req_id

    def request(self, method: str, params: Optional[Dict[str, Any]] = None,
                timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Blocking call returning the 'result' object; raises RpcError.
        Must not run on the MQTT network thread, which delivers the response.
        """
        timeout = self.timeout_sec if timeout is None else timeout
        fut: Future = Future()
        req_id = self.call(method, params, lambda res, code, msg: fut.set_result((res, code, msg)), timeout)
        try:
            res, code, msg = fut.result(timeout=timeout)
        except FuturesTimeoutError:
            with self._lock:
                self._pending.pop(req_id, None)
            raise RpcError(ERR_TIMEOUT, f"timeout waiting for {method}") from None
        if code != 0:
            raise RpcError(code, msg)
        return res or {}

    def handle_response(self, frame: Dict[str, Any]) -> None:
        """Match a response frame to its pending request."""
        req_id = frame.get("id")
        if "error" in frame:
            err = frame.get("error") or {}
            code = int(err.get("code") or ERR_PUBLISH)
            self._complete(req_id, None, code, str(err.get("message", "unknown error")))
        else:
            self._complete(req_id, frame.get("result"), 0, "")

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def expire_stale(self) -> int:
        """Complete every request past its deadline with ERR_TIMEOUT. Returns how many expired."""
        t = self.clock()
        with self._lock:
            stale: List[int] = [rid for rid, (_, deadline) in self._pending.items() if deadline <= t]
        for rid in stale:
            self._complete(rid, None, ERR_TIMEOUT, f"no response for request id={rid}")
        return len(stale)

    def _complete(self, req_id, result, code: int, message: str) -> None:
        with self._lock:
            entry = self._pending.pop(req_id, None)
        if entry is None:
            LOG.debug(f"[RPC] unmatched response id={req_id}")
            return
        cb = entry[0]
        try:
            cb(result, code, message)
        except Exception as e:
            LOG.exception(f"[RPC] callback error for id={req_id}: {e}")


def _log_result(method: str) -> RpcCallback:
    def _cb(_res, code, msg):
        if code == 0:
            LOG.info(f"[RPC] {method} ok")
        else:
            LOG.error(f"[RPC] {method} failed ({code}): {msg}")
    return _cb


class ComponentConfigProvider:
    """Dynamic (virtual) component config via Shelly.GetComponents / Virtual.Add / Virtual.Delete."""

    def __init__(self, rpc: RpcClient):
        self.rpc = rpc

    def get_config(self, key: str) -> Optional[Dict[str, Any]]:
        res = self.rpc.request("Shelly.GetComponents",
                               {"dynamic_only": True, "include": ["config"], "keys": [key]})
        for comp in res.get("components") or []:
            if comp.get("key") == key:
                return comp.get("config") or {}
        return None

    def add(self, ctype: str, config: Dict[str, Any]) -> Dict[str, Any]:
        params: Dict[str, Any] = {"type": ctype, "config": dict(config)}
        if "id" in config:
            params["id"] = config["id"]
            params["config"].pop("id")
        return self.rpc.request("Virtual.Add", params)

    def delete(self, key: str) -> Dict[str, Any]:
        return self.rpc.request("Virtual.Delete", {"key": key})
