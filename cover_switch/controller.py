# -*- coding: utf-8 -*-
from __future__ import annotations
from threading import Event, Lock, Timer
from typing import Any, Dict, Optional
import json
import logging

import paho.mqtt.client as mqtt

from cover_switch.config import ControllerConfig
from cover_switch.events import events_from_notification
from cover_switch.guard import CoverGuard
from cover_switch.provision import Provisioner
from cover_switch.router import EventRouter
from cover_switch.rpc import ComponentConfigProvider, RpcClient, RpcError
from cover_switch.status import StatusStore

LOG = logging.getLogger("cover_switch.controller")

PAYLOAD_ONLINE = "online"
PAYLOAD_OFFLINE = "offline"


class WallSwitchController:
    """
    Wires one Shelly cover device to its button sources over MQTT.

    Startup: provision virtual components, then after a one-shot delay
    start routing button events to the cover guard. Everything arriving
    over MQTT is handled on the paho network thread, one message at a time.
    """

    def __init__(self, client: mqtt.Client, cfg: ControllerConfig, device_prefix: str,
                 rpc_src: str, rpc_timeout_sec: float = 5.0):
        self.client = client
        self.cfg = cfg
        self.device_prefix = device_prefix
        self.rpc = RpcClient(client, device_prefix, rpc_src, rpc_timeout_sec)
        self.status = StatusStore()
        self.guard = CoverGuard(cfg.cover_id, self.status, self.rpc)
        self.router = EventRouter(cfg.event_actions, self.guard.handle, debug=cfg.debug)
        self.provisioner = Provisioner(cfg.virtual_components, ComponentConfigProvider(self.rpc))
        self.connected = Event()
        self._response_sub_mid: Optional[int] = None
        self._routing = Event()
        self._timer: Optional[Timer] = None
        self._shutdown_lock = Lock()
        self._shut_down = False

    # Topics
    @property
    def events_topic(self) -> str:
        return f"{self.device_prefix}/events/rpc"

    @property
    def cover_status_topic(self) -> str:
        return f"{self.device_prefix}/status/cover:{self.cfg.cover_id}"

    @property
    def availability_topic(self) -> str:
        return f"{self.rpc.src}/status"

    @property
    def routing_enabled(self) -> bool:
        return self._routing.is_set()

    # Lifecycle
    def start(self) -> None:
        """Seed status, reconcile virtual components and schedule event routing. Blocking."""
        try:
            res = self.rpc.request("Cover.GetStatus", {"id": self.cfg.cover_id})
            self.status.replace(f"cover:{self.cfg.cover_id}", res)
        except RpcError as e:
            LOG.warning(f"Initial cover status unavailable: {e}")
        self.provisioner.reconcile()
        delay = self.cfg.startup_delay_sec
        LOG.info(f"Event routing starts in {delay:.1f}s")
        self._timer = Timer(delay, self.enable_routing)
        self._timer.daemon = True
        self._timer.start()

    def enable_routing(self) -> None:
        self._routing.set()
        LOG.info(f"Routing events from {self.events_topic} ({len(self.cfg.event_actions)} table entries)")

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._routing.clear()

    def shutdown(self) -> bool:
        """Stop routing, announce offline and stop the MQTT loop. Runs once; later calls return False."""
        with self._shutdown_lock:
            if self._shut_down:
                return False
            self._shut_down = True
        self.stop()
        try:
            self.client.publish(self.availability_topic, PAYLOAD_OFFLINE, retain=True)
        except Exception as e:
            LOG.warning(f"offline publish failed: {e}")
        try:
            self.client.loop_stop()
            self.client.disconnect()
        except Exception as e:
            LOG.warning(f"MQTT shutdown error: {e}")
        return True

    # MQTT callbacks (paho callback API v2)
    def on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            LOG.error(f"MQTT connect failed rc={reason_code}")
            self.connected.clear()
            return
        LOG.info("MQTT connected")
        # ready only once the broker has acknowledged the response topic
        _, self._response_sub_mid = client.subscribe(self.rpc.response_topic)
        client.subscribe(self.cover_status_topic)
        client.subscribe(self.events_topic)
        client.publish(self.availability_topic, PAYLOAD_ONLINE, retain=True)

    def on_subscribe(self, client, userdata, mid, reason_code_list, properties=None):
        if mid != self._response_sub_mid:
            return
        if any(rc.is_failure for rc in reason_code_list):
            LOG.error(f"Subscribe to {self.rpc.response_topic} refused: {reason_code_list}")
            return
        LOG.info(f"Subscribed to {self.rpc.response_topic}")
        self.connected.set()

    def on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        LOG.warning(f"MQTT disconnected rc={reason_code}")
        self.connected.clear()

    def on_message(self, client, userdata, msg):
        try:
            frame = self._decode(msg.payload)
            if frame is None:
                LOG.warning(f"Non-JSON payload on {msg.topic} ignored")
                return
            self.dispatch(msg.topic, frame)
        except Exception as e:
            LOG.exception(f"on_message error: {e}")

    def dispatch(self, topic: str, frame: Dict[str, Any]) -> None:
        if topic == self.rpc.response_topic:
            self.rpc.handle_response(frame)
        elif topic == self.cover_status_topic:
            self.status.replace(f"cover:{self.cfg.cover_id}", frame)
        elif topic == self.events_topic:
            self._handle_notification(frame)

    def _handle_notification(self, frame: Dict[str, Any]) -> None:
        method = frame.get("method")
        if method == "NotifyStatus":
            for key, delta in (frame.get("params") or {}).items():
                if key.startswith("cover:") and isinstance(delta, dict):
                    self.status.merge(key, delta)
        elif method == "NotifyEvent":
            if not self.routing_enabled:
                LOG.debug("Event ignored, routing not started yet")
                return
            for event in events_from_notification(frame):
                self.router.route(event)

    @staticmethod
    def _decode(payload: bytes) -> Optional[Dict[str, Any]]:
        try:
            data = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return None
        return data if isinstance(data, dict) else None
