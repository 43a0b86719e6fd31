#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cover wall switch:
- routes BTHome / virtual button events to one Shelly cover over MQTT RPC
- stops a moving cover first, never repeats open/close, steps slats
- provisions virtual buttons at startup
"""

import os
import sys
import time
import signal

from cover_switch.config import load_config, build_controller_config
from cover_switch.logging_utils import setup_logger
from cover_switch.utils import to_object_id
from cover_switch.mqtt_base import make_client
from cover_switch.controller import WallSwitchController, PAYLOAD_OFFLINE

CFG_PATH = os.path.join(os.path.dirname(os.path.realpath(__file__)), "..", "config.yaml")
CFG = load_config(CFG_PATH)

# MQTT
MQTT_HOST = CFG["mqtt"]["host"]
MQTT_PORT = int(CFG["mqtt"].get("port", 1883))
MQTT_USER = CFG["mqtt"].get("username")
MQTT_PW   = CFG["mqtt"].get("password")

# Device
DEVICE_PREFIX = CFG["device"]["topic_prefix"]
RPC_SRC       = to_object_id(CFG["device"].get("rpc_src") or f"{DEVICE_PREFIX}_wall_switch")
RPC_TIMEOUT   = float(CFG["device"].get("rpc_timeout_sec", 5.0))
CONNECT_WAIT  = float(CFG["mqtt"].get("connect_timeout_sec", 30.0))

LOG = setup_logger("cover_switch", CFG.get("logging", {}))

CONTROLLER_CFG = build_controller_config(CFG.get("controller"))

client = make_client(CFG["mqtt"].get("client_id") or RPC_SRC,
                     f"{RPC_SRC}/status", PAYLOAD_OFFLINE, MQTT_USER, MQTT_PW)
controller = WallSwitchController(client, CONTROLLER_CFG, DEVICE_PREFIX, RPC_SRC, RPC_TIMEOUT)

def cleanup_and_exit(code=0):
    if controller.shutdown():
        LOG.info("wall switch stopped")
    sys.exit(code)

def handle_sigterm(signum, frame):
    LOG.info("SIGTERM received, shutting down")
    cleanup_and_exit(0)

signal.signal(signal.SIGTERM, handle_sigterm)
signal.signal(signal.SIGINT, handle_sigterm)

def main():
    client.on_connect = controller.on_connect
    client.on_subscribe = controller.on_subscribe
    client.on_disconnect = controller.on_disconnect
    client.on_message = controller.on_message
    client.loop_start()
    try:
        client.connect(MQTT_HOST, MQTT_PORT, 30)
    except Exception as e:
        LOG.error(f"Initial MQTT connect error: {e}")
    if not controller.connected.wait(timeout=CONNECT_WAIT):
        LOG.error(f"MQTT not connected after {CONNECT_WAIT:.0f}s")
        cleanup_and_exit(1)
    LOG.info(f"wall switch started (device={DEVICE_PREFIX}, cover={CONTROLLER_CFG.cover_id})")
    controller.start()
    try:
        while True:
            time.sleep(1)
            controller.rpc.expire_stale()
    except KeyboardInterrupt:
        cleanup_and_exit(0)

if __name__ == "__main__":
    main()
