# -*- coding: utf-8 -*-
import json
from types import SimpleNamespace

import paho.mqtt.client as mqtt
import pytest

from cover_switch.status import CoverStatus, CoverState


class FakeTransport:
    """Records commands; completes them only when told to."""

    def __init__(self):
        self.calls = []

    def call(self, method, params, callback=None):
        self.calls.append((method, params, callback))

    @property
    def methods(self):
        return [c[0] for c in self.calls]


class FakeStatusProvider:
    def __init__(self, status=None):
        self.status = status
        self.reads = 0

    def get_status(self, cover_id):
        self.reads += 1
        return self.status


class FakeComponentStore:
    """In-memory virtual component store with call accounting."""

    def __init__(self, configs=None, fail_keys=()):
        self.configs = dict(configs or {})
        self.fail_keys = set(fail_keys)
        self.log = []

    def get_config(self, key):
        if key in self.fail_keys:
            raise RuntimeError(f"lookup failed for {key}")
        return self.configs.get(key)

    def add(self, ctype, config):
        key = f"{ctype}:{config['id']}"
        self.log.append(("add", key, config["name"]))
        self.configs[key] = {"id": config["id"], "name": config["name"]}

    def delete(self, key):
        self.log.append(("delete", key))
        del self.configs[key]

    @property
    def mutations(self):
        return len(self.log)


class FakeMqttClient:
    def __init__(self, rc=mqtt.MQTT_ERR_SUCCESS):
        self.rc = rc
        self.published = []
        self.subscribed = []
        self.rpc_hook = None
        self.on_subscribe_call = None

    def publish(self, topic, payload=None, qos=0, retain=False):
        self.published.append((topic, payload, qos, retain))
        if self.rpc_hook is not None and topic.endswith("/rpc"):
            self.rpc_hook(json.loads(payload))
        return SimpleNamespace(rc=self.rc)

    def subscribe(self, topic, qos=0):
        self.subscribed.append(topic)
        if self.on_subscribe_call is not None:
            self.on_subscribe_call(topic)
        return mqtt.MQTT_ERR_SUCCESS, len(self.subscribed)

    def frames(self, topic):
        return [json.loads(p) for t, p, _, _ in self.published if t == topic]


def status(state, position=None, slat=None):
    return CoverStatus(state=CoverState(state), position=position, slat_position=slat)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def mqtt_client():
    return FakeMqttClient()
