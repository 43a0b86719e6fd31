# -*- coding: utf-8 -*-
import logging
from logging.handlers import RotatingFileHandler

import paho.mqtt.client as mqtt
import pytest

from cover_switch.logging_utils import _parse_size, setup_logger
from cover_switch.mqtt_base import make_client


@pytest.mark.parametrize("raw,expected", [
    (2048, 2048),
    ("512K", 512 * 1024),
    ("1M", 1024 * 1024),
    ("1.5MB", int(1.5 * 1024 * 1024)),
    ("1G", 1024 ** 3),
    ("100", 100),
    ("100B", 100),
    (" 2 kib ", 2048),
])
def test_parse_size(raw, expected):
    assert _parse_size(raw) == expected


@pytest.mark.parametrize("raw", ["", "M", "1T", "ten", "1.2.3M", "-5K"])
def test_parse_size_rejects_garbage(raw):
    with pytest.raises(ValueError):
        _parse_size(raw)


def test_rotating_file_logger(tmp_path):
    path = tmp_path / "switch.log"
    logger = setup_logger("cover_switch_test_file", {"level": "debug", "path": str(path), "max_bytes": "1K"})
    try:
        assert logger.level == logging.DEBUG
        (handler,) = logger.handlers
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 1024
        assert handler.backupCount == 3
        logging.getLogger("cover_switch_test_file.router").warning("[ROUTER] hello")
        handler.flush()
        assert "[WARNING] [ROUTER] hello" in path.read_text()
    finally:
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()


def test_empty_path_logs_to_stderr():
    logger = setup_logger("cover_switch_test_stream", {"path": ""})
    setup_logger("cover_switch_test_stream", {"path": ""})
    (handler,) = logger.handlers
    assert type(handler) is logging.StreamHandler
    assert logger.level == logging.INFO
    logger.removeHandler(handler)


def test_make_client():
    client = make_client("wall_switch", "wall_switch/status", "offline", "user", "secret")
    assert isinstance(client, mqtt.Client)
