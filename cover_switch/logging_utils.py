# -*- coding: utf-8 -*-
import logging
import re
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMG]?)(?:I?B)?\s*$", re.IGNORECASE)
_SIZE_MULT = {"": 1, "K": 1024, "M": 1024 ** 2, "G": 1024 ** 3}

def _parse_size(val) -> int:
    """Parse human-readable size like '1M', '512K', '2MB' into bytes."""
    if isinstance(val, int) and not isinstance(val, bool):
        return val
    m = _SIZE_RE.match(str(val))
    if not m:
        raise ValueError(f"Invalid size: {val!r}")
    return int(float(m.group(1)) * _SIZE_MULT[m.group(2).upper()])

def setup_logger(name: str, conf: dict) -> logging.Logger:
    """
    Create the application logger based on config.
    A non-empty 'path' gives a rotating file log, otherwise log to stderr.
    Child loggers ('<name>.router', ...) propagate into it.
    """
    conf = conf or {}
    level = getattr(logging, str(conf.get("level", "INFO")).upper(), logging.INFO)
    path = conf.get("path", "./cover_switch.log")

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if path:
        max_bytes = _parse_size(conf.get("max_bytes", "1M"))
        backups = max(0, int(conf.get("backup_count", 4)) - 1)
        handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backups)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.addHandler(handler)
    return logger
