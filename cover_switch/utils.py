# -*- coding: utf-8 -*-
import re
from typing import Tuple

_SAFE_ID_RE = re.compile(r"[^a-z0-9_]+")

def to_object_id(text: str) -> str:
    """Make an MQTT-safe object_id (lowercase, underscores, a-z0-9_)."""
    obj = str(text).strip().lower().replace(" ", "_").replace("-", "_")
    return _SAFE_ID_RE.sub("", obj)

def split_component_key(key: str) -> Tuple[str, int]:
    """Split a device component key like 'button:200' into ('button', 200)."""
    ctype, sep, cid = str(key).partition(":")
    if not sep or not ctype or not cid.isdigit():
        raise ValueError(f"Invalid component key: {key!r}")
    return ctype, int(cid)
