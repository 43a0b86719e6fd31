# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Iterable
import logging

from cover_switch.config import VirtualComponent
from cover_switch.utils import split_component_key

LOG = logging.getLogger("cover_switch.provision")


class Provisioner:
    """
    Make sure every declared virtual component exists with its declared name.
    Missing ones are created; a name mismatch is fixed by delete + add since
    the device cannot rename a component in place.
    """

    def __init__(self, components: Iterable[VirtualComponent], provider):
        """provider: get_config(key), add(type, config), delete(key)"""
        self.components = tuple(components)
        self.provider = provider

    def reconcile(self) -> None:
        for comp in self.components:
            try:
                self._reconcile_one(comp)
            except Exception as e:
                LOG.error(f"[PROVISION] {comp.key} failed: {e}")

    def _reconcile_one(self, comp: VirtualComponent) -> None:
        ctype, cid = split_component_key(comp.key)
        existing = self.provider.get_config(comp.key)
        if existing is None:
            LOG.info(f"[PROVISION] creating {comp.key} '{comp.name}'")
            self.provider.add(ctype, {"id": cid, "name": comp.name})
            return
        if existing.get("name") == comp.name:
            LOG.debug(f"[PROVISION] {comp.key} up to date")
            return
        LOG.info(f"[PROVISION] recreating {comp.key}: '{existing.get('name')}' -> '{comp.name}'")
        self.provider.delete(comp.key)
        self.provider.add(ctype, {"id": cid, "name": comp.name})
