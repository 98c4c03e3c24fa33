"""Merge the router snapshot with stored device metadata and owners.

The router is authoritative for liveness and signal; storage is
authoritative for label, owner and presence type. The merged map is
rebuilt from scratch on every call and never mutated afterwards.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from presenceboard.persona.models import Owner
from presenceboard.registry.models import Device, DeviceDetails, PresenceSnapshot

logger = logging.getLogger(__name__)

# Stored values for these replace the router's whenever they are set.
_STORAGE_FIELDS = ("label", "owner_id", "presence_type")
# Stored values for these only fill gaps the router left empty.
_FILL_FIELDS = ("band", "ip")


def _overlay(device: Device, details: DeviceDetails | None, owners: Mapping[int, Owner]) -> Device:
    """Apply stored metadata and owner denormalization to a router device."""
    update: dict[str, Any] = {}
    if details is not None:
        for name in _STORAGE_FIELDS:
            value = getattr(details, name)
            if value is not None:
                update[name] = value
        for name in _FILL_FIELDS:
            value = getattr(details, name)
            if value is not None and getattr(device, name) is None:
                update[name] = value

    owner_id = update.get("owner_id", device.owner_id)
    owner = owners.get(owner_id) if owner_id is not None else None
    # Always recomputed: a stale name carried in from elsewhere is dropped
    update["owner_name"] = owner.name if owner else None
    update["owner_type"] = owner.kind if owner else None
    if owner_id is not None and owner is None:
        logger.debug("Device %s references unknown owner %s", device.mac, owner_id)
    return device.model_copy(update=update)


def router_devices(snapshot: PresenceSnapshot | None) -> Iterable[Device]:
    """Every device the router reported, home first then away."""
    if snapshot is None:
        return []
    return [*snapshot.home, *snapshot.away]


def merge_devices(
    snapshot: PresenceSnapshot | None,
    stored: Mapping[str, DeviceDetails],
    owners: Mapping[int, Owner],
) -> dict[str, Device]:
    """Build the MAC -> Device view from router, storage and owner registry."""
    merged: dict[str, Device] = {}

    for device in router_devices(snapshot):
        if device.mac in merged:
            continue
        merged[device.mac] = _overlay(device, stored.get(device.mac), owners)

    # Stored-only devices (powered off, out of range) stay on the dashboard
    for mac, details in stored.items():
        if mac in merged:
            continue
        offline = Device(mac=mac, connected=False)
        merged[mac] = _overlay(offline, details, owners)

    return merged
