"""Presence engine: group merged devices by owner and decide who is home."""

import logging
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta

from presenceboard.persona.models import Owner, OwnerPresence
from presenceboard.registry.models import Device, PresenceType

logger = logging.getLogger(__name__)


def time_since(captured_at: datetime, now: datetime | None = None) -> timedelta:
    """Age of a snapshot. Naive timestamps are taken as UTC."""
    if captured_at.tzinfo is None:
        captured_at = captured_at.replace(tzinfo=UTC)
    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now - captured_at


def is_considered_home(
    device: Device, time_since_capture: timedelta, consider_home: timedelta
) -> bool:
    """Connected, or disconnected but captured within the grace window."""
    return device.connected or time_since_capture < consider_home


def confers_home(device: Device, time_since_capture: timedelta, consider_home: timedelta) -> bool:
    """Whether this device alone is enough to mark its owner as home.

    Only a named primary device counts; secondary devices (tablets, watches)
    never put anyone home on their own.
    """
    if device.presence_type != PresenceType.primary:
        return False
    if not device.display:
        return False
    return is_considered_home(device, time_since_capture, consider_home)


def derive_presence(
    devices: Mapping[str, Device],
    owners: Mapping[int, Owner],
    captured_at: datetime,
    consider_home: timedelta,
    now: datetime | None = None,
) -> dict[int, OwnerPresence]:
    """Return owner id -> presence rollup for every non-system owner.

    A person is home if any of their primary devices confers home status.
    Devices without a presence type are left out of every bucket.
    """
    result = {
        owner_id: OwnerPresence(owner=owner)
        for owner_id, owner in owners.items()
        if not owner.is_system
    }

    for device in devices.values():
        if device.owner_id is None or device.owner_name is None:
            continue
        presence = result.get(device.owner_id)
        if presence is None or device.presence_type is None:
            continue
        presence.all.append(device)
        if device.presence_type == PresenceType.primary:
            presence.primary.append(device)
        elif device.presence_type == PresenceType.secondary:
            presence.secondary.append(device)

    elapsed = time_since(captured_at, now)
    for presence in result.values():
        presence.is_home = any(
            confers_home(device, elapsed, consider_home) for device in presence.all
        )

    logger.debug(
        "Derived presence for %d owner(s), %d home",
        len(result),
        sum(1 for p in result.values() if p.is_home),
    )
    return result
