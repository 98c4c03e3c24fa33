"""Device metadata store client: labels, owners and presence types per MAC."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from presenceboard.client.base import ApiError, mac_path, request_json
from presenceboard.registry.models import DeviceDetails, PresenceType

logger = logging.getLogger(__name__)

# Keys accepted by PUT /api/devices/{mac}
_UPDATABLE = {"label", "band", "ip", "owner_id", "presence_type"}


def _parse_details(data: Any, fallback: str) -> DeviceDetails:
    try:
        return DeviceDetails.model_validate(data)
    except ValidationError as e:
        raise ApiError(f"{fallback}: malformed device record") from e


async def list_device_details(http: httpx.AsyncClient) -> dict[str, DeviceDetails]:
    """Fetch every stored device record, keyed by MAC."""
    rows = await request_json(http, "GET", "/api/devices", fallback="Failed to fetch devices")
    result: dict[str, DeviceDetails] = {}
    for row in rows or []:
        details = _parse_details(row, "Failed to fetch devices")
        result[details.mac] = details
    return result


async def upsert_device(http: httpx.AsyncClient, mac: str, **fields: Any) -> DeviceDetails:
    """Partially update (or create) a stored device record.

    Only the keyword arguments passed are sent; pass ``None`` to clear a field.
    """
    unknown = set(fields) - _UPDATABLE
    if unknown:
        raise ValueError(f"Unsupported device fields: {', '.join(sorted(unknown))}")
    payload = DeviceDetails(mac=mac, **fields).model_dump(
        by_alias=True, include=set(fields), mode="json"
    )
    data = await request_json(
        http,
        "PUT",
        f"/api/devices/{mac_path(mac)}",
        json=payload,
        fallback="Failed to update device",
    )
    details = _parse_details(data, "Failed to update device")
    logger.info("Updated device %s (%s)", mac, ", ".join(sorted(fields)))
    return details


async def upsert_device_label(
    http: httpx.AsyncClient, mac: str, label: str | None
) -> DeviceDetails:
    """Persist a device's friendly label."""
    data = await request_json(
        http,
        "PUT",
        f"/api/devices/{mac_path(mac)}",
        json={"label": label},
        fallback="Failed to save label",
    )
    return _parse_details(data, "Failed to save label")


async def set_device_owner(
    http: httpx.AsyncClient, mac: str, owner_id: int | None
) -> DeviceDetails:
    """Assign a device to an owner, or unassign it with ``None``."""
    data = await request_json(
        http,
        "PUT",
        f"/api/devices/{mac_path(mac)}/owner",
        json={"ownerId": owner_id},
        fallback="Failed to set owner",
    )
    return _parse_details(data, "Failed to set owner")


async def set_presence_type(
    http: httpx.AsyncClient, mac: str, presence_type: PresenceType | None
) -> DeviceDetails:
    """Classify a device as a primary/secondary presence indicator, or untrack it."""
    return await upsert_device(http, mac, presence_type=presence_type)
