"""Owner registry client."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from presenceboard.client.base import ApiError, request_json
from presenceboard.persona.models import Owner, OwnerKind

logger = logging.getLogger(__name__)


def _parse_owner(data: Any, fallback: str) -> Owner:
    try:
        return Owner.model_validate(data)
    except ValidationError as e:
        raise ApiError(f"{fallback}: malformed owner record") from e


async def list_owners(http: httpx.AsyncClient) -> list[Owner]:
    rows = await request_json(http, "GET", "/api/owners", fallback="Failed to load owners")
    return [_parse_owner(row, "Failed to load owners") for row in rows or []]


async def create_owner(
    http: httpx.AsyncClient, name: str, kind: OwnerKind = OwnerKind.person
) -> Owner:
    data = await request_json(
        http,
        "POST",
        "/api/owners",
        json={"name": name, "kind": OwnerKind(kind).value},
        fallback="Create failed",
    )
    owner = _parse_owner(data, "Create failed")
    logger.info("Created owner: %s (id=%s)", owner.name, owner.id)
    return owner


async def update_owner(
    http: httpx.AsyncClient, owner_id: int, name: str, kind: OwnerKind
) -> Owner:
    data = await request_json(
        http,
        "PUT",
        f"/api/owners/{owner_id}",
        json={"name": name, "kind": OwnerKind(kind).value},
        fallback="Update failed",
    )
    return _parse_owner(data, "Update failed")


async def delete_owner(http: httpx.AsyncClient, owner_id: int) -> None:
    """Delete an owner. Devices pointing at it are left dangling."""
    await request_json(http, "DELETE", f"/api/owners/{owner_id}", fallback="Delete failed")
    logger.info("Deleted owner id=%s", owner_id)
