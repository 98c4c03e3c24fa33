"""Router presence snapshot fetcher."""

import httpx
from pydantic import ValidationError

from presenceboard.client.base import ApiError, request_json
from presenceboard.registry.models import PresenceSnapshot


async def get_presence_snapshot(http: httpx.AsyncClient) -> PresenceSnapshot:
    """Fetch the router's current client list."""
    data = await request_json(http, "GET", "/api/presence", fallback="Failed to fetch snapshot")
    try:
        return PresenceSnapshot.model_validate(data)
    except ValidationError as e:
        raise ApiError(f"Malformed presence snapshot: {e.error_count()} error(s)") from e
