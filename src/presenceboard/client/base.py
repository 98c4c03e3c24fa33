"""Shared HTTP plumbing for the presence/device/owner backend."""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from presenceboard.config import Settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A backend call failed: transport error or non-2xx response.

    ``message`` is safe to show to the user as-is.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def create_http_client(cfg: Settings) -> httpx.AsyncClient:
    """Build the backend client for the configured mode."""
    if cfg.backend_mode == "mock":
        from presenceboard.client.mock import MockBackend

        logger.info("Using in-process mock backend")
        return httpx.AsyncClient(
            base_url="http://mock.backend",
            transport=MockBackend().transport(),
        )
    logger.info("Using backend at %s", cfg.api_base_url)
    return httpx.AsyncClient(base_url=cfg.api_base_url, timeout=cfg.request_timeout)


def mac_path(mac: str) -> str:
    """Percent-encode a MAC for use as a path segment."""
    return quote(mac, safe="")


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Pull ``{"error": ...}`` out of a failed response, or build a generic message."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error:
            return error
    return f"{fallback}: {response.status_code}"


async def request_json(
    http: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    fallback: str,
    json: Any = None,
) -> Any:
    """Send a request and return the decoded JSON body (None if empty).

    Raises:
        ApiError: on transport failure or any non-2xx status. ``fallback``
            names the operation for errors that carry no usable message.
    """
    try:
        response = await http.request(method, path, json=json)
    except httpx.HTTPError as e:
        logger.warning("%s %s failed: %s", method, path, e)
        raise ApiError(f"{fallback}: {e}") from e

    if response.is_error:
        message = _error_message(response, fallback)
        logger.warning("%s %s -> HTTP %d: %s", method, path, response.status_code, message)
        raise ApiError(message, status_code=response.status_code)

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise ApiError(f"{fallback}: invalid JSON response") from e
