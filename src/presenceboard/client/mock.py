"""In-process mock backend for development and testing.

Implements the presence, device and owner endpoints in memory behind an
``httpx.MockTransport`` so the dashboard runs without a router or database.
The seeded household has a system owner, one person with a primary phone
and a secondary tablet, a TV on the system owner, an unlabeled client and a
powered-off laptop known only from storage.
"""

import json
import logging
import re
from datetime import UTC, datetime
from typing import Any
from urllib.parse import unquote

import httpx

from presenceboard.persona.models import SYSTEM_OWNER_ID, OwnerKind
from presenceboard.registry.models import PresenceType

logger = logging.getLogger(__name__)

_ROUTER_CLIENTS = [
    {"mac": "AA:BB:CC:11:22:33", "display": "alex-iphone", "connected": True,
     "band": "5g", "rssi": -48, "ip": "192.168.50.21"},
    {"mac": "AA:BB:CC:44:55:66", "display": "living-room-tv", "connected": True,
     "band": "wired", "rssi": 0, "ip": "192.168.50.12"},
    {"mac": "AA:BB:CC:77:88:99", "display": "alex-ipad", "connected": True,
     "band": "2g", "rssi": -66, "ip": "192.168.50.34"},
    {"mac": "FA:12:34:56:78:9A", "display": "fa123456789a", "connected": True,
     "band": "5g", "rssi": -71, "ip": "192.168.50.101"},
    {"mac": "00:00:00:00:00:00", "display": "example-away-device", "connected": False,
     "band": "5g", "rssi": -100, "ip": "192.168.50.250"},
]

_STORED_DEVICES = [
    {"mac": "AA:BB:CC:11:22:33", "label": "Alex's phone", "ownerId": 2, "presenceType": 1},
    {"mac": "AA:BB:CC:44:55:66", "label": "Living room TV", "ownerId": SYSTEM_OWNER_ID},
    {"mac": "AA:BB:CC:77:88:99", "label": "Alex's iPad", "ownerId": 2, "presenceType": 2},
    {"mac": "AA:BB:CC:AA:BB:CC", "label": "Work laptop", "ownerId": 2,
     "band": "5g", "ip": "192.168.50.40"},
]

_OWNERS = [
    {"id": SYSTEM_OWNER_ID, "name": "House", "kind": "home"},
    {"id": 2, "name": "Alex", "kind": "person"},
]

_DEVICE_KEYS = {"label", "band", "ip", "ownerId", "presenceType"}
_OWNER_PATH = re.compile(r"^/api/owners/(\d+)$")
_DEVICE_OWNER_PATH = re.compile(r"^/api/devices/([^/]+)/owner$")
_DEVICE_PATH = re.compile(r"^/api/devices/([^/]+)$")


def _error(status_code: int, message: str) -> httpx.Response:
    return httpx.Response(status_code, json={"error": message})


class MockBackend:
    """Serves a fake household over the backend's REST interface."""

    def __init__(self) -> None:
        self.router_clients: list[dict[str, Any]] = [dict(c) for c in _ROUTER_CLIENTS]
        self.devices: dict[str, dict[str, Any]] = {d["mac"]: dict(d) for d in _STORED_DEVICES}
        self.owners: dict[int, dict[str, Any]] = {o["id"]: dict(o) for o in _OWNERS}
        self.captured_at = datetime.now(UTC)
        self._next_owner_id = max(self.owners) + 1

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        body: Any = None
        if request.content:
            try:
                body = json.loads(request.content)
            except ValueError:
                return _error(400, "Invalid JSON body")

        if path == "/api/presence" and method == "GET":
            return httpx.Response(200, json=self._snapshot())
        if path == "/api/devices" and method == "GET":
            return httpx.Response(200, json=list(self.devices.values()))
        if path == "/api/owners" and method == "GET":
            return httpx.Response(200, json=list(self.owners.values()))
        if path == "/api/owners" and method == "POST":
            return self._create_owner(body)

        if m := _OWNER_PATH.match(path):
            owner_id = int(m.group(1))
            if method == "PUT":
                return self._update_owner(owner_id, body)
            if method == "DELETE":
                return self._delete_owner(owner_id)
        if (m := _DEVICE_OWNER_PATH.match(path)) and method == "PUT":
            return self._set_owner(unquote(m.group(1)), body)
        if (m := _DEVICE_PATH.match(path)) and method == "PUT":
            return self._update_device(unquote(m.group(1)), body)

        return _error(404, "Not found")

    def _snapshot(self) -> dict[str, Any]:
        home = [c for c in self.router_clients if c["connected"]]
        away = [c for c in self.router_clients if not c["connected"]]
        unclaimed = [
            c["mac"]
            for c in self.router_clients
            if not self.devices.get(c["mac"], {}).get("label")
        ]
        return {
            "capturedAt": self.captured_at.isoformat().replace("+00:00", "Z"),
            "home": home,
            "away": away,
            "unclaimedDevicesNeedingLabels": unclaimed,
        }

    def _update_device(self, mac: str, body: Any) -> httpx.Response:
        if not isinstance(body, dict):
            return _error(400, "Expected a JSON object")
        unknown = set(body) - _DEVICE_KEYS
        if unknown:
            return _error(400, f"Unknown fields: {', '.join(sorted(unknown))}")
        presence_type = body.get("presenceType")
        if presence_type is not None and presence_type not in {t.value for t in PresenceType}:
            return _error(400, "presenceType must be 1, 2 or null")
        owner_id = body.get("ownerId")
        if owner_id is not None and owner_id not in self.owners:
            return _error(400, "Owner not found")
        record = self.devices.setdefault(mac, {"mac": mac})
        record.update(body)
        return httpx.Response(200, json=record)

    def _set_owner(self, mac: str, body: Any) -> httpx.Response:
        if not isinstance(body, dict) or "ownerId" not in body:
            return _error(400, "ownerId is required")
        return self._update_device(mac, {"ownerId": body["ownerId"]})

    def _validate_owner(self, body: Any) -> tuple[str, str] | httpx.Response:
        if not isinstance(body, dict):
            return _error(400, "Expected a JSON object")
        name = str(body.get("name") or "").strip()
        if not name:
            return _error(400, "Name is required")
        kind = body.get("kind", OwnerKind.person.value)
        if kind not in OwnerKind.__members__:
            return _error(400, f"Unknown owner kind: {kind}")
        return name, kind

    def _create_owner(self, body: Any) -> httpx.Response:
        parsed = self._validate_owner(body)
        if isinstance(parsed, httpx.Response):
            return parsed
        name, kind = parsed
        owner = {"id": self._next_owner_id, "name": name, "kind": kind}
        self.owners[owner["id"]] = owner
        self._next_owner_id += 1
        logger.debug("Mock backend created owner %s", owner)
        return httpx.Response(201, json=owner)

    def _update_owner(self, owner_id: int, body: Any) -> httpx.Response:
        if owner_id not in self.owners:
            return _error(404, "Owner not found")
        parsed = self._validate_owner(body)
        if isinstance(parsed, httpx.Response):
            return parsed
        name, kind = parsed
        self.owners[owner_id].update(name=name, kind=kind)
        return httpx.Response(200, json=self.owners[owner_id])

    def _delete_owner(self, owner_id: int) -> httpx.Response:
        if owner_id == SYSTEM_OWNER_ID:
            return _error(400, "The house owner cannot be deleted")
        if self.owners.pop(owner_id, None) is None:
            return _error(404, "Owner not found")
        # No cascade: device records keep pointing at the deleted id
        return httpx.Response(204)
