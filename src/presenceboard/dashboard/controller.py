"""Dashboard controller: owns the application state and talks to the backend.

All backend calls are awaited on the event loop; handlers may interleave,
but every state change is a whole-value swap of ``self.state`` so a reader
never sees a half-applied update. Backend failures never escape the
controller: they end up in ``state.error`` for the banner.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

import httpx
from fastapi import Request

from presenceboard.client.base import ApiError
from presenceboard.client.devices import (
    list_device_details,
    set_device_owner,
    set_presence_type,
    upsert_device_label,
)
from presenceboard.client.owners import create_owner, delete_owner, list_owners, update_owner
from presenceboard.client.presence import get_presence_snapshot
from presenceboard.dashboard import state as transitions
from presenceboard.dashboard.state import DashboardState
from presenceboard.persona.engine import derive_presence, is_considered_home, time_since
from presenceboard.persona.models import SYSTEM_OWNER_ID, Owner, OwnerKind, OwnerPresence
from presenceboard.registry.models import Device, DeviceDetails, PresenceType

logger = logging.getLogger(__name__)


@dataclass
class DeviceRow:
    """A device plus its computed home/away status for the device table."""

    device: Device
    considered_home: bool


class DashboardController:
    """Single owner of ``DashboardState`` for the running application."""

    def __init__(self, http: httpx.AsyncClient, consider_home: timedelta) -> None:
        self.http = http
        self.state = DashboardState(consider_home=consider_home)
        # Bumped per refresh / per stored-device fetch; results from an older
        # generation are dropped without touching state
        self._refresh_generation = 0
        self._stored_generation = 0
        # Records saved while a device list fetch is in flight win over it
        self._saved_during_fetch: dict[str, DeviceDetails] = {}

    # --- Loading ---

    async def refresh(self) -> DashboardState:
        """Reload the snapshot, stored devices and owners from the backend.

        Only the most recent call applies its results; a slower, older
        refresh finishing late is ignored.
        """
        self._refresh_generation += 1
        generation = self._refresh_generation
        self.state = transitions.start_loading(self.state)
        try:
            snapshot = await get_presence_snapshot(self.http)
        except ApiError as e:
            if generation != self._refresh_generation:
                return self.state
            logger.warning("Presence snapshot unavailable: %s", e.message)
            self.state = transitions.load_failed(self.state, e.message)
            return self.state
        if generation != self._refresh_generation:
            logger.debug("Discarding stale snapshot (refresh %d)", generation)
            return self.state

        self.state = transitions.snapshot_loaded(self.state, snapshot)
        await asyncio.gather(
            self._load_stored_devices(generation), self._load_owners(generation)
        )
        if generation != self._refresh_generation:
            return self.state
        self.state = transitions.finish_loading(self.state)
        logger.info(
            "Refreshed: %d home, %d away, %d device(s) merged",
            len(snapshot.home),
            len(snapshot.away),
            len(self.state.devices),
        )
        return self.state

    async def _load_stored_devices(self, refresh_generation: int) -> None:
        self._stored_generation += 1
        generation = self._stored_generation
        self._saved_during_fetch = {}
        try:
            stored = await list_device_details(self.http)
        except ApiError as e:
            if self._is_current(refresh_generation, generation):
                self.state = transitions.load_failed(self.state, e.message)
            return
        if not self._is_current(refresh_generation, generation):
            logger.debug("Discarding stale device fetch (generation %d)", generation)
            return
        stored.update(self._saved_during_fetch)
        self.state = transitions.stored_devices_loaded(self.state, stored)

    def _is_current(self, refresh_generation: int, stored_generation: int) -> bool:
        return (
            refresh_generation == self._refresh_generation
            and stored_generation == self._stored_generation
        )

    async def _load_owners(self, refresh_generation: int | None = None) -> None:
        # Secondary to the presence view: degrade to no owners on failure
        try:
            owners = await list_owners(self.http)
        except ApiError as e:
            logger.warning("Owner list unavailable, continuing without owners: %s", e.message)
            owners = []
        if refresh_generation is not None and refresh_generation != self._refresh_generation:
            return
        self.state = transitions.owners_loaded(self.state, owners)

    def _record_saved(self, saved: DeviceDetails) -> None:
        self._saved_during_fetch[saved.mac] = saved
        self.state = transitions.device_record_saved(self.state, saved)

    # --- Device edits ---

    async def set_label(self, mac: str, label: str | None) -> DashboardState:
        """Show the label immediately, then persist it.

        On failure the optimistic label is kept and the error is recorded;
        the next refresh brings back whatever the backend actually stored.
        """
        cleaned = (label or "").strip() or None
        self.state = transitions.label_applied(self.state, mac, cleaned)
        try:
            saved = await upsert_device_label(self.http, mac, cleaned)
        except ApiError as e:
            self.state = transitions.error_raised(self.state, e.message)
            return self.state
        self._record_saved(saved)
        logger.info("Label for %s set to %r", mac, cleaned)
        return self.state

    async def set_owner(self, mac: str, owner_id: int | None) -> DashboardState:
        """Persist an owner assignment, then apply the stored record."""
        try:
            saved = await set_device_owner(self.http, mac, owner_id)
        except ApiError as e:
            self.state = transitions.error_raised(self.state, e.message)
            return self.state
        self._record_saved(saved)
        logger.info("Owner for %s set to %s", mac, owner_id)
        return self.state

    async def set_presence_type(
        self, mac: str, presence_type: PresenceType | None
    ) -> DashboardState:
        """Persist a presence classification, then apply the stored record."""
        try:
            saved = await set_presence_type(self.http, mac, presence_type)
        except ApiError as e:
            self.state = transitions.error_raised(self.state, e.message)
            return self.state
        self._record_saved(saved)
        return self.state

    # --- Owners ---

    async def add_owner(self, name: str, kind: OwnerKind = OwnerKind.person) -> DashboardState:
        name = name.strip()
        if not name:
            self.state = transitions.error_raised(self.state, "Owner name is required")
            return self.state
        try:
            await create_owner(self.http, name, kind)
        except ApiError as e:
            self.state = transitions.error_raised(self.state, e.message)
            return self.state
        await self._load_owners()
        return self.state

    async def edit_owner(self, owner_id: int, name: str, kind: OwnerKind) -> DashboardState:
        name = name.strip()
        if not name:
            self.state = transitions.error_raised(self.state, "Owner name is required")
            return self.state
        try:
            await update_owner(self.http, owner_id, name, kind)
        except ApiError as e:
            self.state = transitions.error_raised(self.state, e.message)
            return self.state
        await self._load_owners()
        return self.state

    async def remove_owner(self, owner_id: int) -> DashboardState:
        """Delete an owner; its devices fall back to unassigned."""
        if owner_id == SYSTEM_OWNER_ID:
            self.state = transitions.error_raised(
                self.state, "The house owner cannot be deleted"
            )
            return self.state
        try:
            await delete_owner(self.http, owner_id)
        except ApiError as e:
            self.state = transitions.error_raised(self.state, e.message)
            return self.state
        await self._load_owners()
        return self.state

    # --- Settings ---

    def set_consider_home(self, window: timedelta) -> DashboardState:
        self.state = transitions.consider_home_changed(self.state, window)
        return self.state

    # --- Derived views ---

    def people(self, now: datetime | None = None) -> list[OwnerPresence]:
        """Owner presence rollups, sorted by owner name."""
        snapshot = self.state.snapshot
        if snapshot is None:
            return []
        presence = derive_presence(
            self.state.devices,
            self.state.owners,
            snapshot.captured_at,
            self.state.consider_home,
            now=now,
        )
        return sorted(presence.values(), key=lambda p: p.owner.name.lower())

    def device_rows(self, now: datetime | None = None) -> list[DeviceRow]:
        snapshot = self.state.snapshot
        if snapshot is None:
            return [
                DeviceRow(device=device, considered_home=device.connected)
                for device in self.state.devices.values()
            ]
        elapsed = time_since(snapshot.captured_at, now)
        return [
            DeviceRow(
                device=device,
                considered_home=is_considered_home(device, elapsed, self.state.consider_home),
            )
            for device in self.state.devices.values()
        ]

    def assignable_owners(self) -> list[Owner]:
        return sorted(self.state.owners.values(), key=lambda o: (not o.is_system, o.name.lower()))


def get_controller(request: Request) -> DashboardController:
    """FastAPI dependency: the controller created at startup."""
    return request.app.state.dashboard
