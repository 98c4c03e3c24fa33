"""Dashboard state and the pure transitions that produce new states.

Every transition returns a new ``DashboardState``; the merged device view is
rebuilt whenever one of its inputs (snapshot, stored devices, owners)
changes, so it can never drift from them.
"""

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import timedelta
from types import MappingProxyType
from typing import Any

from presenceboard.persona.models import Owner
from presenceboard.registry.models import Device, DeviceDetails, PresenceSnapshot
from presenceboard.registry.reconcile import merge_devices


class LoadStatus(enum.StrEnum):
    loading = "loading"
    error = "error"
    idle = "idle"


def _frozen(mapping: Mapping[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class DashboardState:
    status: LoadStatus = LoadStatus.idle
    error: str | None = None
    snapshot: PresenceSnapshot | None = None
    stored: Mapping[str, DeviceDetails] = field(default_factory=lambda: _frozen({}))
    owners: Mapping[int, Owner] = field(default_factory=lambda: _frozen({}))
    devices: Mapping[str, Device] = field(default_factory=lambda: _frozen({}))
    consider_home: timedelta = timedelta(minutes=5)


def _with_inputs(state: DashboardState, **changes: Any) -> DashboardState:
    """Replace reconciliation inputs and rebuild the merged view."""
    for key in ("stored", "owners"):
        if key in changes:
            changes[key] = _frozen(changes[key])
    next_state = replace(state, **changes)
    devices = merge_devices(next_state.snapshot, next_state.stored, next_state.owners)
    return replace(next_state, devices=_frozen(devices))


def start_loading(state: DashboardState) -> DashboardState:
    return replace(state, status=LoadStatus.loading, error=None)


def finish_loading(state: DashboardState) -> DashboardState:
    if state.status == LoadStatus.error:
        return state
    return replace(state, status=LoadStatus.idle)


def load_failed(state: DashboardState, message: str) -> DashboardState:
    return replace(state, status=LoadStatus.error, error=message)


def error_raised(state: DashboardState, message: str) -> DashboardState:
    """Record a mutation failure without touching the load status."""
    return replace(state, error=message)


def snapshot_loaded(state: DashboardState, snapshot: PresenceSnapshot) -> DashboardState:
    return _with_inputs(state, snapshot=snapshot)


def stored_devices_loaded(
    state: DashboardState, stored: Mapping[str, DeviceDetails]
) -> DashboardState:
    return _with_inputs(state, stored=stored)


def owners_loaded(state: DashboardState, owners: Iterable[Owner]) -> DashboardState:
    return _with_inputs(state, owners={owner.id: owner for owner in owners})


def device_record_saved(state: DashboardState, details: DeviceDetails) -> DashboardState:
    """Take the backend's copy of one stored record as the new truth."""
    stored = dict(state.stored)
    stored[details.mac] = details
    return _with_inputs(state, stored=stored)


def label_applied(state: DashboardState, mac: str, label: str | None) -> DashboardState:
    """Optimistically show a new label before it is persisted.

    A non-empty label also takes the MAC off the snapshot's unclaimed list.
    """
    stored = dict(state.stored)
    current = stored.get(mac) or DeviceDetails(mac=mac)
    stored[mac] = current.model_copy(update={"label": label})

    snapshot = state.snapshot
    if label and snapshot is not None and mac in snapshot.unclaimed_devices_needing_labels:
        remaining = [m for m in snapshot.unclaimed_devices_needing_labels if m != mac]
        snapshot = snapshot.model_copy(update={"unclaimed_devices_needing_labels": remaining})
    return _with_inputs(state, stored=stored, snapshot=snapshot)


def consider_home_changed(state: DashboardState, window: timedelta) -> DashboardState:
    return replace(state, consider_home=max(window, timedelta(0)))
