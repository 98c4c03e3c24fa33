"""Device, stored device record and presence snapshot models.

Field names follow Python conventions; the backend speaks camelCase, so every
model validates and serializes through camelCase aliases.
"""

import enum
from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from presenceboard.persona.models import OwnerKind


class PresenceType(enum.IntEnum):
    primary = 1
    secondary = 2


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Device(_WireModel):
    """One device in the merged dashboard view."""

    mac: str
    label: str | None = None
    display: str | None = None
    connected: bool = False
    band: str | None = None
    rssi: int | None = None
    ip: str | None = None
    presence_type: PresenceType | None = None
    owner_id: int | None = None
    # Denormalized from the owner registry at merge time, never authoritative
    owner_name: str | None = None
    owner_type: OwnerKind | None = None

    @property
    def name(self) -> str:
        """Label if set, otherwise the router's name, otherwise the MAC."""
        return self.label or self.display or self.mac


class DeviceDetails(_WireModel):
    """Per-MAC metadata persisted by the device backend."""

    mac: str
    label: str | None = None
    owner_id: int | None = None
    presence_type: PresenceType | None = None
    band: str | None = None
    ip: str | None = None


class PresenceSnapshot(_WireModel):
    """Router-observed client list at a point in time."""

    captured_at: datetime
    home: list[Device] = []
    away: list[Device] = []
    unclaimed_devices_needing_labels: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "unclaimedDevicesNeedingLabels",
            "unknownMacsNeedingLabels",
            "unclaimed_devices_needing_labels",
        ),
        serialization_alias="unclaimedDevicesNeedingLabels",
    )
