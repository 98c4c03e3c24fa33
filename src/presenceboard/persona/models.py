"""Owner models for device-to-owner mapping."""

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from presenceboard.registry.models import Device

# Owner reserved for household infrastructure (router, TV, printers...).
# Devices assigned to it are never grouped under a person.
SYSTEM_OWNER_ID = 1


class OwnerKind(enum.StrEnum):
    person = "person"
    home = "home"
    guest = "guest"


class Owner(BaseModel):
    """A person or household entity that owns one or more devices."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    name: str
    kind: OwnerKind = OwnerKind.person

    @property
    def is_system(self) -> bool:
        return self.id == SYSTEM_OWNER_ID


@dataclass
class OwnerPresence:
    """Presence rollup for one owner.

    Only devices with an explicit presence type are bucketed; ``all`` holds
    every tracked device, ``primary``/``secondary`` split it by type.
    """

    owner: Owner
    primary: list["Device"] = field(default_factory=list)
    secondary: list["Device"] = field(default_factory=list)
    all: list["Device"] = field(default_factory=list)
    is_home: bool = False
