"""JSON endpoints exposing the derived dashboard state to home automations."""

from typing import Any

from fastapi import APIRouter, Depends

from presenceboard.dashboard.controller import DashboardController, get_controller
from presenceboard.registry.models import Device

router = APIRouter(prefix="/api")


def _device_json(device: Device) -> dict[str, Any]:
    return device.model_dump(by_alias=True, mode="json")


@router.get("/people")
def people_presence(
    controller: DashboardController = Depends(get_controller),
) -> list[dict[str, Any]]:
    return [
        {
            "owner": presence.owner.model_dump(mode="json"),
            "isHome": presence.is_home,
            "primary": [_device_json(d) for d in presence.primary],
            "secondary": [_device_json(d) for d in presence.secondary],
            "all": [_device_json(d) for d in presence.all],
        }
        for presence in controller.people()
    ]


@router.get("/devices")
def merged_devices(
    controller: DashboardController = Depends(get_controller),
) -> list[dict[str, Any]]:
    return [
        {**_device_json(row.device), "consideredHome": row.considered_home}
        for row in controller.device_rows()
    ]


@router.get("/status")
def dashboard_status(
    controller: DashboardController = Depends(get_controller),
) -> dict[str, Any]:
    state = controller.state
    return {
        "status": state.status.value,
        "error": state.error,
        "capturedAt": state.snapshot.captured_at.isoformat() if state.snapshot else None,
        "considerHomeSeconds": int(state.consider_home.total_seconds()),
    }
