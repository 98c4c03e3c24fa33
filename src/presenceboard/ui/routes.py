"""UI page routes and HTMX partial endpoints."""

import enum
from datetime import timedelta
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from presenceboard.dashboard.controller import DashboardController, get_controller
from presenceboard.persona.models import OwnerKind
from presenceboard.registry.models import Device, PresenceType
from presenceboard.registry.vendors import describe_mac
from presenceboard.ui.formatting import pad_ip, rssi_level

_template_dir = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(_template_dir))
templates.env.filters["pad_ip"] = pad_ip
templates.env.filters["rssi_level"] = rssi_level

router = APIRouter()


class Tab(enum.StrEnum):
    dashboard = "dashboard"
    maintenance = "maintenance"
    settings = "settings"


_TAB_PATHS = {"/": Tab.dashboard, "/maintenance": Tab.maintenance, "/settings": Tab.settings}


def _redirect_target(current_url: str | None) -> str:
    """Path of the page to reload; anything but a known tab goes to the dashboard."""
    path = urlsplit(current_url or "").path.rstrip("/") or "/"
    return path if path in _TAB_PATHS else "/"


def _parse_owner_id(value: str) -> int | None:
    value = value.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise HTTPException(status_code=422, detail="Invalid owner id")


def _parse_presence_type(value: str) -> PresenceType | None:
    value = value.strip()
    if not value:
        return None
    try:
        return PresenceType(int(value))
    except ValueError:
        raise HTTPException(status_code=422, detail="Invalid presence type")


def _parse_kind(value: str) -> OwnerKind:
    if value not in OwnerKind.__members__:
        raise HTTPException(status_code=422, detail="Invalid owner kind")
    return OwnerKind(value)


def _maintenance_sections(controller: DashboardController) -> list[dict[str, Any]]:
    """Devices grouped the way the router reported them, for labeling."""
    devices = controller.state.devices
    snapshot = controller.state.snapshot
    seen: set[str] = set()

    def _take(reported: list[Device]) -> list[Device]:
        taken = []
        for device in reported:
            if device.mac not in seen:
                seen.add(device.mac)
                taken.append(devices[device.mac])
        return taken

    home = _take(snapshot.home) if snapshot else []
    away = _take(snapshot.away) if snapshot else []
    stored_only = [d for mac, d in devices.items() if mac not in seen]
    return [
        {"key": "home", "title": "Home Devices", "devices": home,
         "empty": "No home devices detected."},
        {"key": "away", "title": "Away Devices", "devices": away,
         "empty": "No away devices right now."},
        {"key": "stored", "title": "Not Seen By Router", "devices": stored_only,
         "empty": "Every known device is visible to the router."},
    ]


def _unclaimed(controller: DashboardController) -> list[dict[str, Any]]:
    snapshot = controller.state.snapshot
    if snapshot is None:
        return []
    devices = controller.state.devices
    return [
        {"device": devices.get(mac) or Device(mac=mac), "hint": describe_mac(mac)}
        for mac in snapshot.unclaimed_devices_needing_labels
    ]


def _page_context(controller: DashboardController, tab: Tab) -> dict[str, Any]:
    return {"state": controller.state, "tab": tab}


@router.get("/", response_class=HTMLResponse)
def dashboard(
    request: Request,
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            **_page_context(controller, Tab.dashboard),
            "people": controller.people(),
            "rows": controller.device_rows(),
            "consider_minutes": int(controller.state.consider_home.total_seconds() // 60),
        },
    )


@router.get("/partials/people", response_class=HTMLResponse)
def partial_people(
    request: Request,
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "partials/people_list.html",
        {"state": controller.state, "people": controller.people()},
    )


@router.get("/partials/device-table", response_class=HTMLResponse)
def partial_device_table(
    request: Request,
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "partials/device_table.html",
        {"state": controller.state, "rows": controller.device_rows()},
    )


@router.post("/refresh")
async def refresh(
    request: Request,
    controller: DashboardController = Depends(get_controller),
) -> Response:
    await controller.refresh()
    target = _redirect_target(request.headers.get("HX-Current-URL"))
    return Response(status_code=200, headers={"HX-Redirect": target})


@router.post("/consider-home", response_class=HTMLResponse)
def set_consider_home(
    request: Request,
    minutes: int = Form(5),
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    controller.set_consider_home(timedelta(minutes=max(0, minutes)))
    return templates.TemplateResponse(
        request,
        "partials/presence_panel.html",
        {
            "state": controller.state,
            "people": controller.people(),
            "rows": controller.device_rows(),
        },
    )


# Maintenance page
@router.get("/maintenance", response_class=HTMLResponse)
def maintenance_page(
    request: Request,
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "maintenance.html",
        {
            **_page_context(controller, Tab.maintenance),
            "sections": _maintenance_sections(controller),
            "unclaimed": _unclaimed(controller),
            "owners": controller.assignable_owners(),
        },
    )


def _device_row(
    request: Request, controller: DashboardController, mac: str
) -> HTMLResponse:
    device = controller.state.devices.get(mac)
    if device is None:
        raise HTTPException(status_code=404, detail="Device not found")
    return templates.TemplateResponse(
        request,
        "partials/maintenance_row.html",
        {
            "state": controller.state,
            "device": device,
            "owners": controller.assignable_owners(),
            "oob_error": True,
        },
    )


@router.post("/devices/{mac}/label", response_class=HTMLResponse)
async def save_device_label(
    request: Request,
    mac: str,
    label: str = Form(""),
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    await controller.set_label(mac, label)
    return _device_row(request, controller, mac)


@router.post("/devices/{mac}/owner", response_class=HTMLResponse)
async def save_device_owner(
    request: Request,
    mac: str,
    owner_id: str = Form(""),
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    await controller.set_owner(mac, _parse_owner_id(owner_id))
    return _device_row(request, controller, mac)


@router.post("/devices/{mac}/presence-type", response_class=HTMLResponse)
async def save_device_presence_type(
    request: Request,
    mac: str,
    presence_type: str = Form(""),
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    await controller.set_presence_type(mac, _parse_presence_type(presence_type))
    return _device_row(request, controller, mac)


# Settings page (owners)
def _owner_list(request: Request, controller: DashboardController) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "partials/owner_list.html",
        {
            "state": controller.state,
            "owners": controller.assignable_owners(),
            "kinds": list(OwnerKind),
            "oob_error": True,
        },
    )


@router.get("/settings", response_class=HTMLResponse)
def settings_page(
    request: Request,
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "settings.html",
        {
            **_page_context(controller, Tab.settings),
            "owners": controller.assignable_owners(),
            "kinds": list(OwnerKind),
        },
    )


@router.post("/owners/add", response_class=HTMLResponse)
async def add_owner(
    request: Request,
    name: str = Form(""),
    kind: str = Form("person"),
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    await controller.add_owner(name, _parse_kind(kind))
    return _owner_list(request, controller)


@router.post("/owners/{owner_id}/update", response_class=HTMLResponse)
async def edit_owner(
    request: Request,
    owner_id: int,
    name: str = Form(""),
    kind: str = Form("person"),
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    await controller.edit_owner(owner_id, name, _parse_kind(kind))
    return _owner_list(request, controller)


@router.delete("/owners/{owner_id}", response_class=HTMLResponse)
async def delete_owner_ui(
    request: Request,
    owner_id: int,
    controller: DashboardController = Depends(get_controller),
) -> HTMLResponse:
    await controller.remove_owner(owner_id)
    return _owner_list(request, controller)
