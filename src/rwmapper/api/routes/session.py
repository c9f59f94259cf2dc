"""Session API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from rwmapper.api.export import (
    build_export,
    diagnostic_response,
    generator_response,
    item_response,
    pickup_response,
    zone_response,
)
from rwmapper.api.schemas import (
    DiagnosticResponse,
    DoorEventResponse,
    GeneratorSlotResponse,
    ObjectiveItemResponse,
    SessionExport,
    SmallPickupResponse,
    ZoneResponse,
)
from rwmapper.collector.driver import StreamDriver
from rwmapper.core.models import DiagnosticKind, ItemKind

router = APIRouter(prefix="/api/session", tags=["session"])


def get_driver() -> StreamDriver:
    """Dependency injection for the stream driver - set by app factory."""
    raise NotImplementedError("Stream driver not configured")


@router.get("", response_model=SessionExport)
def get_session(driver: StreamDriver = Depends(get_driver)) -> SessionExport:
    """Get the whole session as it stands."""
    return build_export(driver.snapshot())


@router.get("/zones", response_model=list[ZoneResponse])
def list_zones(driver: StreamDriver = Depends(get_driver)) -> list[ZoneResponse]:
    """List finalized zones in creation order."""
    return [zone_response(z) for z in driver.snapshot().zones]


@router.get("/zones/{alias}", response_model=ZoneResponse)
def get_zone(alias: int, driver: StreamDriver = Depends(get_driver)) -> ZoneResponse:
    """Get a single zone by alias."""
    zone = driver.snapshot().zone(alias)
    if zone is None:
        raise HTTPException(status_code=404, detail="Zone not found")
    return zone_response(zone)


@router.get("/items", response_model=list[ObjectiveItemResponse])
def list_items(
    kind: Optional[str] = None,
    include_unresolved: bool = False,
    driver: StreamDriver = Depends(get_driver),
) -> list[ObjectiveItemResponse]:
    """
    List objective items.

    Args:
        kind: Only items of this kind (e.g. Cell, Key)
        include_unresolved: Also list keys still waiting for a container
    """
    snapshot = driver.snapshot()
    items = list(snapshot.items)
    if include_unresolved:
        items.extend(snapshot.unresolved_keys)

    if kind is not None:
        try:
            item_kind = ItemKind(kind)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown item kind: {kind}")
        items = [i for i in items if i.kind == item_kind]

    return [item_response(i) for i in items]


@router.get("/generators", response_model=list[GeneratorSlotResponse])
def list_generators(
    resolved: Optional[bool] = None,
    driver: StreamDriver = Depends(get_driver),
) -> list[GeneratorSlotResponse]:
    """List generator slots, optionally only resolved or unresolved ones."""
    slots = driver.snapshot().generators
    if resolved is not None:
        slots = tuple(s for s in slots if s.resolved == resolved)
    return [generator_response(s) for s in slots]


@router.get("/doors", response_model=list[DoorEventResponse])
def list_doors(driver: StreamDriver = Depends(get_driver)) -> list[DoorEventResponse]:
    """List door openings in log order."""
    return [
        DoorEventResponse(timestamp=e.timestamp, zone_alias=e.zone_alias)
        for e in driver.snapshot().door_events
    ]


@router.get("/pickups", response_model=list[SmallPickupResponse])
def list_pickups(driver: StreamDriver = Depends(get_driver)) -> list[SmallPickupResponse]:
    """List personnel pickup containers with their seeds."""
    return [pickup_response(p) for p in driver.snapshot().small_pickups]


@router.get("/diagnostics", response_model=list[DiagnosticResponse])
def list_diagnostics(
    kind: Optional[str] = None,
    driver: StreamDriver = Depends(get_driver),
) -> list[DiagnosticResponse]:
    """List diagnostics, optionally filtered by kind name (e.g. MALFORMED)."""
    diagnostics = driver.snapshot().diagnostics
    if kind is not None:
        try:
            diagnostic_kind = DiagnosticKind[kind.upper()]
        except KeyError:
            raise HTTPException(status_code=400, detail=f"Unknown diagnostic kind: {kind}")
        diagnostics = tuple(d for d in diagnostics if d.kind == diagnostic_kind)
    return [diagnostic_response(d) for d in diagnostics]
