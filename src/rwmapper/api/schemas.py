"""Pydantic schemas for API responses and session export."""

from datetime import time
from typing import Optional

from pydantic import BaseModel


class ZoneResponse(BaseModel):
    """Finalized zone."""

    alias: int
    local_name: str
    dimension: str
    layer: str


class ObjectiveItemResponse(BaseModel):
    """Objective item placed in a zone."""

    kind: str
    zone_alias: Optional[int] = None
    count: int
    key_name: Optional[str] = None
    key_color: Optional[str] = None
    key_color_id: Optional[int] = None
    resource_container_id: Optional[str] = None
    ri: Optional[int] = None
    area_id: Optional[int] = None
    area_name: Optional[str] = None
    timestamp: Optional[time] = None


class SmallPickupResponse(BaseModel):
    """Personnel pickup container."""

    container: str
    seed: Optional[int] = None
    timestamp: Optional[time] = None


class GeneratorSlotResponse(BaseModel):
    """Generator numbered by order of appearance."""

    index: int
    zone_alias: Optional[int] = None
    resolved: bool
    via_fallback: bool
    collection_index: Optional[int] = None
    item_name: Optional[str] = None


class DoorEventResponse(BaseModel):
    """Door opening split marker."""

    timestamp: Optional[time] = None
    zone_alias: Optional[int] = None


class SplitResponse(BaseModel):
    """Door or game state marker, in log order."""

    timestamp: Optional[time] = None
    label: str
    zone_alias: Optional[int] = None


class DiagnosticResponse(BaseModel):
    """Anomaly found while reading the log."""

    kind: str
    message: str
    timestamp: Optional[time] = None
    raw_line: Optional[str] = None


class PendingZoneResponse(BaseModel):
    """Zone still waiting for its Zone Created line."""

    alias: int
    local_name: str


class PendingItemResponse(BaseModel):
    """Objective item still missing its count or zone."""

    item_id: str
    kind: str
    count: Optional[int] = None
    zone_alias: Optional[int] = None


class PendingCountsResponse(BaseModel):
    """Open correlations."""

    zones: int
    keys: int
    items: int
    zone_selections: int
    unresolved_generators: int


class LevelResponse(BaseModel):
    """Level header."""

    name: Optional[str] = None
    rundown: Optional[str] = None
    tier: Optional[str] = None
    expedition_index: Optional[int] = None
    build_seed: Optional[int] = None
    host_id_seed: Optional[int] = None
    session_seed: Optional[int] = None
    build_done: bool = False


class SessionExport(BaseModel):
    """Complete session - the export and live snapshot schema."""

    level: LevelResponse
    zones: list[ZoneResponse]
    items: list[ObjectiveItemResponse]
    unresolved_keys: list[ObjectiveItemResponse]
    generators: list[GeneratorSlotResponse]
    small_pickups: list[SmallPickupResponse]
    door_events: list[DoorEventResponse]
    splits: list[SplitResponse]
    pending_zones: list[PendingZoneResponse]
    pending_items: list[PendingItemResponse]
    pending: PendingCountsResponse
    diagnostics: list[DiagnosticResponse]
    generator_index_policy: str
    lines_processed: int
    unrecognized_count: int
    finalized: bool


class StatusResponse(BaseModel):
    """Server status response."""

    status: str
    collector_running: bool
    log_path: Optional[str] = None
    lines_processed: int
    finalized: bool
    diagnostic_count: int
