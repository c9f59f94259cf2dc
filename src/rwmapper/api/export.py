"""Convert session snapshots to the export schema."""

from pathlib import Path

from rwmapper.api.schemas import (
    DiagnosticResponse,
    DoorEventResponse,
    GeneratorSlotResponse,
    LevelResponse,
    ObjectiveItemResponse,
    PendingCountsResponse,
    PendingItemResponse,
    PendingZoneResponse,
    SessionExport,
    SmallPickupResponse,
    SplitResponse,
    ZoneResponse,
)
from rwmapper.core.models import (
    Diagnostic,
    GeneratorSlot,
    ObjectiveItem,
    SessionSnapshot,
    SmallPickup,
    Zone,
)


def zone_response(zone: Zone) -> ZoneResponse:
    return ZoneResponse(
        alias=zone.alias,
        local_name=zone.local_name,
        dimension=zone.dimension,
        layer=zone.layer,
    )


def item_response(item: ObjectiveItem) -> ObjectiveItemResponse:
    return ObjectiveItemResponse(
        kind=item.kind.value,
        zone_alias=item.zone_alias,
        count=item.count,
        key_name=item.key_name,
        key_color=item.key_color,
        key_color_id=item.key_color_id,
        resource_container_id=item.resource_container_id,
        ri=item.ri,
        area_id=item.area_id,
        area_name=item.area_name,
        timestamp=item.timestamp,
    )


def generator_response(slot: GeneratorSlot) -> GeneratorSlotResponse:
    return GeneratorSlotResponse(
        index=slot.index,
        zone_alias=slot.zone_alias,
        resolved=slot.resolved,
        via_fallback=slot.via_fallback,
        collection_index=slot.collection_index,
        item_name=slot.item_name,
    )


def pickup_response(pickup: SmallPickup) -> SmallPickupResponse:
    return SmallPickupResponse(
        container=pickup.container, seed=pickup.seed, timestamp=pickup.timestamp
    )


def diagnostic_response(diagnostic: Diagnostic) -> DiagnosticResponse:
    return DiagnosticResponse(
        kind=diagnostic.kind.name,
        message=diagnostic.message,
        timestamp=diagnostic.timestamp,
        raw_line=diagnostic.raw_line,
    )


def build_export(snapshot: SessionSnapshot) -> SessionExport:
    """
    Build the export model for a snapshot.

    Args:
        snapshot: Session snapshot (finalized or live)

    Returns:
        SessionExport ready for JSON serialization
    """
    level = snapshot.level
    pending = snapshot.pending

    return SessionExport(
        level=LevelResponse(
            name=level.display_name,
            rundown=level.rundown.name if level.rundown else None,
            tier=level.tier,
            expedition_index=level.expedition_index,
            build_seed=level.build_seed,
            host_id_seed=level.host_id_seed,
            session_seed=level.session_seed,
            build_done=level.build_done,
        ),
        zones=[zone_response(z) for z in snapshot.zones],
        items=[item_response(i) for i in snapshot.items],
        unresolved_keys=[item_response(i) for i in snapshot.unresolved_keys],
        generators=[generator_response(g) for g in snapshot.generators],
        small_pickups=[pickup_response(p) for p in snapshot.small_pickups],
        door_events=[
            DoorEventResponse(timestamp=e.timestamp, zone_alias=e.zone_alias)
            for e in snapshot.door_events
        ],
        splits=[
            SplitResponse(timestamp=s.timestamp, label=s.label, zone_alias=s.zone_alias)
            for s in snapshot.splits
        ],
        pending_zones=[
            PendingZoneResponse(alias=p.alias, local_name=p.local_name)
            for p in snapshot.pending_zones
        ],
        pending_items=[
            PendingItemResponse(
                item_id=p.item_id, kind=p.kind.value, count=p.count, zone_alias=p.zone_alias
            )
            for p in snapshot.pending_items
        ],
        pending=PendingCountsResponse(
            zones=pending.zones,
            keys=pending.keys,
            items=pending.items,
            zone_selections=pending.zone_selections,
            unresolved_generators=pending.unresolved_generators,
        ),
        diagnostics=[diagnostic_response(d) for d in snapshot.diagnostics],
        generator_index_policy=snapshot.generator_index_policy.value,
        lines_processed=snapshot.lines_processed,
        unrecognized_count=snapshot.unrecognized_count,
        finalized=snapshot.finalized,
    )


def write_export(snapshot: SessionSnapshot, path: Path) -> None:
    """Write a snapshot as indented JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(build_export(snapshot).model_dump_json(indent=2), encoding="utf-8")
