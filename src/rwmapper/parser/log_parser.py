"""Log line classifier - converts raw lines to typed tokens."""

from datetime import time
from typing import Iterable, Optional

from rwmapper.config.logging import get_logger
from rwmapper.core.models import (
    BatchMarker,
    BuildDone,
    BuildSeeds,
    ClassifiedToken,
    DoorOpened,
    ExpeditionSelected,
    GameStateChanged,
    GeneratorUnpowered,
    HsuAreaSelected,
    ItemDistributionCount,
    ItemDistributionSpawn,
    ItemZoneSelected,
    KeyDistributionResolved,
    KeyDistributionStarted,
    LogLine,
    Malformed,
    ObjectiveItemRegistered,
    PersonnelPickupSpawned,
    PickupSeedFound,
    Unrecognized,
    ZoneCreated,
    ZoneNamed,
)
from rwmapper.data.items import resolve_item_kind
from rwmapper.parser.patterns import (
    BATCH_END_ANCHORS,
    BATCH_PATTERN,
    BATCH_START_ANCHORS,
    BUILD_DONE_ANCHORS,
    BUILD_DONE_PATTERN,
    BUILD_SEEDS_ANCHORS,
    BUILD_SEEDS_PATTERN,
    CREATE_ZONE_ANCHORS,
    CREATE_ZONE_PATTERN,
    DOOR_OPENED_ANCHORS,
    DOOR_OPENED_PATTERN,
    EXPEDITION_ANCHORS,
    EXPEDITION_PATTERN,
    GAME_STATE_ANCHORS,
    GAME_STATE_PATTERN,
    GENERATOR_ANCHORS,
    GENERATOR_PATTERN,
    HSU_AREA_ANCHORS,
    HSU_AREA_PATTERN,
    ITEM_COUNT_ANCHORS,
    ITEM_COUNT_PATTERN,
    ITEM_NAME_PATTERN,
    ITEM_SPAWN_ANCHORS,
    ITEM_SPAWN_PATTERN,
    ITEM_ZONE_ANCHORS,
    ITEM_ZONE_PATTERN,
    KEY_DISTRIBUTION_ANCHORS,
    KEY_DISTRIBUTION_PATTERN,
    KEY_PLACEMENT_PATTERN,
    KEY_RESOLVED_ANCHORS,
    KEY_RESOLVED_PATTERN,
    LINE_PATTERN,
    MARKUP_PATTERN,
    PERSONNEL_PICKUP_ANCHORS,
    PERSONNEL_PICKUP_PATTERN,
    PICKUP_SEED_ANCHORS,
    PICKUP_SEED_PATTERN,
    REGISTER_OBJECTIVE_ANCHORS,
    REGISTER_OBJECTIVE_PATTERN,
    RI_PATTERN,
    TIME_PATTERN,
    ZONE_ALIAS_PATTERN,
    ZONE_CREATED_ANCHORS,
    ZONE_CREATED_PATTERN,
)

logger = get_logger(__name__)


def parse_timestamp(text: str) -> Optional[time]:
    """
    Parse an HH:MM:SS.mmm log timestamp.

    Args:
        text: Timestamp text, e.g. "14:25:37.123"

    Returns:
        datetime.time, or None if the text is not a valid timestamp
    """
    match = TIME_PATTERN.match(text.strip())
    if not match:
        return None

    millis = match.group("millis").ljust(3, "0")
    try:
        return time(
            hour=int(match.group("hour")),
            minute=int(match.group("minute")),
            second=int(match.group("second")),
            microsecond=int(millis) * 1000,
        )
    except ValueError:
        return None


def strip_markup(text: str) -> str:
    """Remove inline rich-text tags such as <color=#C84800> and <b>."""
    return MARKUP_PATTERN.sub("", text)


def read_log_line(line: str) -> LogLine:
    """
    Split a raw line into timestamp and markup-free payload.

    Lines without the "HH:MM:SS.mmm - " prefix keep their whole text as payload.
    """
    line = line.rstrip("\r\n")

    match = LINE_PATTERN.match(line)
    if match:
        timestamp = parse_timestamp(match.group("time"))
        payload = match.group("payload")
    else:
        timestamp = None
        payload = line

    return LogLine(timestamp=timestamp, raw_text=line, payload=strip_markup(payload).strip())


def _has_anchors(payload: str, anchors: tuple[str, ...]) -> bool:
    return all(anchor in payload for anchor in anchors)


def _malformed(log_line: LogLine, pattern: str, reason: str) -> Malformed:
    logger.debug("Malformed %s line: %s", pattern, log_line.raw_text)
    return Malformed(
        pattern=pattern,
        reason=reason,
        timestamp=log_line.timestamp,
        raw_line=log_line.raw_text,
    )


def classify(log_line: LogLine) -> ClassifiedToken:
    """
    Classify a single log line into a typed token.

    Each known event is recognized by fixed literal anchors; once the anchors
    are present the fields are extracted with the matching pattern. A line whose
    anchors match but whose fields cannot be extracted becomes Malformed, a line
    with no known anchors becomes Unrecognized.

    Args:
        log_line: Line split by read_log_line

    Returns:
        Exactly one token for the line
    """
    payload = log_line.payload
    ts = log_line.timestamp
    raw = log_line.raw_text

    if not payload:
        return Unrecognized(timestamp=ts, raw_line=raw)

    # Key distribution, first phase (also mentions zones and dimensions)
    if _has_anchors(payload, KEY_DISTRIBUTION_ANCHORS):
        match = KEY_DISTRIBUTION_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "CreateKeyItemDistribution", "missing PublicName")
        placement = KEY_PLACEMENT_PATTERN.search(payload)
        return KeyDistributionStarted(
            key_name=match.group("key_name"),
            dimension=placement.group("dimension") if placement else None,
            local_name=placement.group("local_name") if placement else None,
            timestamp=ts,
            raw_line=raw,
        )

    # Key distribution, second phase
    if _has_anchors(payload, KEY_RESOLVED_ANCHORS):
        match = KEY_RESOLVED_PATTERN.search(payload)
        if not match:
            return _malformed(
                log_line,
                "TryGetExistingGenericFunctionDistributionForSession",
                "missing ResourceContainerWeak availability",
            )
        zone = ZONE_ALIAS_PATTERN.search(payload)
        ri = RI_PATTERN.search(payload)
        return KeyDistributionResolved(
            resource_container_id=match.group("container"),
            zone_alias=int(zone.group("alias")) if zone else None,
            ri=int(ri.group("ri")) if ri else None,
            timestamp=ts,
            raw_line=raw,
        )

    # Zone creation, first half
    if _has_anchors(payload, CREATE_ZONE_ANCHORS):
        match = CREATE_ZONE_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "CreateZone", "missing Alias or aliasOffset")
        return ZoneCreated(
            alias=int(match.group("alias")),
            local_name=match.group("local_name"),
            timestamp=ts,
            raw_line=raw,
        )

    # Zone creation, second half
    if _has_anchors(payload, ZONE_CREATED_ANCHORS):
        match = ZONE_CREATED_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "Zone Created", "missing dimension and layer")
        return ZoneNamed(
            dimension=match.group("dimension"),
            layer=match.group("layer"),
            timestamp=ts,
            raw_line=raw,
        )

    # Objective item registration
    if _has_anchors(payload, REGISTER_OBJECTIVE_ANCHORS):
        match = REGISTER_OBJECTIVE_PATTERN.search(payload)
        if not match:
            return _malformed(
                log_line, "RegisterObjectiveItemForCollection", "missing collection index"
            )
        rest = payload[match.end():]
        name = ITEM_NAME_PATTERN.search(rest)
        zone = ZONE_ALIAS_PATTERN.search(rest)
        return ObjectiveItemRegistered(
            collection_index=int(match.group("collection")),
            item_name=name.group("name") if name else None,
            zone_alias=int(zone.group("alias")) if zone else None,
            timestamp=ts,
            raw_line=raw,
        )

    # Objective item count
    if _has_anchors(payload, ITEM_COUNT_ANCHORS):
        match = ITEM_COUNT_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "itemsToSpawn", "missing Count or item identifier")
        item_id = match.group("item_id")
        kind = resolve_item_kind(item_id)
        if kind is None:
            return _malformed(
                log_line, "itemsToSpawn", f"item identifier {item_id} is not an objective kind"
            )
        return ItemDistributionCount(
            item_id=item_id,
            kind=kind,
            count=int(match.group("count")),
            timestamp=ts,
            raw_line=raw,
        )

    # Objective item spawn
    if _has_anchors(payload, ITEM_SPAWN_ANCHORS):
        match = ITEM_SPAWN_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "DistributeGatherRetrieveItems", "missing itemID")
        item_id = match.group("item_id")
        kind = resolve_item_kind(item_id)
        if kind is None:
            return _malformed(
                log_line,
                "DistributeGatherRetrieveItems",
                f"item identifier {item_id} is not an objective kind",
            )
        chain = match.group("chain")
        return ItemDistributionSpawn(
            item_id=item_id,
            kind=kind,
            chain_index=int(chain) if chain is not None else None,
            timestamp=ts,
            raw_line=raw,
        )

    # Objective item zone
    if _has_anchors(payload, ITEM_ZONE_ANCHORS):
        match = ITEM_ZONE_PATTERN.search(payload)
        if not match:
            return _malformed(
                log_line, "SelectZoneFromPlacementAndKeepTrackOnCount", "missing ZONE alias"
            )
        return ItemZoneSelected(
            zone_alias=int(match.group("alias")),
            timestamp=ts,
            raw_line=raw,
        )

    # Generator instantiation
    if _has_anchors(payload, GENERATOR_ANCHORS):
        if not GENERATOR_PATTERN.search(payload):
            return _malformed(log_line, "OnSyncStatusChanged", "unexpected generator status layout")
        return GeneratorUnpowered(timestamp=ts, raw_line=raw)

    # Door opened
    if _has_anchors(payload, DOOR_OPENED_ANCHORS):
        if not DOOR_OPENED_PATTERN.search(payload):
            return _malformed(log_line, "OnDoorIsOpened", "unexpected door event layout")
        return DoorOpened(timestamp=ts, raw_line=raw)

    # HSU placement
    if _has_anchors(payload, HSU_AREA_ANCHORS):
        match = HSU_AREA_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "Area", "missing zone alias or area")
        return HsuAreaSelected(
            zone_alias=int(match.group("alias")),
            area_id=int(match.group("area_id")),
            area_name=match.group("area_name"),
            timestamp=ts,
            raw_line=raw,
        )

    # Small pickups
    if _has_anchors(payload, PERSONNEL_PICKUP_ANCHORS):
        match = PERSONNEL_PICKUP_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "Spawning Personnel", "missing container key")
        return PersonnelPickupSpawned(container=match.group("container"), timestamp=ts, raw_line=raw)

    # Level generation batches
    if _has_anchors(payload, BATCH_START_ANCHORS) or _has_anchors(payload, BATCH_END_ANCHORS):
        match = BATCH_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "Batch", "missing batch name")
        return BatchMarker(
            batch=match.group("batch"),
            is_start=match.group("marker") == "Next",
            timestamp=ts,
            raw_line=raw,
        )

    # Level header
    if _has_anchors(payload, BUILD_SEEDS_ANCHORS):
        match = BUILD_SEEDS_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "Builder.Build", "missing seeds")
        return BuildSeeds(
            build_seed=int(match.group("build")),
            host_id_seed=int(match.group("host_id")),
            session_seed=int(match.group("session")),
            timestamp=ts,
            raw_line=raw,
        )

    if _has_anchors(payload, EXPEDITION_ANCHORS):
        match = EXPEDITION_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "SelectActiveExpedition", "missing Local_<rundown>_Tier<t>_<n>")
        return ExpeditionSelected(
            rundown_id=int(match.group("rundown")),
            tier=match.group("tier").upper(),
            expedition_index=int(match.group("expedition")),
            timestamp=ts,
            raw_line=raw,
        )

    if _has_anchors(payload, BUILD_DONE_ANCHORS):
        if not BUILD_DONE_PATTERN.search(payload):
            return _malformed(log_line, "BuildDone", "unexpected BUILDER line layout")
        return BuildDone(timestamp=ts, raw_line=raw)

    if _has_anchors(payload, GAME_STATE_ANCHORS):
        match = GAME_STATE_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "GAMESTATEMANAGER", "missing new state")
        return GameStateChanged(state=match.group("new_state"), timestamp=ts, raw_line=raw)

    if _has_anchors(payload, PICKUP_SEED_ANCHORS):
        match = PICKUP_SEED_PATTERN.search(payload)
        if not match:
            return _malformed(log_line, "seed", "missing seed value")
        return PickupSeedFound(seed=int(match.group("seed")), timestamp=ts, raw_line=raw)

    return Unrecognized(timestamp=ts, raw_line=raw)


def classify_line(line: str) -> ClassifiedToken:
    """Classify a raw log line (may include newline)."""
    return classify(read_log_line(line))


def classify_lines(lines: Iterable[str]) -> list[ClassifiedToken]:
    """
    Classify multiple log lines.

    Args:
        lines: Raw log lines

    Returns:
        One token per line, Unrecognized included, in input order
    """
    return [classify_line(line) for line in lines]
