"""State correlator - applies classified tokens to the session state."""

from dataclasses import replace
from datetime import time
from typing import Optional

from rwmapper.config.logging import get_logger
from rwmapper.core.models import (
    BatchMarker,
    BuildDone,
    BuildSeeds,
    ClassifiedToken,
    DiagnosticKind,
    DomainRecord,
    DoorEvent,
    DoorOpened,
    ExpeditionSelected,
    GameStateChanged,
    GeneratorFallbackUnpowered,
    GeneratorIndexPolicy,
    GeneratorSlot,
    GeneratorUnpowered,
    HsuAreaSelected,
    ItemDistributionCount,
    ItemDistributionSpawn,
    ItemKind,
    ItemZoneSelected,
    KeyDistributionResolved,
    KeyDistributionStarted,
    Malformed,
    ObjectiveItem,
    ObjectiveItemRegistered,
    PendingItem,
    PendingKey,
    PendingZone,
    PersonnelPickupSpawned,
    PickupSeedFound,
    SmallPickup,
    StateChange,
    TimingSplit,
    Unrecognized,
    Zone,
    ZoneCreated,
    ZoneNamed,
)
from rwmapper.core.session_state import SessionState
from rwmapper.data.items import parse_key_name
from rwmapper.data.rundowns import get_rundown

logger = get_logger(__name__)

DOOR_SPLIT_LABEL = "Door"


class StateCorrelator:
    """
    Applies tokens to a SessionState in arrival order.

    Zones, keys and objective items are each described by two separate lines;
    the first opens a pending record and the second completes it. Generators
    have no shared key between log sections at all, so they are numbered by
    order of appearance and only the very next recognized token may resolve one.
    """

    def __init__(
        self,
        state: SessionState,
        generator_index_policy: GeneratorIndexPolicy = GeneratorIndexPolicy.CONTINUE,
    ) -> None:
        """
        Initialize correlator.

        Args:
            state: Session state to mutate
            generator_index_policy: Whether fallback generators continue the main
                index cursor or number from 1 again at each fallback section
        """
        self.state = state
        self.generator_index_policy = generator_index_policy

    def apply(self, token: ClassifiedToken) -> list[DomainRecord]:
        """
        Apply one token.

        Args:
            token: Classified (and section-tagged) token

        Returns:
            Domain records created or updated by this token
        """
        state = self.state
        state.lines_processed += 1

        if isinstance(token, Unrecognized):
            # Noise lines neither count as nor break generator adjacency
            state.unrecognized_count += 1
            return []

        # Any recognized token closes the generator and pickup seed windows
        awaiting = state.awaiting_registration
        state.awaiting_registration = None
        awaiting_seed = state.awaiting_pickup_seed
        state.awaiting_pickup_seed = None

        if isinstance(token, ObjectiveItemRegistered):
            return self._handle_registration(token, awaiting)
        elif isinstance(token, PickupSeedFound):
            return self._handle_pickup_seed(token, awaiting_seed)
        elif isinstance(token, PersonnelPickupSpawned):
            return self._handle_pickup(token)
        elif isinstance(token, GeneratorUnpowered):
            return self._handle_generator(token, via_fallback=False, batch=None)
        elif isinstance(token, GeneratorFallbackUnpowered):
            return self._handle_generator(token, via_fallback=True, batch=token.batch)
        elif isinstance(token, ZoneCreated):
            return self._handle_zone_created(token)
        elif isinstance(token, ZoneNamed):
            return self._handle_zone_named(token)
        elif isinstance(token, KeyDistributionStarted):
            return self._handle_key_started(token)
        elif isinstance(token, KeyDistributionResolved):
            return self._handle_key_resolved(token)
        elif isinstance(token, ItemDistributionCount):
            return self._handle_item_count(token.item_id, token.kind, token.count, token.timestamp)
        elif isinstance(token, ItemDistributionSpawn):
            return self._handle_item_count(token.item_id, token.kind, 1, token.timestamp)
        elif isinstance(token, HsuAreaSelected):
            return self._handle_hsu(token)
        elif isinstance(token, ItemZoneSelected):
            return self._handle_item_zone(token)
        elif isinstance(token, DoorOpened):
            return self._handle_door(token)
        elif isinstance(token, GameStateChanged):
            return self._handle_game_state(token)
        elif isinstance(token, BatchMarker):
            self._handle_batch(token)
        elif isinstance(token, BuildSeeds):
            state.level = replace(
                state.level,
                build_seed=token.build_seed,
                host_id_seed=token.host_id_seed,
                session_seed=token.session_seed,
            )
        elif isinstance(token, ExpeditionSelected):
            state.level = replace(
                state.level,
                rundown_id=token.rundown_id,
                rundown=get_rundown(token.rundown_id),
                tier=token.tier,
                expedition_index=token.expedition_index,
            )
            logger.info("Expedition: %s", state.level.display_name)
        elif isinstance(token, BuildDone):
            state.level = replace(state.level, build_done=True)
            logger.info(
                "Level build done: %d zones, %d items, %d generators",
                len(state.zones),
                len(state.items),
                len(state.generators),
            )
        elif isinstance(token, Malformed):
            state.add_diagnostic(
                DiagnosticKind.MALFORMED,
                f"{token.pattern}: {token.reason}",
                timestamp=token.timestamp,
                raw_line=token.raw_line,
            )

        return []

    # --- Generators ----------------------------------------------------------

    def _handle_generator(self, token, via_fallback: bool, batch) -> list[DomainRecord]:
        """Number a generator by appearance and open its resolution window."""
        state = self.state

        if via_fallback:
            if self.generator_index_policy == GeneratorIndexPolicy.RESET:
                if not state.fallback_mode:
                    state.fallback_cursor = 0
                state.fallback_cursor += 1
                index = state.fallback_cursor
            else:
                state.generator_cursor += 1
                index = state.generator_cursor
            state.fallback_mode = True
        else:
            state.fallback_mode = False
            state.generator_cursor += 1
            index = state.generator_cursor

        slot = GeneratorSlot(index=index, via_fallback=via_fallback, timestamp=token.timestamp)
        state.generators.append(slot)
        state.awaiting_registration = len(state.generators) - 1

        if via_fallback:
            state.add_diagnostic(
                DiagnosticKind.AMBIGUOUS_GENERATOR_RESOLUTION,
                f"Generator {index} instantiated in fallback section {batch or '?'}; "
                f"index assigned with the {self.generator_index_policy.value} cursor policy",
                timestamp=token.timestamp,
                raw_line=token.raw_line,
            )

        return [slot]

    def _handle_registration(
        self, token: ObjectiveItemRegistered, awaiting
    ) -> list[DomainRecord]:
        """Resolve the generator slot opened by the immediately preceding token."""
        state = self.state

        if awaiting is None:
            logger.debug(
                "Objective registration %d not adjacent to a generator", token.collection_index
            )
            return []

        slot = state.generators[awaiting]
        resolved = replace(
            slot,
            resolved=True,
            zone_alias=token.zone_alias if token.zone_alias is not None else slot.zone_alias,
            collection_index=token.collection_index,
            item_name=token.item_name,
        )
        state.generators[awaiting] = resolved
        return [resolved]

    # --- Zones ---------------------------------------------------------------

    def _handle_zone_created(self, token: ZoneCreated) -> list[DomainRecord]:
        state = self.state

        if token.alias in state.pending_zones:
            state.add_diagnostic(
                DiagnosticKind.MALFORMED_STATE,
                f"CreateZone for alias {token.alias} repeated before its Zone Created line; "
                "keeping the newer one",
                timestamp=token.timestamp,
                raw_line=token.raw_line,
            )

        state.pending_zones.open(
            token.alias,
            PendingZone(alias=token.alias, local_name=token.local_name, timestamp=token.timestamp),
        )
        return []

    def _handle_zone_named(self, token: ZoneNamed) -> list[DomainRecord]:
        """Complete the oldest open zone with its dimension and layer."""
        state = self.state

        oldest = state.pending_zones.oldest()
        if oldest is None:
            state.add_diagnostic(
                DiagnosticKind.MALFORMED_STATE,
                "Zone Created line without a pending CreateZone",
                timestamp=token.timestamp,
                raw_line=token.raw_line,
            )
            return []

        alias, pending = oldest
        state.pending_zones.pop(alias)

        if alias in state.zones:
            state.add_diagnostic(
                DiagnosticKind.MALFORMED_STATE,
                f"Zone alias {alias} created twice; keeping the first",
                timestamp=token.timestamp,
                raw_line=token.raw_line,
            )
            return []

        zone = Zone(
            alias=alias,
            local_name=pending.local_name,
            dimension=token.dimension,
            layer=token.layer,
        )
        state.zones[alias] = zone
        state.last_zone_alias = alias
        logger.debug("Zone finalized: %s", zone)
        return [zone]

    # --- Keys ----------------------------------------------------------------

    def _handle_key_started(self, token: KeyDistributionStarted) -> list[DomainRecord]:
        state = self.state
        color, color_id = parse_key_name(token.key_name)

        state.pending_keys.open(
            state.next_key_sequence,
            PendingKey(
                key_name=token.key_name,
                color=color,
                color_id=color_id,
                dimension=token.dimension,
                local_name=token.local_name,
                timestamp=token.timestamp,
            ),
        )
        state.next_key_sequence += 1
        return []

    def _handle_key_resolved(self, token: KeyDistributionResolved) -> list[DomainRecord]:
        """
        Give the resource container to the oldest pending key.

        The resolving line does not name its key, so keys close strictly in the
        order they were opened, which keeps same-named keys first-in-first-out.
        """
        state = self.state

        oldest = state.pending_keys.oldest()
        if oldest is None:
            state.add_diagnostic(
                DiagnosticKind.MALFORMED_STATE,
                f"Resource container {token.resource_container_id} resolved with no pending key",
                timestamp=token.timestamp,
                raw_line=token.raw_line,
            )
            return []

        sequence, pending = oldest
        state.pending_keys.pop(sequence)

        zone_alias = token.zone_alias
        if zone_alias is None:
            zone = state.find_zone(pending.dimension, pending.local_name)
            zone_alias = zone.alias if zone else None

        item = ObjectiveItem(
            kind=ItemKind.KEY,
            zone_alias=zone_alias,
            count=1,
            key_name=pending.key_name,
            key_color=pending.color,
            key_color_id=pending.color_id,
            resource_container_id=token.resource_container_id,
            ri=token.ri,
            timestamp=token.timestamp,
        )
        state.items.append(item)
        return [item]

    # --- Objective items -----------------------------------------------------

    def _handle_item_count(
        self,
        item_id: str,
        kind: ItemKind,
        count: int,
        timestamp: Optional[time],
    ) -> list[DomainRecord]:
        """Open or refresh the pending item for a count line or a single spawn line."""
        state = self.state

        existing = state.pending_items.get(item_id)
        if existing is not None:
            logger.debug("Item %s count resent before its zone was known", item_id)
            pending = replace(existing, kind=kind, count=count, timestamp=timestamp)
            state.pending_items.update(item_id, pending)
        else:
            pending = PendingItem(
                item_id=item_id,
                kind=kind,
                count=count,
                timestamp=timestamp,
            )
            state.pending_items.open(item_id, pending)

        if pending.zone_alias is None and state.unattached_zone_selections:
            pending = replace(pending, zone_alias=state.unattached_zone_selections.popleft())
            state.pending_items.update(item_id, pending)

        return self._complete_item(pending)

    def _handle_hsu(self, token: HsuAreaSelected) -> list[DomainRecord]:
        item = ObjectiveItem(
            kind=ItemKind.HSU,
            zone_alias=token.zone_alias,
            count=1,
            area_id=token.area_id,
            area_name=token.area_name,
            timestamp=token.timestamp,
        )
        self.state.items.append(item)
        return [item]

    def _handle_item_zone(self, token: ItemZoneSelected) -> list[DomainRecord]:
        state = self.state

        oldest = state.pending_items.oldest(lambda p: p.zone_alias is None)
        if oldest is None:
            state.unattached_zone_selections.append(token.zone_alias)
            return []

        item_id, pending = oldest
        pending = replace(pending, zone_alias=token.zone_alias)
        state.pending_items.update(item_id, pending)
        return self._complete_item(pending)

    def _complete_item(self, pending: PendingItem) -> list[DomainRecord]:
        if not pending.is_complete:
            return []

        state = self.state
        state.pending_items.pop(pending.item_id)
        item = ObjectiveItem(
            kind=pending.kind,
            zone_alias=pending.zone_alias,
            count=pending.count,
            timestamp=pending.timestamp,
        )
        state.items.append(item)
        return [item]

    # --- Small pickups -------------------------------------------------------

    def _handle_pickup(self, token: PersonnelPickupSpawned) -> list[DomainRecord]:
        state = self.state
        pickup = SmallPickup(container=token.container, timestamp=token.timestamp)
        state.small_pickups.append(pickup)
        state.awaiting_pickup_seed = len(state.small_pickups) - 1
        return [pickup]

    def _handle_pickup_seed(
        self, token: PickupSeedFound, awaiting_seed: Optional[int]
    ) -> list[DomainRecord]:
        if awaiting_seed is None:
            logger.debug("Seed %d with no pickup right before it", token.seed)
            return []
        state = self.state
        pickup = replace(state.small_pickups[awaiting_seed], seed=token.seed)
        state.small_pickups[awaiting_seed] = pickup
        return [pickup]

    # --- Timing --------------------------------------------------------------

    def _handle_door(self, token: DoorOpened) -> list[DomainRecord]:
        state = self.state
        event = DoorEvent(timestamp=token.timestamp, zone_alias=state.last_zone_alias)
        state.door_events.append(event)
        state.splits.append(
            TimingSplit(timestamp=token.timestamp, label=DOOR_SPLIT_LABEL, zone_alias=event.zone_alias)
        )
        return [event]

    def _handle_game_state(self, token: GameStateChanged) -> list[DomainRecord]:
        state = self.state
        change = StateChange(timestamp=token.timestamp, state=token.state)
        state.state_changes.append(change)
        state.splits.append(TimingSplit(timestamp=token.timestamp, label=token.state))
        return [change]

    def _handle_batch(self, token: BatchMarker) -> None:
        state = self.state
        if token.is_start:
            state.current_batch = token.batch
            state.fallback_mode = False
        elif token.batch == state.current_batch:
            state.current_batch = None
