"""Tests for the state correlator."""

from rwmapper.collector.driver import StreamDriver
from rwmapper.core.correlator import StateCorrelator
from rwmapper.core.models import (
    DiagnosticKind,
    GeneratorIndexPolicy,
    ItemKind,
    ObjectiveItemRegistered,
    Zone,
    ZoneCreated,
    ZoneNamed,
)
from rwmapper.core.session_state import PendingRecords, SessionState
from rwmapper.data.rundowns import Rundown
from rwmapper.parser.log_parser import classify_line

NOISE = "SNet_Capture.OnRecall"
DOOR = "OnDoorIsOpened, LinkedToZoneData.EventsOnEnter"
GENERATOR = "LG_PowerGenerator_Graphics.OnSyncStatusChanged UnPowered"
FALLBACK_START = "Next Batch: FunctionMarkerFallback"
FALLBACK_END = "Last Batch: FunctionMarkerFallback"


def create_zone(alias, local_name="Zone_0"):
    return (
        f">>>>>>>>------------->>>>>>>>>>>> LG_Floor.CreateZone, Alias: {alias} "
        f"with BuildFromZoneAlias{alias} zoneAliasStart: {alias} aliasOffset: {local_name}"
    )


def zone_created(dimension="Reality", layer="MainLayer"):
    return f"Zone Created (New Game Object) in {dimension} {layer} with "


def key_started(key_name, local_name="Zone_1", dimension="Reality"):
    return (
        f"CreateKeyItemDistribution, keyItem: PublicName: {key_name} SpawnedItem: "
        f"KeyItemPickup_Core(Clone)_GateKeyItem:{key_name}_terminalKey: {key_name} "
        f"placementData: DimensionIndex: {dimension} LocalIndex: {local_name} ZonePlacementWeights"
    )


def key_resolved(container, zone_alias=None):
    zone = f"foundDist in zone: ZONE{zone_alias} " if zone_alias is not None else ""
    return (
        f"TryGetExistingGenericFunctionDistributionForSession, {zone}"
        f"function: ResourceContainerWeak available: {container} randomValue: 0.5 ri: 3"
    )


def item_count(count, item_id):
    return (
        "LG_Distribute_WardenObjective.DistributeGatherRetrieveItems, "
        f"itemsToSpawn: [Count: {count}] {item_id}"
    )


def item_zone(alias):
    return (
        "LG_Distribute_WardenObjective.SelectZoneFromPlacementAndKeepTrackOnCount, "
        f"creating dist in zone ZONE{alias} spawnZones[placementDataIndex].Count: 1"
    )


def item_spawn(item_id, chain=None):
    chain_part = f" for chainIndex: {chain}" if chain is not None else ""
    return (
        "LG_Distribute_WardenObjective.DistributeGatherRetrieveItems, "
        f"creating dist to spawn itemID: {item_id}{chain_part}"
    )


def pickup(container):
    return f"Spawning Personnel ID in ResourceContainer Key: {container}"


def seed(value):
    return f"GENERIC_SMALL_PICKUP_ITEM seed: {value}"


def register(collection_index, name="GENERATOR_CELL_253"):
    return f"WardenObjectiveManager.RegisterObjectiveItemForCollection {collection_index} {name}"


def parse(lines, policy=GeneratorIndexPolicy.CONTINUE, finalize=True):
    driver = StreamDriver(generator_index_policy=policy)
    driver.feed_lines(lines)
    return driver.finalize() if finalize else driver.snapshot()


class TestPendingRecords:
    def test_oldest_in_insertion_order(self):
        records = PendingRecords()
        records.open("a", 1)
        records.open("b", 2)
        assert records.oldest() == ("a", 1)

    def test_reopen_moves_to_newest(self):
        records = PendingRecords()
        records.open("a", 1)
        records.open("b", 2)
        assert records.open("a", 3) == 1
        assert records.oldest() == ("b", 2)

    def test_update_keeps_position(self):
        records = PendingRecords()
        records.open("a", 1)
        records.open("b", 2)
        records.update("a", 5)
        assert records.oldest() == ("a", 5)

    def test_oldest_with_predicate(self):
        records = PendingRecords()
        records.open("a", 1)
        records.open("b", 2)
        assert records.oldest(lambda v: v > 1) == ("b", 2)
        assert records.oldest(lambda v: v > 5) is None


class TestZones:
    def test_zone_from_two_lines(self):
        snapshot = parse([create_zone(410, "Zone_0"), zone_created("Reality", "MainLayer")])

        assert snapshot.zones == (
            Zone(alias=410, local_name="Zone_0", dimension="Reality", layer="MainLayer"),
        )
        assert str(snapshot.zone(410)) == "ZONE_410 MainLayer Reality"
        assert snapshot.pending.zones == 0
        assert snapshot.diagnostics == ()

    def test_unrelated_lines_between_halves(self):
        snapshot = parse([create_zone(410), NOISE, NOISE, zone_created()])
        assert snapshot.zone(410) is not None
        assert snapshot.unrecognized_count == 2

    def test_pending_zone_visible_before_named(self):
        snapshot = parse([create_zone(410)], finalize=False)
        assert snapshot.zones == ()
        assert snapshot.pending.zones == 1
        assert snapshot.pending_zones[0].alias == 410

    def test_zone_created_completes_oldest(self):
        snapshot = parse(
            [
                create_zone(410, "Zone_0"),
                create_zone(411, "Zone_1"),
                zone_created("Reality", "MainLayer"),
                zone_created("Reality", "SecondaryLayer"),
            ]
        )
        assert snapshot.zone(410).layer == "MainLayer"
        assert snapshot.zone(411).layer == "SecondaryLayer"
        assert [z.alias for z in snapshot.zones] == [410, 411]

    def test_duplicate_create_zone_keeps_newer(self):
        snapshot = parse([create_zone(410, "Zone_0"), create_zone(410, "Zone_5"), zone_created()])

        assert snapshot.zone(410).local_name == "Zone_5"
        assert len(snapshot.diagnostics_of(DiagnosticKind.MALFORMED_STATE)) == 1

    def test_zone_created_without_pending_zone(self):
        snapshot = parse([zone_created()])

        assert snapshot.zones == ()
        assert len(snapshot.diagnostics_of(DiagnosticKind.MALFORMED_STATE)) == 1

    def test_alias_created_twice_keeps_first(self):
        snapshot = parse(
            [
                create_zone(410, "Zone_0"),
                zone_created("Reality", "MainLayer"),
                create_zone(410, "Zone_9"),
                zone_created("Reality", "ExtremeLayer"),
            ]
        )
        assert snapshot.zone(410).local_name == "Zone_0"
        assert len(snapshot.zones) == 1
        assert len(snapshot.diagnostics_of(DiagnosticKind.MALFORMED_STATE)) == 1

    def test_open_zone_at_finalize_is_incomplete(self):
        snapshot = parse([create_zone(412)])

        incomplete = snapshot.diagnostics_of(DiagnosticKind.INCOMPLETE_CORRELATION)
        assert len(incomplete) == 1
        assert "412" in incomplete[0].message


class TestKeys:
    def test_key_resolved_with_zone_on_line(self):
        snapshot = parse([key_started("KEY_WHITE_584"), NOISE, key_resolved(58, zone_alias=411)])

        assert len(snapshot.items) == 1
        key = snapshot.items[0]
        assert key.kind == ItemKind.KEY
        assert key.key_name == "KEY_WHITE_584"
        assert key.resource_container_id == "58"
        assert key.zone_alias == 411

    def test_key_zone_from_local_name(self):
        snapshot = parse(
            [
                create_zone(411, "Zone_1"),
                zone_created(),
                key_started("KEY_BLUE_12", local_name="Zone_1"),
                key_resolved(7),
            ]
        )
        assert snapshot.items[0].zone_alias == 411

    def test_key_zone_unknown(self):
        snapshot = parse([key_started("KEY_BLUE_12", local_name="Zone_8"), key_resolved(7)])
        assert snapshot.items[0].zone_alias is None

    def test_same_named_keys_resolve_first_in_first_out(self):
        snapshot = parse(
            [
                key_started("KEY_RED_10"),
                key_started("KEY_RED_10"),
                key_resolved(5, zone_alias=50),
                key_resolved(6, zone_alias=51),
            ]
        )
        assert [(k.resource_container_id, k.zone_alias) for k in snapshot.items] == [
            ("5", 50),
            ("6", 51),
        ]

    def test_unresolved_key_retained(self):
        snapshot = parse([key_started("KEY_GREEN_3")])

        assert snapshot.items == ()
        assert len(snapshot.unresolved_keys) == 1
        assert snapshot.unresolved_keys[0].key_name == "KEY_GREEN_3"
        assert snapshot.unresolved_keys[0].resource_container_id is None
        assert len(snapshot.diagnostics_of(DiagnosticKind.INCOMPLETE_CORRELATION)) == 1

    def test_key_carries_color_and_ri(self):
        snapshot = parse([key_started("KEY_WHITE_584"), key_resolved(58, zone_alias=411)])

        key = snapshot.items[0]
        assert key.key_color == "WHITE"
        assert key.key_color_id == 584
        assert key.ri == 3

    def test_unresolved_key_carries_color(self):
        snapshot = parse([key_started("KEY_GREEN_3")])

        key = snapshot.unresolved_keys[0]
        assert (key.key_color, key.key_color_id) == ("GREEN", 3)
        assert key.ri is None

    def test_resolution_without_pending_key(self):
        snapshot = parse([key_resolved(5)])
        assert snapshot.items == ()
        assert len(snapshot.diagnostics_of(DiagnosticKind.MALFORMED_STATE)) == 1


class TestObjectiveItems:
    def test_count_then_zone(self):
        snapshot = parse([item_count(2, "131"), NOISE, item_zone(412)])

        assert len(snapshot.items) == 1
        item = snapshot.items[0]
        assert item.kind == ItemKind.CELL
        assert item.count == 2
        assert item.zone_alias == 412

    def test_zone_then_count(self):
        snapshot = parse([item_zone(412), item_count(2, "CELL")])

        assert len(snapshot.items) == 1
        assert snapshot.items[0].zone_alias == 412
        assert snapshot.items[0].count == 2
        assert snapshot.pending.zone_selections == 0

    def test_repeated_count_overwrites(self):
        snapshot = parse([item_count(2, "CELL"), item_count(4, "CELL"), item_zone(412)])

        assert len(snapshot.items) == 1
        assert snapshot.items[0].count == 4

    def test_zones_attach_in_order(self):
        snapshot = parse(
            [item_count(1, "HSU"), item_count(3, "168"), item_zone(410), item_zone(411)]
        )
        assert [(i.kind, i.zone_alias) for i in snapshot.items] == [
            (ItemKind.HSU, 410),
            (ItemKind.DATA_CUBE, 411),
        ]

    def test_orphan_count_is_one_incomplete_correlation(self):
        snapshot = parse([item_count(3, "CELL")])

        assert snapshot.items == ()
        incomplete = snapshot.diagnostics_of(DiagnosticKind.INCOMPLETE_CORRELATION)
        assert len(incomplete) == 1
        assert "CELL" in incomplete[0].message

    def test_pending_item_counted_before_finalize(self):
        snapshot = parse([item_count(3, "CELL")], finalize=False)

        assert snapshot.pending.items == 1
        assert snapshot.diagnostics_of(DiagnosticKind.INCOMPLETE_CORRELATION) == []

    def test_unknown_item_is_malformed(self):
        snapshot = parse([item_count(1, "148")])

        assert snapshot.items == ()
        assert snapshot.pending.items == 0
        assert len(snapshot.diagnostics_of(DiagnosticKind.MALFORMED)) == 1


    def test_zone_then_spawn_lines(self):
        snapshot = parse(
            [item_zone(416), item_spawn("168", chain=0), item_zone(417), item_spawn("168", chain=1)]
        )

        assert [(i.kind, i.zone_alias, i.count) for i in snapshot.items] == [
            (ItemKind.DATA_CUBE, 416, 1),
            (ItemKind.DATA_CUBE, 417, 1),
        ]
        assert snapshot.pending.items == 0
        assert snapshot.pending.zone_selections == 0

    def test_spawn_without_zone_stays_pending(self):
        snapshot = parse([item_spawn("128")], finalize=False)

        assert snapshot.items == ()
        assert snapshot.pending.items == 1

    def test_hsu_area_is_an_item(self):
        snapshot = parse(["zone: 410, Area: 1_A Area_A"])

        assert len(snapshot.items) == 1
        hsu = snapshot.items[0]
        assert hsu.kind == ItemKind.HSU
        assert hsu.zone_alias == 410
        assert hsu.count == 1
        assert (hsu.area_id, hsu.area_name) == (1, "Area_A")


class TestSmallPickups:
    def test_pickup_then_seed(self):
        snapshot = parse([pickup("LOCKER_12"), NOISE, seed(1337)])

        assert len(snapshot.small_pickups) == 1
        assert snapshot.small_pickups[0].container == "LOCKER_12"
        assert snapshot.small_pickups[0].seed == 1337

    def test_recognized_line_in_between_leaves_seed_unset(self):
        snapshot = parse([pickup("LOCKER_12"), DOOR, seed(1337)])

        assert snapshot.small_pickups[0].seed is None

    def test_seed_goes_to_latest_pickup(self):
        snapshot = parse([pickup("LOCKER_1"), seed(5), pickup("LOCKER_2"), seed(6)])

        assert [(p.container, p.seed) for p in snapshot.small_pickups] == [
            ("LOCKER_1", 5),
            ("LOCKER_2", 6),
        ]

    def test_seed_without_pickup_is_ignored(self):
        snapshot = parse([seed(1337)])

        assert snapshot.small_pickups == ()
        assert snapshot.diagnostics == ()

    def test_apply_returns_updated_pickup(self):
        state = SessionState()
        correlator = StateCorrelator(state)
        correlator.apply(classify_line(pickup("LOCKER_12")))

        records = correlator.apply(classify_line(seed(42)))

        assert [(r.container, r.seed) for r in records] == [("LOCKER_12", 42)]
        assert state.awaiting_pickup_seed is None

class TestGenerators:
    def test_generators_numbered_by_appearance(self):
        snapshot = parse([GENERATOR, GENERATOR, GENERATOR])

        assert [g.index for g in snapshot.generators] == [1, 2, 3]
        assert not any(g.resolved for g in snapshot.generators)
        assert snapshot.pending.unresolved_generators == 3

    def test_adjacent_registration_resolves(self):
        snapshot = parse([GENERATOR, register(0, "GENERATOR_CELL_253")])

        slot = snapshot.generators[0]
        assert slot.resolved
        assert slot.collection_index == 0
        assert slot.item_name == "GENERATOR_CELL_253"

    def test_recognized_line_in_between_blocks_resolution(self):
        snapshot = parse([GENERATOR, DOOR, register(0)])
        assert not snapshot.generators[0].resolved

    def test_unrecognized_line_in_between_does_not_block(self):
        snapshot = parse([GENERATOR, NOISE, register(0)])
        assert snapshot.generators[0].resolved

    def test_malformed_line_in_between_blocks_resolution(self):
        snapshot = parse([GENERATOR, item_count(1, "148"), register(0)])
        assert not snapshot.generators[0].resolved

    def test_registration_resolves_only_latest_slot(self):
        snapshot = parse([GENERATOR, GENERATOR, register(1), register(2)])

        assert [g.resolved for g in snapshot.generators] == [False, True]
        assert snapshot.generators[1].collection_index == 1

    def test_registration_without_generator_is_ignored(self):
        snapshot = parse([register(0)])
        assert snapshot.generators == ()
        assert snapshot.diagnostics == ()

    def test_fallback_continues_cursor(self):
        snapshot = parse(
            [GENERATOR, FALLBACK_START, GENERATOR, GENERATOR, FALLBACK_END],
            policy=GeneratorIndexPolicy.CONTINUE,
        )

        assert [(g.index, g.via_fallback) for g in snapshot.generators] == [
            (1, False),
            (2, True),
            (3, True),
        ]
        ambiguous = snapshot.diagnostics_of(DiagnosticKind.AMBIGUOUS_GENERATOR_RESOLUTION)
        assert len(ambiguous) == 2
        assert "continue" in ambiguous[0].message
        assert snapshot.generator_index_policy == GeneratorIndexPolicy.CONTINUE

    def test_fallback_resets_cursor(self):
        snapshot = parse(
            [
                GENERATOR,
                GENERATOR,
                FALLBACK_START,
                GENERATOR,
                GENERATOR,
                FALLBACK_END,
                GENERATOR,
                FALLBACK_START,
                GENERATOR,
                FALLBACK_END,
            ],
            policy=GeneratorIndexPolicy.RESET,
        )

        assert [(g.index, g.via_fallback) for g in snapshot.generators] == [
            (1, False),
            (2, False),
            (1, True),
            (2, True),
            (3, False),
            (1, True),
        ]
        ambiguous = snapshot.diagnostics_of(DiagnosticKind.AMBIGUOUS_GENERATOR_RESOLUTION)
        assert len(ambiguous) == 3
        assert all("reset" in d.message for d in ambiguous)

    def test_fallback_generator_resolves_when_adjacent(self):
        snapshot = parse([FALLBACK_START, GENERATOR, register(4)])

        assert snapshot.generators[0].via_fallback
        assert snapshot.generators[0].resolved

    def test_other_batches_are_not_fallback(self):
        snapshot = parse(["Next Batch: Distribution", GENERATOR, "Last Batch: Distribution"])

        assert not snapshot.generators[0].via_fallback
        assert snapshot.diagnostics == ()


class TestTiming:
    def test_door_before_any_zone(self):
        snapshot = parse([DOOR])

        assert len(snapshot.door_events) == 1
        assert snapshot.door_events[0].zone_alias is None

    def test_door_uses_last_finalized_zone(self):
        snapshot = parse(
            [
                create_zone(410, "Zone_0"),
                zone_created(),
                create_zone(411, "Zone_1"),
                zone_created(),
                create_zone(412, "Zone_2"),
                DOOR,
            ]
        )
        assert snapshot.door_events[0].zone_alias == 411

    def test_splits_in_arrival_order(self):
        snapshot = parse(
            [
                "GAMESTATEMANAGER CHANGE STATE FROM : ReadyToStopElevatorRide TO: InLevel",
                DOOR,
                "GAMESTATEMANAGER CHANGE STATE FROM : InLevel TO: ExpeditionSuccess",
            ]
        )
        assert [s.label for s in snapshot.splits] == ["InLevel", "Door", "ExpeditionSuccess"]
        assert [c.state for c in snapshot.state_changes] == ["InLevel", "ExpeditionSuccess"]


class TestLevelHeader:
    def test_expedition_and_seeds(self):
        snapshot = parse(
            [
                "DropServerManager.SelectActiveExpedition : Local_32_TierA_0",
                "Builder.Build, buildSeed: 1 hostIDSeed: 2 sessionSeed: 3",
                "BUILDER : BuildDone",
            ]
        )
        level = snapshot.level
        assert level.rundown == Rundown.R1
        assert level.display_name == "R1A1"
        assert (level.build_seed, level.host_id_seed, level.session_seed) == (1, 2, 3)
        assert level.build_done

    def test_tutorial_and_modded_names(self):
        tutorial = parse(["DropServerManager.SelectActiveExpedition : Local_39_TierA_0"])
        modded = parse(["DropServerManager.SelectActiveExpedition : Local_99_TierB_2"])

        assert tutorial.level.display_name == "Tutorial"
        assert modded.level.rundown == Rundown.MODDED
        assert modded.level.display_name == "ModdedB3"

    def test_no_header(self):
        assert parse([NOISE]).level.display_name is None


class TestCorrelatorDirect:
    def test_apply_returns_records(self):
        state = SessionState()
        correlator = StateCorrelator(state)

        assert correlator.apply(ZoneCreated(alias=5, local_name="Zone_0")) == []
        records = correlator.apply(ZoneNamed(dimension="Arena", layer="MainLayer"))

        assert records == [Zone(alias=5, local_name="Zone_0", dimension="Arena", layer="MainLayer")]
        assert state.lines_processed == 2

    def test_registration_adjacency_tracked_in_state(self):
        state = SessionState()
        correlator = StateCorrelator(state)

        assert correlator.apply(ObjectiveItemRegistered(collection_index=0)) == []
        assert state.awaiting_registration is None


class TestSessionExample:
    def test_complete_session(self, session_lines):
        snapshot = parse(session_lines)

        assert snapshot.level.display_name == "R1A1"
        assert [str(z) for z in snapshot.zones] == [
            "ZONE_410 MainLayer Reality",
            "ZONE_411 MainLayer Reality",
        ]

        keys = [i for i in snapshot.items if i.kind == ItemKind.KEY]
        cells = [i for i in snapshot.items if i.kind == ItemKind.CELL]
        assert [(k.key_name, k.zone_alias, k.resource_container_id) for k in keys] == [
            ("KEY_WHITE_584", 411, "58")
        ]
        assert [(c.count, c.zone_alias) for c in cells] == [(3, 410)]

        assert [(g.index, g.resolved) for g in snapshot.generators] == [(1, True), (2, False)]
        assert snapshot.generators[0].item_name == "GENERATOR_CELL_253"

        assert snapshot.level.build_done
        assert [s.label for s in snapshot.splits] == ["InLevel", "Door"]
        assert snapshot.door_events[0].zone_alias == 411

        assert snapshot.lines_processed == len(session_lines)
        assert snapshot.unrecognized_count == 1
        assert snapshot.diagnostics == ()
