"""Global test fixtures."""

import pytest

from rwmapper.collector.driver import StreamDriver


@pytest.fixture
def driver():
    """Fresh stream driver with the default generator cursor policy."""
    return StreamDriver()


@pytest.fixture
def session_lines():
    """A small but complete level generation log."""
    return [
        "14:25:30.001 - DropServerManager.SelectActiveExpedition : Local_32_TierA_0",
        "14:25:30.010 - Builder.Build, buildSeed: 1234 hostIDSeed: 5678 sessionSeed: 91011",
        "14:25:30.020 - Next Batch: SetupFloor",
        "14:25:30.100 - <color=#C84800>>>>>>>>>------------->>>>>>>>>>>> LG_Floor.CreateZone, Alias: 410 "
        "with BuildFromZoneAlias410 zoneAliasStart: 410 aliasOffset: Zone_0</color>",
        "14:25:30.101 - <b>Zone Created</b> (New Game Object) in Reality MainLayer with ",
        "14:25:30.200 - <color=#C84800>>>>>>>>>------------->>>>>>>>>>>> LG_Floor.CreateZone, Alias: 411 "
        "with BuildFromZoneAlias410 zoneAliasStart: 410 aliasOffset: Zone_1</color>",
        "14:25:30.201 - <b>Zone Created</b> (New Game Object) in Reality MainLayer with ",
        "14:25:30.300 - Last Batch: SetupFloor",
        "14:25:30.400 - Next Batch: Distribution",
        "14:25:30.500 - <color=purple>CreateKeyItemDistribution, keyItem: PublicName: KEY_WHITE_584 "
        "SpawnedItem: KeyItemPickup_Core(Clone)_GateKeyItem:KEY_WHITE_584_terminalKey: KEY_WHITE_584 "
        "(KeyItemPickup_Core) placementData: DimensionIndex: Reality LocalIndex: Zone_1 "
        "ZonePlacementWeights, Start: 0 Middle: 2500 End: 10000</color>",
        "14:25:30.501 - Some unrelated distribution noise",
        "14:25:30.502 - <color=#C84800>TryGetExistingGenericFunctionDistributionForSession, foundDist in zone: "
        "ZONE411 function: ResourceContainerWeak available: 58 randomValue: 0.8431178 ri: 54 had weight: 10001</color>",
        "14:25:30.600 - <color=#C84800>LG_Distribute_WardenObjective.SelectZoneFromPlacementAndKeepTrackOnCount, "
        "creating dist in zone ZONE410 spawnZones[placementDataIndex].Count: 1 spawnZoneIndex: 0 "
        "spawnedInZoneCount: 1</color>",
        "14:25:30.601 - <color=#C84800>LG_Distribute_WardenObjective.DistributeGatherRetrieveItems, "
        "itemsToSpawn: [Count: 3] CELL</color>",
        "14:25:30.700 - Last Batch: Distribution",
        "14:25:30.800 - LG_PowerGenerator_Graphics.OnSyncStatusChanged UnPowered",
        "14:25:30.801 - WardenObjectiveManager.RegisterObjectiveItemForCollection 0 GENERATOR_CELL_253",
        "14:25:30.900 - LG_PowerGenerator_Graphics.OnSyncStatusChanged UnPowered",
        "14:25:31.000 - BUILDER : BuildDone",
        "14:25:40.000 - GAMESTATEMANAGER CHANGE STATE FROM : ReadyToStopElevatorRide TO: InLevel",
        "14:26:05.250 - OnDoorIsOpened, LinkedToZoneData.EventsOnEnter",
    ]
