"""Compiled regex patterns and literal anchors for log parsing."""

import re

# Line prefix
# Example: 14:25:37.123 - <color=#C84800>LG_Floor.CreateZone, ...</color>
LINE_PATTERN = re.compile(
    r"^(?P<time>\d{1,2}:\d{2}:\d{2}\.\d{1,3})\s+-\s?(?P<payload>.*)$"
)

TIME_PATTERN = re.compile(
    r"^(?P<hour>\d{1,2}):(?P<minute>\d{2}):(?P<second>\d{2})\.(?P<millis>\d{1,3})$"
)

# Inline rich-text markup the engine wraps around payloads
MARKUP_PATTERN = re.compile(r"</?(?:color|b|i|u|s|size|material|quad)(?:=[^>]*)?>", re.IGNORECASE)

# Zone creation, first half
# Example: LG_Floor.CreateZone, Alias: 410 with BuildFromZoneAlias410 zoneAliasStart: 410 aliasOffset: Zone_0
CREATE_ZONE_ANCHORS = ("LG_Floor.CreateZone",)
CREATE_ZONE_PATTERN = re.compile(
    r"LG_Floor\.CreateZone,?\s*Alias:\s*(?P<alias>\d+)"
    r".*?aliasOffset:\s*(?P<local_name>\w+)"
)

# Zone creation, second half
# Example: Zone Created (New Game Object) in Reality MainLayer with
ZONE_CREATED_ANCHORS = ("Zone Created",)
ZONE_CREATED_PATTERN = re.compile(
    r"Zone\s+Created\b.*?\bin\s+(?P<dimension>\w+)\s+(?P<layer>\w+)"
)

# Objective item registration (directly follows a generator instantiation when
# the generator is part of the objective)
# Example: WardenObjectiveManager.RegisterObjectiveItemForCollection 0 GENERATOR_CELL_253
REGISTER_OBJECTIVE_ANCHORS = ("WardenObjectiveManager.RegisterObjectiveItemForCollection",)
REGISTER_OBJECTIVE_PATTERN = re.compile(
    r"RegisterObjectiveItemForCollection\W*(?P<collection>\d+)"
)
ZONE_ALIAS_PATTERN = re.compile(r"\bZONE_?(?P<alias>\d+)\b")
ITEM_NAME_PATTERN = re.compile(r"\b(?!ZONE_?\d)(?P<name>[A-Z][A-Z0-9]*(?:_[A-Z0-9]+)*_\d+)\b")

# Key distribution, first phase
# Example: CreateKeyItemDistribution, keyItem: PublicName: KEY_WHITE_584 SpawnedItem: ...
#          placementData: DimensionIndex: Reality LocalIndex: Zone_1 ZonePlacementWeights, ...
KEY_DISTRIBUTION_ANCHORS = ("CreateKeyItemDistribution",)
KEY_DISTRIBUTION_PATTERN = re.compile(r"PublicName:\s*(?P<key_name>[A-Za-z0-9_]+)")
KEY_PLACEMENT_PATTERN = re.compile(
    r"DimensionIndex:\s*(?P<dimension>\w+)\s+LocalIndex:\s*(?P<local_name>\w+)"
)

# Key distribution, second phase
# Example: TryGetExistingGenericFunctionDistributionForSession, foundDist in zone: ZONE50
#          function: ResourceContainerWeak available: 58 randomValue: 0.8431178 ri: 54 had weight: 10001
KEY_RESOLVED_ANCHORS = (
    "TryGetExistingGenericFunctionDistributionForSession",
    "ResourceContainerWeak",
)
KEY_RESOLVED_PATTERN = re.compile(
    r"function:\s*\[?ResourceContainerWeak\]?\s+available:\s*(?P<container>\d+)"
)
RI_PATTERN = re.compile(r"\bri:\s*(?P<ri>\d+)")

# Objective item count
# Example: LG_Distribute_WardenObjective.DistributeGatherRetrieveItems, itemsToSpawn: [Count: 3] CELL
ITEM_COUNT_ANCHORS = ("LG_Distribute_WardenObjective", "itemsToSpawn")
ITEM_COUNT_PATTERN = re.compile(
    r"itemsToSpawn:\s*\[\s*Count:\s*(?P<count>\d+)\s*\]\s*(?P<item_id>\w+)"
)

# Objective item spawn, one line per item
# Example: LG_Distribute_WardenObjective.DistributeGatherRetrieveItems, creating dist to spawn itemID: 168 for chainIndex: 0
ITEM_SPAWN_ANCHORS = ("DistributeGatherRetrieveItems", "itemID:")
ITEM_SPAWN_PATTERN = re.compile(
    r"creating\s+dist\s+to\s+spawn\s+itemID:\s*(?P<item_id>\d+)(?:\s+for\s+chainIndex:\s*(?P<chain>\d+))?"
)

# Objective item zone
# Example: LG_Distribute_WardenObjective.SelectZoneFromPlacementAndKeepTrackOnCount,
#          creating dist in zone ZONE416 spawnZones[placementDataIndex].Count: 1 ...
ITEM_ZONE_ANCHORS = ("SelectZoneFromPlacementAndKeepTrackOnCount",)
ITEM_ZONE_PATTERN = re.compile(r"creating\s+dist\s+in\s+zone\s+ZONE_?(?P<alias>\d+)")

# Generator instantiation
# Example: LG_PowerGenerator_Graphics.OnSyncStatusChanged UnPowered
GENERATOR_ANCHORS = ("LG_PowerGenerator_Graphics.OnSyncStatusChanged", "UnPowered")
GENERATOR_PATTERN = re.compile(r"LG_PowerGenerator_Graphics\.OnSyncStatusChanged\s+UnPowered\b")

# Security door opened
# Example: OnDoorIsOpened, LinkedToZoneData.EventsOnEnter
DOOR_OPENED_ANCHORS = ("OnDoorIsOpened", "LinkedToZoneData.EventsOnEnter")
DOOR_OPENED_PATTERN = re.compile(r"OnDoorIsOpened,\s*LinkedToZoneData\.EventsOnEnter")

# HSU placement
# Example: zone: 410, Area: 1_A Area_A
HSU_AREA_ANCHORS = ("zone:", "Area:")
HSU_AREA_PATTERN = re.compile(
    r"\bzone:\s*(?P<alias>\d+),\s*Area:\s*(?P<area_id>\d+)_\w+\s+(?P<area_name>\w+)"
)

# Small pickup container, usually followed by a seed line
# Example: Spawning Personnel ID in ResourceContainer Key: LOCKER_12
#          ... seed: 1337
PERSONNEL_PICKUP_ANCHORS = ("Spawning Personnel", "Key:")
PERSONNEL_PICKUP_PATTERN = re.compile(r"Spawning\s+Personnel.*?Key:\s*(?P<container>\w+)")
PICKUP_SEED_ANCHORS = ("seed:",)
PICKUP_SEED_PATTERN = re.compile(r"\bseed:\s*(?P<seed>\d+)")

# Level generation batches
# Example: Next Batch: SetupFloor / Last Batch: Distribution
BATCH_START_ANCHORS = ("Next Batch:",)
BATCH_END_ANCHORS = ("Last Batch:",)
BATCH_PATTERN = re.compile(r"\b(?P<marker>Next|Last)\s+Batch:\s*(?P<batch>\w+)")

# Level header
# Example: Builder.Build, buildSeed: 1234 hostIDSeed: 5678 sessionSeed: 91011
BUILD_SEEDS_ANCHORS = ("Builder.Build", "buildSeed:")
BUILD_SEEDS_PATTERN = re.compile(
    r"buildSeed:\s*(?P<build>\d+)\s+hostIDSeed:\s*(?P<host_id>\d+)\s+sessionSeed:\s*(?P<session>\d+)"
)

# Example: DropServerManager.SelectActiveExpedition : Local_32_TierA_0
EXPEDITION_ANCHORS = ("SelectActiveExpedition",)
EXPEDITION_PATTERN = re.compile(
    r"SelectActiveExpedition\s*:.*?Local_(?P<rundown>\d+)_Tier(?P<tier>[A-Za-z])_(?P<expedition>\d+)"
)

# Example: BUILDER : BuildDone
BUILD_DONE_ANCHORS = ("BUILDER", "BuildDone")
BUILD_DONE_PATTERN = re.compile(r"BUILDER\s*:\s*BuildDone\b")

# Example: GAMESTATEMANAGER CHANGE STATE FROM : Generating TO: ReadyToStopElevatorRide
GAME_STATE_ANCHORS = ("GAMESTATEMANAGER",)
GAME_STATE_PATTERN = re.compile(r"GAMESTATEMANAGER\b.*\s(?P<new_state>\w+)\s*$")

# Batches holding generators that failed normal initialization
DEFAULT_FALLBACK_BATCHES = frozenset(["FunctionMarkerFallback"])
