"""Data models for classified log tokens and the session domain model."""

from dataclasses import dataclass, field
from datetime import time
from enum import Enum, auto
from typing import Optional, Union

from rwmapper.data.rundowns import Rundown, expedition_display_name


@dataclass(frozen=True)
class LogLine:
    """A single log line split into its timestamp and payload."""

    timestamp: Optional[time]
    raw_text: str
    payload: str = ""


# --- Classified tokens -------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class ParsedToken:
    """Base for every classified token."""

    timestamp: Optional[time] = None
    raw_line: str = ""


@dataclass(frozen=True, kw_only=True)
class ZoneCreated(ParsedToken):
    """LG_Floor.CreateZone - opens a zone by alias."""

    alias: int
    local_name: str


@dataclass(frozen=True, kw_only=True)
class ZoneNamed(ParsedToken):
    """Zone Created (New Game Object) - dimension and layer of the open zone."""

    dimension: str
    layer: str


@dataclass(frozen=True, kw_only=True)
class ObjectiveItemRegistered(ParsedToken):
    """WardenObjectiveManager.RegisterObjectiveItemForCollection."""

    collection_index: int
    item_name: Optional[str] = None
    zone_alias: Optional[int] = None


@dataclass(frozen=True, kw_only=True)
class KeyDistributionStarted(ParsedToken):
    """CreateKeyItemDistribution - a key waiting for its container."""

    key_name: str
    dimension: Optional[str] = None
    local_name: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class KeyDistributionResolved(ParsedToken):
    """TryGetExistingGenericFunctionDistributionForSession with a ResourceContainerWeak."""

    resource_container_id: str
    zone_alias: Optional[int] = None
    ri: Optional[int] = None


@dataclass(frozen=True, kw_only=True)
class ItemDistributionCount(ParsedToken):
    """LG_Distribute_WardenObjective itemsToSpawn line."""

    item_id: str
    kind: "ItemKind"
    count: int


@dataclass(frozen=True, kw_only=True)
class ItemDistributionSpawn(ParsedToken):
    """DistributeGatherRetrieveItems, creating dist to spawn itemID - one objective item."""

    item_id: str
    kind: "ItemKind"
    chain_index: Optional[int] = None


@dataclass(frozen=True, kw_only=True)
class ItemZoneSelected(ParsedToken):
    """SelectZoneFromPlacementAndKeepTrackOnCount - zone picked for an objective item."""

    zone_alias: int


@dataclass(frozen=True, kw_only=True)
class GeneratorUnpowered(ParsedToken):
    """LG_PowerGenerator_Graphics.OnSyncStatusChanged UnPowered."""


@dataclass(frozen=True, kw_only=True)
class GeneratorFallbackUnpowered(ParsedToken):
    """Generator instantiation seen inside a fallback batch section."""

    batch: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class HsuAreaSelected(ParsedToken):
    """HSU placement - zone alias and local area."""

    zone_alias: int
    area_id: int
    area_name: str


@dataclass(frozen=True, kw_only=True)
class PersonnelPickupSpawned(ParsedToken):
    """Spawning Personnel ... Key: container holding a small pickup."""

    container: str


@dataclass(frozen=True, kw_only=True)
class PickupSeedFound(ParsedToken):
    """Item seed line following a small pickup spawn."""

    seed: int


@dataclass(frozen=True, kw_only=True)
class DoorOpened(ParsedToken):
    """OnDoorIsOpened, LinkedToZoneData.EventsOnEnter."""


@dataclass(frozen=True, kw_only=True)
class BatchMarker(ParsedToken):
    """Next Batch / Last Batch level generation section marker."""

    batch: str
    is_start: bool


@dataclass(frozen=True, kw_only=True)
class BuildSeeds(ParsedToken):
    """Builder.Build seed line at the start of level generation."""

    build_seed: int
    host_id_seed: int
    session_seed: int


@dataclass(frozen=True, kw_only=True)
class ExpeditionSelected(ParsedToken):
    """SelectActiveExpedition - rundown, tier and expedition of the level."""

    rundown_id: int
    tier: str
    expedition_index: int


@dataclass(frozen=True, kw_only=True)
class BuildDone(ParsedToken):
    """BUILDER : BuildDone."""


@dataclass(frozen=True, kw_only=True)
class GameStateChanged(ParsedToken):
    """GAMESTATEMANAGER state transition."""

    state: str


@dataclass(frozen=True, kw_only=True)
class Malformed(ParsedToken):
    """A known anchor matched but its fields could not be extracted."""

    pattern: str
    reason: str


@dataclass(frozen=True, kw_only=True)
class Unrecognized(ParsedToken):
    """Line matching none of the known anchors."""


ClassifiedToken = Union[
    ZoneCreated,
    ZoneNamed,
    ObjectiveItemRegistered,
    KeyDistributionStarted,
    KeyDistributionResolved,
    ItemDistributionCount,
    ItemDistributionSpawn,
    ItemZoneSelected,
    GeneratorUnpowered,
    GeneratorFallbackUnpowered,
    HsuAreaSelected,
    PersonnelPickupSpawned,
    PickupSeedFound,
    DoorOpened,
    BatchMarker,
    BuildSeeds,
    ExpeditionSelected,
    BuildDone,
    GameStateChanged,
    Malformed,
    Unrecognized,
]


# --- Domain model ------------------------------------------------------------


class ItemKind(Enum):
    """Objective item kinds tracked by the mapper."""

    HSU = "HSU"
    CELL = "Cell"
    ID = "ID"
    GLP = "GLP"
    PLANT = "Plant"
    PD = "PD"
    DATA_CUBE = "DataCube"
    CARGO = "Cargo"
    NEONATE = "Neonate"
    DATASPHERE = "Datasphere"
    TURBINE = "Turbine"
    KEY = "Key"


class GeneratorIndexPolicy(Enum):
    """How the generator index cursor behaves at a fallback section boundary."""

    CONTINUE = "continue"  # one cursor shared by main and fallback sections
    RESET = "reset"  # fallback sections number their generators from 1 again


class DiagnosticKind(Enum):
    """Kinds of anomalies collected while interpreting a log."""

    MALFORMED = auto()
    MALFORMED_STATE = auto()
    INCOMPLETE_CORRELATION = auto()
    AMBIGUOUS_GENERATOR_RESOLUTION = auto()


@dataclass(frozen=True)
class Zone:
    """A finalized zone, built from a CreateZone and a Zone Created line."""

    alias: int
    local_name: str
    dimension: str
    layer: str

    def __str__(self) -> str:
        return f"ZONE_{self.alias} {self.layer} {self.dimension}"


@dataclass(frozen=True)
class ObjectiveItem:
    """An objective item placed in a zone."""

    kind: ItemKind
    zone_alias: Optional[int]
    count: int
    key_name: Optional[str] = None
    key_color: Optional[str] = None
    key_color_id: Optional[int] = None
    resource_container_id: Optional[str] = None
    ri: Optional[int] = None
    area_id: Optional[int] = None  # HSU local area
    area_name: Optional[str] = None
    timestamp: Optional[time] = None


@dataclass(frozen=True)
class GeneratorSlot:
    """Core generator tracked by its order of appearance."""

    index: int  # 1-based
    zone_alias: Optional[int] = None
    resolved: bool = False
    via_fallback: bool = False
    collection_index: Optional[int] = None
    item_name: Optional[str] = None
    timestamp: Optional[time] = None


@dataclass(frozen=True)
class DoorEvent:
    """A door opening, used as a split marker."""

    timestamp: Optional[time]
    zone_alias: Optional[int] = None


@dataclass(frozen=True)
class StateChange:
    """Game state transition."""

    timestamp: Optional[time]
    state: str


@dataclass(frozen=True)
class TimingSplit:
    """Door or state marker in arrival order, for autosplitter consumers."""

    timestamp: Optional[time]
    label: str
    zone_alias: Optional[int] = None


@dataclass(frozen=True)
class LevelInfo:
    """Level header: expedition identity and generation seeds."""

    rundown_id: Optional[int] = None
    rundown: Optional[Rundown] = None
    tier: Optional[str] = None
    expedition_index: Optional[int] = None
    build_seed: Optional[int] = None
    host_id_seed: Optional[int] = None
    session_seed: Optional[int] = None
    build_done: bool = False

    @property
    def display_name(self) -> Optional[str]:
        if self.rundown is None:
            return None
        return expedition_display_name(self.rundown, self.tier, self.expedition_index)


@dataclass(frozen=True)
class Diagnostic:
    """Anomaly recorded against the session instead of raising."""

    kind: DiagnosticKind
    message: str
    timestamp: Optional[time] = None
    raw_line: Optional[str] = None


# --- Pending (partial) records -----------------------------------------------


@dataclass(frozen=True)
class PendingZone:
    """CreateZone seen, waiting for its Zone Created line."""

    alias: int
    local_name: str
    timestamp: Optional[time] = None


@dataclass(frozen=True)
class PendingKey:
    """CreateKeyItemDistribution seen, waiting for its container."""

    key_name: str
    color: Optional[str] = None
    color_id: Optional[int] = None
    dimension: Optional[str] = None
    local_name: Optional[str] = None
    timestamp: Optional[time] = None


@dataclass(frozen=True)
class PendingItem:
    """Objective item distribution with count and/or zone still missing."""

    item_id: str
    kind: ItemKind
    count: Optional[int] = None
    zone_alias: Optional[int] = None
    timestamp: Optional[time] = None

    @property
    def is_complete(self) -> bool:
        return self.count is not None and self.zone_alias is not None


@dataclass(frozen=True)
class PendingCounts:
    """Open correlations at the time of a snapshot."""

    zones: int = 0
    keys: int = 0
    items: int = 0
    zone_selections: int = 0
    unresolved_generators: int = 0


@dataclass(frozen=True)
class SmallPickup:
    """Personnel pickup container, with its item seed when the next line gave one."""

    container: str
    seed: Optional[int] = None
    timestamp: Optional[time] = None


DomainRecord = Union[Zone, ObjectiveItem, GeneratorSlot, DoorEvent, StateChange, SmallPickup]


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session at one point in the stream."""

    level: LevelInfo
    zones: tuple[Zone, ...]
    items: tuple[ObjectiveItem, ...]
    generators: tuple[GeneratorSlot, ...]
    door_events: tuple[DoorEvent, ...]
    state_changes: tuple[StateChange, ...]
    splits: tuple[TimingSplit, ...]
    pending_zones: tuple[PendingZone, ...]
    unresolved_keys: tuple[ObjectiveItem, ...]
    pending_items: tuple[PendingItem, ...]
    unattached_zone_selections: tuple[int, ...]
    pending: PendingCounts
    diagnostics: tuple[Diagnostic, ...]
    generator_index_policy: GeneratorIndexPolicy
    current_batch: Optional[str] = None
    lines_processed: int = 0
    unrecognized_count: int = 0
    finalized: bool = False
    small_pickups: tuple[SmallPickup, ...] = ()
    zones_by_alias: dict[int, Zone] = field(default_factory=dict, compare=False, repr=False)

    def zone(self, alias: int) -> Optional[Zone]:
        return self.zones_by_alias.get(alias)

    def diagnostics_of(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]
