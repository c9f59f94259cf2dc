"""Session state - the in-progress domain model and its correlation bookkeeping."""

from collections import deque
from typing import Callable, Generic, Iterator, Optional, TypeVar

from rwmapper.core.models import (
    Diagnostic,
    DiagnosticKind,
    DoorEvent,
    GeneratorIndexPolicy,
    GeneratorSlot,
    ItemKind,
    LevelInfo,
    ObjectiveItem,
    PendingCounts,
    PendingItem,
    PendingKey,
    PendingZone,
    SessionSnapshot,
    SmallPickup,
    StateChange,
    TimingSplit,
    Zone,
)

K = TypeVar("K")
V = TypeVar("V")


class PendingRecords(Generic[K, V]):
    """
    Open partial records keyed by identifier, oldest first.

    Every two-phase entity (zones, keys, objective items) waits here until its
    completing event arrives.
    """

    def __init__(self) -> None:
        self._records: dict[K, V] = {}

    def open(self, key: K, record: V) -> Optional[V]:
        """
        Store a partial record as the newest entry.

        Returns:
            The record it replaced, if the key was already open
        """
        replaced = self._records.pop(key, None)
        self._records[key] = record
        return replaced

    def update(self, key: K, record: V) -> None:
        """Replace a record keeping its position."""
        self._records[key] = record

    def get(self, key: K) -> Optional[V]:
        return self._records.get(key)

    def pop(self, key: K) -> Optional[V]:
        return self._records.pop(key, None)

    def oldest(self, predicate: Optional[Callable[[V], bool]] = None) -> Optional[tuple[K, V]]:
        """Return the oldest (key, record) pair, optionally the oldest matching predicate."""
        for key, record in self._records.items():
            if predicate is None or predicate(record):
                return key, record
        return None

    def values(self) -> list[V]:
        return list(self._records.values())

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[K]:
        return iter(self._records)


class SessionState:
    """
    Mutable model of one play session while its log is being read.

    Only the correlator mutates this; readers get a SessionSnapshot.
    """

    def __init__(self) -> None:
        self.level = LevelInfo()

        # Finalized records
        self.zones: dict[int, Zone] = {}
        self.items: list[ObjectiveItem] = []
        self.generators: list[GeneratorSlot] = []
        self.door_events: list[DoorEvent] = []
        self.state_changes: list[StateChange] = []
        self.splits: list[TimingSplit] = []
        self.small_pickups: list[SmallPickup] = []

        # Two-phase correlations
        self.pending_zones: PendingRecords[int, PendingZone] = PendingRecords()
        self.pending_keys: PendingRecords[int, PendingKey] = PendingRecords()
        self.pending_items: PendingRecords[str, PendingItem] = PendingRecords()
        self.unattached_zone_selections: deque[int] = deque()
        self.next_key_sequence = 0

        # Generator indexing
        self.generator_cursor = 0
        self.fallback_cursor = 0
        self.fallback_mode = False
        # Position in self.generators of the slot the next token may resolve
        self.awaiting_registration: Optional[int] = None
        # Position in self.small_pickups of the pickup the next token may give a seed
        self.awaiting_pickup_seed: Optional[int] = None

        self.current_batch: Optional[str] = None
        self.last_zone_alias: Optional[int] = None

        self.diagnostics: list[Diagnostic] = []
        self.lines_processed = 0
        self.unrecognized_count = 0
        self.finalized = False

    def add_diagnostic(
        self,
        kind: DiagnosticKind,
        message: str,
        timestamp=None,
        raw_line: Optional[str] = None,
    ) -> Diagnostic:
        diagnostic = Diagnostic(kind=kind, message=message, timestamp=timestamp, raw_line=raw_line)
        self.diagnostics.append(diagnostic)
        return diagnostic

    def find_zone(self, dimension: Optional[str], local_name: Optional[str]) -> Optional[Zone]:
        """Find a finalized zone by its dimension and local name (e.g. Reality, Zone_1)."""
        if local_name is None:
            return None
        for zone in self.zones.values():
            if zone.local_name == local_name and (dimension is None or zone.dimension == dimension):
                return zone
        return None

    def unresolved_key_items(self) -> list[ObjectiveItem]:
        """Keys still waiting for a container, as objective items without one."""
        items = []
        for pending in self.pending_keys.values():
            zone = self.find_zone(pending.dimension, pending.local_name)
            items.append(
                ObjectiveItem(
                    kind=ItemKind.KEY,
                    zone_alias=zone.alias if zone else None,
                    count=1,
                    key_name=pending.key_name,
                    key_color=pending.color,
                    key_color_id=pending.color_id,
                    resource_container_id=None,
                    timestamp=pending.timestamp,
                )
            )
        return items

    def pending_counts(self) -> PendingCounts:
        return PendingCounts(
            zones=len(self.pending_zones),
            keys=len(self.pending_keys),
            items=len(self.pending_items),
            zone_selections=len(self.unattached_zone_selections),
            unresolved_generators=sum(1 for slot in self.generators if not slot.resolved),
        )

    def incomplete_diagnostics(self) -> list[Diagnostic]:
        """
        Describe every correlation still open, one diagnostic each.

        Derived from the pending buffers rather than stored, so asking twice
        gives the same answer.
        """
        kind = DiagnosticKind.INCOMPLETE_CORRELATION
        diagnostics = []

        for pending in self.pending_zones.values():
            diagnostics.append(
                Diagnostic(
                    kind=kind,
                    message=f"Zone alias {pending.alias} ({pending.local_name}) never received its Zone Created line",
                    timestamp=pending.timestamp,
                )
            )

        for pending in self.pending_keys.values():
            diagnostics.append(
                Diagnostic(
                    kind=kind,
                    message=f"Key {pending.key_name} was never resolved to a resource container",
                    timestamp=pending.timestamp,
                )
            )

        for pending in self.pending_items.values():
            missing = "zone" if pending.zone_alias is None else "count"
            diagnostics.append(
                Diagnostic(
                    kind=kind,
                    message=f"Item {pending.item_id} ({pending.kind.value}) is missing its {missing}",
                    timestamp=pending.timestamp,
                )
            )

        for alias in self.unattached_zone_selections:
            diagnostics.append(
                Diagnostic(
                    kind=kind,
                    message=f"Zone selection ZONE{alias} was never matched to an item count",
                )
            )

        return diagnostics

    def snapshot(self, generator_index_policy: GeneratorIndexPolicy) -> SessionSnapshot:
        """Build an immutable view of the current state."""
        diagnostics = list(self.diagnostics)
        if self.finalized:
            diagnostics.extend(self.incomplete_diagnostics())

        return SessionSnapshot(
            level=self.level,
            zones=tuple(self.zones.values()),
            items=tuple(self.items),
            generators=tuple(self.generators),
            door_events=tuple(self.door_events),
            state_changes=tuple(self.state_changes),
            splits=tuple(self.splits),
            pending_zones=tuple(self.pending_zones.values()),
            unresolved_keys=tuple(self.unresolved_key_items()),
            pending_items=tuple(self.pending_items.values()),
            unattached_zone_selections=tuple(self.unattached_zone_selections),
            pending=self.pending_counts(),
            diagnostics=tuple(diagnostics),
            generator_index_policy=generator_index_policy,
            current_batch=self.current_batch,
            lines_processed=self.lines_processed,
            unrecognized_count=self.unrecognized_count,
            finalized=self.finalized,
            small_pickups=tuple(self.small_pickups),
            zones_by_alias=dict(self.zones),
        )
