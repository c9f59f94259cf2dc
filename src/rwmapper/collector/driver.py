"""Stream driver - feeds log lines through the classifier and correlator."""

import threading
import time
from typing import Callable, Iterable, Iterator, Optional, Protocol

from rwmapper.config.logging import get_logger
from rwmapper.core.correlator import StateCorrelator
from rwmapper.core.errors import SessionFinalizedError
from rwmapper.core.models import (
    ClassifiedToken,
    DomainRecord,
    GeneratorIndexPolicy,
    SessionSnapshot,
)
from rwmapper.core.session_state import SessionState
from rwmapper.parser.log_parser import classify_line
from rwmapper.parser.sections import SectionTracker

logger = get_logger(__name__)


class LineSource(Protocol):
    """Anything that can hand over the lines appended since the last call."""

    def read_new_lines(self) -> Iterator[str]:
        ...


class StreamDriver:
    """
    Owns one session and feeds it lines in arrival order.

    The same driver serves a finished file (feed_lines / run) and a live log
    (tail); the resulting state depends only on the sequence of lines, never on
    how they were chunked. Snapshots can be taken from another thread at any time.
    """

    def __init__(
        self,
        generator_index_policy: GeneratorIndexPolicy = GeneratorIndexPolicy.CONTINUE,
        fallback_batches: Optional[Iterable[str]] = None,
        on_record: Optional[Callable[[DomainRecord], None]] = None,
    ) -> None:
        """
        Initialize driver.

        Args:
            generator_index_policy: Generator cursor policy at fallback sections
            fallback_batches: Batch names treated as fallback sections
            on_record: Callback for each created or updated domain record
        """
        self.state = SessionState()
        self.sections = SectionTracker(fallback_batches)
        self.correlator = StateCorrelator(self.state, generator_index_policy)

        self._on_record = on_record
        self._lock = threading.Lock()
        self._partial_line = ""
        self._running = False

    @property
    def generator_index_policy(self) -> GeneratorIndexPolicy:
        return self.correlator.generator_index_policy

    @property
    def finalized(self) -> bool:
        return self.state.finalized

    @property
    def running(self) -> bool:
        return self._running

    def _apply(self, tokens: list[ClassifiedToken]) -> list[DomainRecord]:
        """Apply tokens in order. Caller holds the lock."""
        records: list[DomainRecord] = []
        for token in tokens:
            records.extend(self.correlator.apply(self.sections.observe(token)))
        return records

    def _notify(self, records: list[DomainRecord]) -> None:
        if self._on_record:
            for record in records:
                self._on_record(record)

    def feed(self, line: str) -> list[DomainRecord]:
        """
        Feed a single line.

        Args:
            line: Raw log line (may include newline)

        Returns:
            Domain records created or updated by the line
        """
        token = classify_line(line)
        with self._lock:
            if self.state.finalized:
                raise SessionFinalizedError("Session already finalized")
            records = self._apply([token])
        self._notify(records)
        return records

    def feed_lines(self, lines: Iterable[str]) -> int:
        """
        Feed a batch of lines.

        Classification is stateless, so the whole batch is classified before
        the lock is taken; tokens are then applied strictly in order.

        Returns:
            Number of lines fed
        """
        tokens = [classify_line(line) for line in lines]
        with self._lock:
            if self.state.finalized:
                raise SessionFinalizedError("Session already finalized")
            records = self._apply(tokens)
        self._notify(records)
        return len(tokens)

    def feed_text(self, chunk: str) -> int:
        """
        Feed raw appended text that may end mid-line.

        The unterminated tail is held until a later chunk completes it or the
        session is finalized.

        Returns:
            Number of complete lines fed
        """
        with self._lock:
            if self.state.finalized:
                raise SessionFinalizedError("Session already finalized")
            lines = (self._partial_line + chunk).split("\n")
            self._partial_line = lines.pop()
            records = self._apply([classify_line(line) for line in lines])
        self._notify(records)
        return len(lines)

    def snapshot(self) -> SessionSnapshot:
        """Read-only view of the session, available before and after finalize."""
        with self._lock:
            return self.state.snapshot(self.generator_index_policy)

    def finalize(self) -> SessionSnapshot:
        """
        Mark end of session.

        Pending zones, keys and items stay in the snapshot as incomplete entries.
        Calling this again returns the same snapshot.
        """
        with self._lock:
            if not self.state.finalized:
                records: list[DomainRecord] = []
                if self._partial_line:
                    records = self._apply([classify_line(self._partial_line)])
                    self._partial_line = ""
                self.state.finalized = True
                logger.info(
                    "Session finalized: %d lines, %d zones, %d items, %d generators, %d doors",
                    self.state.lines_processed,
                    len(self.state.zones),
                    len(self.state.items),
                    len(self.state.generators),
                    len(self.state.door_events),
                )
            else:
                records = []
            snapshot = self.state.snapshot(self.generator_index_policy)
        self._notify(records)
        return snapshot

    def run(self, lines: Iterable[str]) -> SessionSnapshot:
        """Parse a complete log and finalize it."""
        self.feed_lines(lines)
        return self.finalize()

    def tail(self, source: LineSource, poll_interval: float = 0.5) -> SessionSnapshot:
        """
        Follow a live line source until stop() is called.

        Waiting on the source happens outside the lock so snapshots are never
        stalled. The session is finalized when the loop ends.

        Args:
            source: Line source, e.g. a LogTailer
            poll_interval: Seconds to sleep when no new lines arrived
        """
        self._running = True
        try:
            while self._running:
                lines = list(source.read_new_lines())
                if not self._running:
                    break
                if lines:
                    try:
                        self.feed_lines(lines)
                    except SessionFinalizedError:
                        # finalize() was called from another thread while these lines were read
                        logger.debug("Dropped %d lines read after finalize", len(lines))
                        break
                else:
                    time.sleep(poll_interval)
        finally:
            self._running = False
        return self.finalize()

    def stop(self) -> None:
        """
        Stop a live parse.

        Only clears the running flag, so it is safe to call from a signal
        handler while the lock is held. tail() finalizes once its loop ends.
        """
        self._running = False
