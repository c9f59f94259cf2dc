"""Level generation section tracking for generator fallback detection."""

from typing import Iterable, Optional

from rwmapper.core.models import (
    BatchMarker,
    ClassifiedToken,
    GeneratorFallbackUnpowered,
    GeneratorUnpowered,
)
from rwmapper.parser.patterns import DEFAULT_FALLBACK_BATCHES


class SectionTracker:
    """
    Follows Next Batch / Last Batch markers between the classifier and the correlator.

    The classifier sees one line at a time and cannot know which batch it is in,
    so generator lines inside a fallback batch are re-tagged here as
    GeneratorFallbackUnpowered. Every other token passes through unchanged.
    """

    def __init__(self, fallback_batches: Optional[Iterable[str]] = None) -> None:
        self.fallback_batches = frozenset(
            DEFAULT_FALLBACK_BATCHES if fallback_batches is None else fallback_batches
        )
        self.current_batch: Optional[str] = None

    @property
    def in_fallback(self) -> bool:
        return self.current_batch is not None and self.current_batch in self.fallback_batches

    def observe(self, token: ClassifiedToken) -> ClassifiedToken:
        """Update the current batch and re-tag generator tokens seen in a fallback batch."""
        if isinstance(token, BatchMarker):
            if token.is_start:
                self.current_batch = token.batch
            elif token.batch == self.current_batch:
                self.current_batch = None
            return token

        if isinstance(token, GeneratorUnpowered) and self.in_fallback:
            return GeneratorFallbackUnpowered(
                batch=self.current_batch,
                timestamp=token.timestamp,
                raw_line=token.raw_line,
            )

        return token
