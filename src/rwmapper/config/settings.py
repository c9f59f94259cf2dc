"""Configuration and settings management."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from rwmapper.core.models import GeneratorIndexPolicy
from rwmapper.parser.patterns import DEFAULT_FALLBACK_BATCHES

# Unity writes player logs under LocalLow; GTFO names one file per launch:
# GTFO.2024.05.12 18.04.33.712_Player_NETSTATUS.txt
LOG_RELATIVE_DIR = Path("AppData/LocalLow/10 Chambers Collective/GTFO")
LOG_GLOB = "GTFO.*.txt"


def get_default_log_dir() -> Path:
    """
    Get the default game log directory.

    Uses %USERPROFILE% on Windows, the home directory elsewhere.
    """
    user_profile = os.environ.get("USERPROFILE")
    base = Path(user_profile) if user_profile else Path.home()
    return base / LOG_RELATIVE_DIR


def find_log_file(custom_log_dir: Optional[str] = None) -> Optional[Path]:
    """
    Auto-detect the newest game log.

    Checks the custom directory first (if provided), then the default location.

    Args:
        custom_log_dir: Directory to search before the default one

    Returns:
        Path to the most recently modified log, None if none was found
    """
    candidates = []
    if custom_log_dir:
        candidates.append(Path(custom_log_dir))
    candidates.append(get_default_log_dir())

    for log_dir in candidates:
        if not log_dir.is_dir():
            continue
        logs = sorted(log_dir.glob(LOG_GLOB), key=lambda p: p.stat().st_mtime, reverse=True)
        if logs:
            return logs[0]
    return None


def parse_generator_policy(value: Optional[str]) -> GeneratorIndexPolicy:
    """
    Parse a generator cursor policy name.

    Raises:
        ValueError: If the name is not a known policy
    """
    if value is None:
        return GeneratorIndexPolicy.CONTINUE
    try:
        return GeneratorIndexPolicy(value.strip().lower())
    except ValueError:
        choices = ", ".join(p.value for p in GeneratorIndexPolicy)
        raise ValueError(f"Unknown generator index policy: {value} (expected one of: {choices})")


@dataclass
class Settings:
    """Application settings."""

    # Path to game log file
    log_path: Optional[Path] = None

    # Poll interval for log tailing (seconds)
    poll_interval: float = 0.5

    # Generator cursor behaviour at fallback sections
    generator_index_policy: GeneratorIndexPolicy = GeneratorIndexPolicy.CONTINUE

    # Batch names treated as generator fallback sections
    fallback_batches: frozenset[str] = field(default_factory=lambda: DEFAULT_FALLBACK_BATCHES)

    # Where the export command writes the session (None prints to stdout)
    export_path: Optional[Path] = None

    # Skip auto-detection (tests, piped input)
    auto_detect: bool = True

    def __post_init__(self) -> None:
        """Auto-detect log path if not set."""
        if self.log_path is None and self.auto_detect:
            self.log_path = find_log_file()

    @classmethod
    def from_args(
        cls,
        log_path: Optional[str] = None,
        poll_interval: Optional[float] = None,
        generator_index_policy: Optional[str] = None,
        fallback_batches: Optional[Iterable[str]] = None,
        export_path: Optional[str] = None,
        log_dir: Optional[str] = None,
    ) -> "Settings":
        """
        Create settings from CLI arguments.

        Args:
            log_path: Override log file path
            poll_interval: Override tail poll interval
            generator_index_policy: "continue" or "reset"
            fallback_batches: Override fallback batch names
            export_path: Export output file
            log_dir: Directory to search for the newest log when log_path is not given
        """
        resolved_log = Path(log_path) if log_path else find_log_file(log_dir)
        return cls(
            log_path=resolved_log,
            poll_interval=poll_interval if poll_interval is not None else 0.5,
            generator_index_policy=parse_generator_policy(generator_index_policy),
            fallback_batches=(
                frozenset(fallback_batches) if fallback_batches else DEFAULT_FALLBACK_BATCHES
            ),
            export_path=Path(export_path) if export_path else None,
            auto_detect=False,
        )

    def validate(self) -> list[str]:
        """
        Validate settings.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if self.log_path is None:
            errors.append("No log file specified and auto-detect failed")
        elif not self.log_path.exists():
            errors.append(f"Log file not found: {self.log_path}")

        if self.poll_interval <= 0:
            errors.append(f"Poll interval must be positive: {self.poll_interval}")

        if not self.fallback_batches:
            errors.append("At least one fallback batch name is required")

        return errors
