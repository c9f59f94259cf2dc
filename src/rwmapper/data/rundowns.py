"""Rundown id mappings from the expedition selection line."""

from enum import Enum
from typing import Optional


class Rundown(Enum):
    """Rundowns keyed by the id the live build writes into Local_{id}_Tier..."""

    MODDED = 0
    R7 = 31
    R1 = 32
    R2 = 33
    R3 = 34
    R8 = 35
    R4 = 37
    R5 = 38
    TUTORIAL = 39
    R6 = 41


# Ids written by the live build; anything else is a modded rundown
RUNDOWN_IDS = {rundown.value: rundown for rundown in Rundown}


def get_rundown(rundown_id: int) -> Rundown:
    """Map a rundown id from the log to a Rundown, falling back to MODDED."""
    return RUNDOWN_IDS.get(rundown_id, Rundown.MODDED)


def expedition_display_name(
    rundown: Rundown,
    tier: Optional[str],
    expedition_index: Optional[int],
) -> str:
    """
    Build the short expedition name shown to players, e.g. R1A1.

    The expedition index in the log is 0-based.
    """
    if rundown == Rundown.TUTORIAL:
        return "Tutorial"
    name = "Modded" if rundown == Rundown.MODDED else rundown.name
    if tier is None or expedition_index is None:
        return name
    return f"{name}{tier}{expedition_index + 1}"
