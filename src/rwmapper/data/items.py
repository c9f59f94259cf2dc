"""Objective item identifier mappings and key name helpers."""

import re
from typing import Optional

from rwmapper.core.models import ItemKind

# Numeric item ids from the distribution lines.
# Cryo (148), OSIP (150), HiSec (154) and MWP (164) are not objective kinds
# the mapper tracks and stay out of this table.
ITEM_IDENTIFIERS = {
    128: ItemKind.ID,
    129: ItemKind.PD,
    131: ItemKind.CELL,
    133: ItemKind.TURBINE,
    137: ItemKind.NEONATE,
    149: ItemKind.GLP,
    151: ItemKind.DATASPHERE,
    153: ItemKind.PLANT,
    165: ItemKind.DATA_CUBE,  # R8 data cube
    168: ItemKind.DATA_CUBE,
    169: ItemKind.GLP,
    176: ItemKind.CARGO,
}

# Named identifiers, compared after upper-casing and dropping separators
ITEM_NAMES = {
    "HSU": ItemKind.HSU,
    "CELL": ItemKind.CELL,
    "POWERCELL": ItemKind.CELL,
    "ID": ItemKind.ID,
    "PERSONNELID": ItemKind.ID,
    "GLP": ItemKind.GLP,
    "GLP1": ItemKind.GLP,
    "GLP2": ItemKind.GLP,
    "PLANT": ItemKind.PLANT,
    "PLANTSAMPLE": ItemKind.PLANT,
    "PD": ItemKind.PD,
    "PARTIALDECODER": ItemKind.PD,
    "DATACUBE": ItemKind.DATA_CUBE,
    "CARGO": ItemKind.CARGO,
    "NEONATE": ItemKind.NEONATE,
    "DATASPHERE": ItemKind.DATASPHERE,
    "TURBINE": ItemKind.TURBINE,
    "FOGTURBINE": ItemKind.TURBINE,
}

_SEPARATORS = re.compile(r"[\s_\-]+")

# KEY_WHITE_584 -> color WHITE, id 584
KEY_NAME_PATTERN = re.compile(r"^KEY_(?P<color>[A-Z]+)_(?P<color_id>\d+)$")


def resolve_item_kind(identifier: str) -> Optional[ItemKind]:
    """
    Map an item identifier from an itemsToSpawn line to an objective kind.

    Args:
        identifier: Numeric id ("131") or name ("CELL", "Fog_Turbine")

    Returns:
        The ItemKind, or None if the identifier is not a tracked objective kind.
        Keys are never distributed through this path.
    """
    if identifier.isdigit():
        return ITEM_IDENTIFIERS.get(int(identifier))
    return ITEM_NAMES.get(_SEPARATORS.sub("", identifier).upper())


def parse_key_name(key_name: str) -> tuple[Optional[str], Optional[int]]:
    """Split a KEY_<COLOR>_<ID> name into its color and id."""
    match = KEY_NAME_PATTERN.match(key_name)
    if not match:
        return None, None
    return match.group("color"), int(match.group("color_id"))
