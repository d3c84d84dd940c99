"""Day-part tags and the numeric codes used for them on the wire, per schema version."""

from enum import Enum

from compact_schema import SchemaVersion
from exceptions import IncompleteSchemaError


class DaySlot(str, Enum):
    """Current two-part day."""

    AM = "am"
    PM = "pm"


class LegacySlot(str, Enum):
    """Three-part day used by schema versions 1 and 2."""

    MORNING = "morning"
    LUNCH = "lunch"
    EVENING = "evening"


# Code -> tag, indexed by code. Never renumber an existing row; add a new one.
SLOT_CODES = {
    SchemaVersion.V1: (LegacySlot.MORNING, LegacySlot.LUNCH, LegacySlot.EVENING),
    SchemaVersion.V2: (LegacySlot.MORNING, LegacySlot.LUNCH, LegacySlot.EVENING),
    SchemaVersion.V3: (DaySlot.AM, DaySlot.PM),
}

# Lossy on purpose: once upgraded, a "pm" slot cannot tell whether it was
# lunch or evening. Old links depend on this exact mapping.
LEGACY_SLOT_UPGRADE = {
    LegacySlot.MORNING: DaySlot.AM,
    LegacySlot.LUNCH: DaySlot.PM,
    LegacySlot.EVENING: DaySlot.PM,
}

_CURRENT_CODES = {slot: code for code, slot in enumerate(SLOT_CODES[SchemaVersion.V3])}


def slot_code(slot: DaySlot) -> int:
    """Wire code of a current-vocabulary slot."""
    return _CURRENT_CODES[DaySlot(slot)]


def upgrade_slot(slot) -> DaySlot:
    """Map any known tag, current or legacy, onto the current vocabulary."""
    if isinstance(slot, LegacySlot):
        return LEGACY_SLOT_UPGRADE[slot]
    return DaySlot(slot)


def slot_from_code(version: SchemaVersion, code) -> DaySlot:
    """Decode a wire code of the given version into a current slot."""
    table = SLOT_CODES[version]
    if not isinstance(code, int) or isinstance(code, bool) or not 0 <= code < len(table):
        raise IncompleteSchemaError(f"Invalid v{int(version)} slot code: {code!r}")
    return upgrade_slot(table[code])


def parse_slot_tag(tag: str) -> DaySlot:
    """Parse a textual tag such as "pm" or "lunch" into a current slot."""
    for vocabulary in (DaySlot, LegacySlot):
        try:
            return upgrade_slot(vocabulary(tag))
        except ValueError:
            continue
    raise IncompleteSchemaError(f"Unknown slot tag: {tag!r}")
