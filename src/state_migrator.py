"""Converts logical states to the latest compact schema and compact trees of any version back."""

from datetime import date, datetime
from typing import Any, Callable, Dict

from compact_schema import (
    AVAILABLE_KEY,
    LATEST_VERSION,
    MONTH_KEY,
    NAME_KEY,
    PEOPLE_KEY,
    VERSION_KEY,
    CompactStateV3,
    SchemaVersion,
    detect_version,
)
from exceptions import IncompleteSchemaError
from slot_vocabulary import slot_code, slot_from_code
from state_model import (
    LogicalState,
    Person,
    SlotKey,
    format_month_timestamp,
    parse_iso_date,
    parse_month_timestamp,
    parse_name,
)


def to_compact(state: LogicalState) -> CompactStateV3:
    """Project a logical state onto the latest compact schema.

    Entries are sorted so equal states always produce equal trees.
    """
    return {
        VERSION_KEY: int(LATEST_VERSION),
        MONTH_KEY: format_month_timestamp(state.base_month),
        PEOPLE_KEY: [
            {
                NAME_KEY: person.name,
                AVAILABLE_KEY: [
                    [key.date.isoformat(), slot_code(key.slot)]
                    for key in sorted(person.available_time)
                ],
            }
            for person in state.people
        ],
    }


def _absolute_date(raw, base_month: datetime) -> date:  # pylint: disable=unused-argument
    return parse_iso_date(raw)


def _day_of_month(raw, base_month: datetime) -> date:
    # base_month is already a UTC month start, so local time never shifts the day.
    if not isinstance(raw, int) or isinstance(raw, bool):
        raise IncompleteSchemaError(f"Day of month must be an int, got {raw!r}")
    try:
        return date(base_month.year, base_month.month, raw)
    except ValueError as e:
        raise IncompleteSchemaError(f"Invalid day {raw} for {base_month:%Y-%m}: {e}") from e


DateDecoder = Callable[[Any, datetime], date]

# How each version stores the date half of an availability entry.
DATE_DECODERS: Dict[SchemaVersion, DateDecoder] = {
    SchemaVersion.V1: _day_of_month,
    SchemaVersion.V2: _absolute_date,
    SchemaVersion.V3: _absolute_date,
}


def _decode_entry(entry, version: SchemaVersion, base_month: datetime) -> SlotKey:
    if not isinstance(entry, list) or len(entry) != 2:
        raise IncompleteSchemaError(f"Availability entry must be a [date, code] pair, got {entry!r}")
    raw_date, code = entry
    return SlotKey(DATE_DECODERS[version](raw_date, base_month), slot_from_code(version, code))


def from_compact(tree) -> LogicalState:
    """Rebuild a logical state from a compact tree of any known version.

    Legacy three-part slots are collapsed into am/pm, so several entries may
    merge into one. Any person count stored in the tree is ignored.
    """
    if not isinstance(tree, dict):
        raise IncompleteSchemaError(f"Compact state must be an object, got {type(tree).__name__}")
    version = detect_version(tree)

    if MONTH_KEY not in tree:
        raise IncompleteSchemaError("Compact state is missing its month field")
    base_month = parse_month_timestamp(tree[MONTH_KEY])

    raw_people = tree.get(PEOPLE_KEY)
    if not isinstance(raw_people, list):
        raise IncompleteSchemaError("Compact state is missing its people list")

    people = []
    for i, raw in enumerate(raw_people):
        if not isinstance(raw, dict):
            raise IncompleteSchemaError(f"Person {i} must be an object")
        name = parse_name(raw.get(NAME_KEY), f"Person {i}")
        entries = raw.get(AVAILABLE_KEY)
        if not isinstance(entries, list):
            raise IncompleteSchemaError(f"Person {i} has no availability list")
        keys = frozenset(_decode_entry(entry, version, base_month) for entry in entries)
        people.append(Person(name, keys))

    return LogicalState(base_month, tuple(people))
