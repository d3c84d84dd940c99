"""In-memory availability state shared between the codec and the UI layer."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, FrozenSet, Iterable, Optional, Tuple

from exceptions import IncompleteSchemaError
from slot_vocabulary import DaySlot, parse_slot_tag

DEFAULT_PEOPLE = ("Alice", "Bob")
KEY_SEPARATOR = "|"

# Logical JSON field names; the camelCase spellings are accepted on input.
_MONTH_FIELDS = ("base_month", "baseMonth")
_AVAILABLE_FIELDS = ("available_time", "availableTime")


def month_start(value: datetime) -> datetime:
    """First instant of the UTC month containing value. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return datetime(value.year, value.month, 1, tzinfo=timezone.utc)


def parse_month_timestamp(text) -> datetime:
    """Parse an ISO timestamp such as "2025-03-01T00:00:00.000Z" into a UTC month start."""
    if not isinstance(text, str) or not text:
        raise IncompleteSchemaError(f"Month field must be an ISO timestamp, got {text!r}")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return month_start(datetime.fromisoformat(text))
    except (ValueError, OverflowError) as e:
        raise IncompleteSchemaError(f"Invalid month timestamp: {e}") from e


def format_month_timestamp(value: datetime) -> str:
    """Render a month start the way browsers print Date.toISOString()."""
    value = month_start(value)
    # strftime does not zero-pad years below 1000 on every platform
    return f"{value.year:04d}-{value.month:02d}-01T00:00:00.000Z"


def parse_name(raw, where: str) -> str:
    """Return raw if it is a name that can be written back out as UTF-8."""
    if not isinstance(raw, str):
        raise IncompleteSchemaError(f"{where} has no name")
    try:
        raw.encode("utf-8")
    except UnicodeEncodeError as e:
        raise IncompleteSchemaError(f"{where} has an unencodable name: {e.reason}") from e
    return raw


def parse_iso_date(text) -> date:
    """Parse a "YYYY-MM-DD" date string."""
    if not isinstance(text, str) or len(text) != 10:
        raise IncompleteSchemaError(f"Date must be YYYY-MM-DD, got {text!r}")
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise IncompleteSchemaError(f"Invalid date {text!r}: {e}") from e


@dataclass(frozen=True, order=True)
class SlotKey:
    """One selectable cell: a calendar date plus a day part."""

    date: date
    slot: DaySlot

    def __str__(self) -> str:
        return f"{self.date.isoformat()}{KEY_SEPARATOR}{self.slot.value}"

    @classmethod
    def parse(cls, text) -> "SlotKey":
        """Parse "YYYY-MM-DD|slot". Legacy three-part tags are upgraded."""
        if not isinstance(text, str) or text.count(KEY_SEPARATOR) != 1:
            raise IncompleteSchemaError(f"Slot key must look like 'YYYY-MM-DD|am', got {text!r}")
        day, tag = text.split(KEY_SEPARATOR)
        return cls(parse_iso_date(day), parse_slot_tag(tag))


@dataclass(frozen=True)
class Person:
    name: str
    available_time: FrozenSet[SlotKey] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "available_time", frozenset(self.available_time))


@dataclass(frozen=True)
class LogicalState:
    """Everyone's selected slots for one month.

    base_month is kept as the first instant of its UTC month, and total is
    always derived from people so it can never disagree with it.
    """

    base_month: datetime
    people: Tuple[Person, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "base_month", month_start(self.base_month))
        object.__setattr__(self, "people", tuple(self.people))

    @property
    def total(self) -> int:
        return len(self.people)

    def with_people(self, people: Iterable[Person]) -> "LogicalState":
        return replace(self, people=tuple(people))


def build_default_state(now: Optional[datetime] = None) -> LogicalState:
    """Fresh two-person state with no availability, anchored at the current month."""
    now = now or datetime.now(timezone.utc)
    return LogicalState(month_start(now), tuple(Person(name) for name in DEFAULT_PEOPLE))


def state_to_json(state: LogicalState) -> dict[str, Any]:
    """Verbatim JSON form of a logical state."""
    return {
        "total": state.total,
        "base_month": format_month_timestamp(state.base_month),
        "people": [
            {
                "name": person.name,
                "available_time": [str(key) for key in sorted(person.available_time)],
            }
            for person in state.people
        ],
    }


def _first_field(tree: dict, names):
    for name in names:
        if name in tree:
            return tree[name]
    return None


def looks_like_logical_state(tree) -> bool:
    """True if tree has the verbatim logical shape rather than the compact one."""
    return (
        isinstance(tree, dict)
        and "people" in tree
        and any(name in tree for name in _MONTH_FIELDS)
    )


def state_from_json(tree) -> LogicalState:
    """Parse the verbatim JSON form. Any "total" it carries is ignored."""
    if not looks_like_logical_state(tree):
        raise IncompleteSchemaError("Not a logical state object")
    base_month = parse_month_timestamp(_first_field(tree, _MONTH_FIELDS))
    raw_people = tree["people"]
    if not isinstance(raw_people, list):
        raise IncompleteSchemaError("people must be a list")

    people = []
    for i, raw in enumerate(raw_people):
        if not isinstance(raw, dict):
            raise IncompleteSchemaError(f"people[{i}] must be an object")
        name = parse_name(raw.get("name"), f"people[{i}]")
        keys = _first_field(raw, _AVAILABLE_FIELDS)
        if keys is None:
            keys = []
        if not isinstance(keys, list):
            raise IncompleteSchemaError(f"people[{i}] availability must be a list")
        people.append(Person(name, frozenset(SlotKey.parse(k) for k in keys)))

    return LogicalState(base_month, tuple(people))
