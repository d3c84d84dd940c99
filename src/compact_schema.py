"""Versioned, field-shortened wire trees for the shared state.

Every version is a JSON object with these short keys:

    v   version tag (absent on the oldest format)
    m   base month as an ISO timestamp, e.g. "2025-03-01T00:00:00.000Z"
    p   list of people, in display order
    n   person name
    a   list of [date, slot_code] availability entries

The date half of an entry and the slot code table depend on the version:

    v1 (no tag)  day-of-month int relative to "m"   morning=0 lunch=1 evening=2
    v2           "YYYY-MM-DD"                       morning=0 lunch=1 evening=2
    v3           "YYYY-MM-DD"                       am=0 pm=1

The oldest format may also carry a person count under "t" or "total". It is
accepted and ignored.
"""

from enum import IntEnum
from typing import Any, List, TypedDict, Union

from exceptions import UnknownSchemaVersionError

VERSION_KEY = "v"
MONTH_KEY = "m"
PEOPLE_KEY = "p"
NAME_KEY = "n"
AVAILABLE_KEY = "a"


class SchemaVersion(IntEnum):
    """Every compact schema version this code can read."""

    V1 = 1
    V2 = 2
    V3 = 3


LATEST_VERSION = SchemaVersion.V3


class CompactPersonV1(TypedDict):
    n: str
    a: List[List[int]]


class CompactStateV1(TypedDict, total=False):
    m: str
    p: List[CompactPersonV1]
    t: int


class CompactPerson(TypedDict):
    n: str
    a: List[List[Union[str, int]]]


class CompactStateV2(TypedDict):
    v: int
    m: str
    p: List[CompactPerson]


class CompactStateV3(TypedDict):
    v: int
    m: str
    p: List[CompactPerson]


CompactState = Union[CompactStateV1, CompactStateV2, CompactStateV3]


def detect_version(tree: dict[str, Any]) -> SchemaVersion:
    """Return the schema version of a compact tree.

    A missing tag means the oldest format. Any tag outside the known set,
    including ones newer than LATEST_VERSION, is rejected rather than guessed.
    """
    if VERSION_KEY not in tree:
        return SchemaVersion.V1
    tag = tree[VERSION_KEY]
    if isinstance(tag, int) and not isinstance(tag, bool):
        try:
            return SchemaVersion(tag)
        except ValueError:
            pass
    raise UnknownSchemaVersionError(f"Unknown compact schema version: {tag!r}")
