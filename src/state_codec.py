"""Turns logical states into URL-safe `state` values and back.

Encoding always produces the latest compact schema, compacted to JSON,
zlib-compressed and Base64Url-encoded without padding. Decoding walks a
ladder of older transports so that any link ever shared still opens:

1. compressed Base64Url JSON holding a compact tree of any known version
2. percent-escaped plain JSON, either a compact tree (has "p" and "m")
   or the very first verbatim logical state
"""

import base64
import json
import logging
import zlib
from enum import Enum
from typing import List, NamedTuple, Optional
from urllib.parse import unquote

from compact_schema import MONTH_KEY, PEOPLE_KEY
from exceptions import IncompleteSchemaError
from state_migrator import from_compact, to_compact
from state_model import LogicalState, looks_like_logical_state, state_from_json


class DecodeStep(Enum):
    """Decode strategies, in the order they are tried."""

    COMPRESSED = "compressed"
    ESCAPED_JSON = "escaped-json"


class DecodeFailure(NamedTuple):
    step: DecodeStep
    error: Exception


def compress_tree(tree) -> str:
    """Compact JSON -> zlib -> Base64Url without padding."""
    json_str = json.dumps(tree, separators=(",", ":"), ensure_ascii=False)
    compressed = zlib.compress(json_str.encode("utf-8"))
    return base64.urlsafe_b64encode(compressed).decode().rstrip("=")


def decompress_tree(encoded_state: str):
    """Reverse of compress_tree. Raises ValueError or zlib.error on bad input."""
    # Fix missing base64 padding if needed
    padded = encoded_state + "==="[:(4 - len(encoded_state) % 4) % 4]
    decoded_bytes = base64.urlsafe_b64decode(padded)
    json_str = zlib.decompress(decoded_bytes).decode("utf-8")
    return json.loads(json_str)


def encode_state(state: LogicalState) -> str:
    """Encode a logical state into a `state` query value."""
    return compress_tree(to_compact(state))


def _decode_compressed(text: str) -> LogicalState:
    tree = decompress_tree(text)
    if not isinstance(tree, dict):
        raise IncompleteSchemaError(f"Decompressed state is not an object ({type(tree).__name__})")
    return from_compact(tree)


def _decode_escaped_json(text: str) -> LogicalState:
    tree = json.loads(unquote(text))
    if not isinstance(tree, dict):
        raise IncompleteSchemaError(f"Escaped state is not an object ({type(tree).__name__})")
    if PEOPLE_KEY in tree and MONTH_KEY in tree:
        return from_compact(tree)
    if looks_like_logical_state(tree):
        return state_from_json(tree)
    raise IncompleteSchemaError("Escaped JSON is neither a compact nor a logical state")


_LADDER = (
    (DecodeStep.COMPRESSED, _decode_compressed),
    (DecodeStep.ESCAPED_JSON, _decode_escaped_json),
)


def decode_state(
    text: Optional[str], failures: Optional[List[DecodeFailure]] = None
) -> Optional[LogicalState]:
    """Decode a `state` query value produced by any version of the app.

    Returns None when nothing on the ladder can read the value. Never raises;
    each failed step is logged and, if a failures list is given, appended to it.
    """
    if not text or not isinstance(text, str) or not text.strip():
        return None

    for step, decoder in _LADDER:
        try:
            return decoder(text)
        except Exception as e:  # pylint: disable=broad-except
            logging.debug("State decode step %s failed: %s", step.value, e)
            if failures is not None:
                failures.append(DecodeFailure(step, e))

    return None
