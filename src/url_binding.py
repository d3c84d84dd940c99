"""Reads and writes the `state` query parameter of a share URL."""

from datetime import datetime
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from state_codec import decode_state, encode_state
from state_model import LogicalState, build_default_state

STATE_PARAM = "state"


def read_state_param(url: str) -> Optional[str]:
    """Return the decoded `state` query value of url, or None if absent or empty."""
    for key, value in parse_qsl(urlsplit(url).query, keep_blank_values=True):
        if key == STATE_PARAM:
            return value or None
    return None


def build_url_with_state(url: str, state: LogicalState) -> str:
    """Return url with its `state` parameter set to the encoding of state.

    Other query parameters and the fragment are kept as they are.
    """
    parts = urlsplit(url)
    encoded = encode_state(state)
    params = []
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key != STATE_PARAM:
            params.append((key, value))
        elif encoded is not None:
            # replaces the first occurrence in place, drops any repeats
            params.append((key, encoded))
            encoded = None
    if encoded is not None:
        params.append((STATE_PARAM, encoded))
    return urlunsplit(parts._replace(query=urlencode(params)))


def load_state(url: str, now: Optional[datetime] = None) -> LogicalState:
    """The state a page at url should show: the decoded parameter, or a fresh default."""
    return decode_state(read_state_param(url)) or build_default_state(now)
