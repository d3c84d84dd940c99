#!/usr/bin/env python3
import sys
import json

from state_codec import encode_state
from state_model import state_from_json
from exceptions import StateDecodeError

def main():
    if len(sys.argv) != 2:
        print(f"Usage: {sys.argv[0]} '<state_json>'", file=sys.stderr)
        sys.exit(1)

    try:
        state = state_from_json(json.loads(sys.argv[1]))
    except (StateDecodeError, ValueError) as e:
        print(f"Invalid state JSON: {e}", file=sys.stderr)
        sys.exit(1)
    print(encode_state(state))

if __name__ == "__main__":
    main()
