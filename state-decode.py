#!/usr/bin/env python3
import sys
import json

from state_codec import decode_state
from state_model import state_to_json

def main():
    if len(sys.argv) != 2:
        print(f"Usage: {sys.argv[0]} <encoded_state>", file=sys.stderr)
        sys.exit(1)
    failures = []
    state = decode_state(sys.argv[1], failures)
    if state is None:
        for failure in failures:
            print(f"{failure.step.value}: {failure.error}", file=sys.stderr)
        print("Could not decode state.", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(state_to_json(state), separators=(",", ":"), ensure_ascii=False))

if __name__ == "__main__":
    main()
