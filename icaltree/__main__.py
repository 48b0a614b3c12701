import json
import logging
import os
import sys
from pathlib import Path

from . import CalendarError, calendar_view, decode, encode
from .codec import is_node

USAGE = "usage: python -m icaltree {json,ics,events} FILE"


def main():
    logging.basicConfig(level=os.environ.get("ICALTREE_LOG_LEVEL", "WARNING").upper())

    try:
        _, command, filename = sys.argv
    except ValueError:
        print(USAGE, file=sys.stderr)
        sys.exit(1)

    try:
        source = Path(filename).read_text(encoding="utf-8")
        if command == "json":
            json.dump(decode(source), sys.stdout, indent=2)
        elif command == "ics":
            tree = json.loads(source)
            if not is_node(tree):
                raise CalendarError(f"{filename} does not hold an iCalendar tree")
            sys.stdout.write(encode(tree))
        elif command == "events":
            json.dump(calendar_view(decode(source)), sys.stdout, indent=2)
        else:
            print(USAGE, file=sys.stderr)
            sys.exit(1)
    except (CalendarError, OSError, json.JSONDecodeError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    print()


if __name__ == "__main__":
    main()
