"""Convert iCalendar text to a tree of dicts and back.

A node maps each property name, exactly as written in the source, to either a
string, a list of strings (the property was repeated), or a list of child
nodes (one per BEGIN/END block of that name).
"""

import logging
import re

logger = logging.getLogger(__name__)

IcalNode = dict[str, str | list[str] | list["IcalNode"]]

NEW_LINE = re.compile(r"\r\n|\n|\r")
MAX_LINE_LENGTH = 75
# Repeated properties written back one per line without folding.
UNFOLDED_LIST_KEYS = frozenset({"RDATE"})


def as_text(value) -> str:
    if isinstance(value, str):
        return value
    # A continuation onto a repeated property extends its comma-joined text.
    return ",".join(item for item in value if isinstance(item, str))


def is_node(value) -> bool:
    if not isinstance(value, dict):
        return False
    for key, item in value.items():
        if not isinstance(key, str):
            return False
        if isinstance(item, str):
            continue
        if not isinstance(item, list):
            return False
        if not all(isinstance(i, str) or is_node(i) for i in item):
            return False
    return True


def decode(text: str) -> IcalNode:
    root: IcalNode = {}
    stack: list[IcalNode] = [root]
    key = ""

    for line in NEW_LINE.split(text):
        node = stack[-1]

        if line.startswith(" "):
            node[key] = as_text(node.get(key, "")) + line[1:]
            continue

        name, sep, value = line.partition(":")
        if not sep:
            if line:
                logger.debug("skipping line without a colon: %r", line)
            continue
        key = name

        if key == "BEGIN":
            child: IcalNode = {}
            node.setdefault(value, []).append(child)
            stack.append(child)
        elif key == "END":
            if len(stack) > 1:
                stack.pop()
            else:
                logger.debug("ignoring unmatched END:%s", value)
        elif key not in node:
            node[key] = value
        else:
            existing = node[key]
            if isinstance(existing, str):
                node[key] = [existing, value]
            else:
                existing.append(value)

    return root


def fold(line: str) -> list[str]:
    """Split a content line into chunks of at most MAX_LINE_LENGTH characters.

    Every chunk after the first starts with a single space. Lengths are
    counted in characters, not UTF-8 octets.
    """
    chunks = []
    while True:
        chunks.append(line[:MAX_LINE_LENGTH])
        line = " " + line[MAX_LINE_LENGTH:]
        if len(line) <= 1:
            return chunks


def encode(node: IcalNode) -> str:
    lines = []

    for key, value in node.items():
        if isinstance(value, str):
            lines.extend(fold(f"{key}:{value}"))
            continue
        for item in value:
            if isinstance(item, dict):
                lines.append(f"BEGIN:{key}")
                if body := encode(item):
                    lines.append(body)
                lines.append(f"END:{key}")
            elif key in UNFOLDED_LIST_KEYS:
                lines.append(f"{key}:{item}")
            else:
                lines.extend(fold(f"{key}:{item}"))

    return "\n".join(lines)
