"""Build a plain-dict view of the events in a decoded calendar tree."""

import logging
import re
from datetime import datetime

from icalendar.prop import vDDDTypes, vText

from .codec import IcalNode, as_text

logger = logging.getLogger(__name__)


class CalendarError(ValueError):
    pass


def find_key(node: IcalNode, name: str) -> str | None:
    """Return the first key mentioning ``name``, e.g. ``DTSTART;TZID=Europe/Rome``."""
    return next((k for k in node if name in k), None)


def text(node: IcalNode, key: str) -> str:
    value = node.get(key)
    if value is None:
        return ""
    return as_text(value)


def unescape(value: str) -> str:
    return str(vText.from_ical(value))


def title_case(s: str):
    return "".join(word[:1].upper() + word[1:].lower() for word in s.split())


def description_fields(description: str) -> dict[str, str]:
    # "Meeting point: Main hall" becomes {"MeetingPoint": "Main hall"}.
    fields = {}
    for line in description.split("\n"):
        if ":" not in line:
            continue
        name, value = line.split(":", 1)
        if key := title_case(name.strip()):
            fields[key] = value.strip()
    return fields


def parse_time(node: IcalNode, name: str, required: bool) -> dict[str, str | bool]:
    key = find_key(node, name)
    if key is None:
        if required:
            raise CalendarError(f"event has no {name}")
        return {"at": "", "timezone": "", "time": "", "all_day": False}

    raw = text(node, key)
    try:
        value = vDDDTypes.from_ical(raw)
    except ValueError as e:
        raise CalendarError(f"bad {name} value {raw!r}") from e

    tzid = re.search(r"TZID=([^;:]*)", key)
    if isinstance(value, datetime):
        time, all_day = value.strftime("%H:%M"), False
    else:
        time, all_day = "", True
    return {
        "at": raw,
        "timezone": tzid[1] if tzid else "",
        "time": time,
        "all_day": all_day,
    }


def parse_event(event: IcalNode):
    start = parse_time(event, "DTSTART", required=True)
    end = parse_time(event, "DTEND", required=False)
    description = unescape(text(event, "DESCRIPTION"))

    parsed = {
        "title": unescape(text(event, "SUMMARY")),
        "url": text(event, "URL"),
        "location": unescape(text(event, "LOCATION")),
        "description": description,
        "startAt": start["at"],
        "endAt": end["at"],
        "startTimezone": start["timezone"],
        "endTimezone": end["timezone"],
        "startTime": start["time"],
        "endTime": end["time"],
        "allDay": start["all_day"],
        "tag": text(event, "X-CARLTAG").strip(),
    }
    parsed.update(description_fields(description))
    return parsed


def calendar_view(tree: IcalNode):
    calendars = tree.get("VCALENDAR")
    if not calendars or not isinstance(calendars[0], dict):
        raise CalendarError("no VCALENDAR block")
    cal = calendars[0]

    nodes = [e for e in cal.get("VEVENT", []) if isinstance(e, dict)]
    if not nodes:
        raise CalendarError("calendar has no events")

    view = {"name": text(cal, "X-WR-CALNAME"), "template": "", "lang": "", "events": []}
    for node in nodes:
        if template := text(node, "X-TEMPLATE"):
            view["template"] = template
        if lang := text(node, "X-LANG"):
            view["lang"] = lang
        view["events"].append(parse_event(node))

    # Raw iCalendar date-times in one format sort chronologically.
    view["events"].sort(key=lambda x: x["startAt"])
    for i, event in enumerate(view["events"], 1):
        event["sequence"] = i
        if not event["tag"]:
            event["tag"] = f"event-{i}"
        # Templates address events by tag; core view keys win.
        view.setdefault(event["tag"], event)

    logger.debug("parsed %d events from %r", len(nodes), view["name"])
    return view
