"""
Parsing (CELCAT JSON -> structured events).

- Reads the raw event list returned by GetCalendarData
- Extracts category / module / staff / group / room from each description
- Can write the result as JSON for inspection:
  - <out>/parsed_events.json

Description layout (one item per line, lines separated by "<br />"):
- Line 1: event category (e.g. "Cours magistral")
- Line 2: module name, or a staff name when the course has no module
- Line 3+: room ("Salle ..."), staff, group ("Groupe 1", "OPTION", ...)

Important rules (DO NOT CHANGE):
- Parsing never raises; unknown content gives None fields
- Rules for lines 3+ are checked in the order of TAIL_RULES, first match wins
"""

from __future__ import annotations

import argparse
import json
import logging
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from celcat2ics.model import ParsedEvent, ParsedFields, RawEvent
from celcat2ics.text import split_lines


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_UPPER = "A-ZÀ-ÖØ-Þ"
_LOWER = "a-zß-öø-ÿ"
_LETTERS = _UPPER + _LOWER

# "BLONDET, Pierre" or "BLONDET, Pierre, VOYNNET-FOURBOUL, Catherine"
STAFF_LASTNAME_FIRST = re.compile(rf"^([{_UPPER}][{_UPPER}\s-]+),\s*([{_LETTERS}][{_LOWER}\s-]+)")

# Same shape, but the whole line must be one "LASTNAME, Firstname"
STAFF_STRICT = re.compile(rf"^([{_UPPER}][{_UPPER}\s-]+),\s*([{_LETTERS}][{_LOWER}\s-]+)$")

# "Pierre Gaudibert", "Jean-Pierre Martin", "Pierre MAZEAUD" (2-3 capitalized words)
STAFF_SIMPLE_NAME = re.compile(rf"^[{_UPPER}][{_LETTERS}'-]*(?:\s+[{_UPPER}][{_LETTERS}'-]*){{1,2}}$")

ROOM_PATTERN = re.compile(r"^Salle\s+(.+)$", re.IGNORECASE)
GROUP_PATTERN = re.compile(r"^Groupe\s+(.+)$", re.IGNORECASE)

# "Pierre MAZEAUD - Groupe 2"
INVERTED_GROUP_PATTERN = re.compile(r"(.+?)\s*-\s*Groupe\s+(\d+)", re.IGNORECASE)

LETTERS_ONLY = re.compile(rf"^[{_LETTERS}\s-]+$")

_LEADING_DIGITS = re.compile(r"^(\d+)")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_staff_line(line: str) -> bool:
    return bool(STAFF_LASTNAME_FIRST.match(line) or STAFF_SIMPLE_NAME.match(line))


def _clean_module(line: str) -> str:
    """
    Remove repeated comma-separated parts ("Name, Name" -> "Name").

    The line is returned unchanged when no part repeats.
    """
    if "," not in line:
        return line

    parts = [p.strip() for p in line.split(",")]
    unique = list(dict.fromkeys(parts))
    if len(unique) < len(parts):
        return ", ".join(unique)
    return line


def clean_group(content: str) -> str:
    """
    Reduce a group label to its identifier.

    "1 - Pierre MAZEAUD" -> "1"
    "OPTION Management"  -> "OPTION"
    "COACHING"           -> "COACHING"
    """
    digits = _LEADING_DIGITS.match(content)
    if digits:
        return digits.group(1)
    if "OPTION" in content.upper():
        return "OPTION"
    return content.strip()


# ---------------------------------------------------------------------------
# Rules for line 3+ (CORE LOGIC)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TailRule:
    """
    One classification rule for the description tail.

    match returns the field values to set, or None if the line does not
    match. overwrite=False only fills fields that are still None.
    """

    name: str
    match: Callable[[str], Optional[Dict[str, str]]]
    overwrite: bool = False


def _match_room(line: str) -> Optional[Dict[str, str]]:
    m = ROOM_PATTERN.match(line)
    if not m:
        return None
    return {"room": m.group(1).strip()}


def _match_inverted_group(line: str) -> Optional[Dict[str, str]]:
    m = INVERTED_GROUP_PATTERN.search(line)
    if not m:
        return None
    return {"staff": m.group(1).strip(), "group": m.group(2)}


def _match_group(line: str) -> Optional[Dict[str, str]]:
    m = GROUP_PATTERN.match(line)
    if not m:
        return None
    return {"group": clean_group(m.group(1).strip())}


def _match_staff(line: str) -> Optional[Dict[str, str]]:
    if not STAFF_STRICT.match(line):
        return None
    return {"staff": line}


def _match_fallback(line: str) -> Optional[Dict[str, str]]:
    # Short or all-caps labels ("OPTION", "COACHING") are groups,
    # longer mixed-case text ("Pierre Gaugibert") is a staff name.
    if not LETTERS_ONLY.match(line):
        return None
    if line == line.upper() or len(line) < 15:
        return {"group": line}
    return {"staff": line}


TAIL_RULES: List[TailRule] = [
    TailRule("room", _match_room),
    TailRule("inverted_group", _match_inverted_group),
    TailRule("group", _match_group, overwrite=True),
    TailRule("staff", _match_staff),
    TailRule("fallback", _match_fallback),
]


def parse_description(raw: Optional[str]) -> ParsedFields:
    """
    Parse one CELCAT description into structured fields.
    """
    lines = split_lines(raw)
    if not lines:
        return ParsedFields()

    result: Dict[str, Optional[str]] = {
        "category": lines[0],
        "module": None,
        "staff": None,
        "group": None,
        "room": None,
    }

    # Line 2: module name, unless it looks like a staff name
    if len(lines) > 1:
        line2 = lines[1]
        if _is_staff_line(line2):
            result["staff"] = line2
        else:
            result["module"] = _clean_module(line2)

    # Lines 3+: first matching rule wins
    for line in lines[2:]:
        for rule in TAIL_RULES:
            values = rule.match(line)
            if values is None:
                continue
            for key, value in values.items():
                if rule.overwrite or result[key] is None:
                    result[key] = value
            break
        else:
            logger.debug("Unclassified description line: %r", line)

    return ParsedFields(**result)


# ---------------------------------------------------------------------------
# Raw event loading
# ---------------------------------------------------------------------------


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _str_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = [value]
    out: List[str] = []
    for x in value:
        text = _opt_str(x)
        if text:
            out.append(text)
    return out


def parse_raw_event(data: Dict[str, Any]) -> RawEvent:
    """
    Build a RawEvent from one item of the GetCalendarData JSON array.

    Timestamps are NOT validated here; the ICS export does that.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object for an event, got {type(data).__name__}")

    return RawEvent(
        event_id="" if data.get("id") is None else str(data.get("id")).strip(),
        start=str(data.get("start") or "").strip(),
        end=str(data.get("end") or "").strip(),
        category=_opt_str(data.get("eventCategory")),
        description=str(data.get("description") or ""),
        sites=_str_list(data.get("sites")),
        department=_opt_str(data.get("department")),
        modules=_str_list(data.get("modules")),
    )


def load_raw_events(path: str | Path) -> List[RawEvent]:
    """
    Read a GetCalendarData JSON dump from disk.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of events")
    return [parse_raw_event(item) for item in data]


def parse_events(events: Iterable[RawEvent]) -> List[ParsedEvent]:
    """
    Attach the parsed description to every event, keeping input order.
    """
    return [(ev, parse_description(ev.description)) for ev in events]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_file(in_path: Path, out_dir: Path) -> Path:
    """
    Parse a raw events JSON file and write parsed_events.json next to it.
    """
    events = parse_events(load_raw_events(in_path))

    out_path = out_dir.resolve()
    out_path.mkdir(parents=True, exist_ok=True)

    payload = [{"id": ev.event_id, "start": ev.start, "end": ev.end, **asdict(fields)} for ev, fields in events]

    out_file = out_path / "parsed_events.json"
    out_file.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    logger.info("Parsed %d events into %s", len(payload), out_file)
    return out_file


# ---------------------------------------------------------------------------
# CLI connection
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="celcat2ics.parse",
        description="Parse a CELCAT events JSON dump into structured JSON",
    )
    p.add_argument("events", type=Path, help="JSON file saved by 'celcat2ics fetch'")
    p.add_argument("--out-dir", type=Path, default=Path("."))
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    out_file = parse_file(args.events, args.out_dir)
    print(f"Parsing finished. JSON written to {out_file}")


if __name__ == "__main__":
    main()
