"""
iCalendar (.ics) export.

We convert parsed CELCAT events into a calendar file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar (macOS / iOS)

Every event keeps the CELCAT event id as UID, so importing the same period
twice updates the existing entries instead of duplicating them.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from celcat2ics.errors import EncodingError
from celcat2ics.model import ParsedEvent, ParsedFields, RawEvent


logger = logging.getLogger(__name__)

PRODID = "-//Assas//Calendar Exporter//EN"
CALENDAR_NAME = "Assas Calendar"
CALENDAR_TIMEZONE = "Europe/Paris"

# ICS standard uses CRLF
CRLF = "\r\n"
MAX_LINE_LENGTH = 75

DEFAULT_SUMMARY = "Cours"

CATEGORY_ABBREVIATIONS: Dict[str, str] = {
    "Cours magistral": "CM",
    "Travaux dirigés": "TD",
    "Travaux pratiques": "TP",
    "Conférence": "Conf",
    "Séminaire": "Sém",
    "Examen": "Exam",
}

# One logical line per VEVENT property, already folded
EncodedRecord = List[str]


# ---------------------------------------------------------------------------
# Value formatting
# ---------------------------------------------------------------------------


def escape_text(text: Optional[str]) -> str:
    """
    Escape text for ICS TEXT values (RFC 5545, 3.3.11).

    The backslash must be escaped first, the other substitutions add new ones.
    CR and CRLF count as line breaks: a raw CR never reaches a content line.
    """
    if not text:
        return ""
    text = text.replace("\\", "\\\\")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.replace(";", "\\;").replace(",", "\\,").replace("\n", "\\n")


def fold_line(line: str) -> str:
    """
    Fold a content line longer than 75 characters.

    The first chunk keeps 75 characters, continuation chunks start with one
    space followed by at most 74 characters.
    """
    if len(line) <= MAX_LINE_LENGTH:
        return line

    chunks = [line[:MAX_LINE_LENGTH]]
    rest = line[MAX_LINE_LENGTH:]
    step = MAX_LINE_LENGTH - 1
    while rest:
        chunks.append(" " + rest[:step])
        rest = rest[step:]

    return CRLF.join(chunks)


def format_local_datetime(value: str) -> str:
    """
    Convert "YYYY-MM-DDTHH:MM:SS" to the ICS local form "YYYYMMDDTHHMMSS".

    No timezone conversion happens: CELCAT times are already wall-clock
    times of the university.
    """
    raw = (value or "").strip()
    for fmt in ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M"):
        try:
            dt = datetime.strptime(raw, fmt)
        except ValueError:
            continue
        return dt.strftime("%Y%m%dT%H%M%S")

    raise EncodingError(f"Invalid event timestamp: {value!r}")


def format_dtstamp(now: Optional[datetime] = None) -> str:
    """
    Current moment in UTC as "YYYYMMDDTHHMMSSZ".
    """
    moment = now if now is not None else datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y%m%dT%H%M%SZ")


def abbreviate_category(category: Optional[str]) -> str:
    if not category:
        return ""
    return CATEGORY_ABBREVIATIONS.get(category, category)


# ---------------------------------------------------------------------------
# Event content
# ---------------------------------------------------------------------------


def build_summary(event: RawEvent, parsed: ParsedFields) -> str:
    """
    "CM - Santé au travail", or just the abbreviation without module.
    """
    summary = abbreviate_category(event.category) or DEFAULT_SUMMARY
    if parsed.module:
        summary = f"{summary} - {parsed.module}"
    return summary


def build_description(event: RawEvent, parsed: ParsedFields) -> str:
    """
    Human-readable description block, one "Label: value" per line.
    """
    parts: List[str] = []

    if parsed.module:
        parts.append(f"Module: {parsed.module}")
    if parsed.staff:
        parts.append(f"Intervenant: {parsed.staff}")
    if parsed.group:
        parts.append(f"Groupe: {parsed.group}")
    if parsed.room:
        parts.append(f"Salle: {parsed.room}")
    if event.department:
        parts.append(f"Département: {event.department}")
    if event.modules:
        parts.append(f"Code: {', '.join(event.modules)}")

    return "\n".join(parts)


def build_location(event: RawEvent, parsed: ParsedFields) -> str:
    if parsed.room:
        return parsed.room
    if event.sites:
        return ", ".join(event.sites)
    return ""


def _text_line(name: str, value: str) -> str:
    return fold_line(f"{name}:{escape_text(value)}")


def encode_record(event: RawEvent, parsed: ParsedFields, now: Optional[datetime] = None) -> EncodedRecord:
    """
    Build one VEVENT block. Raises EncodingError for unusable events.
    """
    if not event.event_id:
        raise EncodingError("Event without id cannot be exported (UID is required)")

    dtstart = format_local_datetime(event.start)
    dtend = format_local_datetime(event.end)

    lines: EncodedRecord = []
    lines.append("BEGIN:VEVENT")
    lines.append(_text_line("UID", event.event_id))
    lines.append(f"DTSTAMP:{format_dtstamp(now)}")
    lines.append(f"DTSTART:{dtstart}")
    lines.append(f"DTEND:{dtend}")
    lines.append(_text_line("SUMMARY", build_summary(event, parsed)))
    lines.append(_text_line("DESCRIPTION", build_description(event, parsed)))

    location = build_location(event, parsed)
    if location:
        lines.append(_text_line("LOCATION", location))

    if event.category:
        lines.append(_text_line("CATEGORIES", event.category))

    lines.append("STATUS:CONFIRMED")
    lines.append("TRANSP:OPAQUE")
    lines.append("END:VEVENT")
    return lines


# ---------------------------------------------------------------------------
# Calendar document
# ---------------------------------------------------------------------------


def encode_calendar(
    events: Iterable[ParsedEvent],
    calendar_name: str = CALENDAR_NAME,
    calendar_timezone: str = CALENDAR_TIMEZONE,
    now: Optional[datetime] = None,
) -> str:
    """
    Build the complete .ics document, events in input order.

    The whole document fails if a single event cannot be encoded.
    """
    stamp = now if now is not None else datetime.now(timezone.utc)

    lines: List[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append(f"PRODID:{PRODID}")
    lines.append("CALSCALE:GREGORIAN")
    lines.append("METHOD:PUBLISH")
    lines.append(_text_line("X-WR-CALNAME", calendar_name))
    lines.append(f"X-WR-TIMEZONE:{calendar_timezone}")

    for event, parsed in events:
        try:
            lines.extend(encode_record(event, parsed, now=stamp))
        except EncodingError as exc:
            raise EncodingError(f"Event {event.event_id or '(no id)'}: {exc}") from exc

    lines.append("END:VCALENDAR")
    return CRLF.join(lines)


def default_filename(start_date: str, end_date: str) -> str:
    return f"assas-calendar-{start_date}-{end_date}.ics"


def write_calendar(content: str, out_path: str | Path) -> Path:
    """
    Write an encoded calendar to disk, creating parent directories.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    # write bytes so CRLF survives on every platform
    out.write_bytes(content.encode("utf-8"))
    return out


def export_events_to_ics(
    events: List[ParsedEvent],
    out_path: str | Path,
    calendar_name: str = CALENDAR_NAME,
) -> int:
    """
    Export events to an .ics file. Returns number of exported events.

    Nothing is written when encoding fails.
    """
    content = encode_calendar(events, calendar_name=calendar_name)
    out = write_calendar(content, out_path)
    logger.info("Wrote %d events to %s", len(events), out)
    return len(events)
