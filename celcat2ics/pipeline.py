"""
Export pipeline: student id -> dates -> fetch -> parse -> filter -> .ics.

Every step that talks to the outside world (prompts, HTTP, disk) is passed
in as a callable, so the same pipeline runs from the interactive terminal
mode and from tests with plain lambdas.

The result is always an ExportOutcome; "cancelled" is a normal exit, not an
error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from celcat2ics.errors import EncodingError, FetchError
from celcat2ics.export_ics import default_filename, encode_calendar
from celcat2ics.filters import apply_filter, derive_buckets
from celcat2ics.model import Buckets, DateRange, FilterSelection, ParsedEvent, RawEvent
from celcat2ics.notify import Notifier
from celcat2ics.parse import parse_events


logger = logging.getLogger(__name__)

SUCCESS = "success"
CANCELLED = "cancelled"
EMPTY = "empty"
ERROR = "error"


@dataclass
class ExportOutcome:
    status: str
    message: str
    path: Optional[Path] = None
    count: int = 0

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS


def _cancelled(notifier: Notifier) -> ExportOutcome:
    notifier.notify("Export cancelled", "info")
    return ExportOutcome(CANCELLED, "Export cancelled")


def _failed(notifier: Notifier, message: str) -> ExportOutcome:
    notifier.notify(message, "error")
    return ExportOutcome(ERROR, message)


def run_export(
    get_student_id: Callable[[], Optional[str]],
    prompt_date_range: Callable[[], Optional[DateRange]],
    fetch_events: Callable[[str, str, str], List[RawEvent]],
    select_filter: Callable[[Buckets, List[ParsedEvent]], Optional[FilterSelection]],
    deliver: Callable[[str, str], Path],
    notifier: Notifier,
    fetch_name: Optional[Callable[[str], Optional[str]]] = None,
) -> ExportOutcome:
    """
    Run the whole export once. Nothing is written unless every step succeeds.
    """
    try:
        return _run(get_student_id, prompt_date_range, fetch_events, select_filter, deliver, notifier, fetch_name)
    except (KeyboardInterrupt, EOFError):
        return _cancelled(notifier)


def _run(
    get_student_id: Callable[[], Optional[str]],
    prompt_date_range: Callable[[], Optional[DateRange]],
    fetch_events: Callable[[str, str, str], List[RawEvent]],
    select_filter: Callable[[Buckets, List[ParsedEvent]], Optional[FilterSelection]],
    deliver: Callable[[str, str], Path],
    notifier: Notifier,
    fetch_name: Optional[Callable[[str], Optional[str]]],
) -> ExportOutcome:
    # Step 1: student id
    notifier.notify("Looking for your student id...", "info")
    student_id = (get_student_id() or "").strip()
    if not student_id:
        return _cancelled(notifier)
    logger.info("Using student id %s", student_id)

    greeting = ""
    if fetch_name is not None:
        greeting = fetch_name(student_id) or ""
        if greeting:
            notifier.notify(f"Hello {greeting}!", "success")

    # Step 2: date range
    date_range = prompt_date_range()
    if date_range is None:
        return _cancelled(notifier)

    # Step 3: fetch
    notifier.notify("Fetching your timetable...", "info")
    try:
        raw_events = fetch_events(student_id, date_range.start_date, date_range.end_date)
    except FetchError as exc:
        logger.error("Fetch failed (status=%s): %s", exc.status, exc.message)
        return _failed(notifier, exc.message)

    if not raw_events:
        notifier.notify("No events found for this period", "error")
        return ExportOutcome(EMPTY, "No events found for this period")

    # Step 4: parse + filter
    notifier.notify(f"Analysing {len(raw_events)} events...", "info")
    events = parse_events(raw_events)

    selection = select_filter(derive_buckets(events), events)
    if selection is None:
        return _cancelled(notifier)

    selected = apply_filter(events, selection)
    logger.info("Keeping %d of %d events", len(selected), len(events))
    if not selected:
        notifier.notify("No events selected", "error")
        return ExportOutcome(EMPTY, "No events selected")

    # Step 5: encode + deliver
    notifier.notify("Generating the calendar file...", "info")
    try:
        content = encode_calendar(selected)
    except EncodingError as exc:
        return _failed(notifier, f"Error: {exc}")

    filename = default_filename(date_range.start_date, date_range.end_date)
    try:
        path = deliver(content, filename)
    except OSError as exc:
        return _failed(notifier, f"Could not write {filename}: {exc}")

    count = len(selected)
    message = f"{count} events exported" if not greeting else f"Done {greeting}! {count} events exported"
    notifier.notify(message, "success")
    return ExportOutcome(SUCCESS, message, path=path, count=count)
