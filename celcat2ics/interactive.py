from __future__ import annotations

import re
from collections import Counter
from datetime import date
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from celcat2ics.export_ics import write_calendar
from celcat2ics.fetch import CelcatClient
from celcat2ics.filters import apply_filter, selection_from_buckets
from celcat2ics.identify import extract_student_id
from celcat2ics.model import Buckets, DateRange, FilterSelection, ParsedEvent
from celcat2ics.notify import Notifier
from celcat2ics.pipeline import ExportOutcome, run_export
from celcat2ics.storage import load_selection, save_selection


DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
CANCEL_WORDS = {"q", "quit", "cancel"}


def academic_year_range(today: Optional[date] = None) -> DateRange:
    """
    1 September -> 31 August of the current academic year.
    """
    today = today or date.today()
    year = today.year if today.month >= 9 else today.year - 1
    return DateRange(f"{year}-09-01", f"{year + 1}-08-31")


def _valid_date(text: str) -> bool:
    if not DATE_RE.match(text):
        return False
    try:
        date.fromisoformat(text)
    except ValueError:
        return False
    return True


def prompt_student_id(console: Console) -> Optional[str]:
    console.print(
        "Your student id could not be detected automatically.\n"
        "It is shown at the top right of the CELCAT page, next to 'Log Out' (e.g. - 2401012)."
    )
    answer = Prompt.ask("Student id [blank = cancel]", console=console, default="", show_default=False).strip()
    return answer or None


def prompt_date_range(console: Console, notifier: Notifier, today: Optional[date] = None) -> Optional[DateRange]:
    """
    Ask for start/end dates (YYYY-MM-DD). Returns None when cancelled or invalid.
    """
    default = academic_year_range(today)

    start = Prompt.ask("Start date (YYYY-MM-DD, q = cancel)", console=console, default=default.start_date).strip()
    if start.lower() in CANCEL_WORDS:
        return None

    end = Prompt.ask("End date (YYYY-MM-DD, q = cancel)", console=console, default=default.end_date).strip()
    if end.lower() in CANCEL_WORDS:
        return None

    if not (_valid_date(start) and _valid_date(end)):
        notifier.notify("Invalid date format, use YEAR-MONTH-DAY (e.g. 2025-09-01)", "error")
        return None

    return DateRange(start, end)


def _bucket_rows(buckets: Buckets) -> List[tuple[str, str, str, int]]:
    """
    (key, section, label, count) for every selectable bucket, in display order.
    """
    rows: List[tuple[str, str, str, int]] = []
    for g in buckets.groups:
        for c in g.courses:
            rows.append((c.id, g.label, c.label, c.count))
    for o in buckets.options:
        rows.append((o.id, "Option", o.label, o.count))
    for tc in buckets.common_track:
        rows.append((tc.module, "Common track", tc.module, tc.count))
    return rows


def print_buckets(console: Console, buckets: Buckets) -> None:
    table = Table(title="Courses found", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Section")
    table.add_column("Course")
    table.add_column("Events", justify="right")

    for i, (_, section, label, count) in enumerate(_bucket_rows(buckets), start=1):
        table.add_row(str(i), escape(section), escape(label), f"[yellow]{count}[/]")

    console.print(table)


def print_recap(console: Console, events: List[ParsedEvent]) -> None:
    by_month = Counter(ev.start[:7] for ev, _ in events)
    table = Table(title=f"Selected events: {len(events)}", box=box.SIMPLE)
    table.add_column("Month")
    table.add_column("Events", justify="right")
    for month in sorted(by_month):
        table.add_row(month, str(by_month[month]))
    console.print(table)


def prompt_filter_selection(
    console: Console,
    buckets: Buckets,
    events: List[ParsedEvent],
) -> Optional[FilterSelection]:
    """
    Show every bucket and let the user exclude some by number.
    """
    rows = _bucket_rows(buckets)
    print_buckets(console, buckets)

    while True:
        answer = Prompt.ask(
            "Numbers to exclude, comma separated [blank = keep all, q = cancel]",
            console=console,
            default="",
            show_default=False,
        ).strip()
        if answer.lower() in CANCEL_WORDS:
            return None

        picks = [p.strip() for p in answer.split(",") if p.strip()]
        if not all(p.isdigit() and 1 <= int(p) <= len(rows) for p in picks):
            console.print("Please enter numbers from the table, e.g. 2,5")
            continue

        excluded = [rows[int(p) - 1][0] for p in picks]
        selection = selection_from_buckets(buckets, exclude=excluded)

        print_recap(console, apply_filter(events, selection))
        if Confirm.ask("Export these events?", console=console, default=True):
            return selection


def run_interactive(
    client: CelcatClient,
    console: Console,
    out_dir: Path,
    student_id: Optional[str] = None,
    page_html: Optional[str] = None,
    page_url: Optional[str] = None,
    selection_path: Optional[Path] = None,
    use_saved_selection: bool = False,
) -> ExportOutcome:
    """
    Interactive export: prompts on the terminal, fetches live from CELCAT.
    """
    notifier = Notifier(console)

    def get_student_id() -> Optional[str]:
        found = student_id or extract_student_id(html=page_html, url=page_url)
        return found or prompt_student_id(console)

    def select_filter(buckets: Buckets, events: List[ParsedEvent]) -> Optional[FilterSelection]:
        if use_saved_selection:
            saved = load_selection(selection_path)
            if saved is not None:
                notifier.notify("Using saved course selection", "info")
                return saved

        selection = prompt_filter_selection(console, buckets, events)
        if selection is not None:
            path = save_selection(selection, selection_path)
            notifier.notify(f"Selection saved to {path}", "info")
        return selection

    def deliver(content: str, filename: str) -> Path:
        return write_calendar(content, out_dir / filename)

    outcome = run_export(
        get_student_id=get_student_id,
        prompt_date_range=lambda: prompt_date_range(console, notifier),
        fetch_events=client.fetch_calendar_data,
        select_filter=select_filter,
        deliver=deliver,
        notifier=notifier,
        fetch_name=client.fetch_student_name,
    )

    if outcome.ok and outcome.path is not None:
        console.print(f"Saved to: {outcome.path.resolve()}")
        console.print(
            "\nNext steps:\n"
            "- Google Calendar (desktop): Settings → Import & export → Import → choose this .ics file\n"
            "- iPhone/Android: send the .ics file to yourself and tap it to import\n"
            "- Importing again later updates the same events (no duplicates)"
        )

    return outcome
