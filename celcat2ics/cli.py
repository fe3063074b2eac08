"""
CLI (Command Line Interface).

This module provides terminal commands, e.g.:

    celcat2ics fetch events.json --student-id 2401012 --start 2025-09-01 --end 2026-08-31
    celcat2ics parse events.json
    celcat2ics buckets events.json
    celcat2ics analyze events.json
    celcat2ics export events.json out.ics --option "Management|||MAYER, Paul"
    celcat2ics interactive

Note:
- The interactive mode (prompts + live fetch) lives in celcat2ics/interactive.py
- These commands print plain text (no rich formatting) so they can be piped
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from collections import Counter
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from celcat2ics.analyze import analyze_events
from celcat2ics.errors import EncodingError, FetchError
from celcat2ics.export_ics import CALENDAR_NAME, export_events_to_ics
from celcat2ics.fetch import BASE_URL, CelcatClient, save_raw_events
from celcat2ics.filters import apply_filter, derive_buckets
from celcat2ics.identify import extract_student_id
from celcat2ics.interactive import academic_year_range, run_interactive
from celcat2ics.model import FilterSelection, ParsedEvent
from celcat2ics.parse import load_raw_events, parse_events
from celcat2ics.pipeline import CANCELLED, EMPTY
from celcat2ics.storage import load_selection


COOKIE_ENV = "CELCAT_COOKIE"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_events(path: Path) -> Optional[List[ParsedEvent]]:
    """
    Load and parse an events JSON dump, None (after printing why) on failure.
    """
    try:
        return parse_events(load_raw_events(path))
    except FileNotFoundError:
        print(f"File not found: {path}")
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Could not read {path}: {exc}")
    except (json.JSONDecodeError, ValueError) as exc:
        print(f"Invalid events file {path}: {exc}")
    return None


def _read_page(path: Optional[Path]) -> Optional[str]:
    if path is None:
        return None
    return path.read_text(encoding="utf-8", errors="replace")


def _client(args: argparse.Namespace) -> CelcatClient:
    return CelcatClient(base_url=args.base_url, cookie=args.cookie)


def _cmd_fetch(args: argparse.Namespace) -> int:
    """
    Download the raw timetable JSON for a date range.
    """
    student_id = args.student_id or extract_student_id(html=_read_page(args.page_html), url=args.url)
    if not student_id:
        print("Please provide --student-id (could not detect it from --page-html / --url).")
        return 1

    default = academic_year_range()
    start = args.start or default.start_date
    end = args.end or default.end_date

    try:
        events = _client(args).fetch_raw_calendar_data(student_id, start, end)
    except FetchError as exc:
        print(exc.message)
        return 1

    if not events:
        print("No events found for this period.")
        return 0

    out = save_raw_events(events, args.out)
    print(f"Fetched {len(events)} events to: {out}")
    return 0


def _cmd_parse(args: argparse.Namespace) -> int:
    """
    Print the parsed fields of every event.
    """
    events = _load_events(args.events)
    if events is None:
        return 1

    for ev, parsed in events:
        bits = [ev.start, parsed.category, parsed.module, parsed.staff, parsed.group, parsed.room]
        print(" | ".join(b if b else "-" for b in bits))

    print(f"{len(events)} events")
    return 0


def _cmd_buckets(args: argparse.Namespace) -> int:
    """
    Print group / option / common-track ids usable with 'export'.
    """
    events = _load_events(args.events)
    if events is None:
        return 1

    buckets = derive_buckets(events)

    for g in buckets.groups:
        print(f"{g.label} ({g.count} events)")
        for c in g.courses:
            print(f"  --group-course '{c.id}'  ({c.count})")

    if buckets.options:
        print("Options")
        for o in buckets.options:
            print(f"  --option '{o.id}'  ({o.count})")

    if buckets.common_track:
        print(f"Common track ({buckets.common_track_count} events)")
        for tc in buckets.common_track:
            print(f"  --common '{tc.module}'  ({tc.count})")

    return 0


def _cmd_analyze(args: argparse.Namespace) -> int:
    """
    Report parsing statistics and potential issues.
    """
    events = _load_events(args.events)
    if events is None:
        return 1
    if not events:
        print("No events.")
        return 0

    report = analyze_events(events)

    def pct(n: int) -> str:
        return f"{n:>4} ({round(n / report.total * 100)}%)"

    print(f"Total events: {report.total}")
    print(f"With group:   {pct(report.with_group)}")
    print(f"Without:      {pct(report.without_group)}")
    print(f"With room:    {pct(report.with_room)}")
    print(f"With staff:   {pct(report.with_staff)}")
    print(f"Empty module: {report.empty_module:>4}")

    def histogram(title: str, counts: Counter) -> None:
        print(f"\n{title}")
        for key, n in counts.most_common():
            print(f"  {key:<30} {pct(n)}")

    histogram("Categories", report.categories)
    if report.groups:
        histogram("Groups", report.groups)

    print(f"\nEvents without staff:          {len(report.without_staff)}")
    print(f"Unparsed groups:               {len(report.unparsed_groups)}")
    for ev, _ in report.unparsed_groups[:3]:
        print(f"  - {ev.event_id}: {' | '.join(ev.description.splitlines())[:80]}")
    print(f"Complex descriptions (>4 lines): {len(report.complex_descriptions)}")

    if report.issue_count:
        print(f"\n{report.issue_count} potential issues detected.")
    else:
        print("\nNo critical issues detected.")
    return 0


def _selection_from_args(args: argparse.Namespace) -> Optional[FilterSelection]:
    """
    Saved selection file, overridden per category by --group-course/--option/--common.
    """
    base = load_selection(args.selection) if args.selection else None
    if base is None:
        base = FilterSelection()

    def pick(flag: Optional[List[str]], current):
        return frozenset(flag) if flag is not None else current

    selection = FilterSelection(
        group_course_ids=pick(args.group_course, base.group_course_ids),
        option_ids=pick(args.option, base.option_ids),
        common_track_modules=pick(args.common, base.common_track_modules),
    )
    if selection == FilterSelection():
        return None
    return selection


def _cmd_export(args: argparse.Namespace) -> int:
    """
    Export an events JSON dump into an iCalendar (.ics) file.
    """
    events = _load_events(args.events)
    if events is None:
        return 1

    selected = apply_filter(events, _selection_from_args(args))
    if not selected:
        print("No selected events to export.")
        return 0

    out_path = Path(args.out)
    if out_path.suffix.lower() != ".ics":
        out_path = out_path.with_suffix(".ics")

    try:
        n = export_events_to_ics(selected, out_path, calendar_name=args.calendar_name)
    except EncodingError as exc:
        print(f"Export failed: {exc}")
        return 1

    print(f"Exported {n} events to: {out_path}")
    return 0


def _cmd_interactive(args: argparse.Namespace) -> int:
    outcome = run_interactive(
        client=_client(args),
        console=Console(),
        out_dir=args.out_dir,
        student_id=args.student_id,
        page_html=_read_page(args.page_html),
        page_url=args.url,
        selection_path=args.selection,
        use_saved_selection=args.use_saved,
    )
    if outcome.ok or outcome.status in (CANCELLED, EMPTY):
        return 0
    return 1


def _add_connection_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--student-id", type=str, default=None, help="CELCAT federation id (e.g. 2401012)")
    p.add_argument("--page-html", type=Path, default=None, help="Saved CELCAT page to read the student id from")
    p.add_argument("--url", type=str, default=None, help="CELCAT page URL to read the student id from")
    p.add_argument(
        "--cookie",
        type=str,
        default=os.environ.get(COOKIE_ENV),
        help=f"CELCAT session Cookie header (default: ${COOKIE_ENV})",
    )
    p.add_argument("--base-url", type=str, default=BASE_URL, help="CELCAT calendar base URL")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="celcat2ics", description="CELCAT timetable to .ics exporter")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs")
    sub = parser.add_subparsers(dest="command", required=True)

    p_fetch = sub.add_parser("fetch", help="Download the raw timetable JSON")
    p_fetch.add_argument("out", type=Path, help="Output JSON path (e.g. events.json)")
    p_fetch.add_argument("--start", type=str, default=None, help="Start date YYYY-MM-DD (default: academic year)")
    p_fetch.add_argument("--end", type=str, default=None, help="End date YYYY-MM-DD (default: academic year)")
    _add_connection_args(p_fetch)

    p_parse = sub.add_parser("parse", help="Show parsed description fields")
    p_parse.add_argument("events", type=Path, help="Events JSON file")

    p_buckets = sub.add_parser("buckets", help="List groups, options and common-track modules")
    p_buckets.add_argument("events", type=Path, help="Events JSON file")

    p_analyze = sub.add_parser("analyze", help="Report parsing statistics and issues")
    p_analyze.add_argument("events", type=Path, help="Events JSON file")

    p_export = sub.add_parser("export", help="Export events to .ics")
    p_export.add_argument("events", type=Path, help="Events JSON file")
    p_export.add_argument("out", type=str, help="Output file path (e.g. out.ics)")
    p_export.add_argument("--group-course", action="append", default=None, help="Keep this group course id")
    p_export.add_argument("--option", action="append", default=None, help="Keep this option id")
    p_export.add_argument("--common", action="append", default=None, help="Keep this common-track module")
    p_export.add_argument("--selection", type=Path, default=None, help="Saved selection JSON file")
    p_export.add_argument("--calendar-name", type=str, default=CALENDAR_NAME, help="X-WR-CALNAME value")

    p_inter = sub.add_parser("interactive", help="Prompt for dates and courses, fetch and export")
    _add_connection_args(p_inter)
    p_inter.add_argument("--out-dir", type=Path, default=Path.home() / "Downloads", help="Where to save the .ics")
    p_inter.add_argument("--selection", type=Path, default=None, help="Selection JSON file to save / reuse")
    p_inter.add_argument("--use-saved", action="store_true", help="Reuse the saved selection without asking")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.command == "fetch":
        raise SystemExit(_cmd_fetch(args))
    if args.command == "parse":
        raise SystemExit(_cmd_parse(args))
    if args.command == "buckets":
        raise SystemExit(_cmd_buckets(args))
    if args.command == "analyze":
        raise SystemExit(_cmd_analyze(args))
    if args.command == "export":
        raise SystemExit(_cmd_export(args))
    if args.command == "interactive":
        raise SystemExit(_cmd_interactive(args))

    raise SystemExit(2)
