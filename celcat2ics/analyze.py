"""
Parsing diagnostics.

Runs the description parser over a whole export and reports what it could
not classify, to spot new description formats before they end up as empty
fields in the calendar.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import List

from celcat2ics.model import ParsedEvent
from celcat2ics.text import split_lines


# Descriptions with more lines than this are reported as "complex"
COMPLEX_LINE_COUNT = 4


@dataclass
class AnalysisReport:
    total: int = 0
    with_group: int = 0
    with_room: int = 0
    with_staff: int = 0
    empty_module: int = 0
    categories: Counter = field(default_factory=Counter)
    groups: Counter = field(default_factory=Counter)
    without_staff: List[ParsedEvent] = field(default_factory=list)
    unparsed_groups: List[ParsedEvent] = field(default_factory=list)
    complex_descriptions: List[ParsedEvent] = field(default_factory=list)

    @property
    def without_group(self) -> int:
        return self.total - self.with_group

    @property
    def issue_count(self) -> int:
        return self.empty_module + len(self.without_staff) + len(self.unparsed_groups)


def analyze_events(events: List[ParsedEvent]) -> AnalysisReport:
    report = AnalysisReport(total=len(events))

    for ev, parsed in events:
        report.categories[ev.category or "(empty)"] += 1

        if parsed.group:
            report.with_group += 1
            report.groups[parsed.group] += 1
        if parsed.room:
            report.with_room += 1
        if parsed.staff:
            report.with_staff += 1
        else:
            report.without_staff.append((ev, parsed))
        if not parsed.module:
            report.empty_module += 1

        # the text says there is a group but the parser found none
        if ("Groupe" in ev.description or "OPTION" in ev.description) and not parsed.group:
            report.unparsed_groups.append((ev, parsed))

        if len(split_lines(ev.description)) > COMPLEX_LINE_COUNT:
            report.complex_descriptions.append((ev, parsed))

    return report
