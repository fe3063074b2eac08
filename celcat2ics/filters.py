"""
Group / option / common-track filtering.

Every parsed event falls into exactly one of three buckets:
- option:       group contains "OPTION" (an elective), keyed by module + staff
- group:        any other group value ("1", "2", "COACHING", ...), keyed by
                group + module + staff
- common track: no group at all, keyed by module

The user picks the buckets to keep; apply_filter() drops the rest.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List, Optional

from celcat2ics.model import (
    Buckets,
    CommonTrackBucket,
    CourseBucket,
    FilterSelection,
    GroupBucket,
    OptionBucket,
    ParsedEvent,
    ParsedFields,
)


ID_SEPARATOR = "|||"
UNTITLED_MODULE = "Untitled course"
OTHER_MODULE = "Other"


def is_option(parsed: ParsedFields) -> bool:
    return bool(parsed.group) and "OPTION" in parsed.group.upper()


def _module_staff(parsed: ParsedFields) -> tuple[str, str]:
    return parsed.module or UNTITLED_MODULE, parsed.staff or ""


def option_id(parsed: ParsedFields) -> str:
    module, staff = _module_staff(parsed)
    return f"{module}{ID_SEPARATOR}{staff}"


def group_course_id(parsed: ParsedFields) -> str:
    module, staff = _module_staff(parsed)
    return f"{parsed.group}{ID_SEPARATOR}{module}{ID_SEPARATOR}{staff}"


def common_track_module(parsed: ParsedFields) -> str:
    return parsed.module or OTHER_MODULE


def _course_label(module: str, staff: str) -> str:
    return f"{module} ({staff})" if staff else module


def derive_buckets(events: Iterable[ParsedEvent]) -> Buckets:
    """
    Collect the distinct groups, options and common-track modules.
    """
    # group id -> course id -> [module, staff, count]
    group_courses: Dict[str, Dict[str, list]] = {}
    group_counts: Counter[str] = Counter()
    options: Dict[str, list] = {}
    # dict keeps first-seen order, used as tie-break below
    common: Dict[str, int] = {}

    for _, parsed in events:
        module, staff = _module_staff(parsed)

        if is_option(parsed):
            entry = options.setdefault(option_id(parsed), [module, staff, 0])
            entry[2] += 1
        elif parsed.group:
            group_counts[parsed.group] += 1
            courses = group_courses.setdefault(parsed.group, {})
            entry = courses.setdefault(group_course_id(parsed), [module, staff, 0])
            entry[2] += 1
        else:
            name = common_track_module(parsed)
            common[name] = common.get(name, 0) + 1

    groups: List[GroupBucket] = []
    for gid in sorted(group_courses):
        courses = [
            CourseBucket(id=cid, module=m, staff=s, label=_course_label(m, s), count=n)
            for cid, (m, s, n) in group_courses[gid].items()
        ]
        courses.sort(key=lambda c: c.label)
        groups.append(GroupBucket(id=gid, label=f"Groupe {gid}", count=group_counts[gid], courses=courses))

    option_buckets = [
        OptionBucket(id=oid, module=m, staff=s, label=_course_label(m, s), count=n)
        for oid, (m, s, n) in options.items()
    ]
    option_buckets.sort(key=lambda o: o.label)

    # most frequent first; sorted() is stable so ties keep first-seen order
    common_track = [CommonTrackBucket(module=name, count=n) for name, n in common.items()]
    common_track.sort(key=lambda c: -c.count)

    return Buckets(
        groups=groups,
        options=option_buckets,
        common_track=common_track,
        common_track_count=sum(common.values()),
    )


def is_selected(parsed: ParsedFields, selection: FilterSelection) -> bool:
    if is_option(parsed):
        wanted = selection.option_ids
        key = option_id(parsed)
    elif parsed.group:
        wanted = selection.group_course_ids
        key = group_course_id(parsed)
    else:
        wanted = selection.common_track_modules
        key = common_track_module(parsed)

    return wanted is None or key in wanted


def apply_filter(events: Iterable[ParsedEvent], selection: Optional[FilterSelection]) -> List[ParsedEvent]:
    """
    Keep the events whose bucket is selected, in input order.
    """
    if selection is None:
        return list(events)
    return [(ev, parsed) for ev, parsed in events if is_selected(parsed, selection)]


def selection_from_buckets(buckets: Buckets, exclude: Iterable[str] = ()) -> FilterSelection:
    """
    Select every bucket except the ids / module names in exclude.
    """
    excluded = set(exclude)
    return FilterSelection(
        group_course_ids=frozenset(c.id for g in buckets.groups for c in g.courses if c.id not in excluded),
        option_ids=frozenset(o.id for o in buckets.options if o.id not in excluded),
        common_track_modules=frozenset(c.module for c in buckets.common_track if c.module not in excluded),
    )
