"""
Central data model definitions used across the project.

This module defines the canonical structure of calendar events so that:
- the parser, the filters and the ICS export all share the same field names
- raw provider data and parsed data stay clearly separated
- everything handed between modules is immutable once built
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Tuple


@dataclass(frozen=True)
class RawEvent:
    """
    One calendar occurrence as returned by the CELCAT API.

    start/end are local wall-clock timestamps ("YYYY-MM-DDTHH:MM:SS").
    """

    event_id: str
    start: str
    end: str
    category: Optional[str]
    description: str
    sites: List[str] = field(default_factory=list)
    department: Optional[str] = None
    modules: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ParsedFields:
    """
    Structured information extracted from one RawEvent description.

    Every field is None when it could not be detected (never "").
    """

    category: Optional[str] = None
    module: Optional[str] = None
    staff: Optional[str] = None
    group: Optional[str] = None
    room: Optional[str] = None


# One event together with its parsed description
ParsedEvent = Tuple[RawEvent, ParsedFields]


@dataclass(frozen=True)
class FilterSelection:
    """
    The buckets the user wants to keep.

    None means "keep everything" for that category.
    """

    group_course_ids: Optional[FrozenSet[str]] = None
    option_ids: Optional[FrozenSet[str]] = None
    common_track_modules: Optional[FrozenSet[str]] = None


@dataclass
class CourseBucket:
    id: str
    module: str
    staff: str
    label: str
    count: int


@dataclass
class GroupBucket:
    id: str
    label: str
    count: int
    courses: List[CourseBucket]


@dataclass
class OptionBucket:
    id: str
    module: str
    staff: str
    label: str
    count: int


@dataclass
class CommonTrackBucket:
    module: str
    count: int


@dataclass
class Buckets:
    """
    Everything the filter prompt needs to offer a choice to the user.
    """

    groups: List[GroupBucket]
    options: List[OptionBucket]
    common_track: List[CommonTrackBucket]
    common_track_count: int


@dataclass(frozen=True)
class DateRange:
    start_date: str
    end_date: str
