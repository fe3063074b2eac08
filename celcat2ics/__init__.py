"""
celcat2ics – export a CELCAT student timetable to an .ics calendar file.
"""

from celcat2ics.export_ics import encode_calendar, encode_record
from celcat2ics.filters import apply_filter, derive_buckets
from celcat2ics.parse import parse_description
from celcat2ics.text import normalize

__all__ = [
    "apply_filter",
    "derive_buckets",
    "encode_calendar",
    "encode_record",
    "normalize",
    "parse_description",
]
