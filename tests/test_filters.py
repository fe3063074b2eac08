"""
Unit tests for group / option / common-track bucketing and filtering.

Bucket rules:
- group containing "OPTION" -> option, id "module|||staff"
- any other group           -> group course, id "group|||module|||staff"
- no group                  -> common track, keyed by module ("Other" if none)
"""

import unittest

from celcat2ics.filters import (
    apply_filter,
    derive_buckets,
    group_course_id,
    is_option,
    option_id,
    selection_from_buckets,
)
from celcat2ics.model import FilterSelection, ParsedFields, RawEvent


def _ev(event_id: str, **fields) -> tuple:
    raw = RawEvent(
        event_id=event_id,
        start="2025-12-17T09:00:00",
        end="2025-12-17T10:00:00",
        category="Cours magistral",
        description="",
    )
    return raw, ParsedFields(**fields)


EVENTS = [
    _ev("e1", module="Droit social", staff="FLEURY, Thibaut", group="1"),
    _ev("e2", module="Droit social", staff="FLEURY, Thibaut", group="1"),
    _ev("e3", module="Droit social", staff="MAYER, Paul", group="2"),
    _ev("e4", module="Management interculturel", staff="MAYER, Paul", group="OPTION"),
    _ev("e5", module="Paie", group="Option paie"),
    _ev("e6", module="Santé au travail"),
    _ev("e7", module="Santé au travail"),
    _ev("e8"),
    _ev("e9", module="Anglais", group="1"),
]


def _ids(events: list) -> list:
    return [ev.event_id for ev, _ in events]


class TestBucketIds(unittest.TestCase):
    def test_is_option_case_insensitive(self) -> None:
        self.assertTrue(is_option(ParsedFields(group="OPTION")))
        self.assertTrue(is_option(ParsedFields(group="option RH")))
        self.assertFalse(is_option(ParsedFields(group="1")))
        self.assertFalse(is_option(ParsedFields()))

    def test_ids_with_missing_parts(self) -> None:
        self.assertEqual(option_id(ParsedFields(group="OPTION")), "Untitled course|||")
        self.assertEqual(group_course_id(ParsedFields(group="2", staff="X")), "2|||Untitled course|||X")


class TestDeriveBuckets(unittest.TestCase):
    def test_groups(self) -> None:
        buckets = derive_buckets(EVENTS)
        self.assertEqual([g.id for g in buckets.groups], ["1", "2"])

        g1 = buckets.groups[0]
        self.assertEqual(g1.label, "Groupe 1")
        self.assertEqual(g1.count, 3)
        self.assertEqual(
            [(c.label, c.count) for c in g1.courses],
            [("Anglais", 1), ("Droit social (FLEURY, Thibaut)", 2)],
        )
        self.assertEqual(g1.courses[1].id, "1|||Droit social|||FLEURY, Thibaut")

    def test_options(self) -> None:
        buckets = derive_buckets(EVENTS)
        self.assertEqual(
            [(o.id, o.label, o.count) for o in buckets.options],
            [
                ("Management interculturel|||MAYER, Paul", "Management interculturel (MAYER, Paul)", 1),
                ("Paie|||", "Paie", 1),
            ],
        )

    def test_common_track_most_frequent_first(self) -> None:
        buckets = derive_buckets(EVENTS)
        self.assertEqual(
            [(c.module, c.count) for c in buckets.common_track],
            [("Santé au travail", 2), ("Other", 1)],
        )
        self.assertEqual(buckets.common_track_count, 3)

    def test_common_track_ties_keep_first_seen_order(self) -> None:
        events = [_ev("a", module="Zeta"), _ev("b", module="Alpha"), _ev("c", module="Zeta"), _ev("d", module="Alpha")]
        buckets = derive_buckets(events)
        self.assertEqual([c.module for c in buckets.common_track], ["Zeta", "Alpha"])

    def test_empty(self) -> None:
        buckets = derive_buckets([])
        self.assertEqual((buckets.groups, buckets.options, buckets.common_track), ([], [], []))
        self.assertEqual(buckets.common_track_count, 0)


class TestApplyFilter(unittest.TestCase):
    def test_no_selection_keeps_everything(self) -> None:
        self.assertEqual(_ids(apply_filter(EVENTS, None)), _ids(EVENTS))
        self.assertEqual(_ids(apply_filter(EVENTS, FilterSelection())), _ids(EVENTS))

    def test_select_per_category(self) -> None:
        selection = FilterSelection(
            group_course_ids=frozenset({"1|||Droit social|||FLEURY, Thibaut"}),
            option_ids=frozenset({"Paie|||"}),
            common_track_modules=frozenset({"Other"}),
        )
        self.assertEqual(_ids(apply_filter(EVENTS, selection)), ["e1", "e2", "e5", "e8"])

    def test_absent_category_keeps_all_of_it(self) -> None:
        selection = FilterSelection(option_ids=frozenset())
        self.assertEqual(_ids(apply_filter(EVENTS, selection)), ["e1", "e2", "e3", "e6", "e7", "e8", "e9"])

    def test_selection_from_buckets(self) -> None:
        buckets = derive_buckets(EVENTS)
        selection = selection_from_buckets(
            buckets, exclude=["2|||Droit social|||MAYER, Paul", "Paie|||", "Santé au travail"]
        )
        self.assertEqual(_ids(apply_filter(EVENTS, selection)), ["e1", "e2", "e4", "e8", "e9"])

    def test_selection_from_buckets_without_exclusions_keeps_all(self) -> None:
        buckets = derive_buckets(EVENTS)
        self.assertEqual(_ids(apply_filter(EVENTS, selection_from_buckets(buckets))), _ids(EVENTS))


if __name__ == "__main__":
    unittest.main()
