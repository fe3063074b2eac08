"""
Unit tests for local storage of the filter selection.

Storage contract:
- Missing/invalid file -> None (no saved selection)
- Missing key -> None for that category ("keep everything")
- JSON schema: {"group_course_ids": [...], "option_ids": [...], "common_track_modules": [...]}
"""

import json
import tempfile
import unittest
from pathlib import Path

from celcat2ics.model import FilterSelection
from celcat2ics.storage import load_selection, save_selection


class TestStorage(unittest.TestCase):
    def test_load_missing_file_returns_none(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            self.assertIsNone(load_selection(Path(d) / "missing.json"))

    def test_load_corrupt_file_returns_none(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "selection.json"
            p.write_text("{not json", encoding="utf-8")
            self.assertIsNone(load_selection(p))
            p.write_text("[1, 2]", encoding="utf-8")
            self.assertIsNone(load_selection(p))

    def test_save_and_load_roundtrip(self) -> None:
        selection = FilterSelection(
            group_course_ids=frozenset({"1|||Droit social|||FLEURY, Thibaut"}),
            option_ids=frozenset(),
            common_track_modules=None,
        )
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "nested" / "selection.json"
            save_selection(selection, p)
            self.assertEqual(load_selection(p), selection)

            data = json.loads(p.read_text(encoding="utf-8"))
            self.assertEqual(data, {"group_course_ids": ["1|||Droit social|||FLEURY, Thibaut"], "option_ids": []})

    def test_non_string_ids_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "selection.json"
            p.write_text(json.dumps({"option_ids": ["A|||", 3, " ", None], "common_track_modules": "Other"}), encoding="utf-8")
            loaded = load_selection(p)
            assert loaded is not None
            self.assertEqual(loaded.option_ids, frozenset({"A|||"}))
            self.assertIsNone(loaded.common_track_modules)
            self.assertIsNone(loaded.group_course_ids)


if __name__ == "__main__":
    unittest.main()
