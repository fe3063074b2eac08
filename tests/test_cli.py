"""
Tests for CLI entry points.

Every command reads a temporary events JSON dump, so nothing touches the
network or real user data.
"""

import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from celcat2ics.cli import main


EVENTS = [
    {
        "id": "-1:1",
        "start": "2025-12-17T09:00:00",
        "end": "2025-12-17T10:30:00",
        "eventCategory": "Cours magistral",
        "description": "Cours magistral<br />Droit social<br />FLEURY, Thibaut<br />Groupe 1",
    },
    {
        "id": "-1:2",
        "start": "2025-12-18T09:00:00",
        "end": "2025-12-18T10:30:00",
        "eventCategory": "Cours magistral",
        "description": "Cours magistral<br />Droit social<br />MAYER, Paul<br />Groupe 2",
    },
    {
        "id": "-1:3",
        "start": "2025-12-19T14:00:00",
        "end": "2025-12-19T16:00:00",
        "eventCategory": "Conférence",
        "description": "Conférence<br />Santé au travail",
    },
]


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.events = self.dir / "events.json"
        self.events.write_text(json.dumps(EVENTS), encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, argv: list) -> tuple:
        buf = io.StringIO()
        with redirect_stdout(buf), self.assertRaises(SystemExit) as ctx:
            main(argv)
        return ctx.exception.code, buf.getvalue()

    def test_command_required(self) -> None:
        with redirect_stdout(io.StringIO()), self.assertRaises(SystemExit) as ctx:
            main([])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_missing_events_file(self) -> None:
        code, out = self._run(["parse", str(self.dir / "missing.json")])
        self.assertEqual(code, 1)
        self.assertIn("File not found", out)

    def test_invalid_events_file(self) -> None:
        self.events.write_text('{"id": 1}', encoding="utf-8")
        code, out = self._run(["buckets", str(self.events)])
        self.assertEqual(code, 1)
        self.assertIn("Invalid events file", out)

    def test_parse(self) -> None:
        code, out = self._run(["parse", str(self.events)])
        self.assertEqual(code, 0)
        self.assertIn("2025-12-17T09:00:00 | Cours magistral | Droit social | FLEURY, Thibaut | 1 | -", out)
        self.assertIn("3 events", out)

    def test_buckets(self) -> None:
        code, out = self._run(["buckets", str(self.events)])
        self.assertEqual(code, 0)
        self.assertIn("--group-course '1|||Droit social|||FLEURY, Thibaut'", out)
        self.assertIn("--common 'Santé au travail'", out)

    def test_analyze(self) -> None:
        code, out = self._run(["analyze", str(self.events)])
        self.assertEqual(code, 0)
        self.assertIn("Total events: 3", out)

    def test_export_with_filter(self) -> None:
        out_path = self.dir / "out"
        code, out = self._run(
            ["export", str(self.events), str(out_path), "--group-course", "1|||Droit social|||FLEURY, Thibaut"]
        )
        self.assertEqual(code, 0)
        self.assertIn("Exported 2 events", out)

        content = (self.dir / "out.ics").read_bytes().decode("utf-8")
        self.assertTrue(content.startswith("BEGIN:VCALENDAR\r\n"))
        self.assertIn("UID:-1:1", content)
        self.assertIn("UID:-1:3", content)
        self.assertNotIn("UID:-1:2", content)

    def test_export_with_saved_selection(self) -> None:
        selection = self.dir / "selection.json"
        selection.write_text(json.dumps({"group_course_ids": [], "common_track_modules": []}), encoding="utf-8")
        code, out = self._run(["export", str(self.events), str(self.dir / "out.ics"), "--selection", str(selection)])
        self.assertEqual(code, 0)
        self.assertIn("No selected events to export.", out)
        self.assertFalse((self.dir / "out.ics").exists())


if __name__ == "__main__":
    unittest.main()
