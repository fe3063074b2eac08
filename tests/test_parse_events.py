import json
import tempfile
import unittest
from pathlib import Path

from celcat2ics.parse import load_raw_events, main, parse_events, parse_raw_event


SAMPLE = {
    "id": "-1234567:89",
    "start": "2025-12-17T09:00:00",
    "end": "2025-12-17T10:30:00",
    "eventCategory": "Cours magistral",
    "description": "Cours magistral\r\n\r\n<br />\r\n\r\nSant&#233; au travail\r\n\r\n<br />\r\n\r\nGroupe 1\r\n",
    "sites": ["Assas", " ", None],
    "department": "GRH",
    "modules": ["M2GRH-101"],
}


class TestParseRawEvent(unittest.TestCase):
    def test_full_event(self) -> None:
        ev = parse_raw_event(SAMPLE)
        self.assertEqual(ev.event_id, "-1234567:89")
        self.assertEqual(ev.start, "2025-12-17T09:00:00")
        self.assertEqual(ev.category, "Cours magistral")
        self.assertEqual(ev.sites, ["Assas"])
        self.assertEqual(ev.department, "GRH")
        self.assertEqual(ev.modules, ["M2GRH-101"])

    def test_missing_optional_fields(self) -> None:
        ev = parse_raw_event({"id": 42, "start": "2025-12-17T09:00:00", "end": "2025-12-17T10:00:00"})
        self.assertEqual(ev.event_id, "42")
        self.assertIsNone(ev.category)
        self.assertEqual(ev.description, "")
        self.assertEqual(ev.sites, [])
        self.assertIsNone(ev.department)
        self.assertEqual(ev.modules, [])

    def test_null_values(self) -> None:
        ev = parse_raw_event({"id": None, "eventCategory": None, "sites": None, "department": "  "})
        self.assertEqual(ev.event_id, "")
        self.assertIsNone(ev.category)
        self.assertIsNone(ev.department)

    def test_not_an_object(self) -> None:
        with self.assertRaises(ValueError):
            parse_raw_event(["not", "a", "dict"])


class TestLoadAndParse(unittest.TestCase):
    def test_load_and_parse_keep_order(self) -> None:
        second = dict(SAMPLE, id="second")
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "events.json"
            p.write_text(json.dumps([SAMPLE, second]), encoding="utf-8")
            events = parse_events(load_raw_events(p))

        self.assertEqual([ev.event_id for ev, _ in events], ["-1234567:89", "second"])
        self.assertEqual(events[0][1].module, "Santé au travail")
        self.assertEqual(events[0][1].group, "1")

    def test_load_rejects_non_list(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "events.json"
            p.write_text(json.dumps({"events": []}), encoding="utf-8")
            with self.assertRaises(ValueError):
                load_raw_events(p)

    def test_main_writes_parsed_json(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            src = Path(d) / "events.json"
            src.write_text(json.dumps([SAMPLE]), encoding="utf-8")
            main([str(src), "--out-dir", d])

            data = json.loads((Path(d) / "parsed_events.json").read_text(encoding="utf-8"))
            self.assertEqual(len(data), 1)
            self.assertEqual(data[0]["id"], "-1234567:89")
            self.assertEqual(data[0]["module"], "Santé au travail")
            self.assertIsNone(data[0]["room"])


if __name__ == "__main__":
    unittest.main()
