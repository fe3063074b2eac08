from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from celcat2ics.errors import FetchError
from celcat2ics.model import RawEvent
from celcat2ics.parse import parse_raw_event


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# URLs & request parameters
# ---------------------------------------------------------------------------

BASE_URL = "https://celcat-web.u-paris2.fr/calendar"
CALENDAR_DATA_PATH = "/Home/GetCalendarData"
DISPLAY_NAMES_PATH = "/Home/LoadDisplayNames"

# Resource type of a student timetable
RES_TYPE = "104"
CAL_VIEW = "agendaDay"

DEFAULT_TIMEOUT = 30


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class CelcatClient:
    """
    Minimal client for the two CELCAT endpoints we need.

    CELCAT authenticates with the browser session cookie, pass it as the
    raw "Cookie" header value (e.g. copied from the browser dev tools).
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        cookie: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        if cookie:
            self.session.headers["Cookie"] = cookie

    def _post(self, path: str, form: Dict[str, str]) -> Any:
        url = self.base_url + path
        try:
            resp = self.session.post(url, data=form, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchError(None, f"API error: {exc}") from exc

        if not resp.ok:
            raise FetchError(resp.status_code, f"API error: {resp.status_code} {resp.reason}")

        try:
            return resp.json()
        except ValueError as exc:
            raise FetchError(resp.status_code, f"API error: invalid JSON from {url}") from exc

    def fetch_raw_calendar_data(self, student_id: str, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        """
        Load the timetable of one student between two YYYY-MM-DD dates.

        Returns the JSON array exactly as CELCAT sends it.
        """
        form = {
            "start": start_date,
            "end": end_date,
            "resType": RES_TYPE,
            "calView": CAL_VIEW,
            "federationIds[]": student_id,
        }
        logger.info("Fetching calendar data for %s (%s -> %s)", student_id, start_date, end_date)

        data = self._post(CALENDAR_DATA_PATH, form)
        if data is None:
            return []
        if not isinstance(data, list):
            raise FetchError(None, "API error: expected a list of events")

        logger.info("Fetched %d events", len(data))
        return data

    def fetch_calendar_data(self, student_id: str, start_date: str, end_date: str) -> List[RawEvent]:
        data = self.fetch_raw_calendar_data(student_id, start_date, end_date)
        try:
            return [parse_raw_event(item) for item in data]
        except ValueError as exc:
            raise FetchError(None, f"API error: unexpected event shape ({exc})") from exc

    def fetch_student_name(self, student_id: str) -> Optional[str]:
        """
        Best effort: "PERIN,ELEONORE" -> "Eleonore", None on any failure.
        """
        form = {"federationIds[]": student_id, "resType": RES_TYPE}
        try:
            data = self._post(DISPLAY_NAMES_PATH, form)
        except FetchError as exc:
            logger.debug("Could not fetch student name: %s", exc)
            return None

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return None

        display_name = str(data[0].get("displayName") or "")
        parts = display_name.split(",")
        if len(parts) < 2 or not parts[1].strip():
            return None

        return parts[1].strip().capitalize()


# ---------------------------------------------------------------------------
# Raw dump
# ---------------------------------------------------------------------------


def save_raw_events(events: List[Dict[str, Any]], out_path: str | Path) -> Path:
    """
    Cache the raw API answer so it can be parsed / exported offline.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(events, ensure_ascii=False, indent=2), encoding="utf-8")
    return out
