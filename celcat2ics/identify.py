"""
Student id (federationId) discovery.

The id is read from a saved CELCAT page and/or the page URL, trying the
most reliable sources first:

1. the navbar next to "Log Out" (<a class="logInOrOut">... <span class="small">- 2401012</span>)
2. any text on the page that looks like "- 2401012" (7 digits)
3. the URL: federationIds[]=..., then id=..., then /student/<digits>
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup


logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"\d+")
_SEVEN_DIGITS = re.compile(r"[-\s](\d{7})")

_URL_PATTERNS = [
    # query string or hash fragment, encoded or not
    re.compile(r"federationIds(?:%5B%5D|\[\])=([^&#]+)", re.IGNORECASE),
    re.compile(r"[?&]id=([^&#]+)"),
    re.compile(r"/student/(\d+)"),
]


def _from_navbar(soup: BeautifulSoup) -> Optional[str]:
    small = soup.select_one(".logInOrOut .small")
    if small is None:
        return None
    m = _DIGITS.search(small.get_text(strip=True))
    return m.group(0) if m else None


def _from_page_text(soup: BeautifulSoup) -> Optional[str]:
    for text in soup.stripped_strings:
        m = _SEVEN_DIGITS.search(f" {text}")
        if m:
            return m.group(1)
    return None


def _from_url(url: str) -> Optional[str]:
    for pattern in _URL_PATTERNS:
        m = pattern.search(url)
        if m:
            return m.group(1)
    return None


def extract_student_id(html: Optional[str] = None, url: Optional[str] = None) -> Optional[str]:
    """
    Return the student id, or None if no strategy found one.
    """
    if html:
        soup = BeautifulSoup(html, "html.parser")
        for source, strategy in (("navbar", _from_navbar), ("page text", _from_page_text)):
            found = strategy(soup)
            if found:
                logger.info("Found student id in %s: %s", source, found)
                return found

    if url:
        found = _from_url(url)
        if found:
            logger.info("Found student id in URL: %s", found)
            return found

    logger.info("Could not extract student id automatically")
    return None
