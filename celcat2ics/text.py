"""
Text normalization for CELCAT description fields.

CELCAT sends descriptions as small HTML fragments:

    "Cours magistral\\r\\n\\r\\n<br />\\r\\n\\r\\nSant&#233; au travail\\r\\n"

normalize() turns this into plain text with one "\\n" per line break and the
few HTML entities CELCAT actually uses decoded. It is NOT a general HTML
decoder: unknown entities are left untouched.
"""

from __future__ import annotations

import re
from typing import Dict, Optional


# <br>, <br/>, <br />, <BR> ...
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)

ENTITIES: Dict[str, str] = {
    "&#233;": "é",
    "&#232;": "è",
    "&#234;": "ê",
    "&#224;": "à",
    "&#226;": "â",
    "&#231;": "ç",
    "&#244;": "ô",
    "&#249;": "ù",
    "&#251;": "û",
    "&#239;": "ï",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
}

# Single pass over the text: a decoded "&" never starts a new entity,
# so "&amp;lt;" stays the literal text "&lt;" and is not decoded again to "<"
_ENTITY_RE = re.compile("|".join(re.escape(e) for e in ENTITIES))


def decode_entities(text: Optional[str]) -> str:
    """
    Decode the fixed CELCAT entity table, leave everything else as-is.
    """
    if not text:
        return ""
    return _ENTITY_RE.sub(lambda m: ENTITIES[m.group(0)], text)


def normalize(raw: Optional[str]) -> str:
    """
    Normalize line breaks and decode entities. Never raises.
    """
    if not raw:
        return ""

    text = _BR_RE.sub("\n", raw)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return decode_entities(text)


def split_lines(raw: Optional[str]) -> list[str]:
    """
    Normalize and return the non-empty, stripped lines.
    """
    lines = [line.strip() for line in normalize(raw).split("\n")]
    return [line for line in lines if line]
