"""
Status messages shown to the user during an export.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

from rich.console import Console


SEVERITY_STYLES = {
    "info": "cyan",
    "success": "green",
    "error": "bold red",
}

MAX_NOTICES = 5


@dataclass(frozen=True)
class Notice:
    message: str
    severity: str


class Notifier:
    """
    Prints status messages and keeps the most recent ones.

    Only max_notices notices are kept, the oldest is dropped first.
    """

    def __init__(self, console: Optional[Console] = None, max_notices: int = MAX_NOTICES) -> None:
        self.console = console if console is not None else Console()
        self._notices: Deque[Notice] = deque(maxlen=max_notices)

    def notify(self, message: str, severity: str = "info") -> None:
        if severity not in SEVERITY_STYLES:
            severity = "info"
        self._notices.append(Notice(message, severity))
        self.console.print(message, style=SEVERITY_STYLES[severity], markup=False, highlight=False)

    @property
    def notices(self) -> List[Notice]:
        return list(self._notices)
