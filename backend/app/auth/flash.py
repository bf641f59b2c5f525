"""
YelpCamp Backend - Flash Notices
==================================

What:  One-shot "success"/"error" notices carried to the next page.
How:   Notices are queued under session["flash"] (a list of
       {"category", "message"} dicts) and drained by consume(), which every
       JSON page calls once. The session cookie is re-signed on each
       response by Starlette's SessionMiddleware.
"""

from typing import Dict, List, MutableMapping

SESSION_KEY = "flash"


class FlashSink:
    """Write side (success/error) and read side (consume) of the notice queue."""

    def __init__(self, session: MutableMapping):
        self._session = session

    def add(self, category: str, message: str) -> None:
        queued = list(self._session.get(SESSION_KEY) or [])
        queued.append({"category": category, "message": message})
        self._session[SESSION_KEY] = queued

    def success(self, message: str) -> None:
        self.add("success", message)

    def error(self, message: str) -> None:
        self.add("error", message)

    def peek(self) -> List[Dict[str, str]]:
        return list(self._session.get(SESSION_KEY) or [])

    def consume(self) -> Dict[str, List[str]]:
        """Drain the queue, grouped by category in arrival order."""
        grouped: Dict[str, List[str]] = {"success": [], "error": []}
        for entry in self._session.pop(SESSION_KEY, None) or []:
            grouped.setdefault(entry["category"], []).append(entry["message"])
        return grouped
