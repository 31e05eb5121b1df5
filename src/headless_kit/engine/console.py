"""Collect browser console output and uncaught page errors."""
import collections
import logging
import time
from typing import Any

log = logging.getLogger(__name__)


class ConsoleCollector:
    """Buffer ``console`` messages and ``pageerror`` events from a page.

    Bounded: the oldest entries drop once ``max_entries`` is reached.
    """

    def __init__(self, page: Any, max_entries: int = 200):
        self._page = page
        self._entries: collections.deque[dict] = collections.deque(maxlen=max_entries)
        self._listening = False

    def start(self):
        if self._listening:
            return self
        self._page.on("console", self._on_console)
        self._page.on("pageerror", self._on_page_error)
        self._listening = True
        return self

    def stop(self):
        if not self._listening:
            return
        for event, handler in (("console", self._on_console),
                               ("pageerror", self._on_page_error)):
            try:
                self._page.remove_listener(event, handler)
            except Exception:
                pass
        self._listening = False

    @property
    def entries(self) -> list[dict]:
        return list(self._entries)

    def errors(self) -> list[dict]:
        """Console errors plus uncaught page exceptions."""
        return [e for e in self._entries if e["type"] in ("error", "pageerror")]

    def clear(self):
        self._entries.clear()

    def _on_console(self, message):
        try:
            self._entries.append({
                "type": message.type,
                "text": message.text,
                "ts": time.time(),
            })
        except Exception as e:
            log.debug(f"ConsoleCollector: bad console message: {e}")

    def _on_page_error(self, error):
        self._entries.append({
            "type": "pageerror",
            "text": str(error),
            "ts": time.time(),
        })
