"""Passive API response capture.

Listens to page.on("response") and routes matching JSON responses through
caller-supplied parsers. Zero extra network requests: data comes from the
site's own JS-triggered API calls, which is usually faster and sturdier
than scraping the rendered DOM.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

log = logging.getLogger(__name__)

# Parser: response JSON body -> (key, data). Return ("", None) to skip.
Parser = Callable[[Any], tuple[str, Any]]


@dataclass
class WaitResult:
    """Result from ResponseTap.wait_for()."""
    data: Any = None
    timed_out: bool = False
    elapsed: float = 0.0


class ResponseTap:
    """Intercept API responses passively via Playwright's response event.

    *routes* maps URL substrings to parsers; the first matching pattern
    wins. Parsed data is stored by the key the parser returns. Data for a
    key that arrives twice is replaced, or extended when both are lists.
    """

    def __init__(self, page: Any, routes: dict[str, Parser], *, max_buffer: int = 100):
        self._page = page
        self._routes = dict(routes)
        self._max_buffer = max_buffer
        self._data: dict[str, Any] = {}
        self._timestamps: dict[str, float] = {}
        self._listening = False

    def start(self):
        """Register page.on('response') listener."""
        if self._listening:
            return self
        self._page.on("response", self._on_response)
        self._listening = True
        log.debug("ResponseTap started")
        return self

    def stop(self):
        """Remove listener."""
        if not self._listening:
            return
        try:
            self._page.remove_listener("response", self._on_response)
        except Exception:
            pass
        self._listening = False
        log.debug("ResponseTap stopped")

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc):
        self.stop()

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def keys(self) -> list[str]:
        return list(self._data)

    def clear(self, key: str | None = None):
        """Drop captured data for *key*, or everything."""
        if key is None:
            self._data.clear()
            self._timestamps.clear()
            return
        self._data.pop(key, None)
        self._timestamps.pop(key, None)

    def is_stale(self, key: str, max_age: float = 30.0) -> bool:
        """True if data for *key* was captured more than *max_age* seconds ago."""
        ts = self._timestamps.get(key, 0)
        return (time.monotonic() - ts) > max_age if ts else False

    def wait_for(self, key: str, *, timeout: float = 2.0, poll_interval: int = 100) -> WaitResult:
        """Poll for captured data, yielding to Playwright's event loop each tick.

        Uses page.wait_for_timeout() so _on_response callbacks fire;
        time.sleep() would block them.
        """
        start = time.monotonic()
        deadline = start + timeout

        while time.monotonic() < deadline:
            data = self.get(key)
            if data is not None:
                return WaitResult(data=data, timed_out=False, elapsed=time.monotonic() - start)
            remaining_ms = int((deadline - time.monotonic()) * 1000)
            try:
                self._page.wait_for_timeout(min(poll_interval, max(remaining_ms, 1)))
            except Exception:
                # Page may be closed/crashed; return best-effort data
                break

        return WaitResult(data=self.get(key), timed_out=True, elapsed=time.monotonic() - start)

    def _on_response(self, response):
        try:
            url = response.url
            for pattern, parser in self._routes.items():
                if pattern in url:
                    self._handle_response(response, parser)
                    return
        except Exception as e:
            log.debug(f"ResponseTap listener error: {e}")

    def _handle_response(self, response, parser: Parser):
        try:
            if response.status != 200:
                return
            body = response.json()
            key, parsed = parser(body)
            if not key or parsed is None:
                return

            existing = self._data.get(key)
            if isinstance(existing, list) and isinstance(parsed, list):
                parsed = existing + parsed
            elif key not in self._data and len(self._data) >= self._max_buffer:
                self._evict_oldest()
            self._data[key] = parsed
            self._timestamps[key] = time.monotonic()
            log.debug(f"ResponseTap: captured {key}")
        except Exception as e:
            log.debug(f"ResponseTap: parse error: {e}")

    def _evict_oldest(self):
        if not self._data:
            return
        oldest = min(self._data, key=lambda k: self._timestamps.get(k, 0))
        self._data.pop(oldest, None)
        self._timestamps.pop(oldest, None)
