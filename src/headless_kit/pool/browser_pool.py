"""Page pooling on a single browser.

Opening a page is cheap compared to launching a browser, but not free;
reusing a handful of warm pages is the usual trick for request-per-page
workloads. Like every sync Playwright object, a pool belongs to the
thread that created its browser.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass

from ..engine.errors import ErrorKind, PoolExhaustedError, classify_error

log = logging.getLogger(__name__)


@dataclass
class _Slot:
    page: object
    uses: int = 0
    broken: bool = False


class BrowserPool:
    """Lend out up to *max_pages* pages from one shared context.

    Pages are reset to ``about:blank`` when returned and retired after
    *max_uses* checkouts or when the task failed with a closed target.
    """

    def __init__(self, browser, *, max_pages: int = 4, max_uses: int = 50, context_factory=None):
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        self._browser = browser
        self._max_pages = max_pages
        self._max_uses = max_uses
        self._context_factory = context_factory or (lambda b: b.new_context())
        self._context = None
        self._idle: list[_Slot] = []
        self._busy: list[_Slot] = []
        self._closed = False

    @property
    def size(self) -> int:
        return len(self._idle) + len(self._busy)

    @property
    def in_use(self) -> int:
        return len(self._busy)

    def _checkout(self) -> _Slot:
        if self._closed:
            raise RuntimeError("pool is closed")
        if self._idle:
            slot = self._idle.pop()
        elif self.size < self._max_pages:
            if self._context is None:
                self._context = self._context_factory(self._browser)
            slot = _Slot(page=self._context.new_page())
            log.debug("Pool opened page %d/%d", self.size + 1, self._max_pages)
        else:
            raise PoolExhaustedError(message=f"all {self._max_pages} pages in use")
        self._busy.append(slot)
        return slot

    def _retire(self, slot: _Slot, why: str) -> None:
        try:
            slot.page.close()
        except Exception as e:
            log.debug(f"Closing retired page failed: {e}")
        log.debug("Pool retired page after %d uses (%s)", slot.uses, why)

    def _checkin(self, slot: _Slot) -> None:
        self._busy.remove(slot)
        slot.uses += 1
        if self._closed:
            self._retire(slot, "pool closed")
            return
        if slot.broken:
            self._retire(slot, "target closed")
            return
        if self._max_uses and slot.uses >= self._max_uses:
            self._retire(slot, "max uses")
            return
        try:
            if slot.page.is_closed():
                return
            slot.page.goto("about:blank")
        except Exception as e:
            self._retire(slot, f"reset failed: {e}")
            return
        self._idle.append(slot)

    @contextmanager
    def acquire(self):
        """Check out a page; it goes back to the pool when the block exits."""
        slot = self._checkout()
        try:
            yield slot.page
        except Exception as e:
            if classify_error(e) is ErrorKind.TARGET_CLOSED:
                slot.broken = True
            raise
        finally:
            self._checkin(slot)

    def close(self) -> None:
        self._closed = True
        for slot in self._idle:
            self._retire(slot, "pool closed")
        self._idle.clear()
        if self._context is not None:
            try:
                self._context.close()
            except Exception as e:
                log.warning(f"Failed to close pool context cleanly: {e}")
            self._context = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
