"""Graceful shutdown: close browsers when the process gets SIGINT/SIGTERM.

Without this, a Ctrl-C in the middle of a run leaves Chrome processes and
temporary profiles behind.
"""
import logging
import signal
import threading
from typing import Callable

log = logging.getLogger(__name__)


class GracefulShutdown:
    """Run registered closers once on signal or on context exit.

    Closers run in reverse registration order (last opened, first closed).
    A failing closer is logged and skipped so the rest still run.
    """

    def __init__(self, signals=(signal.SIGINT, signal.SIGTERM), exit_on_signal: bool = True):
        self._signals = tuple(signals)
        self._exit_on_signal = exit_on_signal
        self._closers: list[tuple[str, Callable[[], None]]] = []
        self._previous: dict[int, object] = {}
        self._lock = threading.Lock()
        self._closed = False
        self.requested = False
        self.received_signal: int | None = None

    def register(self, closer: Callable[[], None], name: str = "") -> Callable[[], None]:
        """Register a zero-arg callable to run on shutdown. Returns it unchanged."""
        self._closers.append((name or getattr(closer, "__name__", "closer"), closer))
        return closer

    def install(self) -> "GracefulShutdown":
        """Install signal handlers. Only valid from the main thread."""
        for sig in self._signals:
            self._previous[sig] = signal.getsignal(sig)
            signal.signal(sig, self._handle)
        return self

    def restore(self) -> None:
        """Put back the handlers that were active before ``install()``."""
        for sig, handler in self._previous.items():
            try:
                signal.signal(sig, handler)
            except (ValueError, TypeError) as e:
                log.debug(f"Could not restore handler for signal {sig}: {e}")
        self._previous.clear()

    def close_all(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            closers = list(reversed(self._closers))
        for name, closer in closers:
            try:
                closer()
            except Exception as e:
                log.warning(f"Shutdown closer {name} failed: {e}")
        log.debug("Shutdown complete (%d closers)", len(closers))

    def _handle(self, signum, frame):
        self.requested = True
        self.received_signal = signum
        log.info("Received signal %d, shutting down", signum)
        self.close_all()
        if self._exit_on_signal:
            raise SystemExit(128 + signum)

    def __enter__(self):
        return self.install()

    def __exit__(self, *exc):
        try:
            self.close_all()
        finally:
            self.restore()
