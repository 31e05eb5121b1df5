"""Run many browser tasks concurrently with retries and browser recycling.

Modeled on puppeteer-cluster's API (``task`` / ``queue`` / ``execute`` /
``idle`` / ``close``). Playwright's sync API is bound to the thread that
started it, so every worker thread owns its own Playwright instance and
browser; nothing Playwright-side is shared between threads. The
concurrency mode only decides how isolated consecutive tasks on one
worker are:

* ``page``: one context per worker, a new page per task (shared cookies)
* ``context``: a fresh incognito context per task
* ``browser``: a fresh browser per task (slowest, fully isolated)
"""
import itertools
import logging
import queue
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from playwright.sync_api import sync_playwright

from ..browser.session import launch_browser, new_context
from ..config import ClusterConfig, LaunchConfig
from ..engine.errors import ErrorKind, classify_error
from ..engine.failure_bundle import BundleVerbosity, capture_failure_bundle, save_failure_bundle
from ..engine.health import HealthMonitor

log = logging.getLogger(__name__)

TaskFn = Callable[[Any, Any], Any]


class ConcurrencyMode(Enum):
    PAGE = "page"
    CONTEXT = "context"
    BROWSER = "browser"


@dataclass
class _Job:
    task_id: str
    data: Any
    fn: TaskFn
    future: Future = field(default_factory=Future)
    attempts: int = 0


_STOP = object()


class _Worker:
    """One thread, one Playwright instance, (usually) one browser."""

    def __init__(self, cluster: "Cluster", index: int):
        self.cluster = cluster
        self.index = index
        self.health = HealthMonitor()
        self.tasks_served = 0
        self._pw = None
        self._browser = None
        self._context = None
        self.thread = threading.Thread(
            target=self._loop, name=f"cluster-worker-{index}", daemon=True,
        )

    # -- resources ---------------------------------------------------------

    def _playwright(self):
        if self._pw is None:
            self._pw = self.cluster._playwright_factory().start()
        return self._pw

    def _shared_browser(self):
        if self._browser is None:
            self._browser = self.cluster._launcher(self._playwright())
            log.debug("Worker %d launched browser", self.index)
        return self._browser

    def _open_page(self):
        """Return ``(page, cleanup)`` for one task according to the mode."""
        mode = self.cluster.mode
        factory = self.cluster._context_factory
        if mode is ConcurrencyMode.PAGE:
            if self._context is None:
                self._context = factory(self._shared_browser())
            page = self._context.new_page()
            return page, page.close
        if mode is ConcurrencyMode.CONTEXT:
            context = factory(self._shared_browser())
            return context.new_page(), context.close
        browser = self.cluster._launcher(self._playwright())
        try:
            page = factory(browser).new_page()
        except Exception:
            browser.close()
            raise
        return page, browser.close

    def _close_browser(self):
        for obj, what in ((self._context, "context"), (self._browser, "browser")):
            if obj is None:
                continue
            try:
                obj.close()
            except Exception as e:
                log.debug(f"Worker {self.index}: closing {what} failed: {e}")
        self._context = None
        self._browser = None

    def recycle(self, reason: str):
        log.info("Worker %d recycling browser (%s, %d tasks)", self.index, reason, self.tasks_served)
        if self.cluster._event_logger is not None:
            self.cluster._event_logger.log_browser_recycled(self.index, reason, self.tasks_served)
        self._close_browser()
        self.health.reset()
        self.tasks_served = 0

    def shutdown(self):
        self._close_browser()
        if self._pw is not None:
            try:
                self._pw.stop()
            except Exception as e:
                log.debug(f"Worker {self.index}: stopping playwright failed: {e}")
            self._pw = None

    # -- loop --------------------------------------------------------------

    def _loop(self):
        try:
            while True:
                job = self.cluster._queue.get()
                if job is _STOP:
                    break
                self._run(job)
        finally:
            self.shutdown()

    def _run(self, job: _Job):
        cluster = self.cluster
        if job.attempts == 0 and not job.future.set_running_or_notify_cancel():
            cluster._finish(job)
            return
        job.attempts += 1
        cluster._mark_running(+1)
        if cluster._event_logger is not None:
            cluster._event_logger.log_task_start(job.task_id, self.index, job.attempts, repr(job.data)[:200])

        start = time.monotonic()
        page = None
        cleanup = None
        result = None
        error = None
        kind = None
        retry = False
        try:
            page, cleanup = self._open_page()
            timeout_ms = cluster.config.task_timeout_ms
            if timeout_ms:
                page.set_default_timeout(timeout_ms)
                page.set_default_navigation_timeout(timeout_ms)
            result = job.fn(page, job.data)
        except Exception as e:
            error = e
            kind = self.health.record_error(e)
            retry = cluster._should_retry(job, kind)
            if not retry and page is not None:
                cluster._capture_failure(page, job, e, self.health.score)
        finally:
            if cleanup is not None:
                try:
                    cleanup()
                except Exception as e:
                    log.debug(f"Worker {self.index}: task cleanup failed: {e}")
            cluster._mark_running(-1)

        duration = time.monotonic() - start
        if error is None:
            self.health.record("ok")
            self._after_task(None)
            cluster._job_done(self, job, result, duration)
        else:
            self._after_task(kind)
            cluster._job_failed(self, job, error, kind, retry, duration)

    def _after_task(self, kind: ErrorKind | None):
        self.tasks_served += 1
        if self.cluster.mode is ConcurrencyMode.BROWSER:
            return
        if kind is ErrorKind.TARGET_CLOSED:
            self.recycle("target closed")
        elif self.health.should_stop:
            self.recycle(f"health {self.health.score:.2f}")
        elif self.cluster.config.recycle_after and self.tasks_served >= self.cluster.config.recycle_after:
            self.recycle("recycle_after")


class Cluster:
    """Pool of worker threads executing ``fn(page, data)`` tasks.

    *launcher* ``(playwright) -> browser``, *context_factory*
    ``(browser) -> context`` and *playwright_factory* (default
    ``sync_playwright``) can be swapped, e.g. to attach over CDP or to
    run without a real browser in tests.
    """

    def __init__(
        self,
        config: ClusterConfig | None = None,
        *,
        launch: LaunchConfig | None = None,
        stealth=None,
        launcher: Callable[[Any], Any] | None = None,
        context_factory: Callable[[Any], Any] | None = None,
        playwright_factory: Callable[[], Any] | None = None,
        event_logger=None,
        on_task_error: Callable[[Any, BaseException], None] | None = None,
        failure_bundle_verbosity: str = BundleVerbosity.OFF,
        failure_dir: str = "data/logs/failures",
    ):
        self.config = config or ClusterConfig()
        self.mode = ConcurrencyMode(self.config.concurrency)
        launch = launch or LaunchConfig()
        self._launcher = launcher or (lambda pw: launch_browser(pw, launch))
        self._context_factory = context_factory or (lambda browser: new_context(browser, launch, stealth))
        self._playwright_factory = playwright_factory or sync_playwright
        self._event_logger = event_logger
        self._on_task_error = on_task_error
        self._bundle_verbosity = failure_bundle_verbosity
        self._failure_dir = failure_dir

        self._queue: queue.Queue = queue.Queue()
        self._task_fn: TaskFn | None = None
        self._workers: list[_Worker] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._idle_cond = threading.Condition(self._lock)
        self._pending = 0
        self._running = 0
        self._counts = {"done": 0, "failed": 0, "retried": 0}
        self._closed = False
        self._started = time.monotonic()

    # -- public API --------------------------------------------------------

    def task(self, fn: TaskFn) -> TaskFn:
        """Set the default task function. Usable as a decorator."""
        self._task_fn = fn
        return fn

    def queue(self, data: Any = None, fn: TaskFn | None = None) -> Future:
        """Queue *data* for ``fn`` (or the default task). Returns a Future."""
        fn = fn or self._task_fn
        if fn is None:
            raise ValueError("no task function: pass fn or call task() first")
        with self._lock:
            if self._closed:
                raise RuntimeError("cluster is closed")
            self._pending += 1
        self._ensure_workers()
        job = _Job(task_id=f"task-{next(self._ids)}", data=data, fn=fn)
        self._queue.put(job)
        return job.future

    def execute(self, data: Any = None, fn: TaskFn | None = None, timeout: float | None = None) -> Any:
        """Queue and wait: returns the task's result or raises its error."""
        return self.queue(data, fn).result(timeout=timeout)

    def idle(self, timeout: float | None = None) -> bool:
        """Block until every queued task (including retries) has finished."""
        with self._idle_cond:
            return self._idle_cond.wait_for(lambda: self._pending == 0, timeout=timeout)

    def close(self, wait: bool = True) -> None:
        """Stop workers and close their browsers.

        With *wait*, queued tasks finish first; otherwise they are cancelled.
        """
        if wait:
            self.idle()
        with self._lock:
            if self._closed:
                return
            self._closed = True
        if not wait:
            self._cancel_queued()
        for _ in self._workers:
            self._queue.put(_STOP)
        for worker in self._workers:
            worker.thread.join()
        if self._event_logger is not None:
            self._event_logger.log_run_end(self.stats(), time.monotonic() - self._started)
        log.info("Cluster closed: %s", self.stats())

    def stats(self) -> dict:
        with self._lock:
            return {
                "queued": self._queue.qsize(),
                "running": self._running,
                "pending": self._pending,
                "done": self._counts["done"],
                "failed": self._counts["failed"],
                "retried": self._counts["retried"],
                "workers": len(self._workers),
                "mode": self.mode.value,
            }

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close(wait=exc_type is None)

    # -- internals ---------------------------------------------------------

    def _ensure_workers(self):
        with self._lock:
            missing = self.config.max_concurrency - len(self._workers)
            new = [_Worker(self, len(self._workers) + i) for i in range(missing)]
            self._workers.extend(new)
        for worker in new:
            worker.thread.start()

    def _cancel_queued(self):
        while True:
            try:
                job = self._queue.get_nowait()
            except queue.Empty:
                return
            if job is _STOP:
                continue
            # retries are already RUNNING and can no longer be cancelled
            if not job.future.cancel():
                job.future.set_exception(RuntimeError("cluster closed before retry"))
            self._finish(job)

    def _mark_running(self, delta: int):
        with self._lock:
            self._running += delta

    def _finish(self, job: _Job):
        with self._idle_cond:
            self._pending -= 1
            if self._pending == 0:
                self._idle_cond.notify_all()

    def _should_retry(self, job: _Job, kind: ErrorKind) -> bool:
        return (
            kind is not ErrorKind.FATAL
            and job.attempts <= self.config.retry_limit
            and not self._closed
        )

    def _capture_failure(self, page, job: _Job, error: BaseException, health_score: float):
        if self._bundle_verbosity == BundleVerbosity.OFF:
            return
        bundle = capture_failure_bundle(
            page, job.task_id, "task_failed",
            label="cluster", error=error,
            health_score=health_score,
            verbosity=self._bundle_verbosity,
            artifact_dir=self._failure_dir,
        )
        save_failure_bundle(bundle, self._failure_dir)

    def _job_done(self, worker: _Worker, job: _Job, result: Any, duration: float):
        with self._lock:
            self._counts["done"] += 1
        if self._event_logger is not None:
            self._event_logger.log_task_result(
                job.task_id, worker.index, job.attempts, "ok", duration,
                health_score=worker.health.score,
            )
        job.future.set_result(result)
        self._finish(job)

    def _job_failed(self, worker: _Worker, job: _Job, error: BaseException,
                    kind: ErrorKind, retry: bool, duration: float):
        status = "retry" if retry else "failed"
        if self._event_logger is not None:
            self._event_logger.log_task_result(
                job.task_id, worker.index, job.attempts, status, duration,
                error_kind=kind.value, error=str(error)[:500],
                health_score=worker.health.score,
            )
        if retry:
            with self._lock:
                self._counts["retried"] += 1
            log.warning("%s failed (%s, attempt %d), retrying: %s",
                        job.task_id, kind.value, job.attempts, error)
            self._requeue(job, error)
            return

        with self._lock:
            self._counts["failed"] += 1
        log.error("%s failed (%s) after %d attempt(s): %s",
                  job.task_id, kind.value, job.attempts, error)
        job.future.set_exception(error)
        if self._on_task_error is not None:
            try:
                self._on_task_error(job.data, error)
            except Exception as e:
                log.warning(f"on_task_error callback raised: {e}")
        self._finish(job)

    def _requeue(self, job: _Job, error: BaseException):
        delay = self.config.retry_delay
        if delay <= 0:
            self._queue.put(job)
            return

        def _put():
            if self._closed:
                job.future.set_exception(error)
                self._finish(job)
                return
            self._queue.put(job)

        timer = threading.Timer(delay, _put)
        timer.daemon = True
        timer.start()
