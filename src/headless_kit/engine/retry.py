"""Retry with exponential backoff for flaky browser operations."""
import functools
import logging
import random
import time
from typing import Any, Callable, Iterable

from .errors import ErrorKind, RETRYABLE_KINDS, classify_error

log = logging.getLogger(__name__)


def backoff_delay(
    attempt: int,
    base: float = 1.0,
    max_delay: float = 30.0,
    jitter: bool = True,
    rng: random.Random | None = None,
) -> float:
    """Delay before retry number *attempt* (0-based).

    ``base * 2**attempt`` capped at *max_delay*. With jitter the delay is
    drawn uniformly from the upper half of that range so parallel workers
    don't retry in lockstep.
    """
    delay = min(base * (2 ** min(max(attempt, 0), 62)), max_delay)
    if jitter and delay > 0:
        r = rng or random
        delay = r.uniform(delay / 2, delay)
    return delay


def retry_call(
    fn: Callable[..., Any],
    *args,
    attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter: bool = True,
    retry_on: Iterable[ErrorKind] = RETRYABLE_KINDS,
    on_retry: Callable[[int, BaseException, float], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs,
) -> Any:
    """Call ``fn(*args, **kwargs)``, retrying errors whose kind is in *retry_on*.

    Non-retryable errors propagate immediately. When every attempt fails,
    the last error is re-raised unchanged.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    retry_on = frozenset(retry_on)
    for attempt in range(attempts):
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            kind = classify_error(e)
            if kind not in retry_on or attempt == attempts - 1:
                raise
            delay = backoff_delay(attempt, base_delay, max_delay, jitter)
            log.warning(
                "%s failed (%s, attempt %d/%d), retrying in %.1fs: %s",
                getattr(fn, "__name__", "call"), kind.value,
                attempt + 1, attempts, delay, e,
            )
            if on_retry is not None:
                on_retry(attempt + 1, e, delay)
            sleep(delay)


def with_retry(config=None, **opts):
    """Decorator form of :func:`retry_call`.

    Accepts a ``RetryConfig`` and/or the keyword options of ``retry_call``;
    explicit keywords win over the config.
    """
    settings: dict[str, Any] = {}
    if config is not None:
        settings.update(
            attempts=config.attempts,
            base_delay=config.base_delay,
            max_delay=config.max_delay,
            jitter=config.jitter,
        )
    settings.update(opts)

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            return retry_call(fn, *args, **settings, **kwargs)
        return wrapper

    return decorator
