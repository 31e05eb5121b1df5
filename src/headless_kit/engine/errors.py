"""Normalized error kinds for browser automation.

Playwright raises a handful of generic exception types whose meaning lives
in the message text. ``classify_error`` maps them onto a small set of kinds
so retry, health and cluster logic can act on them uniformly.
"""
from enum import Enum

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError


class ErrorKind(Enum):
    """Normalized error kinds every automation failure is mapped into."""
    TIMEOUT = "timeout"               # waited too long for selector/navigation
    DETACHED = "detached"             # element left the DOM mid-action
    TARGET_CLOSED = "target_closed"   # page/context/browser gone
    NAVIGATION = "navigation"         # net::ERR_*, aborted or failed goto
    RATE_LIMITED = "rate_limited"     # HTTP 429 or equivalent
    CAPTCHA = "captcha"               # bot detection wall
    FATAL = "fatal"                   # unrecoverable, bail out
    UNKNOWN = "unknown"


class AutomationError(Exception):
    """Exception carrying a normalized ErrorKind."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str = "", kind: ErrorKind | None = None):
        if kind is not None:
            self.kind = kind
        super().__init__(message or self.kind.value)


class BrowserTimeoutError(AutomationError):
    kind = ErrorKind.TIMEOUT


class DetachedElementError(AutomationError):
    kind = ErrorKind.DETACHED


class TargetClosedError(AutomationError):
    kind = ErrorKind.TARGET_CLOSED


class NavigationError(AutomationError):
    kind = ErrorKind.NAVIGATION


class RateLimitedError(AutomationError):
    kind = ErrorKind.RATE_LIMITED


class CaptchaError(AutomationError):
    kind = ErrorKind.CAPTCHA


class ElementNotFoundError(AutomationError):
    """Selector matched nothing (or nothing with a bounding box)."""
    kind = ErrorKind.DETACHED


class DownloadTimeoutError(AutomationError):
    kind = ErrorKind.TIMEOUT


class PoolExhaustedError(AutomationError):
    """Every pooled page is already checked out."""
    kind = ErrorKind.FATAL


RETRYABLE_KINDS = frozenset({
    ErrorKind.TIMEOUT,
    ErrorKind.DETACHED,
    ErrorKind.NAVIGATION,
    ErrorKind.RATE_LIMITED,
})

_KIND_TO_CLASS = {
    ErrorKind.TIMEOUT: BrowserTimeoutError,
    ErrorKind.DETACHED: DetachedElementError,
    ErrorKind.TARGET_CLOSED: TargetClosedError,
    ErrorKind.NAVIGATION: NavigationError,
    ErrorKind.RATE_LIMITED: RateLimitedError,
    ErrorKind.CAPTCHA: CaptchaError,
}

# Checked in order; first match wins.
_MESSAGE_RULES = (
    (ErrorKind.TARGET_CLOSED, ("has been closed", "target closed", "browser has disconnected")),
    (ErrorKind.NAVIGATION, ("net::err_", "navigation failed", "navigating frame was detached",
                            "ns_error_", "navigation interrupted")),
    (ErrorKind.DETACHED, ("not attached to the dom", "element is detached",
                          "execution context was destroyed", "node is detached")),
    (ErrorKind.RATE_LIMITED, ("429", "too many requests")),
)


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception onto an ErrorKind."""
    if isinstance(exc, AutomationError):
        return exc.kind
    if isinstance(exc, PlaywrightTimeoutError):
        return ErrorKind.TIMEOUT
    if isinstance(exc, PlaywrightError):
        message = str(exc).lower()
        for kind, needles in _MESSAGE_RULES:
            if any(n in message for n in needles):
                return kind
        return ErrorKind.UNKNOWN
    if isinstance(exc, TimeoutError):
        return ErrorKind.TIMEOUT
    return ErrorKind.UNKNOWN


def wrap_error(exc: BaseException) -> AutomationError:
    """Return *exc* as a typed AutomationError, chaining the original."""
    if isinstance(exc, AutomationError):
        return exc
    kind = classify_error(exc)
    cls = _KIND_TO_CLASS.get(kind, AutomationError)
    wrapped = cls(str(exc), kind=kind)
    wrapped.__cause__ = exc
    return wrapped
