"""engine: error normalization, retries, health, shutdown and diagnostics."""
from .console import ConsoleCollector  # noqa: F401
from .errors import (  # noqa: F401
    AutomationError,
    BrowserTimeoutError,
    CaptchaError,
    DetachedElementError,
    DownloadTimeoutError,
    ElementNotFoundError,
    ErrorKind,
    NavigationError,
    PoolExhaustedError,
    RateLimitedError,
    RETRYABLE_KINDS,
    TargetClosedError,
    classify_error,
    wrap_error,
)
from .failure_bundle import FailureBundle, BundleVerbosity, capture_failure_bundle, save_failure_bundle  # noqa: F401
from .health import HealthMonitor  # noqa: F401
from .retry import backoff_delay, retry_call, with_retry  # noqa: F401
from .shutdown import GracefulShutdown  # noqa: F401
