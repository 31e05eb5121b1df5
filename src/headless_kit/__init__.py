"""headless-kit: headless browser automation recipes on Playwright.

Provides browser setup and stealth primitives, PDF/screenshot capture,
form helpers, human-like input, normalized errors with retry/backoff,
page pooling, a worker cluster, and test helpers. ``recipes`` maps
topics to the functions that implement them.
"""
from .config import Settings  # noqa: F401
from .engine.errors import AutomationError, ErrorKind, classify_error  # noqa: F401
from .engine.retry import retry_call, with_retry  # noqa: F401
from .recipes import RECIPES, find_recipes, get_recipe  # noqa: F401

__version__ = "0.1.0"
