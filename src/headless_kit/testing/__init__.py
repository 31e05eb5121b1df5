"""testing: page objects and assertions for browser tests.

Fixtures live in ``headless_kit.testing.fixtures`` and are loaded as a
pytest plugin, not imported here.
"""
from .assertions import assert_no_console_errors  # noqa: F401
from .page_object import BasePage  # noqa: F401
