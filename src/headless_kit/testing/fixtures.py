"""pytest fixtures for tests that drive a real browser.

Enable in a project's ``conftest.py``::

    pytest_plugins = ["headless_kit.testing.fixtures"]

Settings come from ``HEADLESS_KIT_*`` environment variables. Set
``HEADLESS_KIT_ARTIFACT_DIR`` to keep a screenshot of every failing test.
"""
import os

import pytest

from ..browser.session import launch_browser, new_context
from ..capture.screenshot import capture_path
from ..config import Settings
from ..engine.console import ConsoleCollector

ARTIFACT_DIR_ENV = "HEADLESS_KIT_ARTIFACT_DIR"


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


@pytest.fixture(scope="session")
def kit_settings():
    return Settings()


@pytest.fixture(scope="session")
def kit_playwright():
    from playwright.sync_api import sync_playwright

    pw = sync_playwright().start()
    yield pw
    pw.stop()


@pytest.fixture(scope="session")
def kit_browser(kit_playwright, kit_settings):
    browser = launch_browser(kit_playwright, kit_settings.launch)
    yield browser
    browser.close()


@pytest.fixture
def kit_context(kit_browser, kit_settings):
    context = new_context(kit_browser, kit_settings.launch, kit_settings.stealth)
    yield context
    context.close()


@pytest.fixture
def kit_page(request, kit_context):
    """A fresh page; screenshotted on failure when an artifact dir is set."""
    page = kit_context.new_page()
    yield page
    artifact_dir = os.environ.get(ARTIFACT_DIR_ENV, "")
    report = getattr(request.node, "rep_call", None)
    if artifact_dir and report is not None and report.failed:
        try:
            page.screenshot(path=capture_path(artifact_dir, request.node.name), full_page=True)
        except Exception:
            pass
    page.close()


@pytest.fixture
def kit_console(kit_page):
    """ConsoleCollector attached to ``kit_page`` for the test's duration."""
    collector = ConsoleCollector(kit_page).start()
    yield collector
    collector.stop()
