"""Tests for BrowserPool: browser/context/pages are MagicMocks."""
from unittest.mock import MagicMock

import pytest

from headless_kit.engine.errors import PoolExhaustedError, TargetClosedError
from headless_kit.pool.browser_pool import BrowserPool


def _browser():
    browser = MagicMock()
    context = browser.new_context.return_value
    context.new_page.side_effect = lambda: _page()
    return browser, context


def _page():
    page = MagicMock()
    page.is_closed.return_value = False
    return page


def test_rejects_empty_pool():
    with pytest.raises(ValueError):
        BrowserPool(MagicMock(), max_pages=0)


def test_pages_are_reused_and_reset():
    browser, context = _browser()
    pool = BrowserPool(browser, max_pages=2)

    with pool.acquire() as first:
        assert pool.in_use == 1
    first.goto.assert_called_with("about:blank")
    with pool.acquire() as second:
        pass

    assert second is first
    assert pool.size == 1
    assert context.new_page.call_count == 1
    browser.new_context.assert_called_once_with()


def test_exhausted_pool_raises():
    browser, _ = _browser()
    pool = BrowserPool(browser, max_pages=1)
    with pool.acquire():
        with pytest.raises(PoolExhaustedError):
            with pool.acquire():
                pass


def test_page_retired_after_max_uses():
    browser, context = _browser()
    pool = BrowserPool(browser, max_pages=1, max_uses=2)
    for _ in range(2):
        with pool.acquire() as page:
            pass
    page.close.assert_called_once_with()
    assert pool.size == 0
    with pool.acquire():
        pass
    assert context.new_page.call_count == 2


def test_target_closed_retires_page():
    browser, _ = _browser()
    pool = BrowserPool(browser)
    with pytest.raises(TargetClosedError):
        with pool.acquire() as page:
            raise TargetClosedError("Target page, context or browser has been closed")
    page.close.assert_called_once_with()
    assert pool.size == 0


def test_other_errors_keep_page():
    browser, _ = _browser()
    pool = BrowserPool(browser)
    with pytest.raises(ValueError):
        with pool.acquire():
            raise ValueError("bad data")
    assert pool.size == 1
    assert pool.in_use == 0


def test_failed_reset_retires_page():
    browser, _ = _browser()
    pool = BrowserPool(browser)
    with pool.acquire() as page:
        page.goto.side_effect = RuntimeError("crashed")
    page.close.assert_called_once_with()
    assert pool.size == 0


def test_closed_page_is_dropped():
    browser, _ = _browser()
    pool = BrowserPool(browser)
    with pool.acquire() as page:
        page.is_closed.return_value = True
    page.goto.assert_not_called()
    assert pool.size == 0


def test_custom_context_factory_and_close():
    context = MagicMock()
    context.new_page.side_effect = lambda: _page()
    factory = MagicMock(return_value=context)
    browser = MagicMock()

    with BrowserPool(browser, context_factory=factory) as pool:
        with pool.acquire() as page:
            pass
    factory.assert_called_once_with(browser)
    page.close.assert_called_once_with()
    context.close.assert_called_once_with()
    with pytest.raises(RuntimeError):
        with pool.acquire():
            pass
