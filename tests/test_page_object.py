"""Tests for BasePage."""
from unittest.mock import MagicMock

from headless_kit.testing.page_object import BasePage


class LoginPage(BasePage):
    path = "/login"
    ready_selector = "form#login"


def test_url_joins_base_and_path():
    assert LoginPage(MagicMock(), "https://app.test").url == "https://app.test/login"
    assert LoginPage(MagicMock(), "https://app.test/tenant/").url == "https://app.test/tenant/login"
    assert LoginPage(MagicMock()).url == "/login"


def test_open_navigates_and_waits():
    page = MagicMock()
    result = LoginPage(page, "https://app.test").open()
    assert isinstance(result, LoginPage)
    page.goto.assert_called_once_with("https://app.test/login", wait_until="domcontentloaded")
    page.wait_for_selector.assert_called_once_with("form#login", state="visible")


def test_wait_until_ready_without_selector_is_noop():
    page = MagicMock()
    BasePage(page).wait_until_ready()
    page.wait_for_selector.assert_not_called()


def test_wait_until_ready_timeout():
    page = MagicMock()
    LoginPage(page).wait_until_ready(timeout_ms=500)
    page.wait_for_selector.assert_called_once_with("form#login", state="visible", timeout=500)


def test_element_helpers_use_locator():
    page = MagicMock()
    page.locator.return_value.inner_text.return_value = "  Welcome  "
    page.locator.return_value.is_visible.return_value = True
    po = BasePage(page)

    po.fill("#user", "ann")
    po.click("button[type=submit]")
    assert po.text_of("h1") == "Welcome"
    assert po.is_visible("h1")
    page.locator.return_value.fill.assert_called_once_with("ann")
    page.locator.return_value.click.assert_called_once_with()
