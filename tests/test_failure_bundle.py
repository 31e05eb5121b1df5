"""Tests for failure bundle capture and save."""
import json
import os
import tempfile
from unittest.mock import MagicMock, PropertyMock

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from headless_kit.engine.failure_bundle import (
    BundleVerbosity,
    FailureBundle,
    capture_failure_bundle,
    save_failure_bundle,
)


def _make_page(url="https://example.com/checkout", title="Checkout"):
    page = MagicMock()
    type(page).url = PropertyMock(return_value=url)
    page.title.return_value = title
    page.evaluate.return_value = "Page body text content here"
    page.content.return_value = "<html><body>hi</body></html>"
    return page


def _make_console(errors=()):
    console = MagicMock()
    console.errors.return_value = list(errors)
    return console


def _make_tap(keys=()):
    tap = MagicMock()
    tap.keys.return_value = list(keys)
    return tap


def test_capture_minimal():
    """MINIMAL verbosity captures error, console and tap state only."""
    page = _make_page()
    console = _make_console([{"type": "error", "text": "Uncaught TypeError", "ts": 1.0}])
    tap = _make_tap(["/api/cart"])

    bundle = capture_failure_bundle(
        page, "task1", "exception",
        label="checkout",
        error=PlaywrightTimeoutError("Timeout 30000ms exceeded."),
        console=console,
        tap=tap,
        verbosity=BundleVerbosity.MINIMAL,
    )

    assert bundle.task_id == "task1"
    assert bundle.reason == "exception"
    assert bundle.label == "checkout"
    assert bundle.error_kind == "timeout"
    assert "30000ms" in bundle.error_message
    assert bundle.console_errors[0]["text"] == "Uncaught TypeError"
    assert bundle.tap_keys == ["/api/cart"]
    # MINIMAL should NOT touch the page
    page.title.assert_not_called()
    page.evaluate.assert_not_called()


def test_console_errors_are_capped():
    errors = [{"type": "error", "text": str(i), "ts": 0.0} for i in range(50)]
    bundle = capture_failure_bundle(
        _make_page(), "t", "exception",
        console=_make_console(errors), verbosity=BundleVerbosity.MINIMAL,
    )
    assert len(bundle.console_errors) == 20
    assert bundle.console_errors[-1]["text"] == "49"


def test_capture_standard():
    """STANDARD verbosity captures page URL, title, and text snippet."""
    bundle = capture_failure_bundle(
        _make_page(), "task2", "exception",
        verbosity=BundleVerbosity.STANDARD,
    )

    assert bundle.page_url == "https://example.com/checkout"
    assert bundle.page_title == "Checkout"
    assert bundle.page_text_snippet == "Page body text content here"
    assert bundle.screenshot_path == ""


def test_capture_full_with_artifacts():
    """FULL verbosity takes a screenshot and saves HTML."""
    page = _make_page()

    with tempfile.TemporaryDirectory() as tmpdir:
        bundle = capture_failure_bundle(
            page, "task3", "exception",
            verbosity=BundleVerbosity.FULL,
            artifact_dir=tmpdir,
        )
        page.screenshot.assert_called_once()
        assert bundle.screenshot_path.endswith(".png")
        assert bundle.html_path.endswith(".html")
        with open(bundle.html_path, encoding="utf-8") as f:
            assert "hi" in f.read()


def test_capture_never_raises():
    """capture_failure_bundle should never raise, even with a broken page."""
    page = MagicMock()
    type(page).url = PropertyMock(side_effect=RuntimeError("detached"))
    page.title.side_effect = RuntimeError("detached")
    page.evaluate.side_effect = RuntimeError("detached")
    page.screenshot.side_effect = RuntimeError("detached")
    page.content.side_effect = RuntimeError("detached")

    console = MagicMock()
    console.errors.side_effect = RuntimeError("broken")
    tap = MagicMock()
    tap.keys.side_effect = RuntimeError("broken")

    with tempfile.TemporaryDirectory() as tmpdir:
        bundle = capture_failure_bundle(
            page, "broken_task", "exception",
            console=console, tap=tap,
            verbosity=BundleVerbosity.FULL, artifact_dir=tmpdir,
        )
    assert bundle.task_id == "broken_task"
    assert bundle.page_url == ""
    assert bundle.screenshot_path == ""
    assert bundle.html_path == ""


def test_save_and_load():
    """save_failure_bundle writes valid JSON under the label directory."""
    bundle = FailureBundle(
        task_id="save_test",
        reason="exception",
        label="invoices",
        error_kind="navigation",
        tap_keys=["/api/a"],
        extras={"attempts": 2},
    )

    with tempfile.TemporaryDirectory() as tmpdir:
        path = save_failure_bundle(bundle, base_dir=tmpdir)
        assert path.endswith("_save_test.json")
        assert os.path.dirname(path) == os.path.join(tmpdir, "invoices")

        with open(path) as f:
            data = json.load(f)

        assert data["task_id"] == "save_test"
        assert data["error_kind"] == "navigation"
        assert data["tap_keys"] == ["/api/a"]
        assert data["extras"] == {"attempts": 2}
        assert "timestamp" in data


def test_save_unlabeled():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = save_failure_bundle(FailureBundle(task_id="x", reason="r"), base_dir=tmpdir)
        assert os.path.basename(os.path.dirname(path)) == "unlabeled"


def test_to_dict():
    bundle = FailureBundle(task_id="dict_test", reason="timeout")
    d = bundle.to_dict()
    assert isinstance(d, dict)
    assert d["task_id"] == "dict_test"
    assert d["health_score"] == -1.0
    assert "phase_timings" in d
    assert "extras" in d
