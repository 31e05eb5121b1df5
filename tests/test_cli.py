"""Tests for the click CLI: browser commands run against a stubbed page."""
import os
import tempfile
from unittest.mock import MagicMock

from click.testing import CliRunner

from headless_kit import cli


def test_topics_lists_all():
    result = CliRunner().invoke(cli.main, ["topics", "--no-entry-points"])
    assert result.exit_code == 0
    assert "stealth" in result.output
    assert "headless_kit." not in result.output


def test_topics_query_with_entry_points():
    result = CliRunner().invoke(cli.main, ["topics", "pdf"])
    assert result.exit_code == 0
    assert "PDF generation" in result.output
    assert "headless_kit.capture.pdf:render_pdf" in result.output


def test_topics_no_match():
    result = CliRunner().invoke(cli.main, ["topics", "xyzzy"])
    assert result.exit_code == 1


def test_bad_log_level_is_usage_error():
    result = CliRunner().invoke(cli.main, ["--log-level", "LOUD", "topics"])
    assert result.exit_code == 2
    assert "--log-level" in result.output
    assert "unknown log level" in result.output
    assert not isinstance(result.exception, ValueError)


def test_bad_config_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "bad.yaml")
        with open(path, "w") as f:
            f.write("- not\n- a mapping\n")
        result = CliRunner().invoke(cli.main, ["--config", path, "topics"])
    assert result.exit_code == 1


def _stub_page(monkeypatch):
    page = MagicMock()
    page.pdf.return_value = b"%PDF"
    page.screenshot.return_value = b"\x89PNG"
    seen = {}

    def fake_run(settings, fn):
        seen["settings"] = settings
        return fn(page)

    monkeypatch.setattr(cli, "_run_on_page", fake_run)
    return page, seen


def test_pdf_command(monkeypatch):
    page, _ = _stub_page(monkeypatch)
    result = CliRunner().invoke(cli.main, [
        "pdf", "https://example.com", "-o", "out.pdf", "--format", "Letter", "--landscape",
    ])
    assert result.exit_code == 0, result.output
    assert "Wrote out.pdf (4 bytes)" in result.output
    kwargs = page.pdf.call_args.kwargs
    assert kwargs["format"] == "Letter"
    assert kwargs["landscape"] is True


def test_pdf_bad_format(monkeypatch):
    _stub_page(monkeypatch)
    result = CliRunner().invoke(cli.main, ["pdf", "https://example.com", "-o", "x.pdf", "--format", "B9"])
    assert result.exit_code == 2


def test_screenshot_command_headed(monkeypatch):
    page, seen = _stub_page(monkeypatch)
    result = CliRunner().invoke(cli.main, [
        "--headed", "screenshot", "https://example.com", "-o", "shot.png", "--viewport",
    ])
    assert result.exit_code == 0, result.output
    assert seen["settings"].launch.headless is False
    page.goto.assert_called_once_with("https://example.com", wait_until="networkidle")
    assert page.screenshot.call_args.kwargs["full_page"] is False


def test_screenshot_selector(monkeypatch):
    page, _ = _stub_page(monkeypatch)
    page.wait_for_selector.return_value.bounding_box.return_value = {
        "x": 10, "y": 10, "width": 100, "height": 100,
    }
    result = CliRunner().invoke(cli.main, [
        "screenshot", "https://example.com", "-o", "el.png", "--selector", "main",
    ])
    assert result.exit_code == 0, result.output
    assert "clip" in page.screenshot.call_args.kwargs
