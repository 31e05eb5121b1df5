"""Tests for PDF and screenshot capture: page is a MagicMock."""
import os
import tempfile
from unittest.mock import MagicMock

import pytest

from headless_kit.capture.pdf import PdfOptions, html_to_pdf, render_pdf, url_to_pdf
from headless_kit.capture.screenshot import (
    capture_path,
    screenshot_element,
    screenshot_url,
    take_screenshot,
)
from headless_kit.engine.errors import ElementNotFoundError


def _page():
    page = MagicMock()
    page.pdf.return_value = b"%PDF-1.7"
    page.screenshot.return_value = b"\x89PNG"
    return page


# -- PdfOptions --

def test_pdf_options_defaults():
    kwargs = PdfOptions().to_playwright()
    assert kwargs["format"] == "A4"
    assert kwargs["print_background"] is True
    assert kwargs["margin"] == {"top": "1cm", "right": "1cm", "bottom": "1cm", "left": "1cm"}
    assert "display_header_footer" not in kwargs


def test_pdf_options_custom_size_replaces_format():
    kwargs = PdfOptions(width="8.5in", height="11in").to_playwright()
    assert "format" not in kwargs
    assert kwargs["width"] == "8.5in"


def test_pdf_options_footer_only_blanks_header():
    kwargs = PdfOptions(footer_template="<span class='pageNumber'></span>").to_playwright()
    assert kwargs["display_header_footer"] is True
    assert kwargs["header_template"] == "<span></span>"
    assert "pageNumber" in kwargs["footer_template"]


@pytest.mark.parametrize("options", [
    PdfOptions(format="B7"),
    PdfOptions(width="10in"),
    PdfOptions(scale=3.0),
    PdfOptions(margin={"top": "wide"}),
    PdfOptions(margin={"middle": "1cm"}),
    PdfOptions(page_ranges="1-3,x"),
])
def test_pdf_options_invalid(options):
    with pytest.raises(ValueError):
        options.validate()


def test_pdf_options_page_ranges():
    assert PdfOptions(page_ranges="1-3, 5").to_playwright()["page_ranges"] == "1-3, 5"


# -- render_pdf --

def test_render_pdf_from_url():
    page = _page()
    data = render_pdf(page, url="https://example.com/invoice/1")
    assert data == b"%PDF-1.7"
    page.goto.assert_called_once_with("https://example.com/invoice/1", wait_until="networkidle")
    page.emulate_media.assert_called_once_with(media="print")
    assert "path" not in page.pdf.call_args.kwargs


def test_render_pdf_from_html_writes_path():
    page = _page()
    with tempfile.TemporaryDirectory() as tmpdir:
        out = os.path.join(tmpdir, "out", "report.pdf")
        html_to_pdf(page, "<h1>Report</h1>", out, landscape=True)
        assert os.path.isdir(os.path.dirname(out))
    page.set_content.assert_called_once_with("<h1>Report</h1>", wait_until="networkidle")
    kwargs = page.pdf.call_args.kwargs
    assert kwargs["path"] == out
    assert kwargs["landscape"] is True


def test_render_pdf_needs_exactly_one_source():
    with pytest.raises(ValueError):
        render_pdf(_page(), url="https://example.com", html="<p>x</p>")
    page = _page()
    with pytest.raises(ValueError):
        render_pdf(page)
    page.pdf.assert_not_called()


def test_render_pdf_screen_media_skips_emulation():
    page = _page()
    render_pdf(page, html="<p>x</p>", media="")
    page.emulate_media.assert_not_called()
    page.goto.assert_not_called()


def test_url_to_pdf_paper_format():
    page = _page()
    url_to_pdf(page, "https://example.com", format="Letter")
    assert page.pdf.call_args.kwargs["format"] == "Letter"


# -- screenshots --

def test_capture_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = capture_path(os.path.join(tmpdir, "shots"), "home page/hero", "jpg")
        assert os.path.isdir(os.path.join(tmpdir, "shots"))
    assert path.endswith("_home_page_hero.jpg")


def test_take_screenshot_defaults():
    page = _page()
    assert take_screenshot(page) == b"\x89PNG"
    kwargs = page.screenshot.call_args.kwargs
    assert kwargs["full_page"] is True
    assert kwargs["type"] == "png"
    assert kwargs["animations"] == "disabled"


def test_take_screenshot_jpeg_from_suffix():
    page = _page()
    with tempfile.TemporaryDirectory() as tmpdir:
        take_screenshot(page, os.path.join(tmpdir, "a.JPG"), quality=80)
    kwargs = page.screenshot.call_args.kwargs
    assert kwargs["type"] == "jpeg"
    assert kwargs["quality"] == 80


def test_take_screenshot_quality_png_rejected():
    with pytest.raises(ValueError):
        take_screenshot(_page(), "a.png", quality=80)
    with pytest.raises(ValueError):
        take_screenshot(_page(), image_type="gif")


def test_take_screenshot_clip_and_mask():
    page = _page()
    take_screenshot(page, clip={"x": 0, "y": 0, "width": 10, "height": 10},
                    mask_selectors=[".ad", "time"])
    kwargs = page.screenshot.call_args.kwargs
    assert kwargs["full_page"] is False
    assert len(kwargs["mask"]) == 2
    page.locator.assert_any_call(".ad")


def test_screenshot_element_with_padding():
    page = _page()
    page.wait_for_selector.return_value.bounding_box.return_value = {
        "x": 5, "y": 100, "width": 200, "height": 50,
    }
    screenshot_element(page, "#chart", padding=10)
    clip = page.screenshot.call_args.kwargs["clip"]
    assert clip == {"x": 0, "y": 90, "width": 215, "height": 70}


def test_screenshot_element_without_box():
    page = _page()
    page.wait_for_selector.return_value.bounding_box.return_value = None
    with pytest.raises(ElementNotFoundError):
        screenshot_element(page, "#hidden")


def test_screenshot_url():
    page = _page()
    screenshot_url(page, "https://example.com", full_page=False)
    page.goto.assert_called_once_with("https://example.com", wait_until="networkidle")
    assert page.screenshot.call_args.kwargs["full_page"] is False
