"""PDF generation from URLs or HTML strings.

``page.pdf()`` only works in headless Chromium. Print CSS (``@page``,
``@media print``) applies, so emulate the ``print`` media type before
rendering unless you want the screen layout.
"""
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any

log = logging.getLogger(__name__)

PAPER_FORMATS = frozenset({
    "Letter", "Legal", "Tabloid", "Ledger",
    "A0", "A1", "A2", "A3", "A4", "A5", "A6",
})

_CSS_LENGTH = re.compile(r"^\d+(\.\d+)?(px|in|cm|mm)?$")
_PAGE_RANGES = re.compile(r"^\s*\d+(\s*-\s*\d+)?(\s*,\s*\d+(\s*-\s*\d+)?)*\s*$")


@dataclass
class PdfOptions:
    format: str = "A4"
    landscape: bool = False
    print_background: bool = True
    scale: float = 1.0
    margin: dict[str, str] = field(default_factory=lambda: {
        "top": "1cm", "right": "1cm", "bottom": "1cm", "left": "1cm",
    })
    page_ranges: str = ""
    header_template: str = ""
    footer_template: str = ""
    prefer_css_page_size: bool = False
    width: str = ""
    height: str = ""

    def validate(self) -> "PdfOptions":
        if not self.width and self.format not in PAPER_FORMATS:
            raise ValueError(f"unknown paper format {self.format!r}; use one of {sorted(PAPER_FORMATS)}")
        if bool(self.width) != bool(self.height):
            raise ValueError("width and height must be given together")
        for name, value in (("width", self.width), ("height", self.height)):
            if value and not _CSS_LENGTH.match(value):
                raise ValueError(f"{name}: not a CSS length: {value!r}")
        if not 0.1 <= self.scale <= 2.0:
            raise ValueError(f"scale must be between 0.1 and 2.0, got {self.scale}")
        for side, value in self.margin.items():
            if side not in ("top", "right", "bottom", "left"):
                raise ValueError(f"unknown margin side {side!r}")
            if not _CSS_LENGTH.match(str(value)):
                raise ValueError(f"margin {side}: not a CSS length: {value!r}")
        if self.page_ranges and not _PAGE_RANGES.match(self.page_ranges):
            raise ValueError(f"bad page ranges: {self.page_ranges!r}")
        return self

    def to_playwright(self) -> dict[str, Any]:
        """Keyword arguments for ``page.pdf()``."""
        self.validate()
        kwargs: dict[str, Any] = {
            "landscape": self.landscape,
            "print_background": self.print_background,
            "scale": self.scale,
            "margin": dict(self.margin),
            "prefer_css_page_size": self.prefer_css_page_size,
        }
        if self.width:
            kwargs["width"] = self.width
            kwargs["height"] = self.height
        else:
            kwargs["format"] = self.format
        if self.page_ranges:
            kwargs["page_ranges"] = self.page_ranges
        if self.header_template or self.footer_template:
            kwargs["display_header_footer"] = True
            # Chromium draws its own default for whichever template is
            # missing; an empty span suppresses it.
            kwargs["header_template"] = self.header_template or "<span></span>"
            kwargs["footer_template"] = self.footer_template or "<span></span>"
        return kwargs


def _wait_for_fonts(page) -> None:
    try:
        page.evaluate("() => document.fonts.ready.then(() => true)")
    except Exception as e:
        log.debug(f"document.fonts.ready failed: {e}")


def render_pdf(
    page,
    *,
    url: str | None = None,
    html: str | None = None,
    path: str | None = None,
    options: PdfOptions | None = None,
    wait_until: str = "networkidle",
    media: str = "print",
) -> bytes:
    """Load *url* or *html* into *page* and render it to PDF.

    Exactly one of *url* / *html* must be given. Returns the PDF bytes,
    also written to *path* when given.
    """
    if (url is None) == (html is None):
        raise ValueError("pass exactly one of url or html")
    options = (options or PdfOptions()).validate()

    if url is not None:
        page.goto(url, wait_until=wait_until)
    else:
        page.set_content(html, wait_until=wait_until)
    if media:
        page.emulate_media(media=media)
    _wait_for_fonts(page)

    pdf_kwargs = options.to_playwright()
    if path:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        pdf_kwargs["path"] = path
    data = page.pdf(**pdf_kwargs)
    log.info("Rendered PDF (%d bytes)%s", len(data), f" -> {path}" if path else "")
    return data


def html_to_pdf(page, html: str, path: str | None = None, **option_overrides) -> bytes:
    return render_pdf(page, html=html, path=path, options=PdfOptions(**option_overrides))


def url_to_pdf(page, url: str, path: str | None = None, **option_overrides) -> bytes:
    return render_pdf(page, url=url, path=path, options=PdfOptions(**option_overrides))
