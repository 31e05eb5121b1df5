"""capture: PDF, screenshot and passive network capture."""
from .network import ResponseTap, WaitResult  # noqa: F401
from .pdf import PdfOptions, html_to_pdf, render_pdf, url_to_pdf  # noqa: F401
from .screenshot import capture_path, screenshot_element, screenshot_url, take_screenshot  # noqa: F401
