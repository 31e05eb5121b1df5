"""Screenshot recipes: viewport, full page, element, URL."""
import logging
import os
import re
import time

from ..engine.errors import ElementNotFoundError

log = logging.getLogger(__name__)

IMAGE_TYPES = ("png", "jpeg")


def capture_path(directory: str, label: str, ext: str = "png") -> str:
    """Timestamped, filesystem-safe path under *directory* (created)."""
    os.makedirs(directory, exist_ok=True)
    ts = time.strftime("%Y%m%d_%H%M%S") + f"_{int(time.time() * 1000) % 1000:03d}"
    safe = re.sub(r"[^\w.-]", "_", label)[:50] or "capture"
    return os.path.join(directory, f"{ts}_{safe}.{ext.lstrip('.')}")


def _image_type_for(path: str | None, image_type: str | None) -> str:
    if image_type:
        return image_type
    if path and path.lower().endswith((".jpg", ".jpeg")):
        return "jpeg"
    return "png"


def take_screenshot(
    page,
    path: str | None = None,
    *,
    full_page: bool = True,
    image_type: str | None = None,
    quality: int | None = None,
    clip: dict | None = None,
    omit_background: bool = False,
    mask_selectors=(),
    animations: str = "disabled",
) -> bytes:
    """Screenshot the page. Returns PNG/JPEG bytes (also saved to *path*).

    *image_type* defaults from the path suffix. *quality* is JPEG-only.
    *mask_selectors* are painted over (e.g. ads, timestamps) so visual
    diffs stay stable.
    """
    image_type = _image_type_for(path, image_type)
    if image_type not in IMAGE_TYPES:
        raise ValueError(f"image_type must be one of {IMAGE_TYPES}, got {image_type!r}")
    if quality is not None:
        if image_type != "jpeg":
            raise ValueError("quality is only supported for jpeg screenshots")
        if not 0 <= quality <= 100:
            raise ValueError(f"quality must be 0-100, got {quality}")
    if clip is not None and full_page:
        # clip is relative to the full page; full_page would be ignored anyway
        full_page = False

    kwargs = {
        "full_page": full_page,
        "type": image_type,
        "omit_background": omit_background,
        "animations": animations,
    }
    if quality is not None:
        kwargs["quality"] = quality
    if clip is not None:
        kwargs["clip"] = clip
    if mask_selectors:
        kwargs["mask"] = [page.locator(s) for s in mask_selectors]
    if path:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        kwargs["path"] = path
    data = page.screenshot(**kwargs)
    log.debug("Screenshot %s (%d bytes)", path or "<memory>", len(data))
    return data


def screenshot_element(
    page,
    selector: str,
    path: str | None = None,
    *,
    padding: int = 0,
    timeout_ms: int = 10000,
    **kwargs,
) -> bytes:
    """Screenshot a single element, optionally with *padding* px around it."""
    element = page.wait_for_selector(selector, state="visible", timeout=timeout_ms)
    box = element.bounding_box() if element is not None else None
    if not box:
        raise ElementNotFoundError(message=f"no visible box for {selector!r}")
    x = max(box["x"] - padding, 0)
    y = max(box["y"] - padding, 0)
    clip = {
        "x": x,
        "y": y,
        "width": box["x"] + box["width"] + padding - x,
        "height": box["y"] + box["height"] + padding - y,
    }
    return take_screenshot(page, path, clip=clip, full_page=False, **kwargs)


def screenshot_url(page, url: str, path: str | None = None, *,
                   wait_until: str = "networkidle", **kwargs) -> bytes:
    page.goto(url, wait_until=wait_until)
    return take_screenshot(page, path, **kwargs)
