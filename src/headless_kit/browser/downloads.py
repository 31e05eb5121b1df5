"""File downloads: CDP download behavior and Playwright download events."""
import logging
import os
import re
import time

from ..engine.errors import DownloadTimeoutError

log = logging.getLogger(__name__)

# Chrome writes .crdownload while in progress; other engines use these.
_PARTIAL_SUFFIXES = (".crdownload", ".part", ".tmp", ".download")


def enable_cdp_downloads(page, context, download_dir: str):
    """Let downloads land in *download_dir* via ``Page.setDownloadBehavior``.

    Needed when attaching to system Chrome over CDP, where Playwright's
    download events are not wired up. Returns the CDP session, which must
    stay referenced for the behavior to persist.
    """
    download_dir = os.path.abspath(download_dir)
    os.makedirs(download_dir, exist_ok=True)
    cdp = context.new_cdp_session(page)
    cdp.send("Page.setDownloadBehavior", {
        "behavior": "allow",
        "downloadPath": download_dir,
    })
    log.info("CDP downloads enabled -> %s", download_dir)
    return cdp


def _completed_files(download_dir: str) -> set[str]:
    try:
        names = os.listdir(download_dir)
    except FileNotFoundError:
        return set()
    return {
        n for n in names
        if not n.endswith(_PARTIAL_SUFFIXES)
        and os.path.isfile(os.path.join(download_dir, n))
    }


def wait_for_download_file(
    download_dir: str,
    *,
    known: set[str] | None = None,
    timeout: float = 30.0,
    poll: float = 0.25,
) -> str:
    """Wait until a new completed file shows up in *download_dir*.

    *known* is the set of names present before the download started
    (default: whatever is there now). Returns the new file's path.
    """
    baseline = set(known) if known is not None else _completed_files(download_dir)
    deadline = time.monotonic() + timeout
    while True:
        new = sorted(_completed_files(download_dir) - baseline)
        if new:
            return os.path.join(download_dir, new[0])
        if time.monotonic() >= deadline:
            raise DownloadTimeoutError(
                message=f"no new download in {download_dir} after {timeout:.0f}s"
            )
        time.sleep(poll)


def safe_filename(name: str, default: str = "download") -> str:
    name = os.path.basename(name or "")
    name = re.sub(r"[^\w.\- ]", "_", name).strip(" .")
    return name or default


def download_via_click(page, selector: str, dest_dir: str, *, timeout_ms: int = 30000) -> str:
    """Click *selector*, wait for the download and save it under *dest_dir*."""
    os.makedirs(dest_dir, exist_ok=True)
    with page.expect_download(timeout=timeout_ms) as download_info:
        page.click(selector)
    download = download_info.value
    path = os.path.join(dest_dir, safe_filename(download.suggested_filename))
    download.save_as(path)
    log.info("Downloaded %s", path)
    return path
