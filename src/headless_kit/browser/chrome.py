"""Chrome discovery, launch arguments, CDP launch and stale-process cleanup.

Process cleanup uses lsof/signals and is a no-op on Windows.
"""
import logging
import os
import platform
import shutil
import signal
import subprocess
import time
import urllib.request

log = logging.getLogger(__name__)

BASE_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--disable-infobars",
    "--no-first-run",
    "--no-default-browser-check",
]

SANDBOX_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


def find_system_chrome() -> str | None:
    """Find Chrome, Chromium or Edge on the system.

    Returns the path to the browser executable, or None if not found.
    """
    system = platform.system()
    if system == "Darwin":
        candidates = [
            "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            "/Applications/Google Chrome Canary.app/Contents/MacOS/Google Chrome Canary",
            "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
            "/Applications/Chromium.app/Contents/MacOS/Chromium",
        ]
    elif system == "Linux":
        candidates = [
            "google-chrome",
            "google-chrome-stable",
            "chromium-browser",
            "chromium",
            "microsoft-edge",
            "microsoft-edge-stable",
        ]
    elif system == "Windows":
        roots = [os.environ.get(v, "") for v in ("PROGRAMFILES", "PROGRAMFILES(X86)", "LOCALAPPDATA")]
        candidates = [
            os.path.join(root, *rel)
            for root in roots if root
            for rel in (
                ("Google", "Chrome", "Application", "chrome.exe"),
                ("Microsoft", "Edge", "Application", "msedge.exe"),
            )
        ]
    else:
        return None

    for candidate in candidates:
        if os.path.isabs(candidate):
            if os.path.isfile(candidate):
                return candidate
        else:
            path = shutil.which(candidate)
            if path:
                return path
    return None


def build_launch_args(config) -> list[str]:
    """Chromium command-line switches for a ``LaunchConfig``.

    Sandbox switches are only added when ``no_sandbox`` is set (Docker,
    root). ``extra_args`` come last; duplicates keep their first position.
    """
    args = list(BASE_ARGS)
    args.append(f"--window-size={config.viewport_width},{config.viewport_height}")
    if config.no_sandbox:
        args.extend(SANDBOX_ARGS)
    args.extend(config.extra_args)
    seen: set[str] = set()
    deduped = []
    for arg in args:
        if arg not in seen:
            seen.add(arg)
            deduped.append(arg)
    return deduped


def launch_cdp_browser(
    playwright,
    chrome_path: str,
    *,
    headed: bool = False,
    port: int = 9222,
    user_data_dir: str = "",
    extra_args: list[str] | None = None,
):
    """Launch system Chrome with remote debugging and connect via CDP.

    Returns ``(browser, chrome_proc)`` on success. The spawned process is
    terminated if Chrome never answers or the CDP connection fails.
    """
    if user_data_dir:
        os.makedirs(user_data_dir, exist_ok=True)

    args = [
        chrome_path,
        f"--remote-debugging-port={port}",
    ]
    if user_data_dir:
        args.append(f"--user-data-dir={user_data_dir}")
    if extra_args:
        args.extend(extra_args)
    if not headed:
        args.append("--headless=new")
    args.append("about:blank")

    log.info("Launching Chrome via CDP: %s", os.path.basename(chrome_path))
    proc = subprocess.Popen(
        args,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )

    def _terminate_browser() -> None:
        if proc.poll() is not None:
            return
        proc.terminate()
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait(timeout=5)

    # Wait for the debugger to be ready
    cdp_url = f"http://127.0.0.1:{port}"
    for _ in range(30):
        if proc.poll() is not None:
            raise RuntimeError(
                f"Chrome exited unexpectedly (code {proc.returncode})"
            )
        try:
            urllib.request.urlopen(f"{cdp_url}/json/version", timeout=1)
            break
        except Exception:
            time.sleep(0.3)
    else:
        _terminate_browser()
        raise RuntimeError("Chrome failed to start with remote debugging")

    try:
        browser = playwright.chromium.connect_over_cdp(cdp_url)
    except Exception:
        _terminate_browser()
        raise
    log.info("Connected to Chrome via CDP (port %d)", port)
    return browser, proc


def kill_stale_cdp(port: int = 9222, settle: float = 2.0) -> None:
    """Kill any existing process listening on *port*."""
    if platform.system() == "Windows":
        return
    try:
        out = subprocess.check_output(
            ["lsof", "-ti", f":{port}"], text=True
        ).strip()
        if out:
            for pid_str in out.split("\n"):
                try:
                    os.kill(int(pid_str), signal.SIGTERM)
                except (ProcessLookupError, ValueError):
                    pass
            log.info("Killed stale Chrome on port %d", port)
            time.sleep(settle)
    except subprocess.CalledProcessError:
        pass  # nothing on this port
    except FileNotFoundError:
        log.warning("lsof not found; cannot auto-kill stale CDP processes")
