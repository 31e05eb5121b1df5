"""Browser session lifecycle: launch, stealth context, guaranteed cleanup.

Nothing here runs at import time and nothing is derived from the package
location; all paths come from the caller's config.
"""
import logging
import os
from contextlib import contextmanager
from typing import Any

from ..config import InterceptionConfig, LaunchConfig, StealthConfig
from .chrome import build_launch_args, find_system_chrome, kill_stale_cdp, launch_cdp_browser
from .cookies import load_cookies
from .interception import block_requests
from .stealth import setup_cdp_stealth, stealth_source
from .ua import build_user_agent, get_chromium_version

log = logging.getLogger(__name__)


def apply_timeouts(target, config: LaunchConfig) -> None:
    """Apply the configured default timeouts to a page or context."""
    target.set_default_timeout(config.default_timeout_ms)
    target.set_default_navigation_timeout(config.navigation_timeout_ms)


def launch_browser(playwright: Any, config: LaunchConfig | None = None):
    """Launch Chromium (bundled, or ``executable_path``) with kit defaults."""
    config = config or LaunchConfig()
    kwargs: dict[str, Any] = {
        "headless": config.headless,
        "args": build_launch_args(config),
        "ignore_default_args": ["--enable-automation"],
    }
    if config.executable_path:
        kwargs["executable_path"] = config.executable_path
    browser = playwright.chromium.launch(**kwargs)
    log.info("Launched Chromium %s (headless=%s)", browser.version, config.headless)
    return browser


def context_options(config: LaunchConfig, chrome_version: str = "") -> dict[str, Any]:
    """Keyword arguments for ``new_context`` / ``launch_persistent_context``."""
    options: dict[str, Any] = {
        "viewport": config.viewport,
        "locale": config.locale,
    }
    if config.timezone_id:
        options["timezone_id"] = config.timezone_id
    if config.user_agent:
        options["user_agent"] = config.user_agent
    elif chrome_version:
        options["user_agent"] = build_user_agent(chrome_version)
    return options


def new_context(
    browser,
    config: LaunchConfig | None = None,
    stealth: StealthConfig | None = None,
    chrome_version: str = "",
):
    """Create a browser context with viewport/locale/UA and the stealth shim.

    The shim goes in via ``add_init_script`` so it runs before page JS in
    every page and frame of the context.
    """
    config = config or LaunchConfig()
    stealth = stealth or StealthConfig()
    chrome_version = chrome_version or browser.version
    context = browser.new_context(**context_options(config, chrome_version))
    if stealth.enabled:
        context.add_init_script(script=stealth_source(chrome_version, stealth))
    apply_timeouts(context, config)
    return context


def _close_quietly(obj, method: str, what: str) -> None:
    if obj is None:
        return
    try:
        getattr(obj, method)()
    except Exception as e:
        log.warning(f"Failed to close {what} cleanly: {e}")


def _terminate(proc) -> None:
    if proc is None:
        return
    proc.terminate()
    try:
        proc.wait(timeout=5)
    except Exception:
        proc.kill()


@contextmanager
def open_browser(
    playwright: Any,
    config: LaunchConfig | None = None,
    *,
    stealth: StealthConfig | None = None,
    interception: InterceptionConfig | None = None,
    cookies_path: str = "",
):
    """Open a browser session. Yields ``(page, context)``.

    With ``prefer_system_chrome`` and an installed Chrome, launches it with
    remote debugging and attaches over CDP (real Chrome fingerprints);
    otherwise, or if that fails, uses a Playwright persistent context.
    Everything opened here is closed on exit, including after errors.
    """
    config = config or LaunchConfig()
    stealth = stealth or StealthConfig()

    chrome_proc = None
    cdp_session = None
    browser = None
    context = None
    page = None

    chrome_path = config.executable_path or (
        find_system_chrome() if config.prefer_system_chrome else None
    )
    if chrome_path and config.prefer_system_chrome:
        try:
            kill_stale_cdp(port=config.cdp_port)
            browser, chrome_proc = launch_cdp_browser(
                playwright, chrome_path,
                headed=not config.headless, port=config.cdp_port,
                user_data_dir=config.user_data_dir,
                extra_args=build_launch_args(config),
            )
            context = browser.contexts[0] if browser.contexts else browser.new_context(
                **context_options(config)
            )
            page = context.pages[0] if context.pages else context.new_page()
            if stealth.enabled:
                cdp_session = setup_cdp_stealth(page, context, browser.version, stealth)
            log.info("Using CDP mode (system Chrome)")
        except Exception as e:
            log.warning(f"CDP launch failed ({e}), falling back to Playwright Chromium")
            if cdp_session is not None:
                _close_quietly(cdp_session, "detach", "CDP session")
                cdp_session = None
            _close_quietly(context, "close", "context")
            _close_quietly(browser, "close", "browser")
            _terminate(chrome_proc)
            chrome_proc = None
            context = None
            browser = None

    if browser is None:
        chrome_version = get_chromium_version(playwright)
        launch_kwargs: dict[str, Any] = {
            "user_data_dir": config.user_data_dir or os.path.join(os.getcwd(), "browser_data"),
            "headless": config.headless,
            "args": build_launch_args(config),
            "ignore_default_args": ["--enable-automation"],
            **context_options(config, chrome_version),
        }
        if config.executable_path and not config.prefer_system_chrome:
            launch_kwargs["executable_path"] = config.executable_path
        context = playwright.chromium.launch_persistent_context(**launch_kwargs)
        if stealth.enabled:
            context.add_init_script(script=stealth_source(chrome_version, stealth))
        page = context.pages[0] if context.pages else context.new_page()
        log.info("Using Playwright Chromium mode")

    try:
        apply_timeouts(context, config)
        if cookies_path:
            n = load_cookies(context, cookies_path)
            log.debug("Loaded %d cookies", n)
        if interception is not None and interception.enabled:
            block_requests(context, interception)
        yield page, context
    finally:
        if cdp_session is not None:
            try:
                cdp_session.detach()
            except Exception:
                pass
        _close_quietly(context, "close", "browser context")
        if browser is not None:
            _close_quietly(browser, "close", "browser")
        _terminate(chrome_proc)
