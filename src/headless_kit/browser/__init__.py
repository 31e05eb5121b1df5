"""browser: Playwright/CDP browser setup, stealth and network primitives.

Zero site-specific dependencies.
"""
from .chrome import build_launch_args, find_system_chrome, launch_cdp_browser, kill_stale_cdp  # noqa: F401
from .cookies import load_cookies, save_cookies  # noqa: F401
from .downloads import download_via_click, enable_cdp_downloads, wait_for_download_file  # noqa: F401
from .interception import block_requests, should_block, unblock_requests  # noqa: F401
from .session import launch_browser, new_context, open_browser  # noqa: F401
from .stealth import build_stealth_shim, inject_stealth, setup_cdp_stealth, stealth_source  # noqa: F401
from .ua import build_user_agent, get_chromium_version, random_user_agent  # noqa: F401
