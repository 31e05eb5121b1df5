"""User-Agent detection, construction and rotation."""
import random

UA_TEMPLATES = {
    "windows": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/{version} Safari/537.36"
    ),
    "macos": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/{version} Safari/537.36"
    ),
    "linux": (
        "Mozilla/5.0 (X11; Linux x86_64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/{version} Safari/537.36"
    ),
}


def get_chromium_version(playwright) -> str:
    """Launch a throwaway browser to detect the Chromium version string.

    No internal caching; caller is responsible for caching the result.
    """
    browser = playwright.chromium.launch(headless=True)
    try:
        return browser.version
    finally:
        browser.close()


def chrome_major(version: str) -> int:
    """Major version number of a dotted Chrome version string."""
    head = version.strip().split(".")[0]
    if not head.isdigit():
        raise ValueError(f"not a Chrome version: {version!r}")
    return int(head)


def build_user_agent(chrome_version: str, template: str = "") -> str:
    """Build a User-Agent string for the given Chrome version.

    If *template* is empty, uses the Windows Chrome template. Headless
    Chromium reports "HeadlessChrome" in its default UA, which is the
    first thing bot checks look for.
    """
    if not template:
        template = UA_TEMPLATES["windows"]
    return template.format(version=chrome_version)


def random_user_agent(chrome_version: str, platforms=None, rng: random.Random | None = None) -> str:
    """Pick a UA template at random (optionally limited to *platforms*)."""
    names = list(platforms) if platforms else sorted(UA_TEMPLATES)
    unknown = [n for n in names if n not in UA_TEMPLATES]
    if unknown:
        raise ValueError(f"unknown platforms: {unknown}; known: {sorted(UA_TEMPLATES)}")
    name = (rng or random).choice(names)
    return build_user_agent(chrome_version, UA_TEMPLATES[name])
