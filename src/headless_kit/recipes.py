"""Topic-to-recipe lookup table.

Maps the questions people actually ask ("how do I avoid bot detection?",
"render this HTML to PDF") to the module and functions that answer them.
The CLI's ``topics`` command is a thin view over this table.
"""
import importlib
from dataclasses import dataclass


@dataclass(frozen=True)
class Recipe:
    topic: str
    title: str
    summary: str
    keywords: tuple[str, ...]
    entry_points: tuple[str, ...]   # "module:attr"


RECIPES: dict[str, Recipe] = {r.topic: r for r in (
    Recipe(
        "setup", "Browser setup",
        "Launch Chromium with sane args, timeouts and viewport; CDP attach to system Chrome.",
        ("setup", "launch", "install", "headless", "chrome", "cdp", "config", "session"),
        ("headless_kit.browser.session:open_browser",
         "headless_kit.browser.session:launch_browser",
         "headless_kit.browser.chrome:build_launch_args",
         "headless_kit.config:Settings"),
    ),
    Recipe(
        "stealth", "Anti-bot evasion",
        "Hide webdriver/headless tells with an init-script shim, rotate user agents.",
        ("stealth", "bot", "detection", "fingerprint", "captcha", "cloudflare", "webdriver",
         "user-agent", "evasion"),
        ("headless_kit.browser.stealth:build_stealth_shim",
         "headless_kit.browser.stealth:setup_cdp_stealth",
         "headless_kit.browser.ua:random_user_agent"),
    ),
    Recipe(
        "human", "Human-like input",
        "Bezier mouse paths, inertial scrolling, jittered typing and pauses.",
        ("human", "mouse", "scroll", "typing", "delay", "behavior"),
        ("headless_kit.human.behavior:human_click",
         "headless_kit.human.behavior:human_scroll",
         "headless_kit.human.behavior:human_type"),
    ),
    Recipe(
        "errors", "Error handling",
        "Classify timeouts, detached nodes, closed targets and navigation failures; typed errors.",
        ("error", "errors", "exception", "timeout", "detached", "closed", "navigation", "crash"),
        ("headless_kit.engine.errors:classify_error",
         "headless_kit.engine.errors:wrap_error",
         "headless_kit.engine.failure_bundle:capture_failure_bundle"),
    ),
    Recipe(
        "retry", "Retry with backoff",
        "Exponential backoff with jitter for retryable error kinds.",
        ("retry", "backoff", "flaky", "transient"),
        ("headless_kit.engine.retry:retry_call",
         "headless_kit.engine.retry:with_retry"),
    ),
    Recipe(
        "shutdown", "Graceful shutdown",
        "Close browsers on SIGINT/SIGTERM instead of leaking Chrome processes.",
        ("shutdown", "signal", "sigint", "sigterm", "cleanup", "zombie"),
        ("headless_kit.engine.shutdown:GracefulShutdown",),
    ),
    Recipe(
        "performance", "Performance",
        "Block images/fonts/media and trackers; reuse pages; capture API JSON instead of DOM.",
        ("performance", "speed", "fast", "block", "intercept", "interception", "resources",
         "bandwidth", "api"),
        ("headless_kit.browser.interception:block_requests",
         "headless_kit.pool.browser_pool:BrowserPool",
         "headless_kit.capture.network:ResponseTap"),
    ),
    Recipe(
        "concurrency", "Cluster concurrency",
        "Run many tasks across worker browsers with retries and browser recycling.",
        ("cluster", "concurrency", "parallel", "pool", "pooling", "workers", "scale"),
        ("headless_kit.pool.cluster:Cluster",
         "headless_kit.pool.browser_pool:BrowserPool"),
    ),
    Recipe(
        "pdf", "PDF generation",
        "Render URLs or HTML to PDF with paper format, margins, header/footer templates.",
        ("pdf", "print", "invoice", "report", "document"),
        ("headless_kit.capture.pdf:render_pdf",
         "headless_kit.capture.pdf:PdfOptions"),
    ),
    Recipe(
        "screenshot", "Screenshots",
        "Full-page, element and clipped screenshots with masking.",
        ("screenshot", "image", "png", "jpeg", "capture", "visual"),
        ("headless_kit.capture.screenshot:take_screenshot",
         "headless_kit.capture.screenshot:screenshot_element"),
    ),
    Recipe(
        "forms", "Form filling",
        "Fill inputs, selects, checkboxes and uploads; submit and wait for navigation.",
        ("form", "forms", "fill", "input", "login", "submit", "upload", "select", "checkbox"),
        ("headless_kit.forms.filler:fill_form",
         "headless_kit.forms.filler:submit_form"),
    ),
    Recipe(
        "downloads", "Downloads",
        "Capture file downloads via Playwright events or CDP download behavior.",
        ("download", "downloads", "file", "attachment"),
        ("headless_kit.browser.downloads:download_via_click",
         "headless_kit.browser.downloads:enable_cdp_downloads"),
    ),
    Recipe(
        "cookies", "Session persistence",
        "Save and restore cookies to skip logging in on every run.",
        ("cookies", "cookie", "session", "login", "storage", "auth"),
        ("headless_kit.browser.cookies:save_cookies",
         "headless_kit.browser.cookies:load_cookies"),
    ),
    Recipe(
        "testing", "Testing patterns",
        "Page objects, pytest fixtures and console-error assertions.",
        ("test", "testing", "pytest", "page object", "e2e", "fixture", "assert"),
        ("headless_kit.testing.page_object:BasePage",
         "headless_kit.testing.assertions:assert_no_console_errors"),
    ),
)}


def get_recipe(topic: str) -> Recipe:
    try:
        return RECIPES[topic.lower()]
    except KeyError:
        raise KeyError(f"unknown topic {topic!r}; known: {', '.join(sorted(RECIPES))}") from None


def find_recipes(query: str) -> list[Recipe]:
    """Recipes matching *query*, best first.

    An exact topic name wins; otherwise recipes are ranked by how many
    query words hit their keywords (then title/summary). Ties keep table
    order.
    """
    words = [w for w in query.lower().replace(",", " ").split() if w]
    if not words:
        return list(RECIPES.values())
    if len(words) == 1 and words[0] in RECIPES:
        return [RECIPES[words[0]]]

    scored = []
    for order, recipe in enumerate(RECIPES.values()):
        text = f"{recipe.title} {recipe.summary}".lower()
        score = 0
        for w in words:
            if w == recipe.topic or w in recipe.keywords:
                score += 3
            elif len(w) > 2 and any(k.startswith(w) or w.startswith(k) for k in recipe.keywords if len(k) > 2):
                score += 2
            elif w in text:
                score += 1
        if score:
            scored.append((-score, order, recipe))
    return [r for _, _, r in sorted(scored, key=lambda t: (t[0], t[1]))]


def resolve(entry_point: str):
    """Import ``"package.module:attr"`` and return the attribute."""
    module_name, sep, attr = entry_point.partition(":")
    if not sep or not attr:
        raise ValueError(f"entry point must look like 'module:attr', got {entry_point!r}")
    module = importlib.import_module(module_name)
    return getattr(module, attr)
