"""Fingerprint-evasion shims for headless Chromium/Chrome.

All parameters (hardware specs, screen dimensions, platform strings,
languages) are configurable so the same shim can be tuned to match the
user agent and viewport an app presents.
"""
import json
import logging
import os

log = logging.getLogger(__name__)

# Cache keyed by absolute path; supports multiple stealth JS files.
_stealth_js_cache: dict[str, str] = {}

_SHIM_FIELDS = (
    "hardware_concurrency",
    "device_memory",
    "platform",
    "platform_version",
    "architecture",
    "screen_width",
    "screen_height",
    "screen_avail_height",
    "color_depth",
    "webgl_vendor",
    "webgl_renderer",
    "languages",
)


def _load_stealth_js(path: str) -> str:
    """Load a stealth JS file from disk, with caching.

    Returns ``""`` if *path* is empty/falsy or does not point to a file.
    """
    if not path:
        return ""
    abs_path = os.path.abspath(path)
    if abs_path in _stealth_js_cache:
        return _stealth_js_cache[abs_path]
    if not os.path.isfile(abs_path):
        log.warning("Stealth JS not found: %s", abs_path)
        _stealth_js_cache[abs_path] = ""
        return ""
    with open(abs_path, "r", encoding="utf-8") as f:
        content = f.read()
    _stealth_js_cache[abs_path] = content
    return content


def shim_kwargs(stealth_config) -> dict:
    """Fingerprint keyword arguments for :func:`build_stealth_shim`."""
    if stealth_config is None:
        return {}
    return {name: getattr(stealth_config, name) for name in _SHIM_FIELDS}


def build_stealth_shim(
    chrome_version: str,
    *,
    hardware_concurrency: int = 8,
    device_memory: int = 8,
    platform: str = "Windows",
    platform_version: str = "15.0.0",
    architecture: str = "x86",
    screen_width: int = 1920,
    screen_height: int = 1080,
    screen_avail_height: int = 1040,
    color_depth: int = 24,
    webgl_vendor: str = "Google Inc. (Intel)",
    webgl_renderer: str = "ANGLE (Intel, Intel(R) UHD Graphics 630 Direct3D11 vs_5_0 ps_5_0, D3D11)",
    languages: list[str] | tuple[str, ...] = ("en-US", "en"),
) -> str:
    """Build a JS shim that hides the usual headless/automation tells."""
    if not languages:
        raise ValueError("languages must not be empty")
    major = chrome_version.split(".")[0]
    grease_brand = "Not/A)Brand"
    major_js = json.dumps(major)
    chrome_version_js = json.dumps(chrome_version)
    grease_brand_js = json.dumps(grease_brand)
    platform_js = json.dumps(platform)
    platform_version_js = json.dumps(platform_version)
    architecture_js = json.dumps(architecture)
    webgl_vendor_js = json.dumps(webgl_vendor)
    webgl_renderer_js = json.dumps(webgl_renderer)
    languages_js = json.dumps(list(languages))
    language_js = json.dumps(languages[0])
    return f"""
    (() => {{
        // -- navigator.webdriver --
        Object.defineProperty(Navigator.prototype, 'webdriver', {{
            get: () => undefined, configurable: true,
        }});

        // -- window.chrome (missing in headless) --
        if (!window.chrome) {{
            Object.defineProperty(window, 'chrome', {{
                value: {{ runtime: {{}}, app: {{ isInstalled: false }} }},
                writable: true, configurable: true,
            }});
        }}

        // -- navigator.userAgentData --
        const brands = [
            {{ brand: "Chromium", version: {major_js} }},
            {{ brand: "Google Chrome", version: {major_js} }},
            {{ brand: {grease_brand_js}, version: "99" }},
        ];
        const fullBrands = [
            {{ brand: "Chromium", version: {chrome_version_js} }},
            {{ brand: "Google Chrome", version: {chrome_version_js} }},
            {{ brand: {grease_brand_js}, version: "99.0.0.0" }},
        ];
        const uaData = {{
            brands: brands,
            mobile: false,
            platform: {platform_js},
            getHighEntropyValues: function(hints) {{
                return Promise.resolve({{
                    brands: fullBrands,
                    mobile: false,
                    platform: {platform_js},
                    platformVersion: {platform_version_js},
                    architecture: {architecture_js},
                    model: "",
                    uaFullVersion: {chrome_version_js},
                    fullVersionList: fullBrands,
                }});
            }},
            toJSON: function() {{
                return {{ brands: brands, mobile: false, platform: {platform_js} }};
            }},
        }};
        Object.defineProperty(navigator, 'userAgentData', {{
            get: () => uaData, configurable: true,
        }});

        // -- navigator.languages --
        Object.defineProperty(navigator, 'languages', {{
            get: () => {languages_js}, configurable: true,
        }});
        Object.defineProperty(navigator, 'language', {{
            get: () => {language_js}, configurable: true,
        }});

        // -- navigator.plugins (empty array is a headless tell) --
        const fakePlugins = [
            {{ name: "PDF Viewer", filename: "internal-pdf-viewer", description: "Portable Document Format" }},
            {{ name: "Chrome PDF Viewer", filename: "internal-pdf-viewer", description: "Portable Document Format" }},
            {{ name: "Chromium PDF Viewer", filename: "internal-pdf-viewer", description: "Portable Document Format" }},
        ];
        Object.defineProperty(navigator, 'plugins', {{
            get: () => fakePlugins, configurable: true,
        }});

        // -- navigator.hardwareConcurrency --
        Object.defineProperty(navigator, 'hardwareConcurrency', {{
            get: () => {hardware_concurrency}, configurable: true,
        }});

        // -- navigator.vendor (should be "Google Inc." for Chrome) --
        Object.defineProperty(navigator, 'vendor', {{
            get: () => "Google Inc.", configurable: true,
        }});

        // -- navigator.maxTouchPoints (0 for desktop, no touch screen) --
        Object.defineProperty(navigator, 'maxTouchPoints', {{
            get: () => 0, configurable: true,
        }});

        // -- window outer dimensions (outer === inner is headless tell) --
        Object.defineProperty(window, 'outerHeight', {{
            get: () => window.innerHeight + 85, configurable: true,
        }});
        Object.defineProperty(window, 'outerWidth', {{
            get: () => window.innerWidth, configurable: true,
        }});

        // -- WebGL renderer --
        const _origGetParam = WebGLRenderingContext.prototype.getParameter;
        WebGLRenderingContext.prototype.getParameter = function(param) {{
            if (param === 0x9245) return {webgl_vendor_js};
            if (param === 0x9246) return {webgl_renderer_js};
            return _origGetParam.call(this, param);
        }};
        if (typeof WebGL2RenderingContext !== 'undefined') {{
            const _origGetParam2 = WebGL2RenderingContext.prototype.getParameter;
            WebGL2RenderingContext.prototype.getParameter = function(param) {{
                if (param === 0x9245) return {webgl_vendor_js};
                if (param === 0x9246) return {webgl_renderer_js};
                return _origGetParam2.call(this, param);
            }};
        }}

        // -- navigator.permissions (headless inconsistency fix) --
        if (navigator.permissions) {{
            const _origQuery = navigator.permissions.query.bind(navigator.permissions);
            navigator.permissions.query = function(desc) {{
                if (desc.name === 'notifications') {{
                    return Promise.resolve({{
                        state: Notification.permission === 'default'
                            ? 'prompt' : Notification.permission,
                        onchange: null,
                    }});
                }}
                return _origQuery(desc);
            }};
        }}

        // -- navigator.deviceMemory --
        Object.defineProperty(navigator, 'deviceMemory', {{
            get: () => {device_memory}, configurable: true,
        }});

        // -- navigator.connection (missing/empty in headless) --
        if (!navigator.connection) {{
            Object.defineProperty(navigator, 'connection', {{
                get: () => ({{
                    effectiveType: "4g",
                    rtt: 50,
                    downlink: 10,
                    saveData: false,
                }}),
                configurable: true,
            }});
        }}

        // -- screen.* properties --
        Object.defineProperty(screen, 'width', {{
            get: () => {screen_width}, configurable: true,
        }});
        Object.defineProperty(screen, 'height', {{
            get: () => {screen_height}, configurable: true,
        }});
        Object.defineProperty(screen, 'availWidth', {{
            get: () => {screen_width}, configurable: true,
        }});
        Object.defineProperty(screen, 'availHeight', {{
            get: () => {screen_avail_height}, configurable: true,
        }});
        Object.defineProperty(screen, 'colorDepth', {{
            get: () => {color_depth}, configurable: true,
        }});
        Object.defineProperty(screen, 'pixelDepth', {{
            get: () => {color_depth}, configurable: true,
        }});

        // -- Error.stack cleanup (remove UtilityScript artifacts from Playwright) --
        const _origPrepareStackTrace = Error.prepareStackTrace;
        Error.prepareStackTrace = function(error, stack) {{
            if (_origPrepareStackTrace) {{
                return _origPrepareStackTrace(error, stack);
            }}
            return error.toString() + "\\n" + stack.map(function(f) {{
                return "    at " + f.toString();
            }}).filter(function(line) {{
                return line.indexOf("UtilityScript") === -1;
            }}).join("\\n");
        }};
    }})();
    """


def stealth_source(chrome_version: str, stealth_config=None) -> str:
    """Full init-script source: optional stealth.min.js followed by the shim."""
    path = getattr(stealth_config, "stealth_js_path", "") if stealth_config else ""
    parts: list[str] = []
    stealth_js = _load_stealth_js(path)
    if stealth_js:
        parts.append(stealth_js)
    parts.append(build_stealth_shim(chrome_version, **shim_kwargs(stealth_config)))
    return "\n".join(parts)


def inject_stealth(page, chrome_version: str, stealth_config=None) -> None:
    """Inject stealth scripts into the current document via ``evaluate()``.

    Only affects the already-loaded document; prefer
    :func:`setup_cdp_stealth` or ``context.add_init_script``.
    """
    try:
        page.evaluate(stealth_source(chrome_version, stealth_config))
    except Exception:
        pass  # page may have navigated away


def setup_cdp_stealth(page, context, chrome_version: str, stealth_config=None):
    """Install stealth scripts via CDP to run BEFORE any page JS.

    Uses ``Page.addScriptToEvaluateOnNewDocument`` directly. Returns the
    CDP session (must stay alive; detaching removes registered scripts),
    or ``None`` on failure.
    """
    source = stealth_source(chrome_version, stealth_config)
    try:
        cdp = context.new_cdp_session(page)
        cdp.send("Page.addScriptToEvaluateOnNewDocument", {"source": source})
        log.info("CDP stealth injection installed (pre-navigation)")
        return cdp
    except Exception as e:
        log.warning("CDP stealth injection failed (%s); caller should fall back to evaluate()", e)
        return None
