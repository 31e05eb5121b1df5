"""Human-like input for browser automation.

Replaces mechanical bot patterns (uniform timing, teleporting mouse, fixed
scroll steps, instant typing) with statistically natural behavior that
behavioral anti-bot scripts don't flag.
"""

import logging
import math
import random
import time
import weakref

log = logging.getLogger(__name__)

# Last known mouse position per page, used as the Bezier start point.
# Pages start at the viewport center of a 1280x720 window.
_DEFAULT_MOUSE = (640.0, 360.0)
_last_mouse: "weakref.WeakKeyDictionary[object, tuple[float, float]]" = weakref.WeakKeyDictionary()

DEFAULT_CLOSE_SELECTORS = (
    "[aria-label='Close']",
    "[aria-label='close']",
    "button.close",
    "[class*='close'] svg",
)
DEFAULT_BACKDROP_SELECTORS = (
    ".modal-backdrop",
    "[class*='overlay']",
    "[class*='mask']",
)


def _safe_float(val, default: float) -> float:
    try:
        f = float(val)
        if math.isfinite(f):
            return f
    except (TypeError, ValueError):
        pass
    return default


def _get_mouse(page) -> tuple[float, float]:
    try:
        return _last_mouse.get(page, _DEFAULT_MOUSE)
    except TypeError:
        return _DEFAULT_MOUSE


def _set_mouse(page, x: float, y: float) -> None:
    try:
        _last_mouse[page] = (x, y)
    except TypeError:
        pass  # not weak-referenceable; every move starts from the default


def human_sleep(low: float, high: float, sigma: float = 0.3, distraction: float = 0.08) -> float:
    """Sleep for a log-normal distributed duration between low and high.

    Log-normal matches human reaction times: mostly quick responses with
    occasional longer pauses. *distraction* is the chance of an extra
    2-6s pause. Returns the slept duration.

    sigma controls variance, higher = more spread:
      0.2 = tight (page load waits)
      0.3 = moderate (default, UI interactions)
      0.5 = wide (reading/browsing pauses)
    """
    low = _safe_float(low, 0.05)
    high = _safe_float(high, low)
    sigma = max(0.01, _safe_float(sigma, 0.3))
    if high < low:
        low, high = high, low
    low = max(low, 0.001)
    high = max(high, low)
    mid = max((low + high) / 2, 0.001)
    delay = random.lognormvariate(math.log(mid), sigma)
    # Clamp to 0.5x low .. 2x high
    delay = max(low * 0.5, min(delay, high * 2))
    if random.random() < distraction:
        delay += random.uniform(2, 6)
    time.sleep(delay)
    log.debug(f"    sleep {delay:.1f}s")
    return delay


# ---------------------------------------------------------------------------
# Bezier curve mouse movement
# ---------------------------------------------------------------------------

def _cubic_bezier(t: float, p0: float, p1: float, p2: float, p3: float) -> float:
    """Evaluate cubic Bezier at parameter t in [0, 1]."""
    u = 1 - t
    return u * u * u * p0 + 3 * u * u * t * p1 + 3 * u * t * t * p2 + t * t * t * p3


def bezier_path(from_x: float, from_y: float, to_x: float, to_y: float) -> list[tuple[float, float]]:
    """Points along a jittered cubic Bezier arc from start to target.

    The last point is exactly the target. Short hops (<10px) are a single
    point.
    """
    dx = to_x - from_x
    dy = to_y - from_y
    dist = math.hypot(dx, dy)
    if dist < 10:
        return [(to_x, to_y)]

    # Control points offset from the direct path; hands don't move in lines
    cp1_x = from_x + dx * random.uniform(0.2, 0.4) + random.uniform(-50, 50)
    cp1_y = from_y + dy * random.uniform(0.1, 0.3) + random.uniform(-30, 30)
    cp2_x = from_x + dx * random.uniform(0.6, 0.8) + random.uniform(-50, 50)
    cp2_y = from_y + dy * random.uniform(0.7, 0.9) + random.uniform(-30, 30)

    steps = max(20, min(40, int(dist / 15)))
    points = []
    for i in range(steps):
        t = i / steps
        x = _cubic_bezier(t, from_x, cp1_x, cp2_x, to_x)
        y = _cubic_bezier(t, from_y, cp1_y, cp2_y, to_y)
        # Tremor shrinks near the target (fine motor control)
        tremor = max(0.3, 1.5 * (1 - t))
        points.append((x + random.gauss(0, tremor), y + random.gauss(0, tremor)))
    points.append((to_x, to_y))
    return points


def bezier_move(page, to_x: float, to_y: float) -> None:
    """Move the mouse along a Bezier arc from its last position to the target.

    Timing is slow-fast-slow (Fitts' Law): the speed profile peaks midway.
    """
    if not page or not hasattr(page, "mouse"):
        return
    from_x, from_y = _get_mouse(page)
    to_x = _safe_float(to_x, from_x)
    to_y = _safe_float(to_y, from_y)
    points = bezier_path(from_x, from_y, to_x, to_y)
    n = len(points)
    for i, (x, y) in enumerate(points):
        page.mouse.move(x, y)
        if n > 1:
            t = i / (n - 1)
            speed = 4 * t * (1 - t)  # peaks at t=0.5, zero at endpoints
            time.sleep(random.uniform(0.005, 0.018) / max(speed, 0.15))
    _set_mouse(page, to_x, to_y)


# ---------------------------------------------------------------------------
# Inertial scroll simulation
# ---------------------------------------------------------------------------

def inertial_wheel(page, total_distance: int) -> int:
    """Scroll via decelerating burst of small wheel events (trackpad inertia).

    Returns the actual signed distance scrolled.
    """
    if not page or not hasattr(page, "mouse"):
        return 0
    total_distance = int(_safe_float(total_distance, 0))
    if total_distance == 0:
        return 0
    sign = 1 if total_distance > 0 else -1
    remaining = abs(total_distance)
    scrolled = 0
    n_steps = random.randint(8, 15)

    for i in range(n_steps):
        if remaining <= 0:
            break
        # Exponential decay: most distance covered in early steps
        progress = i / n_steps
        fraction = random.uniform(0.08, 0.25) * (1 - progress)
        delta = int(remaining * fraction) + random.randint(-3, 3)
        delta = max(1, min(delta, remaining))
        if remaining > 8:
            delta = min(remaining, max(8, delta))
        page.mouse.wheel(0, sign * delta)
        remaining -= delta
        scrolled += delta
        time.sleep(random.uniform(0.008, 0.035))

    if remaining > 0:
        page.mouse.wheel(0, sign * remaining)
        scrolled += remaining
        time.sleep(random.uniform(0.01, 0.03))

    return sign * scrolled


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def human_scroll(page, distance: int) -> None:
    """Scroll with inertial simulation and Bezier mouse repositioning.

    15% chance of a small corrective scroll back afterward.
    """
    if not page or not hasattr(page, "mouse"):
        return
    distance = int(_safe_float(distance, 0))
    if distance == 0:
        return
    t0 = time.monotonic()
    vs = page.viewport_size or {"width": 1920, "height": 1080}
    vw = max(100, int(_safe_float(vs.get("width"), 1920)))
    vh = max(100, int(_safe_float(vs.get("height"), 1080)))
    target_x = random.randint(int(vw * 0.2), int(vw * 0.8))
    target_y = random.randint(int(vh * 0.3), int(vh * 0.7))
    bezier_move(page, target_x, target_y)

    jittered = int(distance * random.uniform(0.8, 1.2)) or (1 if distance > 0 else -1)
    actual = inertial_wheel(page, jittered)

    corrected = False
    if random.random() < 0.15:
        time.sleep(random.uniform(0.2, 0.5))
        back = random.randint(50, 150)
        inertial_wheel(page, -back if distance > 0 else back)
        corrected = True

    elapsed = time.monotonic() - t0
    log.debug(f"    scroll {actual}px ({elapsed:.1f}s){' +correction' if corrected else ''}")


def human_click(page, element) -> None:
    """Click an element via Bezier mouse movement with a random offset.

    Falls back to ``element.click()`` when the element has no usable box.
    """
    if not page or element is None:
        return
    t0 = time.monotonic()
    box = element.bounding_box()
    bw = _safe_float((box or {}).get("width"), 0.0)
    bh = _safe_float((box or {}).get("height"), 0.0)
    if bw <= 0 or bh <= 0:
        element.click()
        log.debug(f"    click (no box, fallback) [{time.monotonic() - t0:.1f}s]")
        return
    bx = _safe_float(box.get("x"), 0.0)
    by = _safe_float(box.get("y"), 0.0)
    # Within 30% of center
    target_x = bx + bw / 2 + random.uniform(-0.3, 0.3) * bw
    target_y = by + bh / 2 + random.uniform(-0.3, 0.3) * bh
    bezier_move(page, target_x, target_y)
    time.sleep(random.uniform(0.05, 0.15))
    page.mouse.click(target_x, target_y)
    log.debug(f"    click ({target_x:.0f},{target_y:.0f}) bezier [{time.monotonic() - t0:.1f}s]")


def human_type(element, text: str, *, min_delay: float = 0.05, max_delay: float = 0.18,
               pause_chance: float = 0.05) -> None:
    """Type *text* key by key with randomized inter-key delays.

    Occasionally pauses longer, as people do between words.
    """
    if min_delay > max_delay:
        min_delay, max_delay = max_delay, min_delay
    for ch in text:
        if ch == "\n":
            element.press("Enter")
        elif ch == "\t":
            element.press("Tab")
        else:
            element.type(ch)
        delay = random.uniform(min_delay, max_delay)
        if ch == " " or random.random() < pause_chance:
            delay += random.uniform(0.1, 0.4)
        time.sleep(delay)


def _first_match(page, selectors):
    for selector in selectors:
        found = page.query_selector(selector)
        if found:
            return found
    return None


def human_dismiss_modal(
    page,
    close_selectors=DEFAULT_CLOSE_SELECTORS,
    backdrop_selectors=DEFAULT_BACKDROP_SELECTORS,
) -> str:
    """Dismiss a modal overlay using a randomly chosen method.

    50% Escape key, 30% close button click, 20% backdrop click. Falls back
    to Escape when the chosen target isn't on the page. Returns the method
    used.
    """
    t0 = time.monotonic()
    roll = random.random()
    method = "escape"
    target = None
    if roll >= 0.80:
        target = _first_match(page, backdrop_selectors)
        method = "backdrop" if target else "escape"
    elif roll >= 0.50:
        target = _first_match(page, close_selectors)
        method = "close-btn" if target else "escape"
    if target is not None:
        human_click(page, target)
    else:
        page.keyboard.press("Escape")
    human_sleep(0.3, 0.8, distraction=0)
    log.debug(f"    dismiss modal via {method} [{time.monotonic() - t0:.1f}s]")
    return method


def scroll_count() -> int:
    """Return a random scroll count (2-5) instead of a fixed number."""
    return random.randint(2, 5)
