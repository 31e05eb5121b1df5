"""Diagnostic snapshot capture on task failures.

Captures page state, console errors, response-tap state and timing data
when a task fails. Designed for zero overhead when disabled (verbosity="off").
"""
import json
import logging
import os
import time
from dataclasses import dataclass, field, asdict
from typing import Any

from .errors import classify_error

log = logging.getLogger(__name__)


class BundleVerbosity:
    OFF = "off"             # No capture at all
    MINIMAL = "minimal"     # error + console + tap state + timing (~0ms overhead)
    STANDARD = "standard"   # + page URL/title/text snippet (~10ms)
    FULL = "full"           # + screenshot and HTML (~200-500ms)


@dataclass
class FailureBundle:
    task_id: str
    reason: str
    label: str = ""
    error_kind: str = ""
    error_message: str = ""
    page_url: str = ""
    page_title: str = ""
    page_text_snippet: str = ""
    console_errors: list[dict] = field(default_factory=list)
    tap_keys: list[str] = field(default_factory=list)
    phase_timings: dict[str, float] = field(default_factory=dict)
    total_elapsed: float = 0.0
    health_score: float = -1.0
    extras: dict[str, Any] = field(default_factory=dict)
    screenshot_path: str = ""
    html_path: str = ""
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return asdict(self)


def _stamp() -> str:
    return time.strftime("%Y%m%d_%H%M%S") + f"_{int(time.time() * 1000) % 1000:03d}"


def _safe_name(value: str) -> str:
    return value.replace("/", "_").replace("\\", "_")[:50] or "unknown"


def capture_failure_bundle(
    page,
    task_id: str,
    reason: str,
    *,
    label: str = "",
    error: BaseException | None = None,
    console=None,
    tap=None,
    phase_timings: dict | None = None,
    total_elapsed: float = 0.0,
    health_score: float = -1.0,
    extras: dict | None = None,
    verbosity: str = BundleVerbosity.STANDARD,
    artifact_dir: str = "",
) -> FailureBundle:
    """Best-effort capture of failure diagnostics. Never raises."""
    bundle = FailureBundle(
        task_id=task_id,
        reason=reason,
        label=label,
        phase_timings=phase_timings or {},
        total_elapsed=total_elapsed,
        health_score=health_score,
        extras=dict(extras or {}),
    )

    if error is not None:
        bundle.error_kind = classify_error(error).value
        bundle.error_message = str(error)[:2000]

    try:
        if console is not None:
            bundle.console_errors = console.errors()[-20:]
    except Exception:
        pass

    try:
        if tap is not None:
            bundle.tap_keys = tap.keys()
    except Exception:
        pass

    if verbosity in (BundleVerbosity.STANDARD, BundleVerbosity.FULL):
        try:
            bundle.page_url = page.url or ""
        except Exception:
            pass
        try:
            bundle.page_title = page.title() or ""
        except Exception:
            pass
        try:
            snippet = page.evaluate("() => document.body?.innerText?.slice(0, 2000) || ''")
            bundle.page_text_snippet = snippet or ""
        except Exception:
            pass

    if verbosity == BundleVerbosity.FULL and artifact_dir:
        stem = f"fail_{_stamp()}_{_safe_name(task_id)}"
        try:
            os.makedirs(artifact_dir, exist_ok=True)
            path = os.path.join(artifact_dir, stem + ".png")
            page.screenshot(path=path, full_page=False)
            bundle.screenshot_path = path
        except Exception:
            pass
        try:
            path = os.path.join(artifact_dir, stem + ".html")
            with open(path, "w", encoding="utf-8") as f:
                f.write(page.content())
            bundle.html_path = path
        except Exception:
            pass

    return bundle


def save_failure_bundle(bundle: FailureBundle, base_dir: str = "data/logs/failures") -> str:
    """Save bundle to JSON. Returns file path, or '' on failure."""
    try:
        out_dir = os.path.join(base_dir, _safe_name(bundle.label or "unlabeled"))
        os.makedirs(out_dir, exist_ok=True)
        path = os.path.join(out_dir, f"{_stamp()}_{_safe_name(bundle.task_id)}.json")

        with open(path, "w", encoding="utf-8") as f:
            json.dump(bundle.to_dict(), f, ensure_ascii=False, indent=2, default=str)
        return path
    except Exception as e:
        log.debug(f"Failed to save failure bundle: {e}")
        return ""
